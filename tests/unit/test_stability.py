"""
Unit Tests for Stability, Formulary Status and Quadrant Resolution
"""
import pytest

from biologic_advisor.core.clinical.base import AssessmentInput, Diagnosis, PriorAuthStatus, Quadrant
from biologic_advisor.core.clinical.stability import (
    classify_treatment_state,
    determine_formulary_status,
    determine_stability,
    get_quadrant,
    is_stable_short_duration,
)
from biologic_advisor.utils.exceptions import AssessmentInputError


class TestStability:
    """Tests for the DLQI / duration thresholds."""

    @pytest.mark.parametrize("dlqi,months,expected", [
        (0, 6, True),
        (4, 6, True),
        (4, 24, True),
        (5, 6, False),
        (4, 5, False),
        (30, 0, False),
    ])
    def test_determine_stability(self, dlqi, months, expected):
        assert determine_stability(dlqi, months) is expected

    def test_short_duration(self):
        assert is_stable_short_duration(3, 0)
        assert is_stable_short_duration(4, 5)
        assert not is_stable_short_duration(4, 6)
        assert not is_stable_short_duration(5, 2)

    def test_stable_and_short_duration_are_exclusive(self):
        """For every (dlqi, months) at most one of the two holds; the rest is unstable."""
        for dlqi in range(0, 31):
            for months in range(0, 25):
                stable = determine_stability(dlqi, months)
                short = is_stable_short_duration(dlqi, months)
                assert not (stable and short)
                if dlqi > 4:
                    assert not stable and not short


class TestFormularyStatus:
    """Tests for formulary optimality."""

    def test_tier_one_without_pa_is_optimal(self, skyrizi):
        assert determine_formulary_status(skyrizi)

    def test_tier_one_with_pa_is_not_optimal(self, drug_factory):
        drug = drug_factory("Tremfya", "guselkumab", "IL23_INHIBITOR", 1, pa=PriorAuthStatus.YES)
        assert not determine_formulary_status(drug)

    def test_unknown_pa_counts_as_required(self, drug_factory):
        drug = drug_factory("Tremfya", "guselkumab", "IL23_INHIBITOR", 1, pa=PriorAuthStatus.UNKNOWN)
        assert not determine_formulary_status(drug)

    def test_na_pa_is_not_required(self, drug_factory):
        drug = drug_factory("Tremfya", "guselkumab", "IL23_INHIBITOR", 1, pa=PriorAuthStatus.NA)
        assert determine_formulary_status(drug)

    def test_higher_tier_is_not_optimal(self, humira):
        assert not determine_formulary_status(humira)

    def test_missing_drug_is_not_optimal(self):
        assert not determine_formulary_status(None)


class TestQuadrant:
    """Tests for quadrant resolution."""

    @pytest.mark.parametrize("stable,optimal,quadrant", [
        (True, True, Quadrant.STABLE_FORMULARY_ALIGNED),
        (True, False, Quadrant.STABLE_NON_FORMULARY),
        (False, True, Quadrant.UNSTABLE_FORMULARY_ALIGNED),
        (False, False, Quadrant.UNSTABLE_NON_FORMULARY),
    ])
    def test_get_quadrant(self, stable, optimal, quadrant):
        assert get_quadrant(stable, optimal) is quadrant

    def test_short_duration_resolved_first(self, humira):
        state = classify_treatment_state(2, 3, humira, current_tier=3, lowest_tier=1)
        assert state.quadrant is Quadrant.STABLE_SHORT_DURATION
        assert state.is_stable
        assert not state.is_formulary_optimal

    def test_short_duration_on_lowest_tier_is_optimal(self, skyrizi):
        state = classify_treatment_state(1, 2, skyrizi, current_tier=1, lowest_tier=1)
        assert state.quadrant is Quadrant.STABLE_SHORT_DURATION
        assert state.is_formulary_optimal

    def test_unstable_regardless_of_duration(self, skyrizi):
        state = classify_treatment_state(10, 2, skyrizi, current_tier=1, lowest_tier=1)
        assert state.quadrant is Quadrant.UNSTABLE_FORMULARY_ALIGNED
        assert not state.is_stable


class TestAssessmentInput:
    """Tests for assessment validation."""

    @pytest.mark.parametrize("dlqi", [-1, 31])
    def test_dlqi_out_of_range(self, dlqi):
        with pytest.raises(AssessmentInputError) as exc_info:
            AssessmentInput("PT-1", Diagnosis.PSORIASIS, False, dlqi, 6)
        assert exc_info.value.code == "INPUT_ERROR"
        assert exc_info.value.details["patient_id"] == "PT-1"

    def test_negative_months(self):
        with pytest.raises(AssessmentInputError):
            AssessmentInput("PT-1", Diagnosis.PSORIASIS, False, 2, -1)

    def test_bounds_accepted(self):
        AssessmentInput("PT-1", Diagnosis.PSORIASIS, False, 0, 0)
        AssessmentInput("PT-1", Diagnosis.PSORIASIS, False, 30, 0)
