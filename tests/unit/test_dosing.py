"""
Unit Tests for the Dosing Layer

Maintenance table lookup, frequency parsing, dose-level detection,
label dosing reference and claims-based inference.
"""
from datetime import date, timedelta

import pytest

from biologic_advisor.core.clinical.base import DoseReductionLevel, PharmacyClaim
from biologic_advisor.core.dosing import (
    ExtendedInterval,
    IntervalUnit,
    StandardInterval,
    UnparsableFrequency,
    classify_extension_ratio,
    current_biologic_from_claims,
    detect_dose_reduction_level,
    get_standard_dosing,
    infer_frequency,
    label_dosing_for,
    parse_frequency,
    parse_interval,
    standard_dosing_for_class,
)


class TestStandardDosing:
    """Tests for the maintenance interval table."""

    def test_lookup_is_case_insensitive(self):
        assert get_standard_dosing("skyrizi") == get_standard_dosing("SKYRIZI")
        assert get_standard_dosing("Skyrizi").interval == 12

    def test_biosimilar_entries(self):
        assert get_standard_dosing("Adalimumab-adbm").interval == 2

    def test_oral_drugs_are_daily(self):
        assert get_standard_dosing("Rinvoq").unit is IntervalUnit.DAYS

    def test_unknown_drug(self):
        assert get_standard_dosing("Mysterimab") is None
        assert get_standard_dosing("") is None


class TestFrequencyParser:
    """Tests for the tagged frequency parser."""

    def test_parse_interval(self):
        assert parse_interval("Every 16 weeks") == (16, IntervalUnit.WEEKS)
        assert parse_interval("every 2 days") == (2, IntervalUnit.DAYS)
        assert parse_interval("Monthly") is None
        assert parse_interval(None) is None

    def test_standard_interval(self):
        result = parse_frequency("Every 12 weeks", get_standard_dosing("Skyrizi"))
        assert isinstance(result, StandardInterval)
        assert result.ratio == pytest.approx(1.0)

    def test_extended_interval(self):
        result = parse_frequency("Every 16 weeks", get_standard_dosing("Skyrizi"))
        assert isinstance(result, ExtendedInterval)
        assert result.ratio == pytest.approx(16 / 12)

    def test_unknown_drug_is_unparsable(self):
        result = parse_frequency("Every 4 weeks", None)
        assert isinstance(result, UnparsableFrequency)

    def test_free_text_is_unparsable(self):
        result = parse_frequency("As directed", get_standard_dosing("Humira"))
        assert isinstance(result, UnparsableFrequency)
        assert "As directed" in result.reason

    def test_unit_mismatch_is_unparsable(self):
        result = parse_frequency("Every 2 weeks", get_standard_dosing("Rinvoq"))
        assert isinstance(result, UnparsableFrequency)


class TestDoseLevel:
    """Tests for dose-reduction level detection."""

    @pytest.mark.parametrize("ratio,level", [
        (1.0, DoseReductionLevel.STANDARD),
        (1.15, DoseReductionLevel.STANDARD),
        (1.1501, DoseReductionLevel.REDUCED_25),
        (1.60, DoseReductionLevel.REDUCED_25),
        (1.6001, DoseReductionLevel.REDUCED_50),
        (3.0, DoseReductionLevel.REDUCED_50),
    ])
    def test_ratio_boundaries(self, ratio, level):
        assert classify_extension_ratio(ratio) is level

    def test_monotonic_in_ratio(self):
        ratios = [0.5 + i * 0.01 for i in range(250)]
        levels = [int(classify_extension_ratio(r)) for r in ratios]
        assert levels == sorted(levels)

    @pytest.mark.parametrize("drug,frequency,level", [
        ("Humira", "Every 2 weeks", DoseReductionLevel.STANDARD),
        ("Humira", "Every 3 weeks", DoseReductionLevel.REDUCED_25),
        ("Humira", "Every 4 weeks", DoseReductionLevel.REDUCED_50),
        ("Skyrizi", "Every 13 weeks", DoseReductionLevel.STANDARD),
        ("Skyrizi", "Every 16 weeks", DoseReductionLevel.REDUCED_25),
        ("Skyrizi", "Every 24 weeks", DoseReductionLevel.REDUCED_50),
    ])
    def test_detect(self, drug, frequency, level):
        assert detect_dose_reduction_level(drug, frequency) is level

    def test_unknown_inputs_default_to_standard(self):
        assert detect_dose_reduction_level("Mysterimab", "Every 8 weeks") is DoseReductionLevel.STANDARD
        assert detect_dose_reduction_level("Humira", "biweekly-ish") is DoseReductionLevel.STANDARD


class TestLabelDosing:
    """Tests for the label dosing reference."""

    def test_brand_and_generic(self):
        assert label_dosing_for("Skyrizi") == label_dosing_for("risankizumab")
        assert "every 12 weeks" in label_dosing_for("Skyrizi").frequency

    def test_biosimilar_brand(self):
        assert label_dosing_for("Hyrimoz").dose.startswith("80 mg")

    def test_unknown_drug(self):
        dosing = label_dosing_for("Mysterimab")
        assert dosing.dose == "Per FDA label"

    def test_class_level_summary(self):
        assert standard_dosing_for_class("TNF_INHIBITOR") == "Per label (varies by drug)"
        assert standard_dosing_for_class("IL4_13_INHIBITOR") == "Per label"


class TestClaimsInference:
    """Tests for claims-based frequency and biologic inference."""

    def _fills(self, drug: str, gap_days: int, count: int = 3):
        last = date(2026, 9, 1)
        return [PharmacyClaim(drug, last - timedelta(days=gap_days * i)) for i in range(count)]

    @pytest.mark.parametrize("gap,label", [
        (7, "Weekly"),
        (14, "Every 2 weeks"),
        (28, "Monthly"),
        (42, "Every 6 weeks"),
        (56, "Every 8 weeks"),
        (84, "Every 12 weeks"),
        (120, "Every 3+ months"),
    ])
    def test_fill_gap_bands(self, gap, label):
        assert infer_frequency(self._fills("Humira", gap)) == label

    def test_class_default_with_single_fill(self):
        fills = self._fills("Skyrizi", 84, count=1)
        assert infer_frequency(fills, "IL23_INHIBITOR") == "Every 8 weeks (after loading)"
        assert infer_frequency(fills) == "As prescribed"

    def test_current_biologic_from_claims(self, biweekly_claims):
        biologic = current_biologic_from_claims(biweekly_claims, "TNF_INHIBITOR")
        assert biologic.drug_name == "Humira"
        assert biologic.frequency == "Every 2 weeks"
        assert biologic.dose == "As prescribed"

    def test_most_recent_fill_wins(self):
        claims = self._fills("Humira", 14) + [PharmacyClaim("Skyrizi", date(2026, 10, 1))]
        biologic = current_biologic_from_claims(claims)
        assert biologic.drug_name == "Skyrizi"

    def test_no_claims(self):
        assert current_biologic_from_claims([]) is None
