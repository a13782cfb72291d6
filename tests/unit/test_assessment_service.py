"""
Unit Tests for Repositories and the Assessment Service
"""
from datetime import date, datetime, timedelta

import pytest

from biologic_advisor.core.clinical.base import (
    Contraindication,
    ContraindicationType,
    CurrentBiologic,
    PharmacyClaim,
    Quadrant,
)
from biologic_advisor.services import (
    CLAIMS_LOOKBACK,
    AssessmentService,
    FormularySnapshot,
    InMemoryClaimsRepository,
    InMemoryContraindicationRepository,
    InMemoryFormularyRepository,
    InMemoryPatientRepository,
    PatientRecord,
)
from biologic_advisor.utils.exceptions import EmptyFormularyError, PatientNotFoundError


@pytest.fixture
def repositories(formulary, skyrizi):
    patients = InMemoryPatientRepository([
        PatientRecord("PT-001", "PLAN-A", (CurrentBiologic("Humira", "40 mg", "Every 2 weeks"),)),
        PatientRecord("PT-002", "PLAN-A"),
        PatientRecord("PT-003", None, (CurrentBiologic("Humira", "40 mg", "Every 2 weeks"),)),
    ])
    formularies = InMemoryFormularyRepository([
        FormularySnapshot("PLAN-A", datetime(2025, 1, 1), (skyrizi,)),
        FormularySnapshot("PLAN-A", datetime(2026, 1, 1), tuple(formulary)),
        FormularySnapshot("PLAN-B", datetime(2026, 6, 1), (skyrizi,)),
    ])
    contraindications = InMemoryContraindicationRepository()
    contraindications.add("PT-001", Contraindication(ContraindicationType.HEART_FAILURE))
    claims = InMemoryClaimsRepository()
    return patients, formularies, contraindications, claims


@pytest.fixture
def service(repositories) -> AssessmentService:
    patients, formularies, contraindications, claims = repositories
    return AssessmentService(patients, formularies, contraindications, claims)


class TestFormularyRepository:
    """Tests for snapshot selection."""

    def test_most_recent_snapshot(self, repositories, formulary):
        _, formularies, _, _ = repositories
        assert formularies.latest_formulary("PLAN-A") == tuple(formulary)

    def test_unknown_plan(self, repositories):
        _, formularies, _, _ = repositories
        assert formularies.latest_formulary("PLAN-Z") == ()


class TestClaimsRepository:
    """Tests for claims ordering and limits."""

    def test_recent_first_and_limited(self):
        repo = InMemoryClaimsRepository()
        start = date(2025, 1, 1)
        repo.add("PT-1", [PharmacyClaim("Humira", start + timedelta(days=14 * i)) for i in range(20)])

        claims = repo.recent_claims("PT-1", CLAIMS_LOOKBACK)
        assert len(claims) == 12
        assert claims[0].fill_date == start + timedelta(days=14 * 19)
        assert claims[0].fill_date > claims[-1].fill_date


class TestBuildPatientContext:
    """Tests for PatientWithData assembly."""

    def test_charted_patient(self, service, formulary):
        patient = service.build_patient_context("PT-001")
        assert patient.current_biologic.drug_name == "Humira"
        assert patient.formulary == tuple(formulary)
        assert patient.contraindications[0].type is ContraindicationType.HEART_FAILURE
        assert patient.plan_id == "PLAN-A"

    def test_claims_fallback(self, service, repositories, biweekly_claims):
        _, _, _, claims = repositories
        claims.add("PT-002", biweekly_claims)

        patient = service.build_patient_context("PT-002")
        assert patient.current_biologic.drug_name == "Humira"
        assert patient.current_biologic.frequency == "Every 2 weeks"
        assert len(patient.claims) == 3

    def test_no_biologic_and_no_claims(self, service):
        assert service.build_patient_context("PT-002").current_biologic is None

    def test_unknown_patient(self, service):
        with pytest.raises(PatientNotFoundError) as exc_info:
            service.build_patient_context("PT-404")
        assert exc_info.value.code == "NOT_FOUND"


class TestAssess:
    """Tests for the service entry point."""

    async def test_assess_runs_engine(self, service, make_assessment):
        result = await service.assess(make_assessment(dlqi=2, months=8, patient_id="PT-001"))
        assert result.quadrant is Quadrant.STABLE_NON_FORMULARY
        assert "Amjevita" in [c.drug_name for c in result.contraindicated_drugs]
        assert result.recommendations[0].drug_name == "Skyrizi"

    async def test_assess_from_claims(self, service, repositories, make_assessment, biweekly_claims):
        _, _, _, claims = repositories
        claims.add("PT-002", biweekly_claims)

        result = await service.assess(make_assessment(dlqi=2, months=8, patient_id="PT-002"))
        assert result.quadrant is Quadrant.STABLE_NON_FORMULARY

    async def test_patient_without_plan(self, service, make_assessment):
        with pytest.raises(EmptyFormularyError):
            await service.assess(make_assessment(patient_id="PT-003"))
