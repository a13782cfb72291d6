"""
Pytest Configuration and Fixtures

Shared fixtures for biologic advisor tests: a realistic plan formulary,
patient-context and assessment builders, and scripted fakes for the
efficacy ranker and knowledge search.
"""
from datetime import date, timedelta
from decimal import Decimal
from typing import List, Sequence
from unittest.mock import AsyncMock, Mock

import pytest

from biologic_advisor.core.clinical.base import (
    AssessmentInput,
    Contraindication,
    ContraindicationType,
    CurrentBiologic,
    Diagnosis,
    FormularyDrug,
    PatientWithData,
    PharmacyClaim,
    PriorAuthStatus,
)
from biologic_advisor.core.evidence import InMemoryKnowledgeSearch, KnowledgeHit
from biologic_advisor.core.llm.efficacy_ranker import PatientProfile, RankedDrug
from biologic_advisor.core.llm.gemini_client import GeminiResponse

PSO = Diagnosis.PSORIASIS
AD = Diagnosis.ATOPIC_DERMATITIS
PSA = Diagnosis.PSORIATIC_ARTHRITIS


def make_drug(
    name: str,
    generic: str,
    drug_class: str,
    tier: int,
    pa: PriorAuthStatus = PriorAuthStatus.NO,
    indications=(PSO,),
    biosimilar_of=None,
    wac=None,
) -> FormularyDrug:
    return FormularyDrug(
        drug_name=name,
        generic_name=generic,
        drug_class=drug_class,
        tier=tier,
        requires_pa=pa,
        fda_indications=tuple(indications),
        biosimilar_of=biosimilar_of,
        annual_cost_wac=Decimal(str(wac)) if wac is not None else None,
    )


# ── Formulary ─────────────────────────────────────────────────────────────────

@pytest.fixture
def drug_factory():
    return make_drug


@pytest.fixture
def skyrizi() -> FormularyDrug:
    return make_drug("Skyrizi", "risankizumab", "IL23_INHIBITOR", 1, wac=70000)


@pytest.fixture
def amjevita() -> FormularyDrug:
    return make_drug("Amjevita", "adalimumab-atto", "TNF_INHIBITOR", 1, biosimilar_of="Humira", wac=30000)


@pytest.fixture
def cosentyx() -> FormularyDrug:
    return make_drug("Cosentyx", "secukinumab", "IL17_INHIBITOR", 2, pa=PriorAuthStatus.YES, indications=(PSO, PSA))


@pytest.fixture
def humira() -> FormularyDrug:
    return make_drug("Humira", "adalimumab", "TNF_INHIBITOR", 3, pa=PriorAuthStatus.YES, indications=(PSO, PSA))


@pytest.fixture
def stelara() -> FormularyDrug:
    return make_drug("Stelara", "ustekinumab", "IL12_23_INHIBITOR", 3, pa=PriorAuthStatus.YES)


@pytest.fixture
def dupixent() -> FormularyDrug:
    return make_drug("Dupixent", "dupilumab", "IL4_13_INHIBITOR", 2, indications=(AD,))


@pytest.fixture
def rinvoq() -> FormularyDrug:
    return make_drug("Rinvoq", "upadacitinib", "JAK_INHIBITOR", 4, pa=PriorAuthStatus.YES, indications=(PSA, AD))


@pytest.fixture
def formulary(skyrizi, amjevita, cosentyx, humira, stelara, dupixent, rinvoq) -> List[FormularyDrug]:
    """Seven-drug plan: five indicated for psoriasis across tiers 1-3."""
    return [skyrizi, amjevita, cosentyx, humira, stelara, dupixent, rinvoq]


# ── Patient / assessment builders ─────────────────────────────────────────────

@pytest.fixture
def make_assessment():
    def _make(
        dlqi: int = 2,
        months: int = 8,
        diagnosis: Diagnosis = PSO,
        psa: bool = False,
        notes=None,
        patient_id: str = "PT-001",
    ) -> AssessmentInput:
        return AssessmentInput(
            patient_id=patient_id,
            diagnosis=diagnosis,
            has_psoriatic_arthritis=psa,
            dlqi_score=dlqi,
            months_stable=months,
            additional_notes=notes,
        )
    return _make


@pytest.fixture
def make_patient(formulary):
    def _make(
        drug_name: str = "Humira",
        dose: str = "40 mg",
        frequency: str = "Every 2 weeks",
        contraindications: Sequence[ContraindicationType] = (),
        drugs: Sequence[FormularyDrug] = None,
        current: bool = True,
        claims: Sequence[PharmacyClaim] = (),
    ) -> PatientWithData:
        biologics = (CurrentBiologic(drug_name, dose, frequency),) if current else ()
        return PatientWithData(
            patient_id="PT-001",
            current_biologics=biologics,
            claims=tuple(claims),
            contraindications=tuple(Contraindication(t) for t in contraindications),
            formulary=tuple(formulary if drugs is None else drugs),
            plan_id="PLAN-A",
        )
    return _make


@pytest.fixture
def biweekly_claims() -> List[PharmacyClaim]:
    """Three Humira fills 14 days apart, most recent first."""
    last = date(2026, 9, 1)
    return [PharmacyClaim("Humira", last - timedelta(days=14 * i), days_supply=14) for i in range(3)]


# ── Collaborator fakes ────────────────────────────────────────────────────────

class ReversingRanker:
    """Ranks candidates in reverse formulary order and records each call."""

    def __init__(self):
        self.calls: List[List[str]] = []

    async def rank(self, candidates, profile: PatientProfile) -> List[RankedDrug]:
        names = [d.drug_name for d in candidates]
        self.calls.append(names)
        return [
            RankedDrug(drug=d, rank=i + 1, reasoning=f"{d.drug_name} ranked by reviewer")
            for i, d in enumerate(reversed(list(candidates)))
        ]


class ExplodingRanker:
    async def rank(self, candidates, profile):
        raise RuntimeError("ranker offline")


@pytest.fixture
def reversing_ranker() -> ReversingRanker:
    return ReversingRanker()


@pytest.fixture
def exploding_ranker() -> ExplodingRanker:
    return ExplodingRanker()


@pytest.fixture
def evidence_search() -> InMemoryKnowledgeSearch:
    return InMemoryKnowledgeSearch([
        KnowledgeHit(
            title="Interval extension of IL-23 inhibitors in stable psoriasis",
            content="risankizumab skyrizi dose reduction interval extension psoriasis stable patients",
            category="dose_reduction",
        ),
        KnowledgeHit(
            title="Adalimumab tapering outcomes",
            content="humira adalimumab dose reduction interval extension psoriasis stable patients",
            category="dose_reduction",
        ),
    ])


@pytest.fixture
def mock_gemini_client():
    """An available GeminiClient whose reply text is set per test."""
    client = Mock()
    client.is_available = True
    client.generate_async = AsyncMock(return_value=GeminiResponse(text="", model="test"))
    return client
