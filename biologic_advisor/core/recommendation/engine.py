"""
Recommendation Engine

Single entry point for one assessment:

    assessment + patient context
        → indication filter → contraindication screen
        → current-drug match → dose level → treatment state
        → tier cascade → RecommendationResult

The engine holds no per-request state. Collaborators (efficacy ranker,
knowledge search) are injected once and shared across assessments.
"""
from __future__ import annotations

import logging
from decimal import Decimal
from typing import Iterable, List, Optional

from biologic_advisor.core.clinical.base import (
    AssessmentInput,
    ContraindicatedDrugView,
    FormularyDrug,
    FormularyReferenceEntry,
    PatientWithData,
    RecommendationResult,
)
from biologic_advisor.core.clinical.contraindications import filter_contraindications
from biologic_advisor.core.clinical.indications import filter_indicated
from biologic_advisor.core.clinical.stability import classify_treatment_state
from biologic_advisor.core.dosing import detect_dose_reduction_level, standard_dosing_for_class
from biologic_advisor.core.evidence import KnowledgeSearch
from biologic_advisor.core.llm.efficacy_ranker import EfficacyRanker
from biologic_advisor.utils.exceptions import EmptyFormularyError, MissingCurrentBiologicError
from .cascade import NO_TIER, CascadeContext, TierCascadeRecommender
from .drug_matching import find_current_formulary_drug

logger = logging.getLogger(__name__)


def _reference_sort_key(drug: FormularyDrug):
    cost = drug.annual_cost_wac if drug.annual_cost_wac is not None else Decimal("Infinity")
    return (drug.tier, drug.pa_required, cost)


def build_formulary_reference(drugs: Iterable[FormularyDrug]) -> List[FormularyReferenceEntry]:
    """Safe, indicated options for display: tier, then no-PA first, then WAC."""
    return [
        FormularyReferenceEntry(
            drug_name=d.drug_name,
            generic_name=d.generic_name,
            drug_class=d.drug_class,
            tier=d.tier,
            requires_pa=d.requires_pa.value,
            standard_dosing=standard_dosing_for_class(d.drug_class),
            annual_cost=float(d.annual_cost_wac) if d.annual_cost_wac else None,
        )
        for d in sorted(drugs, key=_reference_sort_key)
    ]


class RecommendationEngine:
    """
    Biologic optimisation decision engine.

    Usage:
        engine = RecommendationEngine(ranker=select_efficacy_ranker())
        result = await engine.generate_recommendations(assessment, patient)
    """

    def __init__(
        self,
        ranker: Optional[EfficacyRanker] = None,
        knowledge_search: Optional[KnowledgeSearch] = None,
    ):
        self.cascade = TierCascadeRecommender(ranker=ranker, knowledge_search=knowledge_search)

    async def generate_recommendations(
        self,
        assessment: AssessmentInput,
        patient: PatientWithData,
    ) -> RecommendationResult:
        """
        Produce up to three ranked recommendations for one assessment.

        Raises:
            MissingCurrentBiologicError: the context has no current biologic.
            EmptyFormularyError: the formulary is empty, or nothing indicated
                and safe is left after screening.
        """
        current = patient.current_biologic
        if current is None:
            raise MissingCurrentBiologicError(assessment.patient_id)

        if not patient.formulary:
            raise EmptyFormularyError(
                "No formulary data available for patient's plan",
                patient_id=assessment.patient_id,
            )

        indicated = filter_indicated(patient.formulary, assessment.diagnosis)
        screen = filter_contraindications(indicated, patient.contraindications)
        contraindicated_views = [ContraindicatedDrugView.from_contraindicated(c) for c in screen.contraindicated]

        if not screen.safe:
            raise EmptyFormularyError(
                f"No indicated, contraindication-free formulary options for {assessment.diagnosis.value}",
                patient_id=assessment.patient_id,
                details={
                    "formulary_size": len(patient.formulary),
                    "indicated": len(indicated),
                    "contraindicated_drugs": [v.to_dict() for v in contraindicated_views],
                },
            )

        current_drug = find_current_formulary_drug(current.drug_name, patient.formulary)
        if current_drug is None:
            logger.warning(f"Current biologic {current.drug_name} not found on plan formulary")

        dose_level = detect_dose_reduction_level(current.drug_name, current.frequency)
        lowest_tier = min(d.tier for d in screen.safe)
        current_tier = current_drug.tier if current_drug else NO_TIER

        state = classify_treatment_state(
            assessment.dlqi_score,
            assessment.months_stable,
            current_drug,
            current_tier,
            lowest_tier,
        )

        ctx = CascadeContext(
            assessment=assessment,
            current_biologic=current,
            current_drug=current_drug,
            candidates=tuple(screen.safe),
            screen=screen,
            contraindications=tuple(patient.contraindications),
            quadrant=state.quadrant,
            dose_level=dose_level,
        )
        recommendations = await self.cascade.recommend(ctx)

        return RecommendationResult(
            is_stable=state.is_stable,
            is_formulary_optimal=state.is_formulary_optimal,
            quadrant=state.quadrant,
            dose_reduction_level=dose_level,
            recommendations=recommendations,
            contraindicated_drugs=contraindicated_views,
            formulary_reference=build_formulary_reference(screen.safe),
        )


async def generate_recommendations(
    assessment: AssessmentInput,
    patient: PatientWithData,
    ranker: Optional[EfficacyRanker] = None,
    knowledge_search: Optional[KnowledgeSearch] = None,
) -> RecommendationResult:
    """Convenience wrapper around a one-off ``RecommendationEngine``."""
    engine = RecommendationEngine(ranker=ranker, knowledge_search=knowledge_search)
    return await engine.generate_recommendations(assessment, patient)
