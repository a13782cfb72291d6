"""
Assessment Service

Resolves a patient's full context from the repositories and runs the
recommendation engine on it. This is the only place that reaches into
persistence; the engine itself works on the resolved snapshot.
"""
from __future__ import annotations

import logging
from typing import Optional

from biologic_advisor.core.clinical.base import AssessmentInput, PatientWithData, RecommendationResult
from biologic_advisor.core.dosing import current_biologic_from_claims
from biologic_advisor.core.recommendation import RecommendationEngine, find_current_formulary_drug
from biologic_advisor.utils.exceptions import PatientNotFoundError
from .repositories import (
    ClaimsRepository,
    ContraindicationRepository,
    FormularyRepository,
    PatientRepository,
)

logger = logging.getLogger(__name__)

CLAIMS_LOOKBACK = 12


class AssessmentService:
    """Builds PatientWithData and hands it to the engine."""

    def __init__(
        self,
        patients: PatientRepository,
        formularies: FormularyRepository,
        contraindications: ContraindicationRepository,
        claims: ClaimsRepository,
        engine: Optional[RecommendationEngine] = None,
    ):
        self.patients = patients
        self.formularies = formularies
        self.contraindications = contraindications
        self.claims = claims
        self.engine = engine or RecommendationEngine()

    def build_patient_context(self, patient_id: str) -> PatientWithData:
        record = self.patients.get_patient(patient_id)
        if record is None:
            raise PatientNotFoundError(patient_id)

        formulary = self.formularies.latest_formulary(record.plan_id) if record.plan_id else ()
        claims = tuple(sorted(
            self.claims.recent_claims(patient_id, CLAIMS_LOOKBACK),
            key=lambda c: c.fill_date,
            reverse=True,
        ))

        current_biologics = record.current_biologics
        if not current_biologics and claims:
            # No charted biologic: the most recent fill stands in for it
            matched = find_current_formulary_drug(claims[0].drug_name, formulary)
            inferred = current_biologic_from_claims(claims, matched.drug_class if matched else None)
            if inferred is not None:
                current_biologics = (inferred,)

        return PatientWithData(
            patient_id=patient_id,
            current_biologics=current_biologics,
            claims=claims,
            contraindications=self.contraindications.contraindications_for(patient_id),
            formulary=formulary,
            plan_id=record.plan_id,
        )

    async def assess(self, assessment: AssessmentInput) -> RecommendationResult:
        patient = self.build_patient_context(assessment.patient_id)
        logger.info(
            f"Assessing patient {assessment.patient_id}: plan {patient.plan_id}, "
            f"{len(patient.formulary)} formulary drugs, {len(patient.claims)} claims"
        )
        return await self.engine.generate_recommendations(assessment, patient)
