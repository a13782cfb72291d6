"""
Clinical Decision Layer

Base types, stability / quadrant classification, indication filtering
and the contraindication rule table.

Usage:
    from biologic_advisor.core.clinical import classify_treatment_state, filter_contraindications

    screen = filter_contraindications(formulary, patient.contraindications)
    state = classify_treatment_state(dlqi, months, current_drug, current_tier, lowest_tier)
"""
from .base import (
    AssessmentInput,
    ContraindicatedDrug,
    ContraindicatedDrugView,
    Contraindication,
    ContraindicationReason,
    ContraindicationType,
    CurrentBiologic,
    Diagnosis,
    DoseReductionLevel,
    FormularyDrug,
    FormularyReferenceEntry,
    PatientWithData,
    PharmacyClaim,
    PriorAuthStatus,
    Quadrant,
    RecommendationOutput,
    RecommendationResult,
    RecommendationType,
    Severity,
)
from .stability import (
    TreatmentState,
    classify_treatment_state,
    determine_formulary_status,
    determine_stability,
    get_quadrant,
    is_stable_short_duration,
)
from .indications import filter_indicated, is_drug_indicated_for_diagnosis
from .contraindications import (
    CONTRAINDICATION_RULES,
    ContraindicationRule,
    ContraindicationScreen,
    check_contraindications,
    evaluate_drug,
    filter_contraindications,
)

__all__ = [
    "AssessmentInput",
    "ContraindicatedDrug",
    "ContraindicatedDrugView",
    "Contraindication",
    "ContraindicationReason",
    "ContraindicationType",
    "CurrentBiologic",
    "Diagnosis",
    "DoseReductionLevel",
    "FormularyDrug",
    "FormularyReferenceEntry",
    "PatientWithData",
    "PharmacyClaim",
    "PriorAuthStatus",
    "Quadrant",
    "RecommendationOutput",
    "RecommendationResult",
    "RecommendationType",
    "Severity",
    "TreatmentState",
    "classify_treatment_state",
    "determine_formulary_status",
    "determine_stability",
    "get_quadrant",
    "is_stable_short_duration",
    "filter_indicated",
    "is_drug_indicated_for_diagnosis",
    "CONTRAINDICATION_RULES",
    "ContraindicationRule",
    "ContraindicationScreen",
    "check_contraindications",
    "evaluate_drug",
    "filter_contraindications",
]
