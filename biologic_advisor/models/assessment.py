"""
API Schemas

Pydantic request/response models for the HTTP layer, with conversion
into the engine's frozen domain types.
"""
from datetime import date
from decimal import Decimal
from typing import List, Optional

from pydantic import BaseModel, Field

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
    Quadrant,
    RecommendationType,
    Severity,
)


# ── Requests ──────────────────────────────────────────────────────────────────

class AssessmentRequest(BaseModel):
    """Clinician assessment for a patient already on record."""
    diagnosis: Diagnosis
    has_psoriatic_arthritis: bool = False
    dlqi_score: int = Field(..., ge=0, le=30, description="Dermatology Life Quality Index (0-30)")
    months_stable: int = Field(..., ge=0, description="Months at the current level of disease control")
    additional_notes: Optional[str] = None

    def to_domain(self, patient_id: str) -> AssessmentInput:
        return AssessmentInput(
            patient_id=patient_id,
            diagnosis=self.diagnosis,
            has_psoriatic_arthritis=self.has_psoriatic_arthritis,
            dlqi_score=self.dlqi_score,
            months_stable=self.months_stable,
            additional_notes=self.additional_notes,
        )


class CurrentBiologicModel(BaseModel):
    drug_name: str
    dose: str
    frequency: str

    def to_domain(self) -> CurrentBiologic:
        return CurrentBiologic(drug_name=self.drug_name, dose=self.dose, frequency=self.frequency)


class PharmacyClaimModel(BaseModel):
    drug_name: str
    fill_date: date
    ndc_code: Optional[str] = None
    days_supply: Optional[int] = None

    def to_domain(self) -> PharmacyClaim:
        return PharmacyClaim(
            drug_name=self.drug_name,
            fill_date=self.fill_date,
            ndc_code=self.ndc_code,
            days_supply=self.days_supply,
        )


class ContraindicationModel(BaseModel):
    type: ContraindicationType
    details: Optional[str] = None

    def to_domain(self) -> Contraindication:
        return Contraindication(type=self.type, details=self.details)


class FormularyDrugModel(BaseModel):
    drug_name: str
    generic_name: str
    drug_class: str
    tier: int = Field(..., ge=1, le=5)
    requires_pa: PriorAuthStatus = PriorAuthStatus.UNKNOWN
    fda_indications: List[Diagnosis] = Field(default_factory=list)
    biosimilar_of: Optional[str] = None
    annual_cost_wac: Optional[Decimal] = None

    def to_domain(self) -> FormularyDrug:
        return FormularyDrug(
            drug_name=self.drug_name,
            generic_name=self.generic_name,
            drug_class=self.drug_class,
            tier=self.tier,
            requires_pa=self.requires_pa,
            fda_indications=tuple(self.fda_indications),
            biosimilar_of=self.biosimilar_of,
            annual_cost_wac=self.annual_cost_wac,
        )


class PatientContextModel(BaseModel):
    """Fully resolved patient data, supplied by the caller."""
    current_biologics: List[CurrentBiologicModel] = Field(default_factory=list)
    claims: List[PharmacyClaimModel] = Field(default_factory=list)
    contraindications: List[ContraindicationModel] = Field(default_factory=list)
    formulary: List[FormularyDrugModel] = Field(default_factory=list)
    plan_id: Optional[str] = None


class RecommendationRequest(BaseModel):
    """Assessment plus patient context, for callers that own persistence."""
    patient_id: str
    assessment: AssessmentRequest
    patient: PatientContextModel

    def to_domain(self):
        patient = PatientWithData(
            patient_id=self.patient_id,
            current_biologics=tuple(b.to_domain() for b in self.patient.current_biologics),
            claims=tuple(c.to_domain() for c in self.patient.claims),
            contraindications=tuple(c.to_domain() for c in self.patient.contraindications),
            formulary=tuple(d.to_domain() for d in self.patient.formulary),
            plan_id=self.patient.plan_id,
        )
        return self.assessment.to_domain(self.patient_id), patient


# ── Responses ─────────────────────────────────────────────────────────────────

class RecommendationResponseItem(BaseModel):
    rank: int
    type: RecommendationType
    drug_name: str
    new_dose: Optional[str] = None
    new_frequency: Optional[str] = None
    current_annual_cost: Optional[float] = None
    recommended_annual_cost: Optional[float] = None
    annual_savings: Optional[float] = None
    savings_percent: Optional[float] = None
    rationale: str
    evidence_sources: List[str] = Field(default_factory=list)
    monitoring_plan: Optional[str] = None
    tier: Optional[int] = None
    requires_pa: Optional[bool] = None
    contraindicated: bool = False
    contraindication_reason: Optional[str] = None


class ContraindicationReasonResponse(BaseModel):
    type: ContraindicationType
    severity: Severity
    reason: str
    details: Optional[str] = None


class ContraindicatedDrugResponse(BaseModel):
    drug_name: str
    drug_class: str
    tier: int
    requires_pa: str
    annual_cost: Optional[float] = None
    severity: Severity
    reasons: List[ContraindicationReasonResponse]


class FormularyReferenceResponse(BaseModel):
    drug_name: str
    generic_name: str
    drug_class: str
    tier: int
    requires_pa: str
    standard_dosing: str
    annual_cost: Optional[float] = None


class RecommendationResultResponse(BaseModel):
    """Engine output for one assessment."""
    patient_id: str
    is_stable: bool
    is_formulary_optimal: bool
    quadrant: Quadrant
    dose_reduction_level: int
    recommendations: List[RecommendationResponseItem]
    contraindicated_drugs: List[ContraindicatedDrugResponse]
    formulary_reference: List[FormularyReferenceResponse]


class HealthResponse(BaseModel):
    """Health check response."""
    status: str
    version: str
    timestamp: str
    uptime_seconds: float
    ranker: str
    knowledge_search: str
