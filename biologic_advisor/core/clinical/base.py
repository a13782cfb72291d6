"""
Clinical Decision Layer: Base Types

Data contracts shared by the classifiers, the contraindication screen,
the tier cascade and the API layer. Everything here is a plain value:
built once per assessment, never mutated by the engine.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date
from decimal import Decimal
from enum import Enum, IntEnum
from typing import List, Optional, Tuple

from biologic_advisor.utils.exceptions import AssessmentInputError

DLQI_MIN = 0
DLQI_MAX = 30


class Diagnosis(str, Enum):
    """Primary dermatologic diagnosis driving the assessment."""
    PSORIASIS                = "PSORIASIS"
    PSORIATIC_ARTHRITIS      = "PSORIATIC_ARTHRITIS"
    ATOPIC_DERMATITIS        = "ATOPIC_DERMATITIS"
    ECZEMA                   = "ECZEMA"
    HIDRADENITIS_SUPPURATIVA = "HIDRADENITIS_SUPPURATIVA"
    OTHER                    = "OTHER"


class PriorAuthStatus(str, Enum):
    """Formulary prior-authorization flag as published by the plan."""
    YES     = "Yes"
    NO      = "No"
    NA      = "N/A"
    UNKNOWN = "Unknown"


class ContraindicationType(str, Enum):
    """Patient conditions screened against drug classes."""
    HEART_FAILURE               = "HEART_FAILURE"
    MULTIPLE_SCLEROSIS          = "MULTIPLE_SCLEROSIS"
    DEMYELINATING_DISEASE       = "DEMYELINATING_DISEASE"
    LYMPHOMA                    = "LYMPHOMA"
    MALIGNANCY                  = "MALIGNANCY"
    HEPATITIS_B                 = "HEPATITIS_B"
    LATENT_TUBERCULOSIS         = "LATENT_TUBERCULOSIS"
    ACTIVE_TUBERCULOSIS         = "ACTIVE_TUBERCULOSIS"
    THROMBOSIS                  = "THROMBOSIS"
    VENOUS_THROMBOEMBOLISM      = "VENOUS_THROMBOEMBOLISM"
    CARDIOVASCULAR_DISEASE      = "CARDIOVASCULAR_DISEASE"
    CYTOPENIAS                  = "CYTOPENIAS"
    INFLAMMATORY_BOWEL_DISEASE  = "INFLAMMATORY_BOWEL_DISEASE"
    DIVERTICULITIS              = "DIVERTICULITIS"
    ACTIVE_INFECTION            = "ACTIVE_INFECTION"
    OPPORTUNISTIC_INFECTION     = "OPPORTUNISTIC_INFECTION"
    IMMUNOCOMPROMISED           = "IMMUNOCOMPROMISED"
    PREGNANCY                   = "PREGNANCY"
    LIVE_VACCINE_RECENT         = "LIVE_VACCINE_RECENT"
    SURGERY_PLANNED             = "SURGERY_PLANNED"
    DRUG_ALLERGY                = "DRUG_ALLERGY"
    OTHER                       = "OTHER"


class Severity(str, Enum):
    """
    Contraindication severity.

    ABSOLUTE – hard exclusion, never recommended
    RELATIVE – excluded from automatic candidacy, surfaced for clinician review
    """
    ABSOLUTE = "ABSOLUTE"
    RELATIVE = "RELATIVE"

    @property
    def weight(self) -> int:
        return 2 if self is Severity.ABSOLUTE else 1


class Quadrant(str, Enum):
    """Treatment state: four quadrants plus the short-duration special case."""
    STABLE_FORMULARY_ALIGNED   = "stable_formulary_aligned"
    STABLE_NON_FORMULARY       = "stable_non_formulary"
    UNSTABLE_FORMULARY_ALIGNED = "unstable_formulary_aligned"
    UNSTABLE_NON_FORMULARY     = "unstable_non_formulary"
    STABLE_SHORT_DURATION      = "stable_short_duration"


class RecommendationType(str, Enum):
    CONTINUE_CURRENT     = "CONTINUE_CURRENT"
    DOSE_REDUCTION       = "DOSE_REDUCTION"
    SWITCH_TO_PREFERRED  = "SWITCH_TO_PREFERRED"
    SWITCH_TO_BIOSIMILAR = "SWITCH_TO_BIOSIMILAR"
    THERAPEUTIC_SWITCH   = "THERAPEUTIC_SWITCH"
    OPTIMIZE_CURRENT     = "OPTIMIZE_CURRENT"


class DoseReductionLevel(IntEnum):
    """Percent reduction from FDA maintenance dosing."""
    STANDARD   = 0
    REDUCED_25 = 25
    REDUCED_50 = 50


# ── Inputs ────────────────────────────────────────────────────────────────────

@dataclass(frozen=True)
class AssessmentInput:
    """One clinician assessment. Immutable, consumed once."""
    patient_id: str
    diagnosis: Diagnosis
    has_psoriatic_arthritis: bool
    dlqi_score: int
    months_stable: int
    additional_notes: Optional[str] = None

    def __post_init__(self):
        if not DLQI_MIN <= self.dlqi_score <= DLQI_MAX:
            raise AssessmentInputError(
                f"DLQI score must be between {DLQI_MIN} and {DLQI_MAX}, got {self.dlqi_score}",
                patient_id=self.patient_id,
            )
        if self.months_stable < 0:
            raise AssessmentInputError(
                f"months_stable must be >= 0, got {self.months_stable}",
                patient_id=self.patient_id,
            )


@dataclass(frozen=True)
class CurrentBiologic:
    """The patient's active therapy as charted."""
    drug_name: str
    dose: str
    frequency: str


@dataclass(frozen=True)
class PharmacyClaim:
    drug_name: str
    fill_date: date
    ndc_code: Optional[str] = None
    days_supply: Optional[int] = None


@dataclass(frozen=True)
class FormularyDrug:
    """One row of a plan's formulary snapshot."""
    drug_name: str
    generic_name: str
    drug_class: str
    tier: int
    requires_pa: PriorAuthStatus = PriorAuthStatus.UNKNOWN
    fda_indications: Tuple[Diagnosis, ...] = ()
    biosimilar_of: Optional[str] = None
    annual_cost_wac: Optional[Decimal] = None

    @property
    def pa_required(self) -> bool:
        """Anything other than an explicit "No" / "N/A" counts as PA-gated."""
        return self.requires_pa not in (PriorAuthStatus.NO, PriorAuthStatus.NA)

    @property
    def requires_pa_flag(self) -> bool:
        """Boolean flag carried on recommendations (only an explicit "Yes")."""
        return self.requires_pa is PriorAuthStatus.YES

    @property
    def class_label(self) -> str:
        return self.drug_class.replace("_", " ")


@dataclass(frozen=True)
class Contraindication:
    type: ContraindicationType
    details: Optional[str] = None


@dataclass(frozen=True)
class PatientWithData:
    """Everything the engine reads about one patient, already resolved by the caller."""
    patient_id: str
    current_biologics: Tuple[CurrentBiologic, ...] = ()
    claims: Tuple[PharmacyClaim, ...] = ()
    contraindications: Tuple[Contraindication, ...] = ()
    formulary: Tuple[FormularyDrug, ...] = ()
    plan_id: Optional[str] = None

    @property
    def current_biologic(self) -> Optional[CurrentBiologic]:
        # Only the first active biologic is considered per assessment
        return self.current_biologics[0] if self.current_biologics else None


# ── Derived ───────────────────────────────────────────────────────────────────

@dataclass(frozen=True)
class ContraindicationReason:
    type: ContraindicationType
    severity: Severity
    reason: str
    details: Optional[str] = None

    def to_dict(self) -> dict:
        return {
            "type": self.type.value,
            "severity": self.severity.value,
            "reason": self.reason,
            "details": self.details,
        }


@dataclass
class ContraindicatedDrug:
    drug: FormularyDrug
    reasons: List[ContraindicationReason] = field(default_factory=list)

    @property
    def severity(self) -> Severity:
        return max((r.severity for r in self.reasons), key=lambda s: s.weight)

    @property
    def is_absolute(self) -> bool:
        return self.severity is Severity.ABSOLUTE


@dataclass(frozen=True)
class ContraindicatedDrugView:
    """Contraindicated drug as surfaced to the clinician for override review."""
    drug_name: str
    drug_class: str
    tier: int
    requires_pa: str
    annual_cost: Optional[float]
    severity: Severity
    reasons: Tuple[ContraindicationReason, ...]

    @classmethod
    def from_contraindicated(cls, item: ContraindicatedDrug) -> "ContraindicatedDrugView":
        cost = item.drug.annual_cost_wac
        return cls(
            drug_name=item.drug.drug_name,
            drug_class=item.drug.drug_class,
            tier=item.drug.tier,
            requires_pa=item.drug.requires_pa.value,
            annual_cost=float(cost) if cost else None,
            severity=item.severity,
            reasons=tuple(item.reasons),
        )

    def to_dict(self) -> dict:
        return {
            "drug_name": self.drug_name,
            "drug_class": self.drug_class,
            "tier": self.tier,
            "requires_pa": self.requires_pa,
            "annual_cost": self.annual_cost,
            "severity": self.severity.value,
            "reasons": [r.to_dict() for r in self.reasons],
        }


@dataclass(frozen=True)
class FormularyReferenceEntry:
    drug_name: str
    generic_name: str
    drug_class: str
    tier: int
    requires_pa: str
    standard_dosing: str
    annual_cost: Optional[float] = None

    def to_dict(self) -> dict:
        return {
            "drug_name": self.drug_name,
            "generic_name": self.generic_name,
            "drug_class": self.drug_class,
            "tier": self.tier,
            "requires_pa": self.requires_pa,
            "standard_dosing": self.standard_dosing,
            "annual_cost": self.annual_cost,
        }


@dataclass(frozen=True)
class RecommendationOutput:
    """
    One ranked treatment option.

    Cost fields are all-or-nothing: either a tier-based estimate was
    possible and all four are set, or all four are None.
    """
    # ── Core identity ─────────────────────────────────────────────────────
    rank: int
    type: RecommendationType
    drug_name: str
    new_dose: Optional[str] = None
    new_frequency: Optional[str] = None

    # ── Cost estimate ─────────────────────────────────────────────────────
    current_annual_cost: Optional[float] = None
    recommended_annual_cost: Optional[float] = None
    annual_savings: Optional[float] = None
    savings_percent: Optional[float] = None

    # ── Clinical content ──────────────────────────────────────────────────
    rationale: str = ""
    evidence_sources: Tuple[str, ...] = ()
    monitoring_plan: Optional[str] = None
    tier: Optional[int] = None
    requires_pa: Optional[bool] = None
    contraindicated: bool = False
    contraindication_reason: Optional[str] = None

    # ── Serialisation ─────────────────────────────────────────────────────
    def to_dict(self) -> dict:
        return {
            "rank": self.rank,
            "type": self.type.value,
            "drug_name": self.drug_name,
            "new_dose": self.new_dose,
            "new_frequency": self.new_frequency,
            "current_annual_cost": self.current_annual_cost,
            "recommended_annual_cost": self.recommended_annual_cost,
            "annual_savings": self.annual_savings,
            "savings_percent": self.savings_percent,
            "rationale": self.rationale,
            "evidence_sources": list(self.evidence_sources),
            "monitoring_plan": self.monitoring_plan,
            "tier": self.tier,
            "requires_pa": self.requires_pa,
            "contraindicated": self.contraindicated,
            "contraindication_reason": self.contraindication_reason,
        }


@dataclass
class RecommendationResult:
    """Full engine output for one assessment."""
    is_stable: bool
    is_formulary_optimal: bool
    quadrant: Quadrant
    dose_reduction_level: DoseReductionLevel
    recommendations: List[RecommendationOutput] = field(default_factory=list)
    contraindicated_drugs: List[ContraindicatedDrugView] = field(default_factory=list)
    formulary_reference: List[FormularyReferenceEntry] = field(default_factory=list)

    def to_dict(self) -> dict:
        return {
            "is_stable": self.is_stable,
            "is_formulary_optimal": self.is_formulary_optimal,
            "quadrant": self.quadrant.value,
            "dose_reduction_level": int(self.dose_reduction_level),
            "recommendations": [r.to_dict() for r in self.recommendations],
            "contraindicated_drugs": [c.to_dict() for c in self.contraindicated_drugs],
            "formulary_reference": [f.to_dict() for f in self.formulary_reference],
        }
