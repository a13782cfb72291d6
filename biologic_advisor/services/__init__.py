"""
Service Layer

Repository interfaces and the assessment service that assembles patient
context for the engine.
"""
from .repositories import (
    ClaimsRepository,
    ContraindicationRepository,
    FormularyRepository,
    FormularySnapshot,
    InMemoryClaimsRepository,
    InMemoryContraindicationRepository,
    InMemoryFormularyRepository,
    InMemoryPatientRepository,
    PatientRecord,
    PatientRepository,
)
from .assessment import CLAIMS_LOOKBACK, AssessmentService

__all__ = [
    "ClaimsRepository",
    "ContraindicationRepository",
    "FormularyRepository",
    "FormularySnapshot",
    "InMemoryClaimsRepository",
    "InMemoryContraindicationRepository",
    "InMemoryFormularyRepository",
    "InMemoryPatientRepository",
    "PatientRecord",
    "PatientRepository",
    "CLAIMS_LOOKBACK",
    "AssessmentService",
]
