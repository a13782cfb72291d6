"""
Custom Exception Hierarchy

Input problems fail fast with a descriptive error. Collaborator failures
(ranking backend, knowledge search) have their own types so the caller
can catch them locally and degrade instead of aborting an assessment.
"""
from typing import Any, Dict, Optional


class BiologicAdvisorError(Exception):
    """Base exception for all biologic advisor errors."""

    def __init__(
        self,
        message: str,
        code: str = "UNKNOWN_ERROR",
        details: Optional[Dict[str, Any]] = None
    ):
        super().__init__(message)
        self.message = message
        self.code = code
        self.details = details or {}

    def to_dict(self) -> Dict[str, Any]:
        """Convert exception to dictionary for API responses."""
        return {
            "error": self.code,
            "message": self.message,
            "details": self.details
        }


class AssessmentInputError(BiologicAdvisorError):
    """The assessment cannot be computed from the data supplied."""

    def __init__(
        self,
        message: str,
        patient_id: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None
    ):
        super().__init__(
            message=message,
            code="INPUT_ERROR",
            details={"patient_id": patient_id, **(details or {})}
        )
        self.patient_id = patient_id


class MissingCurrentBiologicError(AssessmentInputError):
    """Patient has no active biologic on record or in claims."""

    def __init__(self, patient_id: Optional[str] = None):
        super().__init__("No current biologic found for patient", patient_id=patient_id)


class EmptyFormularyError(AssessmentInputError):
    """No formulary candidates left to recommend from."""

    def __init__(
        self,
        message: str,
        patient_id: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None
    ):
        super().__init__(message, patient_id=patient_id, details=details)


class PatientNotFoundError(BiologicAdvisorError):
    """Patient id is unknown to the patient repository."""

    def __init__(self, patient_id: str):
        super().__init__(
            message=f"Patient not found: {patient_id}",
            code="NOT_FOUND",
            details={"patient_id": patient_id}
        )
        self.patient_id = patient_id


class RankingBackendError(BiologicAdvisorError):
    """The efficacy-ranking backend failed or returned something unusable."""

    def __init__(
        self,
        message: str,
        backend: str = "unknown",
        details: Optional[Dict[str, Any]] = None
    ):
        super().__init__(
            message=message,
            code="RANKING_ERROR",
            details={"backend": backend, **(details or {})}
        )
        self.backend = backend


class KnowledgeSearchError(BiologicAdvisorError):
    """The evidence knowledge-search service failed."""

    def __init__(
        self,
        message: str,
        query: str = "",
        details: Optional[Dict[str, Any]] = None
    ):
        super().__init__(
            message=message,
            code="KNOWLEDGE_SEARCH_ERROR",
            details={"query": query, **(details or {})}
        )
        self.query = query
