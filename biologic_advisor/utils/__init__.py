"""
Utilities Package - Logging and Exception Handling
"""
from .logging import get_logger, setup_logging
from .exceptions import (
    BiologicAdvisorError,
    AssessmentInputError,
    MissingCurrentBiologicError,
    EmptyFormularyError,
    PatientNotFoundError,
    RankingBackendError,
    KnowledgeSearchError,
)

__all__ = [
    "get_logger",
    "setup_logging",
    "BiologicAdvisorError",
    "AssessmentInputError",
    "MissingCurrentBiologicError",
    "EmptyFormularyError",
    "PatientNotFoundError",
    "RankingBackendError",
    "KnowledgeSearchError",
]
