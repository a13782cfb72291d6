"""
API request/response schemas.
"""
from .assessment import (
    AssessmentRequest,
    HealthResponse,
    PatientContextModel,
    RecommendationRequest,
    RecommendationResultResponse,
)

__all__ = [
    "AssessmentRequest",
    "HealthResponse",
    "PatientContextModel",
    "RecommendationRequest",
    "RecommendationResultResponse",
]
