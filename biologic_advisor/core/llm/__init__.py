"""
LLM Layer

Gemini client and the pluggable efficacy rankers built on it.
"""
from .gemini_client import GeminiClient, GeminiConfig, GeminiResponse
from .efficacy_ranker import (
    EfficacyRanker,
    FormularyOrderRanker,
    LLMEfficacyRanker,
    PatientProfile,
    RankedDrug,
    select_efficacy_ranker,
)

__all__ = [
    "GeminiClient",
    "GeminiConfig",
    "GeminiResponse",
    "EfficacyRanker",
    "FormularyOrderRanker",
    "LLMEfficacyRanker",
    "PatientProfile",
    "RankedDrug",
    "select_efficacy_ranker",
]
