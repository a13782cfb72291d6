"""
Recommendation Layer

Usage:
    from biologic_advisor.core.recommendation import RecommendationEngine

    engine = RecommendationEngine()
    result = await engine.generate_recommendations(assessment, patient)
"""
from .drug_matching import find_current_formulary_drug, normalize_to_generic, same_drug
from .cascade import CascadeContext, TierCascadeRecommender
from .engine import RecommendationEngine, build_formulary_reference, generate_recommendations

__all__ = [
    "find_current_formulary_drug",
    "normalize_to_generic",
    "same_drug",
    "CascadeContext",
    "TierCascadeRecommender",
    "RecommendationEngine",
    "build_formulary_reference",
    "generate_recommendations",
]
