"""
Evidence Layer
"""
from .knowledge_search import (
    HttpKnowledgeSearch,
    InMemoryKnowledgeSearch,
    KnowledgeHit,
    KnowledgeSearch,
    NullKnowledgeSearch,
    build_knowledge_search,
    dose_reduction_query,
    find_dose_reduction_evidence,
)

__all__ = [
    "HttpKnowledgeSearch",
    "InMemoryKnowledgeSearch",
    "KnowledgeHit",
    "KnowledgeSearch",
    "NullKnowledgeSearch",
    "build_knowledge_search",
    "dose_reduction_query",
    "find_dose_reduction_evidence",
]
