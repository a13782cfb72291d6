"""
Evidence Knowledge Search

Collaborators that return titled literature sources for dose-reduction
rationales. The engine only needs titles; retrieval (embeddings, vector
store) lives behind the HTTP service.
"""
from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from typing import Dict, Iterable, List, Optional, Protocol

import httpx

from biologic_advisor.config import settings
from biologic_advisor.utils.exceptions import KnowledgeSearchError

logger = logging.getLogger(__name__)

_TOKEN = re.compile(r"[a-z0-9]+")


@dataclass(frozen=True)
class KnowledgeHit:
    title: str
    content: str = ""
    category: str = ""
    similarity: float = 0.0


class KnowledgeSearch(Protocol):
    async def search(
        self,
        query: str,
        min_similarity: float,
        max_results: int,
    ) -> List[KnowledgeHit]:
        ...


class NullKnowledgeSearch:
    """No knowledge base configured: never any evidence."""

    async def search(self, query: str, min_similarity: float, max_results: int) -> List[KnowledgeHit]:
        return []


class InMemoryKnowledgeSearch:
    """
    Token-overlap search over a fixed set of entries.

    Similarity is the fraction of query tokens found in the entry's title
    and content, which is enough for fixtures and offline demos.
    """

    def __init__(self, entries: Iterable[KnowledgeHit] = ()):
        self.entries = list(entries)

    async def search(self, query: str, min_similarity: float, max_results: int) -> List[KnowledgeHit]:
        query_tokens = set(_TOKEN.findall(query.lower()))
        if not query_tokens:
            return []

        hits = []
        for entry in self.entries:
            entry_tokens = set(_TOKEN.findall(f"{entry.title} {entry.content}".lower()))
            similarity = len(query_tokens & entry_tokens) / len(query_tokens)
            if similarity >= min_similarity:
                hits.append(KnowledgeHit(entry.title, entry.content, entry.category, similarity))

        hits.sort(key=lambda h: h.similarity, reverse=True)
        return hits[:max_results]


class HttpKnowledgeSearch:
    """Client for a remote knowledge-search endpoint (``POST {url}`` → ``{"results": [...]}``)."""

    def __init__(
        self,
        url: str,
        timeout: Optional[float] = None,
        headers: Optional[Dict[str, str]] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.url = url
        self.transport = transport
        self.timeout = timeout if timeout is not None else settings.knowledge_timeout_seconds
        self.headers = headers or {"Content-Type": "application/json"}

    async def search(self, query: str, min_similarity: float, max_results: int) -> List[KnowledgeHit]:
        payload = {"query": query, "minSimilarity": min_similarity, "maxResults": max_results}
        try:
            async with httpx.AsyncClient(transport=self.transport) as client:
                response = await client.post(self.url, json=payload, headers=self.headers, timeout=self.timeout)
        except httpx.HTTPError as e:
            raise KnowledgeSearchError(f"Knowledge search request failed: {e}", query=query)

        if response.status_code != 200:
            raise KnowledgeSearchError(
                f"Knowledge search returned {response.status_code}",
                query=query,
                details={"body": response.text[:500]},
            )

        results = response.json().get("results", [])
        return [
            KnowledgeHit(
                title=r.get("title", ""),
                content=r.get("content", ""),
                category=r.get("category", ""),
                similarity=float(r.get("similarity", 0.0)),
            )
            for r in results
            if r.get("title")
        ][:max_results]


def build_knowledge_search() -> KnowledgeSearch:
    if settings.knowledge_search_url:
        return HttpKnowledgeSearch(settings.knowledge_search_url)
    return NullKnowledgeSearch()


def dose_reduction_query(drug_name: str, diagnosis: str) -> str:
    return f"{drug_name} dose reduction interval extension {diagnosis} stable patients"


async def find_dose_reduction_evidence(
    search: KnowledgeSearch,
    drug_name: str,
    diagnosis: str,
    min_similarity: Optional[float] = None,
    max_results: Optional[int] = None,
) -> List[str]:
    """Titles of supporting sources; an empty list if the search fails."""
    query = dose_reduction_query(drug_name, diagnosis)
    try:
        hits = await search.search(
            query,
            min_similarity=settings.knowledge_min_similarity if min_similarity is None else min_similarity,
            max_results=settings.knowledge_max_results if max_results is None else max_results,
        )
    except Exception as e:
        logger.error(f"Knowledge search failed for '{query}': {e}")
        return []

    logger.info(f"Dose-reduction evidence for {drug_name}: {len(hits)} source(s)")
    return [h.title for h in hits]
