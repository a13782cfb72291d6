"""
Efficacy Ranker

Orders same-tier candidates by expected efficacy for one patient.

Two strategies behind one interface:
  - LLMEfficacyRanker:   asks Gemini for a ranking, maps it back onto the
                         candidate list by exact brand or generic name.
  - FormularyOrderRanker: keeps formulary order with a fixed rationale.

The LLM strategy degrades to formulary order on any failure (backend
unavailable, call error, unparsable or malformed JSON). Callers never
see an exception from ``rank``.
"""
from __future__ import annotations

import json
import logging
import re
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Protocol, Sequence

from biologic_advisor.core.clinical.base import Contraindication, Diagnosis, FormularyDrug
from biologic_advisor.utils.exceptions import RankingBackendError
from .gemini_client import GeminiClient

logger = logging.getLogger(__name__)

UNAVAILABLE_REASONING = "LLM ranking unavailable - using formulary order"
FAILED_REASONING      = "LLM ranking failed - using formulary order"
UNRANKED_REASONING    = "No ranking provided"
UNRANKED_RANK         = 999

_CODE_FENCE = re.compile(r"^```(?:json)?\s*|\s*```$", re.IGNORECASE)


@dataclass(frozen=True)
class PatientProfile:
    diagnosis: Diagnosis
    has_psoriatic_arthritis: bool
    contraindications: Sequence[Contraindication]
    current_drug: str
    dlqi_score: int
    months_stable: int
    notes: Optional[str] = None


@dataclass(frozen=True)
class RankedDrug:
    drug: FormularyDrug
    rank: int
    reasoning: str
    key_factors: List[str] = field(default_factory=list)


class EfficacyRanker(Protocol):
    async def rank(
        self,
        candidates: Sequence[FormularyDrug],
        profile: PatientProfile,
    ) -> List[RankedDrug]:
        ...


def formulary_order(candidates: Sequence[FormularyDrug], reasoning: str) -> List[RankedDrug]:
    return [RankedDrug(drug=d, rank=i + 1, reasoning=reasoning) for i, d in enumerate(candidates)]


class FormularyOrderRanker:
    """Deterministic ranker: input order, fixed rationale."""

    def __init__(self, reasoning: str = UNAVAILABLE_REASONING):
        self.reasoning = reasoning

    async def rank(
        self,
        candidates: Sequence[FormularyDrug],
        profile: PatientProfile,
    ) -> List[RankedDrug]:
        return formulary_order(candidates, self.reasoning)


class LLMEfficacyRanker:
    """Gemini-backed ranker with formulary-order fallback."""

    def __init__(self, client: Optional[GeminiClient] = None):
        self.client = client or GeminiClient()

    async def rank(
        self,
        candidates: Sequence[FormularyDrug],
        profile: PatientProfile,
    ) -> List[RankedDrug]:
        candidates = list(candidates)
        if not candidates:
            return []
        if not self.client.is_available:
            return formulary_order(candidates, UNAVAILABLE_REASONING)

        try:
            response = await self.client.generate_async(build_ranking_prompt(candidates, profile))
            if response.is_mock:
                raise RankingBackendError(response.error or "empty response", backend="gemini")
            rankings = parse_rankings(response.text)
            return match_rankings(candidates, rankings)
        except Exception as exc:
            logger.error(f"Efficacy ranking failed, using formulary order: {exc}", exc_info=True)
            return formulary_order(candidates, FAILED_REASONING)


def select_efficacy_ranker(client: Optional[GeminiClient] = None) -> EfficacyRanker:
    """LLM ranker when a backend is configured, otherwise the static ranker."""
    client = client or GeminiClient()
    if client.is_available:
        return LLMEfficacyRanker(client)
    logger.info("Efficacy ranking backend unavailable - using formulary order ranker")
    return FormularyOrderRanker()


# ── Prompt / response handling ────────────────────────────────────────────────

def build_ranking_prompt(candidates: Sequence[FormularyDrug], profile: PatientProfile) -> str:
    drugs_description = "\n".join(
        f"- {d.drug_name} ({d.generic_name or d.drug_name}): {d.class_label}, Tier {d.tier}"
        for d in candidates
    )
    contraindications_text = (
        ", ".join(c.type.value for c in profile.contraindications)
        if profile.contraindications else "None documented"
    )
    diagnosis = profile.diagnosis.value

    return f"""You are a clinical expert in dermatology and rheumatology, specializing in psoriasis and psoriatic arthritis treatment.

PATIENT PROFILE:
- Primary Diagnosis: {diagnosis}
- Psoriatic Arthritis: {"Yes" if profile.has_psoriatic_arthritis else "No"}
- Current Treatment: {profile.current_drug}
- Disease Control: DLQI {profile.dlqi_score}, stable for {profile.months_stable} months
- Documented Contraindications: {contraindications_text}
- Additional Clinical Notes: {profile.notes or "None"}

TASK: Rank these SAME-TIER biologics by expected clinical efficacy for THIS specific patient:

{drugs_description}

CONSIDERATIONS:
1. Comorbidities from clinical notes:
   - Atopic dermatitis + asthma: Dupixent preferred (dual indication)
   - Inflammatory bowel disease: avoid IL-17 inhibitors
   - Psoriatic arthritis: prefer agents with dual indication (TNF, IL-17, IL-23)
2. Literature-based efficacy for {diagnosis}: PASI 90/100 response rates, speed and durability of response.
3. Mechanism of action appropriate for this patient's profile.
4. Safety and tolerability given history and contraindications.

Return ONLY valid JSON (no markdown, no code blocks):
{{
  "rankings": [
    {{
      "drugName": "exact drug name from list",
      "rank": 1,
      "reasoning": "concise clinical rationale for why this is optimal",
      "keyFactors": ["factor1", "factor2"]
    }}
  ]
}}"""


def parse_rankings(text: str) -> List[Dict[str, Any]]:
    """Extract the ``rankings`` list from a model reply (code fences tolerated)."""
    cleaned = _CODE_FENCE.sub("", (text or "").strip())
    try:
        parsed = json.loads(cleaned)
    except json.JSONDecodeError as exc:
        raise RankingBackendError(f"Ranking response is not valid JSON: {exc}", backend="gemini")

    rankings = parsed.get("rankings") if isinstance(parsed, dict) else None
    if not isinstance(rankings, list):
        raise RankingBackendError("Ranking response has no 'rankings' list", backend="gemini")
    return [r for r in rankings if isinstance(r, dict)]


def _coerce_rank(value: Any) -> int:
    try:
        return int(value)
    except (TypeError, ValueError):
        return UNRANKED_RANK


def match_rankings(
    candidates: Sequence[FormularyDrug],
    rankings: Sequence[Dict[str, Any]],
) -> List[RankedDrug]:
    """
    Map ranking entries back to candidates by exact brand or generic name.
    Unmatched candidates get rank 999 and keep their relative order.
    """
    ranked: List[RankedDrug] = []
    for drug in candidates:
        entry = next(
            (r for r in rankings if r.get("drugName") in (drug.drug_name, drug.generic_name)),
            None,
        )
        if entry is None:
            ranked.append(RankedDrug(drug=drug, rank=UNRANKED_RANK, reasoning=UNRANKED_REASONING))
            continue
        factors = entry.get("keyFactors") or []
        ranked.append(RankedDrug(
            drug=drug,
            rank=_coerce_rank(entry.get("rank")),
            reasoning=str(entry.get("reasoning") or UNRANKED_REASONING),
            key_factors=[str(f) for f in factors] if isinstance(factors, list) else [],
        ))

    # sorted() is stable: equal ranks keep formulary order
    return sorted(ranked, key=lambda r: r.rank)
