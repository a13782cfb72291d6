"""
Unit Tests for the LLM Layer

Gemini client availability and the efficacy rankers. No network: the
client is either unconfigured or a Mock with a scripted reply.
"""
import json
from unittest.mock import AsyncMock, Mock, patch

import pytest

from biologic_advisor.core.clinical.base import Contraindication, ContraindicationType, Diagnosis
from biologic_advisor.core.llm import (
    FormularyOrderRanker,
    GeminiClient,
    GeminiConfig,
    LLMEfficacyRanker,
    PatientProfile,
    select_efficacy_ranker,
)
from biologic_advisor.core.llm.efficacy_ranker import (
    FAILED_REASONING,
    UNAVAILABLE_REASONING,
    UNRANKED_RANK,
    build_ranking_prompt,
    match_rankings,
    parse_rankings,
)
from biologic_advisor.core.llm.gemini_client import GeminiResponse
from biologic_advisor.utils.exceptions import RankingBackendError


@pytest.fixture
def profile() -> PatientProfile:
    return PatientProfile(
        diagnosis=Diagnosis.PSORIASIS,
        has_psoriatic_arthritis=True,
        contraindications=[Contraindication(ContraindicationType.INFLAMMATORY_BOWEL_DISEASE)],
        current_drug="Humira",
        dlqi_score=2,
        months_stable=8,
        notes="Asthma",
    )


def _reply(*entries) -> GeminiResponse:
    return GeminiResponse(text=json.dumps({"rankings": list(entries)}), model="test")


class TestGeminiClient:
    """Tests for GeminiClient without an API key."""

    def test_unavailable_without_key(self):
        client = GeminiClient(GeminiConfig(api_key=None))
        assert not client.is_available

    async def test_unavailable_response(self):
        client = GeminiClient(GeminiConfig(api_key=None))
        response = await client.generate_async("rank these")
        assert response.is_mock
        assert response.text == ""
        assert response.error

    def test_stats(self):
        stats = GeminiClient(GeminiConfig(api_key=None)).get_stats()
        assert stats["is_available"] is False
        assert stats["request_count"] == 0

    async def test_generate_uses_cache(self):
        with patch("biologic_advisor.core.llm.gemini_client.ChatGoogleGenerativeAI") as chat_cls:
            llm = chat_cls.return_value
            llm.ainvoke = AsyncMock(return_value=Mock(content='{"rankings": []}', usage_metadata=None))

            client = GeminiClient(GeminiConfig(api_key="test-key"))
            assert client.is_available

            first = await client.generate_async("prompt")
            second = await client.generate_async("prompt")

        assert first.text == '{"rankings": []}'
        assert second.finish_reason == "CACHED"
        assert llm.ainvoke.await_count == 1


class TestFormularyOrderRanker:
    """Tests for the deterministic ranker."""

    async def test_keeps_input_order(self, skyrizi, amjevita, profile):
        ranked = await FormularyOrderRanker().rank([skyrizi, amjevita], profile)
        assert [r.drug for r in ranked] == [skyrizi, amjevita]
        assert [r.rank for r in ranked] == [1, 2]
        assert ranked[0].reasoning == UNAVAILABLE_REASONING


class TestLLMEfficacyRanker:
    """Tests for the Gemini-backed ranker and its fallbacks."""

    async def test_reorders_by_reply(self, skyrizi, amjevita, profile, mock_gemini_client):
        mock_gemini_client.generate_async.return_value = _reply(
            {"drugName": "Amjevita", "rank": 1, "reasoning": "PsA coverage", "keyFactors": ["PsA"]},
            {"drugName": "Skyrizi", "rank": 2, "reasoning": "Good PASI 90"},
        )
        ranked = await LLMEfficacyRanker(mock_gemini_client).rank([skyrizi, amjevita], profile)

        assert [r.drug.drug_name for r in ranked] == ["Amjevita", "Skyrizi"]
        assert ranked[0].reasoning == "PsA coverage"
        assert ranked[0].key_factors == ["PsA"]

    async def test_matches_generic_name(self, skyrizi, amjevita, profile, mock_gemini_client):
        mock_gemini_client.generate_async.return_value = _reply(
            {"drugName": "risankizumab", "rank": 1, "reasoning": "IL-23"},
        )
        ranked = await LLMEfficacyRanker(mock_gemini_client).rank([amjevita, skyrizi], profile)
        assert ranked[0].drug == skyrizi
        assert ranked[1].rank == UNRANKED_RANK

    async def test_unmatchable_names_keep_input_order(self, skyrizi, amjevita, cosentyx, profile, mock_gemini_client):
        mock_gemini_client.generate_async.return_value = _reply(
            {"drugName": "Mysterimab", "rank": 1, "reasoning": "?"},
        )
        candidates = [cosentyx, skyrizi, amjevita]
        ranked = await LLMEfficacyRanker(mock_gemini_client).rank(candidates, profile)
        assert [r.drug for r in ranked] == candidates

    async def test_backend_exception_falls_back(self, skyrizi, amjevita, profile, mock_gemini_client):
        mock_gemini_client.generate_async.side_effect = RuntimeError("timeout")
        ranked = await LLMEfficacyRanker(mock_gemini_client).rank([skyrizi, amjevita], profile)
        assert [r.drug for r in ranked] == [skyrizi, amjevita]
        assert all(r.reasoning == FAILED_REASONING for r in ranked)

    async def test_malformed_json_falls_back(self, skyrizi, amjevita, profile, mock_gemini_client):
        mock_gemini_client.generate_async.return_value = GeminiResponse(text="I think Skyrizi", model="test")
        ranked = await LLMEfficacyRanker(mock_gemini_client).rank([skyrizi, amjevita], profile)
        assert [r.drug for r in ranked] == [skyrizi, amjevita]
        assert ranked[0].reasoning == FAILED_REASONING

    async def test_mock_response_falls_back(self, skyrizi, profile, mock_gemini_client):
        mock_gemini_client.generate_async.return_value = GeminiResponse(
            text="", model="unavailable", is_mock=True, error="quota"
        )
        ranked = await LLMEfficacyRanker(mock_gemini_client).rank([skyrizi], profile)
        assert ranked[0].reasoning == FAILED_REASONING

    async def test_unavailable_client_skips_call(self, skyrizi, profile, mock_gemini_client):
        mock_gemini_client.is_available = False
        ranked = await LLMEfficacyRanker(mock_gemini_client).rank([skyrizi], profile)
        assert ranked[0].reasoning == UNAVAILABLE_REASONING
        mock_gemini_client.generate_async.assert_not_called()

    async def test_empty_candidates(self, profile, mock_gemini_client):
        assert await LLMEfficacyRanker(mock_gemini_client).rank([], profile) == []
        mock_gemini_client.generate_async.assert_not_called()


class TestRankerSelection:
    """Tests for availability-based strategy selection."""

    def test_static_ranker_without_backend(self, mock_gemini_client):
        mock_gemini_client.is_available = False
        assert isinstance(select_efficacy_ranker(mock_gemini_client), FormularyOrderRanker)

    def test_llm_ranker_with_backend(self, mock_gemini_client):
        assert isinstance(select_efficacy_ranker(mock_gemini_client), LLMEfficacyRanker)


class TestPromptAndParsing:
    """Tests for prompt construction and reply parsing."""

    def test_prompt_contains_patient_context(self, skyrizi, cosentyx, profile):
        prompt = build_ranking_prompt([skyrizi, cosentyx], profile)
        assert "Skyrizi (risankizumab): IL23 INHIBITOR, Tier 1" in prompt
        assert "INFLAMMATORY_BOWEL_DISEASE" in prompt
        assert "DLQI 2, stable for 8 months" in prompt
        assert "Psoriatic Arthritis: Yes" in prompt

    def test_parse_strips_code_fences(self):
        text = '```json\n{"rankings": [{"drugName": "Skyrizi", "rank": 1}]}\n```'
        assert parse_rankings(text)[0]["drugName"] == "Skyrizi"

    def test_parse_rejects_missing_list(self):
        with pytest.raises(RankingBackendError):
            parse_rankings('{"ranking": "Skyrizi"}')

    def test_match_is_stable_for_ties(self, skyrizi, amjevita, cosentyx):
        rankings = [
            {"drugName": "Cosentyx", "rank": 1, "reasoning": "a"},
            {"drugName": "Skyrizi", "rank": 2, "reasoning": "b"},
            {"drugName": "Amjevita", "rank": 2, "reasoning": "c"},
        ]
        ranked = match_rankings([skyrizi, amjevita, cosentyx], rankings)
        assert [r.drug.drug_name for r in ranked] == ["Cosentyx", "Skyrizi", "Amjevita"]

    def test_non_numeric_rank_sorted_last(self, skyrizi, amjevita):
        rankings = [
            {"drugName": "Skyrizi", "rank": "first", "reasoning": "a"},
            {"drugName": "Amjevita", "rank": 1, "reasoning": "b"},
        ]
        ranked = match_rankings([skyrizi, amjevita], rankings)
        assert ranked[0].drug == amjevita
        assert ranked[1].rank == UNRANKED_RANK
