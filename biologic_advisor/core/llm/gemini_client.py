"""
Gemini API Client

LangChain wrapper around Google Gemini, used as the reasoning backend
for within-tier efficacy ranking. The client never raises to callers:
a missing key or a failed call yields a response flagged ``is_mock``
with the error attached, and the caller falls back deterministically.
"""
from __future__ import annotations

import hashlib
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, Optional

from langchain_core.messages import HumanMessage, SystemMessage
from langchain_google_genai import ChatGoogleGenerativeAI

from biologic_advisor.config import settings
from biologic_advisor.utils import get_logger

logger = get_logger(__name__)


@dataclass
class GeminiConfig:
    """Configuration for Gemini client."""
    api_key: Optional[str] = field(default_factory=lambda: settings.gemini_api_key)
    model: str = field(default_factory=lambda: settings.gemini_model)
    temperature: float = field(default_factory=lambda: settings.ranker_temperature)
    max_output_tokens: int = field(default_factory=lambda: settings.ranker_max_output_tokens)
    request_timeout_seconds: int = field(default_factory=lambda: settings.ranker_timeout_seconds)
    max_retries: int = 2

    # Ranking prompts are rebuilt per assessment; reuse only within a short window
    cache_ttl_seconds: int = 900
    cache_max_entries: int = 500


@dataclass
class GeminiResponse:
    """Structured response from Gemini."""
    text: str
    model: str
    finish_reason: str = "STOP"
    prompt_tokens: int = 0
    completion_tokens: int = 0
    latency_ms: float = 0.0
    is_mock: bool = False
    error: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "text": self.text,
            "model": self.model,
            "finish_reason": self.finish_reason,
            "prompt_tokens": self.prompt_tokens,
            "completion_tokens": self.completion_tokens,
            "latency_ms": round(self.latency_ms, 2),
            "is_mock": self.is_mock,
            "error": self.error,
        }


class GeminiClient:
    """Client for Google Gemini via LangChain."""

    def __init__(self, config: Optional[GeminiConfig] = None):
        self.config = config or GeminiConfig()
        self._llm = None
        self._initialized = False
        self._request_count = 0
        self._last_request_time: Optional[datetime] = None
        self._cache: Dict[str, tuple] = {}  # {cache_key: (timestamp, response_text)}

        self._initialize()

    def _initialize(self):
        if not self.config.api_key:
            logger.info("No Gemini API key configured - efficacy ranking will use formulary order")
            return

        try:
            self._llm = ChatGoogleGenerativeAI(
                model=self.config.model,
                temperature=self.config.temperature,
                max_output_tokens=self.config.max_output_tokens,
                timeout=self.config.request_timeout_seconds,
                max_retries=self.config.max_retries,
                google_api_key=self.config.api_key,
            )
            self._initialized = True
            logger.info(f"LangChain Gemini client initialized with model: {self.config.model}")
        except Exception as e:
            logger.error(f"Failed to initialize LangChain Gemini: {e}")
            self._initialized = False

    @property
    def is_available(self) -> bool:
        """Check if Gemini is available for use."""
        return self._initialized

    async def generate_async(
        self,
        prompt: str,
        system_instruction: Optional[str] = None,
        use_cache: bool = True
    ) -> GeminiResponse:
        """
        Generate a response with LangChain's ``ainvoke``.

        Returns an ``is_mock`` response (empty text, error set) instead of
        raising when the backend is unavailable or the call fails.
        """
        if not self.is_available:
            return self._unavailable_response()

        cache_key = None
        if use_cache:
            cache_key = self._get_cache_key(prompt, system_instruction)
            cached = self._get_from_cache(cache_key)
            if cached is not None:
                logger.debug(f"Gemini cache hit {cache_key[:8]}")
                return GeminiResponse(
                    text=cached,
                    model=f"{self.config.model} (cached)",
                    finish_reason="CACHED",
                )

        start_time = datetime.now()
        try:
            messages = [HumanMessage(content=prompt)]
            if system_instruction:
                messages.insert(0, SystemMessage(content=system_instruction))
            response = await self._llm.ainvoke(messages)

            latency = (datetime.now() - start_time).total_seconds() * 1000
            text = response.content if hasattr(response, "content") else str(response)
            if isinstance(text, list):
                # Multi-part content blocks
                text = "".join(p.get("text", "") if isinstance(p, dict) else str(p) for p in text)

            usage = getattr(response, "usage_metadata", None) or {}
            self._request_count += 1
            self._last_request_time = datetime.now()

            if use_cache and cache_key:
                self._add_to_cache(cache_key, text)

            return GeminiResponse(
                text=text,
                model=self.config.model,
                prompt_tokens=usage.get("input_tokens", 0),
                completion_tokens=usage.get("output_tokens", 0),
                latency_ms=latency,
            )

        except Exception as e:
            logger.error(f"Async Gemini generation failed: {e}")
            return self._unavailable_response(error=str(e))

    def _unavailable_response(self, error: Optional[str] = None) -> GeminiResponse:
        return GeminiResponse(
            text="",
            model="unavailable",
            finish_reason="ERROR" if error else "UNAVAILABLE",
            is_mock=True,
            error=error or "Gemini unavailable",
        )

    def _get_cache_key(self, prompt: str, system_instruction: Optional[str]) -> str:
        normalized = " ".join(prompt.split())
        content = f"{system_instruction or ''}|||{normalized}"
        return hashlib.md5(content.encode()).hexdigest()

    def _get_from_cache(self, cache_key: str) -> Optional[str]:
        entry = self._cache.get(cache_key)
        if entry is None:
            return None
        cached_time, cached_text = entry
        if (datetime.now() - cached_time).total_seconds() < self.config.cache_ttl_seconds:
            return cached_text
        del self._cache[cache_key]
        return None

    def _add_to_cache(self, cache_key: str, text: str):
        self._cache[cache_key] = (datetime.now(), text)
        if len(self._cache) > self.config.cache_max_entries:
            oldest_key = min(self._cache.keys(), key=lambda k: self._cache[k][0])
            del self._cache[oldest_key]

    def get_stats(self) -> Dict[str, Any]:
        return {
            "is_available": self.is_available,
            "model": self.config.model,
            "request_count": self._request_count,
            "last_request": self._last_request_time.isoformat() if self._last_request_time else None,
            "cached_entries": len(self._cache),
        }
