"""
Application Settings

Environment-driven configuration. Values come from the process
environment or a project-level ``.env`` file.
"""
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv
from pydantic import AliasChoices, Field
from pydantic_settings import BaseSettings, SettingsConfigDict

PROJECT_ROOT = Path(__file__).resolve().parent.parent

load_dotenv(PROJECT_ROOT / ".env")


class Settings(BaseSettings):
    """Runtime settings for the engine, its collaborators and the API."""

    model_config = SettingsConfigDict(extra="ignore", populate_by_name=True)

    # ── Application ───────────────────────────────────────────────────────
    app_name: str = "Biologic Advisor API"
    app_version: str = "1.0.0"
    log_level: str = "INFO"
    log_file: Optional[str] = None

    # ── Efficacy ranker (Gemini via LangChain) ────────────────────────────
    gemini_api_key: Optional[str] = Field(
        default=None,
        validation_alias=AliasChoices("GEMINI_API_KEY", "GOOGLE_API_KEY", "gemini_api_key"),
    )
    gemini_model: str = "gemini-2.5-flash"
    ranker_temperature: float = 0.3
    ranker_max_output_tokens: int = 2000
    ranker_timeout_seconds: int = 30

    # ── Knowledge search ──────────────────────────────────────────────────
    knowledge_search_url: Optional[str] = None
    knowledge_min_similarity: float = 0.65
    knowledge_max_results: int = 10
    knowledge_timeout_seconds: float = 10.0


settings = Settings()
