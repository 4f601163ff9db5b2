"""Pydantic Settings: loads configuration from environment variables."""

from functools import lru_cache
from typing import Literal

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    model_config = {"env_file": ".env", "extra": "ignore"}

    # Provider credentials (OPENAI_API_KEY, ANTHROPIC_API_KEY, ...) are read
    # by pydantic-ai straight from the environment.
    llm_provider: str = "openai"
    llm_model: str = "gpt-4o-mini"
    ai_timeout_seconds: float = 20.0
    ai_failure_policy: Literal["strict", "partial"] = "strict"

    fetch_timeout_seconds: float = 10.0
    max_redirects: int = 5
    user_agent: str = "company-enrichment-bot/0.1.0"
    max_response_bytes: int = 5 * 1024 * 1024

    request_timeout_seconds: float = 35.0

    max_body_chars: int = 8000
    min_content_chars: int = 50
    max_internal_links: int = 50
    max_extra_pages: int = 1

    log_level: str = "INFO"

    @property
    def model_name(self) -> str:
        return f"{self.llm_provider}:{self.llm_model}"


@lru_cache
def get_settings() -> Settings:
    return Settings()
