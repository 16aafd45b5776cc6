"""Process-wide configuration loaded from the environment."""

import os
from functools import lru_cache
from typing import Optional

from pydantic import BaseModel


class Settings(BaseModel):
    """Provider endpoints, credentials and limits."""

    llm_provider: str = "mistral"
    mistral_api_key: Optional[str] = None
    mistral_endpoint: str = "https://api.mistral.ai/v1/chat/completions"
    mistral_model: str = "mistral-small"
    gemini_api_key: Optional[str] = None
    gemini_model: str = "gemini-1.5-flash"
    libre_endpoint: str = "https://libretranslate.de/translate"
    libre_api_key: Optional[str] = None
    provider_timeout: float = 8.0
    max_concurrent_turns: int = 10

    @classmethod
    def from_env(cls) -> "Settings":
        defaults = cls()
        return cls(
            llm_provider=os.getenv("LLM_PROVIDER", defaults.llm_provider).lower(),
            mistral_api_key=os.getenv("MISTRAL_API_KEY") or None,
            mistral_endpoint=os.getenv("MISTRAL_ENDPOINT", defaults.mistral_endpoint),
            mistral_model=os.getenv("MISTRAL_MODEL", defaults.mistral_model),
            gemini_api_key=os.getenv("GEMINI_API_KEY") or None,
            gemini_model=os.getenv("GEMINI_MODEL", defaults.gemini_model),
            libre_endpoint=os.getenv("LIBRE_ENDPOINT", defaults.libre_endpoint),
            libre_api_key=os.getenv("LIBRE_API_KEY") or None,
            provider_timeout=float(
                os.getenv("PROVIDER_TIMEOUT_SECONDS", defaults.provider_timeout)
            ),
            max_concurrent_turns=int(
                os.getenv("MAX_CONCURRENT_TURNS", defaults.max_concurrent_turns)
            ),
        )


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Settings are read once per process."""
    return Settings.from_env()
