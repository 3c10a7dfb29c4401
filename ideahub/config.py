"""Configuration helpers for the IdeaHub AI backend."""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass, field
from functools import lru_cache
from typing import List, Mapping

from dotenv import load_dotenv

ENV_PREFIX = "IDEAHUB_"
DEFAULT_MODEL = "gpt-4"
DEFAULT_TIMEOUT_SECONDS = 60.0
DEFAULT_LOG_LEVEL = "INFO"
DEFAULT_ALLOWED_ORIGINS = [
    "http://localhost:5173",
    "http://127.0.0.1:5173",
    "http://localhost:3000",
    "http://127.0.0.1:3000",
]

load_dotenv(override=False)


@dataclass(frozen=True)
class LLMSettings:
    """Settings container for the OpenAI integration.

    The API key is optional at startup; generation endpoints fail with a
    configuration error until one is provided.
    """

    openai_api_key: str | None = None
    model: str = DEFAULT_MODEL
    request_timeout: float = DEFAULT_TIMEOUT_SECONDS
    log_level: str = DEFAULT_LOG_LEVEL
    allowed_origins: List[str] = field(default_factory=lambda: list(DEFAULT_ALLOWED_ORIGINS))

    @property
    def has_api_key(self) -> bool:
        """True when an OpenAI API key is configured."""

        return bool(self.openai_api_key)


def _parse_origins(raw: str | None) -> List[str]:
    if not raw:
        return list(DEFAULT_ALLOWED_ORIGINS)
    return [origin.strip() for origin in raw.split(",") if origin.strip()]


def _parse_timeout(raw: str | None) -> float:
    if not raw:
        return DEFAULT_TIMEOUT_SECONDS
    try:
        timeout = float(raw)
    except ValueError as exc:
        raise ValueError(f"{ENV_PREFIX}OPENAI_TIMEOUT must be a number, got {raw!r}") from exc
    if timeout <= 0:
        raise ValueError(f"{ENV_PREFIX}OPENAI_TIMEOUT must be positive, got {raw!r}")
    return timeout


def _parse_log_level(raw: str | None) -> str:
    level = (raw or "").strip().upper() or DEFAULT_LOG_LEVEL
    if not isinstance(logging.getLevelName(level), int):
        raise ValueError(f"{ENV_PREFIX}LOG_LEVEL must be a logging level name, got {raw!r}")
    return level


def settings_from_env(environ: Mapping[str, str]) -> LLMSettings:
    """Build settings from an environment mapping."""

    return LLMSettings(
        openai_api_key=environ.get("OPENAI_API_KEY") or None,
        model=environ.get(f"{ENV_PREFIX}OPENAI_MODEL") or DEFAULT_MODEL,
        request_timeout=_parse_timeout(environ.get(f"{ENV_PREFIX}OPENAI_TIMEOUT")),
        log_level=_parse_log_level(environ.get(f"{ENV_PREFIX}LOG_LEVEL")),
        allowed_origins=_parse_origins(environ.get(f"{ENV_PREFIX}ALLOWED_ORIGINS")),
    )


@lru_cache(maxsize=1)
def get_llm_settings() -> LLMSettings:
    """Read environment variables and return cached LLM settings."""

    return settings_from_env(os.environ)
