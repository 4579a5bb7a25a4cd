"""
Configuration and dependency helpers for the treatment web backend.
"""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from functools import lru_cache
from typing import Optional

from fastapi import Request

from plant_treatment.generation import DEFAULT_MODEL, DEFAULT_TEMPERATURE, GEMINI_BASE_URL, GeminiClient


def _str_to_bool(value: Optional[str], default: bool) -> bool:
    if value is None:
        return default
    return value.strip().lower() in {"1", "true", "yes", "on"}


def _env(name: str, default=None):
    return field(default_factory=lambda: os.getenv(name, default))


class MissingCredentialError(RuntimeError):
    """Raised at startup when no Gemini API key is configured."""


@dataclass(frozen=True)
class Settings:
    """Runtime configuration pulled from environment variables."""

    gemini_api_key: Optional[str] = _env("GEMINI_API_KEY")
    gemini_base_url: str = _env("GEMINI_BASE_URL", GEMINI_BASE_URL)
    llm_model_name: str = _env("GEMINI_MODEL", DEFAULT_MODEL)
    temperature: float = field(
        default_factory=lambda: float(os.getenv("GEMINI_TEMPERATURE", str(DEFAULT_TEMPERATURE)))
    )
    request_timeout: float = field(default_factory=lambda: float(os.getenv("GEMINI_REQUEST_TIMEOUT", "120")))

    host: str = _env("HOST", "0.0.0.0")
    port: int = field(default_factory=lambda: int(os.getenv("PORT", "3001")))

    debug: bool = field(default_factory=lambda: _str_to_bool(os.getenv("TREATMENT_DEBUG"), False))


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """
    Cached settings instance.

    Using an LRU cache ensures that settings are only computed once per process
    and can be accessed cheaply throughout request handling.
    """

    return Settings()


def build_gemini_client(settings: Settings) -> GeminiClient:
    if not settings.gemini_api_key:
        raise MissingCredentialError(
            "GEMINI_API_KEY is missing. Please set it in your .env file or environment."
        )
    return GeminiClient(
        api_key=settings.gemini_api_key,
        base_url=settings.gemini_base_url,
        model_name=settings.llm_model_name,
        temperature=settings.temperature,
        request_timeout=settings.request_timeout,
    )


def get_gemini_client(request: Request) -> GeminiClient:
    """FastAPI dependency returning the client built once at startup."""
    return request.app.state.gemini_client
