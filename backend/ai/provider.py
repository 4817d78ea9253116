from __future__ import annotations

import logging
import os
from typing import Protocol

from errors import ProviderNotConfigured

logger = logging.getLogger(__name__)

KNOWN_PROVIDERS = ("mock", "gemini", "groq", "groq_with_gemini_fallback")


class InsightGenerator(Protocol):
    """Abstraction over generative-AI providers used by the refresh cycle.

    ``generate`` takes a text prompt and returns the raw generated text.
    Parsing and validation happen in the caller.
    """

    name: str

    def generate(self, prompt: str) -> str:
        ...


def configured_provider_name() -> str:
    return os.getenv("PROVIDER", "").lower().strip() or "mock"


def get_provider(timeout_seconds: float | None = None) -> InsightGenerator:
    """Return the configured generator instance.

    Logic:
    - PROVIDER=groq_with_gemini_fallback -> Groq (primary) + Gemini (fallback)
    - PROVIDER=gemini -> Gemini only
    - PROVIDER=groq -> Groq only
    - PROVIDER unset or mock -> Mock provider

    A real provider that is requested but lacks its key or fails to start
    raises ProviderNotConfigured; mock content is never substituted for it.
    """

    provider_env = configured_provider_name()
    gemini_key = os.getenv("GEMINI_API_KEY", "").strip()
    groq_key = os.getenv("GROQ_API_KEY", "").strip()

    if provider_env == "mock":
        from .mock_provider import MockInsightGenerator  # local import to avoid cycles

        logger.info("Using mock insight provider")
        return MockInsightGenerator()

    if provider_env == "groq_with_gemini_fallback":
        if not gemini_key or not groq_key:
            raise ProviderNotConfigured(
                "PROVIDER=groq_with_gemini_fallback requires both GEMINI_API_KEY and GROQ_API_KEY"
            )
        try:
            from .fallback_provider import GroqGeminiFallbackGenerator

            return GroqGeminiFallbackGenerator(
                gemini_api_key=gemini_key, groq_api_key=groq_key, timeout_seconds=timeout_seconds
            )
        except Exception as e:
            raise ProviderNotConfigured(f"GroqGeminiFallback initialization failed: {e}") from e

    if provider_env == "gemini":
        if not gemini_key:
            raise ProviderNotConfigured("PROVIDER=gemini requires GEMINI_API_KEY")
        try:
            from .gemini_provider import GeminiInsightGenerator

            return GeminiInsightGenerator(api_key=gemini_key, timeout_seconds=timeout_seconds)
        except Exception as e:
            raise ProviderNotConfigured(f"Gemini initialization failed: {e}") from e

    if provider_env == "groq":
        if not groq_key:
            raise ProviderNotConfigured("PROVIDER=groq requires GROQ_API_KEY")
        try:
            from .groq_provider import GroqInsightGenerator

            return GroqInsightGenerator(api_key=groq_key, timeout_seconds=timeout_seconds)
        except Exception as e:
            raise ProviderNotConfigured(f"Groq initialization failed: {e}") from e

    raise ProviderNotConfigured(
        f"Unknown PROVIDER={provider_env!r}; expected one of {', '.join(KNOWN_PROVIDERS)}"
    )
