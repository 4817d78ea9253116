from __future__ import annotations

import logging

logger = logging.getLogger(__name__)


class GroqGeminiFallbackGenerator:
    """Dual-provider: Groq Llama 3.3 70B primary, Gemini fallback.

    Tries Groq first; on any error, falls back to Gemini. If both fail the
    Gemini error propagates.
    """

    name = "groq_with_gemini_fallback"

    def __init__(self, gemini_api_key: str, groq_api_key: str, timeout_seconds: float | None = None) -> None:
        from ai.gemini_provider import GeminiInsightGenerator
        from ai.groq_provider import GroqInsightGenerator

        self._gemini = GeminiInsightGenerator(api_key=gemini_api_key, timeout_seconds=timeout_seconds)
        self._groq = GroqInsightGenerator(api_key=groq_api_key, timeout_seconds=timeout_seconds)
        logger.info("GroqGeminiFallback provider initialized (primary: Groq, fallback: Gemini)")

    def generate(self, prompt: str) -> str:
        try:
            logger.debug("Attempting Groq for insight generation...")
            return self._groq.generate(prompt)
        except Exception as e:
            logger.warning("Groq failed, falling back to Gemini: %s", str(e)[:100])
            try:
                return self._gemini.generate(prompt)
            except Exception as e2:
                logger.error("Both Groq and Gemini failed: %s", e2, exc_info=True)
                raise
