from __future__ import annotations

import logging
import os

from groq import Groq

logger = logging.getLogger(__name__)


class GroqInsightGenerator:
    """Groq-backed generator using Llama 3.3 70B."""

    name = "groq"

    def __init__(self, api_key: str, timeout_seconds: float | None = None) -> None:
        if timeout_seconds:
            self._client = Groq(api_key=api_key, timeout=timeout_seconds)
        else:
            self._client = Groq(api_key=api_key)
        model_name = os.getenv("GROQ_MODEL", "llama-3.3-70b-versatile").strip() or "llama-3.3-70b-versatile"
        self._model_name = model_name
        logger.info("Groq provider initialized with model=%s", model_name)

    def generate(self, prompt: str) -> str:
        try:
            response = self._client.chat.completions.create(
                model=self._model_name,
                messages=[{"role": "user", "content": prompt}],
                temperature=0.6,
            )
            return response.choices[0].message.content or ""
        except Exception as exc:
            logger.error("Groq generation failed: %s", exc, exc_info=True)
            raise
