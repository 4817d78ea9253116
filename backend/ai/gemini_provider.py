from __future__ import annotations

import logging
import os

from google import genai
from google.genai import types

logger = logging.getLogger(__name__)


class GeminiInsightGenerator:
    """Google Gemini-backed generator.

    Errors from the SDK propagate to the caller; the refresh cycle classifies
    them as generation failures for the industry being processed.
    """

    name = "gemini"

    def __init__(self, api_key: str, timeout_seconds: float | None = None) -> None:
        # Allow model override via env for reliability/cost tuning.
        model_name = os.getenv("GEMINI_MODEL", "gemini-2.0-flash").strip() or "gemini-2.0-flash"
        self._model_name = model_name
        http_options = None
        if timeout_seconds:
            # HttpOptions.timeout is expressed in milliseconds
            http_options = types.HttpOptions(timeout=int(timeout_seconds * 1000))
        self._client = genai.Client(api_key=api_key, http_options=http_options)
        logger.info("Gemini provider initialized with model=%s", model_name)

    def generate(self, prompt: str) -> str:
        generation_config = types.GenerateContentConfig(temperature=0.6)
        response = self._client.models.generate_content(
            model=self._model_name,
            contents=[prompt],
            config=generation_config,
        )
        return response.text or ""
