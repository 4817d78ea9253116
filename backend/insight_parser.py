from __future__ import annotations

import json
import re

from pydantic import ValidationError

from errors import MalformedGenerationOutput
from models import InsightPayload

_LEADING_FENCE = re.compile(r"^```(?:json)?[ \t]*\r?\n?", re.IGNORECASE)
_TRAILING_FENCE = re.compile(r"\r?\n?```$")


def strip_code_fences(text: str) -> str:
    """Remove a markdown code fence wrapped around the generated text.

    Only fences at the very start or end are removed, with or without a
    ``json`` language tag. Clean text comes back unchanged apart from
    surrounding whitespace.
    """
    cleaned = text.strip()
    cleaned = _LEADING_FENCE.sub("", cleaned, count=1)
    cleaned = _TRAILING_FENCE.sub("", cleaned, count=1)
    return cleaned.strip()


def parse_insight_payload(industry: str, text: str) -> InsightPayload:
    """Parse and validate generated text for ``industry``.

    Raises MalformedGenerationOutput when the text is not JSON after fence
    stripping or does not match the insight schema.
    """
    cleaned = strip_code_fences(text or "")
    try:
        parsed = json.loads(cleaned)
    except json.JSONDecodeError as exc:
        raise MalformedGenerationOutput(
            industry, f"generated text is not valid JSON: {exc.msg} (line {exc.lineno}, col {exc.colno})"
        ) from exc

    if not isinstance(parsed, dict):
        raise MalformedGenerationOutput(
            industry, f"expected a JSON object, got {type(parsed).__name__}"
        )

    try:
        return InsightPayload.model_validate(parsed)
    except ValidationError as exc:
        problems = "; ".join(
            f"{'.'.join(str(part) for part in err['loc'])}: {err['msg']}" for err in exc.errors()
        )
        raise MalformedGenerationOutput(industry, f"schema validation failed: {problems}") from exc
