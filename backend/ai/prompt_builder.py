from __future__ import annotations

from textwrap import dedent

MIN_LIST_ENTRIES = 5


def build_prompt(industry: str) -> str:
    """Builds a strict JSON-only instruction prompt for one industry.

    The schema block mirrors InsightPayload; the response is parsed with
    insight_parser.parse_insight_payload.
    """

    schema_description = dedent(
        """
        {
          "salaryRanges": [
            { "role": "string", "min": number, "max": number, "median": number, "location": "string" }
          ],
          "growthRate": number,
          "demandLevel": "High" | "Medium" | "Low",
          "topSkills": ["skill1", "skill2"],
          "marketOutlook": "Positive" | "Neutral" | "Negative",
          "keyTrends": ["trend1", "trend2"],
          "recommendedSkills": ["skill1", "skill2"]
        }
        """
    ).strip()

    constraints = dedent(
        f"""
        IMPORTANT: Return ONLY the JSON. No additional text, notes, or markdown formatting.
        Include at least {MIN_LIST_ENTRIES} common roles for salary ranges.
        Growth rate should be a percentage.
        Include at least {MIN_LIST_ENTRIES} skills and trends.
        """
    ).strip()

    return (
        f"Analyze the current state of the {industry} industry and provide insights in ONLY "
        "the following JSON format without any additional notes or explanations:\n"
        f"{schema_description}\n\n"
        f"{constraints}"
    )
