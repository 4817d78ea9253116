from __future__ import annotations

import hashlib
import json
import re
from typing import Dict, List

_INDUSTRY_IN_PROMPT = re.compile(r"state of the (.+?) industry", re.IGNORECASE)

_ROLES = ["Software Engineer", "Data Analyst", "Product Manager", "Operations Lead", "Sales Manager"]
_LOCATIONS = ["New York, NY", "San Francisco, CA", "Austin, TX", "Chicago, IL", "Remote"]
_SKILLS = ["Python", "SQL", "Cloud Platforms", "Data Visualization", "Project Management", "Communication"]
_TRENDS = [
    "AI-assisted workflows",
    "Automation of routine tasks",
    "Remote and hybrid work",
    "Sustainability reporting",
    "Consolidation among mid-size firms",
]
_DEMAND_LEVELS = ["High", "Medium", "Low"]
_OUTLOOKS = ["Positive", "Neutral", "Negative"]


class MockInsightGenerator:
    """Deterministic mock provider used when no AI provider is configured.

    The output is a pure function of the industry named in the prompt, so
    repeated cycles are stable without any external dependency. Responses are
    wrapped in a ```json fence the way chat models often return them.
    """

    name = "mock"

    def generate(self, prompt: str) -> str:
        match = _INDUSTRY_IN_PROMPT.search(prompt)
        industry = match.group(1).strip() if match else "general"
        payload = self.build_payload(industry)
        return "```json\n" + json.dumps(payload, indent=2) + "\n```"

    def build_payload(self, industry: str) -> Dict:
        seed = int(hashlib.sha256(industry.lower().encode("utf-8")).hexdigest(), 16)

        salary_ranges: List[Dict] = []
        for idx, role in enumerate(_ROLES):
            base = 55000 + ((seed >> (idx * 4)) % 16) * 5000
            salary_ranges.append(
                {
                    "role": role,
                    "min": base,
                    "max": base + 60000,
                    "median": base + 30000,
                    "location": _LOCATIONS[idx % len(_LOCATIONS)],
                }
            )

        offset = seed % len(_SKILLS)
        rotated_skills = _SKILLS[offset:] + _SKILLS[:offset]

        return {
            "salaryRanges": salary_ranges,
            "growthRate": round(((seed % 200) - 40) / 10.0, 1),
            "demandLevel": _DEMAND_LEVELS[seed % len(_DEMAND_LEVELS)],
            "topSkills": rotated_skills[:5],
            "marketOutlook": _OUTLOOKS[(seed // 7) % len(_OUTLOOKS)],
            "keyTrends": list(_TRENDS),
            "recommendedSkills": rotated_skills[1:6],
        }
