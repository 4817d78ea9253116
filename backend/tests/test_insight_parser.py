"""Tests for fence stripping and payload validation."""

import json

import pytest

from conftest import valid_payload
from errors import MalformedGenerationOutput
from insight_parser import parse_insight_payload, strip_code_fences
from models import DemandLevel, MarketOutlook


class TestStripCodeFences:
    def test_json_tagged_fence(self):
        assert strip_code_fences('```json\n{"a": 1}\n```') == '{"a": 1}'

    def test_untagged_fence(self):
        assert strip_code_fences('```\n{"a": 1}\n```') == '{"a": 1}'

    def test_uppercase_tag_and_surrounding_whitespace(self):
        assert strip_code_fences('  \n```JSON\n{"a": 1}\n```\n  ') == '{"a": 1}'

    def test_fence_without_newlines(self):
        assert strip_code_fences('```json{"a": 1}```') == '{"a": 1}'

    def test_clean_text_unchanged(self):
        text = '{"a": [1, 2, 3]}'
        assert strip_code_fences(text) == text

    def test_idempotent(self):
        once = strip_code_fences('```json\n{"a": 1}\n```')
        assert strip_code_fences(once) == once

    def test_prose_is_left_alone(self):
        text = 'Sure, here is the data: {"a": 1}'
        assert strip_code_fences(text) == text


class TestParseInsightPayload:
    def test_parses_fenced_payload(self):
        text = "```json\n" + json.dumps(valid_payload()) + "\n```"
        payload = parse_insight_payload("tech", text)
        assert payload.demand_level is DemandLevel.HIGH
        assert payload.market_outlook is MarketOutlook.POSITIVE
        assert payload.growth_rate == 6.5
        assert len(payload.salary_ranges) == 5

    def test_columns_keep_salary_keys(self):
        payload = parse_insight_payload("tech", json.dumps(valid_payload()))
        columns = payload.to_columns()
        assert set(columns["salary_ranges"][0]) == {"role", "min", "max", "median", "location"}
        assert columns["top_skills"][0] == "Python"

    def test_extra_fields_are_dropped(self):
        payload = parse_insight_payload("tech", json.dumps(valid_payload(notes="ignore me")))
        assert "notes" not in payload.to_columns()

    @pytest.mark.parametrize(
        "text",
        [
            'Sure, here is the data: {"growthRate": 1}',
            '{"salaryRanges": [',
            "not json at all",
            "",
        ],
    )
    def test_invalid_json_raises(self, text):
        with pytest.raises(MalformedGenerationOutput) as excinfo:
            parse_insight_payload("retail", text)
        assert excinfo.value.industry == "retail"

    def test_non_object_raises(self):
        with pytest.raises(MalformedGenerationOutput, match="expected a JSON object"):
            parse_insight_payload("retail", "[1, 2, 3]")

    def test_unknown_demand_level_raises(self):
        with pytest.raises(MalformedGenerationOutput, match="demandLevel"):
            parse_insight_payload("retail", json.dumps(valid_payload(demandLevel="Very High")))

    def test_unknown_outlook_raises(self):
        with pytest.raises(MalformedGenerationOutput, match="marketOutlook"):
            parse_insight_payload("retail", json.dumps(valid_payload(marketOutlook="Bullish")))

    def test_missing_field_raises(self):
        data = valid_payload()
        del data["keyTrends"]
        with pytest.raises(MalformedGenerationOutput, match="keyTrends"):
            parse_insight_payload("retail", json.dumps(data))

    def test_salary_ordering_enforced(self):
        bad = valid_payload(
            salaryRanges=[{"role": "Clerk", "min": 90000, "max": 50000, "median": 70000, "location": "NYC"}]
        )
        with pytest.raises(MalformedGenerationOutput, match="min <= median <= max"):
            parse_insight_payload("retail", json.dumps(bad))

    def test_growth_rate_floor(self):
        with pytest.raises(MalformedGenerationOutput, match="growthRate"):
            parse_insight_payload("retail", json.dumps(valid_payload(growthRate=-150)))

    def test_infinite_salary_rejected(self):
        text = (
            '{"salaryRanges": [{"role": "Clerk", "min": 1000, "max": Infinity, "median": 2000, '
            '"location": "NYC"}], "growthRate": 2, "demandLevel": "Low", "topSkills": [], '
            '"marketOutlook": "Neutral", "keyTrends": [], "recommendedSkills": []}'
        )
        with pytest.raises(MalformedGenerationOutput, match="max"):
            parse_insight_payload("retail", text)

    def test_nan_growth_rate_rejected(self):
        text = json.dumps(valid_payload()).replace('"growthRate": 6.5', '"growthRate": NaN')
        with pytest.raises(MalformedGenerationOutput, match="growthRate"):
            parse_insight_payload("retail", text)
