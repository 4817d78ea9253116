import pytest

from ai.mock_provider import MockInsightGenerator
from ai.prompt_builder import build_prompt
from ai.provider import configured_provider_name, get_provider
from errors import ProviderNotConfigured
from insight_parser import parse_insight_payload


class TestGetProvider:
    def test_defaults_to_mock(self, monkeypatch):
        monkeypatch.delenv("PROVIDER", raising=False)
        assert get_provider().name == "mock"

    def test_blank_provider_is_mock(self, monkeypatch):
        monkeypatch.setenv("PROVIDER", "  ")
        assert configured_provider_name() == "mock"
        assert get_provider().name == "mock"

    def test_gemini_without_key_is_rejected(self, monkeypatch):
        monkeypatch.setenv("PROVIDER", "gemini")
        monkeypatch.setenv("GEMINI_API_KEY", "")
        with pytest.raises(ProviderNotConfigured, match="GEMINI_API_KEY"):
            get_provider()

    def test_groq_without_key_is_rejected(self, monkeypatch):
        monkeypatch.setenv("PROVIDER", "groq")
        monkeypatch.setenv("GROQ_API_KEY", "")
        with pytest.raises(ProviderNotConfigured, match="GROQ_API_KEY"):
            get_provider()

    def test_fallback_requires_both_keys(self, monkeypatch):
        monkeypatch.setenv("PROVIDER", "groq_with_gemini_fallback")
        monkeypatch.setenv("GEMINI_API_KEY", "abc")
        monkeypatch.setenv("GROQ_API_KEY", "")
        with pytest.raises(ProviderNotConfigured):
            get_provider()

    def test_client_init_error_is_rejected(self, monkeypatch):
        import ai.gemini_provider as gemini_provider

        def _broken(*args, **kwargs):
            raise RuntimeError("bad credentials")

        monkeypatch.setenv("PROVIDER", "gemini")
        monkeypatch.setenv("GEMINI_API_KEY", "abc")
        monkeypatch.setattr(gemini_provider, "GeminiInsightGenerator", _broken)
        with pytest.raises(ProviderNotConfigured, match="bad credentials"):
            get_provider()

    def test_unknown_provider_is_rejected(self, monkeypatch):
        monkeypatch.setenv("PROVIDER", "openai")
        with pytest.raises(ProviderNotConfigured, match="openai"):
            get_provider()


class TestMockInsightGenerator:
    def test_output_is_fenced_and_valid(self):
        text = MockInsightGenerator().generate(build_prompt("construction"))
        assert text.startswith("```json\n")
        payload = parse_insight_payload("construction", text)
        assert len(payload.salary_ranges) >= 5
        assert len(payload.top_skills) >= 5
        assert len(payload.key_trends) >= 5
        assert len(payload.recommended_skills) >= 5

    def test_deterministic_per_industry(self):
        generator = MockInsightGenerator()
        assert generator.build_payload("Fintech") == generator.build_payload("fintech")
        assert generator.generate(build_prompt("fintech")) == generator.generate(build_prompt("fintech"))
