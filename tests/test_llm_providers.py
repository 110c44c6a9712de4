"""
Tests for settings-driven provider resolution and the model factory.

No network: provider SDK modules are replaced with mocks.
"""

from __future__ import annotations

import sys
from unittest.mock import MagicMock, patch

import pytest

from config.settings import ConsensusWeighting, LLMProvider, Settings


def _make_settings(**overrides) -> Settings:
    """Create a Settings instance with explicit values, bypassing .env."""
    defaults = {
        "llm_provider": LLMProvider.ANTHROPIC,
        "anthropic_api_key": None,
        "google_api_key": None,
        "openai_api_key": None,
    }
    defaults.update(overrides)
    return Settings(_env_file=None, **defaults)


class TestResolveProvider:
    def test_no_keys_defaults_to_ollama(self):
        assert _make_settings().resolve_provider() == LLMProvider.OLLAMA

    def test_selected_provider_with_key(self):
        s = _make_settings(llm_provider=LLMProvider.GOOGLE, google_api_key="g-key")
        assert s.resolve_provider() == LLMProvider.GOOGLE

    def test_selected_provider_no_key_falls_to_other(self):
        s = _make_settings(openai_api_key="sk-test")
        assert s.resolve_provider() == LLMProvider.OPENAI

    def test_ollama_selected_returns_ollama(self):
        s = _make_settings(llm_provider=LLMProvider.OLLAMA, anthropic_api_key="sk-ant-test")
        assert s.resolve_provider() == LLMProvider.OLLAMA

    def test_get_model_for(self):
        s = _make_settings(openai_model="gpt-4o")
        assert s.get_model_for(LLMProvider.OPENAI) == "gpt-4o"


class TestDebateSettings:
    def test_defaults(self, monkeypatch):
        for var in ("MAX_ROUNDS", "ANALYST_TIMEOUT_SECONDS", "CONSENSUS_WEIGHTING", "VALIDATION_SEED"):
            monkeypatch.delenv(var, raising=False)
        s = _make_settings()
        assert s.max_rounds == 4
        assert s.analyst_timeout_seconds == 60.0
        assert s.consensus_weighting == ConsensusWeighting.EQUAL
        assert s.validation_seed is None

    def test_env_overrides(self, monkeypatch):
        monkeypatch.setenv("MAX_ROUNDS", "3")
        monkeypatch.setenv("CONSENSUS_WEIGHTING", "confidence")
        monkeypatch.setenv("ANALYST_MODELS", '{"growth": "google:gemini-2.0-flash"}')
        s = _make_settings()
        assert s.max_rounds == 3
        assert s.consensus_weighting == ConsensusWeighting.CONFIDENCE
        assert s.analyst_models == {"growth": "google:gemini-2.0-flash"}

    def test_rejects_non_positive_timeout(self):
        with pytest.raises(ValueError):
            _make_settings(analyst_timeout_seconds=0)


class TestCreateModel:
    def test_missing_key_raises(self, monkeypatch):
        from app_lib.model_factory import ModelUnavailable, create_model

        monkeypatch.delenv("ANTHROPIC_API_KEY", raising=False)
        fake_sdk = MagicMock()
        with patch.dict(sys.modules, {"anthropic": fake_sdk}), \
                patch("app_lib.model_factory.settings", _make_settings()):
            with pytest.raises(ModelUnavailable, match="ANTHROPIC_API_KEY"):
                create_model(LLMProvider.ANTHROPIC)

    def test_anthropic_callable(self):
        from app_lib.model_factory import create_model

        fake_sdk = MagicMock()
        client = fake_sdk.Anthropic.return_value
        client.messages.create.return_value.content = [MagicMock(text='{"content": "ok"}')]

        with patch.dict(sys.modules, {"anthropic": fake_sdk}), \
                patch("app_lib.model_factory.settings", _make_settings(anthropic_api_key="sk-ant-test")):
            model = create_model(LLMProvider.ANTHROPIC, model_name="claude-test")
            assert model("prompt", temperature=0.2) == '{"content": "ok"}'

        kwargs = client.messages.create.call_args.kwargs
        assert kwargs["model"] == "claude-test"
        assert kwargs["temperature"] == 0.2

    def test_openai_callable_uses_default_temperature(self):
        from app_lib.model_factory import create_model

        fake_sdk = MagicMock()
        client = fake_sdk.OpenAI.return_value
        client.chat.completions.create.return_value.choices = [MagicMock()]
        client.chat.completions.create.return_value.choices[0].message.content = "reply"

        s = _make_settings(openai_api_key="sk-test", temperature=0.3)
        with patch.dict(sys.modules, {"openai": fake_sdk}), patch("app_lib.model_factory.settings", s):
            assert create_model(LLMProvider.OPENAI)("prompt") == "reply"

        kwargs = client.chat.completions.create.call_args.kwargs
        assert kwargs["temperature"] == 0.3
        assert kwargs["model"] == s.openai_model

    def test_ollama_missing_model_raises(self):
        from app_lib.model_factory import ModelUnavailable, create_model

        fake_sdk = MagicMock()
        fake_sdk.Client.return_value.show.side_effect = ConnectionError("refused")
        with patch.dict(sys.modules, {"ollama": fake_sdk}), \
                patch("app_lib.model_factory.settings", _make_settings()):
            with pytest.raises(ModelUnavailable, match="ollama pull"):
                create_model(LLMProvider.OLLAMA)
