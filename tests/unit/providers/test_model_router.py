# tests/unit/providers/test_model_router.py
"""Unit tests for model routing."""

from unittest.mock import AsyncMock, Mock

import pytest

from agent_chat.config.settings import Settings
from agent_chat.domain.exceptions import ConfigurationError, MissingCredential
from agent_chat.interfaces.provider import ModelFamily
from agent_chat.providers.openai_compatible import OpenAICompatibleProvider
from agent_chat.providers.router import ModelRouter


def _settings(**overrides) -> Settings:
    values = {
        "google_generative_ai_api_key": "google-key",
        "openai_api_key": "openai-key",
        "database_url": None,
    }
    values.update(overrides)
    return Settings(**values)


@pytest.fixture
def client_factory() -> Mock:
    factory = Mock()
    factory.side_effect = lambda api_key, base_url, timeout: Mock(
        api_key=api_key, base_url=base_url, close=AsyncMock()
    )
    return factory


@pytest.mark.unit
class TestClassification:

    @pytest.mark.parametrize(
        "model_id,family",
        [
            ("gemini-2.0-flash-exp", ModelFamily.GEMINI),
            ("Gemini-1.5-pro", ModelFamily.GEMINI),
            ("gpt-4o-mini", ModelFamily.OPENAI),
            ("chatgpt-4o-latest", ModelFamily.OPENAI),
            ("o3-mini", ModelFamily.OPENAI),
        ],
    )
    def test_prefixes(self, model_id, family):
        assert ModelRouter(_settings()).classify(model_id) is family

    def test_unknown_id_uses_default_family(self):
        assert ModelRouter(_settings()).classify("mystery-model") is ModelFamily.GEMINI
        assert ModelRouter(_settings(default_model_family="openai")).classify("mystery-model") is ModelFamily.OPENAI

    def test_gemini_model_name_override(self):
        router = ModelRouter(_settings(google_model_name="gemini-1.5-pro"))

        assert router.model_name_for("gemini-2.0-flash-exp", ModelFamily.GEMINI) == "gemini-1.5-pro"

    def test_unrecognised_id_maps_to_family_default_name(self):
        router = ModelRouter(_settings())

        assert router.model_name_for("mystery-model", ModelFamily.GEMINI) == "gemini-2.0-flash-exp"
        assert router.model_name_for("mystery-model", ModelFamily.OPENAI) == "gpt-4o-mini"
        assert router.model_name_for("gpt-4o", ModelFamily.OPENAI) == "gpt-4o"


@pytest.mark.unit
class TestResolution:

    def test_resolve_returns_bound_provider(self, client_factory):
        router = ModelRouter(_settings(), client_factory=client_factory)

        provider = router.resolve("gemini-2.0-flash-exp")

        assert isinstance(provider, OpenAICompatibleProvider)
        assert provider.family is ModelFamily.GEMINI
        assert provider.model_name == "gemini-2.0-flash-exp"
        api_key, base_url, _ = client_factory.call_args.args
        assert api_key == "google-key"
        assert base_url == "https://generativelanguage.googleapis.com/v1beta/openai/"

    def test_clients_are_reused_per_family(self, client_factory):
        router = ModelRouter(_settings(), client_factory=client_factory)

        router.resolve("gpt-4o-mini")
        router.resolve("gpt-4o")
        router.resolve("gemini-2.0-flash-exp")

        assert client_factory.call_count == 2

    def test_missing_credential_is_configuration_error(self, client_factory):
        router = ModelRouter(_settings(google_generative_ai_api_key=None), client_factory=client_factory)

        with pytest.raises(MissingCredential) as exc_info:
            router.resolve("gemini-2.0-flash-exp")

        assert isinstance(exc_info.value, ConfigurationError)
        assert "GOOGLE_GENERATIVE_AI_API_KEY" in exc_info.value.message
        client_factory.assert_not_called()

    def test_missing_credential_only_affects_its_family(self, client_factory):
        router = ModelRouter(_settings(google_generative_ai_api_key=None), client_factory=client_factory)

        provider = router.resolve("gpt-4o-mini")

        assert provider.family is ModelFamily.OPENAI

    async def test_aclose_closes_created_clients(self, client_factory):
        router = ModelRouter(_settings(), client_factory=client_factory)
        client = router.client_for(ModelFamily.OPENAI)

        await router.aclose()

        client.close.assert_awaited_once()
