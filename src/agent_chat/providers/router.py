"""
Model router: maps a configured model id to a streaming provider.

Classification is a prefix table with an explicit fallback family. Each
family gets one AsyncOpenAI client, created on first use and reused until
``aclose``. A missing credential is a configuration error, reported
distinctly from transport failures and never retried.
"""
from typing import Callable, Optional
from openai import AsyncOpenAI

from agent_chat.config.settings import Settings
from agent_chat.domain.exceptions import MissingCredential
from agent_chat.infrastructure.observability.logging import get_logger
from agent_chat.interfaces.provider import IModelProvider, ModelFamily
from agent_chat.providers.openai_compatible import OpenAICompatibleProvider

logger = get_logger(__name__)

# Checked in order against the lower-cased model id
MODEL_PREFIXES: tuple[tuple[str, ModelFamily], ...] = (
    ("gemini", ModelFamily.GEMINI),
    ("gpt", ModelFamily.OPENAI),
    ("chatgpt", ModelFamily.OPENAI),
    ("o1", ModelFamily.OPENAI),
    ("o3", ModelFamily.OPENAI),
    ("o4", ModelFamily.OPENAI),
)

DEFAULT_MODEL_NAMES: dict[ModelFamily, str] = {
    ModelFamily.GEMINI: "gemini-2.0-flash-exp",
    ModelFamily.OPENAI: "gpt-4o-mini",
}

CREDENTIAL_ENV_VARS: dict[ModelFamily, str] = {
    ModelFamily.GEMINI: "GOOGLE_GENERATIVE_AI_API_KEY",
    ModelFamily.OPENAI: "OPENAI_API_KEY",
}

ClientFactory = Callable[[str, Optional[str], float], AsyncOpenAI]


def _default_client_factory(api_key: str, base_url: Optional[str], timeout: float) -> AsyncOpenAI:
    client_kwargs = {"api_key": api_key, "timeout": timeout, "max_retries": 0}
    if base_url:
        client_kwargs["base_url"] = base_url
    return AsyncOpenAI(**client_kwargs)


class ModelRouter:
    """
    Resolve model ids to providers.

    Example:
        >>> router = ModelRouter(settings)
        >>> router.classify("gpt-4o-mini")
        <ModelFamily.OPENAI: 'openai'>
        >>> provider = router.resolve("gemini-2.0-flash-exp")
    """

    def __init__(self, settings: Settings, client_factory: ClientFactory | None = None):
        self._settings = settings
        self._client_factory = client_factory or _default_client_factory
        self._clients: dict[ModelFamily, AsyncOpenAI] = {}

    def classify(self, model_id: str) -> ModelFamily:
        """Model family for an id; unmatched ids go to the configured default family."""
        normalized = (model_id or "").strip().lower()
        for prefix, family in MODEL_PREFIXES:
            if normalized.startswith(prefix):
                return family
        return ModelFamily(self._settings.default_model_family)

    def model_name_for(self, model_id: str, family: ModelFamily) -> str:
        """Effective upstream model name for a configured id."""
        normalized = (model_id or "").strip().lower()
        if family is ModelFamily.GEMINI:
            if self._settings.google_model_name:
                return self._settings.google_model_name
            if normalized.startswith("gemini"):
                return model_id
            return DEFAULT_MODEL_NAMES[ModelFamily.GEMINI]
        if any(normalized.startswith(p) for p, f in MODEL_PREFIXES if f is ModelFamily.OPENAI):
            return model_id
        return DEFAULT_MODEL_NAMES[ModelFamily.OPENAI]

    def _credentials(self, family: ModelFamily) -> tuple[Optional[str], Optional[str]]:
        if family is ModelFamily.GEMINI:
            key = self._settings.google_generative_ai_api_key
            return (key.get_secret_value() if key else None), self._settings.google_base_url
        key = self._settings.openai_api_key
        return (key.get_secret_value() if key else None), self._settings.openai_base_url

    def client_for(self, family: ModelFamily) -> AsyncOpenAI:
        """
        Shared client for a family.

        Raises:
            MissingCredential: If the family's API key is not configured
        """
        client = self._clients.get(family)
        if client is not None:
            return client

        api_key, base_url = self._credentials(family)
        if not api_key:
            env_var = CREDENTIAL_ENV_VARS[family]
            logger.error("Model provider credential missing", model_family=family.value, env_var=env_var)
            raise MissingCredential(
                f"{env_var} environment variable is required",
                details={"model_family": family.value, "env_var": env_var},
            )

        client = self._client_factory(api_key, base_url, self._settings.provider_timeout_seconds)
        self._clients[family] = client
        logger.info("Model provider client created", model_family=family.value)
        return client

    def resolve(self, model_id: str) -> IModelProvider:
        """
        Provider for a configured model id.

        Raises:
            MissingCredential: If the resolved family has no credential
        """
        family = self.classify(model_id)
        return OpenAICompatibleProvider(
            client=self.client_for(family),
            family=family,
            model_name=self.model_name_for(model_id, family),
        )

    async def aclose(self) -> None:
        """Close every client created so far."""
        clients, self._clients = self._clients, {}
        for client in clients.values():
            await client.close()
