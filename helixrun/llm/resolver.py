"""Turn a model record into a Model handle plus generation settings."""

import os
from collections.abc import Callable

from langchain_openai import ChatOpenAI

from helixrun.errors import CredentialError, UnsupportedProviderError
from helixrun.llm.model import ChatModelAdapter, Model
from helixrun.models.agent_config import ModelConfig
from helixrun.models.response import GenerationConfig

ModelFactory = Callable[[ModelConfig, bool], Model]

DEFAULT_OPENAI_KEY_ENV = "OPENAI_API_KEY"


def resolve_api_key(config: ModelConfig, default_env: str) -> str:
    """Resolve the credential reference of a model record.

    A reference starting with "sk-" is taken as a literal key; anything else
    names the environment variable holding the key. No reference falls back
    to `default_env`.
    """
    ref = config.api_key_env
    if ref and ref.startswith("sk-"):
        return ref

    env_name = ref or default_env
    api_key = os.getenv(env_name, "")
    if not api_key:
        raise CredentialError(f"missing {config.provider} API key, env {env_name} is empty")
    return api_key


def _openai_model(config: ModelConfig, stream: bool) -> Model:
    base_url = config.base_url or os.getenv("OPENAI_BASE_URL") or None
    chat_model = ChatOpenAI(
        model=config.model,
        api_key=resolve_api_key(config, DEFAULT_OPENAI_KEY_ENV),
        base_url=base_url,
        streaming=stream,
        stream_usage=True,
    )
    return ChatModelAdapter(chat_model, name=config.model)


class ModelResolver:
    """Registry of model providers keyed by provider name."""

    def __init__(self) -> None:
        self._factories: dict[str, ModelFactory] = {}
        self.register("openai", _openai_model)

    def register(self, provider: str, factory: ModelFactory) -> None:
        self._factories[provider.lower()] = factory

    @property
    def providers(self) -> list[str]:
        return sorted(self._factories)

    def resolve(self, config: ModelConfig, stream: bool) -> tuple[Model, GenerationConfig]:
        """Build the model handle and generation config for an agent."""
        factory = self._factories.get(config.provider.lower())
        if factory is None:
            raise UnsupportedProviderError(f"unsupported model provider: {config.provider}")

        model = factory(config, stream)
        generation = GenerationConfig(
            stream=stream,
            temperature=config.temperature,
            max_tokens=config.max_tokens,
        )
        return model, generation
