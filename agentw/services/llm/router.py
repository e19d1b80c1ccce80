"""
Provider router: resolves ``<provider>/<model>`` identifiers to adapters.

A candidate list may mix providers, e.g. Gemini first and an OpenRouter
model as backup. The router is itself a ModelAdapter, so the fallback
orchestrator only ever talks to one object.
"""

from typing import Optional, Sequence

import structlog
from pydantic import ValidationError

from agentw.config import Settings, get_settings
from agentw.services.llm.base import (
    TEXT,
    GenerationFailedError,
    ModelAdapter,
    OutputContract,
    PromptPart,
    RawModelResponse,
    split_provider,
)
from agentw.services.llm.gemini import GeminiAdapter
from agentw.services.llm.openrouter import OpenRouterAdapter

logger = structlog.get_logger(__name__)


class ProviderRouter(ModelAdapter):
    name = "router"

    def __init__(self, adapters: dict[str, ModelAdapter]):
        self._adapters = {key.lower(): adapter for key, adapter in adapters.items()}

    @property
    def providers(self) -> list[str]:
        return sorted(self._adapters)

    def adapter_for(self, model_id: str) -> ModelAdapter:
        try:
            provider, _ = split_provider(model_id)
        except ValueError as e:
            raise GenerationFailedError(str(e), model_id=model_id) from e
        adapter = self._adapters.get(provider)
        if adapter is None:
            raise GenerationFailedError(
                f"No adapter configured for provider {provider!r}",
                model_id=model_id,
            )
        return adapter

    async def invoke(
        self,
        model_id: str,
        parts: Sequence[PromptPart],
        contract: OutputContract = TEXT,
    ) -> RawModelResponse:
        return await self.adapter_for(model_id).invoke(model_id, parts, contract)


def build_router(settings: Optional[Settings] = None) -> ProviderRouter:
    """
    Build a router with every provider that has credentials.

    A provider without an API key is left out; its candidates then fail
    fast inside the fallback chain instead of at startup.
    """
    settings = settings or get_settings()
    adapters: dict[str, ModelAdapter] = {}

    try:
        gemini = settings.gemini
        adapters[GeminiAdapter.name] = GeminiAdapter(
            api_key=gemini.api_key,
            temperature=gemini.temperature,
            max_tokens=gemini.max_tokens,
        )
    except ValidationError as e:
        logger.warning("provider_not_configured", provider="googleai", error=str(e))

    try:
        openrouter = settings.openrouter
        adapters[OpenRouterAdapter.name] = OpenRouterAdapter(
            api_key=openrouter.api_key,
            base_url=openrouter.base_url,
            temperature=openrouter.temperature,
            max_tokens=openrouter.max_tokens,
        )
    except ValidationError as e:
        logger.warning("provider_not_configured", provider="openrouter", error=str(e))

    return ProviderRouter(adapters)
