"""Services package."""

from agentw.services.llm import (
    GeminiAdapter,
    GenerationFailedError,
    MalformedOutputError,
    ModelAdapter,
    OpenRouterAdapter,
    ProviderRouter,
    build_router,
)

__all__ = [
    "GeminiAdapter",
    "GenerationFailedError",
    "MalformedOutputError",
    "ModelAdapter",
    "OpenRouterAdapter",
    "ProviderRouter",
    "build_router",
]
