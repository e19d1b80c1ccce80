"""LLM provider adapters."""

from agentw.services.llm.base import (
    TEXT,
    GenerationFailedError,
    MalformedOutputError,
    MediaPart,
    ModelAdapter,
    OutputContract,
    PromptPart,
    RawModelResponse,
    TextPart,
    split_provider,
)
from agentw.services.llm.gemini import GeminiAdapter
from agentw.services.llm.json_tools import extract_json
from agentw.services.llm.openrouter import OpenRouterAdapter
from agentw.services.llm.router import ProviderRouter, build_router

__all__ = [
    "TEXT",
    "GeminiAdapter",
    "GenerationFailedError",
    "MalformedOutputError",
    "MediaPart",
    "ModelAdapter",
    "OpenRouterAdapter",
    "OutputContract",
    "PromptPart",
    "ProviderRouter",
    "RawModelResponse",
    "TextPart",
    "build_router",
    "extract_json",
    "split_provider",
]
