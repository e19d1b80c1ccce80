"""Configuration package."""

from agentw.config.settings import (
    GeminiSettings,
    OpenRouterSettings,
    PipelineSettings,
    Settings,
    get_settings,
    validate_all_settings,
)

__all__ = [
    "GeminiSettings",
    "OpenRouterSettings",
    "PipelineSettings",
    "Settings",
    "get_settings",
    "validate_all_settings",
]
