"""
Configuration Management for Agent W

Uses pydantic-settings for type-safe configuration from environment variables.

DESIGN DECISION: All configuration is centralized here.
Model priority lists live in settings rather than in module constants, so
every caller (and every test) can inject its own ordered candidates.
"""

from functools import lru_cache

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


def _split_models(value: str) -> list[str]:
    return [item.strip() for item in value.split(",") if item.strip()]


class GeminiSettings(BaseSettings):
    """Google Gemini configuration."""

    model_config = SettingsConfigDict(
        env_prefix="GEMINI_",
        extra="ignore"
    )

    api_key: str = Field(
        ...,
        description="Gemini API key"
    )
    max_tokens: int = Field(
        default=2048,
        ge=100,
        le=8192,
        description="Maximum tokens in response"
    )
    temperature: float = Field(
        default=0.1,
        ge=0.0,
        le=1.0,
        description="Model temperature (lower = more deterministic)"
    )


class OpenRouterSettings(BaseSettings):
    """OpenRouter (OpenAI-compatible chat completions) configuration."""

    model_config = SettingsConfigDict(
        env_prefix="OPENROUTER_",
        extra="ignore"
    )

    api_key: str = Field(
        ...,
        description="OpenRouter API key"
    )
    base_url: str = Field(
        default="https://openrouter.ai/api/v1",
        description="Base URL of the chat completions API"
    )
    max_tokens: int = Field(
        default=1500,
        ge=100,
        le=8192,
    )
    temperature: float = Field(
        default=0.2,
        ge=0.0,
        le=1.0,
    )


class PipelineSettings(BaseSettings):
    """
    Extraction pipeline settings.

    Model lists are comma-separated identifiers of the form
    ``<provider>/<model>``, tried in the order given.
    """

    model_config = SettingsConfigDict(
        env_prefix="AGENTW_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore"
    )

    ocr_models: str = Field(
        default="googleai/gemini-1.5-flash",
        description="Models used to transcribe images (usually one)"
    )
    extraction_models: str = Field(
        default=(
            "googleai/gemini-1.5-flash,"
            "openrouter/mistralai/mistral-7b-instruct:free,"
            "openrouter/openai/gpt-3.5-turbo"
        ),
        description="Models used by Agent W, in priority order"
    )
    text_models: str = Field(
        default=(
            "openrouter/mistralai/mistral-7b-instruct:free,"
            "openrouter/google/gemma-7b-it:free,"
            "openrouter/openai/gpt-3.5-turbo"
        ),
        description="Models used for plain completions (categorization, summaries)"
    )
    vision_models: str = Field(
        default="openrouter/openai/gpt-4o-2024-05-13,googleai/gemini-1.5-flash",
        description="Models used for single-receipt extraction"
    )

    attempt_timeout_seconds: float = Field(
        default=30.0,
        gt=0,
        le=300,
        description="Upper bound for a single model attempt"
    )
    default_currency: str = Field(
        default="XOF",
        min_length=3,
        max_length=3,
    )
    category_policy: str = Field(
        default="permissive",
        description="What to do with out-of-vocabulary categories: permissive, correct, reject"
    )
    max_input_chars: int = Field(
        default=20000,
        ge=100,
        description="Longer inputs are truncated before prompting"
    )

    @field_validator('category_policy')
    @classmethod
    def validate_policy(cls, v: str) -> str:
        v = v.strip().lower()
        if v not in {"permissive", "correct", "reject"}:
            raise ValueError(f"Unknown category policy: {v}")
        return v

    @property
    def ocr_model_list(self) -> list[str]:
        return _split_models(self.ocr_models)

    @property
    def extraction_model_list(self) -> list[str]:
        return _split_models(self.extraction_models)

    @property
    def text_model_list(self) -> list[str]:
        return _split_models(self.text_models)

    @property
    def vision_model_list(self) -> list[str]:
        return _split_models(self.vision_models)


class Settings(BaseSettings):
    """
    Root settings container.

    Aggregates all sub-settings for easy access.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore"
    )

    # Sub-settings are loaded lazily so a deployment may configure
    # only one provider.

    @property
    def gemini(self) -> GeminiSettings:
        return GeminiSettings()

    @property
    def openrouter(self) -> OpenRouterSettings:
        return OpenRouterSettings()

    @property
    def pipeline(self) -> PipelineSettings:
        return PipelineSettings()


@lru_cache()
def get_settings() -> Settings:
    """
    Get application settings (cached).

    Call get_settings.cache_clear() to reload if needed.
    """
    return Settings()


def validate_all_settings() -> dict[str, bool]:
    """
    Validate all settings are properly configured.

    Returns a dict of {setting_name: is_valid}, plus an
    ``<name>_error`` entry for each failure. Useful for startup checks.
    """
    results = {}
    settings = get_settings()

    for name in ("gemini", "openrouter", "pipeline"):
        try:
            getattr(settings, name)
            results[name] = True
        except Exception as e:
            results[name] = False
            results[f"{name}_error"] = str(e)

    return results
