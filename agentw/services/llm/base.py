"""
Model Invocation Adapter contract.

Every provider is wrapped behind one call shape:

    await adapter.invoke(model_id, parts, contract) -> RawModelResponse

so the fallback orchestrator never needs to know whether a provider
speaks chat-completions, generate-content or something else.
"""

import abc
import base64
import binascii
import re
from dataclasses import dataclass, field
from typing import Any, Literal, Optional, Sequence, Union

from agentw.services.llm.json_tools import extract_json


class GenerationFailedError(Exception):
    """A provider call failed: transport, status, provider error or empty body."""

    def __init__(self, message: str, model_id: str = "", cause: Optional[BaseException] = None):
        self.model_id = model_id
        self.cause = cause
        super().__init__(message)


class MalformedOutputError(GenerationFailedError):
    """The provider answered, but not with the JSON that was asked for."""
    pass


@dataclass(frozen=True)
class TextPart:
    text: str


@dataclass(frozen=True)
class MediaPart:
    """An image given as a ``data:`` URI or a remote URL."""

    url: str

    @property
    def is_data_uri(self) -> bool:
        return self.url.startswith("data:")

    def decode(self) -> tuple[str, bytes]:
        """
        Split a base64 data URI into (mime_type, raw bytes).

        Raises:
            ValueError: If the URI is not a base64 data URI
        """
        match = _DATA_URI.match(self.url)
        if not match:
            raise ValueError("Not a base64 data URI")
        try:
            data = base64.b64decode(match.group("data"), validate=True)
        except binascii.Error as e:
            raise ValueError(f"Invalid base64 payload: {e}") from e
        return match.group("mime"), data


_DATA_URI = re.compile(r"^data:(?P<mime>[\w.+-]+/[\w.+-]+);base64,(?P<data>.+)$", re.DOTALL)

PromptPart = Union[TextPart, MediaPart]


@dataclass(frozen=True)
class OutputContract:
    """
    What kind of output the caller expects.

    ``schema`` is only informative for the adapter (some providers can be
    told to emit JSON); conformance is checked by the caller.
    """

    format: Literal["json", "text"] = "text"
    schema: Any = None

    @property
    def wants_json(self) -> bool:
        return self.format == "json"


TEXT = OutputContract(format="text")


@dataclass(frozen=True)
class RawModelResponse:
    """Immutable result returned by every adapter."""

    text: str
    model_id: str
    provider: str
    prompt_tokens: int = 0
    completion_tokens: int = 0
    latency_ms: float = 0.0
    raw: dict = field(default_factory=dict, compare=False, repr=False)

    def decode_json(self) -> Any:
        """
        Decode the JSON value carried by the text.

        Raises:
            MalformedOutputError: If no JSON value can be found
        """
        value = extract_json(self.text)
        if value is None:
            raise MalformedOutputError(
                f"Model {self.model_id} did not return JSON: {self.text[:200]!r}",
                model_id=self.model_id,
            )
        return value


class ModelAdapter(abc.ABC):
    """Contract that every provider adapter must implement."""

    name: str = "base"

    @abc.abstractmethod
    async def invoke(
        self,
        model_id: str,
        parts: Sequence[PromptPart],
        contract: OutputContract = TEXT,
    ) -> RawModelResponse:
        """
        Send the prompt parts to *model_id* and return its raw answer.

        Raises:
            GenerationFailedError: On any provider or transport failure,
                including a response that carries no content at all.
                An empty string is returned as-is. No retries happen here.
        """


def split_provider(model_id: str) -> tuple[str, str]:
    """``"googleai/gemini-1.5-flash"`` -> ``("googleai", "gemini-1.5-flash")``."""
    provider, sep, model = model_id.partition("/")
    if not sep or not model:
        raise ValueError(f"Model identifier must look like provider/model: {model_id!r}")
    return provider.lower(), model
