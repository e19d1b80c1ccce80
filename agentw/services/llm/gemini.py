"""
Google Gemini adapter.

DESIGN DECISION: Gemini is the primary provider because it is multimodal
(receipts go straight in as inline image parts) and can be told to answer
with ``application/json``. Remote image URLs are downloaded first and sent
inline, the same as data URIs.
"""

import time
from typing import Callable, Optional, Sequence

import google.generativeai as genai
import httpx
from google.generativeai import protos

from agentw.services.llm.base import (
    TEXT,
    GenerationFailedError,
    MediaPart,
    ModelAdapter,
    OutputContract,
    PromptPart,
    RawModelResponse,
    TextPart,
)


def _answer_text(response) -> Optional[str]:
    """
    Text of the first candidate.

    ``response.text`` raises on a candidate without parts. That is also
    what a normal STOP looks like when the model has nothing to say
    (OCR of a blank image), so that case is read as an empty answer.
    Blocked prompts and answers cut for SAFETY or RECITATION still raise.
    """
    feedback = getattr(response, "prompt_feedback", None)
    if feedback is not None and getattr(feedback, "block_reason", 0):
        raise ValueError(f"Prompt blocked: {feedback.block_reason!r}")

    candidates = getattr(response, "candidates", None)
    if candidates:
        candidate = candidates[0]
        if not candidate.content.parts:
            if candidate.finish_reason == protos.Candidate.FinishReason.STOP:
                return ""
            raise ValueError(f"No content, finish_reason {candidate.finish_reason!r}")
    return response.text


class GeminiAdapter(ModelAdapter):
    """Calls ``GenerativeModel.generate_content_async``."""

    name = "googleai"

    def __init__(
        self,
        api_key: Optional[str] = None,
        temperature: float = 0.1,
        max_tokens: int = 2048,
        model_factory: Optional[Callable[..., object]] = None,
        http_client: Optional[httpx.AsyncClient] = None,
    ):
        if model_factory is None:
            genai.configure(api_key=api_key)
            model_factory = genai.GenerativeModel
        self._model_factory = model_factory
        self._temperature = temperature
        self._max_tokens = max_tokens
        self._http_client = http_client

    def _generation_config(self, contract: OutputContract) -> dict:
        config = {
            "temperature": self._temperature,
            "max_output_tokens": self._max_tokens,
        }
        if contract.wants_json:
            config["response_mime_type"] = "application/json"
        return config

    async def _media_blob(self, part: MediaPart) -> dict:
        if part.is_data_uri:
            mime_type, data = part.decode()
            return {"mime_type": mime_type, "data": data}

        if self._http_client is not None:
            response = await self._http_client.get(part.url)
        else:
            async with httpx.AsyncClient(timeout=20.0) as client:
                response = await client.get(part.url)
        response.raise_for_status()
        mime_type = response.headers.get("content-type", "image/jpeg").split(";")[0]
        return {"mime_type": mime_type, "data": response.content}

    async def _contents(self, parts: Sequence[PromptPart]) -> list:
        contents = []
        for part in parts:
            if isinstance(part, TextPart):
                contents.append(part.text)
            else:
                contents.append(await self._media_blob(part))
        return contents

    async def invoke(
        self,
        model_id: str,
        parts: Sequence[PromptPart],
        contract: OutputContract = TEXT,
    ) -> RawModelResponse:
        model_name = model_id.removeprefix(f"{self.name}/")
        t0 = time.monotonic()

        try:
            contents = await self._contents(parts)
            model = self._model_factory(
                model_name=model_name,
                generation_config=self._generation_config(contract),
            )
            response = await model.generate_content_async(contents)
            text = _answer_text(response)
        except Exception as e:
            raise GenerationFailedError(
                f"Gemini call to {model_name} failed: {e}",
                model_id=model_id,
                cause=e,
            ) from e

        # An empty string is a valid answer (e.g. OCR on a blank image);
        # deciding whether it is acceptable is the caller's job.
        if text is None:
            raise GenerationFailedError(
                f"Empty response from {model_name}",
                model_id=model_id,
            )

        usage = getattr(response, "usage_metadata", None)
        return RawModelResponse(
            text=text,
            model_id=model_id,
            provider=self.name,
            prompt_tokens=getattr(usage, "prompt_token_count", 0) or 0,
            completion_tokens=getattr(usage, "candidates_token_count", 0) or 0,
            latency_ms=round((time.monotonic() - t0) * 1000, 2),
        )
