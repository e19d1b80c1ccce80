"""OpenRouter adapter (OpenAI-compatible chat completions over httpx)."""

import time
from typing import Optional, Sequence

import httpx

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


def _message_text(choices) -> Optional[str]:
    """Content of the first choice; None when there is none."""
    if not isinstance(choices, list) or not choices or not isinstance(choices[0], dict):
        return None
    message = choices[0].get("message")
    if not isinstance(message, dict):
        return None

    content = message.get("content")
    if content is None or isinstance(content, str):
        return content
    # Some upstreams answer with OpenAI-style content parts
    if isinstance(content, list):
        return "".join(
            part.get("text") or ""
            for part in content
            if isinstance(part, dict) and part.get("type") == "text"
        )
    raise ValueError(f"Unsupported message content: {type(content).__name__}")


class OpenRouterAdapter(ModelAdapter):
    name = "openrouter"

    def __init__(
        self,
        api_key: str,
        base_url: str = "https://openrouter.ai/api/v1",
        temperature: float = 0.2,
        max_tokens: int = 1500,
        http_client: Optional[httpx.AsyncClient] = None,
    ):
        self._api_key = api_key
        self._base_url = base_url.rstrip("/")
        self._temperature = temperature
        self._max_tokens = max_tokens
        self._http_client = http_client

    @staticmethod
    def _messages(parts: Sequence[PromptPart]) -> list[dict]:
        # Vision models want a content array; text-only models get a plain string.
        if not any(isinstance(p, MediaPart) for p in parts):
            text = "\n\n".join(p.text for p in parts if isinstance(p, TextPart))
            return [{"role": "user", "content": text}]

        content = []
        for part in parts:
            if isinstance(part, TextPart):
                content.append({"type": "text", "text": part.text})
            else:
                content.append({"type": "image_url", "image_url": {"url": part.url}})
        return [{"role": "user", "content": content}]

    def _payload(self, model_name: str, parts: Sequence[PromptPart], contract: OutputContract) -> dict:
        payload = {
            "model": model_name,
            "messages": self._messages(parts),
            "temperature": self._temperature,
            "max_tokens": self._max_tokens,
            "stream": False,
        }
        if contract.wants_json:
            payload["response_format"] = {"type": "json_object"}
        return payload

    async def _post(self, payload: dict) -> httpx.Response:
        url = f"{self._base_url}/chat/completions"
        headers = {
            "Authorization": f"Bearer {self._api_key}",
            "Content-Type": "application/json",
        }
        if self._http_client is not None:
            return await self._http_client.post(url, headers=headers, json=payload)
        async with httpx.AsyncClient(timeout=60.0) as client:
            return await client.post(url, headers=headers, json=payload)

    async def invoke(
        self,
        model_id: str,
        parts: Sequence[PromptPart],
        contract: OutputContract = TEXT,
    ) -> RawModelResponse:
        model_name = model_id.removeprefix(f"{self.name}/")
        t0 = time.monotonic()

        try:
            resp = await self._post(self._payload(model_name, parts, contract))
            resp.raise_for_status()
            data = resp.json()
        except (httpx.HTTPError, ValueError) as e:
            raise GenerationFailedError(
                f"OpenRouter call to {model_name} failed: {e}",
                model_id=model_id,
                cause=e,
            ) from e

        if not isinstance(data, dict):
            raise GenerationFailedError(
                f"Unexpected response body from {model_name}: {type(data).__name__}",
                model_id=model_id,
            )

        # OpenRouter reports some upstream failures with a 200 and an error body
        if data.get("error"):
            raise GenerationFailedError(
                f"OpenRouter error for {model_name}: {data['error']}",
                model_id=model_id,
            )

        try:
            text = _message_text(data.get("choices"))
        except ValueError as e:
            raise GenerationFailedError(
                f"OpenRouter answer from {model_name} is unusable: {e}",
                model_id=model_id,
                cause=e,
            ) from e
        if text is None:
            raise GenerationFailedError(
                f"Empty response from {model_name}",
                model_id=model_id,
            )

        usage = data.get("usage") or {}
        return RawModelResponse(
            text=text,
            model_id=model_id,
            provider=self.name,
            prompt_tokens=usage.get("prompt_tokens", 0),
            completion_tokens=usage.get("completion_tokens", 0),
            latency_ms=round((time.monotonic() - t0) * 1000, 2),
            raw=data,
        )
