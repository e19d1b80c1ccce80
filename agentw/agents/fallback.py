"""
Fallback Orchestrator

Tries an ordered list of candidate models until one produces an
acceptable answer.

DESIGN DECISION: Strict ordered fallback.
- Candidates are tried one at a time, in list order, never raced
- No retry of the same candidate, no backoff
- "Acceptable" means non-empty, and for JSON contracts: decodable AND
  valid against the schema. A schema failure is a candidate failure.
- Each try is bounded by a per-attempt timeout, so the worst case is
  len(candidates) * attempt_timeout

Every failed attempt is kept; when all candidates fail, the single error
raised carries all of them, not only the last one.
"""

import asyncio
import time
from dataclasses import dataclass, field
from typing import Any, Callable, Generic, Optional, Sequence, TypeVar, Union
from uuid import UUID

import structlog
from pydantic import BaseModel

from agentw.audit import AuditLogger
from agentw.models.extraction import ModelAttempt
from agentw.services.llm import (
    TEXT,
    GenerationFailedError,
    ModelAdapter,
    OutputContract,
    PromptPart,
    RawModelResponse,
)

logger = structlog.get_logger(__name__)

T = TypeVar("T")

Validator = Union[type[BaseModel], Callable[[Any], Any]]


class AllModelsFailedError(Exception):
    """Every candidate model failed. Carries each attempt for diagnosis."""

    def __init__(self, attempts: list[ModelAttempt], last_error: Optional[BaseException]):
        self.attempts = attempts
        self.last_error = last_error
        super().__init__(
            "All AI models failed to generate a response. "
            f"Last error: {_describe(last_error)}"
        )

    @property
    def errors(self) -> dict[str, Optional[str]]:
        return {a.model_id: a.error for a in self.attempts}


@dataclass(frozen=True)
class FallbackResult(Generic[T]):
    """The accepted value plus which model produced it."""

    value: T
    model_id: str
    response: RawModelResponse
    attempts: list[ModelAttempt] = field(default_factory=list)


def _describe(error: Optional[BaseException]) -> str:
    if error is None:
        return "none"
    message = str(error)
    return f"{type(error).__name__}: {message}" if message else type(error).__name__


def _apply_validator(validator: Optional[Validator], value: Any) -> Any:
    if validator is None:
        return value
    if isinstance(validator, type) and issubclass(validator, BaseModel):
        return validator.model_validate(value)
    return validator(value)


class FallbackOrchestrator:
    """
    Ordered fallback over candidate model identifiers.

    Candidates are injected, never read from a module constant, so tests
    and callers control the exact order.
    """

    def __init__(
        self,
        adapter: ModelAdapter,
        candidates: Sequence[str],
        attempt_timeout: float = 30.0,
        audit_logger: Optional[AuditLogger] = None,
    ):
        if not candidates:
            raise ValueError("FallbackOrchestrator needs at least one candidate model")
        if attempt_timeout <= 0:
            raise ValueError("attempt_timeout must be positive")
        self._adapter = adapter
        self._candidates = tuple(candidates)
        self._attempt_timeout = attempt_timeout
        self._audit_logger = audit_logger

    @property
    def candidates(self) -> tuple[str, ...]:
        return self._candidates

    def with_candidates(self, candidates: Sequence[str]) -> "FallbackOrchestrator":
        """Same adapter, timeout and audit logger; different candidates."""
        return FallbackOrchestrator(
            self._adapter,
            candidates,
            attempt_timeout=self._attempt_timeout,
            audit_logger=self._audit_logger,
        )

    def _accept(
        self,
        response: RawModelResponse,
        contract: OutputContract,
        validator: Optional[Validator],
        allow_empty: bool = False,
    ) -> Any:
        if not response.text.strip() and not (allow_empty and not contract.wants_json):
            raise GenerationFailedError(
                f"Empty response from {response.model_id}",
                model_id=response.model_id,
            )
        if contract.wants_json:
            payload = response.decode_json()
            return _apply_validator(validator or contract.schema, payload)
        return _apply_validator(validator, response.text.strip())

    async def _invoke(
        self,
        model_id: str,
        parts: Sequence[PromptPart],
        contract: OutputContract,
    ) -> RawModelResponse:
        try:
            return await asyncio.wait_for(
                self._adapter.invoke(model_id, parts, contract),
                timeout=self._attempt_timeout,
            )
        except asyncio.TimeoutError as e:
            raise GenerationFailedError(
                f"Model {model_id} timed out after {self._attempt_timeout}s",
                model_id=model_id,
                cause=e,
            ) from e

    async def generate(
        self,
        parts: Sequence[PromptPart],
        contract: OutputContract = TEXT,
        validator: Optional[Validator] = None,
        correlation_id: Optional[UUID] = None,
        allow_empty: bool = False,
    ) -> FallbackResult:
        """
        Try each candidate in order and return the first acceptable answer.

        Args:
            parts: Prompt parts sent unchanged to every candidate
            contract: Text or JSON output contract
            validator: Pydantic model class or callable applied to the
                decoded value; overrides ``contract.schema``
            correlation_id: Request correlation ID for audit events
            allow_empty: Accept a blank text answer (OCR of an image
                without text). Never applies to JSON contracts.

        Raises:
            AllModelsFailedError: If every candidate failed
        """
        attempts: list[ModelAttempt] = []
        last_error: Optional[BaseException] = None

        for model_id in self._candidates:
            t0 = time.monotonic()
            logger.debug("model_attempt_started", model_id=model_id)
            try:
                response = await self._invoke(model_id, parts, contract)
                value = self._accept(response, contract, validator, allow_empty)
            except Exception as e:
                latency = round((time.monotonic() - t0) * 1000, 2)
                last_error = e
                attempts.append(ModelAttempt(
                    model_id=model_id,
                    succeeded=False,
                    error=_describe(e),
                    error_type=type(e).__name__,
                    latency_ms=latency,
                ))
                logger.warning(
                    "model_attempt_failed",
                    model_id=model_id,
                    error=_describe(e),
                    latency_ms=latency,
                )
                if self._audit_logger:
                    await self._audit_logger.log_model_attempt_failed(
                        model_id=model_id,
                        error_message=_describe(e),
                        correlation_id=correlation_id,
                    )
                continue

            latency = round((time.monotonic() - t0) * 1000, 2)
            attempts.append(ModelAttempt(
                model_id=model_id,
                succeeded=True,
                latency_ms=latency,
            ))
            logger.info(
                "model_attempt_succeeded",
                model_id=model_id,
                latency_ms=latency,
                failed_before=len(attempts) - 1,
            )
            return FallbackResult(
                value=value,
                model_id=model_id,
                response=response,
                attempts=attempts,
            )

        logger.error(
            "all_models_failed",
            candidates=list(self._candidates),
            last_error=_describe(last_error),
        )
        if self._audit_logger:
            await self._audit_logger.log_all_models_failed(
                attempts=[a.model_dump() for a in attempts],
                correlation_id=correlation_id,
            )
        raise AllModelsFailedError(attempts, last_error) from last_error
