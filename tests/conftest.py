"""
Shared test doubles.

No test talks to a real provider: model answers are scripted per model
identifier on a StubAdapter.
"""

import asyncio
import json
from dataclasses import dataclass

import pytest

from agentw.audit import AuditLogger, InMemoryAuditSink
from agentw.services.llm import (
    TEXT,
    GenerationFailedError,
    ModelAdapter,
    RawModelResponse,
)


@dataclass
class Slow:
    """Answer *text* after *seconds*."""
    seconds: float
    text: str = "late"


class StubAdapter(ModelAdapter):
    """
    Scripted adapter.

    ``script`` maps a model id to a text answer, an exception to raise,
    a Slow answer, or a list of those consumed one call at a time.
    Dicts and lists of dicts are sent as JSON. Unscripted models fail.
    """

    name = "stub"

    def __init__(self, script=None):
        self.script = dict(script or {})
        self.calls = []

    def called_models(self) -> list[str]:
        return [model_id for model_id, _, _ in self.calls]

    async def invoke(self, model_id, parts, contract=TEXT):
        self.calls.append((model_id, list(parts), contract))
        if model_id not in self.script:
            raise GenerationFailedError(f"unscripted model {model_id}", model_id=model_id)

        outcome = self.script[model_id]
        if isinstance(outcome, list) and outcome and not isinstance(outcome[0], dict):
            outcome = outcome.pop(0)

        if isinstance(outcome, BaseException):
            raise outcome
        if isinstance(outcome, Slow):
            await asyncio.sleep(outcome.seconds)
            outcome = outcome.text
        if isinstance(outcome, (dict, list)):
            outcome = json.dumps(outcome)

        return RawModelResponse(text=outcome, model_id=model_id, provider=self.name)


@pytest.fixture
def sink():
    return InMemoryAuditSink()


@pytest.fixture
def audit_logger(sink):
    return AuditLogger(sink)


@pytest.fixture
def stub_adapter():
    """Factory: ``stub_adapter({"stub/a": "answer"})``."""
    return StubAdapter


@pytest.fixture
def slow():
    return Slow
