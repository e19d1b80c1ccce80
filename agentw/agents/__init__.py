"""AI Agents package."""

from agentw.agents.ai_agents import (
    AgentW,
    CategorizationAgent,
    ExpenseAssistantAgent,
    ExtractionFailedError,
    FinancialSummaryAgent,
    OCRAgent,
    ReceiptAgent,
    Transcription,
    describe_result,
)
from agentw.agents.fallback import (
    AllModelsFailedError,
    FallbackOrchestrator,
    FallbackResult,
)

__all__ = [
    "AgentW",
    "AllModelsFailedError",
    "CategorizationAgent",
    "ExpenseAssistantAgent",
    "ExtractionFailedError",
    "FallbackOrchestrator",
    "FallbackResult",
    "FinancialSummaryAgent",
    "OCRAgent",
    "ReceiptAgent",
    "Transcription",
    "describe_result",
]
