"""
Data Models Package

This package contains all Pydantic models used by Agent W.
All data flowing through the pipeline must conform to these schemas.
"""

from agentw.models.audit import (
    AuditEvent,
    AuditEventBuilder,
    AuditEventType,
    AuditSeverity,
)
from agentw.models.categories import (
    DEFAULT_VOCABULARY,
    EXPENSE_CATEGORIES,
    FALLBACK_CATEGORY,
    INCOME_CATEGORIES,
    Category,
    CategoryVocabulary,
)
from agentw.models.extraction import (
    AssistantAnswer,
    CategorySuggestion,
    ChatMessage,
    ExtractionRequest,
    ExtractionResult,
    FinancialSummary,
    ModelAttempt,
    NewBudget,
    NewSavingsGoal,
    ReceiptExtraction,
    SavingsContribution,
    Transaction,
)

__all__ = [
    # Audit models
    "AuditEvent",
    "AuditEventBuilder",
    "AuditEventType",
    "AuditSeverity",
    # Vocabulary
    "DEFAULT_VOCABULARY",
    "EXPENSE_CATEGORIES",
    "FALLBACK_CATEGORY",
    "INCOME_CATEGORIES",
    "Category",
    "CategoryVocabulary",
    # Extraction models
    "AssistantAnswer",
    "CategorySuggestion",
    "ChatMessage",
    "ExtractionRequest",
    "ExtractionResult",
    "FinancialSummary",
    "ModelAttempt",
    "NewBudget",
    "NewSavingsGoal",
    "ReceiptExtraction",
    "SavingsContribution",
    "Transaction",
]
