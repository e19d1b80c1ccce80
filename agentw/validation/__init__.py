"""Validation package."""

from agentw.validation.validator import (
    CategoryPolicy,
    CategoryRejectedError,
    ResultValidator,
    ValidationIssue,
    ValidationResult,
)

__all__ = [
    "CategoryPolicy",
    "CategoryRejectedError",
    "ResultValidator",
    "ValidationIssue",
    "ValidationResult",
]
