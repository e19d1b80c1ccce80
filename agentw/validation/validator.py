"""
Post-Generation Validation

DESIGN DECISION: Validation happens in two distinct stages:

STAGE 1 - SCHEMA VALIDATION (pydantic, see models.extraction):
- Required fields, positive amounts, YYYY-MM-DD calendar dates
- A failure here fails the candidate and the next model is tried

STAGE 2 - VOCABULARY / SEMANTIC REVIEW (this module):
- Categories outside the applicable vocabulary
- Transaction dates far in the future

The model is only *instructed* to stay within the vocabulary. What to do
when it does not is a policy choice:
- permissive: keep the result, report the issues (default)
- correct:    replace the category with the fallback label ("Autre")
- reject:     raise, which fails the candidate like a schema error
"""

from datetime import date, timedelta
from enum import Enum
from typing import Optional

import structlog
from pydantic import BaseModel, Field

from agentw.models.categories import DEFAULT_VOCABULARY, CategoryVocabulary
from agentw.models.extraction import ExtractionResult

logger = structlog.get_logger(__name__)


class CategoryPolicy(str, Enum):
    PERMISSIVE = "permissive"
    CORRECT = "correct"
    REJECT = "reject"


class ValidationIssue(BaseModel):
    """A single validation issue found."""

    field: str = Field(
        ...,
        description="Path of the offending value, e.g. expenses[0].category"
    )
    issue_type: str = Field(
        ...,
        description="Type of issue (e.g., 'unknown_category', 'future_date')"
    )
    message: str
    severity: str = Field(
        ...,
        pattern="^(error|warning|info)$",
    )
    suggested_fix: Optional[str] = None


class ValidationResult(BaseModel):
    """Outcome of the vocabulary / semantic review."""

    issues: list[ValidationIssue] = Field(default_factory=list)

    @property
    def is_valid(self) -> bool:
        return not self.has_errors

    @property
    def has_errors(self) -> bool:
        return any(issue.severity == "error" for issue in self.issues)

    @property
    def error_count(self) -> int:
        return sum(1 for issue in self.issues if issue.severity == "error")

    def as_dicts(self) -> list[dict]:
        return [issue.model_dump() for issue in self.issues]


class CategoryRejectedError(ValueError):
    """Raised under the reject policy. The candidate counts as failed."""

    def __init__(self, report: ValidationResult):
        self.report = report
        fields = ", ".join(i.field for i in report.issues if i.severity == "error")
        super().__init__(f"Categories outside the vocabulary: {fields}")


# (result field, vocabulary kind)
_CATEGORIZED = (
    ("incomes", "income"),
    ("expenses", "expense"),
    ("new_budgets", "expense"),
)


class ResultValidator:
    """
    Reviews an ExtractionResult against a category vocabulary.

    This is the extension point for stricter handling of model output:
    pass ``policy=CategoryPolicy.REJECT`` to make an out-of-vocabulary
    category fail the candidate.
    """

    def __init__(
        self,
        vocabulary: CategoryVocabulary = DEFAULT_VOCABULARY,
        policy: CategoryPolicy = CategoryPolicy.PERMISSIVE,
        future_date_tolerance_days: int = 7,
    ):
        self._vocabulary = vocabulary
        self._policy = CategoryPolicy(policy)
        self._future_tolerance = timedelta(days=future_date_tolerance_days)

    @property
    def policy(self) -> CategoryPolicy:
        return self._policy

    def for_vocabulary(self, vocabulary: CategoryVocabulary) -> "ResultValidator":
        if vocabulary == self._vocabulary:
            return self
        return ResultValidator(
            vocabulary,
            self._policy,
            future_date_tolerance_days=self._future_tolerance.days,
        )

    def check(
        self,
        result: ExtractionResult,
        current_date: Optional[date] = None,
    ) -> ValidationResult:
        issues = []

        for field_name, kind in _CATEGORIZED:
            for index, item in enumerate(getattr(result, field_name)):
                if self._vocabulary.contains(kind, item.category):
                    continue
                issues.append(ValidationIssue(
                    field=f"{field_name}[{index}].category",
                    issue_type="unknown_category",
                    message=f"{item.category!r} is not a known {kind} category",
                    severity="error",
                    suggested_fix=self._vocabulary.fallback,
                ))

        if current_date is not None:
            limit = current_date + self._future_tolerance
            for field_name in ("incomes", "expenses"):
                for index, item in enumerate(getattr(result, field_name)):
                    if date.fromisoformat(item.date) > limit:
                        issues.append(ValidationIssue(
                            field=f"{field_name}[{index}].date",
                            issue_type="future_date",
                            message=f"{item.date} is more than {self._future_tolerance.days} days ahead",
                            severity="warning",
                        ))

        return ValidationResult(issues=issues)

    def _corrected(self, result: ExtractionResult) -> ExtractionResult:
        updates = {}
        for field_name, kind in _CATEGORIZED:
            updates[field_name] = [
                item if self._vocabulary.contains(kind, item.category)
                else item.model_copy(update={"category": self._vocabulary.fallback})
                for item in getattr(result, field_name)
            ]
        return result.model_copy(update=updates)

    def review(
        self,
        result: ExtractionResult,
        current_date: Optional[date] = None,
    ) -> tuple[ExtractionResult, ValidationResult]:
        """
        Apply the policy.

        Returns:
            (possibly corrected result, report)

        Raises:
            CategoryRejectedError: Under the reject policy when a
                category is outside the vocabulary
        """
        report = self.check(result, current_date)
        if not report.issues:
            return result, report

        logger.warning(
            "extraction_review_issues",
            policy=self._policy.value,
            issues=report.as_dicts(),
        )

        if not report.has_errors or self._policy == CategoryPolicy.PERMISSIVE:
            return result, report
        if self._policy == CategoryPolicy.CORRECT:
            return self._corrected(result), report
        raise CategoryRejectedError(report)
