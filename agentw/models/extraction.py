"""
Core Data Models for Agent W

These models define the strict schemas for everything that flows through
the extraction pipeline:
1. What the caller asks for (ExtractionRequest)
2. What the model must answer (ExtractionResult and its actions)
3. What happened along the way (ModelAttempt)

DESIGN DECISION: The JSON field names of the result schema are camelCase
(``newBudgets``, ``targetAmount``...) because the model is prompted with
them and the web client consumes them unchanged. Python code uses
snake_case attributes; ``populate_by_name`` accepts both.
"""

from datetime import date, datetime
from decimal import Decimal
from typing import Annotated, Any, Literal, Optional

from pydantic import (
    AfterValidator,
    BaseModel,
    ConfigDict,
    Field,
    PlainSerializer,
    model_validator,
)

from agentw.models.categories import DEFAULT_VOCABULARY, CategoryVocabulary


DATE_PATTERN = r"^\d{4}-\d{2}-\d{2}$"


def _check_calendar_date(value: str) -> str:
    """Reject syntactically valid but impossible dates such as 2024-02-31."""
    datetime.strptime(value, "%Y-%m-%d")
    return value


# Decimals are emitted as JSON numbers so the web client gets the same
# shape the model produced.
PositiveAmount = Annotated[
    Decimal,
    Field(gt=0),
    PlainSerializer(float, return_type=float, when_used="json"),
]
NonNegativeAmount = Annotated[
    Decimal,
    Field(ge=0),
    PlainSerializer(float, return_type=float, when_used="json"),
]
TransactionDate = Annotated[
    str,
    Field(pattern=DATE_PATTERN),
    AfterValidator(_check_calendar_date),
]


# =============================================================================
# REQUEST
# =============================================================================

class ExtractionRequest(BaseModel):
    """
    Input of one extraction.

    Either an image (receipt, handwritten note, bank statement photo)
    or a piece of text. Immutable once constructed.
    """
    model_config = ConfigDict(frozen=True, str_strip_whitespace=True)

    kind: Literal["image", "text"]
    image_data_uri: Optional[str] = Field(
        default=None,
        description="data: URI or https URL of the image"
    )
    content: Optional[str] = Field(
        default=None,
        description="Free text typed or dictated by the user"
    )

    current_date: date = Field(
        default_factory=date.today,
        description="Used as the transaction date when the text has none"
    )
    currency: str = Field(
        default="XOF",
        min_length=3,
        max_length=3,
    )
    vocabulary: CategoryVocabulary = DEFAULT_VOCABULARY

    # Existing user objects, so the model can route contributions
    existing_goals: tuple[str, ...] = ()
    existing_budgets: tuple[str, ...] = ()

    @model_validator(mode='after')
    def check_payload(self) -> 'ExtractionRequest':
        if self.kind == "image" and not self.image_data_uri:
            raise ValueError("An image request needs image_data_uri")
        if self.kind == "text" and not self.content:
            raise ValueError("A text request needs non-blank content")
        return self

    @classmethod
    def from_image(cls, image_data_uri: str, **context: Any) -> 'ExtractionRequest':
        return cls(kind="image", image_data_uri=image_data_uri, **context)

    @classmethod
    def from_text(cls, content: str, **context: Any) -> 'ExtractionRequest':
        return cls(kind="text", content=content, **context)


# =============================================================================
# EXTRACTED ACTIONS
# =============================================================================

class _Action(BaseModel):
    model_config = ConfigDict(
        populate_by_name=True,
        str_strip_whitespace=True,
    )


class Transaction(_Action):
    """An income or an expense. The date is required."""

    description: str = Field(..., min_length=1)
    amount: PositiveAmount
    category: str = Field(..., min_length=1)
    date: TransactionDate


class NewBudget(_Action):
    """A budget the user asked to create."""

    name: str = Field(..., min_length=1)
    amount: PositiveAmount
    category: str = Field(..., min_length=1)


class NewSavingsGoal(_Action):
    """A savings goal the user asked to create."""

    name: str = Field(..., min_length=1)
    target_amount: PositiveAmount = Field(..., alias="targetAmount")
    current_amount: NonNegativeAmount = Field(
        default=Decimal("0"),
        alias="currentAmount",
    )
    emoji: Optional[str] = None


class SavingsContribution(_Action):
    """Money added to an existing savings goal."""

    goal_name: str = Field(..., min_length=1, alias="goalName")
    amount: PositiveAmount


# =============================================================================
# RESULT
# =============================================================================

RESULT_FIELDS = (
    ("incomes", "incomes"),
    ("expenses", "expenses"),
    ("new_budgets", "newBudgets"),
    ("new_savings_goals", "newSavingsGoals"),
    ("savings_contributions", "savingsContributions"),
)


class ExtractionResult(_Action):
    """
    Everything Agent W found in one input.

    All five sequences are always present. Missing or null fields
    default to an empty list, and placeholder ``{}`` entries are dropped:
    the model is told never to produce them, but compliance is not
    assumed.
    """

    incomes: list[Transaction] = Field(default_factory=list)
    expenses: list[Transaction] = Field(default_factory=list)
    new_budgets: list[NewBudget] = Field(
        default_factory=list,
        alias="newBudgets",
    )
    new_savings_goals: list[NewSavingsGoal] = Field(
        default_factory=list,
        alias="newSavingsGoals",
    )
    savings_contributions: list[SavingsContribution] = Field(
        default_factory=list,
        alias="savingsContributions",
    )

    @model_validator(mode='before')
    @classmethod
    def normalize_sequences(cls, data: Any) -> Any:
        if not isinstance(data, dict):
            return data
        cleaned = dict(data)
        for name, alias in RESULT_FIELDS:
            for key in (alias, name):
                if key not in cleaned:
                    continue
                value = cleaned[key]
                if value is None:
                    cleaned[key] = []
                elif isinstance(value, list):
                    cleaned[key] = [item for item in value if item != {}]
        return cleaned

    @classmethod
    def empty(cls) -> 'ExtractionResult':
        return cls()

    @property
    def action_count(self) -> int:
        return sum(len(getattr(self, name)) for name, _ in RESULT_FIELDS)

    @property
    def is_empty(self) -> bool:
        return self.action_count == 0

    def to_payload(self) -> dict:
        """JSON-ready dict with the camelCase field names."""
        return self.model_dump(mode="json", by_alias=True)


# =============================================================================
# SINGLE-PURPOSE OUTPUTS
# =============================================================================

class ReceiptExtraction(_Action):
    """Narrow single-receipt shape used by the quick expense form."""

    merchant: str = Field(..., min_length=1)
    amount: PositiveAmount
    date: TransactionDate
    suggested_category: str = Field(..., min_length=1, alias="suggestedCategory")


class CategorySuggestion(_Action):
    """AI's suggestion for an expense category."""

    category: str = Field(..., min_length=1)
    confidence: float = Field(ge=0.0, le=1.0)


class FinancialSummary(_Action):
    """Short encouraging summary plus one piece of advice."""

    summary: str = Field(..., min_length=1)
    advice: str = Field(..., min_length=1)


# =============================================================================
# ASSISTANT CHAT
# =============================================================================

class ChatMessage(_Action):
    """
    One earlier turn of the assistant conversation.

    Also accepts the chat client's shape,
    ``{"role": "model", "content": [{"text": "..."}]}``.
    """

    role: Literal["user", "model"]
    text: str

    @model_validator(mode="before")
    @classmethod
    def join_content_parts(cls, data: Any) -> Any:
        if isinstance(data, dict) and "text" not in data and "content" in data:
            content = data["content"]
            if isinstance(content, list):
                content = "".join(
                    part.get("text") or "" for part in content if isinstance(part, dict)
                )
            data = {**data, "text": content}
        return data


class AssistantAnswer(_Action):
    answer: str = Field(..., min_length=1)


# =============================================================================
# DIAGNOSTICS
# =============================================================================

class ModelAttempt(BaseModel):
    """
    One try of one candidate model.

    Never persisted. Kept for the lifetime of a request for logging and
    attached to AllModelsFailedError when every candidate fails.
    """

    model_id: str
    succeeded: bool
    error: Optional[str] = None
    error_type: Optional[str] = None
    latency_ms: float = Field(default=0.0, ge=0.0)
