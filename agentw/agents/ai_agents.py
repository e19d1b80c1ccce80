"""
AI Agents for Agent W

Every agent is a thin, typed wrapper around a FallbackOrchestrator:
it builds the prompt, states the output contract, and validates what
comes back. No agent parses financial text itself.

CRITICAL BOUNDARIES:

1. OCR AGENT:
   - CAN: Transcribe an image verbatim
   - An empty transcription is a valid answer, not an error

2. AGENT W (structured extraction):
   - CAN: Turn text into incomes, expenses, budgets, goals, contributions
   - MUST: Return all five lists, validated against the schema
   - CANNOT: Substitute an empty result when the models fail

3. RECEIPT / CATEGORIZATION / SUMMARY AGENTS:
   - Narrow single-purpose helpers used by the quick-entry forms
     and the dashboard

4. EXPENSE ASSISTANT (Wise):
   - CAN: Explain budgeting, saving and debt in the user's language
   - CANNOT: Give investment advice

The LLM is a PARSER, not a source of truth about the user's money.
Everything it returns is a proposal the user confirms before saving.
"""

from dataclasses import dataclass
from datetime import date
from decimal import Decimal
from typing import Optional, Sequence, Union
from uuid import UUID

import structlog

from agentw.agents import prompts
from agentw.agents.fallback import (
    AllModelsFailedError,
    FallbackOrchestrator,
    FallbackResult,
)
from agentw.audit import AuditLogger
from agentw.models.categories import DEFAULT_VOCABULARY, CategoryVocabulary
from agentw.models.extraction import (
    AssistantAnswer,
    CategorySuggestion,
    ChatMessage,
    ExtractionResult,
    FinancialSummary,
    ModelAttempt,
    ReceiptExtraction,
)
from agentw.services.llm import MediaPart, OutputContract, TextPart
from agentw.validation import ResultValidator, ValidationResult

logger = structlog.get_logger(__name__)


USER_FAILURE_MESSAGES = {
    "fr": "Le traitement a échoué. Veuillez réessayer.",
    "en": "Processing failed. Please try again.",
}


class ExtractionFailedError(Exception):
    """
    Terminal failure of an agent or of the pipeline.

    The message is for logs. Show ``user_message()`` to the user: raw
    provider errors never reach the UI.
    """

    def __init__(
        self,
        message: str,
        stage: str,
        attempts: Optional[list[ModelAttempt]] = None,
    ):
        self.stage = stage
        self.attempts = attempts or []
        super().__init__(message)

    def user_message(self, locale: str = "fr") -> str:
        return USER_FAILURE_MESSAGES.get(locale[:2].lower(), USER_FAILURE_MESSAGES["fr"])


def _failed(stage: str, error: AllModelsFailedError) -> ExtractionFailedError:
    return ExtractionFailedError(
        f"{stage} failed: {error}",
        stage=stage,
        attempts=error.attempts,
    )


@dataclass(frozen=True)
class Transcription:
    text: str
    model_id: str

    @property
    def is_blank(self) -> bool:
        return not self.text.strip()


class OCRAgent:
    """Image in, verbatim text out. Usually a single candidate."""

    def __init__(self, orchestrator: FallbackOrchestrator):
        self._orchestrator = orchestrator

    async def transcribe(
        self,
        image_data_uri: str,
        correlation_id: Optional[UUID] = None,
    ) -> Transcription:
        """
        Transcribe all text visible in the image.

        Raises:
            ExtractionFailedError: If the OCR model call fails
        """
        try:
            outcome = await self._orchestrator.generate(
                [TextPart(prompts.OCR_INSTRUCTION), MediaPart(image_data_uri)],
                contract=OutputContract(format="text"),
                correlation_id=correlation_id,
                allow_empty=True,
            )
        except AllModelsFailedError as e:
            raise _failed("ocr", e) from e

        return Transcription(text=outcome.value, model_id=outcome.model_id)


class AgentW:
    """
    Structured extraction: free text to an ExtractionResult.

    The vocabulary review runs inside the candidate's validation step,
    so under the reject policy a bad category moves on to the next model.
    """

    def __init__(
        self,
        orchestrator: FallbackOrchestrator,
        validator: Optional[ResultValidator] = None,
        audit_logger: Optional[AuditLogger] = None,
        max_input_chars: int = 20000,
    ):
        self._orchestrator = orchestrator
        self._validator = validator or ResultValidator()
        self._audit_logger = audit_logger
        self._max_input_chars = max_input_chars

    async def extract_with_details(
        self,
        text: str,
        current_date: Optional[date] = None,
        currency: str = "XOF",
        vocabulary: CategoryVocabulary = DEFAULT_VOCABULARY,
        existing_goals: Sequence[str] = (),
        existing_budgets: Sequence[str] = (),
        correlation_id: Optional[UUID] = None,
    ) -> FallbackResult:
        """
        Same as ``extract`` but returns the FallbackResult (model used,
        attempts) around the ExtractionResult.
        """
        if not text or not text.strip():
            raise ValueError("Agent W needs non-blank text")

        current_date = current_date or date.today()
        if len(text) > self._max_input_chars:
            logger.warning(
                "agent_w_input_truncated",
                input_chars=len(text),
                max_input_chars=self._max_input_chars,
            )
            text = text[: self._max_input_chars]

        instruction = prompts.agent_w_instruction(
            current_date=current_date,
            currency=currency,
            vocabulary=vocabulary,
            existing_goals=existing_goals,
            existing_budgets=existing_budgets,
        )
        validator = self._validator.for_vocabulary(vocabulary)
        reports: list[ValidationResult] = []

        def validate(payload) -> ExtractionResult:
            result = ExtractionResult.model_validate(payload)
            reviewed, report = validator.review(result, current_date)
            reports.append(report)
            return reviewed

        try:
            outcome = await self._orchestrator.generate(
                [TextPart(instruction), TextPart(prompts.agent_w_user_message(text))],
                contract=OutputContract(format="json", schema=ExtractionResult),
                validator=validate,
                correlation_id=correlation_id,
            )
        except AllModelsFailedError as e:
            raise _failed("agent_w", e) from e

        # Future-date warnings are logged by the validator, not audited here
        unknown = [
            issue for issue in (reports[-1].as_dicts() if reports else [])
            if issue["issue_type"] == "unknown_category"
        ]
        if unknown and self._audit_logger:
            await self._audit_logger.log_category_issues(
                issues=unknown,
                policy=validator.policy.value,
                correlation_id=correlation_id,
            )

        return outcome

    async def extract(
        self,
        text: str,
        current_date: Optional[date] = None,
        currency: str = "XOF",
        vocabulary: CategoryVocabulary = DEFAULT_VOCABULARY,
        existing_goals: Sequence[str] = (),
        existing_budgets: Sequence[str] = (),
        correlation_id: Optional[UUID] = None,
    ) -> ExtractionResult:
        """
        Extract every financial action from *text*.

        Raises:
            ValueError: If text is blank
            ExtractionFailedError: If no candidate produced a valid result
        """
        outcome = await self.extract_with_details(
            text,
            current_date=current_date,
            currency=currency,
            vocabulary=vocabulary,
            existing_goals=existing_goals,
            existing_budgets=existing_budgets,
            correlation_id=correlation_id,
        )
        return outcome.value


class ReceiptAgent:
    """Single receipt image to merchant, amount, date and category."""

    def __init__(self, orchestrator: FallbackOrchestrator):
        self._orchestrator = orchestrator

    async def process_receipt(
        self,
        image_data_uri: str,
        current_date: Optional[date] = None,
        vocabulary: CategoryVocabulary = DEFAULT_VOCABULARY,
        correlation_id: Optional[UUID] = None,
    ) -> ReceiptExtraction:
        instruction = prompts.receipt_instruction(current_date or date.today(), vocabulary)
        try:
            outcome = await self._orchestrator.generate(
                [
                    TextPart(instruction),
                    TextPart("Extract the details from this receipt."),
                    MediaPart(image_data_uri),
                ],
                contract=OutputContract(format="json", schema=ReceiptExtraction),
                correlation_id=correlation_id,
            )
        except AllModelsFailedError as e:
            raise _failed("receipt", e) from e
        return outcome.value


class CategorizationAgent:
    """
    Suggests an expense category for a description.

    This is a suggestion the user can override, so a model failure
    degrades to the fallback category with zero confidence instead of
    raising.
    """

    def __init__(
        self,
        orchestrator: FallbackOrchestrator,
        vocabulary: CategoryVocabulary = DEFAULT_VOCABULARY,
    ):
        self._orchestrator = orchestrator
        self._vocabulary = vocabulary

    async def categorize_expense(self, description: str) -> CategorySuggestion:
        try:
            outcome = await self._orchestrator.generate(
                [TextPart(prompts.categorize_instruction(description, self._vocabulary))],
                contract=OutputContract(format="json", schema=CategorySuggestion),
            )
        except AllModelsFailedError as e:
            logger.warning("categorization_failed", error=str(e))
            return CategorySuggestion(category=self._vocabulary.fallback, confidence=0.0)

        suggestion = outcome.value
        if not self._vocabulary.contains("expense", suggestion.category):
            return CategorySuggestion(
                category=self._vocabulary.fallback,
                confidence=min(suggestion.confidence, 0.3),
            )
        return suggestion


WELCOME_SUMMARIES = {
    "fr": FinancialSummary(
        summary="Bienvenue ! Ajoutez vos premières transactions pour voir votre résumé financier ici.",
        advice="Commencez par enregistrer une dépense ou un revenu pour prendre le contrôle de vos finances.",
    ),
    "en": FinancialSummary(
        summary="Welcome! Add your first transactions to see your financial summary here.",
        advice="Start by recording an expense or income to take control of your finances.",
    ),
}


class FinancialSummaryAgent:
    """Dashboard summary plus one piece of advice."""

    def __init__(self, orchestrator: FallbackOrchestrator, currency: str = "XOF"):
        self._orchestrator = orchestrator
        self._currency = currency

    async def summarize(
        self,
        income: float,
        expenses: float,
        expenses_by_category: Sequence[tuple[str, float]] = (),
        language: str = "fr",
        currency: Optional[str] = None,
    ) -> FinancialSummary:
        """
        Summarize the period.

        No data at all means a fixed welcome message and no model call.

        Raises:
            ExtractionFailedError: If every candidate failed
        """
        if income == 0 and expenses == 0:
            return WELCOME_SUMMARIES["fr" if language == "fr" else "en"]

        instruction = prompts.summary_instruction(
            income=income,
            expenses=expenses,
            expenses_by_category=expenses_by_category,
            language=language,
            currency=currency or self._currency,
        )
        try:
            outcome = await self._orchestrator.generate(
                [TextPart(instruction)],
                contract=OutputContract(format="json", schema=FinancialSummary),
            )
        except AllModelsFailedError as e:
            raise _failed("summary", e) from e
        return outcome.value


class ExpenseAssistantAgent:
    """
    Wise, the financial-education chat assistant.

    Stateless: the caller keeps the conversation and sends the earlier
    turns with every question.
    """

    def __init__(self, orchestrator: FallbackOrchestrator):
        self._orchestrator = orchestrator

    async def ask(
        self,
        question: str,
        history: Sequence[Union[ChatMessage, dict]] = (),
        language: str = "fr",
        correlation_id: Optional[UUID] = None,
    ) -> AssistantAnswer:
        """
        Answer *question* in *language*, given the earlier turns.

        Raises:
            ValueError: If the question is blank
            ExtractionFailedError: If every candidate failed
        """
        if not question or not question.strip():
            raise ValueError("The assistant needs a question")

        turns = [ChatMessage.model_validate(message) for message in history]
        try:
            outcome = await self._orchestrator.generate(
                [
                    TextPart(prompts.assistant_instruction(language)),
                    TextPart(prompts.assistant_transcript(turns, question.strip())),
                ],
                contract=OutputContract(format="text"),
                validator=lambda text: AssistantAnswer(answer=text),
                correlation_id=correlation_id,
            )
        except AllModelsFailedError as e:
            raise _failed("assistant", e) from e
        return outcome.value


# =============================================================================
# HUMAN-READABLE SUMMARY
# =============================================================================

_LABELS = {
    "fr": {
        "income": "Revenu",
        "expense": "Dépense",
        "budget": "Nouveau budget",
        "goal": "Nouvel objectif d'épargne",
        "contribution": "Ajout à l'objectif",
        "nothing": "Aucune action financière trouvée.",
    },
    "en": {
        "income": "Income",
        "expense": "Expense",
        "budget": "New budget",
        "goal": "New savings goal",
        "contribution": "Added to goal",
        "nothing": "No financial action found.",
    },
}


def _format_amount(amount: Decimal, currency: str) -> str:
    if amount == amount.to_integral_value():
        return f"{int(amount):,} {currency}"
    return f"{amount:,.2f} {currency}"


def describe_result(
    result: ExtractionResult,
    currency: str = "XOF",
    locale: str = "fr",
    vocabulary: CategoryVocabulary = DEFAULT_VOCABULARY,
) -> str:
    """
    Render an ExtractionResult as short markdown lines.

    This is what the assistant panel shows after Agent W ran, before the
    user confirms anything.
    """
    labels = _LABELS.get(locale[:2].lower(), _LABELS["fr"])
    if result.is_empty:
        return labels["nothing"]

    def category(name: str) -> str:
        emoji = vocabulary.emoji_for(name)
        return f"{emoji} {name}" if emoji else name

    lines = []
    for item in result.incomes:
        lines.append(
            f"💰 **{labels['income']}:** {item.description} - "
            f"{_format_amount(item.amount, currency)} ({category(item.category)}, {item.date})"
        )
    for item in result.expenses:
        lines.append(
            f"💸 **{labels['expense']}:** {item.description} - "
            f"{_format_amount(item.amount, currency)} ({category(item.category)}, {item.date})"
        )
    for budget in result.new_budgets:
        lines.append(
            f"📊 **{labels['budget']}:** {budget.name} - "
            f"{_format_amount(budget.amount, currency)} ({category(budget.category)})"
        )
    for goal in result.new_savings_goals:
        lines.append(
            f"{goal.emoji or '🎯'} **{labels['goal']}:** {goal.name} - "
            f"{_format_amount(goal.target_amount, currency)}"
        )
    for contribution in result.savings_contributions:
        lines.append(
            f"🏦 **{labels['contribution']}:** {contribution.goal_name} - "
            f"{_format_amount(contribution.amount, currency)}"
        )
    return "\n".join(lines)
