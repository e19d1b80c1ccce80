"""
Tests for Agent W

Test strategy:
1. Unit tests for individual components (models, vocabulary, validators)
2. Integration tests for flows (with stub model adapters)
3. No real API calls in tests
"""

import pytest
from datetime import date
from decimal import Decimal
from uuid import uuid4

from pydantic import ValidationError

from agentw.models import (
    DEFAULT_VOCABULARY,
    EXPENSE_CATEGORIES,
    INCOME_CATEGORIES,
    AuditEvent,
    AuditEventBuilder,
    AuditEventType,
    AuditSeverity,
    CategoryVocabulary,
    ExtractionRequest,
    ExtractionResult,
    NewSavingsGoal,
    SavingsContribution,
    Transaction,
)


class TestTransactionModels:
    """Tests for the extracted action models."""

    def test_transaction_creation(self):
        """Test Transaction model creation."""
        tx = Transaction(
            description="Pain",
            amount=Decimal("500"),
            category="Alimentation",
            date="2024-07-27",
        )
        assert tx.description == "Pain"
        assert tx.amount == Decimal("500")

    def test_transaction_strips_whitespace(self):
        """Test that whitespace is stripped from the description."""
        tx = Transaction(description="  Pain  ", amount=1, category="Alimentation", date="2024-07-27")
        assert tx.description == "Pain"

    def test_transaction_rejects_negative_amount(self):
        """Test that negative amounts are rejected."""
        with pytest.raises(ValueError):
            Transaction(description="Test", amount=Decimal("-100"), category="Autre", date="2024-07-27")

    def test_transaction_rejects_zero_amount(self):
        """Test that a zero amount is rejected."""
        with pytest.raises(ValueError):
            Transaction(description="Test", amount=0, category="Autre", date="2024-07-27")

    @pytest.mark.parametrize("bad_date", ["27/07/2024", "2024-7-27", "yesterday", "2024-02-31"])
    def test_transaction_rejects_bad_dates(self, bad_date):
        """Test the YYYY-MM-DD format and calendar check."""
        with pytest.raises(ValueError):
            Transaction(description="Test", amount=1, category="Autre", date=bad_date)

    def test_transaction_requires_date(self):
        """Test that incomes and expenses must carry a date."""
        with pytest.raises(ValueError):
            Transaction(description="Test", amount=1, category="Autre")

    def test_savings_goal_accepts_camel_case(self):
        """Test that the camelCase wire names populate the model."""
        goal = NewSavingsGoal.model_validate({"name": "Vacances", "targetAmount": 500000})
        assert goal.target_amount == Decimal("500000")
        assert goal.current_amount == Decimal("0")
        assert goal.emoji is None

    def test_savings_goal_rejects_negative_current_amount(self):
        """Test that currentAmount may be zero but not negative."""
        with pytest.raises(ValueError):
            NewSavingsGoal(name="Vacances", target_amount=100, current_amount=-1)

    def test_contribution_accepts_snake_case(self):
        """Test that populate_by_name accepts Python names too."""
        contribution = SavingsContribution(goal_name="Vacances", amount=2000)
        assert contribution.goal_name == "Vacances"


class TestExtractionResult:
    """Tests for the Agent W result schema."""

    def test_empty_result_has_all_fields(self):
        """Test that an empty result still serializes all five lists."""
        payload = ExtractionResult.empty().to_payload()
        assert payload == {
            "incomes": [],
            "expenses": [],
            "newBudgets": [],
            "newSavingsGoals": [],
            "savingsContributions": [],
        }

    def test_missing_and_null_fields_default_to_empty(self):
        """Test that absent or null sequences become empty lists."""
        result = ExtractionResult.model_validate({"expenses": None, "newBudgets": None})
        assert result.expenses == []
        assert result.new_budgets == []
        assert result.is_empty

    def test_placeholder_objects_are_dropped(self):
        """Test that [{}] is treated as an empty list."""
        result = ExtractionResult.model_validate({
            "incomes": [{}],
            "expenses": [
                {},
                {"description": "Taxi", "amount": 1500, "category": "Transport", "date": "2024-07-28"},
            ],
        })
        assert result.incomes == []
        assert len(result.expenses) == 1
        assert result.action_count == 1

    def test_partial_object_is_rejected(self):
        """Test that an entry missing required fields fails validation."""
        with pytest.raises(ValidationError):
            ExtractionResult.model_validate({"expenses": [{"description": "Taxi"}]})

    def test_payload_uses_wire_names_and_numbers(self):
        """Test JSON output keeps camelCase keys and numeric amounts."""
        result = ExtractionResult.model_validate({
            "newSavingsGoals": [{"name": "Moto", "targetAmount": 750000.5, "emoji": "🏍️"}],
            "savingsContributions": [{"goalName": "Moto", "amount": 10000}],
        })
        payload = result.to_payload()
        assert payload["newSavingsGoals"][0]["targetAmount"] == 750000.5
        assert payload["newSavingsGoals"][0]["currentAmount"] == 0
        assert payload["savingsContributions"][0]["goalName"] == "Moto"

    def test_payload_round_trips(self):
        """Test that a serialized result validates back to the same result."""
        result = ExtractionResult.model_validate({
            "incomes": [{"description": "Salaire", "amount": 10000, "category": "Salaire", "date": "2024-07-28"}],
            "newBudgets": [{"name": "Courses", "amount": 50000, "category": "Alimentation"}],
        })
        assert ExtractionResult.model_validate(result.to_payload()) == result


class TestExtractionRequest:
    """Tests for ExtractionRequest."""

    def test_text_request(self):
        """Test building a text request with defaults."""
        request = ExtractionRequest.from_text("  j'ai payé 2000 de taxi  ")
        assert request.kind == "text"
        assert request.content == "j'ai payé 2000 de taxi"
        assert request.currency == "XOF"
        assert request.current_date == date.today()

    def test_image_request_requires_uri(self):
        """Test that an image request needs an image."""
        with pytest.raises(ValueError, match="image_data_uri"):
            ExtractionRequest(kind="image")

    def test_text_request_rejects_blank_content(self):
        """Test that blank text is refused up front."""
        with pytest.raises(ValueError, match="non-blank content"):
            ExtractionRequest.from_text("   ")

    def test_request_is_frozen(self):
        """Test that requests are immutable."""
        request = ExtractionRequest.from_text("taxi 2000")
        with pytest.raises(ValidationError):
            request.currency = "EUR"

    def test_currency_must_be_three_letters(self):
        """Test currency code length."""
        with pytest.raises(ValueError):
            ExtractionRequest.from_text("taxi", currency="EURO")


class TestCategoryVocabulary:
    """Tests for the closed category lists."""

    def test_expense_names_in_order(self):
        """Test expense labels are exactly the known list, in order."""
        assert DEFAULT_VOCABULARY.expense_names == [
            "Alimentation", "Transport", "Logement", "Factures", "Santé",
            "Divertissement", "Shopping", "Éducation", "Famille", "Animaux", "Autre",
        ]

    def test_income_names_in_order(self):
        """Test income labels are exactly the known list, in order."""
        assert DEFAULT_VOCABULARY.income_names == [
            "Salaire", "Vente", "Bonus", "Cadeau", "Remboursement", "Autre",
        ]

    def test_fallback_is_in_both_lists(self):
        """Test that 'Autre' is valid for both kinds."""
        assert DEFAULT_VOCABULARY.contains("expense", "Autre")
        assert DEFAULT_VOCABULARY.contains("income", "Autre")

    def test_lists_are_scoped_by_kind(self):
        """Test that an income label is not a valid expense label."""
        assert DEFAULT_VOCABULARY.contains("income", "Salaire")
        assert not DEFAULT_VOCABULARY.contains("expense", "Salaire")

    def test_matching_is_exact(self):
        """Test that matching is case and accent sensitive."""
        assert not DEFAULT_VOCABULARY.contains("expense", "alimentation")
        assert not DEFAULT_VOCABULARY.contains("expense", "Sante")

    def test_unknown_kind(self):
        """Test that an unknown kind raises."""
        with pytest.raises(ValueError, match="Unknown category kind"):
            DEFAULT_VOCABULARY.names_for("budget")

    def test_prompt_list(self):
        """Test the comma-separated prompt rendering."""
        assert DEFAULT_VOCABULARY.prompt_list("income") == "Salaire, Vente, Bonus, Cadeau, Remboursement, Autre"

    def test_emoji_lookup(self):
        """Test emoji lookup across both lists."""
        assert DEFAULT_VOCABULARY.emoji_for("Transport") == "🚗"
        assert DEFAULT_VOCABULARY.emoji_for("Salaire") == "💰"
        assert DEFAULT_VOCABULARY.emoji_for("Crypto") is None

    def test_custom_vocabulary(self):
        """Test that a narrower vocabulary can be injected."""
        vocabulary = CategoryVocabulary(expense=EXPENSE_CATEGORIES[:2], income=INCOME_CATEGORIES[:1])
        assert vocabulary.expense_names == ["Alimentation", "Transport"]
        assert vocabulary.fallback == "Autre"


class TestAuditModels:
    """Tests for audit-related models."""

    def test_audit_event_creation(self):
        """Test AuditEvent model creation."""
        event = AuditEvent(
            event_type=AuditEventType.EXTRACTION_REQUESTED,
            description="Extraction requested",
        )
        assert event.event_type == AuditEventType.EXTRACTION_REQUESTED
        assert event.severity == AuditSeverity.INFO

    def test_audit_event_to_log_dict(self):
        """Test conversion to log dictionary."""
        event = AuditEvent(
            event_type=AuditEventType.OCR_COMPLETED,
            description="OCR done",
            details={"model_id": "googleai/gemini-1.5-flash"},
        )
        log_dict = event.to_log_dict()
        assert "event_id" in log_dict
        assert log_dict["event_type"] == "ocr_completed"
        assert log_dict["correlation_id"] is None
        assert log_dict["details"]["model_id"] == "googleai/gemini-1.5-flash"

    def test_audit_event_builder_ocr_empty(self):
        """Test AuditEventBuilder.ocr_empty."""
        correlation_id = uuid4()
        event = AuditEventBuilder.ocr_empty(correlation_id)
        assert event.event_type == AuditEventType.OCR_EMPTY
        assert event.correlation_id == correlation_id

    def test_audit_event_builder_extraction_failed(self):
        """Test AuditEventBuilder.extraction_failed."""
        event = AuditEventBuilder.extraction_failed(
            stage="agent_w",
            error_message="All AI models failed",
            correlation_id=uuid4(),
        )
        assert event.severity == AuditSeverity.ERROR
        assert event.details == {"stage": "agent_w"}
        assert event.error_message == "All AI models failed"

    def test_audit_event_builder_extraction_completed(self):
        """Test that the description reports the total action count."""
        event = AuditEventBuilder.extraction_completed(
            model_id="stub/a",
            counts={"incomes": 1, "expenses": 2},
            correlation_id=uuid4(),
        )
        assert "3 actions" in event.description


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
