"""Tests for the vocabulary / semantic review of extraction results."""

from datetime import date

import pytest

from agentw.models import ExtractionResult
from agentw.validation import (
    CategoryPolicy,
    CategoryRejectedError,
    ResultValidator,
    ValidationIssue,
    ValidationResult,
)

TODAY = date(2024, 7, 28)


def _result(expense_category="Alimentation", income_category="Salaire", budget_category="Transport",
            expense_date="2024-07-27"):
    return ExtractionResult.model_validate({
        "incomes": [{"description": "Salaire", "amount": 10000, "category": income_category, "date": "2024-07-28"}],
        "expenses": [{"description": "Pain", "amount": 500, "category": expense_category, "date": expense_date}],
        "newBudgets": [{"name": "Taxi", "amount": 20000, "category": budget_category}],
    })


class TestCheck:
    """Tests for ResultValidator.check."""

    def test_clean_result_has_no_issues(self):
        """Test a result fully within the vocabulary."""
        report = ResultValidator().check(_result(), TODAY)
        assert report.issues == []
        assert report.is_valid

    def test_unknown_expense_category(self):
        """Test an expense label outside the expense list."""
        report = ResultValidator().check(_result(expense_category="Boulangerie"), TODAY)
        [issue] = report.issues
        assert issue.field == "expenses[0].category"
        assert issue.issue_type == "unknown_category"
        assert issue.suggested_fix == "Autre"
        assert report.has_errors

    def test_income_label_on_expense_is_flagged(self):
        """Test that the lists are not interchangeable."""
        report = ResultValidator().check(_result(expense_category="Salaire"), TODAY)
        assert [i.field for i in report.issues] == ["expenses[0].category"]

    def test_budget_uses_expense_list(self):
        """Test that budget categories are checked against expenses."""
        report = ResultValidator().check(_result(budget_category="Vente"), TODAY)
        assert [i.field for i in report.issues] == ["new_budgets[0].category"]

    def test_fallback_valid_for_income(self):
        """Test that 'Autre' is accepted for incomes too."""
        report = ResultValidator().check(_result(income_category="Autre"), TODAY)
        assert report.issues == []

    def test_far_future_date_is_a_warning(self):
        """Test that a date well past today is only a warning."""
        report = ResultValidator().check(_result(expense_date="2024-12-25"), TODAY)
        [issue] = report.issues
        assert issue.issue_type == "future_date"
        assert issue.severity == "warning"
        assert report.is_valid

    def test_near_future_date_is_fine(self):
        """Test the future tolerance window."""
        report = ResultValidator().check(_result(expense_date="2024-08-01"), TODAY)
        assert report.issues == []

    def test_date_check_skipped_without_current_date(self):
        """Test that dates are not checked when today is unknown."""
        report = ResultValidator().check(_result(expense_date="2030-01-01"))
        assert report.issues == []


class TestPolicies:
    """Tests for ResultValidator.review under each policy."""

    def test_permissive_keeps_result(self):
        """Test that permissive returns the result unchanged."""
        result = _result(expense_category="Boulangerie")
        reviewed, report = ResultValidator(policy=CategoryPolicy.PERMISSIVE).review(result, TODAY)
        assert reviewed is result
        assert report.error_count == 1

    def test_correct_replaces_with_fallback(self):
        """Test that correct swaps the bad label for 'Autre' only."""
        result = _result(expense_category="Boulangerie", income_category="Loterie")
        reviewed, report = ResultValidator(policy="correct").review(result, TODAY)
        assert reviewed.expenses[0].category == "Autre"
        assert reviewed.incomes[0].category == "Autre"
        assert reviewed.new_budgets[0].category == "Transport"
        assert result.expenses[0].category == "Boulangerie"
        assert report.error_count == 2

    def test_reject_raises(self):
        """Test that reject raises with the report attached."""
        with pytest.raises(CategoryRejectedError) as exc_info:
            ResultValidator(policy=CategoryPolicy.REJECT).review(_result(expense_category="Boulangerie"), TODAY)
        assert exc_info.value.report.error_count == 1
        assert "expenses[0].category" in str(exc_info.value)

    def test_reject_ignores_warnings(self):
        """Test that a future-date warning alone is not rejected."""
        result = _result(expense_date="2025-01-01")
        reviewed, report = ResultValidator(policy=CategoryPolicy.REJECT).review(result, TODAY)
        assert reviewed is result
        assert len(report.issues) == 1

    def test_unknown_policy(self):
        """Test that an unknown policy name is refused."""
        with pytest.raises(ValueError):
            ResultValidator(policy="lenient")


class TestValidationResult:
    """Tests for ValidationResult model."""

    def test_validation_result_has_errors(self):
        """Test has_errors property."""
        result = ValidationResult(issues=[
            ValidationIssue(
                field="expenses[0].category",
                issue_type="unknown_category",
                message="'Boulangerie' is not a known expense category",
                severity="error",
            ),
        ])
        assert result.has_errors is True
        assert result.error_count == 1

    def test_validation_result_warnings_only(self):
        """Test that warnings don't count as errors."""
        result = ValidationResult(issues=[
            ValidationIssue(
                field="expenses[0].date",
                issue_type="future_date",
                message="Date in future",
                severity="warning",
            ),
        ])
        assert result.has_errors is False
        assert result.error_count == 0

    def test_severity_is_restricted(self):
        """Test the severity pattern."""
        with pytest.raises(ValueError):
            ValidationIssue(field="x", issue_type="y", message="z", severity="fatal")
