"""Tests for account and budget registration."""

from datetime import date
from decimal import Decimal

import pytest

from budget_kernel.exceptions import (
    InputError,
    InvalidAmountError,
    InvalidPeriodError,
    NegativeBudgetAmountError,
    UnknownAccountError,
)
from budget_kernel.selectors.budget_selector import BudgetSelector
from budget_kernel.domain.period import ReportingPeriod


class TestRegisterAccount:

    def test_register_and_reregister(self, registry, test_actor_id):
        first = registry.register_account("CC001", "Production", test_actor_id)
        again = registry.register_account("CC001", "Renamed", test_actor_id)

        assert first.code == "CC001"
        assert again.name == "Production"


class TestRegisterBudget:

    def test_creates_budget(self, registry, standard_accounts, test_actor_id):
        result = registry.register_budget(
            "CC001", date(2025, 1, 1), date(2025, 12, 31), "500000", test_actor_id,
            description="FY2025 production",
        )

        assert result.created
        assert result.budget.budget_amount == Decimal("500000")
        assert result.budget.description == "FY2025 production"

    def test_duplicate_is_noop_returning_first_writer(
        self, registry, standard_accounts, test_actor_id, session,
    ):
        registry.register_budget(
            "CC001", date(2025, 1, 1), date(2025, 12, 31), Decimal("500000"), test_actor_id,
        )
        second = registry.register_budget(
            "CC001", date(2025, 1, 1), date(2025, 12, 31), Decimal("999"), test_actor_id,
        )

        assert not second.created
        assert second.budget.budget_amount == Decimal("500000")
        budgets = BudgetSelector(session).find_budgets("CC001", ReportingPeriod.for_year(2025))
        assert len(budgets) == 1

    def test_zero_budget_allowed(self, registry, standard_accounts, test_actor_id):
        result = registry.register_budget(
            "CC002", date(2025, 1, 1), date(2025, 3, 31), 0, test_actor_id,
        )
        assert result.budget.budget_amount == Decimal("0")

    def test_inverted_period_rejected(self, registry, standard_accounts, test_actor_id):
        with pytest.raises(InvalidPeriodError) as exc_info:
            registry.register_budget(
                "CC001", date(2025, 12, 31), date(2025, 1, 1), "1", test_actor_id,
            )
        assert isinstance(exc_info.value, InputError)
        assert exc_info.value.code == "INVALID_PERIOD"

    def test_negative_amount_rejected(self, registry, standard_accounts, test_actor_id):
        with pytest.raises(NegativeBudgetAmountError):
            registry.register_budget(
                "CC001", date(2025, 1, 1), date(2025, 12, 31), "-0.01", test_actor_id,
            )

    def test_non_numeric_amount_rejected(self, registry, standard_accounts, test_actor_id):
        with pytest.raises(InvalidAmountError):
            registry.register_budget(
                "CC001", date(2025, 1, 1), date(2025, 12, 31), "lots", test_actor_id,
            )

    def test_unknown_account_rejected(self, registry, standard_accounts, test_actor_id):
        with pytest.raises(UnknownAccountError) as exc_info:
            registry.register_budget(
                "CC999", date(2025, 1, 1), date(2025, 12, 31), "1", test_actor_id,
            )
        assert exc_info.value.account_code == "CC999"

    def test_registration_logged(self, registry, standard_accounts, test_actor_id, captured_logs):
        registry.register_budget(
            "CC003", date(2025, 1, 1), date(2025, 12, 31), "10", test_actor_id,
        )
        assert any(r["message"] == "budget_registered" for r in captured_logs())
