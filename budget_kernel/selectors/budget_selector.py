"""
BudgetSelector -- the budget store read path.

Satisfies ``budget_kernel.domain.sources.BudgetSource``.
"""

from collections.abc import Sequence

from sqlalchemy import select

from budget_kernel.domain.dtos import Budget
from budget_kernel.domain.period import ReportingPeriod
from budget_kernel.models.analytical_account import BudgetModel
from budget_kernel.selectors.base import BaseSelector


class BudgetSelector(BaseSelector):
    """Read-only access to budgets."""

    def find_budgets(
        self,
        account_code: str | None,
        period: ReportingPeriod,
    ) -> Sequence[Budget]:
        """
        Budgets whose inclusive period overlaps ``period``.

        An unknown ``account_code`` yields an empty tuple.
        """
        stmt = select(BudgetModel).where(
            BudgetModel.period_start <= period.end,
            BudgetModel.period_end >= period.start,
        )
        if account_code is not None:
            stmt = stmt.where(BudgetModel.analytical_account_code == account_code)
        stmt = stmt.order_by(
            BudgetModel.analytical_account_code,
            BudgetModel.period_start,
            BudgetModel.period_end,
        )
        return tuple(row.to_dto() for row in self.session.scalars(stmt).all())

    def get_budget(
        self,
        account_code: str,
        period: ReportingPeriod,
    ) -> Budget | None:
        """The budget for exactly this (account, period) triple, if any."""
        row = self.session.scalars(
            select(BudgetModel).where(
                BudgetModel.analytical_account_code == account_code,
                BudgetModel.period_start == period.start,
                BudgetModel.period_end == period.end,
            )
        ).one_or_none()
        return row.to_dto() if row is not None else None
