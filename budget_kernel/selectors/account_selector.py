"""
AnalyticalAccountSelector -- the analytical account registry read path.

Satisfies ``budget_kernel.domain.sources.AccountSource``.
"""

from collections.abc import Sequence

from sqlalchemy import select

from budget_kernel.domain.dtos import AnalyticalAccount
from budget_kernel.models.analytical_account import AnalyticalAccountModel
from budget_kernel.selectors.base import BaseSelector


class AnalyticalAccountSelector(BaseSelector):
    """Read-only access to cost centers."""

    def list_accounts(self) -> Sequence[AnalyticalAccount]:
        """All accounts, stable by code."""
        rows = self.session.scalars(
            select(AnalyticalAccountModel).order_by(AnalyticalAccountModel.code)
        ).all()
        return tuple(row.to_dto() for row in rows)

    def get_account(self, code: str) -> AnalyticalAccount | None:
        """Account by code, or None for an unknown code."""
        row = self.session.scalars(
            select(AnalyticalAccountModel).where(AnalyticalAccountModel.code == code)
        ).one_or_none()
        return row.to_dto() if row is not None else None
