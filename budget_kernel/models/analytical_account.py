"""
Analytical account and budget ORM models.

Responsibility:
    Persistence for the cost-center registry and the budget store.

Invariants enforced:
    - ``analytical_accounts.code`` is unique.
    - One budget per (account_code, period_start, period_end).
    - ``period_start <= period_end`` and ``budget_amount >= 0`` (CHECK).
"""

from datetime import date
from decimal import Decimal
from uuid import UUID

from sqlalchemy import CheckConstraint, ForeignKey, Index, String, Text, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from budget_kernel.db.base import TrackedBase
from budget_kernel.domain.dtos import AnalyticalAccount, Budget


class AnalyticalAccountModel(TrackedBase):
    """A cost center.  Codes are never reused while referenced."""

    __tablename__ = "analytical_accounts"

    __table_args__ = (
        UniqueConstraint("code", name="uq_analytical_account_code"),
    )

    code: Mapped[str] = mapped_column(String(50), nullable=False)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)

    def to_dto(self) -> AnalyticalAccount:
        return AnalyticalAccount(
            code=self.code,
            name=self.name,
            description=self.description,
        )

    def __repr__(self) -> str:
        return f"<AnalyticalAccountModel {self.code} {self.name!r}>"


class BudgetModel(TrackedBase):
    """
    A budget allocation for one analytical account over a date range.

    Maps to the ``Budget`` DTO in ``budget_kernel.domain.dtos``.
    """

    __tablename__ = "budgets"

    __table_args__ = (
        UniqueConstraint(
            "analytical_account_code", "period_start", "period_end",
            name="uq_budget_account_period",
        ),
        CheckConstraint("period_start <= period_end", name="ck_budget_period_order"),
        CheckConstraint("budget_amount >= 0", name="ck_budget_amount_non_negative"),
        Index("idx_budget_period", "period_start", "period_end"),
    )

    analytical_account_code: Mapped[str] = mapped_column(
        ForeignKey("analytical_accounts.code"), nullable=False,
    )
    period_start: Mapped[date]
    period_end: Mapped[date]
    budget_amount: Mapped[Decimal]
    description: Mapped[str | None] = mapped_column(Text, nullable=True)

    def to_dto(self) -> Budget:
        return Budget(
            id=self.id,
            account_code=self.analytical_account_code,
            period_start=self.period_start,
            period_end=self.period_end,
            budget_amount=Decimal(self.budget_amount),
            description=self.description,
        )

    @classmethod
    def from_dto(cls, dto: Budget, created_by_id: UUID) -> "BudgetModel":
        return cls(
            analytical_account_code=dto.account_code,
            period_start=dto.period_start,
            period_end=dto.period_end,
            budget_amount=dto.budget_amount,
            description=dto.description,
            created_by_id=created_by_id,
        )

    def __repr__(self) -> str:
        return (
            f"<BudgetModel {self.analytical_account_code} "
            f"{self.period_start}..{self.period_end} {self.budget_amount}>"
        )
