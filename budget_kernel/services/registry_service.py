"""
RegistryService -- administrator writes to the account registry and budget store.

Responsibility:
    Registers analytical accounts and budgets.  Once registered, a budget is
    read-only input to evaluation; updates and deletes are master-data
    operations outside the engine.

Architecture position:
    Kernel > Services -- imperative shell.  Flushes within the caller's
    transaction; never commits.

Invariants enforced:
    - At most one budget per (account_code, period_start, period_end).
      A duplicate registration is a no-op that returns the first writer's
      budget with ``created=False``.
    - Input is validated before any write: inverted periods raise
      ``InvalidPeriodError``, negative amounts raise
      ``NegativeBudgetAmountError``, unknown accounts raise
      ``UnknownAccountError``.

Failure modes:
    - Concurrent duplicate inserts: the loser hits the unique constraint
      inside a savepoint, which is rolled back, and the winner's row is
      returned.
"""

from dataclasses import dataclass
from datetime import date
from decimal import Decimal
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from budget_kernel.domain.dtos import AnalyticalAccount, Budget
from budget_kernel.domain.values import to_decimal
from budget_kernel.exceptions import UnknownAccountError
from budget_kernel.logging_config import get_logger
from budget_kernel.models.analytical_account import AnalyticalAccountModel, BudgetModel

logger = get_logger("services.registry")


@dataclass(frozen=True)
class RegistrationResult:
    """Outcome of a registration: the stored row and whether this call made it."""

    budget: Budget
    created: bool


class RegistryService:
    """
    Writes cost centers and budgets.

    Contract:
        ``register_budget`` is idempotent on the (account, period) triple.
    Non-goals:
        Does NOT update or delete budgets, and does NOT reject overlapping
        periods of different lengths for one account.
    """

    def __init__(self, session: Session):
        self._session = session

    def register_account(
        self,
        code: str,
        name: str,
        actor_id: UUID,
        description: str | None = None,
    ) -> AnalyticalAccount:
        """Register a cost center; an existing code returns the existing account."""
        existing = self._find_account(code)
        if existing is not None:
            logger.info("analytical_account_exists", extra={"account_code": code})
            return existing.to_dto()

        model = AnalyticalAccountModel(
            code=code,
            name=name,
            description=description,
            created_by_id=actor_id,
        )
        try:
            with self._session.begin_nested():
                self._session.add(model)
        except IntegrityError:
            logger.warning("concurrent_account_insert_conflict", extra={"account_code": code})
            existing = self._find_account(code)
            if existing is None:
                raise
            return existing.to_dto()

        logger.info("analytical_account_registered", extra={"account_code": code})
        return model.to_dto()

    def register_budget(
        self,
        account_code: str,
        period_start: date,
        period_end: date,
        budget_amount: Decimal | int | str,
        actor_id: UUID,
        description: str | None = None,
    ) -> RegistrationResult:
        """
        Register a budget for an account over an inclusive period.

        Preconditions:
            - ``period_start <= period_end``; ``budget_amount >= 0``.
            - ``account_code`` exists in the registry.
        Postconditions:
            - Exactly one row exists for the triple; the first writer's
              amount and description are preserved.
        """
        # Builds and validates the DTO before touching the database
        candidate = Budget(
            account_code=account_code,
            period_start=period_start,
            period_end=period_end,
            budget_amount=to_decimal(budget_amount, "budget_amount"),
            description=description,
        )

        if self._find_account(account_code) is None:
            raise UnknownAccountError(account_code)

        existing = self._find_budget(candidate)
        if existing is not None:
            logger.info(
                "budget_registration_duplicate",
                extra={
                    "account_code": account_code,
                    "period_start": period_start,
                    "period_end": period_end,
                },
            )
            return RegistrationResult(budget=existing.to_dto(), created=False)

        model = BudgetModel.from_dto(candidate, created_by_id=actor_id)
        try:
            with self._session.begin_nested():
                self._session.add(model)
        except IntegrityError:
            logger.warning(
                "concurrent_budget_insert_conflict",
                extra={"account_code": account_code},
            )
            existing = self._find_budget(candidate)
            if existing is None:
                raise
            return RegistrationResult(budget=existing.to_dto(), created=False)

        logger.info(
            "budget_registered",
            extra={
                "account_code": account_code,
                "period_start": period_start,
                "period_end": period_end,
                "budget_amount": str(candidate.budget_amount),
            },
        )
        return RegistrationResult(budget=model.to_dto(), created=True)

    def _find_account(self, code: str) -> AnalyticalAccountModel | None:
        return self._session.scalars(
            select(AnalyticalAccountModel).where(AnalyticalAccountModel.code == code)
        ).one_or_none()

    def _find_budget(self, budget: Budget) -> BudgetModel | None:
        return self._session.scalars(
            select(BudgetModel).where(
                BudgetModel.analytical_account_code == budget.account_code,
                BudgetModel.period_start == budget.period_start,
                BudgetModel.period_end == budget.period_end,
            )
        ).one_or_none()
