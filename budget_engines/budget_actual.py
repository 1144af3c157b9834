"""
Module: budget_engines.budget_actual
Responsibility:
    Join budgets with aggregated actuals to produce budget-vs-actual rows,
    a summary, the unbudgeted-activity listing, per-cost-center performance
    and the budget dashboard.

Architecture position:
    Engines -- pure calculation layer, zero I/O.
    Consumes ``ActualBucket`` values from ``budget_engines.aggregation``.

Invariants enforced:
    - ``actual_amount`` is the actual EXPENSE of the budget's window
      (budgets model spending ceilings, not net P&L).
    - ``remaining = budget_amount - actual_amount``; negative means over
      budget and is a valid, reportable state.
    - ``utilization_percent = round(actual / budget * 100, 1)`` ROUND_HALF_UP
      when budget > 0, else exactly ``0``.  Never divides by zero.
    - Rows default to account code ascending; sorting by a metric
      tie-breaks on account code, then period start.
    - The summary uses the same summation and percentage rules over the
      returned rows.

Failure modes:
    - ``InvalidSortKeyError`` for an unsupported ``sort_by``.

Usage:
    from budget_engines.budget_actual import BudgetVsActualEvaluator

    report = BudgetVsActualEvaluator().evaluate(
        budgets, actuals, accounts, period=ReportingPeriod.for_year(2025),
    )
    report.rows[0].utilization_percent  # Decimal("75.0")
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping, Sequence
from dataclasses import dataclass
from datetime import date
from decimal import Decimal

from budget_engines.aggregation import ActualBucket
from budget_engines.tracer import traced_engine
from budget_kernel.domain.dtos import AnalyticalAccount, Budget
from budget_kernel.domain.period import ReportingPeriod
from budget_kernel.domain.values import ZERO, percent_of, round_percent
from budget_kernel.exceptions import InvalidSortKeyError
from budget_kernel.logging_config import get_logger

logger = get_logger("engines.budget_actual")

SORT_KEYS: tuple[str, ...] = (
    "account_code",
    "budget_amount",
    "actual_amount",
    "remaining",
    "utilization_percent",
)


def utilization_percent(
    actual_amount: Decimal,
    budget_amount: Decimal,
    provided: Decimal | None = None,
    places: int = 1,
) -> Decimal:
    """
    Utilization of a budget.

    A ratio already computed upstream takes precedence when present;
    otherwise it is recomputed.  A zero budget always yields ``0``.
    """
    if budget_amount <= ZERO:
        return ZERO
    if provided is not None:
        return round_percent(provided, places)
    return percent_of(actual_amount, budget_amount, places)


@dataclass(frozen=True)
class BudgetActualRow:
    """One budget compared with the expense booked in its window."""

    account_code: str
    account_name: str
    period_start: date
    period_end: date
    budget_amount: Decimal
    actual_amount: Decimal
    remaining: Decimal
    utilization_percent: Decimal
    actual_income: Decimal = ZERO

    @property
    def is_over_budget(self) -> bool:
        return self.remaining < ZERO


@dataclass(frozen=True)
class BudgetActualSummary:
    total_budget: Decimal
    total_actual: Decimal
    total_remaining: Decimal
    overall_utilization_percent: Decimal
    row_count: int


@dataclass(frozen=True)
class BudgetVsActualReport:
    period: ReportingPeriod
    rows: tuple[BudgetActualRow, ...]
    summary: BudgetActualSummary


@dataclass(frozen=True)
class UnbudgetedActivity:
    """An account with tagged activity but no budget in the period."""

    account_code: str
    account_name: str
    actual_expense: Decimal
    actual_income: Decimal

    @property
    def net_actual(self) -> Decimal:
        return self.actual_income - self.actual_expense


@dataclass(frozen=True)
class CostCenterPerformance:
    """Per-account totals over the report period."""

    account_code: str
    account_name: str
    total_budget: Decimal
    actual_expense: Decimal
    actual_income: Decimal
    utilization_percent: Decimal

    @property
    def net_actual(self) -> Decimal:
        return self.actual_income - self.actual_expense


@dataclass(frozen=True)
class BudgetDashboard:
    summary: BudgetActualSummary
    over_budget: tuple[BudgetActualRow, ...]
    under_utilized: tuple[BudgetActualRow, ...]
    cost_centers: tuple[CostCenterPerformance, ...]

    @property
    def budget_count(self) -> int:
        return self.summary.row_count

    @property
    def cost_center_count(self) -> int:
        return len(self.cost_centers)


def _name_of(code: str, accounts: Mapping[str, AnalyticalAccount]) -> str:
    account = accounts.get(code)
    return account.name if account is not None else code


class BudgetVsActualEvaluator:
    """
    Pure function evaluator for budget-vs-actual reporting.

    Contract:
        No I/O, fully deterministic.  Budgets, actual buckets and account
        lookups are passed in.
    Guarantees:
        - Every budget overlapping the period yields exactly one row.
        - A budget without actuals reports actual 0, utilization 0 and
          remaining equal to the budget.
        - Accounts without a budget are excluded from ``evaluate`` and
          listed by ``unbudgeted_activity`` instead.
    Non-goals:
        - Does not prorate a budget whose period only partly overlaps the
          report period; the full amount is compared with the expense
          inside the overlap.
    """

    def __init__(self, places: int = 1):
        self._places = places

    @staticmethod
    def window_for(budget: Budget, period: ReportingPeriod) -> ReportingPeriod | None:
        """The part of the budget's period that lies inside ``period``."""
        return budget.period.intersection(period)

    @traced_engine("budget_actual", "1.0", fingerprint_fields=("period", "sort_by", "descending"))
    def evaluate(
        self,
        budgets: Iterable[Budget],
        actuals: Mapping[tuple[str, ReportingPeriod], ActualBucket],
        accounts: Mapping[str, AnalyticalAccount],
        period: ReportingPeriod,
        sort_by: str = "account_code",
        descending: bool = False,
        provided_utilization: Mapping[tuple[str, ReportingPeriod], Decimal] | None = None,
    ) -> BudgetVsActualReport:
        """
        Build report rows for every budget overlapping ``period``.

        Args:
            actuals: Buckets keyed by (account code, window), where the
                window is ``window_for(budget, period)``.
            provided_utilization: Optional upstream ratios keyed by
                (account code, budget period).
        """
        if sort_by not in SORT_KEYS:
            raise InvalidSortKeyError(sort_by, SORT_KEYS)

        rows: list[BudgetActualRow] = []
        for budget in budgets:
            window = self.window_for(budget, period)
            if window is None:
                continue
            bucket = actuals.get((budget.account_code, window))
            expense = bucket.actual_expense if bucket is not None else ZERO
            income = bucket.actual_income if bucket is not None else ZERO
            provided = None
            if provided_utilization is not None:
                provided = provided_utilization.get((budget.account_code, budget.period))
            rows.append(
                BudgetActualRow(
                    account_code=budget.account_code,
                    account_name=_name_of(budget.account_code, accounts),
                    period_start=budget.period_start,
                    period_end=budget.period_end,
                    budget_amount=budget.budget_amount,
                    actual_amount=expense,
                    remaining=budget.budget_amount - expense,
                    utilization_percent=utilization_percent(
                        expense, budget.budget_amount, provided, self._places,
                    ),
                    actual_income=income,
                )
            )

        ordered = self.sort_rows(rows, sort_by=sort_by, descending=descending)
        summary = self.summarize(ordered)
        logger.info(
            "budget_vs_actual_evaluated",
            extra={
                "period": str(period),
                "row_count": summary.row_count,
                "over_budget": sum(1 for r in ordered if r.is_over_budget),
            },
        )
        return BudgetVsActualReport(period=period, rows=ordered, summary=summary)

    @staticmethod
    def sort_rows(
        rows: Iterable[BudgetActualRow],
        sort_by: str = "account_code",
        descending: bool = False,
    ) -> tuple[BudgetActualRow, ...]:
        """Order rows; ties always fall back to account code ascending."""
        if sort_by not in SORT_KEYS:
            raise InvalidSortKeyError(sort_by, SORT_KEYS)
        base = sorted(rows, key=lambda r: (r.account_code, r.period_start, r.period_end))
        if sort_by == "account_code":
            return tuple(reversed(base)) if descending else tuple(base)
        # sorted() is stable under reverse=True, so code order survives ties
        return tuple(sorted(base, key=lambda r: getattr(r, sort_by), reverse=descending))

    def summarize(self, rows: Sequence[BudgetActualRow]) -> BudgetActualSummary:
        total_budget = sum((r.budget_amount for r in rows), ZERO)
        total_actual = sum((r.actual_amount for r in rows), ZERO)
        return BudgetActualSummary(
            total_budget=total_budget,
            total_actual=total_actual,
            total_remaining=total_budget - total_actual,
            overall_utilization_percent=utilization_percent(
                total_actual, total_budget, places=self._places,
            ),
            row_count=len(rows),
        )

    @traced_engine("budget_actual", "1.0")
    def unbudgeted_activity(
        self,
        actuals: Mapping[str, ActualBucket],
        budgets: Iterable[Budget],
        accounts: Mapping[str, AnalyticalAccount],
    ) -> tuple[UnbudgetedActivity, ...]:
        """Accounts with activity in the period but no overlapping budget."""
        budgeted = {b.account_code for b in budgets}
        return tuple(
            UnbudgetedActivity(
                account_code=code,
                account_name=_name_of(code, accounts),
                actual_expense=bucket.actual_expense,
                actual_income=bucket.actual_income,
            )
            for code, bucket in sorted(actuals.items())
            if code not in budgeted and bucket.has_activity
        )

    @traced_engine("budget_actual", "1.0")
    def cost_center_performance(
        self,
        actuals: Mapping[str, ActualBucket],
        budgets: Iterable[Budget],
        accounts: Mapping[str, AnalyticalAccount],
    ) -> tuple[CostCenterPerformance, ...]:
        """
        Every account with a budget or activity in the period.

        ``total_budget`` sums every budget overlapping the period.
        """
        budget_totals: dict[str, Decimal] = {}
        for budget in budgets:
            budget_totals[budget.account_code] = (
                budget_totals.get(budget.account_code, ZERO) + budget.budget_amount
            )

        result = []
        for code in sorted(set(budget_totals) | set(actuals)):
            bucket = actuals.get(code)
            expense = bucket.actual_expense if bucket is not None else ZERO
            income = bucket.actual_income if bucket is not None else ZERO
            total_budget = budget_totals.get(code, ZERO)
            result.append(
                CostCenterPerformance(
                    account_code=code,
                    account_name=_name_of(code, accounts),
                    total_budget=total_budget,
                    actual_expense=expense,
                    actual_income=income,
                    utilization_percent=utilization_percent(
                        expense, total_budget, places=self._places,
                    ),
                )
            )
        return tuple(result)

    def dashboard(
        self,
        report: BudgetVsActualReport,
        cost_centers: Sequence[CostCenterPerformance],
        under_utilized_threshold: Decimal = Decimal("50"),
        top_n: int = 5,
    ) -> BudgetDashboard:
        """
        Summary plus the most over-budget and least-utilized budgets.

        ``over_budget``: remaining < 0, most negative first.
        ``under_utilized``: budget > 0 and utilization below the threshold,
        lowest utilization first.
        """
        over = self.sort_rows(
            (r for r in report.rows if r.is_over_budget), sort_by="remaining",
        )
        under = self.sort_rows(
            (
                r for r in report.rows
                if r.budget_amount > ZERO and r.utilization_percent < under_utilized_threshold
            ),
            sort_by="utilization_percent",
        )
        return BudgetDashboard(
            summary=report.summary,
            over_budget=over[:top_n],
            under_utilized=under[:top_n],
            cost_centers=tuple(cost_centers),
        )
