"""
Module: budget_engines.aggregation
Responsibility:
    Sum tagged transaction amounts into (analytical account x period)
    buckets, split into actual expense and actual income.

Architecture position:
    Engines -- pure calculation layer, zero I/O.
    May only import budget_kernel.domain and budget_kernel.logging_config.
    Consumed by the budget-vs-actual evaluator and the reporting service.

Invariants enforced:
    - Only tagged transactions dated inside the window contribute.
    - PURCHASE_ORDER and VENDOR_BILL lines are expense; SALES_ORDER and
      CUSTOMER_INVOICE lines are income (recognized at document date, not
      at payment).
    - ``net_actual = actual_income - actual_expense``.
    - Decimal-only accumulation.  Sums are associative and commutative, so
      input order never changes a result.
    - Accounts the caller names in ``include_accounts`` appear with zero
      actuals even without activity, so 0% utilization is representable.

Failure modes:
    - None raised for data; an empty feed yields zero buckets.

Usage:
    from budget_engines.aggregation import ActualAmountAggregator
    from budget_kernel.domain.period import ReportingPeriod

    buckets = ActualAmountAggregator().aggregate(
        transactions, ReportingPeriod.for_year(2025), include_accounts=("CC005",),
    )
    buckets["CC005"].actual_expense  # Decimal("0")
"""

from __future__ import annotations

from collections import defaultdict
from collections.abc import Iterable
from dataclasses import dataclass
from decimal import Decimal

from budget_engines.tracer import traced_engine
from budget_kernel.domain.dtos import TaggedTransaction
from budget_kernel.domain.period import ReportingPeriod
from budget_kernel.domain.values import ZERO
from budget_kernel.logging_config import get_logger

logger = get_logger("engines.aggregation")


@dataclass(frozen=True)
class ActualBucket:
    """
    Actuals for one analytical account over one period.

    Guarantees:
        - ``net_actual == actual_income - actual_expense``.
    """

    account_code: str
    period: ReportingPeriod
    actual_expense: Decimal = ZERO
    actual_income: Decimal = ZERO
    transaction_count: int = 0

    @property
    def net_actual(self) -> Decimal:
        return self.actual_income - self.actual_expense

    @property
    def has_activity(self) -> bool:
        return self.transaction_count > 0


@dataclass(frozen=True)
class MonthlyBucket:
    """Actuals for one account in one calendar month."""

    account_code: str
    year: int
    month: int
    actual_expense: Decimal = ZERO
    actual_income: Decimal = ZERO

    @property
    def net_actual(self) -> Decimal:
        return self.actual_income - self.actual_expense


class _Accumulator:
    __slots__ = ("expense", "income", "count")

    def __init__(self) -> None:
        self.expense = ZERO
        self.income = ZERO
        self.count = 0

    def add(self, txn: TaggedTransaction) -> None:
        if txn.source_document_type.is_expense:
            self.expense += txn.amount
        else:
            self.income += txn.amount
        self.count += 1


class ActualAmountAggregator:
    """
    Pure calculator for actual amounts per cost center.

    Contract:
        No I/O, no database access, fully deterministic.
        All data passed as parameters.
    Guarantees:
        - Results are keyed and ordered by account code (then period).
        - Untagged transactions and transactions outside the window are
          ignored.
    Non-goals:
        - Does not look up account names or budgets.
        - Does not filter by document status; the feed decides which
          documents are live.
    """

    @traced_engine("aggregation", "1.0", fingerprint_fields=("period", "include_accounts"))
    def aggregate(
        self,
        transactions: Iterable[TaggedTransaction],
        period: ReportingPeriod,
        include_accounts: Iterable[str] = (),
    ) -> dict[str, ActualBucket]:
        """
        Bucket every tagged transaction in ``period`` by account code.

        Returns:
            Mapping of account code to ``ActualBucket``, in code order,
            containing every account with activity plus every account in
            ``include_accounts``.
        """
        totals: dict[str, _Accumulator] = defaultdict(_Accumulator)
        for code in include_accounts:
            totals.setdefault(code, _Accumulator())

        skipped = 0
        for txn in transactions:
            if not txn.is_tagged or not period.contains(txn.document_date):
                skipped += 1
                continue
            totals[txn.analytical_account_code].add(txn)

        result = {
            code: ActualBucket(
                account_code=code,
                period=period,
                actual_expense=acc.expense,
                actual_income=acc.income,
                transaction_count=acc.count,
            )
            for code, acc in sorted(totals.items())
        }
        logger.debug(
            "actuals_aggregated",
            extra={"period": str(period), "accounts": len(result), "skipped": skipped},
        )
        return result

    @traced_engine("aggregation", "1.0")
    def aggregate_windows(
        self,
        transactions: Iterable[TaggedTransaction],
        windows: Iterable[tuple[str, ReportingPeriod]],
    ) -> dict[tuple[str, ReportingPeriod], ActualBucket]:
        """
        One bucket per (account code, period) window.

        Windows of the same account may overlap; each is summed
        independently.
        """
        by_account: dict[str, list[TaggedTransaction]] = defaultdict(list)
        for txn in transactions:
            if txn.is_tagged:
                by_account[txn.analytical_account_code].append(txn)

        result: dict[tuple[str, ReportingPeriod], ActualBucket] = {}
        for code, window in sorted(set(windows)):
            acc = _Accumulator()
            for txn in by_account.get(code, ()):
                if window.contains(txn.document_date):
                    acc.add(txn)
            result[(code, window)] = ActualBucket(
                account_code=code,
                period=window,
                actual_expense=acc.expense,
                actual_income=acc.income,
                transaction_count=acc.count,
            )
        return result

    @traced_engine("aggregation", "1.0", fingerprint_fields=("period",))
    def aggregate_monthly(
        self,
        transactions: Iterable[TaggedTransaction],
        period: ReportingPeriod,
    ) -> dict[tuple[str, int, int], MonthlyBucket]:
        """Calendar-month buckets per account, ordered by (code, year, month)."""
        totals: dict[tuple[str, int, int], _Accumulator] = defaultdict(_Accumulator)
        for txn in transactions:
            if not txn.is_tagged or not period.contains(txn.document_date):
                continue
            key = (txn.analytical_account_code, txn.document_date.year, txn.document_date.month)
            totals[key].add(txn)

        return {
            key: MonthlyBucket(
                account_code=key[0],
                year=key[1],
                month=key[2],
                actual_expense=acc.expense,
                actual_income=acc.income,
            )
            for key, acc in sorted(totals.items())
        }
