"""
BudgetReportingService -- orchestrates the read-side reports.

Responsibility:
    Pulls accounts, budgets and transactions from the sources it was
    constructed with, runs the pure engines and returns their frozen
    results.  Every report for one call reads one snapshot: sources are
    queried once per report.

Architecture position:
    Services -- stateless orchestration.  Owns no data and no session;
    sources are passed in explicitly (SQL selectors, the transaction feed
    adapter, or an ``InMemorySnapshot``).

Invariants enforced:
    - Report ranges are inclusive and validated (``InvalidPeriodError``).
    - Per-budget actuals are computed over the budget's period clipped to
      the report range.
    - Budgeted accounts without activity still appear with zero actuals.
"""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass
from datetime import date

from budget_config.schema import EngineConfig
from budget_engines.aggregation import ActualAmountAggregator, MonthlyBucket
from budget_engines.budget_actual import (
    BudgetDashboard,
    BudgetVsActualEvaluator,
    BudgetVsActualReport,
    CostCenterPerformance,
    UnbudgetedActivity,
)
from budget_engines.payment_status import (
    PaymentReconciliationEvaluator,
    PaymentStatusSummary,
    ReconciliationResult,
)
from budget_kernel.domain.clock import Clock, SystemClock
from budget_kernel.domain.dtos import (
    AnalyticalAccount,
    ReconciliationSubject,
    SourceDocumentType,
)
from budget_kernel.domain.period import ReportingPeriod
from budget_kernel.domain.sources import (
    AccountSource,
    BudgetSource,
    ReconciliationSource,
    TransactionSource,
)
from budget_kernel.logging_config import get_logger

logger = get_logger("services.reporting")


@dataclass(frozen=True)
class PaymentStatusReport:
    as_of: date
    results: tuple[ReconciliationResult, ...]
    summary: PaymentStatusSummary


class BudgetReportingService:
    """
    Budget, cost-center and payment reports.

    Contract:
        Read-only.  Sources must satisfy the protocols in
        ``budget_kernel.domain.sources``; ``reconciliations`` is only needed
        for ``payment_status_report``.
    """

    def __init__(
        self,
        accounts: AccountSource,
        budgets: BudgetSource,
        transactions: TransactionSource,
        reconciliations: ReconciliationSource | None = None,
        clock: Clock | None = None,
        config: EngineConfig | None = None,
    ):
        self._accounts = accounts
        self._budgets = budgets
        self._transactions = transactions
        self._reconciliations = reconciliations
        self._clock = clock or SystemClock()
        self._config = config or EngineConfig()
        self._aggregator = ActualAmountAggregator()
        self._evaluator = BudgetVsActualEvaluator(places=self._config.utilization_decimal_places)
        self._reconciler = PaymentReconciliationEvaluator()

    @classmethod
    def for_session(
        cls,
        session,
        clock: Clock | None = None,
        config: EngineConfig | None = None,
    ) -> BudgetReportingService:
        """Service reading accounts, budgets and documents through ``session``."""
        from budget_kernel.selectors import AnalyticalAccountSelector, BudgetSelector
        from budget_services.transaction_feed import (
            TransactionFeedAdapter,
            load_auto_analytical_resolver,
        )

        config = config or EngineConfig()
        resolver = load_auto_analytical_resolver(session) if config.auto_tag_untagged_lines else None
        feed = TransactionFeedAdapter(
            session,
            count_draft_documents=config.count_draft_documents,
            resolver=resolver,
        )
        return cls(
            accounts=AnalyticalAccountSelector(session),
            budgets=BudgetSelector(session),
            transactions=feed,
            reconciliations=feed,
            clock=clock,
            config=config,
        )

    def _account_map(self) -> dict[str, AnalyticalAccount]:
        return {a.code: a for a in self._accounts.list_accounts()}

    def budget_vs_actual(
        self,
        start: date,
        end: date,
        sort_by: str = "account_code",
        descending: bool = False,
    ) -> BudgetVsActualReport:
        """
        One row per budget overlapping ``[start, end]`` plus a summary.

        Raises:
            InvalidPeriodError: ``start > end``.
            InvalidSortKeyError: unsupported ``sort_by``.
        """
        period = ReportingPeriod(start, end)
        budgets = self._budgets.find_budgets(None, period)
        windows = [
            (b.account_code, window)
            for b in budgets
            if (window := self._evaluator.window_for(b, period)) is not None
        ]
        actuals = self._aggregator.aggregate_windows(
            self._transactions.transactions_between(period), windows,
        )
        report = self._evaluator.evaluate(
            budgets,
            actuals,
            self._account_map(),
            period=period,
            sort_by=sort_by,
            descending=descending,
        )
        logger.info(
            "budget_vs_actual_report",
            extra={
                "period": str(period),
                "row_count": len(report.rows),
                "total_budget": str(report.summary.total_budget),
                "total_actual": str(report.summary.total_actual),
            },
        )
        return report

    def _actuals_by_account(self, period: ReportingPeriod, budgets) -> dict:
        return self._aggregator.aggregate(
            self._transactions.transactions_between(period),
            period=period,
            include_accounts=sorted({b.account_code for b in budgets}),
        )

    def cost_center_performance(self, start: date, end: date) -> tuple[CostCenterPerformance, ...]:
        period = ReportingPeriod(start, end)
        budgets = self._budgets.find_budgets(None, period)
        return self._evaluator.cost_center_performance(
            self._actuals_by_account(period, budgets), budgets, self._account_map(),
        )

    def unbudgeted_activity(self, start: date, end: date) -> tuple[UnbudgetedActivity, ...]:
        period = ReportingPeriod(start, end)
        budgets = self._budgets.find_budgets(None, period)
        return self._evaluator.unbudgeted_activity(
            self._actuals_by_account(period, budgets), budgets, self._account_map(),
        )

    def monthly_trend(
        self,
        start: date,
        end: date,
        account_code: str | None = None,
    ) -> tuple[MonthlyBucket, ...]:
        """Calendar-month actuals, optionally for a single account."""
        period = ReportingPeriod(start, end)
        buckets = self._aggregator.aggregate_monthly(
            self._transactions.transactions_between(period), period=period,
        )
        return tuple(
            b for b in buckets.values()
            if account_code is None or b.account_code == account_code
        )

    def dashboard(self, start: date, end: date) -> BudgetDashboard:
        report = self.budget_vs_actual(start, end)
        return self._evaluator.dashboard(
            report,
            self.cost_center_performance(start, end),
            under_utilized_threshold=self._config.under_utilized_threshold_percent,
            top_n=self._config.dashboard_top_n,
        )

    def reconcile(
        self,
        subject: ReconciliationSubject,
        as_of: date | None = None,
    ) -> ReconciliationResult:
        return self._reconciler.evaluate(subject, as_of or self._clock.today())

    def payment_status_report(
        self,
        as_of: date | None = None,
        document_type: SourceDocumentType | None = None,
    ) -> PaymentStatusReport:
        """Reconcile every invoice and bill and total them by status."""
        if self._reconciliations is None:
            raise RuntimeError("BudgetReportingService has no reconciliation source")
        as_of = as_of or self._clock.today()
        subjects: Sequence[ReconciliationSubject] = self._reconciliations.reconciliation_subjects(
            document_type,
        )
        results = self._reconciler.evaluate_many(subjects, as_of=as_of)
        summary = self._reconciler.summarize(results)
        logger.info(
            "payment_status_report",
            extra={
                "as_of": as_of,
                "document_count": summary.document_count,
                "overdue_count": summary.overdue_count,
            },
        )
        return PaymentStatusReport(as_of=as_of, results=results, summary=summary)
