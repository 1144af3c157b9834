"""Read-side services: transaction feed, in-memory snapshots and reporting."""

from budget_services.reporting_service import BudgetReportingService, PaymentStatusReport
from budget_services.snapshot import InMemorySnapshot
from budget_services.transaction_feed import (
    TransactionFeedAdapter,
    load_auto_analytical_resolver,
    normalize_line,
)

__all__ = [
    "BudgetReportingService",
    "InMemorySnapshot",
    "PaymentStatusReport",
    "TransactionFeedAdapter",
    "load_auto_analytical_resolver",
    "normalize_line",
]
