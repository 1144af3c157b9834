"""Pure domain layer: values, periods, DTOs, clock and read protocols."""

from budget_kernel.domain.clock import Clock, DeterministicClock, SystemClock
from budget_kernel.domain.dtos import (
    AnalyticalAccount,
    Anomaly,
    AnomalyCode,
    Budget,
    DocumentStatus,
    PaymentStatus,
    ReconciliationSubject,
    SettlementEvent,
    SourceDocumentType,
    TaggedTransaction,
)
from budget_kernel.domain.period import ReportingPeriod
from budget_kernel.domain.sources import (
    AccountSource,
    BudgetSource,
    ReconciliationSource,
    TransactionSource,
)

__all__ = [
    "Clock",
    "DeterministicClock",
    "SystemClock",
    "AnalyticalAccount",
    "Anomaly",
    "AnomalyCode",
    "Budget",
    "DocumentStatus",
    "PaymentStatus",
    "ReconciliationSubject",
    "SettlementEvent",
    "SourceDocumentType",
    "TaggedTransaction",
    "ReportingPeriod",
    "AccountSource",
    "BudgetSource",
    "ReconciliationSource",
    "TransactionSource",
]
