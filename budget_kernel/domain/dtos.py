"""
Domain DTOs -- immutable value objects passed between layers.

Responsibility:
    The single normalized shape of every noun the engines consume:
    analytical accounts, budgets, tagged transactions, reconciliation
    subjects, settlement events and anomalies.  Source documents are mapped
    into these shapes once, at the adapter boundary, so no engine ever has to
    guess which of several near-duplicate fields is authoritative.

Architecture position:
    Kernel > Domain -- pure data definitions with ZERO I/O.

Invariants enforced:
    - All DTOs are ``frozen=True``.
    - All monetary fields are ``Decimal``.
    - ``Budget`` rejects inverted periods and negative amounts on construction.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime
from decimal import Decimal
from enum import Enum
from uuid import UUID

from budget_kernel.domain.period import ReportingPeriod
from budget_kernel.exceptions import NegativeBudgetAmountError


class SourceDocumentType(str, Enum):
    """Documents that feed actuals."""

    PURCHASE_ORDER = "PURCHASE_ORDER"
    SALES_ORDER = "SALES_ORDER"
    CUSTOMER_INVOICE = "CUSTOMER_INVOICE"
    VENDOR_BILL = "VENDOR_BILL"

    @property
    def is_expense(self) -> bool:
        return self in (SourceDocumentType.PURCHASE_ORDER, SourceDocumentType.VENDOR_BILL)


class DocumentStatus(str, Enum):
    """Lifecycle state of a document (owned by document issuance)."""

    DRAFT = "DRAFT"
    CONFIRMED = "CONFIRMED"
    POSTED = "POSTED"
    SENT = "SENT"
    CANCELLED = "CANCELLED"


class PaymentStatus(str, Enum):
    """Derived payment state of an invoice or bill."""

    NOT_PAID = "NOT_PAID"
    PARTIALLY_PAID = "PARTIALLY_PAID"
    PAID = "PAID"

    @property
    def rank(self) -> int:
        return _PAYMENT_RANK[self]


_PAYMENT_RANK = {
    PaymentStatus.NOT_PAID: 0,
    PaymentStatus.PARTIALLY_PAID: 1,
    PaymentStatus.PAID: 2,
}


class AnomalyCode(str, Enum):
    """Non-fatal conditions surfaced alongside results."""

    OVERPAYMENT = "OVERPAYMENT"
    NEGATIVE_PAID_AMOUNT = "NEGATIVE_PAID_AMOUNT"
    DUPLICATE_SETTLEMENT = "DUPLICATE_SETTLEMENT"
    SETTLEMENT_PAYLOAD_MISMATCH = "SETTLEMENT_PAYLOAD_MISMATCH"
    DOCUMENT_NOT_PAYABLE = "DOCUMENT_NOT_PAYABLE"


@dataclass(frozen=True)
class Anomaly:
    """A recovered, reportable inconsistency."""

    code: AnomalyCode
    message: str
    document_id: str | None = None
    amount: Decimal | None = None


@dataclass(frozen=True)
class AnalyticalAccount:
    """A cost center."""

    code: str
    name: str
    description: str | None = None


@dataclass(frozen=True)
class Budget:
    """A spending ceiling for one account over an inclusive date range."""

    account_code: str
    period_start: date
    period_end: date
    budget_amount: Decimal
    description: str | None = None
    id: UUID | None = None

    def __post_init__(self) -> None:
        # ReportingPeriod validates ordering
        ReportingPeriod(self.period_start, self.period_end)
        if self.budget_amount < 0:
            raise NegativeBudgetAmountError(self.account_code, self.budget_amount)

    @property
    def period(self) -> ReportingPeriod:
        return ReportingPeriod(self.period_start, self.period_end)

    @property
    def key(self) -> tuple[str, date, date]:
        return (self.account_code, self.period_start, self.period_end)


@dataclass(frozen=True)
class TaggedTransaction:
    """One document line, normalized for aggregation."""

    analytical_account_code: str | None
    document_date: date
    amount: Decimal
    source_document_type: SourceDocumentType
    source_document_id: str
    source_line_id: str | None = None

    @property
    def is_tagged(self) -> bool:
        return bool(self.analytical_account_code)


@dataclass(frozen=True)
class ReconciliationSubject:
    """An invoice or bill as seen by the payment reconciliation evaluator."""

    total_amount: Decimal
    paid_amount: Decimal
    due_date: date | None
    document_status: DocumentStatus | str
    document_id: str | None = None
    document_type: SourceDocumentType = SourceDocumentType.CUSTOMER_INVOICE
    document_number: str | None = None

    @property
    def is_cancelled(self) -> bool:
        return str(getattr(self.document_status, "value", self.document_status)).upper() == (
            DocumentStatus.CANCELLED.value
        )


@dataclass(frozen=True)
class SettlementEvent:
    """A captured payment reported by the external payment collaborator."""

    document_id: UUID
    amount: Decimal
    idempotency_key: str
    settled_at: datetime
    document_type: SourceDocumentType = SourceDocumentType.CUSTOMER_INVOICE
    provider: str | None = None
