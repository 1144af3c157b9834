"""
Module: budget_engines.payment_status
Responsibility:
    Derive the payment state of an invoice or bill from its totals, detect
    overdue documents and summarize a set of reconciliation results.

Architecture position:
    Engines -- pure calculation layer, zero I/O.
    The database mutation that applies a settlement lives in
    ``budget_kernel.services.settlement_service`` and calls into this module
    for every status it reports.

Invariants enforced:
    - ``paid <= 0`` -> NOT_PAID; ``0 < paid < total`` -> PARTIALLY_PAID;
      ``paid >= total`` -> PAID.
    - ``balance = max(total - paid, 0)`` and is never negative.
    - Overdue only when status is not PAID and ``due_date < as_of``.
      CANCELLED documents and documents without a due date are never
      overdue.
    - Overpayment and negative paid amounts are reported as anomalies,
      never raised.
    - Status rank is monotonic in ``paid`` for a fixed total.

Failure modes:
    - ``InvalidAmountError`` for a negative ``total_amount``.

Usage:
    from budget_engines.payment_status import PaymentReconciliationEvaluator

    result = PaymentReconciliationEvaluator().evaluate(subject, as_of=date(2025, 3, 1))
    result.payment_status  # PaymentStatus.PARTIALLY_PAID
"""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass, field
from datetime import date
from decimal import Decimal

from budget_engines.tracer import traced_engine
from budget_kernel.domain.dtos import (
    Anomaly,
    AnomalyCode,
    PaymentStatus,
    ReconciliationSubject,
)
from budget_kernel.domain.values import ZERO
from budget_kernel.exceptions import InvalidAmountError
from budget_kernel.logging_config import get_logger

logger = get_logger("engines.payment_status")


@dataclass(frozen=True)
class ReconciliationResult:
    """Payment state of one document as of a date."""

    payment_status: PaymentStatus
    balance: Decimal
    is_overdue: bool
    days_overdue: int = 0
    excess_paid: Decimal = ZERO
    anomalies: tuple[Anomaly, ...] = ()
    document_id: str | None = None
    total_amount: Decimal = ZERO
    paid_amount: Decimal = ZERO
    is_cancelled: bool = False


@dataclass(frozen=True)
class PaymentStatusSummary:
    """Totals of a payment status report."""

    document_count: int
    total_amount: Decimal
    total_paid: Decimal
    total_balance: Decimal
    count_by_status: dict[PaymentStatus, int] = field(default_factory=dict)
    balance_by_status: dict[PaymentStatus, Decimal] = field(default_factory=dict)
    overdue_count: int = 0
    overdue_balance: Decimal = ZERO
    anomaly_count: int = 0


def derive_status(total_amount: Decimal, paid_amount: Decimal) -> PaymentStatus:
    """Payment status from totals alone."""
    if paid_amount <= ZERO:
        return PaymentStatus.NOT_PAID
    if paid_amount >= total_amount:
        return PaymentStatus.PAID
    return PaymentStatus.PARTIALLY_PAID


def outstanding_balance(total_amount: Decimal, paid_amount: Decimal) -> Decimal:
    return max(total_amount - paid_amount, ZERO)


def is_valid_transition(current: PaymentStatus, new: PaymentStatus) -> bool:
    """Payment status never moves backwards."""
    return new.rank >= current.rank


class PaymentReconciliationEvaluator:
    """
    Pure evaluator for invoice and bill payment state.

    Contract:
        No I/O.  ``as_of`` is always passed in; the evaluator never reads
        the clock.
    Guarantees:
        - Same inputs always produce the same result.
        - ``balance >= 0``.
    """

    def derive_status(self, total_amount: Decimal, paid_amount: Decimal) -> PaymentStatus:
        return derive_status(total_amount, paid_amount)

    def evaluate(self, subject: ReconciliationSubject, as_of: date) -> ReconciliationResult:
        """
        Reconcile one document.

        Raises:
            InvalidAmountError: ``total_amount`` is negative.
        """
        total = subject.total_amount
        paid = subject.paid_amount
        if total < ZERO:
            raise InvalidAmountError("total_amount", total, "must not be negative")

        anomalies: list[Anomaly] = []
        status = derive_status(total, paid)

        if paid < ZERO:
            anomalies.append(
                Anomaly(
                    code=AnomalyCode.NEGATIVE_PAID_AMOUNT,
                    message=f"Paid amount {paid} is negative",
                    document_id=subject.document_id,
                    amount=paid,
                )
            )

        excess = paid - total if paid > total else ZERO
        if excess > ZERO:
            anomalies.append(
                Anomaly(
                    code=AnomalyCode.OVERPAYMENT,
                    message=f"Paid amount {paid} exceeds total {total} by {excess}",
                    document_id=subject.document_id,
                    amount=excess,
                )
            )

        cancelled = subject.is_cancelled
        days_overdue = 0
        if (
            not cancelled
            and status != PaymentStatus.PAID
            and subject.due_date is not None
            and subject.due_date < as_of
        ):
            days_overdue = (as_of - subject.due_date).days

        for anomaly in anomalies:
            logger.warning(
                "reconciliation_anomaly",
                extra={
                    "anomaly_code": anomaly.code.value,
                    "document_id": subject.document_id,
                    "amount": str(anomaly.amount),
                },
            )

        return ReconciliationResult(
            payment_status=status,
            balance=outstanding_balance(total, paid),
            is_overdue=days_overdue > 0,
            days_overdue=days_overdue,
            excess_paid=excess,
            anomalies=tuple(anomalies),
            document_id=subject.document_id,
            total_amount=total,
            paid_amount=paid,
            is_cancelled=cancelled,
        )

    @staticmethod
    def apply_settlement(paid_amount: Decimal, amount: Decimal) -> Decimal:
        """New paid amount after a settlement; overpayment is kept, not capped."""
        return paid_amount + amount

    @staticmethod
    def is_valid_transition(current: PaymentStatus, new: PaymentStatus) -> bool:
        return is_valid_transition(current, new)

    @traced_engine("payment_status", "1.0")
    def evaluate_many(
        self,
        subjects: Iterable[ReconciliationSubject],
        as_of: date,
    ) -> tuple[ReconciliationResult, ...]:
        return tuple(self.evaluate(s, as_of) for s in subjects)

    @staticmethod
    def summarize(results: Iterable[ReconciliationResult]) -> PaymentStatusSummary:
        """
        Payment status report totals.

        Cancelled documents are excluded; they are never payable.
        """
        count_by_status = {status: 0 for status in PaymentStatus}
        balance_by_status = {status: ZERO for status in PaymentStatus}
        total_amount = ZERO
        total_paid = ZERO
        overdue_count = 0
        overdue_balance = ZERO
        anomaly_count = 0
        document_count = 0

        for result in results:
            if result.is_cancelled:
                continue
            document_count += 1
            count_by_status[result.payment_status] += 1
            balance_by_status[result.payment_status] += result.balance
            total_amount += result.total_amount
            total_paid += result.paid_amount
            anomaly_count += len(result.anomalies)
            if result.is_overdue:
                overdue_count += 1
                overdue_balance += result.balance

        return PaymentStatusSummary(
            document_count=document_count,
            total_amount=total_amount,
            total_paid=total_paid,
            total_balance=sum(balance_by_status.values(), ZERO),
            count_by_status=count_by_status,
            balance_by_status=balance_by_status,
            overdue_count=overdue_count,
            overdue_balance=overdue_balance,
            anomaly_count=anomaly_count,
        )
