"""
SettlementService -- at-most-once application of payment settlements.

Responsibility:
    Applies a captured payment to an invoice or bill: increments
    ``paid_amount`` by the settled amount and records the settlement under
    its idempotency key, then reports the document's new payment state.

Architecture position:
    Kernel > Services -- imperative shell.  Calls the pure
    ``PaymentReconciliationEvaluator`` for every status it reports.
    Flushes within the caller's transaction; never commits.

Invariants enforced:
    - At most one application per idempotency key.  The settlement row and
      the ``paid_amount`` increment are written in the same savepoint, so a
      reader never sees one without the other.
    - ``paid_amount`` never decreases.
    - The document row is locked (``SELECT ... FOR UPDATE``) before the
      idempotency key is re-checked, so concurrent distinct settlements on
      one document serialize.

Failure modes:
    - ``InvalidSettlementKeyError``: key is not ``provider:reference``.
    - ``InvalidSettlementAmountError``: amount is zero or negative.
    - ``DocumentNotFoundError``: no payable document with that id.
    - Replay of a known key: DUPLICATE result, no mutation.
    - Known key with a different document or amount: REJECTED result with a
      SETTLEMENT_PAYLOAD_MISMATCH anomaly, no mutation.
    - Cancelled document: REJECTED result with a DOCUMENT_NOT_PAYABLE
      anomaly, no mutation.
    - Concurrent insert of the same key: the loser's savepoint rolls back on
      the unique constraint and it returns DUPLICATE.
"""

from dataclasses import dataclass
from decimal import Decimal
from enum import Enum
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from budget_engines.payment_status import PaymentReconciliationEvaluator, ReconciliationResult
from budget_kernel.domain.clock import Clock, SystemClock
from budget_kernel.domain.dtos import Anomaly, AnomalyCode, SettlementEvent, SourceDocumentType
from budget_kernel.domain.values import ZERO, to_decimal
from budget_kernel.exceptions import (
    DocumentNotFoundError,
    InvalidSettlementAmountError,
    InvalidSettlementKeyError,
)
from budget_kernel.logging_config import LogContext, get_logger
from budget_kernel.models.documents import CustomerInvoiceModel, VendorBillModel
from budget_kernel.models.settlement import SettlementModel
from budget_kernel.utils.hashing import hash_payload
from budget_kernel.utils.idempotency import parse_settlement_key

logger = get_logger("services.settlement")

_PAYABLE_MODELS = {
    SourceDocumentType.CUSTOMER_INVOICE: CustomerInvoiceModel,
    SourceDocumentType.VENDOR_BILL: VendorBillModel,
}


class SettlementStatus(str, Enum):
    APPLIED = "APPLIED"
    DUPLICATE = "DUPLICATE"
    REJECTED = "REJECTED"


@dataclass(frozen=True)
class SettlementResult:
    """Outcome of one settlement application."""

    status: SettlementStatus
    idempotency_key: str
    document_id: UUID
    paid_amount: Decimal
    reconciliation: ReconciliationResult
    anomalies: tuple[Anomaly, ...] = ()

    @property
    def applied(self) -> bool:
        return self.status == SettlementStatus.APPLIED


def settlement_payload_hash(event: SettlementEvent, amount: Decimal) -> str:
    """Hash of the fields a replay must repeat exactly."""
    return hash_payload(
        {
            "document_type": event.document_type,
            "document_id": event.document_id,
            "amount": amount,
        }
    )


class SettlementService:
    """
    Applies settlement events to payable documents.

    Contract:
        ``apply`` is idempotent on ``event.idempotency_key``.
    Non-goals:
        Does not talk to the payment provider, and does not cap
        overpayments; the excess is reported as an OVERPAYMENT anomaly.
    """

    def __init__(
        self,
        session: Session,
        clock: Clock | None = None,
        evaluator: PaymentReconciliationEvaluator | None = None,
    ):
        self._session = session
        self._clock = clock or SystemClock()
        self._evaluator = evaluator or PaymentReconciliationEvaluator()

    def apply(self, event: SettlementEvent) -> SettlementResult:
        """
        Apply ``event`` at most once.

        Raises:
            InvalidSettlementKeyError: malformed or blank idempotency key.
            InvalidSettlementAmountError: amount <= 0.
            DocumentNotFoundError: unknown document or non-payable type.
        """
        try:
            parse_settlement_key(event.idempotency_key)
        except ValueError:
            raise InvalidSettlementKeyError(event.idempotency_key) from None

        amount = to_decimal(event.amount, "amount")
        if amount <= ZERO:
            raise InvalidSettlementAmountError(event.idempotency_key, amount)

        try:
            document_type = SourceDocumentType(event.document_type)
        except ValueError:
            raise DocumentNotFoundError(str(event.document_type), str(event.document_id)) from None
        model = _PAYABLE_MODELS.get(document_type)
        if model is None:
            raise DocumentNotFoundError(str(event.document_type), str(event.document_id))

        payload_hash = settlement_payload_hash(event, amount)

        with LogContext.bind(
            document_id=str(event.document_id),
            idempotency_key=event.idempotency_key,
        ):
            try:
                with self._session.begin_nested():
                    return self._apply_locked(event, model, amount, payload_hash)
            except IntegrityError:
                logger.warning("concurrent_settlement_conflict")
                existing = self._find_settlement(event.idempotency_key)
                if existing is None:
                    raise
                return self._replayed(event, existing, payload_hash)

    def _apply_locked(self, event, model, amount: Decimal, payload_hash: str) -> SettlementResult:
        existing = self._find_settlement(event.idempotency_key)
        if existing is not None:
            return self._replayed(event, existing, payload_hash)

        document = self._session.scalars(
            select(model).where(model.id == event.document_id).with_for_update()
        ).one_or_none()
        if document is None:
            raise DocumentNotFoundError(model.document_type.value, str(event.document_id))

        # Another transaction may have committed the key while we waited on the lock
        existing = self._find_settlement(event.idempotency_key)
        if existing is not None:
            return self._replayed(event, existing, payload_hash)

        as_of = self._clock.today()
        before = self._evaluator.evaluate(document.to_subject(), as_of)
        if before.is_cancelled:
            anomaly = Anomaly(
                code=AnomalyCode.DOCUMENT_NOT_PAYABLE,
                message=f"{model.document_type.value} {document.number} is cancelled",
                document_id=str(document.id),
                amount=amount,
            )
            logger.warning("settlement_rejected_not_payable", extra={"amount": str(amount)})
            return SettlementResult(
                status=SettlementStatus.REJECTED,
                idempotency_key=event.idempotency_key,
                document_id=document.id,
                paid_amount=document.paid_amount,
                reconciliation=before,
                anomalies=(anomaly,),
            )

        self._session.add(
            SettlementModel(
                idempotency_key=event.idempotency_key,
                document_type=model.document_type.value,
                document_id=document.id,
                amount=amount,
                settled_at=event.settled_at,
                payload_hash=payload_hash,
                provider=event.provider,
            )
        )
        document.paid_amount = self._evaluator.apply_settlement(document.paid_amount, amount)
        self._session.flush()

        after = self._evaluator.evaluate(document.to_subject(), as_of)
        logger.info(
            "settlement_applied",
            extra={
                "amount": str(amount),
                "paid_amount": str(document.paid_amount),
                "payment_status": after.payment_status.value,
                "previous_status": before.payment_status.value,
            },
        )
        return SettlementResult(
            status=SettlementStatus.APPLIED,
            idempotency_key=event.idempotency_key,
            document_id=document.id,
            paid_amount=document.paid_amount,
            reconciliation=after,
            anomalies=after.anomalies,
        )

    def _replayed(
        self,
        event: SettlementEvent,
        existing: SettlementModel,
        payload_hash: str,
    ) -> SettlementResult:
        """Result for a key that was already applied; never mutates."""
        model = _PAYABLE_MODELS[SourceDocumentType(existing.document_type)]
        document = self._session.get(model, existing.document_id)
        reconciliation = self._evaluator.evaluate(document.to_subject(), self._clock.today())

        if existing.payload_hash != payload_hash:
            anomaly = Anomaly(
                code=AnomalyCode.SETTLEMENT_PAYLOAD_MISMATCH,
                message=(
                    f"Settlement {event.idempotency_key} was already applied "
                    "with a different document or amount"
                ),
                document_id=str(event.document_id),
                amount=to_decimal(event.amount, "amount"),
            )
            logger.warning(
                "settlement_payload_mismatch",
                extra={
                    "stored_hash": existing.payload_hash,
                    "received_hash": payload_hash,
                },
            )
            status = SettlementStatus.REJECTED
        else:
            anomaly = Anomaly(
                code=AnomalyCode.DUPLICATE_SETTLEMENT,
                message=f"Settlement {event.idempotency_key} was already applied",
                document_id=str(existing.document_id),
                amount=existing.amount,
            )
            logger.info("settlement_duplicate")
            status = SettlementStatus.DUPLICATE

        return SettlementResult(
            status=status,
            idempotency_key=event.idempotency_key,
            document_id=existing.document_id,
            paid_amount=document.paid_amount,
            reconciliation=reconciliation,
            anomalies=(anomaly,),
        )

    def _find_settlement(self, idempotency_key: str) -> SettlementModel | None:
        return self._session.scalars(
            select(SettlementModel).where(SettlementModel.idempotency_key == idempotency_key)
        ).one_or_none()
