"""
Settlement race tests.

Two payment webhooks for the same checkout can arrive at the same time, and
distinct settlements for one invoice can land concurrently.  Expected:

- The same idempotency key is applied exactly once; every other attempt
  reports DUPLICATE.
- Distinct keys on one invoice serialize on the row lock; the final
  ``paid_amount`` is the sum of all of them.

The threaded tests need real row locks and run only against PostgreSQL.
"""

from concurrent.futures import ThreadPoolExecutor
from datetime import UTC, date, datetime
from decimal import Decimal
from threading import Barrier

import pytest
from sqlalchemy import func, select

from budget_kernel.domain.clock import DeterministicClock
from budget_kernel.domain.dtos import SettlementEvent
from budget_kernel.models.documents import CustomerInvoiceModel
from budget_kernel.models.settlement import SettlementModel
from budget_kernel.services.settlement_service import SettlementService, SettlementStatus

SETTLED_AT = datetime(2025, 6, 15, tzinfo=UTC)
THREADS = 8


@pytest.fixture
def committed_invoice(session, create_document):
    invoice = create_document(
        "CUSTOMER_INVOICE", date(2025, 5, 1),
        lines=[("CC003", Decimal("25000"))], status="SENT", due_date=date(2025, 5, 31),
    )
    session.commit()
    return invoice


def _apply_in_new_session(session_factory, event, barrier=None):
    if barrier is not None:
        barrier.wait()
    with session_factory() as session:
        result = SettlementService(session, clock=DeterministicClock()).apply(event)
        session.commit()
        return result.status


def _state(session_factory, invoice_id):
    with session_factory() as session:
        paid = session.get(CustomerInvoiceModel, invoice_id).paid_amount
        count = session.scalar(select(func.count()).select_from(SettlementModel))
        return paid, count


class TestSequentialReplay:

    def test_replay_across_sessions(self, session_factory, committed_invoice):
        event = SettlementEvent(
            document_id=committed_invoice.id,
            amount=Decimal("12500"),
            idempotency_key="stripe:cs_seq",
            settled_at=SETTLED_AT,
        )
        statuses = [_apply_in_new_session(session_factory, event) for _ in range(3)]

        assert statuses == [
            SettlementStatus.APPLIED,
            SettlementStatus.DUPLICATE,
            SettlementStatus.DUPLICATE,
        ]
        assert _state(session_factory, committed_invoice.id) == (Decimal("12500"), 1)


@pytest.mark.postgres
class TestTrueConcurrency:

    def test_same_key_applied_once(self, session_factory, committed_invoice):
        event = SettlementEvent(
            document_id=committed_invoice.id,
            amount=Decimal("12500"),
            idempotency_key="stripe:cs_race",
            settled_at=SETTLED_AT,
        )
        barrier = Barrier(THREADS)
        with ThreadPoolExecutor(max_workers=THREADS) as pool:
            statuses = list(
                pool.map(
                    lambda _: _apply_in_new_session(session_factory, event, barrier),
                    range(THREADS),
                )
            )

        assert statuses.count(SettlementStatus.APPLIED) == 1
        assert statuses.count(SettlementStatus.DUPLICATE) == THREADS - 1
        assert _state(session_factory, committed_invoice.id) == (Decimal("12500"), 1)

    def test_distinct_keys_all_applied(self, session_factory, committed_invoice):
        events = [
            SettlementEvent(
                document_id=committed_invoice.id,
                amount=Decimal("1000"),
                idempotency_key=f"stripe:cs_{i}",
                settled_at=SETTLED_AT,
            )
            for i in range(THREADS)
        ]
        barrier = Barrier(THREADS)
        with ThreadPoolExecutor(max_workers=THREADS) as pool:
            statuses = list(
                pool.map(lambda e: _apply_in_new_session(session_factory, e, barrier), events)
            )

        assert statuses == [SettlementStatus.APPLIED] * THREADS
        assert _state(session_factory, committed_invoice.id) == (
            Decimal("1000") * THREADS,
            THREADS,
        )
