"""
Hypothesis property tests for the pure calculators.

Properties:
- Outstanding balance is never negative and equals ``max(total - paid, 0)``.
- Payment status never moves backwards as the paid amount grows.
- A zero budget always reports zero utilization.
- Aggregated actuals do not depend on transaction order.
- A settlement replay hash ignores trailing zeros but not amount changes.
"""

from datetime import UTC, date, datetime, timedelta
from decimal import Decimal

from hypothesis import given, settings
from hypothesis import strategies as st
from hypothesis.strategies import composite

from budget_engines.aggregation import ActualAmountAggregator
from budget_engines.budget_actual import utilization_percent
from budget_engines.payment_status import (
    PaymentReconciliationEvaluator,
    derive_status,
    outstanding_balance,
)
from budget_kernel.domain.dtos import (
    ReconciliationSubject,
    SettlementEvent,
    SourceDocumentType,
    TaggedTransaction,
)
from budget_kernel.domain.period import ReportingPeriod
from budget_kernel.services.settlement_service import settlement_payload_hash

FY2025 = ReportingPeriod.for_year(2025)

amounts = st.decimals(
    min_value=Decimal("0"),
    max_value=Decimal("999999999.99"),
    places=2,
    allow_nan=False,
    allow_infinity=False,
)
positive_amounts = amounts.filter(lambda d: d > 0)


@composite
def transactions(draw):
    return TaggedTransaction(
        analytical_account_code=draw(st.sampled_from(["CC001", "CC002", "CC003", None])),
        document_date=date(2025, 1, 1) + timedelta(days=draw(st.integers(-30, 394))),
        amount=draw(amounts),
        source_document_type=draw(st.sampled_from(list(SourceDocumentType))),
        source_document_id=str(draw(st.integers(1, 50))),
    )


class TestBalanceProperties:

    @given(total=amounts, paid=amounts)
    def test_balance_never_negative(self, total, paid):
        balance = outstanding_balance(total, paid)
        assert balance >= 0
        assert balance == max(total - paid, Decimal("0"))

    @given(total=amounts, paid=amounts, as_of_offset=st.integers(-400, 400))
    def test_evaluate_matches_derivation(self, total, paid, as_of_offset):
        subject = ReconciliationSubject(
            total_amount=total,
            paid_amount=paid,
            due_date=date(2025, 6, 1),
            document_status="SENT",
        )
        result = PaymentReconciliationEvaluator().evaluate(
            subject, date(2025, 6, 1) + timedelta(days=as_of_offset),
        )
        assert result.payment_status == derive_status(total, paid)
        assert result.balance == outstanding_balance(total, paid)
        assert result.days_overdue >= 0
        assert result.is_overdue == (result.days_overdue > 0)

    @given(total=positive_amounts, payments=st.lists(positive_amounts, max_size=10))
    def test_status_monotonic_in_paid(self, total, payments):
        evaluator = PaymentReconciliationEvaluator()
        paid = Decimal("0")
        status = derive_status(total, paid)
        for amount in payments:
            paid = evaluator.apply_settlement(paid, amount)
            new_status = derive_status(total, paid)
            assert evaluator.is_valid_transition(status, new_status)
            status = new_status


class TestUtilizationProperties:

    @given(actual=amounts, provided=st.one_of(st.none(), amounts))
    def test_zero_budget_zero_utilization(self, actual, provided):
        assert utilization_percent(actual, Decimal("0"), provided=provided) == Decimal("0")

    @given(actual=amounts, budget=positive_amounts)
    def test_utilization_scale(self, actual, budget):
        value = utilization_percent(actual, budget, places=1)
        assert value >= 0
        assert value.as_tuple().exponent == -1


class TestAggregationProperties:

    @settings(max_examples=50)
    @given(txns=st.lists(transactions(), max_size=30), seed=st.randoms())
    def test_order_independent(self, txns, seed):
        aggregator = ActualAmountAggregator()
        shuffled = list(txns)
        seed.shuffle(shuffled)

        assert aggregator.aggregate(txns, FY2025) == aggregator.aggregate(shuffled, FY2025)

    @settings(max_examples=50)
    @given(txns=st.lists(transactions(), max_size=30))
    def test_totals_match_in_window_tagged_lines(self, txns):
        buckets = ActualAmountAggregator().aggregate(txns, FY2025)
        counted = [t for t in txns if t.is_tagged and FY2025.contains(t.document_date)]

        assert sum(b.actual_expense + b.actual_income for b in buckets.values()) == sum(
            (t.amount for t in counted), Decimal("0")
        )
        assert sum(b.transaction_count for b in buckets.values()) == len(counted)


class TestSettlementPayloadHash:

    @given(amount=positive_amounts, doc=st.uuids())
    def test_trailing_zeros_do_not_change_hash(self, amount, doc):
        event = SettlementEvent(
            document_id=doc,
            amount=amount,
            idempotency_key="stripe:cs_prop",
            settled_at=datetime(2025, 6, 15, tzinfo=UTC),
        )
        padded = amount.quantize(Decimal("0.0001"))

        assert settlement_payload_hash(event, amount) == settlement_payload_hash(event, padded)

    @given(amount=positive_amounts, doc=st.uuids())
    def test_different_amount_changes_hash(self, amount, doc):
        event = SettlementEvent(
            document_id=doc,
            amount=amount,
            idempotency_key="stripe:cs_prop",
            settled_at=datetime(2025, 6, 15, tzinfo=UTC),
        )
        assert settlement_payload_hash(event, amount) != settlement_payload_hash(
            event, amount + Decimal("0.01"),
        )
