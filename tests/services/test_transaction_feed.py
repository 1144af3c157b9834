"""Tests for the transaction feed adapter."""

from datetime import date
from decimal import Decimal
from uuid import uuid4

import pytest

from budget_kernel.domain.dtos import SourceDocumentType
from budget_kernel.domain.period import ReportingPeriod
from budget_kernel.domain.sources import ReconciliationSource, TransactionSource
from budget_kernel.models.master_data import AutoAnalyticalRuleModel, ContactModel, ProductModel
from budget_services.transaction_feed import (
    TransactionFeedAdapter,
    load_auto_analytical_resolver,
)

FY2025 = ReportingPeriod.for_year(2025)


class TestTransactionsBetween:

    def test_satisfies_protocols(self, session):
        feed = TransactionFeedAdapter(session)
        assert isinstance(feed, TransactionSource)
        assert isinstance(feed, ReconciliationSource)

    def test_one_transaction_per_line(self, session, create_document):
        po = create_document(
            "PURCHASE_ORDER", date(2025, 3, 1),
            lines=[("CC001", Decimal("100")), ("CC002", Decimal("40")), (None, Decimal("7"))],
        )
        txns = TransactionFeedAdapter(session).transactions_between(FY2025)

        assert len(txns) == 3
        assert {t.source_document_id for t in txns} == {str(po.id)}
        assert all(t.source_document_type == SourceDocumentType.PURCHASE_ORDER for t in txns)
        assert sorted(t.amount for t in txns) == [Decimal("7"), Decimal("40"), Decimal("100")]
        assert sum(1 for t in txns if not t.is_tagged) == 1

    def test_all_document_types_read(self, session, create_document):
        for doc_type in ("PURCHASE_ORDER", "SALES_ORDER", "CUSTOMER_INVOICE", "VENDOR_BILL"):
            create_document(doc_type, date(2025, 4, 1), lines=[("CC001", Decimal("1"))])

        types = {t.source_document_type for t in TransactionFeedAdapter(session).transactions_between(FY2025)}
        assert types == set(SourceDocumentType)

    def test_cancelled_documents_excluded(self, session, create_document):
        create_document("PURCHASE_ORDER", date(2025, 3, 1), lines=[("CC001", Decimal("1"))], status="CANCELLED")
        assert TransactionFeedAdapter(session).transactions_between(FY2025) == ()

    def test_draft_documents_configurable(self, session, create_document):
        create_document("SALES_ORDER", date(2025, 3, 1), lines=[("CC001", Decimal("1"))], status="DRAFT")

        assert len(TransactionFeedAdapter(session).transactions_between(FY2025)) == 1
        assert TransactionFeedAdapter(
            session, count_draft_documents=False,
        ).transactions_between(FY2025) == ()

    def test_documents_outside_period_excluded(self, session, create_document):
        create_document("PURCHASE_ORDER", date(2024, 12, 31), lines=[("CC001", Decimal("1"))])
        create_document("PURCHASE_ORDER", date(2026, 1, 1), lines=[("CC001", Decimal("1"))])
        assert TransactionFeedAdapter(session).transactions_between(FY2025) == ()


class TestAutoTagging:

    @pytest.fixture
    def master_data(self, session, standard_accounts, test_actor_id):
        category = uuid4()
        vendor = ContactModel(name="Oak Supplies", contact_type="VENDOR", tag="timber", created_by_id=test_actor_id)
        product = ProductModel(name="Oak plank", category_id=category, created_by_id=test_actor_id)
        session.add_all([vendor, product])
        session.flush()
        session.add(
            AutoAnalyticalRuleModel(
                name="timber to production",
                analytical_account_code="CC001",
                partner_tag="timber",
                product_category_id=category,
                created_by_id=test_actor_id,
            )
        )
        session.flush()
        return vendor, product

    def test_untagged_line_resolved(self, session, create_document, master_data):
        vendor, product = master_data
        create_document(
            "VENDOR_BILL", date(2025, 2, 1),
            lines=[(None, Decimal("300"), product.id)],
            partner_id=vendor.id,
        )
        feed = TransactionFeedAdapter(session, resolver=load_auto_analytical_resolver(session))
        (txn,) = feed.transactions_between(FY2025)

        assert txn.analytical_account_code == "CC001"

    def test_explicit_tag_kept(self, session, create_document, master_data):
        vendor, product = master_data
        create_document(
            "VENDOR_BILL", date(2025, 2, 1),
            lines=[("CC004", Decimal("300"), product.id)],
            partner_id=vendor.id,
        )
        feed = TransactionFeedAdapter(session, resolver=load_auto_analytical_resolver(session))
        (txn,) = feed.transactions_between(FY2025)

        assert txn.analytical_account_code == "CC004"

    def test_without_resolver_line_stays_untagged(self, session, create_document, master_data):
        vendor, product = master_data
        create_document(
            "VENDOR_BILL", date(2025, 2, 1),
            lines=[(None, Decimal("300"), product.id)],
            partner_id=vendor.id,
        )
        (txn,) = TransactionFeedAdapter(session).transactions_between(FY2025)
        assert txn.analytical_account_code is None


class TestReconciliationSubjects:

    def test_invoices_and_bills(self, session, create_document):
        inv = create_document(
            "CUSTOMER_INVOICE", date(2025, 1, 10),
            lines=[("CC003", Decimal("25000"))], status="SENT", due_date=date(2025, 2, 9),
        )
        create_document("VENDOR_BILL", date(2025, 1, 12), lines=[("CC001", Decimal("10"))])
        create_document("PURCHASE_ORDER", date(2025, 1, 12), lines=[("CC001", Decimal("10"))])

        feed = TransactionFeedAdapter(session)
        subjects = feed.reconciliation_subjects()
        invoices = feed.reconciliation_subjects(SourceDocumentType.CUSTOMER_INVOICE)

        assert len(subjects) == 2
        assert len(invoices) == 1
        assert invoices[0].document_id == str(inv.id)
        assert invoices[0].total_amount == Decimal("25000")
        assert invoices[0].due_date == date(2025, 2, 9)
        assert invoices[0].document_status == "SENT"
