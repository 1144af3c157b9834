"""
TransactionFeedAdapter -- normalizes source documents for the engines.

Responsibility:
    Reads purchase orders, sales orders, customer invoices and vendor bills
    and maps every line to one ``TaggedTransaction`` and every invoice or
    bill to one ``ReconciliationSubject``.  This is the only place that
    knows the document tables.

Architecture position:
    Services -- read-only orchestration over the kernel models.  Satisfies
    ``TransactionSource`` and ``ReconciliationSource``.

Invariants enforced:
    - One total mapping function per shape: ``normalize_line`` for lines,
      ``_PayableColumns.to_subject`` for payable headers.  The line amount is
      always the stored ``subtotal``.
    - CANCELLED documents never produce transactions.  DRAFT documents are
      included unless ``count_draft_documents`` is off.
    - Untagged lines pass through untagged unless an auto-analytical
      resolver is supplied, in which case the resolver may tag them.
      Explicit tags are never overwritten.
"""

from collections.abc import Sequence

from sqlalchemy import select
from sqlalchemy.orm import Session

from budget_engines.auto_analytical import (
    AutoAnalyticalResolver,
    AutoAnalyticalRule,
    LineContext,
)
from budget_kernel.domain.dtos import (
    DocumentStatus,
    ReconciliationSubject,
    SourceDocumentType,
    TaggedTransaction,
)
from budget_kernel.domain.period import ReportingPeriod
from budget_kernel.logging_config import get_logger
from budget_kernel.models.documents import (
    CustomerInvoiceModel,
    PurchaseOrderModel,
    SalesOrderModel,
    VendorBillModel,
)
from budget_kernel.models.master_data import (
    AutoAnalyticalRuleModel,
    ContactModel,
    ProductModel,
)

logger = get_logger("services.transaction_feed")

_DOCUMENT_MODELS = (
    PurchaseOrderModel,
    SalesOrderModel,
    CustomerInvoiceModel,
    VendorBillModel,
)

_PAYABLE_MODELS = {
    SourceDocumentType.CUSTOMER_INVOICE: CustomerInvoiceModel,
    SourceDocumentType.VENDOR_BILL: VendorBillModel,
}


def normalize_line(
    line,
    document,
    analytical_account_code: str | None = None,
) -> TaggedTransaction:
    """
    Map a stored document line to a ``TaggedTransaction``.

    ``analytical_account_code`` is only used when the line itself carries
    no tag.
    """
    return TaggedTransaction(
        analytical_account_code=line.analytical_account_code or analytical_account_code,
        document_date=document.document_date,
        amount=line.subtotal,
        source_document_type=document.document_type,
        source_document_id=str(document.id),
        source_line_id=str(line.id),
    )


def load_auto_analytical_resolver(session: Session) -> AutoAnalyticalResolver:
    """Resolver over every active rule in the database."""
    rows = session.scalars(
        select(AutoAnalyticalRuleModel).where(AutoAnalyticalRuleModel.is_active.is_(True))
    ).all()
    return AutoAnalyticalResolver(
        AutoAnalyticalRule(
            account_code=row.analytical_account_code,
            created_at=row.created_at,
            name=row.name,
            partner_id=row.partner_id,
            partner_tag=row.partner_tag,
            product_id=row.product_id,
            product_category_id=row.product_category_id,
        )
        for row in rows
    )


class TransactionFeedAdapter:
    """
    SQL-backed transaction and reconciliation source.

    Contract:
        Pure reads over the caller's session.
    """

    def __init__(
        self,
        session: Session,
        count_draft_documents: bool = True,
        resolver: AutoAnalyticalResolver | None = None,
    ):
        self._session = session
        self._count_drafts = count_draft_documents
        self._resolver = resolver

    def _excluded_statuses(self) -> tuple[str, ...]:
        if self._count_drafts:
            return (DocumentStatus.CANCELLED.value,)
        return (DocumentStatus.CANCELLED.value, DocumentStatus.DRAFT.value)

    def transactions_between(self, period: ReportingPeriod) -> Sequence[TaggedTransaction]:
        excluded = self._excluded_statuses()
        partner_tags: dict = {}
        product_categories: dict = {}
        if self._resolver is not None:
            partner_tags = dict(
                self._session.execute(select(ContactModel.id, ContactModel.tag)).all()
            )
            product_categories = dict(
                self._session.execute(select(ProductModel.id, ProductModel.category_id)).all()
            )

        transactions: list[TaggedTransaction] = []
        auto_tagged = 0
        for model in _DOCUMENT_MODELS:
            documents = self._session.scalars(
                select(model)
                .where(
                    model.document_date >= period.start,
                    model.document_date <= period.end,
                    model.status.not_in(excluded),
                )
                .order_by(model.document_date, model.number)
            ).all()
            for document in documents:
                for line in document.lines:
                    resolved = None
                    if line.analytical_account_code is None and self._resolver is not None:
                        resolved = self._resolver.resolve(
                            LineContext(
                                partner_id=document.partner_id,
                                partner_tag=partner_tags.get(document.partner_id),
                                product_id=line.product_id,
                                product_category_id=product_categories.get(line.product_id),
                            )
                        )
                        if resolved is not None:
                            auto_tagged += 1
                    transactions.append(normalize_line(line, document, resolved))

        logger.debug(
            "transactions_loaded",
            extra={
                "period": str(period),
                "transaction_count": len(transactions),
                "auto_tagged": auto_tagged,
            },
        )
        return tuple(transactions)

    def reconciliation_subjects(
        self,
        document_type: SourceDocumentType | None = None,
    ) -> Sequence[ReconciliationSubject]:
        """Invoices and bills, ordered by type, due date and number."""
        models = (
            [_PAYABLE_MODELS[SourceDocumentType(document_type)]]
            if document_type is not None
            else list(_PAYABLE_MODELS.values())
        )
        subjects: list[ReconciliationSubject] = []
        for model in models:
            documents = self._session.scalars(
                select(model).order_by(model.due_date, model.number)
            ).all()
            subjects.extend(document.to_subject() for document in documents)
        return tuple(subjects)
