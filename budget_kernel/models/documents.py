"""
Source document ORM models.

Responsibility:
    Persistence layout of the documents issued by the ordering and billing
    screens.  The engine never creates these; it reads line subtotals,
    analytical-account tags and document dates for actuals, and reads/updates
    ``paid_amount`` on invoices and bills for reconciliation.

Invariants enforced:
    - Line ``analytical_account_code`` is optional (untagged lines never
      reach aggregation).
    - ``paid_amount`` on invoices and bills only grows, and only through
      ``SettlementService``.
"""

from datetime import date
from decimal import Decimal
from typing import ClassVar
from uuid import UUID

from sqlalchemy import ForeignKey, Index, String
from sqlalchemy.orm import Mapped, mapped_column, relationship

from budget_kernel.db.base import TrackedBase, UUIDString
from budget_kernel.domain.dtos import ReconciliationSubject, SourceDocumentType


class _DocumentHeaderColumns:
    document_type: ClassVar[SourceDocumentType]

    number: Mapped[str] = mapped_column(String(50), nullable=False, unique=True)
    partner_id: Mapped[UUID | None] = mapped_column(UUIDString(), nullable=True)
    document_date: Mapped[date] = mapped_column(nullable=False, index=True)
    status: Mapped[str] = mapped_column(String(20), nullable=False, default="DRAFT")


class _PayableColumns:
    due_date: Mapped[date | None] = mapped_column(nullable=True)
    total_amount: Mapped[Decimal] = mapped_column(nullable=False, default=Decimal("0"))
    paid_amount: Mapped[Decimal] = mapped_column(nullable=False, default=Decimal("0"))

    def to_subject(self) -> ReconciliationSubject:
        return ReconciliationSubject(
            total_amount=self.total_amount,
            paid_amount=self.paid_amount,
            due_date=self.due_date,
            document_status=self.status,
            document_id=str(self.id),
            document_type=self.document_type,
            document_number=self.number,
        )


class _DocumentLineColumns:
    product_id: Mapped[UUID | None] = mapped_column(UUIDString(), nullable=True)
    quantity: Mapped[Decimal] = mapped_column(nullable=False, default=Decimal("1"))
    unit_price: Mapped[Decimal] = mapped_column(nullable=False, default=Decimal("0"))
    subtotal: Mapped[Decimal] = mapped_column(nullable=False)
    analytical_account_code: Mapped[str | None] = mapped_column(
        String(50), nullable=True, index=True,
    )


# ---------------------------------------------------------------------------
# Purchase orders (expense)
# ---------------------------------------------------------------------------


class PurchaseOrderModel(_DocumentHeaderColumns, TrackedBase):
    __tablename__ = "purchase_orders"
    document_type = SourceDocumentType.PURCHASE_ORDER

    lines: Mapped[list["PurchaseOrderLineModel"]] = relationship(
        back_populates="document", cascade="all, delete-orphan", lazy="selectin",
    )


class PurchaseOrderLineModel(_DocumentLineColumns, TrackedBase):
    __tablename__ = "purchase_order_lines"

    document_id: Mapped[UUID] = mapped_column(
        ForeignKey("purchase_orders.id"), nullable=False, index=True,
    )
    document: Mapped[PurchaseOrderModel] = relationship(back_populates="lines")


# ---------------------------------------------------------------------------
# Sales orders (income)
# ---------------------------------------------------------------------------


class SalesOrderModel(_DocumentHeaderColumns, TrackedBase):
    __tablename__ = "sales_orders"
    document_type = SourceDocumentType.SALES_ORDER

    lines: Mapped[list["SalesOrderLineModel"]] = relationship(
        back_populates="document", cascade="all, delete-orphan", lazy="selectin",
    )


class SalesOrderLineModel(_DocumentLineColumns, TrackedBase):
    __tablename__ = "sales_order_lines"

    document_id: Mapped[UUID] = mapped_column(
        ForeignKey("sales_orders.id"), nullable=False, index=True,
    )
    document: Mapped[SalesOrderModel] = relationship(back_populates="lines")


# ---------------------------------------------------------------------------
# Customer invoices (income, payable by customers)
# ---------------------------------------------------------------------------


class CustomerInvoiceModel(_DocumentHeaderColumns, _PayableColumns, TrackedBase):
    __tablename__ = "customer_invoices"
    document_type = SourceDocumentType.CUSTOMER_INVOICE

    __table_args__ = (
        Index("idx_customer_invoice_due", "due_date"),
    )

    lines: Mapped[list["CustomerInvoiceLineModel"]] = relationship(
        back_populates="document", cascade="all, delete-orphan", lazy="selectin",
    )


class CustomerInvoiceLineModel(_DocumentLineColumns, TrackedBase):
    __tablename__ = "customer_invoice_lines"

    document_id: Mapped[UUID] = mapped_column(
        ForeignKey("customer_invoices.id"), nullable=False, index=True,
    )
    document: Mapped[CustomerInvoiceModel] = relationship(back_populates="lines")


# ---------------------------------------------------------------------------
# Vendor bills (expense, paid to vendors)
# ---------------------------------------------------------------------------


class VendorBillModel(_DocumentHeaderColumns, _PayableColumns, TrackedBase):
    __tablename__ = "vendor_bills"
    document_type = SourceDocumentType.VENDOR_BILL

    __table_args__ = (
        Index("idx_vendor_bill_due", "due_date"),
    )

    lines: Mapped[list["VendorBillLineModel"]] = relationship(
        back_populates="document", cascade="all, delete-orphan", lazy="selectin",
    )


class VendorBillLineModel(_DocumentLineColumns, TrackedBase):
    __tablename__ = "vendor_bill_lines"

    document_id: Mapped[UUID] = mapped_column(
        ForeignKey("vendor_bills.id"), nullable=False, index=True,
    )
    document: Mapped[VendorBillModel] = relationship(back_populates="lines")
