"""
Master-data lookup tables read by the engine.

Contacts and products are maintained by the master-data screens; the engine
only reads ``contacts.tag`` and ``products.category_id`` to resolve
auto-analytical rules.
"""

from uuid import UUID

from sqlalchemy import Boolean, ForeignKey, Index, String
from sqlalchemy.orm import Mapped, mapped_column

from budget_kernel.db.base import TrackedBase, UUIDString


class ContactModel(TrackedBase):
    """A customer or vendor."""

    __tablename__ = "contacts"

    name: Mapped[str] = mapped_column(String(255), nullable=False)
    contact_type: Mapped[str] = mapped_column(String(20), nullable=False, default="CUSTOMER")
    tag: Mapped[str | None] = mapped_column(String(100), nullable=True)


class ProductModel(TrackedBase):
    """A sellable / purchasable item."""

    __tablename__ = "products"

    name: Mapped[str] = mapped_column(String(255), nullable=False)
    sku: Mapped[str | None] = mapped_column(String(100), nullable=True)
    category_id: Mapped[UUID | None] = mapped_column(UUIDString(), nullable=True)


class AutoAnalyticalRuleModel(TrackedBase):
    """
    A rule assigning an analytical account to document lines.

    Every match field is optional; see ``budget_engines.auto_analytical``
    for scoring.
    """

    __tablename__ = "auto_analytical_rules"

    __table_args__ = (
        Index("idx_auto_rule_active", "is_active"),
    )

    name: Mapped[str] = mapped_column(String(255), nullable=False)
    analytical_account_code: Mapped[str] = mapped_column(
        ForeignKey("analytical_accounts.code"), nullable=False,
    )
    partner_id: Mapped[UUID | None] = mapped_column(UUIDString(), nullable=True)
    partner_tag: Mapped[str | None] = mapped_column(String(100), nullable=True)
    product_id: Mapped[UUID | None] = mapped_column(UUIDString(), nullable=True)
    product_category_id: Mapped[UUID | None] = mapped_column(UUIDString(), nullable=True)
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
