"""ORM models for the budget kernel."""

from budget_kernel.models.analytical_account import AnalyticalAccountModel, BudgetModel
from budget_kernel.models.documents import (
    CustomerInvoiceLineModel,
    CustomerInvoiceModel,
    PurchaseOrderLineModel,
    PurchaseOrderModel,
    SalesOrderLineModel,
    SalesOrderModel,
    VendorBillLineModel,
    VendorBillModel,
)
from budget_kernel.models.master_data import (
    AutoAnalyticalRuleModel,
    ContactModel,
    ProductModel,
)
from budget_kernel.models.settlement import SettlementModel


def import_all_models() -> None:
    """Ensure every model is registered on ``Base.metadata``.

    Importing this package already does so; the function exists so callers
    that create tables have an explicit hook.
    """


__all__ = [
    "AnalyticalAccountModel",
    "BudgetModel",
    "ContactModel",
    "ProductModel",
    "AutoAnalyticalRuleModel",
    "PurchaseOrderModel",
    "PurchaseOrderLineModel",
    "SalesOrderModel",
    "SalesOrderLineModel",
    "CustomerInvoiceModel",
    "CustomerInvoiceLineModel",
    "VendorBillModel",
    "VendorBillLineModel",
    "SettlementModel",
    "import_all_models",
]
