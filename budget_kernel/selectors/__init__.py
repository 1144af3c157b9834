"""Read-only selectors (the query side of the kernel)."""

from budget_kernel.selectors.account_selector import AnalyticalAccountSelector
from budget_kernel.selectors.base import BaseSelector
from budget_kernel.selectors.budget_selector import BudgetSelector

__all__ = [
    "BaseSelector",
    "AnalyticalAccountSelector",
    "BudgetSelector",
]
