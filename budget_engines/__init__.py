"""
Budget engines -- pure calculators with zero I/O.

Every engine takes its inputs as parameters and returns frozen result
objects.  Database reads happen in ``budget_services``; database writes in
``budget_kernel.services``.
"""

from budget_engines.aggregation import ActualAmountAggregator, ActualBucket, MonthlyBucket
from budget_engines.auto_analytical import (
    AutoAnalyticalResolver,
    AutoAnalyticalRule,
    LineContext,
)
from budget_engines.budget_actual import (
    SORT_KEYS,
    BudgetActualRow,
    BudgetActualSummary,
    BudgetDashboard,
    BudgetVsActualEvaluator,
    BudgetVsActualReport,
    CostCenterPerformance,
    UnbudgetedActivity,
    utilization_percent,
)
from budget_engines.payment_status import (
    PaymentReconciliationEvaluator,
    PaymentStatusSummary,
    ReconciliationResult,
    derive_status,
    is_valid_transition,
    outstanding_balance,
)

__all__ = [
    "SORT_KEYS",
    "ActualAmountAggregator",
    "ActualBucket",
    "AutoAnalyticalResolver",
    "AutoAnalyticalRule",
    "BudgetActualRow",
    "BudgetActualSummary",
    "BudgetDashboard",
    "BudgetVsActualEvaluator",
    "BudgetVsActualReport",
    "CostCenterPerformance",
    "LineContext",
    "MonthlyBucket",
    "PaymentReconciliationEvaluator",
    "PaymentStatusSummary",
    "ReconciliationResult",
    "UnbudgetedActivity",
    "derive_status",
    "is_valid_transition",
    "outstanding_balance",
    "utilization_percent",
]
