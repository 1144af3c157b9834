"""
Typed Exception Hierarchy for the Budget Kernel.

===============================================================================
WHY TYPED EXCEPTIONS
===============================================================================

Callers of the engine (report endpoints, payment webhooks, the CLI) must be
able to tell a bad request apart from a missing document without parsing
message strings.  Every error therefore has:

  1. A TYPED exception class (catch by type, not message)
  2. A CODE class attribute (machine-readable, API-safe)
  3. Structured DATA attributes (not just a message string)

Example:
    try:
        report = reporting.budget_vs_actual(start, end)
    except InvalidPeriodError as e:
        api_response(code=e.code, start=e.period_start, end=e.period_end)

===============================================================================
EXCEPTION HIERARCHY
===============================================================================

    BudgetKernelError (base)
    |
    +-- InputError                      rejected before computation
    |   +-- InvalidPeriodError
    |   +-- NegativeBudgetAmountError
    |   +-- InvalidAmountError
    |   +-- InvalidSettlementAmountError
    |   +-- InvalidSettlementKeyError
    |   +-- UnknownAccountError
    |   +-- InvalidSortKeyError
    |
    +-- ReconciliationError
    |   +-- DocumentNotFoundError
    |
    +-- ConfigurationError

===============================================================================
WHAT IS NOT AN EXCEPTION
===============================================================================

* Lookup misses (unknown account code, no budget for a period) are returned
  as ``None``, an empty tuple, or a zero row.
* Anomalies (overpayment, duplicate settlement, payload mismatch on replay)
  are returned as ``Anomaly`` values on the result and logged at WARNING.
* Division by a zero budget yields ``Decimal("0")``.

Nothing in this package is fatal to the process.
"""

from datetime import date
from decimal import Decimal


class BudgetKernelError(Exception):
    """
    Base exception for all budget kernel errors.

    All subclasses must have a `code` class attribute for machine-readable
    error identification.
    """

    code: str = "BUDGET_KERNEL_ERROR"


# Input errors


class InputError(BudgetKernelError):
    """Input rejected before any computation; the caller must resubmit."""

    code: str = "INPUT_ERROR"


class InvalidPeriodError(InputError):
    """Period start is after period end."""

    code: str = "INVALID_PERIOD"

    def __init__(self, period_start: date, period_end: date):
        self.period_start = period_start
        self.period_end = period_end
        super().__init__(
            f"Invalid period: start {period_start} is after end {period_end}"
        )


class NegativeBudgetAmountError(InputError):
    """Budget amount is negative."""

    code: str = "NEGATIVE_BUDGET_AMOUNT"

    def __init__(self, account_code: str, budget_amount: Decimal):
        self.account_code = account_code
        self.budget_amount = str(budget_amount)
        super().__init__(
            f"Budget amount for {account_code} cannot be negative: {budget_amount}"
        )


class InvalidAmountError(InputError):
    """A monetary input could not be interpreted or is out of range."""

    code: str = "INVALID_AMOUNT"

    def __init__(self, field: str, value: object, reason: str):
        self.field = field
        self.value = str(value)
        self.reason = reason
        super().__init__(f"Invalid {field} {value!r}: {reason}")


class InvalidSettlementAmountError(InputError):
    """Settlement amount must be strictly positive."""

    code: str = "INVALID_SETTLEMENT_AMOUNT"

    def __init__(self, idempotency_key: str, amount: Decimal):
        self.idempotency_key = idempotency_key
        self.amount = str(amount)
        super().__init__(
            f"Settlement {idempotency_key} amount must be greater than zero: {amount}"
        )


class InvalidSettlementKeyError(InputError):
    """Settlement idempotency key is not of the form ``provider:reference``."""

    code: str = "INVALID_SETTLEMENT_KEY"

    def __init__(self, idempotency_key: object):
        self.idempotency_key = str(idempotency_key)
        super().__init__(
            f"Settlement key must look like provider:reference, got {idempotency_key!r}"
        )


class UnknownAccountError(InputError):
    """A write referenced an analytical account that does not exist."""

    code: str = "UNKNOWN_ACCOUNT"

    def __init__(self, account_code: str):
        self.account_code = account_code
        super().__init__(f"Analytical account not found: {account_code}")


class InvalidSortKeyError(InputError):
    """Report sort key is not one of the supported row metrics."""

    code: str = "INVALID_SORT_KEY"

    def __init__(self, sort_by: str, allowed: tuple[str, ...]):
        self.sort_by = sort_by
        self.allowed = allowed
        super().__init__(
            f"Cannot sort by {sort_by!r}; expected one of {', '.join(allowed)}"
        )


# Reconciliation errors


class ReconciliationError(BudgetKernelError):
    """Base exception for payment reconciliation errors."""

    code: str = "RECONCILIATION_ERROR"


class DocumentNotFoundError(ReconciliationError):
    """Settlement targeted an invoice or bill that does not exist."""

    code: str = "DOCUMENT_NOT_FOUND"

    def __init__(self, document_type: str, document_id: str):
        self.document_type = document_type
        self.document_id = document_id
        super().__init__(f"{document_type} not found: {document_id}")


# Configuration errors


class ConfigurationError(BudgetKernelError):
    """Engine configuration value is missing or invalid."""

    code: str = "CONFIGURATION_ERROR"

    def __init__(self, key: str, reason: str):
        self.key = key
        self.reason = reason
        super().__init__(f"Invalid configuration for {key}: {reason}")
