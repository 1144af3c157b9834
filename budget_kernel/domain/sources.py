"""
Read-side data access protocols.

Responsibility:
    The explicit interfaces the reporting service is constructed with.  SQL
    selectors and in-memory snapshots both satisfy them, so reporting never
    reaches for a process-wide connection pool.

Architecture position:
    Kernel > Domain -- protocol definitions only, zero I/O.

Contract (all implementations):
    - Pure reads; no side effects.
    - Unknown account codes yield ``None`` or an empty tuple, never raise.
"""

from __future__ import annotations

from collections.abc import Sequence
from typing import Protocol, runtime_checkable

from budget_kernel.domain.dtos import (
    AnalyticalAccount,
    Budget,
    ReconciliationSubject,
    SourceDocumentType,
    TaggedTransaction,
)
from budget_kernel.domain.period import ReportingPeriod


@runtime_checkable
class AccountSource(Protocol):
    def list_accounts(self) -> Sequence[AnalyticalAccount]:
        """All accounts ordered by code."""
        ...

    def get_account(self, code: str) -> AnalyticalAccount | None:
        ...


@runtime_checkable
class BudgetSource(Protocol):
    def find_budgets(
        self,
        account_code: str | None,
        period: ReportingPeriod,
    ) -> Sequence[Budget]:
        """Budgets whose inclusive period overlaps ``period``.

        ``account_code=None`` means every account.  Ordered by
        (account_code, period_start, period_end).
        """
        ...


@runtime_checkable
class TransactionSource(Protocol):
    def transactions_between(self, period: ReportingPeriod) -> Sequence[TaggedTransaction]:
        """Every normalized document line dated within ``period``."""
        ...


@runtime_checkable
class ReconciliationSource(Protocol):
    def reconciliation_subjects(
        self,
        document_type: SourceDocumentType | None = None,
    ) -> Sequence[ReconciliationSubject]:
        """Invoices and bills as reconciliation subjects."""
        ...
