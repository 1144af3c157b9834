"""
InMemorySnapshot -- a frozen-in-memory data source for reporting.

Holds accounts, budgets, transactions and reconciliation subjects in plain
collections and satisfies every read protocol in
``budget_kernel.domain.sources``.  Used by tests, by offline report runs and
by callers that already hold the data.
"""

from collections.abc import Iterable, Sequence

from budget_kernel.domain.dtos import (
    AnalyticalAccount,
    Budget,
    ReconciliationSubject,
    SourceDocumentType,
    TaggedTransaction,
)
from budget_kernel.domain.period import ReportingPeriod
from budget_kernel.exceptions import UnknownAccountError


class InMemorySnapshot:
    """
    Account registry, budget store and transaction feed over in-memory data.

    Budget registration follows the database rule: the first budget for an
    (account, period) triple wins and later ones are ignored.
    """

    def __init__(
        self,
        accounts: Iterable[AnalyticalAccount] = (),
        budgets: Iterable[Budget] = (),
        transactions: Iterable[TaggedTransaction] = (),
        subjects: Iterable[ReconciliationSubject] = (),
    ):
        self._accounts: dict[str, AnalyticalAccount] = {}
        self._budgets: dict[tuple, Budget] = {}
        self._transactions: list[TaggedTransaction] = list(transactions)
        self._subjects: list[ReconciliationSubject] = list(subjects)
        for account in accounts:
            self.add_account(account)
        for budget in budgets:
            self.add_budget(budget)

    def add_account(self, account: AnalyticalAccount) -> AnalyticalAccount:
        return self._accounts.setdefault(account.code, account)

    def add_budget(self, budget: Budget) -> tuple[Budget, bool]:
        """Returns the stored budget and whether this call stored it."""
        if budget.account_code not in self._accounts:
            raise UnknownAccountError(budget.account_code)
        stored = self._budgets.setdefault(budget.key, budget)
        return stored, stored is budget

    def add_transaction(self, transaction: TaggedTransaction) -> None:
        self._transactions.append(transaction)

    def add_subject(self, subject: ReconciliationSubject) -> None:
        self._subjects.append(subject)

    def list_accounts(self) -> Sequence[AnalyticalAccount]:
        return tuple(self._accounts[code] for code in sorted(self._accounts))

    def get_account(self, code: str) -> AnalyticalAccount | None:
        return self._accounts.get(code)

    def find_budgets(
        self,
        account_code: str | None,
        period: ReportingPeriod,
    ) -> Sequence[Budget]:
        matches = (
            b for b in self._budgets.values()
            if (account_code is None or b.account_code == account_code)
            and b.period.overlaps(period)
        )
        return tuple(sorted(matches, key=lambda b: b.key))

    def transactions_between(self, period: ReportingPeriod) -> Sequence[TaggedTransaction]:
        return tuple(t for t in self._transactions if period.contains(t.document_date))

    def reconciliation_subjects(
        self,
        document_type: SourceDocumentType | None = None,
    ) -> Sequence[ReconciliationSubject]:
        if document_type is None:
            return tuple(self._subjects)
        return tuple(s for s in self._subjects if s.document_type == document_type)
