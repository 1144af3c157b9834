"""
Module: budget_engines.auto_analytical
Responsibility:
    Pick the analytical account for an untagged document line from the
    configured auto-analytical rules.

Architecture position:
    Engines -- pure calculation layer, zero I/O.
    Rules and line context are loaded by the transaction feed adapter.

Invariants enforced:
    - Score = number of non-null rule fields equal to the line context
      (partner, partner tag, product, product category).
    - A rule applies only with a score of at least 1.
    - Highest score wins; ties go to the most recently created rule.
    - Inactive rules never match.
"""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass
from datetime import datetime
from uuid import UUID

from budget_kernel.logging_config import get_logger

logger = get_logger("engines.auto_analytical")


@dataclass(frozen=True)
class AutoAnalyticalRule:
    """A rule assigning ``account_code`` to lines matching its fields."""

    account_code: str
    created_at: datetime
    name: str = ""
    partner_id: UUID | None = None
    partner_tag: str | None = None
    product_id: UUID | None = None
    product_category_id: UUID | None = None
    is_active: bool = True


@dataclass(frozen=True)
class LineContext:
    """What is known about a line when resolving its account."""

    partner_id: UUID | None = None
    partner_tag: str | None = None
    product_id: UUID | None = None
    product_category_id: UUID | None = None


_MATCH_FIELDS = ("partner_id", "partner_tag", "product_id", "product_category_id")


class AutoAnalyticalResolver:
    """Resolves line contexts against a fixed rule set."""

    def __init__(self, rules: Iterable[AutoAnalyticalRule]):
        # Most recent first, so the first rule at a given score wins ties
        self._rules = tuple(
            sorted(
                (r for r in rules if r.is_active),
                key=lambda r: r.created_at,
                reverse=True,
            )
        )

    @property
    def rules(self) -> tuple[AutoAnalyticalRule, ...]:
        return self._rules

    @staticmethod
    def score(rule: AutoAnalyticalRule, context: LineContext) -> int:
        matches = 0
        for name in _MATCH_FIELDS:
            expected = getattr(rule, name)
            if expected is not None and expected == getattr(context, name):
                matches += 1
        return matches

    def resolve(self, context: LineContext) -> str | None:
        """Account code of the best rule, or ``None`` when nothing matches."""
        best: AutoAnalyticalRule | None = None
        best_score = 0
        for rule in self._rules:
            current = self.score(rule, context)
            if current > best_score:
                best, best_score = rule, current

        if best is None:
            return None
        logger.debug(
            "auto_analytical_rule_matched",
            extra={"rule": best.name, "account_code": best.account_code, "score": best_score},
        )
        return best.account_code
