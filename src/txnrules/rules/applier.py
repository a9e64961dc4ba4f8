"""Batch application of transaction rules ("trigger").

Rules are applied oldest first and the first rule whose conditions match a
transaction decides its category; later matching rules are ignored for that
transaction. Transactions no rule matches keep their category.

Matching reads only name, merchant, account and amount, never the current
category, so running the same rules over the same transactions again leaves
every category where the first run put it.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Awaitable, Callable, Hashable, Iterable, Mapping, Sequence

from txnrules.rules.evaluator import evaluate
from txnrules.rules.normalizer import StoredConditions

logger = logging.getLogger(__name__)

CATEGORY_ATTRIBUTE = "primary_category"


@dataclass(frozen=True)
class CompiledRule:
    """A persisted rule with its stored conditions parsed and ready to evaluate."""

    rule_id: Hashable
    name: str
    category: str
    created_at: datetime
    conditions: StoredConditions

    def matches(self, transaction: Any) -> bool:
        return evaluate(self.conditions, transaction)


@dataclass(frozen=True)
class CategoryAssignment:
    """One transaction whose category was changed by a rule."""

    transaction_id: Hashable | None
    rule_id: Hashable
    previous_category: str | None
    category: str


@dataclass
class ApplyResult:
    """Summary of applying rules to one batch of transactions."""

    num_transactions: int = 0
    num_matched: int = 0
    assignments: list[CategoryAssignment] = field(default_factory=list)

    @property
    def num_adjusted(self) -> int:
        return len(self.assignments)

    def merge(self, other: "ApplyResult") -> "ApplyResult":
        return ApplyResult(
            num_transactions=self.num_transactions + other.num_transactions,
            num_matched=self.num_matched + other.num_matched,
            assignments=self.assignments + other.assignments,
        )


@dataclass(frozen=True)
class ItemOutcome:
    """Result of processing one linked item's transactions."""

    item_id: Hashable
    success: bool
    error: str | None = None
    num_adjusted: int = 0

    def as_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {"item_id": self.item_id, "success": self.success}
        if self.error is not None:
            data["error"] = self.error
        return data


def compile_rule(rule: Any) -> CompiledRule:
    """Build a ``CompiledRule`` from a persisted rule (ORM object or mapping)."""
    get = rule.get if isinstance(rule, Mapping) else lambda key: getattr(rule, key)
    conditions = get("conditions")
    if not isinstance(conditions, StoredConditions):
        conditions = StoredConditions.from_payload(conditions)
    return CompiledRule(
        rule_id=get("id"),
        name=get("name"),
        category=get("personal_finance_category"),
        created_at=get("created_at"),
        conditions=conditions,
    )


def order_rules(rules: Iterable[Any]) -> list[CompiledRule]:
    """Compile rules and sort them by creation order, oldest first.

    Ties on ``created_at`` fall back to the rule id. Ids are random UUIDs, so
    between rules saved in the same instant the winner is arbitrary, but it is
    the same on every run and never depends on how the caller listed the rules.
    """
    compiled = [r if isinstance(r, CompiledRule) else compile_rule(r) for r in rules]
    return sorted(compiled, key=lambda r: (r.created_at, str(r.rule_id)))


def first_matching_rule(rules: Sequence[CompiledRule], transaction: Any) -> CompiledRule | None:
    """The earliest rule matching ``transaction``; ``rules`` must already be ordered."""
    for rule in rules:
        if rule.matches(transaction):
            return rule
    return None


def apply_rules(rules: Iterable[Any], transactions: Iterable[Any]) -> ApplyResult:
    """Apply rules to transactions, first match wins.

    Matching transactions get the rule's category written to their
    ``primary_category`` (attribute or mapping key). Only transactions whose
    category actually changes are counted as adjusted.

    Args:
        rules: Persisted rules or ``CompiledRule`` objects, in any order
        transactions: ORM objects or mutable mappings

    Returns:
        ApplyResult with counts and the category changes made
    """
    ordered = order_rules(rules)
    result = ApplyResult()

    for transaction in transactions:
        result.num_transactions += 1
        rule = first_matching_rule(ordered, transaction)
        if rule is None:
            continue

        result.num_matched += 1
        previous = _get(transaction, CATEGORY_ATTRIBUTE)
        if previous == rule.category:
            continue

        _set(transaction, CATEGORY_ATTRIBUTE, rule.category)
        result.assignments.append(
            CategoryAssignment(
                transaction_id=_get(transaction, "id"),
                rule_id=rule.rule_id,
                previous_category=previous,
                category=rule.category,
            )
        )

    return result


async def run_item_batches(
    item_ids: Iterable[Hashable],
    rules: Iterable[Any],
    load: Callable[[Hashable], Awaitable[Iterable[Any]]],
    save: Callable[[Hashable, ApplyResult], Awaitable[None]],
    discard: Callable[[Hashable], Awaitable[None]] | None = None,
) -> list[ItemOutcome]:
    """Apply rules item by item, collecting failures instead of raising.

    Each item is an independent unit of work: its transactions are loaded,
    rules applied and the changes saved before the next item starts. A failure
    in one item is recorded (and ``discard`` called so its partial changes can
    be rolled back) and processing continues with the rest.

    Rules are compiled inside each item's unit of work, so a malformed stored
    rule is reported against every item instead of aborting the run.

    Returns:
        One ItemOutcome per item, in input order
    """
    rules = list(rules)
    outcomes: list[ItemOutcome] = []

    for item_id in item_ids:
        try:
            ordered = order_rules(rules)
            transactions = await load(item_id)
            result = apply_rules(ordered, transactions)
            await save(item_id, result)
        except Exception as exc:
            logger.warning(
                "Rule application failed for item",
                extra={"item_id": str(item_id), "error_type": type(exc).__name__},
            )
            if discard is not None:
                await discard(item_id)
            outcomes.append(ItemOutcome(item_id=item_id, success=False, error=str(exc) or type(exc).__name__))
            continue

        logger.info(
            "Rules applied to item",
            extra={"item_id": str(item_id), "num_adjusted": result.num_adjusted},
        )
        outcomes.append(ItemOutcome(item_id=item_id, success=True, num_adjusted=result.num_adjusted))

    return outcomes


def _get(transaction: Any, key: str) -> Any:
    if isinstance(transaction, Mapping):
        return transaction.get(key)
    return getattr(transaction, key, None)


def _set(transaction: Any, key: str, value: Any) -> None:
    if isinstance(transaction, Mapping):
        transaction[key] = value
    else:
        setattr(transaction, key, value)
