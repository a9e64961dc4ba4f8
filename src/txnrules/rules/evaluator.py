"""Evaluate stored condition trees against transactions.

Only ``StoredConditions`` (or nodes taken from one) are evaluated; authored
trees must go through the normalizer first. A malformed leaf is a bug in the
caller, so it raises instead of guessing: misfiling money silently is worse
than failing loudly.

``contains`` is case-insensitive because aggregator merchant strings arrive in
inconsistent casing (``"STARBUCKS STORE #123"`` vs ``"Starbucks"``). ``equals``
and ``in`` compare exactly.
"""

from __future__ import annotations

from decimal import Decimal
from typing import Any, Mapping

from txnrules.rules.conditions import (
    ConditionNode,
    Connective,
    Field,
    Group,
    Leaf,
    Operator,
    coerce_number,
    operators_for,
)
from txnrules.rules.normalizer import AuthoredConditions, StoredConditions

# Transaction attributes read for each field, first present wins.
FIELD_ATTRIBUTES: dict[Field, tuple[str, ...]] = {
    Field.NAME: ("name",),
    Field.MERCHANT_NAME: ("merchant_name",),
    Field.ACCOUNT: ("account_id", "account"),
    Field.AMOUNT: ("amount",),
}


class MalformedConditionError(Exception):
    """A node that violates the condition invariants reached the evaluator."""


def evaluate(conditions: StoredConditions | ConditionNode, transaction: Any) -> bool:
    """Return True if ``transaction`` satisfies the stored condition tree.

    Args:
        conditions: Stored conditions, or a node from a stored tree
        transaction: Mapping or object exposing name, merchant_name,
            account_id and amount

    Raises:
        TypeError: If given authored (un-normalized) conditions
        MalformedConditionError: If a node breaks the field/operator/value rules
    """
    if isinstance(conditions, AuthoredConditions):
        raise TypeError("evaluate expects StoredConditions; normalize authored conditions first")
    node = conditions.root if isinstance(conditions, StoredConditions) else conditions
    return _evaluate_node(node, transaction)


def _evaluate_node(node: ConditionNode, transaction: Any) -> bool:
    if isinstance(node, Group):
        results = (_evaluate_node(child, transaction) for child in node.children)
        if node.connective is Connective.AND:
            return all(results)
        if node.connective is Connective.OR:
            return any(results)
        raise MalformedConditionError(f"unknown connective {node.connective!r}")
    if isinstance(node, Leaf):
        return _evaluate_leaf(node, transaction)
    raise MalformedConditionError(f"not a condition node: {type(node).__name__}")


def _evaluate_leaf(leaf: Leaf, transaction: Any) -> bool:
    if leaf.operator not in operators_for(leaf.field):
        raise MalformedConditionError(
            f"operator '{leaf.operator}' is not valid for field '{leaf.field}'"
        )
    if leaf.field.is_numeric:
        return _compare_amount(leaf, transaction)

    actual = read_attribute(transaction, leaf.field)
    actual = "" if actual is None else str(actual)

    if leaf.operator is Operator.IN:
        if not isinstance(leaf.value, tuple):
            raise MalformedConditionError(f"'in' leaf needs a list value, got {leaf.value!r}")
        return actual in leaf.value

    if not isinstance(leaf.value, str):
        raise MalformedConditionError(f"string leaf needs a string value, got {leaf.value!r}")
    if leaf.operator is Operator.EQUALS:
        return actual == leaf.value
    return leaf.value.casefold() in actual.casefold()


def _compare_amount(leaf: Leaf, transaction: Any) -> bool:
    if not isinstance(leaf.value, Decimal) or not leaf.value.is_finite():
        raise MalformedConditionError(f"amount leaf needs a numeric value, got {leaf.value!r}")

    raw = read_attribute(transaction, Field.AMOUNT)
    amount = coerce_number(raw)
    if amount is None:
        raise MalformedConditionError(f"transaction amount is not a number: {raw!r}")

    target = leaf.value
    if leaf.operator is Operator.EQUALS:
        return amount == target
    if leaf.operator is Operator.GT:
        return amount > target
    if leaf.operator is Operator.GTE:
        return amount >= target
    if leaf.operator is Operator.LT:
        return amount < target
    return amount <= target


def read_attribute(transaction: Any, field_: Field) -> Any:
    """Read the attribute a field tests from a mapping or an object."""
    for name in FIELD_ATTRIBUTES[field_]:
        if isinstance(transaction, Mapping):
            if name in transaction:
                return transaction[name]
        elif hasattr(transaction, name):
            return getattr(transaction, name)
    return None
