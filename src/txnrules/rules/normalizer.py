"""Conversion between authored and stored amount conditions.

Transactions store expenses as negative amounts, while the rule editor lets
people write "amount greater than 50" meaning "spent more than 50". On save the
authored tree is normalized: every amount leaf has its value negated and its
comparison flipped so the meaning survives the negation
(``x > v`` is ``-x < -v``). Re-opening a saved rule applies the inverse.

The two representations are separate types so a tree can't be evaluated, or
normalized twice, by accident.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

from txnrules.rules.conditions import (
    ConditionNode,
    Group,
    Leaf,
    Operator,
    coerce_number,
    from_dict,
    to_dict,
)

# Comparison flip applied when both sides of an amount comparison are negated.
OPERATOR_FLIP: dict[Operator, Operator] = {
    Operator.EQUALS: Operator.EQUALS,
    Operator.GT: Operator.LT,
    Operator.GTE: Operator.LTE,
    Operator.LT: Operator.GT,
    Operator.LTE: Operator.GTE,
}


@dataclass(frozen=True)
class AuthoredConditions:
    """Condition tree as the user wrote it (spend amounts are positive)."""

    root: ConditionNode

    @classmethod
    def from_payload(cls, payload: Any) -> "AuthoredConditions":
        return cls(from_dict(payload))

    def to_payload(self) -> dict[str, Any]:
        return to_dict(self.root)


@dataclass(frozen=True)
class StoredConditions:
    """Condition tree in storage/evaluation form (amounts carry stored signs)."""

    root: ConditionNode

    @classmethod
    def from_payload(cls, payload: Any) -> "StoredConditions":
        return cls(from_dict(payload))

    def to_payload(self) -> dict[str, Any]:
        return to_dict(self.root)


def flip_operator(operator: Operator) -> Operator:
    """Comparison that keeps its meaning when both operands are negated."""
    try:
        return OPERATOR_FLIP[Operator(operator)]
    except KeyError:
        raise ValueError(f"operator '{operator}' has no amount flip") from None


def flip_node(node: ConditionNode) -> ConditionNode:
    """Negate every amount leaf in a tree and flip its comparison.

    The transform is its own inverse, which is why ``normalize`` and
    ``denormalize`` share it.
    """
    if isinstance(node, Group):
        return Group(connective=node.connective, children=tuple(flip_node(c) for c in node.children))
    if isinstance(node, Leaf):
        if not node.field.is_numeric:
            return node
        number = coerce_number(node.value)
        if number is None:
            raise ValueError(f"amount value must be a number, got {node.value!r}")
        return Leaf(field=node.field, operator=flip_operator(node.operator), value=-number)
    raise TypeError(f"not a condition node: {type(node).__name__}")


def normalize(conditions: AuthoredConditions) -> StoredConditions:
    """Authored tree -> stored tree. Apply exactly once, on save."""
    if not isinstance(conditions, AuthoredConditions):
        raise TypeError(f"normalize expects AuthoredConditions, got {type(conditions).__name__}")
    return StoredConditions(flip_node(conditions.root))


def denormalize(conditions: StoredConditions) -> AuthoredConditions:
    """Stored tree -> authored tree, for loading a saved rule into the editor."""
    if not isinstance(conditions, StoredConditions):
        raise TypeError(f"denormalize expects StoredConditions, got {type(conditions).__name__}")
    return AuthoredConditions(flip_node(conditions.root))
