"""Condition tree model for transaction rules.

A rule's logic is a tree of nodes. A ``Group`` combines its children with AND
or OR; a ``Leaf`` tests one transaction field against a value. Nodes are
immutable: every structural edit returns a new tree, so the same tree can be
handed to the validator, normalizer and evaluator without aliasing surprises.

On the wire (API payloads and the ``conditions`` JSON column) trees use the
shape the rule editor has always produced::

    {"and": [{"field": "merchant_name", "op": "contains", "value": "UBER"},
             {"or": [...]}]}
"""

from __future__ import annotations

from dataclasses import dataclass, field as dc_field, replace
from decimal import Decimal, InvalidOperation
from enum import Enum
from typing import Any, Callable, Mapping, Sequence, Union


class Field(str, Enum):
    """Transaction attributes a leaf can test."""

    NAME = "name"
    MERCHANT_NAME = "merchant_name"
    ACCOUNT = "account"
    AMOUNT = "amount"

    @property
    def is_numeric(self) -> bool:
        return self is Field.AMOUNT


class Operator(str, Enum):
    EQUALS = "equals"
    CONTAINS = "contains"
    IN = "in"
    GT = "gt"
    GTE = "gte"
    LT = "lt"
    LTE = "lte"


class Connective(str, Enum):
    AND = "and"
    OR = "or"


STRING_FIELDS: tuple[Field, ...] = (Field.NAME, Field.MERCHANT_NAME, Field.ACCOUNT)
NUMERIC_FIELDS: tuple[Field, ...] = (Field.AMOUNT,)

STRING_OPERATORS: tuple[Operator, ...] = (Operator.EQUALS, Operator.CONTAINS, Operator.IN)
NUMERIC_OPERATORS: tuple[Operator, ...] = (
    Operator.EQUALS,
    Operator.GTE,
    Operator.LTE,
    Operator.GT,
    Operator.LT,
)


def operators_for(field_: Field) -> tuple[Operator, ...]:
    """Operators that are legal for a field."""
    return NUMERIC_OPERATORS if field_.is_numeric else STRING_OPERATORS


Value = Union[str, Decimal, tuple[str, ...]]


@dataclass(frozen=True)
class Leaf:
    """A single predicate: ``<field> <operator> <value>``."""

    field: Field
    operator: Operator
    value: Value
    kind: str = dc_field(default="leaf", init=False)


@dataclass(frozen=True)
class Group:
    """AND/OR combination of child nodes."""

    connective: Connective
    children: tuple["ConditionNode", ...]
    kind: str = dc_field(default="group", init=False)


ConditionNode = Union[Group, Leaf]


class ConditionParseError(ValueError):
    """Raised when a wire payload cannot be turned into a typed tree.

    Callers are expected to run the validator first; this only fires for
    payloads that were never validated.
    """


# Defaults used by the rule editor


def default_leaf() -> Leaf:
    return Leaf(field=Field.MERCHANT_NAME, operator=Operator.CONTAINS, value="")


def default_group(connective: Connective = Connective.AND) -> Group:
    return Group(connective=connective, children=(default_leaf(),))


# Structural edits


def append_leaf(group: Group) -> Group:
    return replace(group, children=group.children + (default_leaf(),))


def append_group(group: Group, connective: Connective = Connective.AND) -> Group:
    return replace(group, children=group.children + (default_group(connective),))


def replace_child(group: Group, index: int, child: ConditionNode) -> Group:
    """Return ``group`` with the child at ``index`` swapped for ``child``."""
    _check_index(group, index)
    children = list(group.children)
    children[index] = child
    return replace(group, children=tuple(children))


def remove_child(group: Group, index: int) -> Group:
    """Remove a child; removing the last one leaves a single fresh default leaf."""
    _check_index(group, index)
    children = tuple(c for i, c in enumerate(group.children) if i != index)
    return replace(group, children=children or (default_leaf(),))


def set_connective(group: Group, connective: Connective) -> Group:
    return replace(group, connective=Connective(connective))


def set_field(leaf: Leaf, field_: Field) -> Leaf:
    """Switch the tested field, resetting operator and value to the field's defaults."""
    field_ = Field(field_)
    if field_.is_numeric:
        return Leaf(field=field_, operator=Operator.EQUALS, value=Decimal(0))
    return Leaf(field=field_, operator=Operator.CONTAINS, value="")


def set_operator(leaf: Leaf, operator: Operator) -> Leaf:
    operator = Operator(operator)
    if operator not in operators_for(leaf.field):
        raise ValueError(f"operator '{operator.value}' is not valid for field '{leaf.field.value}'")
    value: Value = () if operator is Operator.IN else leaf.value
    if operator is not Operator.IN and isinstance(leaf.value, tuple):
        value = ", ".join(leaf.value)
    return replace(leaf, operator=operator, value=value)


def set_value(leaf: Leaf, raw: Any) -> Leaf:
    """Set a leaf's value from editor input.

    ``in`` leaves accept a comma separated string and keep the trimmed,
    non-empty parts. Amount values are kept as typed until validation so the
    editor can hold partial input such as ``"-"``.
    """
    if leaf.operator is Operator.IN:
        return replace(leaf, value=split_list_value(raw))
    if leaf.field.is_numeric:
        number = coerce_number(raw)
        return replace(leaf, value=number if number is not None else ("" if raw is None else str(raw)))
    return replace(leaf, value="" if raw is None else str(raw))


def update_at(root: ConditionNode, path: Sequence[int], fn: Callable[[ConditionNode], ConditionNode]) -> ConditionNode:
    """Apply ``fn`` to the node addressed by a child-index ``path`` from ``root``."""
    if not path:
        return fn(root)
    if not isinstance(root, Group):
        raise IndexError("path descends into a leaf")
    head, rest = path[0], path[1:]
    _check_index(root, head)
    return replace_child(root, head, update_at(root.children[head], rest, fn))


def _check_index(group: Group, index: int) -> None:
    if not 0 <= index < len(group.children):
        raise IndexError(f"child index {index} out of range for {len(group.children)} children")


# Value helpers shared with the validator


def split_list_value(raw: Any) -> tuple[str, ...]:
    """Effective list for an ``in`` leaf: lists as-is, strings comma-split."""
    if isinstance(raw, (list, tuple)):
        items = ["" if item is None else str(item) for item in raw]
    elif raw is None:
        items = []
    else:
        items = str(raw).split(",")
    return tuple(item.strip() for item in items if item.strip())


def coerce_number(raw: Any) -> Decimal | None:
    """Coerce a leaf value to a finite ``Decimal``; ``None`` if it isn't one."""
    if isinstance(raw, bool) or raw is None:
        return None
    if isinstance(raw, Decimal):
        number = raw
    elif isinstance(raw, (int, float)):
        number = Decimal(str(raw))
    elif isinstance(raw, str):
        if not raw.strip():
            return None
        try:
            number = Decimal(raw.strip())
        except InvalidOperation:
            return None
    else:
        return None
    return number if number.is_finite() else None


# Wire conversion


def to_dict(node: ConditionNode) -> dict[str, Any]:
    """Serialize a typed tree into the JSON wire shape."""
    if isinstance(node, Group):
        return {node.connective.value: [to_dict(child) for child in node.children]}
    if isinstance(node, Leaf):
        return {"field": node.field.value, "op": node.operator.value, "value": _json_value(node.value)}
    raise TypeError(f"not a condition node: {type(node).__name__}")


def _json_value(value: Value) -> Any:
    if isinstance(value, tuple):
        return list(value)
    if isinstance(value, Decimal):
        if value == value.to_integral_value():
            return int(value)
        # Only emit a float when it reads back as the same Decimal
        as_float = float(value)
        return as_float if Decimal(repr(as_float)) == value else str(value)
    return value


def from_dict(payload: Any) -> ConditionNode:
    """Build a typed tree from a wire payload.

    Amount values become ``Decimal``; ``in`` values become tuples whether they
    arrive as a list or a comma separated string.

    Raises:
        ConditionParseError: If the payload is not a well-formed tree
    """
    if isinstance(payload, (Group, Leaf)):
        return payload
    if not isinstance(payload, Mapping):
        raise ConditionParseError("invalid node")

    keys = [key for key in (Connective.AND.value, Connective.OR.value) if isinstance(payload.get(key), list)]
    if keys:
        connective = Connective(keys[0])
        children = payload[keys[0]]
        if not children:
            raise ConditionParseError(f"{connective.value} group must have at least one child")
        return Group(connective=connective, children=tuple(from_dict(child) for child in children))

    if "field" not in payload:
        raise ConditionParseError("invalid node")

    try:
        field_ = Field(payload.get("field"))
        operator = Operator(payload.get("op"))
    except ValueError as exc:
        raise ConditionParseError(str(exc)) from exc
    if operator not in operators_for(field_):
        raise ConditionParseError(f"operator '{operator.value}' is not valid for field '{field_.value}'")

    raw = payload.get("value")
    if raw is None:
        raise ConditionParseError("condition must include field, op, and value")
    if field_.is_numeric:
        number = coerce_number(raw)
        if number is None:
            raise ConditionParseError("amount value must be a number")
        return Leaf(field=field_, operator=operator, value=number)
    if operator is Operator.IN:
        return Leaf(field=field_, operator=operator, value=split_list_value(raw))
    if isinstance(raw, (list, tuple, Mapping)):
        raise ConditionParseError("value must be a string")
    return Leaf(field=field_, operator=operator, value=str(raw))
