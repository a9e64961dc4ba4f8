"""Structural validation of condition trees.

The validator never raises. It walks the tree depth-first and collects every
problem it finds as a ``"<path>: <message>"`` string, where the path names the
node the way the rule editor lays it out (``root/and[1]/or[0]``). A tree may be
saved or evaluated only when the error list is empty.

Validation is purely structural and type-level: it does not look for
redundant, contradictory or unreachable conditions.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Mapping

from txnrules.rules.conditions import (
    Connective,
    Field,
    Group,
    Leaf,
    Operator,
    coerce_number,
    operators_for,
    split_list_value,
    to_dict,
)

ROOT_PATH = "root"

_CONNECTIVES = (Connective.AND.value, Connective.OR.value)


@dataclass
class ValidationResult:
    """Outcome of validating a condition tree."""

    errors: list[str] = field(default_factory=list)

    @property
    def valid(self) -> bool:
        return not self.errors

    @property
    def first_error(self) -> str | None:
        """The first offending path/message, for highlighting in the editor."""
        return self.errors[0] if self.errors else None

    def as_dict(self) -> dict[str, Any]:
        return {"valid": self.valid, "errors": list(self.errors)}


def validate(node: Any, max_depth: int | None = None) -> ValidationResult:
    """Validate a condition tree.

    Args:
        node: A typed tree (``Group``/``Leaf``) or a raw wire payload
        max_depth: Optional limit on group nesting (root group is depth 1)

    Returns:
        ValidationResult with every error found
    """
    if isinstance(node, (Group, Leaf)):
        node = to_dict(node)

    result = ValidationResult()
    _visit(node, ROOT_PATH, 1, max_depth, result.errors)
    return result


def _is_group(node: Any) -> bool:
    return isinstance(node, Mapping) and any(key in node for key in _CONNECTIVES)


def _is_leaf(node: Any) -> bool:
    return isinstance(node, Mapping) and "field" in node


def _visit(node: Any, path: str, depth: int, max_depth: int | None, errors: list[str]) -> None:
    if _is_group(node):
        _visit_group(node, path, depth, max_depth, errors)
    elif _is_leaf(node):
        _visit_leaf(node, path, errors)
    else:
        errors.append(f"{path}: invalid node")


def _visit_group(
    node: Mapping[str, Any], path: str, depth: int, max_depth: int | None, errors: list[str]
) -> None:
    keys = [key for key in _CONNECTIVES if isinstance(node.get(key), list)]
    if len(keys) != 1 or any(key in node for key in _CONNECTIVES if key not in keys):
        errors.append(f"{path}: group must have 'and' or 'or'")
        return

    if max_depth is not None and depth > max_depth:
        errors.append(f"{path}: nesting exceeds maximum depth of {max_depth}")
        return

    key = keys[0]
    children = node[key]
    if not children:
        errors.append(f"{path}: {key} group must have at least one child")
        return

    for index, child in enumerate(children):
        _visit(child, f"{path}/{key}[{index}]", depth + 1, max_depth, errors)


def _visit_leaf(node: Mapping[str, Any], path: str, errors: list[str]) -> None:
    raw_field = node.get("field")
    raw_op = node.get("op")
    value = node.get("value")

    if not raw_field or not raw_op or value is None:
        errors.append(f"{path}: condition must include field, op, and value")
        return

    try:
        field_ = Field(raw_field)
    except ValueError:
        errors.append(f"{path}: unknown field '{raw_field}'")
        return

    try:
        operator = Operator(raw_op)
    except ValueError:
        operator = None
    if operator is None or operator not in operators_for(field_):
        errors.append(f"{path}: operator '{raw_op}' is not valid for field '{field_.value}'")
        return

    if field_.is_numeric:
        if coerce_number(value) is None:
            errors.append(f"{path}: amount value must be a number")
        return

    if operator is Operator.IN:
        if not split_list_value(value):
            errors.append(f"{path}: 'in' requires at least one value")
        return

    if isinstance(value, (list, tuple, Mapping)):
        errors.append(f"{path}: value must be a string")
        return

    text = value if isinstance(value, str) else str(value)
    if not text:
        errors.append(f"{path}: value must not be empty")
