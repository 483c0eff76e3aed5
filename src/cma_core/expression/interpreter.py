"""Evaluate constraint syntax trees against an entity attribute tree.

Absent semantics: a path that does not resolve yields ``ABSENT``.
``ABSENT == x`` is false, ``ABSENT != x`` is true, membership with an absent
side is false, and boolean operators read ``ABSENT`` as false. Ordering
comparisons have no absent semantics and raise instead, as do operands of
mismatched kinds.
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any

from cma_core.errors import ExpressionEvaluationError
from cma_core.expression.nodes import BoolOp, Compare, Implies, ListExpr, Literal, Node, Not, Path
from cma_core.expression.parser import parse
from cma_core.expression.values import ABSENT, is_absent, kind_of

ORDERED_KINDS = frozenset({"number", "string"})


def resolve_path(context: Mapping[str, Any], segments: tuple[str, ...]) -> Any:
    """Walk ``segments`` through nested mappings, returning ``ABSENT`` on any miss."""
    current: Any = context
    for segment in segments:
        if not isinstance(current, Mapping) or segment not in current:
            return ABSENT
        current = current[segment]
    return ABSENT if current is None else current


def _truth(value: Any, where: str) -> bool:
    if is_absent(value):
        return False
    if isinstance(value, bool):
        return value
    msg = f"{where} expects a boolean, got {kind_of(value)}"
    raise ExpressionEvaluationError(msg)


def _same_value(left: Any, right: Any) -> bool:
    """Structural equality in which values of different kinds never match."""
    kind = kind_of(left)
    if kind != kind_of(right):
        return False
    if kind == "absent":
        return True
    if kind == "list":
        return len(left) == len(right) and all(_same_value(a, b) for a, b in zip(left, right, strict=True))
    if kind == "map":
        return left.keys() == right.keys() and all(_same_value(left[key], right[key]) for key in left)
    return bool(left == right)


def _equals(left: Any, right: Any) -> bool:
    if is_absent(left) or is_absent(right):
        return False
    left_kind, right_kind = kind_of(left), kind_of(right)
    if left_kind != right_kind:
        msg = f"Cannot compare {left_kind} with {right_kind}"
        raise ExpressionEvaluationError(msg)
    return _same_value(left, right)


def _order(op: str, left: Any, right: Any) -> bool:
    if is_absent(left) or is_absent(right):
        msg = f"Operator {op!r} cannot be applied to an absent value"
        raise ExpressionEvaluationError(msg)
    left_kind, right_kind = kind_of(left), kind_of(right)
    if left_kind != right_kind or left_kind not in ORDERED_KINDS:
        msg = f"Operator {op!r} cannot order {left_kind} and {right_kind}"
        raise ExpressionEvaluationError(msg)
    if op == "<":
        return bool(left < right)
    if op == "<=":
        return bool(left <= right)
    if op == ">":
        return bool(left > right)
    return bool(left >= right)


def _contains(needle: Any, haystack: Any) -> bool:
    if is_absent(needle) or is_absent(haystack):
        return False
    haystack_kind = kind_of(haystack)
    if haystack_kind == "list":
        return any(_same_value(item, needle) for item in haystack)
    if haystack_kind == "map":
        if not isinstance(needle, str):
            msg = f"Map membership expects a string key, got {kind_of(needle)}"
            raise ExpressionEvaluationError(msg)
        return needle in haystack
    if haystack_kind == "string" and isinstance(needle, str):
        return needle in haystack
    msg = f"Operator 'in' cannot test {kind_of(needle)} against {haystack_kind}"
    raise ExpressionEvaluationError(msg)


def evaluate_node(node: Node, context: Mapping[str, Any]) -> Any:
    """Evaluate a syntax tree to a value of the value union."""
    if isinstance(node, Literal):
        return node.value

    if isinstance(node, Path):
        return resolve_path(context, node.segments)

    if isinstance(node, ListExpr):
        return [evaluate_node(item, context) for item in node.items]

    if isinstance(node, Not):
        return not _truth(evaluate_node(node.operand, context), "'not'")

    if isinstance(node, BoolOp):
        # Chains parse left-deep; walk the spine instead of recursing into it.
        operands = [node.right]
        spine: Node = node.left
        while isinstance(spine, BoolOp) and spine.op == node.op:
            operands.append(spine.right)
            spine = spine.left
        operands.append(spine)
        for operand in reversed(operands):
            value = _truth(evaluate_node(operand, context), f"'{node.op}'")
            if node.op == "and" and not value:
                return False
            if node.op == "or" and value:
                return True
        return node.op == "and"

    if isinstance(node, Implies):
        if not _truth(evaluate_node(node.antecedent, context), "'implies'"):
            return True
        return _truth(evaluate_node(node.consequent, context), "'implies'")

    if isinstance(node, Compare):
        left = evaluate_node(node.left, context)
        right = evaluate_node(node.right, context)
        if node.op == "==":
            return _equals(left, right)
        if node.op == "!=":
            if is_absent(left) or is_absent(right):
                return True
            return not _equals(left, right)
        if node.op == "in":
            return _contains(left, right)
        if node.op == "not in":
            return not _contains(left, right)
        return _order(node.op, left, right)

    msg = f"Unsupported expression node: {type(node).__name__}"
    raise ExpressionEvaluationError(msg)


def evaluate_expression(expression: str, context: Mapping[str, Any]) -> bool:
    """Parse and evaluate ``expression``; the result must be a boolean.

    Raises:
        ExpressionSyntaxError: If the expression does not parse.
        ExpressionEvaluationError: On type mismatches or a non-boolean result.
    """
    result = evaluate_node(parse(expression), context)
    if is_absent(result):
        msg = f"Expression {expression!r} resolved to an absent value"
        raise ExpressionEvaluationError(msg)
    if not isinstance(result, bool):
        msg = f"Expression {expression!r} produced {kind_of(result)}, expected bool"
        raise ExpressionEvaluationError(msg)
    return result
