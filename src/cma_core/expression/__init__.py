"""Minimal boolean expression language for governance constraints.

Field paths, comparisons, membership, ``implies``/``and``/``or``/``not`` and
string/bool/number literals, parsed into a syntax tree and evaluated against
an attribute tree. No ``eval``.
"""

from cma_core.expression.interpreter import evaluate_expression, evaluate_node, resolve_path
from cma_core.expression.parser import parse
from cma_core.expression.values import ABSENT, kind_of

__all__ = [
    "ABSENT",
    "evaluate_expression",
    "evaluate_node",
    "kind_of",
    "parse",
    "resolve_path",
]
