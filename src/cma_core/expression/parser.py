"""Recursive-descent parser for constraint expressions.

Precedence, lowest first: ``implies`` (right associative), ``or``, ``and``,
``not``, comparisons (``== != < <= > >= in``, ``not in``), operands.
"""

from __future__ import annotations

from functools import lru_cache
from typing import NoReturn

from cma_core.errors import ExpressionSyntaxError
from cma_core.expression.lexer import Token, TokenType, tokenize
from cma_core.expression.nodes import BoolOp, Compare, Implies, ListExpr, Literal, Node, Not, Path
from cma_core.expression.values import ABSENT

COMPARISON_OPERATORS = frozenset({"==", "!=", "<", "<=", ">", ">="})

# Counted levels: parentheses, brackets, `implies` and `not`.
MAX_NESTING = 50


class _Parser:
    def __init__(self, expression: str) -> None:
        self.expression = expression
        self.tokens = tokenize(expression)
        self.index = 0
        self.depth = 0

    @property
    def current(self) -> Token:
        return self.tokens[self.index]

    def _advance(self) -> Token:
        token = self.tokens[self.index]
        if token.type != TokenType.END:
            self.index += 1
        return token

    def _at(self, token_type: TokenType, value: str | None = None) -> bool:
        token = self.current
        return token.type == token_type and (value is None or token.value == value)

    def _at_keyword(self, word: str) -> bool:
        return self._at(TokenType.KEYWORD, word)

    def _at_operator(self, op: str) -> bool:
        return self._at(TokenType.OPERATOR, op)

    def _expect_operator(self, op: str) -> None:
        if not self._at_operator(op):
            self._fail(f"Expected {op!r}")
        self._advance()

    def _fail(self, message: str) -> NoReturn:
        token = self.current
        found = "end of expression" if token.type == TokenType.END else repr(token.value)
        raise ExpressionSyntaxError(f"{message}, found {found}", self.expression, token.position)

    def parse(self) -> Node:
        if self._at(TokenType.END):
            self._fail("Empty expression")
        node = self._implication()
        if not self._at(TokenType.END):
            self._fail("Unexpected token")
        return node

    def _enter(self) -> None:
        self.depth += 1
        if self.depth > MAX_NESTING:
            self._fail(f"Expression nested deeper than {MAX_NESTING} levels")

    def _implication(self) -> Node:
        self._enter()
        node = self._disjunction()
        if self._at_keyword("implies"):
            self._advance()
            node = Implies(node, self._implication())
        self.depth -= 1
        return node

    def _disjunction(self) -> Node:
        node = self._conjunction()
        while self._at_keyword("or"):
            self._advance()
            node = BoolOp("or", node, self._conjunction())
        return node

    def _conjunction(self) -> Node:
        node = self._negation()
        while self._at_keyword("and"):
            self._advance()
            node = BoolOp("and", node, self._negation())
        return node

    def _negation(self) -> Node:
        if self._at_keyword("not"):
            self._advance()
            self._enter()
            node = Not(self._negation())
            self.depth -= 1
            return node
        return self._comparison()

    def _comparison(self) -> Node:
        left = self._operand()
        token = self.current
        if token.type == TokenType.OPERATOR and token.value in COMPARISON_OPERATORS:
            self._advance()
            return Compare(token.value, left, self._operand())
        if self._at_keyword("in"):
            self._advance()
            return Compare("in", left, self._operand())
        next_token = self.tokens[min(self.index + 1, len(self.tokens) - 1)]
        if self._at_keyword("not") and next_token.type == TokenType.KEYWORD and next_token.value == "in":
            self._advance()
            self._advance()
            return Compare("not in", left, self._operand())
        return left

    def _operand(self) -> Node:
        token = self.current

        if token.type == TokenType.NUMBER:
            self._advance()
            return Literal(float(token.value) if "." in token.value else int(token.value))

        if token.type == TokenType.STRING:
            self._advance()
            return Literal(token.value)

        if token.type == TokenType.KEYWORD and token.value in ("true", "false", "null"):
            self._advance()
            if token.value == "null":
                return Literal(ABSENT)
            return Literal(token.value == "true")

        if token.type == TokenType.IDENT:
            return self._path()

        if self._at_operator("("):
            self._advance()
            node = self._implication()
            self._expect_operator(")")
            return node

        if self._at_operator("["):
            return self._list()

        self._fail("Expected a value")

    def _path(self) -> Path:
        segments = [self._advance().value]
        while self._at_operator("."):
            self._advance()
            if not self._at(TokenType.IDENT):
                self._fail("Expected a field name after '.'")
            segments.append(self._advance().value)
        return Path(tuple(segments))

    def _list(self) -> ListExpr:
        self._expect_operator("[")
        items: list[Node] = []
        if not self._at_operator("]"):
            items.append(self._implication())
            while self._at_operator(","):
                self._advance()
                items.append(self._implication())
        self._expect_operator("]")
        return ListExpr(tuple(items))


@lru_cache(maxsize=2048)
def parse(expression: str) -> Node:
    """Parse ``expression`` into a syntax tree (cached per expression text).

    Raises:
        ExpressionSyntaxError: If the text does not match the grammar.
    """
    return _Parser(expression).parse()
