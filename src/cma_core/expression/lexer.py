"""Tokenizer for constraint expressions."""

from __future__ import annotations

from dataclasses import dataclass
from enum import StrEnum

from cma_core.errors import ExpressionSyntaxError


class TokenType(StrEnum):
    NUMBER = "number"
    STRING = "string"
    IDENT = "ident"
    KEYWORD = "keyword"
    OPERATOR = "operator"
    END = "end"


KEYWORDS = frozenset({"and", "or", "not", "in", "implies", "true", "false", "null"})

# Longest operators first so "<=" wins over "<".
OPERATORS = ("==", "!=", "<=", ">=", "<", ">", "(", ")", "[", "]", ",", ".")


@dataclass(frozen=True)
class Token:
    type: TokenType
    value: str
    position: int


def _is_digit(char: str) -> bool:
    # ASCII only; str.isdigit also accepts superscripts that int() rejects
    return "0" <= char <= "9"


def _is_ident_start(char: str) -> bool:
    return char.isalpha() or char == "_"


def _is_ident_char(char: str) -> bool:
    return char.isalnum() or char in "_-"


def tokenize(expression: str) -> list[Token]:
    """Split ``expression`` into tokens, ending with a single END token.

    Raises:
        ExpressionSyntaxError: On an unterminated string or an unexpected character.
    """
    tokens: list[Token] = []
    pos = 0
    length = len(expression)

    while pos < length:
        char = expression[pos]

        if char.isspace():
            pos += 1
            continue

        if char in "'\"":
            end = pos + 1
            chars: list[str] = []
            while end < length and expression[end] != char:
                if expression[end] == "\\" and end + 1 < length:
                    end += 1
                chars.append(expression[end])
                end += 1
            if end >= length:
                raise ExpressionSyntaxError("Unterminated string literal", expression, pos)
            tokens.append(Token(TokenType.STRING, "".join(chars), pos))
            pos = end + 1
            continue

        if _is_digit(char) or (char == "-" and pos + 1 < length and _is_digit(expression[pos + 1])):
            end = pos + 1
            seen_dot = False
            while end < length and (_is_digit(expression[end]) or (expression[end] == "." and not seen_dot)):
                if expression[end] == ".":
                    # "1.x" is a number followed by a path separator, not a float
                    if end + 1 >= length or not _is_digit(expression[end + 1]):
                        break
                    seen_dot = True
                end += 1
            tokens.append(Token(TokenType.NUMBER, expression[pos:end], pos))
            pos = end
            continue

        if _is_ident_start(char):
            end = pos + 1
            while end < length and _is_ident_char(expression[end]):
                end += 1
            word = expression[pos:end]
            token_type = TokenType.KEYWORD if word in KEYWORDS else TokenType.IDENT
            tokens.append(Token(token_type, word, pos))
            pos = end
            continue

        for op in OPERATORS:
            if expression.startswith(op, pos):
                tokens.append(Token(TokenType.OPERATOR, op, pos))
                pos += len(op)
                break
        else:
            raise ExpressionSyntaxError(f"Unexpected character {char!r}", expression, pos)

    tokens.append(Token(TokenType.END, "", length))
    return tokens
