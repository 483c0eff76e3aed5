"""Value union of the constraint language: bool | number | string | list | map | absent."""

from __future__ import annotations

from typing import Any, Final


class _Absent:
    """Result of resolving a path that does not exist in the attribute tree."""

    _instance: _Absent | None = None

    def __new__(cls) -> _Absent:
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __repr__(self) -> str:
        return "ABSENT"

    def __bool__(self) -> bool:
        return False


ABSENT: Final = _Absent()


def kind_of(value: Any) -> str:
    """Name the value-union member of ``value``."""
    if value is ABSENT or value is None:
        return "absent"
    if isinstance(value, bool):
        return "bool"
    if isinstance(value, int | float):
        return "number"
    if isinstance(value, str):
        return "string"
    if isinstance(value, list | tuple):
        return "list"
    if isinstance(value, dict):
        return "map"
    return type(value).__name__


def is_absent(value: Any) -> bool:
    # JSON null in the attribute tree behaves like a missing key
    return value is ABSENT or value is None
