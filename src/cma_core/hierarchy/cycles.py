"""Cycle detection over id-indexed directed graphs (three-colour DFS)."""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from enum import IntEnum


class _Color(IntEnum):
    WHITE = 0  # not visited
    GRAY = 1  # on the current DFS path
    BLACK = 2  # fully explored


def _normalize(cycle: list[str]) -> tuple[str, ...]:
    """Rotate a cycle so it starts at its smallest id."""
    start = cycle.index(min(cycle))
    return tuple(cycle[start:] + cycle[:start])


def find_cycles(nodes: Iterable[str], edges: Mapping[str, Iterable[str]]) -> list[list[str]]:
    """Return every cycle closed by a back-edge of a depth-first search.

    Nodes are explored in sorted order and successors in their given order,
    so the result is deterministic. Each cycle is reported once, as the node
    sequence along the cycle starting at its smallest id. Successors that are
    not in ``nodes`` are ignored.

    Example:
        >>> find_cycles(["a", "b", "c"], {"a": ["b"], "b": ["c"], "c": ["a"]})
        [['a', 'b', 'c']]
    """
    node_set = set(nodes)
    color = dict.fromkeys(node_set, _Color.WHITE)
    seen: set[tuple[str, ...]] = set()
    cycles: list[list[str]] = []

    for root in sorted(node_set):
        if color[root] != _Color.WHITE:
            continue

        path: list[str] = [root]
        stack = [(root, iter(edges.get(root, ())))]
        color[root] = _Color.GRAY

        while stack:
            node, successors = stack[-1]
            advanced = False
            for succ in successors:
                if succ not in node_set:
                    continue
                if color[succ] == _Color.GRAY:
                    cycle = _normalize(path[path.index(succ) :])
                    if cycle not in seen:
                        seen.add(cycle)
                        cycles.append(list(cycle))
                elif color[succ] == _Color.WHITE:
                    color[succ] = _Color.GRAY
                    path.append(succ)
                    stack.append((succ, iter(edges.get(succ, ()))))
                    advanced = True
                    break
            if not advanced:
                color[node] = _Color.BLACK
                path.pop()
                stack.pop()

    return cycles
