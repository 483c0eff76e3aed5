"""Hierarchy resolution: parent links, ancestor chains, side-graph cycles."""

from cma_core.hierarchy.cycles import find_cycles
from cma_core.hierarchy.resolver import (
    HierarchyError,
    HierarchyErrorKind,
    HierarchyResolution,
    resolve_hierarchy,
)

__all__ = [
    "HierarchyError",
    "HierarchyErrorKind",
    "HierarchyResolution",
    "find_cycles",
    "resolve_hierarchy",
]
