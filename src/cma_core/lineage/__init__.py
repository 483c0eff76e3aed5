"""Dependency lineage checks: taint propagation and lifecycle advisories."""

from cma_core.lineage.lifecycle import LifecycleWarning, check_lifecycle
from cma_core.lineage.taint import (
    SENSITIVITY_TAGS,
    DanglingDependency,
    TaintCheck,
    TaintWarning,
    check_propagation,
)

__all__ = [
    "SENSITIVITY_TAGS",
    "DanglingDependency",
    "LifecycleWarning",
    "TaintCheck",
    "TaintWarning",
    "check_lifecycle",
    "check_propagation",
]
