"""Governance validation engine for the Composable Mesh Architecture.

Validates a snapshot of catalog entities (Organization → Mesh → Domain →
Product → Component) against cascaded policies, tag-triggered compliance
mixins, component wiring rules and taint propagation.
"""

from cma_core.snapshot import MeshSnapshot, load_snapshot, load_snapshot_dir
from cma_core.validation import ValidationEngine, ValidationReport, validate_snapshot

__version__ = "0.1.0"

__all__ = [
    "MeshSnapshot",
    "ValidationEngine",
    "ValidationReport",
    "__version__",
    "load_snapshot",
    "load_snapshot_dir",
    "validate_snapshot",
]
