"""Entity snapshots: the immutable input of a validation run."""

from cma_core.snapshot.loader import load_snapshot, load_snapshot_dir, snapshot_from_dict
from cma_core.snapshot.snapshot import MeshSnapshot

__all__ = ["MeshSnapshot", "load_snapshot", "load_snapshot_dir", "snapshot_from_dict"]
