"""Load entity snapshots from YAML or JSON documents.

A snapshot document is a mapping whose keys are collection names
(``organizations``, ``meshes``, ``domains``, ``products``, ``components``).
Each collection is either a list of entity mappings or a mapping of
id → entity mapping.
"""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any

import yaml
from pydantic import ValidationError

from cma_core.errors import SnapshotError
from cma_core.snapshot.snapshot import MeshSnapshot

logger = logging.getLogger(__name__)

COLLECTIONS = ("organizations", "meshes", "domains", "products", "components")
SNAPSHOT_SUFFIXES = (".yaml", ".yml", ".json")


def _normalize_collection(name: str, raw: Any, source: str) -> list[dict[str, Any]]:
    if raw is None:
        return []
    if isinstance(raw, list):
        for item in raw:
            if not isinstance(item, dict):
                msg = f"{source}: every entry of '{name}' must be a mapping"
                raise SnapshotError(msg)
        return list(raw)
    if isinstance(raw, dict):
        entries = []
        for entity_id, item in raw.items():
            if not isinstance(item, dict):
                msg = f"{source}: '{name}.{entity_id}' must be a mapping"
                raise SnapshotError(msg)
            embedded = item.get("id")
            if embedded is not None and embedded != entity_id:
                msg = f"{source}: '{name}.{entity_id}' declares mismatching id {embedded!r}"
                raise SnapshotError(msg)
            entries.append({**item, "id": entity_id})
        return entries
    msg = f"{source}: '{name}' must be a list or a mapping"
    raise SnapshotError(msg)


def snapshot_from_dict(raw: Any, source: str = "<snapshot>") -> MeshSnapshot:
    """Build a snapshot from an already-deserialized document.

    Raises:
        SnapshotError: If the document does not match the entity model.
    """
    if not isinstance(raw, dict):
        msg = f"{source}: snapshot must be a mapping of collections"
        raise SnapshotError(msg)

    unknown = sorted(set(raw) - set(COLLECTIONS))
    if unknown:
        msg = f"{source}: unknown collection(s): {', '.join(unknown)}"
        raise SnapshotError(msg)

    data = {name: _normalize_collection(name, raw.get(name), source) for name in COLLECTIONS}
    try:
        return MeshSnapshot(**data)
    except ValidationError as exc:
        msg = f"{source}: invalid snapshot: {exc}"
        raise SnapshotError(msg) from exc


def _read_document(file_path: Path) -> Any:
    text = file_path.read_text(encoding="utf-8")
    try:
        if file_path.suffix == ".json":
            return json.loads(text)
        return yaml.safe_load(text)
    except (json.JSONDecodeError, yaml.YAMLError) as exc:
        msg = f"{file_path}: cannot parse snapshot: {exc}"
        raise SnapshotError(msg) from exc


def load_snapshot(path: str | Path) -> MeshSnapshot:
    """Load a snapshot from a YAML or JSON file.

    Raises:
        FileNotFoundError: If the file does not exist.
        SnapshotError: If the file is not a valid snapshot.
    """
    file_path = Path(path)
    if not file_path.exists():
        msg = f"Snapshot file not found: {file_path}"
        raise FileNotFoundError(msg)
    if file_path.suffix not in SNAPSHOT_SUFFIXES:
        msg = f"{file_path}: unsupported snapshot format (expected {', '.join(SNAPSHOT_SUFFIXES)})"
        raise SnapshotError(msg)

    snapshot = snapshot_from_dict(_read_document(file_path), str(file_path))
    logger.info("Loaded snapshot %s with %d entities", file_path, snapshot.entity_count)
    return snapshot


def load_snapshot_dir(directory: str | Path) -> MeshSnapshot:
    """Merge every snapshot file of ``directory`` in sorted file order."""
    dir_path = Path(directory)
    merged: dict[str, list[dict[str, Any]]] = {name: [] for name in COLLECTIONS}
    files = sorted(p for p in dir_path.iterdir() if p.is_file() and p.suffix in SNAPSHOT_SUFFIXES)

    for file_path in files:
        raw = _read_document(file_path)
        if raw is None:
            continue
        if not isinstance(raw, dict):
            msg = f"{file_path}: snapshot must be a mapping of collections"
            raise SnapshotError(msg)
        unknown = sorted(set(raw) - set(COLLECTIONS))
        if unknown:
            msg = f"{file_path}: unknown collection(s): {', '.join(unknown)}"
            raise SnapshotError(msg)
        for name in COLLECTIONS:
            merged[name].extend(_normalize_collection(name, raw.get(name), str(file_path)))

    snapshot = snapshot_from_dict(merged, str(dir_path))
    logger.info("Loaded %d snapshot file(s) from %s", len(files), dir_path)
    return snapshot
