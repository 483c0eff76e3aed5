"""Advisories for dependencies on deprecated or retired entities."""

from __future__ import annotations

import logging
from collections.abc import Mapping

from pydantic import BaseModel

from cma_core.enums import NodeStatus
from cma_core.lineage.taint import iter_dependencies
from cma_core.mesh.node import MeshNode

logger = logging.getLogger(__name__)

SUNSET_STATUSES = frozenset({NodeStatus.DEPRECATED, NodeStatus.RETIRED})


class LifecycleWarning(BaseModel):
    """An entity depends on something that is being, or has been, sunset."""

    entity_id: str
    referenced_entity: str
    referenced_status: NodeStatus


def check_lifecycle(entity: MeshNode, entities_by_id: Mapping[str, MeshNode]) -> list[LifecycleWarning]:
    """Flag dependencies of ``entity`` whose status is deprecated or retired.

    Unknown dependency ids are ignored here; the taint check reports them.
    """
    warnings: list[LifecycleWarning] = []
    seen: set[str] = set()
    for ref, _ in iter_dependencies(entity):
        referenced = entities_by_id.get(ref)
        if referenced is None or ref in seen:
            continue
        seen.add(ref)
        if referenced.status in SUNSET_STATUSES:
            warnings.append(
                LifecycleWarning(entity_id=entity.id, referenced_entity=ref, referenced_status=referenced.status)
            )
            logger.info("Entity %s depends on %s entity %s", entity.id, referenced.status.value, ref)
    return warnings
