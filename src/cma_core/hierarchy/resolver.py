"""Resolve parent links of a flat snapshot into an ancestor tree.

Organization → Mesh → Domain → Product → Component is enforced by the
parent reference fields: each field may only point at the next level up.
``dependsOn`` and ``template`` graphs are not part of the ancestor chain
and are cycle-checked on their own.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from enum import StrEnum

from pydantic import BaseModel, Field

from cma_core.hierarchy.cycles import find_cycles
from cma_core.mesh.node import Component, MeshNode, Product
from cma_core.snapshot.snapshot import MeshSnapshot

logger = logging.getLogger(__name__)


class HierarchyErrorKind(StrEnum):
    """Structural problems of the entity hierarchy and its side graphs."""

    DANGLING_REFERENCE = "dangling_reference"
    DUPLICATE_ID = "duplicate_id"
    CYCLIC_HIERARCHY = "cyclic_hierarchy"
    CYCLIC_DEPENDENCY = "cyclic_dependency"
    CYCLIC_TEMPLATE = "cyclic_template"
    CHAINED_TEMPLATE = "chained_template"
    DANGLING_TEMPLATE = "dangling_template"


class HierarchyError(BaseModel):
    """A structural error found while resolving the hierarchy."""

    kind: HierarchyErrorKind
    entity_id: str
    reference: str | None = None
    message: str
    cycle: list[str] = Field(default_factory=list)


@dataclass
class HierarchyResolution:
    """Read-only result shared by every later stage of a validation run."""

    parents: dict[str, str] = field(default_factory=dict)
    ancestors: dict[str, list[str]] = field(default_factory=dict)
    children: dict[str, list[str]] = field(default_factory=dict)
    errors: list[HierarchyError] = field(default_factory=list)
    affected: set[str] = field(default_factory=set)

    def ancestors_of(self, entity_id: str) -> list[str]:
        """Ancestor ids from the root down to the immediate parent."""
        return self.ancestors.get(entity_id, [])

    def add_error(self, error: HierarchyError, *affected: str) -> None:
        self.errors.append(error)
        self.affected.update(affected or (error.entity_id,))


def _check_duplicates(snapshot: MeshSnapshot, resolution: HierarchyResolution) -> None:
    first_kind: dict[str, str] = {}
    for entity in snapshot.iter_entities():
        kind = entity.entity_kind.value
        if entity.id in first_kind:
            resolution.add_error(
                HierarchyError(
                    kind=HierarchyErrorKind.DUPLICATE_ID,
                    entity_id=entity.id,
                    message=f"Id '{entity.id}' is declared by a {first_kind[entity.id]} and again by a {kind}",
                )
            )
        else:
            first_kind[entity.id] = kind


def _link_parents(snapshot: MeshSnapshot, resolution: HierarchyResolution) -> None:
    for entity in snapshot.index.values():
        parent_id = entity.parent_id
        if parent_id is None:
            continue

        parent = snapshot.get(parent_id)
        if parent is None or parent.entity_kind != entity.parent_kind:
            found = "does not exist" if parent is None else f"is a {parent.entity_kind.value}"
            resolution.add_error(
                HierarchyError(
                    kind=HierarchyErrorKind.DANGLING_REFERENCE,
                    entity_id=entity.id,
                    reference=parent_id,
                    message=(
                        f"{entity.entity_kind.value.capitalize()} '{entity.id}' references "
                        f"{entity.parent_kind.value if entity.parent_kind else 'parent'} "
                        f"'{parent_id}', which {found}"
                    ),
                )
            )
            continue

        resolution.parents[entity.id] = parent_id
        resolution.children.setdefault(parent_id, []).append(entity.id)


def _walk_ancestors(snapshot: MeshSnapshot, resolution: HierarchyResolution) -> None:
    for entity_id in snapshot.index:
        chain: list[str] = []
        visited = {entity_id}
        current = resolution.parents.get(entity_id)
        while current is not None:
            if current in visited:
                resolution.add_error(
                    HierarchyError(
                        kind=HierarchyErrorKind.CYCLIC_HIERARCHY,
                        entity_id=entity_id,
                        reference=current,
                        message=f"Ancestor chain of '{entity_id}' revisits '{current}'",
                        cycle=[*reversed(chain), entity_id],
                    )
                )
                chain = []
                break
            visited.add(current)
            chain.append(current)
            current = resolution.parents.get(current)
        resolution.ancestors[entity_id] = list(reversed(chain))


def _check_templates(components: dict[str, Component], snapshot: MeshSnapshot, resolution: HierarchyResolution) -> None:
    template_edges: dict[str, list[str]] = {}
    for component in components.values():
        if component.template is None:
            continue
        target = snapshot.get(component.template)
        if not isinstance(target, Component):
            resolution.add_error(
                HierarchyError(
                    kind=HierarchyErrorKind.DANGLING_TEMPLATE,
                    entity_id=component.id,
                    reference=component.template,
                    message=f"Component '{component.id}' uses unknown template '{component.template}'",
                )
            )
            continue
        template_edges[component.id] = [target.id]
        if target.template is not None:
            resolution.add_error(
                HierarchyError(
                    kind=HierarchyErrorKind.CHAINED_TEMPLATE,
                    entity_id=component.id,
                    reference=target.id,
                    message=(
                        f"Component '{component.id}' uses '{target.id}' as template, "
                        f"but '{target.id}' is itself an instance of '{target.template}'"
                    ),
                )
            )

    for cycle in find_cycles(components, template_edges):
        resolution.add_error(
            HierarchyError(
                kind=HierarchyErrorKind.CYCLIC_TEMPLATE,
                entity_id=cycle[0],
                message=f"Template references form a cycle: {' -> '.join([*cycle, cycle[0]])}",
                cycle=cycle,
            ),
            *cycle,
        )


def _check_dependency_cycles(entities: dict[str, MeshNode], resolution: HierarchyResolution, label: str) -> None:
    edges = {eid: list(getattr(e, "depends_on", [])) for eid, e in entities.items()}
    for cycle in find_cycles(entities, edges):
        resolution.add_error(
            HierarchyError(
                kind=HierarchyErrorKind.CYCLIC_DEPENDENCY,
                entity_id=cycle[0],
                message=f"{label} dependencies form a cycle: {' -> '.join([*cycle, cycle[0]])}",
                cycle=cycle,
            ),
            *cycle,
        )


def resolve_hierarchy(snapshot: MeshSnapshot) -> HierarchyResolution:
    """Resolve parent/child links and check the side graphs for cycles.

    Never raises for malformed input: every problem is collected in
    ``errors`` and the offending ids in ``affected``. An entity whose parent
    reference is dangling keeps an empty ancestor chain.
    """
    resolution = HierarchyResolution()

    _check_duplicates(snapshot, resolution)
    _link_parents(snapshot, resolution)
    _walk_ancestors(snapshot, resolution)

    components = snapshot.components_by_id
    products: dict[str, MeshNode] = {pid: p for pid, p in snapshot.index.items() if isinstance(p, Product)}
    _check_templates(components, snapshot, resolution)
    _check_dependency_cycles(dict(components), resolution, "Component")
    _check_dependency_cycles(products, resolution, "Product")

    for error in resolution.errors:
        logger.warning("Hierarchy error [%s] %s", error.kind.value, error.message)
    logger.debug(
        "Resolved hierarchy: %d entities, %d linked, %d error(s)",
        len(snapshot.index),
        len(resolution.parents),
        len(resolution.errors),
    )
    return resolution
