"""Taint propagation: sensitivity tags must follow data dependencies.

If an entity reads from (``dependsOn`` or ``semantics.upstreamDependencies``)
an entity tagged PII, GDPR, PCI-DSS or SOC2, it is expected to carry the
same tag so the matching mixin constraints apply to it too. Findings are
advisory and never block a run on their own.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping
from typing import Literal

from pydantic import BaseModel, Field

from cma_core.enums import SensitivityTag
from cma_core.mesh.node import MeshNode

logger = logging.getLogger(__name__)

SENSITIVITY_TAGS: tuple[str, ...] = tuple(tag.value for tag in SensitivityTag)

DependencyVia = Literal["dependsOn", "upstreamDependencies"]


class TaintWarning(BaseModel):
    """A sensitivity tag of a dependency that the dependent entity lacks."""

    source_entity: str = Field(..., description="The dependent entity missing the tag")
    missing_tag: str
    referenced_entity: str = Field(..., description="The dependency carrying the tag")

    @property
    def message(self) -> str:
        return f"'{self.source_entity}' depends on '{self.referenced_entity}' tagged {self.missing_tag} but lacks the tag"


class DanglingDependency(BaseModel):
    """A dependency id that resolves to no entity."""

    entity_id: str
    reference: str
    via: DependencyVia


class TaintCheck(BaseModel):
    """Taint findings for one entity."""

    entity_id: str
    warnings: list[TaintWarning] = Field(default_factory=list)
    dangling: list[DanglingDependency] = Field(default_factory=list)


def iter_dependencies(entity: MeshNode) -> list[tuple[str, DependencyVia]]:
    """Dependency ids of ``entity`` with the field they come from, declaration order."""
    refs: list[tuple[str, DependencyVia]] = [(ref, "dependsOn") for ref in getattr(entity, "depends_on", [])]
    if entity.semantics is not None:
        refs.extend((ref, "upstreamDependencies") for ref in entity.semantics.upstream_dependencies)
    return refs


def check_propagation(entity: MeshNode, entities_by_id: Mapping[str, MeshNode]) -> TaintCheck:
    """Check that every sensitivity tag of a dependency is also on ``entity``.

    Each (dependency, tag) pair is reported at most once; an id listed in both
    ``dependsOn`` and ``upstreamDependencies`` is checked once.
    """
    result = TaintCheck(entity_id=entity.id)
    own_tags = entity.tag_set
    visited: set[str] = set()
    dangling_seen: set[str] = set()

    for ref, via in iter_dependencies(entity):
        referenced = entities_by_id.get(ref)
        if referenced is None:
            if ref not in dangling_seen:
                dangling_seen.add(ref)
                result.dangling.append(DanglingDependency(entity_id=entity.id, reference=ref, via=via))
            continue
        if ref in visited:
            continue
        visited.add(ref)

        for tag in SENSITIVITY_TAGS:
            if tag in referenced.tag_set and tag not in own_tags:
                result.warnings.append(TaintWarning(source_entity=entity.id, missing_tag=tag, referenced_entity=ref))

    for warning in result.warnings:
        logger.info("Taint: %s", warning.message)
    for dangling in result.dangling:
        logger.warning("Entity %s lists unknown dependency %s in %s", entity.id, dangling.reference, dangling.via)
    return result
