"""In-memory snapshot of all catalog entities, indexed by id."""

from __future__ import annotations

from collections.abc import Iterator
from functools import cached_property

from pydantic import BaseModel, ConfigDict, Field

from cma_core.enums import EntityKind
from cma_core.errors import UnknownEntityError
from cma_core.mesh.node import Component, Domain, Mesh, MeshNode, Organization, Product


class MeshSnapshot(BaseModel):
    """Flat entity collections with unqualified id cross-references.

    Ids must be unique across the union of all collections; the first
    occurrence of an id wins in :attr:`index` and later ones are reported
    by the hierarchy resolver as duplicates.
    """

    model_config = ConfigDict(frozen=True)

    organizations: list[Organization] = Field(default_factory=list)
    meshes: list[Mesh] = Field(default_factory=list)
    domains: list[Domain] = Field(default_factory=list)
    products: list[Product] = Field(default_factory=list)
    components: list[Component] = Field(default_factory=list)

    def iter_entities(self) -> Iterator[MeshNode]:
        """Yield every entity, root collections first, in declaration order."""
        yield from self.organizations
        yield from self.meshes
        yield from self.domains
        yield from self.products
        yield from self.components

    @cached_property
    def index(self) -> dict[str, MeshNode]:
        entities: dict[str, MeshNode] = {}
        for entity in self.iter_entities():
            entities.setdefault(entity.id, entity)
        return entities

    def get(self, entity_id: str) -> MeshNode | None:
        return self.index.get(entity_id)

    def require(self, entity_id: str) -> MeshNode:
        """Return the entity with ``entity_id``.

        Raises:
            UnknownEntityError: If no entity has that id.
        """
        entity = self.index.get(entity_id)
        if entity is None:
            raise UnknownEntityError(entity_id)
        return entity

    def of_kind(self, kind: EntityKind) -> list[MeshNode]:
        return [e for e in self.iter_entities() if e.entity_kind == kind]

    @cached_property
    def components_by_id(self) -> dict[str, Component]:
        return {cid: c for cid, c in self.index.items() if isinstance(c, Component)}

    @property
    def entity_count(self) -> int:
        return sum(1 for _ in self.iter_entities())
