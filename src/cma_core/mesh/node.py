"""Mesh node hierarchy: Organization → Mesh → Domain → Product → Component.

Every node shares the MeshNode capability set (identity, lifecycle,
governance, semantics, deployment). Parent links are plain id strings
resolved by :mod:`cma_core.hierarchy.resolver`; nodes never hold
references to other node objects.
"""

from __future__ import annotations

from typing import Any, ClassVar

from pydantic import ConfigDict, Field, model_validator

from cma_core.enums import ComponentKind, ComponentRuntime, EntityKind, NodeStatus, ProductKind
from cma_core.mesh.base import MeshModel
from cma_core.mesh.deployment import DeploymentSpec, SemanticMetadata
from cma_core.mesh.policy import Constraint, Policy
from cma_core.mesh.port import ComponentEdge, Port

SEMVER_PATTERN = r"^\d+\.\d+\.\d+(?:-[0-9A-Za-z.-]+)?(?:\+[0-9A-Za-z.-]+)?$"

PARENT_REFERENCE_KEYS = frozenset(
    {
        "organizationId",
        "organization_id",
        "meshId",
        "mesh_id",
        "domainId",
        "domain_id",
        "productId",
        "product_id",
    }
)


class MeshNode(MeshModel):
    """Common capability set of all catalog entities.

    Unknown keys are kept as extension attributes (``retentionPolicy``,
    ``dataPortability``, ...) so constraint expressions can reference them.
    """

    model_config = ConfigDict(extra="allow")

    entity_kind: ClassVar[EntityKind]
    parent_kind: ClassVar[EntityKind | None] = None
    parent_field: ClassVar[str | None] = None

    id: str = Field(..., min_length=1, description="Globally unique identity key")
    name: str = Field(..., min_length=1)
    description: str | None = None
    version: str = Field(default="0.1.0", pattern=SEMVER_PATTERN)
    status: NodeStatus = Field(default=NodeStatus.PROPOSED)
    owner: str | None = None
    tags: list[str] = Field(default_factory=list, description="Matched as a set, kept in order for display")
    policies: list[Policy] = Field(default_factory=list, description="Local policies, before cascade")
    constraints: list[Constraint] = Field(default_factory=list, description="Local standalone constraints")
    semantics: SemanticMetadata | None = None
    deployment: DeploymentSpec

    @property
    def parent_id(self) -> str | None:
        """Id of the hierarchical parent, if this node references one."""
        if self.parent_field is None:
            return None
        return getattr(self, self.parent_field)

    @property
    def tag_set(self) -> frozenset[str]:
        return frozenset(self.tags)

    def attributes(self) -> dict[str, Any]:
        """Attribute tree used to resolve constraint expression paths."""
        return self.model_dump(mode="json", by_alias=True)


class Organization(MeshNode):
    """Root of the hierarchy; never has a parent."""

    entity_kind: ClassVar[EntityKind] = EntityKind.ORGANIZATION

    legal_name: str | None = None
    jurisdiction: str | None = Field(default=None, pattern=r"^[A-Za-z]{2}$")
    regulatory_framework: list[str] = Field(default_factory=list)
    billing_account_id: str | None = None
    cost_center: str | None = None

    @model_validator(mode="before")
    @classmethod
    def _reject_parent_reference(cls, data: Any) -> Any:
        if isinstance(data, dict):
            present = sorted(PARENT_REFERENCE_KEYS.intersection(data))
            if present:
                msg = f"Organization cannot reference a parent ({', '.join(present)})"
                raise ValueError(msg)
        return data


class Mesh(MeshNode):
    """A data mesh owned by an organization."""

    entity_kind: ClassVar[EntityKind] = EntityKind.MESH
    parent_kind: ClassVar[EntityKind | None] = EntityKind.ORGANIZATION
    parent_field: ClassVar[str | None] = "organization_id"

    organization_id: str | None = None


class Domain(MeshNode):
    """A business domain inside a mesh."""

    entity_kind: ClassVar[EntityKind] = EntityKind.DOMAIN
    parent_kind: ClassVar[EntityKind | None] = EntityKind.MESH
    parent_field: ClassVar[str | None] = "mesh_id"

    mesh_id: str | None = None


class Product(MeshNode):
    """A data product; atomic with at most one component, composite otherwise."""

    entity_kind: ClassVar[EntityKind] = EntityKind.PRODUCT
    parent_kind: ClassVar[EntityKind | None] = EntityKind.DOMAIN
    parent_field: ClassVar[str | None] = "domain_id"

    domain_id: str | None = None
    kind: ProductKind = Field(default=ProductKind.DATASET)
    components: list[str] = Field(default_factory=list, description="Component ids, in declaration order")
    component_graph: list[ComponentEdge] = Field(default_factory=list)
    ports: list[Port] = Field(default_factory=list, description="Product-level ports")
    depends_on: list[str] = Field(default_factory=list, description="Product ids")

    @property
    def is_composite(self) -> bool:
        return len(self.components) > 1


class Component(MeshNode):
    """A building block of a product: a template, or an instance bound to a product."""

    entity_kind: ClassVar[EntityKind] = EntityKind.COMPONENT
    parent_kind: ClassVar[EntityKind | None] = EntityKind.PRODUCT
    parent_field: ClassVar[str | None] = "product_id"

    product_id: str | None = Field(default=None, description="Set for instances, absent for templates")
    kind: ComponentKind
    ports: list[Port] = Field(default_factory=list)
    depends_on: list[str] = Field(default_factory=list, description="Component ids")
    template: str | None = Field(default=None, description="Template component id; absent means this is a template")
    reusable: bool = True
    runtime: ComponentRuntime | None = None
    config: dict[str, str] = Field(default_factory=dict)

    @property
    def is_template(self) -> bool:
        return self.template is None

    def port(self, name: str) -> Port | None:
        for port in self.ports:
            if port.name == name:
                return port
        return None


ENTITY_TYPES: dict[EntityKind, type[MeshNode]] = {
    EntityKind.ORGANIZATION: Organization,
    EntityKind.MESH: Mesh,
    EntityKind.DOMAIN: Domain,
    EntityKind.PRODUCT: Product,
    EntityKind.COMPONENT: Component,
}
