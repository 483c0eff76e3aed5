"""Entity model of the Composable Mesh Architecture.

Six-level catalog hierarchy plus cross-cutting governance values:
- Organization, Mesh, Domain, Product, Component (MeshNode variants)
- Port and ComponentEdge (wiring of composite products)
- Policy and Constraint (governance)
- DeploymentSpec, SourceRepository, SemanticMetadata (annotations)
"""

from cma_core.mesh.deployment import DeploymentSpec, SemanticMetadata, SourceRepository
from cma_core.mesh.node import (
    ENTITY_TYPES,
    Component,
    Domain,
    Mesh,
    MeshNode,
    Organization,
    Product,
)
from cma_core.mesh.policy import Constraint, Policy
from cma_core.mesh.port import ComponentEdge, Port

__all__ = [
    "ENTITY_TYPES",
    "Component",
    "ComponentEdge",
    "Constraint",
    "DeploymentSpec",
    "Domain",
    "Mesh",
    "MeshNode",
    "Organization",
    "Policy",
    "Port",
    "Product",
    "SemanticMetadata",
    "SourceRepository",
]
