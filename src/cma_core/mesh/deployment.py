"""Deployment, source repository and semantic annotation value types.

``DeploymentSpec`` is an open attribute bag: only ``environment`` and
``source`` are declared, every other key (``encryption``, ``accessLogging``,
``networkSegmentation``, ``region``, ...) is kept verbatim as a nested
mapping so constraint expressions can address arbitrary paths.
"""

from __future__ import annotations

from pydantic import ConfigDict, Field

from cma_core.enums import DataClassification
from cma_core.mesh.base import MeshModel


class SourceRepository(MeshModel):
    """Where the code of a node lives."""

    url: str = Field(..., min_length=1)
    branch: str | None = None
    tag: str | None = None
    path: str | None = None
    ssh_host_fingerprint: str | None = None
    ssh_private_key: str | None = Field(default=None, repr=False)


class DeploymentSpec(MeshModel):
    """Deployment target of a node plus schemaless deployment options."""

    model_config = ConfigDict(extra="allow")

    environment: str = Field(..., min_length=1, description="Target environment (e.g. 'production')")
    source: SourceRepository | None = None


class SemanticMetadata(MeshModel):
    """Semantic annotations of a node."""

    rdf_type: str | None = None
    namespace: str | None = None
    business_glossary_terms: list[str] = Field(default_factory=list)
    data_classification: DataClassification | None = None
    upstream_dependencies: list[str] = Field(default_factory=list, description="Entity ids this node reads from")
    downstream_consumers: list[str] = Field(default_factory=list, description="Entity ids reading from this node")
