"""Ports and component wiring edges."""

from __future__ import annotations

from typing import Any

from pydantic import Field

from cma_core.enums import DataClassification, PortDirection, PortType
from cma_core.mesh.base import MeshModel

# Fields owned by each port type; the first one is required.
PORT_TYPE_FIELDS: dict[PortType, tuple[str, ...]] = {
    PortType.DATA: ("format", "data_schema", "catalog"),
    PortType.SERVICE: ("protocol", "open_api_spec", "authentication"),
    PortType.EVENT: ("topic", "event_schema", "message_format"),
}

OUTGOING_DIRECTIONS = frozenset({PortDirection.OUTPUT, PortDirection.BIDIRECTIONAL})
INCOMING_DIRECTIONS = frozenset({PortDirection.INPUT, PortDirection.BIDIRECTIONAL})


class Port(MeshModel):
    """Named interface of a product or component.

    The shape rules of ``port_type`` are checked by
    :func:`cma_core.graph.ports.validate_ports`, not at construction, so a
    malformed port is reported instead of aborting the whole snapshot.
    """

    name: str = Field(..., min_length=1, description="Unique within the owning entity")
    description: str | None = None
    component_id: str | None = Field(default=None, description="Owning component; unset for product-level ports")
    direction: PortDirection
    port_type: PortType

    # data
    format: str | None = None
    data_schema: str | dict[str, Any] | None = Field(default=None, alias="schema")
    catalog: str | None = None

    # service
    protocol: str | None = None
    open_api_spec: str | None = None
    authentication: str | None = None

    # event
    topic: str | None = None
    event_schema: str | dict[str, Any] | None = None
    message_format: str | None = None

    classification: DataClassification | None = None
    sla: dict[str, str] = Field(default_factory=dict)

    @property
    def is_outgoing(self) -> bool:
        return self.direction in OUTGOING_DIRECTIONS

    @property
    def is_incoming(self) -> bool:
        return self.direction in INCOMING_DIRECTIONS


class ComponentEdge(MeshModel):
    """Wiring from an output port of one component to an input port of another."""

    source_component: str = Field(..., min_length=1)
    source_port: str = Field(..., min_length=1)
    target_component: str = Field(..., min_length=1)
    target_port: str = Field(..., min_length=1)
    transformation: str | None = Field(default=None, description="Opaque, never evaluated")
    metadata: dict[str, str] = Field(default_factory=dict)
