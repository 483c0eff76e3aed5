"""Structural checks of ports and composite product wiring."""

from cma_core.graph.component_graph import GraphError, GraphErrorKind, validate_component_graph
from cma_core.graph.ports import PortIssue, PortIssueKind, validate_port_shape, validate_ports

__all__ = [
    "GraphError",
    "GraphErrorKind",
    "PortIssue",
    "PortIssueKind",
    "validate_component_graph",
    "validate_port_shape",
    "validate_ports",
]
