"""Wiring checks for composite products.

All checks run independently and every applicable error is collected, so a
caller sees the full error set of a product in one pass.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping
from enum import StrEnum

from pydantic import BaseModel, Field

from cma_core.hierarchy.cycles import find_cycles
from cma_core.mesh.node import Component, Product

logger = logging.getLogger(__name__)


class GraphErrorKind(StrEnum):
    UNEXPECTED_GRAPH = "unexpected_graph"
    MISSING_GRAPH = "missing_graph"
    UNKNOWN_COMPONENT_REFERENCE = "unknown_component_reference"
    UNKNOWN_PORT = "unknown_port"
    INVALID_PORT_DIRECTION = "invalid_port_direction"
    CYCLIC_COMPONENT_GRAPH = "cyclic_component_graph"
    SELF_LOOP_EDGE = "self_loop_edge"


class GraphError(BaseModel):
    """A wiring error of one product's component graph."""

    kind: GraphErrorKind
    product_id: str
    edge_index: int | None = None
    component_id: str | None = None
    port_name: str | None = None
    message: str
    cycle: list[str] = Field(default_factory=list)


def _check_endpoint(
    product: Product,
    index: int,
    component: Component,
    port_name: str,
    outgoing: bool,
) -> GraphError | None:
    port = component.port(port_name)
    role = "source" if outgoing else "target"
    if port is None:
        return GraphError(
            kind=GraphErrorKind.UNKNOWN_PORT,
            product_id=product.id,
            edge_index=index,
            component_id=component.id,
            port_name=port_name,
            message=f"Edge {index}: {role} port '{port_name}' does not exist on component '{component.id}'",
        )
    if (outgoing and not port.is_outgoing) or (not outgoing and not port.is_incoming):
        expected = "output or bidirectional" if outgoing else "input or bidirectional"
        return GraphError(
            kind=GraphErrorKind.INVALID_PORT_DIRECTION,
            product_id=product.id,
            edge_index=index,
            component_id=component.id,
            port_name=port_name,
            message=(
                f"Edge {index}: {role} port '{component.id}.{port_name}' is {port.direction.value}, "
                f"expected {expected}"
            ),
        )
    return None


def validate_component_graph(product: Product, components_by_id: Mapping[str, Component]) -> list[GraphError]:
    """Validate the component wiring of ``product``.

    Args:
        product: Product whose ``components`` and ``component_graph`` are checked.
        components_by_id: Every component of the snapshot, by id.

    Returns:
        All graph errors, in check order.
    """
    errors: list[GraphError] = []
    declared = set(product.components)

    if len(product.components) <= 1 and product.component_graph:
        errors.append(
            GraphError(
                kind=GraphErrorKind.UNEXPECTED_GRAPH,
                product_id=product.id,
                message=f"Atomic product '{product.id}' must not declare a component graph",
            )
        )
    if len(product.components) > 1 and not product.component_graph:
        errors.append(
            GraphError(
                kind=GraphErrorKind.MISSING_GRAPH,
                product_id=product.id,
                message=(
                    f"Composite product '{product.id}' has {len(product.components)} components "
                    "but no component graph"
                ),
            )
        )

    for component_id in product.components:
        if component_id not in components_by_id:
            errors.append(
                GraphError(
                    kind=GraphErrorKind.UNKNOWN_COMPONENT_REFERENCE,
                    product_id=product.id,
                    component_id=component_id,
                    message=f"Product '{product.id}' lists unknown component '{component_id}'",
                )
            )

    graph = list(enumerate(product.component_graph))

    for index, edge in graph:
        for role, component_id in (("source", edge.source_component), ("target", edge.target_component)):
            if component_id not in declared:
                errors.append(
                    GraphError(
                        kind=GraphErrorKind.UNKNOWN_COMPONENT_REFERENCE,
                        product_id=product.id,
                        edge_index=index,
                        component_id=component_id,
                        message=(
                            f"Edge {index}: {role} component '{component_id}' "
                            "is not one of the product's components"
                        ),
                    )
                )

    # Port checks only apply to endpoints that resolve to a declared component.
    for outgoing in (True, False):
        for index, edge in graph:
            component_id = edge.source_component if outgoing else edge.target_component
            component = components_by_id.get(component_id) if component_id in declared else None
            if component is None:
                continue
            port_name = edge.source_port if outgoing else edge.target_port
            error = _check_endpoint(product, index, component, port_name, outgoing=outgoing)
            if error is not None:
                errors.append(error)

    edges: dict[str, list[str]] = {}
    for _, edge in graph:
        if edge.source_component != edge.target_component:
            edges.setdefault(edge.source_component, []).append(edge.target_component)

    for cycle in find_cycles(declared, edges):
        errors.append(
            GraphError(
                kind=GraphErrorKind.CYCLIC_COMPONENT_GRAPH,
                product_id=product.id,
                message=f"Component graph of '{product.id}' has a cycle: {' -> '.join([*cycle, cycle[0]])}",
                cycle=cycle,
            )
        )

    for index, edge in graph:
        if edge.source_component == edge.target_component:
            errors.append(
                GraphError(
                    kind=GraphErrorKind.SELF_LOOP_EDGE,
                    product_id=product.id,
                    edge_index=index,
                    component_id=edge.source_component,
                    message=f"Edge {index}: component '{edge.source_component}' is wired to itself",
                )
            )

    if errors:
        logger.warning("Product %s has %d component graph error(s)", product.id, len(errors))
    return errors
