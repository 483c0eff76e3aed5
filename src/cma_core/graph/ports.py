"""Port shape checks.

Each port type owns a required field and optional companions. Missing the
required field is an error; carrying another type's field is only a
warning.
"""

from __future__ import annotations

from collections.abc import Iterable
from enum import StrEnum

from pydantic import BaseModel

from cma_core.enums import Severity
from cma_core.mesh.port import PORT_TYPE_FIELDS, Port


class PortIssueKind(StrEnum):
    MISSING_REQUIRED_FIELD = "missing_required_field"
    FOREIGN_FIELD = "foreign_field"
    DUPLICATE_PORT_NAME = "duplicate_port_name"
    OWNER_MISMATCH = "owner_mismatch"


class PortIssue(BaseModel):
    """A problem with one port of a product or component."""

    kind: PortIssueKind
    owner_id: str
    port_name: str
    field: str | None = None
    severity: Severity
    message: str

    @property
    def is_error(self) -> bool:
        return self.severity == Severity.ERROR


def _field_set(port: Port, field: str) -> bool:
    return getattr(port, field) is not None


def _document_name(field: str) -> str:
    return Port.model_fields[field].alias or field


def validate_port_shape(owner_id: str, port: Port) -> list[PortIssue]:
    """Check that ``port`` carries exactly the fields of its ``port_type``."""
    issues: list[PortIssue] = []
    own_fields = PORT_TYPE_FIELDS[port.port_type]
    required = own_fields[0]

    if not _field_set(port, required):
        name = _document_name(required)
        issues.append(
            PortIssue(
                kind=PortIssueKind.MISSING_REQUIRED_FIELD,
                owner_id=owner_id,
                port_name=port.name,
                field=name,
                severity=Severity.ERROR,
                message=f"{port.port_type.value} port '{port.name}' of '{owner_id}' requires '{name}'",
            )
        )

    for other_type, fields in PORT_TYPE_FIELDS.items():
        if other_type == port.port_type:
            continue
        for field in fields:
            if _field_set(port, field):
                name = _document_name(field)
                issues.append(
                    PortIssue(
                        kind=PortIssueKind.FOREIGN_FIELD,
                        owner_id=owner_id,
                        port_name=port.name,
                        field=name,
                        severity=Severity.WARNING,
                        message=(
                            f"{port.port_type.value} port '{port.name}' of '{owner_id}' sets "
                            f"'{name}', which belongs to {other_type.value} ports"
                        ),
                    )
                )
    return issues


def validate_ports(owner_id: str, ports: Iterable[Port], component_scoped: bool) -> list[PortIssue]:
    """Validate every port of one owner.

    Args:
        owner_id: Id of the owning product or component.
        ports: The owner's ports.
        component_scoped: True for component ports, False for product-level ports.

    Returns:
        Issues in port declaration order.
    """
    issues: list[PortIssue] = []
    seen: set[str] = set()

    for port in ports:
        if port.name in seen:
            issues.append(
                PortIssue(
                    kind=PortIssueKind.DUPLICATE_PORT_NAME,
                    owner_id=owner_id,
                    port_name=port.name,
                    severity=Severity.ERROR,
                    message=f"Port name '{port.name}' is declared more than once on '{owner_id}'",
                )
            )
        seen.add(port.name)

        if component_scoped and port.component_id not in (None, owner_id):
            issues.append(
                PortIssue(
                    kind=PortIssueKind.OWNER_MISMATCH,
                    owner_id=owner_id,
                    port_name=port.name,
                    field="component_id",
                    severity=Severity.ERROR,
                    message=f"Port '{port.name}' of component '{owner_id}' claims component '{port.component_id}'",
                )
            )
        elif not component_scoped and port.component_id is not None:
            issues.append(
                PortIssue(
                    kind=PortIssueKind.OWNER_MISMATCH,
                    owner_id=owner_id,
                    port_name=port.name,
                    field="component_id",
                    severity=Severity.ERROR,
                    message=f"Product-level port '{port.name}' of '{owner_id}' must not set componentId",
                )
            )

        issues.extend(validate_port_shape(owner_id, port))

    return issues
