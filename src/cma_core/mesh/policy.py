"""Governance value types attached to mesh nodes."""

from __future__ import annotations

from pydantic import Field

from cma_core.enums import Enforcement, PolicyScope, PolicyType, Severity
from cma_core.mesh.base import MeshModel


class Constraint(MeshModel):
    """A boolean expression that must hold for the entity it is evaluated against."""

    expression: str = Field(..., min_length=1, description="Expression in the constraint grammar")
    message: str = Field(..., min_length=1, description="Message shown when the constraint fails")
    severity: Severity = Field(default=Severity.ERROR)


class Policy(MeshModel):
    """Named bundle of constraints with an enforcement level."""

    id: str = Field(..., min_length=1, description="Unique within the defining scope")
    name: str = Field(..., min_length=1)
    scope: PolicyScope
    policy_type: PolicyType
    enforcement: Enforcement = Field(default=Enforcement.BLOCKING)
    constraints: list[Constraint] = Field(..., min_length=1)
