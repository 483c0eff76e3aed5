"""Aggregated validation report."""

from __future__ import annotations

from pydantic import BaseModel, Field, computed_field

from cma_core.governance.cascade import PolicyRef
from cma_core.governance.evaluator import ConstraintResult, EntityConstraintReport
from cma_core.graph.component_graph import GraphError
from cma_core.graph.ports import PortIssue
from cma_core.hierarchy.resolver import HierarchyError
from cma_core.lineage.lifecycle import LifecycleWarning
from cma_core.lineage.taint import DanglingDependency, TaintWarning


class ValidationReport(BaseModel):
    """Everything one validation run found, keyed and sorted by entity id."""

    hierarchy_errors: list[HierarchyError] = Field(default_factory=list)
    port_issues: list[PortIssue] = Field(default_factory=list)
    graph_errors: dict[str, list[GraphError]] = Field(default_factory=dict)
    effective_policies: dict[str, list[PolicyRef]] = Field(default_factory=dict)
    constraint_reports: dict[str, EntityConstraintReport] = Field(default_factory=dict)
    taint_warnings: list[TaintWarning] = Field(default_factory=list)
    dangling_dependencies: list[DanglingDependency] = Field(default_factory=list)
    lifecycle_warnings: list[LifecycleWarning] = Field(default_factory=list)
    skipped_entities: list[str] = Field(default_factory=list, description="Not constraint-checked: structurally broken")

    @computed_field  # type: ignore[prop-decorator]
    @property
    def compliant(self) -> bool:
        """No structural errors and no blocking constraint failures."""
        return self.structural_error_count == 0 and not self.blocking_failures()

    @computed_field  # type: ignore[prop-decorator]
    @property
    def structural_error_count(self) -> int:
        return (
            len(self.hierarchy_errors)
            + sum(1 for issue in self.port_issues if issue.is_error)
            + sum(len(errors) for errors in self.graph_errors.values())
        )

    def blocking_failures(self) -> list[ConstraintResult]:
        return [r for report in self.constraint_reports.values() for r in report.blocking_failures]

    def warnings(self) -> list[ConstraintResult]:
        return [r for report in self.constraint_reports.values() for r in report.warnings]

    def evaluation_errors(self) -> list[ConstraintResult]:
        return [r for report in self.constraint_reports.values() for r in report.evaluation_errors]

    def summary(self) -> dict[str, int | bool]:
        return {
            "compliant": self.compliant,
            "structural_errors": self.structural_error_count,
            "blocking_failures": len(self.blocking_failures()),
            "warnings": len(self.warnings()),
            "evaluation_errors": len(self.evaluation_errors()),
            "taint_warnings": len(self.taint_warnings),
            "dangling_dependencies": len(self.dangling_dependencies),
            "lifecycle_warnings": len(self.lifecycle_warnings),
            "skipped_entities": len(self.skipped_entities),
        }
