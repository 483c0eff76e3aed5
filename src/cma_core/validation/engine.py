"""Governance validation engine.

Runs the whole pipeline over one immutable snapshot:

1. Hierarchy resolution (parent links, duplicate ids, side-graph cycles)
2. Port shape checks
3. Component graph checks of every product
4. Policy cascade for every entity
5. Constraint evaluation for every structurally sound entity
6. Taint propagation and lifecycle advisories

Nothing aborts the run: every error is collected into one report. The
resolution and cascades are computed once, then shared read-only, so
constraint evaluation may run on a thread pool without changing the result.
"""

from __future__ import annotations

import logging
from concurrent.futures import ThreadPoolExecutor

from opentelemetry import trace

from cma_core.enums import EntityKind
from cma_core.governance.cascade import PolicyCascade, PolicyRef
from cma_core.governance.evaluator import EntityConstraintReport, evaluate_entity
from cma_core.governance.mixins import MixinRegistry, default_mixin_registry
from cma_core.graph.component_graph import GraphError, validate_component_graph
from cma_core.graph.ports import PortIssue, validate_ports
from cma_core.hierarchy.resolver import HierarchyResolution, resolve_hierarchy
from cma_core.lineage.lifecycle import LifecycleWarning, check_lifecycle
from cma_core.lineage.taint import DanglingDependency, TaintWarning, check_propagation
from cma_core.mesh.node import Component, MeshNode, Product
from cma_core.settings import EngineSettings
from cma_core.snapshot.snapshot import MeshSnapshot
from cma_core.validation.report import ValidationReport

logger = logging.getLogger(__name__)
_tracer = trace.get_tracer("cma.governance.validation")


class ValidationEngine:
    """Validates snapshots against the cascaded governance model.

    Example:
        engine = ValidationEngine()
        report = engine.validate(load_snapshot("mesh.yaml"))
        if not report.compliant:
            for failure in report.blocking_failures():
                print(failure.entity_id, failure.message)
    """

    def __init__(self, settings: EngineSettings | None = None, mixins: MixinRegistry | None = None) -> None:
        self.settings = settings or EngineSettings()
        self.mixins = mixins or default_mixin_registry()

    def _check_ports(self, snapshot: MeshSnapshot) -> list[PortIssue]:
        issues: list[PortIssue] = []
        for entity in snapshot.index.values():
            if isinstance(entity, Product):
                issues.extend(validate_ports(entity.id, entity.ports, component_scoped=False))
            elif isinstance(entity, Component):
                issues.extend(validate_ports(entity.id, entity.ports, component_scoped=True))
        return issues

    def _check_graphs(self, snapshot: MeshSnapshot) -> dict[str, list[GraphError]]:
        graph_errors: dict[str, list[GraphError]] = {}
        for entity in snapshot.index.values():
            if isinstance(entity, Product):
                errors = validate_component_graph(entity, snapshot.components_by_id)
                if errors:
                    graph_errors[entity.id] = errors
        return dict(sorted(graph_errors.items()))

    def _evaluate_all(
        self,
        entities: list[MeshNode],
        cascade: PolicyCascade,
    ) -> dict[str, EntityConstraintReport]:
        # Cascades are memoized; compute them before any worker reads them.
        work = [(e, cascade.effective_policies(e.id), cascade.inherited_tags(e.id)) for e in entities]

        def _run(item: tuple[MeshNode, list, list[str]]) -> EntityConstraintReport:
            entity, policies, inherited = item
            return evaluate_entity(entity, policies, inherited)

        if self.settings.max_workers > 1 and len(work) > 1:
            with ThreadPoolExecutor(max_workers=self.settings.max_workers) as pool:
                reports = list(pool.map(_run, work))
        else:
            reports = [_run(item) for item in work]

        return {report.entity_id: report for report in sorted(reports, key=lambda r: r.entity_id)}

    def _check_lineage(
        self,
        snapshot: MeshSnapshot,
    ) -> tuple[list[TaintWarning], list[DanglingDependency], list[LifecycleWarning]]:
        taint: list[TaintWarning] = []
        dangling: list[DanglingDependency] = []
        lifecycle: list[LifecycleWarning] = []
        for entity_id in sorted(snapshot.index):
            entity = snapshot.index[entity_id]
            check = check_propagation(entity, snapshot.index)
            taint.extend(check.warnings)
            dangling.extend(check.dangling)
            if self.settings.lifecycle_checks:
                lifecycle.extend(check_lifecycle(entity, snapshot.index))
        return taint, dangling, lifecycle

    @staticmethod
    def _broken_entities(
        resolution: HierarchyResolution,
        port_issues: list[PortIssue],
        graph_errors: dict[str, list[GraphError]],
    ) -> set[str]:
        broken = set(resolution.affected)
        broken.update(issue.owner_id for issue in port_issues if issue.is_error)
        broken.update(graph_errors)
        return broken

    def validate(self, snapshot: MeshSnapshot) -> ValidationReport:
        """Validate every entity of ``snapshot`` and aggregate the findings."""
        with _tracer.start_as_current_span("cma.validate") as span:
            span.set_attribute("cma.entity_count", snapshot.entity_count)

            resolution = resolve_hierarchy(snapshot)
            port_issues = self._check_ports(snapshot)
            graph_errors = self._check_graphs(snapshot)
            broken = self._broken_entities(resolution, port_issues, graph_errors)

            cascade = PolicyCascade(snapshot, resolution, self.mixins)
            entity_ids = sorted(snapshot.index)
            effective = {eid: [PolicyRef.from_cascaded(c) for c in cascade.cascade(eid)] for eid in entity_ids}

            if self.settings.evaluate_structurally_broken:
                skipped: list[str] = []
            else:
                skipped = [eid for eid in entity_ids if eid in broken]
            skipped_ids = set(skipped)
            to_evaluate = [snapshot.index[eid] for eid in entity_ids if eid not in skipped_ids]
            constraint_reports = self._evaluate_all(to_evaluate, cascade)

            taint, dangling, lifecycle = self._check_lineage(snapshot)

            report = ValidationReport(
                hierarchy_errors=resolution.errors,
                port_issues=port_issues,
                graph_errors=graph_errors,
                effective_policies=effective,
                constraint_reports=constraint_reports,
                taint_warnings=taint,
                dangling_dependencies=dangling,
                lifecycle_warnings=lifecycle,
                skipped_entities=skipped,
            )

            for failure in report.blocking_failures():
                span.add_event(
                    "blocking_failure",
                    attributes={
                        "entity_id": failure.entity_id,
                        "policy_id": failure.policy_id or "",
                        "expression": failure.expression,
                    },
                )
            span.set_attribute("cma.structural_errors", report.structural_error_count)
            span.set_attribute("cma.compliant", report.compliant)

        logger.info(
            "Validated %d entities (%s): %d structural error(s), %d blocking failure(s), %d taint warning(s)",
            snapshot.entity_count,
            ", ".join(f"{len(snapshot.of_kind(kind))} {kind.value}" for kind in EntityKind),
            report.structural_error_count,
            len(report.blocking_failures()),
            len(report.taint_warnings),
        )
        return report


def validate_snapshot(snapshot: MeshSnapshot, settings: EngineSettings | None = None) -> ValidationReport:
    """Validate ``snapshot`` with the built-in mixins."""
    return ValidationEngine(settings=settings).validate(snapshot)
