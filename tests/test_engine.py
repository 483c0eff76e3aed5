"""End-to-end tests for the validation engine."""

from __future__ import annotations

import json
from typing import Any
from unittest.mock import patch

from opentelemetry.sdk.trace import TracerProvider
from opentelemetry.sdk.trace.export import SimpleSpanProcessor
from opentelemetry.sdk.trace.export.in_memory_span_exporter import InMemorySpanExporter

from cma_core import ValidationEngine, validate_snapshot
from cma_core.enums import Enforcement
from cma_core.hierarchy import HierarchyErrorKind
from cma_core.settings import EngineSettings
from cma_core.snapshot import MeshSnapshot, snapshot_from_dict

_SECURE = {
    "environment": "production",
    "encryption": {"atRest": True, "inTransit": True},
    "accessLogging": {"enabled": True},
}


def _port(name: str, direction: str) -> dict[str, Any]:
    return {"name": name, "direction": direction, "portType": "data", "format": "parquet"}


def _document() -> dict[str, Any]:
    """A compliant organization → component chain."""
    return {
        "organizations": [
            {
                "id": "acme",
                "name": "Acme",
                "owner": "data-team",
                "deployment": _SECURE,
                "policies": [
                    {
                        "id": "org-ownership",
                        "name": "Ownership",
                        "scope": "organization",
                        "policyType": "quality",
                        "constraints": [{"expression": "owner == 'data-team'", "message": "Owner required"}],
                    }
                ],
            }
        ],
        "meshes": [
            {"id": "mesh", "name": "Mesh", "organizationId": "acme", "owner": "data-team", "deployment": _SECURE}
        ],
        "domains": [{"id": "sales", "name": "Sales", "meshId": "mesh", "owner": "data-team", "deployment": _SECURE}],
        "products": [
            {
                "id": "orders",
                "name": "Orders",
                "domainId": "sales",
                "owner": "data-team",
                "tags": ["PII"],
                "components": ["ingest", "clean"],
                "componentGraph": [
                    {"sourceComponent": "ingest", "sourcePort": "out", "targetComponent": "clean", "targetPort": "in"}
                ],
                "deployment": _SECURE,
            }
        ],
        "components": [
            {
                "id": cid,
                "name": cid,
                "productId": "orders",
                "owner": "data-team",
                "kind": "transformation",
                "ports": [_port("in", "input"), _port("out", "output")],
                "deployment": _SECURE,
            }
            for cid in ("ingest", "clean")
        ],
    }


def _make_snapshot(**overrides: Any) -> MeshSnapshot:
    return snapshot_from_dict({**_document(), **overrides})


class TestCompliantRun:
    def test_clean_snapshot_is_compliant(self) -> None:
        report = ValidationEngine().validate(_make_snapshot())

        assert report.compliant
        assert report.structural_error_count == 0
        assert report.blocking_failures() == []
        assert report.skipped_entities == []
        assert sorted(report.constraint_reports) == ["acme", "clean", "ingest", "mesh", "orders", "sales"]

    def test_effective_policies_recorded_for_every_entity(self) -> None:
        report = validate_snapshot(_make_snapshot())

        refs = report.effective_policies["clean"]
        assert [r.policy_id for r in refs] == ["org-ownership", "mixin.pii"]
        assert refs[1].origin_id == "orders"
        assert refs[1].mixin_tag == "PII"
        assert refs[1].enforcement == Enforcement.BLOCKING

    def test_report_serializes_to_json(self) -> None:
        report = validate_snapshot(_make_snapshot())
        payload = json.loads(report.model_dump_json())
        assert payload["compliant"] is True
        assert payload["structural_error_count"] == 0
        assert report.summary()["blocking_failures"] == 0


class TestFindings:
    def test_mixin_failure_makes_run_non_compliant(self) -> None:
        product = {
            "id": "p1",
            "name": "P1",
            "tags": ["PII"],
            "deployment": {**_SECURE, "encryption": {"atRest": False, "inTransit": True}},
        }
        report = validate_snapshot(snapshot_from_dict({"products": [product]}))

        failures = report.blocking_failures()
        assert len(failures) == 1
        assert failures[0].entity_id == "p1"
        assert failures[0].policy_id == "mixin.pii"
        assert not report.compliant

    def test_dangling_parent_is_skipped_but_cascaded(self) -> None:
        meshes = [{"id": "mesh", "name": "Mesh", "organizationId": "missing", "deployment": _SECURE}]
        report = validate_snapshot(_make_snapshot(meshes=meshes))

        assert [e.kind for e in report.hierarchy_errors] == [HierarchyErrorKind.DANGLING_REFERENCE]
        assert report.skipped_entities == ["mesh"]
        assert "mesh" not in report.constraint_reports
        assert report.effective_policies["mesh"] == []
        assert [r.policy_id for r in report.effective_policies["orders"]] == ["mixin.pii"]
        assert not report.compliant

    def test_evaluate_structurally_broken(self) -> None:
        meshes = [{"id": "mesh", "name": "Mesh", "organizationId": "missing", "deployment": _SECURE}]
        settings = EngineSettings(evaluate_structurally_broken=True)
        report = validate_snapshot(_make_snapshot(meshes=meshes), settings)

        assert report.skipped_entities == []
        assert "mesh" in report.constraint_reports

    def test_graph_errors_skip_product(self) -> None:
        document = _document()
        del document["products"][0]["componentGraph"]
        report = validate_snapshot(snapshot_from_dict(document))

        assert list(report.graph_errors) == ["orders"]
        assert report.skipped_entities == ["orders"]
        assert not report.compliant

    def test_port_error_skips_component(self) -> None:
        document = _document()
        for port in document["components"][1]["ports"]:
            del port["format"]
        report = validate_snapshot(snapshot_from_dict(document))

        assert {issue.owner_id for issue in report.port_issues} == {"clean"}
        assert "clean" in report.skipped_entities

    def test_taint_and_lifecycle_are_advisory(self) -> None:
        products = [
            {"id": "parent", "name": "Parent", "tags": ["PII"], "status": "deprecated", "deployment": _SECURE},
            {"id": "child", "name": "Child", "dependsOn": ["parent", "ghost"], "deployment": _SECURE},
        ]
        report = validate_snapshot(snapshot_from_dict({"products": products}))

        assert [(w.source_entity, w.missing_tag) for w in report.taint_warnings] == [("child", "PII")]
        assert [d.reference for d in report.dangling_dependencies] == ["ghost"]
        assert [w.referenced_entity for w in report.lifecycle_warnings] == ["parent"]
        assert report.compliant

    def test_lifecycle_checks_can_be_disabled(self) -> None:
        products = [
            {"id": "parent", "name": "Parent", "status": "retired", "deployment": _SECURE},
            {"id": "child", "name": "Child", "dependsOn": ["parent"], "deployment": _SECURE},
        ]
        settings = EngineSettings(lifecycle_checks=False)
        report = validate_snapshot(snapshot_from_dict({"products": products}), settings)
        assert report.lifecycle_warnings == []


class TestDeterminism:
    def test_parallel_matches_sequential(self) -> None:
        meshes = [{"id": "mesh", "name": "Mesh", "organizationId": "acme", "deployment": _SECURE}]
        snapshot = _make_snapshot(meshes=meshes)

        sequential = validate_snapshot(snapshot, EngineSettings(max_workers=1))
        parallel = validate_snapshot(snapshot, EngineSettings(max_workers=4))

        assert sequential.model_dump() == parallel.model_dump()
        assert len(parallel.blocking_failures()) == 1

    def test_repeated_runs_identical(self) -> None:
        snapshot = _make_snapshot()
        engine = ValidationEngine()
        assert engine.validate(snapshot).model_dump_json() == engine.validate(snapshot).model_dump_json()


class TestTelemetry:
    def test_span_records_outcome(self) -> None:
        exporter = InMemorySpanExporter()
        provider = TracerProvider()
        provider.add_span_processor(SimpleSpanProcessor(exporter))
        product = {"id": "p1", "name": "P1", "tags": ["PII"], "deployment": {"environment": "production"}}

        with patch("cma_core.validation.engine._tracer", provider.get_tracer("test")):
            validate_snapshot(snapshot_from_dict({"products": [product]}))

        (span,) = exporter.get_finished_spans()
        assert span.name == "cma.validate"
        assert span.attributes is not None
        assert span.attributes["cma.entity_count"] == 1
        assert span.attributes["cma.compliant"] is False
        assert span.attributes["cma.structural_errors"] == 0
        assert [event.name for event in span.events] == ["blocking_failure"] * 3
