"""Tests for constraint evaluation and outcome classification."""

from __future__ import annotations

from typing import Any

from cma_core.enums import ConstraintOutcome, Enforcement, PolicyScope, PolicyType, Severity
from cma_core.governance import (
    GDPR_MIXIN,
    PII_MIXIN,
    build_context,
    evaluate_constraints,
    evaluate_entity,
)
from cma_core.mesh import Constraint, Policy, Product


def _make_product(deployment: dict[str, Any] | None = None, **kwargs: Any) -> Product:
    return Product(
        id=kwargs.pop("id", "p1"),
        name="Orders",
        deployment=deployment or {"environment": "production"},
        **kwargs,
    )


def _make_policy(
    policy_id: str,
    *expressions: str,
    enforcement: Enforcement = Enforcement.BLOCKING,
    severity: Severity = Severity.ERROR,
) -> Policy:
    return Policy(
        id=policy_id,
        name=policy_id.title(),
        scope=PolicyScope.PRODUCT,
        policy_type=PolicyType.QUALITY,
        enforcement=enforcement,
        constraints=[
            Constraint(expression=expr, message=f"{policy_id} #{i}", severity=severity)
            for i, expr in enumerate(expressions)
        ],
    )


_SECURE_DEPLOYMENT = {
    "environment": "production",
    "encryption": {"atRest": True, "inTransit": True},
    "accessLogging": {"enabled": True},
}


# ── PII scenarios ───────────────────────────────────────────────


class TestPiiMixin:
    def test_unencrypted_at_rest_is_one_blocking_failure(self) -> None:
        deployment = {
            "environment": "production",
            "encryption": {"atRest": False, "inTransit": True},
            "accessLogging": {"enabled": True},
        }
        report = evaluate_entity(_make_product(deployment, tags=["PII"]), [PII_MIXIN])

        assert len(report.blocking_failures) == 1
        failure = report.blocking_failures[0]
        assert failure.policy_id == "mixin.pii"
        assert failure.constraint_index == 0
        assert failure.expression == "deployment.encryption.atRest == true"
        assert not report.passed

    def test_secure_deployment_passes(self) -> None:
        report = evaluate_entity(_make_product(_SECURE_DEPLOYMENT, tags=["PII"]), [PII_MIXIN])

        assert report.blocking_failures == []
        assert report.passed
        assert all(r.outcome == ConstraintOutcome.PASSED for r in report.results)

    def test_missing_encryption_fails_instead_of_erroring(self) -> None:
        report = evaluate_entity(_make_product(tags=["PII"]), [PII_MIXIN])

        assert [r.constraint_index for r in report.blocking_failures] == [0, 1, 2]
        assert report.evaluation_errors == []

    def test_masking_required_outside_production(self) -> None:
        staging = {**_SECURE_DEPLOYMENT, "environment": "staging"}
        report = evaluate_entity(_make_product(staging), [PII_MIXIN])
        assert [r.constraint_index for r in report.blocking_failures] == [3]

        masked = {**staging, "masking": {"enabled": True}}
        assert evaluate_entity(_make_product(masked), [PII_MIXIN]).passed


class TestGdprMixin:
    def test_missing_retention_is_evaluation_error(self) -> None:
        report = evaluate_entity(_make_product(_SECURE_DEPLOYMENT), [GDPR_MIXIN])

        errors = report.evaluation_errors
        assert [r.constraint_index for r in errors] == [0]
        assert "absent" in (errors[0].evaluation_error or "")
        assert not errors[0].passed
        # The other three constraints fail normally on the absent flags.
        assert [r.constraint_index for r in report.blocking_failures] == [1, 2, 3]

    def test_extension_attributes_satisfy_gdpr(self) -> None:
        product = _make_product(
            _SECURE_DEPLOYMENT,
            retentionPolicy={"days": 365},
            rightToErasure={"enabled": True},
            dataPortability={"enabled": True},
            consentTracking={"enabled": True},
        )
        report = evaluate_entity(product, [GDPR_MIXIN])
        assert report.passed
        assert report.evaluation_errors == []

    def test_retention_over_limit_blocks(self) -> None:
        product = _make_product(retentionPolicy={"days": 3000})
        results = evaluate_constraints(product, [GDPR_MIXIN])
        assert results[0].outcome == ConstraintOutcome.BLOCKING_FAILURE


# ── Outcome classification ──────────────────────────────────────


class TestOutcomes:
    def test_blocking_warning_is_warning(self) -> None:
        policy = _make_policy("monitoring", "owner == 'data-team'", severity=Severity.WARNING)
        report = evaluate_entity(_make_product(), [policy])
        assert report.warnings[0].outcome == ConstraintOutcome.WARNING
        assert report.blocking_failures == []

    def test_warning_enforcement_error_is_warning(self) -> None:
        policy = _make_policy("advice", "owner == 'data-team'", enforcement=Enforcement.WARNING)
        report = evaluate_entity(_make_product(), [policy])
        assert [r.outcome for r in report.results] == [ConstraintOutcome.WARNING]
        assert report.passed

    def test_audit_records_pass_and_fail(self) -> None:
        policy = _make_policy("audit", "owner == 'data-team'", "name == 'Orders'", enforcement=Enforcement.AUDIT)
        report = evaluate_entity(_make_product(), [policy])

        assert [r.outcome for r in report.results] == [ConstraintOutcome.AUDITED, ConstraintOutcome.PASSED]
        assert len(report.audit_entries) == 2
        assert report.passed

    def test_evaluation_error_never_blocks(self) -> None:
        policy = _make_policy("broken", "name > 3", "name ==")
        report = evaluate_entity(_make_product(), [policy])

        assert len(report.evaluation_errors) == 2
        assert report.blocking_failures == []
        assert report.passed

    def test_syntax_error_message_kept(self) -> None:
        results = evaluate_constraints(_make_product(), [_make_policy("broken", "name ==")])
        assert results[0].evaluation_error

    def test_standalone_constraint_blocks(self) -> None:
        product = _make_product(constraints=[Constraint(expression="owner == 'data-team'", message="Owner required")])
        report = evaluate_entity(product, [])

        failure = report.blocking_failures[0]
        assert failure.policy_id is None
        assert failure.policy_name is None
        assert failure.enforcement == Enforcement.BLOCKING

    def test_non_boolean_result_is_evaluation_error(self) -> None:
        results = evaluate_constraints(_make_product(), [_make_policy("value", "name")])
        assert results[0].outcome == ConstraintOutcome.EVALUATION_ERROR

    def test_non_ascii_digit_is_evaluation_error(self) -> None:
        product = _make_product(constraints=[Constraint(expression="owner == ²", message="Superscript")])
        report = evaluate_entity(product, [])

        assert [r.outcome for r in report.results] == [ConstraintOutcome.EVALUATION_ERROR]
        assert report.passed

    def test_deeply_nested_expressions_are_evaluation_errors(self) -> None:
        policy = _make_policy("nested", "not " * 5000 + "x", "(" * 2000 + "x" + ")" * 2000)
        report = evaluate_entity(_make_product(), [policy])

        assert len(report.evaluation_errors) == 2
        assert all("nested deeper" in (r.evaluation_error or "") for r in report.evaluation_errors)
        assert report.blocking_failures == []

    def test_long_conjunction_passes(self) -> None:
        policy = _make_policy("chain", " and ".join(["name == 'Orders'"] * 5000))
        results = evaluate_constraints(_make_product(), [policy])
        assert results[0].outcome == ConstraintOutcome.PASSED


# ── Ordering and context ────────────────────────────────────────


class TestOrdering:
    def test_sorted_by_policy_then_index_standalone_last(self) -> None:
        product = _make_product(constraints=[Constraint(expression="true", message="local")])
        policies = [_make_policy("zeta", "true", "false"), _make_policy("alpha", "true")]

        keys = [(r.policy_id, r.constraint_index) for r in evaluate_constraints(product, policies)]
        assert keys == [("alpha", 0), ("zeta", 0), ("zeta", 1), (None, 0)]

    def test_deterministic_across_runs(self) -> None:
        product = _make_product(tags=["PII"], constraints=[Constraint(expression="owner == 'data-team'", message="x")])
        policies = [GDPR_MIXIN, PII_MIXIN]
        first = evaluate_constraints(product, policies)
        second = evaluate_constraints(product, list(reversed(policies)))
        assert [r.model_dump() for r in first] == [r.model_dump() for r in second]

    def test_repeated_policy_evaluated_twice(self) -> None:
        policy = _make_policy("dup", "true")
        assert len(evaluate_constraints(_make_product(), [policy, policy])) == 2


class TestBuildContext:
    def test_context_uses_camel_case_paths(self) -> None:
        product = _make_product(domainId="sales", dependsOn=["x"])
        context = build_context(product)
        assert context["domainId"] == "sales"
        assert context["dependsOn"] == ["x"]
        assert context["deployment"]["environment"] == "production"

    def test_inherited_and_effective_tags(self) -> None:
        context = build_context(_make_product(tags=["PII", "SOC2"]), ["SOC2", "GDPR", "SOC2"])
        assert context["inheritedTags"] == ["SOC2", "GDPR"]
        assert context["effectiveTags"] == ["SOC2", "GDPR", "PII"]

    def test_tags_reachable_from_expressions(self) -> None:
        policy = _make_policy("tagged", "'GDPR' in effectiveTags implies consentTracking.enabled == true")
        product = _make_product()
        assert evaluate_entity(product, [policy]).passed
        assert not evaluate_entity(product, [policy], ["GDPR"]).passed
