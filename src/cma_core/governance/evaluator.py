"""Evaluate cascaded constraints against an entity.

Enforcement gates whether a failure can block; severity only labels its
urgency. A constraint that cannot be evaluated is reported with
``evaluation_error`` and is never folded into a plain ``False``.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable
from typing import TYPE_CHECKING, Any

from pydantic import BaseModel, Field, computed_field

from cma_core.enums import ConstraintOutcome, Enforcement, Severity
from cma_core.errors import ExpressionError
from cma_core.expression.interpreter import evaluate_expression

if TYPE_CHECKING:
    from cma_core.mesh.node import MeshNode
    from cma_core.mesh.policy import Constraint, Policy

logger = logging.getLogger(__name__)


class ConstraintResult(BaseModel):
    """Outcome of one constraint evaluated against one entity."""

    entity_id: str
    policy_id: str | None = Field(default=None, description="None for entity-local standalone constraints")
    policy_name: str | None = None
    enforcement: Enforcement
    constraint_index: int
    expression: str
    message: str
    severity: Severity
    passed: bool
    evaluation_error: str | None = None

    @computed_field  # type: ignore[prop-decorator]
    @property
    def outcome(self) -> ConstraintOutcome:
        if self.evaluation_error is not None:
            return ConstraintOutcome.EVALUATION_ERROR
        if self.passed:
            return ConstraintOutcome.PASSED
        if self.enforcement == Enforcement.AUDIT:
            return ConstraintOutcome.AUDITED
        if self.enforcement == Enforcement.BLOCKING and self.severity == Severity.ERROR:
            return ConstraintOutcome.BLOCKING_FAILURE
        return ConstraintOutcome.WARNING


class EntityConstraintReport(BaseModel):
    """All constraint results of one entity, partitioned by outcome."""

    entity_id: str
    results: list[ConstraintResult] = Field(default_factory=list)

    def _with(self, outcome: ConstraintOutcome) -> list[ConstraintResult]:
        return [r for r in self.results if r.outcome == outcome]

    @computed_field  # type: ignore[prop-decorator]
    @property
    def blocking_failures(self) -> list[ConstraintResult]:
        return self._with(ConstraintOutcome.BLOCKING_FAILURE)

    @computed_field  # type: ignore[prop-decorator]
    @property
    def warnings(self) -> list[ConstraintResult]:
        return self._with(ConstraintOutcome.WARNING)

    @computed_field  # type: ignore[prop-decorator]
    @property
    def audit_entries(self) -> list[ConstraintResult]:
        return [r for r in self.results if r.enforcement == Enforcement.AUDIT and r.evaluation_error is None]

    @computed_field  # type: ignore[prop-decorator]
    @property
    def evaluation_errors(self) -> list[ConstraintResult]:
        return self._with(ConstraintOutcome.EVALUATION_ERROR)

    @property
    def passed(self) -> bool:
        return not self.blocking_failures


def build_context(entity: MeshNode, inherited_tags: Iterable[str] = ()) -> dict[str, Any]:
    """Attribute tree of ``entity`` plus ``inheritedTags`` and ``effectiveTags``."""
    context = entity.attributes()
    inherited = list(dict.fromkeys(inherited_tags))
    context["inheritedTags"] = inherited
    context["effectiveTags"] = list(dict.fromkeys([*inherited, *entity.tags]))
    return context


def _evaluate_one(
    entity_id: str,
    constraint: Constraint,
    index: int,
    context: dict[str, Any],
    policy: Policy | None,
) -> ConstraintResult:
    passed = False
    error: str | None = None
    try:
        passed = evaluate_expression(constraint.expression, context)
    except ExpressionError as exc:
        error = str(exc)
        logger.debug("Constraint %r on %s could not be evaluated: %s", constraint.expression, entity_id, exc)

    return ConstraintResult(
        entity_id=entity_id,
        policy_id=policy.id if policy else None,
        policy_name=policy.name if policy else None,
        enforcement=policy.enforcement if policy else Enforcement.BLOCKING,
        constraint_index=index,
        expression=constraint.expression,
        message=constraint.message,
        severity=constraint.severity,
        passed=passed,
        evaluation_error=error,
    )


def _sort_key(result: ConstraintResult) -> tuple[bool, str, int]:
    return (result.policy_id is None, result.policy_id or "", result.constraint_index)


def evaluate_constraints(
    entity: MeshNode,
    effective_policies: Iterable[Policy],
    inherited_tags: Iterable[str] = (),
) -> list[ConstraintResult]:
    """Evaluate every cascaded policy constraint plus the entity's standalone constraints.

    Standalone constraints carry implicit blocking enforcement. Results are
    sorted by policy id then constraint index (standalone constraints last);
    the sort is stable so repeated policies keep cascade order.
    """
    context = build_context(entity, inherited_tags)
    results: list[ConstraintResult] = []

    for policy in effective_policies:
        for index, constraint in enumerate(policy.constraints):
            results.append(_evaluate_one(entity.id, constraint, index, context, policy))

    for index, constraint in enumerate(entity.constraints):
        results.append(_evaluate_one(entity.id, constraint, index, context, None))

    return sorted(results, key=_sort_key)


def evaluate_entity(
    entity: MeshNode,
    effective_policies: Iterable[Policy],
    inherited_tags: Iterable[str] = (),
) -> EntityConstraintReport:
    """Evaluate ``entity`` and partition the results."""
    report = EntityConstraintReport(
        entity_id=entity.id,
        results=evaluate_constraints(entity, effective_policies, inherited_tags),
    )
    for failure in report.blocking_failures:
        logger.warning("Blocking failure on %s [%s]: %s", entity.id, failure.policy_id or "local", failure.message)
    return report
