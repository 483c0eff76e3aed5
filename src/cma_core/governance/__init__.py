"""Federated computational governance.

- Mixins: fixed policies injected by sensitivity tags (PII, GDPR, PCI-DSS, SOC2)
- Cascade: root-to-entity accumulation of policies through the hierarchy
- Evaluator: constraint results classified by enforcement x severity
"""

from cma_core.governance.cascade import CascadedPolicy, PolicyCascade, PolicyRef
from cma_core.governance.evaluator import (
    ConstraintResult,
    EntityConstraintReport,
    build_context,
    evaluate_constraints,
    evaluate_entity,
)
from cma_core.governance.mixins import (
    BUILTIN_MIXINS,
    GDPR_MIXIN,
    PCI_DSS_MIXIN,
    PII_MIXIN,
    SOC2_MIXIN,
    MixinRegistry,
    default_mixin_registry,
)

__all__ = [
    "BUILTIN_MIXINS",
    "GDPR_MIXIN",
    "PCI_DSS_MIXIN",
    "PII_MIXIN",
    "SOC2_MIXIN",
    "CascadedPolicy",
    "ConstraintResult",
    "EntityConstraintReport",
    "MixinRegistry",
    "PolicyCascade",
    "PolicyRef",
    "build_context",
    "default_mixin_registry",
    "evaluate_constraints",
    "evaluate_entity",
]
