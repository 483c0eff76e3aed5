"""Tag-triggered compliance mixins.

A mixin is a fixed policy injected into a node's local policies when the
node carries the triggering tag. The four built-in mixins are constants;
the registry keeps them as data so further tags can be added without
touching the cascade.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable

from cma_core.enums import Enforcement, PolicyScope, PolicyType, SensitivityTag, Severity
from cma_core.mesh.policy import Constraint, Policy

logger = logging.getLogger(__name__)

PII_MIXIN = Policy(
    id="mixin.pii",
    name="PIIMixin",
    scope=PolicyScope.PRODUCT,
    policy_type=PolicyType.PRIVACY,
    enforcement=Enforcement.BLOCKING,
    constraints=[
        Constraint(
            expression="deployment.encryption.atRest == true",
            message="PII must be encrypted at rest",
            severity=Severity.ERROR,
        ),
        Constraint(
            expression="deployment.encryption.inTransit == true",
            message="PII must be encrypted in transit",
            severity=Severity.ERROR,
        ),
        Constraint(
            expression="deployment.accessLogging.enabled == true",
            message="Access to PII must be logged",
            severity=Severity.ERROR,
        ),
        Constraint(
            expression="deployment.environment != 'production' implies deployment.masking.enabled == true",
            message="PII must be masked outside production",
            severity=Severity.ERROR,
        ),
    ],
)

GDPR_MIXIN = Policy(
    id="mixin.gdpr",
    name="GDPRMixin",
    scope=PolicyScope.PRODUCT,
    policy_type=PolicyType.COMPLIANCE,
    enforcement=Enforcement.BLOCKING,
    constraints=[
        Constraint(
            expression="retentionPolicy.days <= 2555",
            message="GDPR: personal data retention must not exceed 2555 days (7 years)",
            severity=Severity.ERROR,
        ),
        Constraint(
            expression="rightToErasure.enabled == true",
            message="GDPR Art. 17: data subjects must be able to request erasure",
            severity=Severity.ERROR,
        ),
        Constraint(
            expression="dataPortability.enabled == true",
            message="GDPR Art. 20: personal data must be exportable in a portable format",
            severity=Severity.ERROR,
        ),
        Constraint(
            expression="consentTracking.enabled == true",
            message="GDPR Art. 7: consent must be tracked",
            severity=Severity.ERROR,
        ),
    ],
)

PCI_DSS_MIXIN = Policy(
    id="mixin.pci-dss",
    name="PCIDSSMixin",
    scope=PolicyScope.PRODUCT,
    policy_type=PolicyType.SECURITY,
    enforcement=Enforcement.BLOCKING,
    constraints=[
        Constraint(
            expression="deployment.encryption.algorithm == 'AES-256'",
            message="PCI-DSS: cardholder data must be encrypted with AES-256",
            severity=Severity.ERROR,
        ),
        Constraint(
            expression="deployment.encryption.inTransit == true",
            message="PCI-DSS: cardholder data must be encrypted in transit",
            severity=Severity.ERROR,
        ),
        Constraint(
            expression="deployment.networkSegmentation == true",
            message="PCI-DSS: the cardholder data environment must be network segmented",
            severity=Severity.ERROR,
        ),
        Constraint(
            expression="deployment.accessControl.model == 'least-privilege'",
            message="PCI-DSS: access to cardholder data must follow least privilege",
            severity=Severity.ERROR,
        ),
    ],
)

SOC2_MIXIN = Policy(
    id="mixin.soc2",
    name="SOC2Mixin",
    scope=PolicyScope.PRODUCT,
    policy_type=PolicyType.COMPLIANCE,
    enforcement=Enforcement.BLOCKING,
    constraints=[
        Constraint(
            expression="deployment.monitoring.enabled == true and deployment.alerting.enabled == true",
            message="SOC2: monitoring and alerting must be enabled",
            severity=Severity.ERROR,
        ),
        Constraint(
            expression="changeManagement.approvalRequired == true",
            message="SOC2: changes must go through an approval process",
            severity=Severity.ERROR,
        ),
        Constraint(
            expression="incidentResponse.documented == true",
            message="SOC2: an incident response procedure must be documented",
            severity=Severity.ERROR,
        ),
        Constraint(
            expression="deployment.monitoring.retentionDays >= 365",
            message="SOC2: logs should be retained for at least 365 days",
            severity=Severity.WARNING,
        ),
    ],
)

# Activation order is fixed regardless of tag declaration order.
BUILTIN_MIXINS: dict[str, Policy] = {
    SensitivityTag.PII.value: PII_MIXIN,
    SensitivityTag.GDPR.value: GDPR_MIXIN,
    SensitivityTag.PCI_DSS.value: PCI_DSS_MIXIN,
    SensitivityTag.SOC2.value: SOC2_MIXIN,
}


class MixinRegistry:
    """Ordered table of tag → mixin policy.

    Example:
        registry = default_mixin_registry()
        registry.register("HIPAA", hipaa_policy)
        [tag for tag, _ in registry.activated(["SOC2", "PII"])]  # ["PII", "SOC2"]
    """

    def __init__(self) -> None:
        self._mixins: dict[str, Policy] = {}

    def register(self, tag: str, policy: Policy) -> None:
        """Register ``policy`` as the mixin triggered by ``tag``.

        Raises:
            ValueError: If the tag already has a mixin.
        """
        if tag in self._mixins:
            msg = f"Mixin for tag {tag!r} already registered"
            raise ValueError(msg)
        self._mixins[tag] = policy
        logger.debug("Registered mixin %s for tag %s", policy.id, tag)

    def get(self, tag: str) -> Policy | None:
        return self._mixins.get(tag)

    def activated(self, tags: Iterable[str]) -> list[tuple[str, Policy]]:
        """Mixins triggered by ``tags``, in registration order, each at most once."""
        present = set(tags)
        return [(tag, policy) for tag, policy in self._mixins.items() if tag in present]

    @property
    def tags(self) -> list[str]:
        return list(self._mixins)


def default_mixin_registry() -> MixinRegistry:
    """Create a registry holding the built-in PII, GDPR, PCI-DSS and SOC2 mixins."""
    registry = MixinRegistry()
    for tag, policy in BUILTIN_MIXINS.items():
        registry.register(tag, policy)
    return registry
