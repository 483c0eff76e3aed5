"""Closed vocabularies of the Composable Mesh Architecture data model."""

from enum import StrEnum


class EntityKind(StrEnum):
    """Catalog entity variants sharing the MeshNode capability set."""

    ORGANIZATION = "organization"
    MESH = "mesh"
    DOMAIN = "domain"
    PRODUCT = "product"
    COMPONENT = "component"


class NodeStatus(StrEnum):
    """Lifecycle status of a mesh node."""

    PROPOSED = "proposed"
    EXPERIMENTAL = "experimental"
    LIVE = "live"
    DEPRECATED = "deprecated"
    RETIRED = "retired"


class ProductKind(StrEnum):
    """What a data product exposes."""

    DATASET = "dataset"
    API = "api"
    STREAM = "stream"
    DASHBOARD = "dashboard"
    ALGORITHM = "algorithm"
    SERVICE = "service"


class ComponentKind(StrEnum):
    """Role of a component inside a composite product."""

    INGESTION = "ingestion"
    TRANSFORMATION = "transformation"
    AGGREGATION = "aggregation"
    SERVING = "serving"
    ORCHESTRATION = "orchestration"
    SERVICE = "service"
    INFRASTRUCTURE = "infrastructure"


class ComponentRuntime(StrEnum):
    """Execution runtime of a component."""

    PYTHON = "python"
    SPARK = "spark"
    FLINK = "flink"
    DBT = "dbt"
    SQL = "sql"
    CONTAINER = "container"
    SERVERLESS = "serverless"


class PortDirection(StrEnum):
    """Data flow direction of a port."""

    INPUT = "input"
    OUTPUT = "output"
    BIDIRECTIONAL = "bidirectional"


class PortType(StrEnum):
    """Port discriminator."""

    DATA = "data"
    SERVICE = "service"
    EVENT = "event"


class DataClassification(StrEnum):
    """Data classification levels."""

    PUBLIC = "public"
    INTERNAL = "internal"
    CONFIDENTIAL = "confidential"
    RESTRICTED = "restricted"


class PolicyScope(StrEnum):
    """Hierarchy level a policy is written for."""

    ORGANIZATION = "organization"
    MESH = "mesh"
    DOMAIN = "domain"
    PRODUCT = "product"
    PORT = "port"


class PolicyType(StrEnum):
    """Governance concern addressed by a policy."""

    SECURITY = "security"
    PRIVACY = "privacy"
    QUALITY = "quality"
    COMPLIANCE = "compliance"
    COST = "cost"


class Enforcement(StrEnum):
    """Whether failures of a policy can block a run."""

    BLOCKING = "blocking"
    WARNING = "warning"
    AUDIT = "audit"


class Severity(StrEnum):
    """Display urgency of a constraint or finding."""

    ERROR = "error"
    WARNING = "warning"


class ConstraintOutcome(StrEnum):
    """Classification of a single constraint evaluation (enforcement x severity)."""

    PASSED = "passed"
    BLOCKING_FAILURE = "blocking_failure"
    WARNING = "warning"
    AUDITED = "audited"
    EVALUATION_ERROR = "evaluation_error"


class SensitivityTag(StrEnum):
    """Tags that trigger compliance mixins and taint propagation."""

    PII = "PII"
    GDPR = "GDPR"
    PCI_DSS = "PCI-DSS"
    SOC2 = "SOC2"
