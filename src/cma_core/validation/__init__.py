"""Validation engine and report."""

from cma_core.validation.engine import ValidationEngine, validate_snapshot
from cma_core.validation.report import ValidationReport

__all__ = ["ValidationEngine", "ValidationReport", "validate_snapshot"]
