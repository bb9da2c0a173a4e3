"""Report generation for reconciliation plans."""

from fleetplane.output.generator import PlanReport, format_operations

__all__ = ["PlanReport", "format_operations"]
