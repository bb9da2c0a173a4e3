"""Machine-readable report of a reconciliation plan."""

import uuid
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from fleetplane.placement.reconciler import ApplicationResult, ReconciliationPlan, summarize


class PlanReport:
    """Generates structured output describing a reconciliation plan."""

    SCHEMA_VERSION = "1.0.0"

    def __init__(
        self,
        plan: ReconciliationPlan,
        control_plane: Optional[str] = None,
        dry_run: bool = False,
    ):
        """Initialize the report.

        Args:
            plan: The reconciliation plan to describe.
            control_plane: Path of the control plane repository.
            dry_run: Whether the plan was applied.
        """
        self.plan = plan
        self.control_plane = control_plane
        self.dry_run = dry_run

    def generate(self) -> Dict[str, Any]:
        """Generate the complete report structure."""
        now = datetime.now(timezone.utc)
        run_id = f"run-{now.strftime('%Y-%m-%d-%H%M%S')}-{uuid.uuid4().hex[:6]}"

        return {
            "schemaVersion": self.SCHEMA_VERSION,
            "runId": run_id,
            "timestamp": now.isoformat().replace("+00:00", "Z"),
            "controlPlane": self.control_plane,
            "dryRun": self.dry_run,
            "summary": self._generate_summary(),
            "operations": [o.to_dict() for o in self.plan.operations],
            "orphaned": [o.to_dict() for o in self.plan.orphaned],
            "applications": [self._application_entry(r) for r in self.plan.results],
        }

    def _generate_summary(self) -> Dict[str, Any]:
        summary: Dict[str, Any] = summarize(self.plan.operations)
        summary["failedApplications"] = [r.application for r in self.plan.failures]
        summary["diagnostics"] = len(self.plan.diagnostics)
        summary["status"] = "OK" if self.plan.ok else "PARTIAL"
        return summary

    def _application_entry(self, result: ApplicationResult) -> Dict[str, Any]:
        entry: Dict[str, Any] = {
            "name": result.application,
            "status": "ok" if result.ok else "failed",
            "operations": summarize(result.operations),
            "diagnostics": [d.to_dict() for d in result.diagnostics],
            "error": None,
        }
        if result.error is not None:
            entry["error"] = {
                "type": type(result.error).__name__,
                "message": str(result.error),
                "requested": result.error.requested,
                "available": result.error.available,
            }
        return entry


def format_operations(plan: ReconciliationPlan) -> List[str]:
    """One human-readable line per operation."""
    return [
        f"{o.operation.value:<6} {o.assignment.application} -> {o.assignment.cluster}"
        for o in plan.operations
    ]
