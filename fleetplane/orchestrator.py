"""Fleet orchestrator: reconciles assignments in a control plane repository.

Reads a snapshot of clusters, applications and assignments, computes the
assignment operations, and persists creates and deletes back to the
repository. Keeps are left alone.

The snapshot is not locked: callers must make sure only one orchestrator
writes to a repository at a time.
"""

from typing import Dict, List, Optional

import structlog

from fleetplane.controlplane.client import ControlPlaneClient
from fleetplane.placement.models import AssignmentOperation, OperationType
from fleetplane.placement.reconciler import (
    ApplicationResult,
    ReconciliationPlan,
    assign_all,
    assign_each,
    orphaned_assignments,
    summarize,
)
from fleetplane.placement.selector import Diagnostic, DiagnosticSink, log_diagnostic
from fleetplane.placement.strategy import SelectionStrategy

logger = structlog.get_logger(__name__)


class FleetOrchestrator:
    """Drives reconciliation of every application in a control plane repo."""

    def __init__(
        self,
        client: ControlPlaneClient,
        select: Optional[SelectionStrategy] = None,
        on_diagnostic: Optional[DiagnosticSink] = None,
    ):
        """Initialise the orchestrator.

        Args:
            client: Control plane repository client.
            select: Strategy used to pick clusters for new assignments.
            on_diagnostic: Receives non-fatal diagnostics. Defaults to logging.
        """
        self.client = client
        self.select = select
        self.on_diagnostic = on_diagnostic or log_diagnostic

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def plan(self, fail_fast: bool = True) -> ReconciliationPlan:
        """Compute the operations needed to converge the repository.

        Args:
            fail_fast: Abort on the first application that cannot be
                satisfied. When False, failed applications are recorded on
                the plan and the others are still reconciled.

        Returns:
            The reconciliation plan.

        Raises:
            InsufficientClustersError: With ``fail_fast``, if any application
                needs more clusters than are available.
            ValidationError: If the stored records are malformed.
        """
        context, applications = self.client.load_inventory()

        logger.info(
            "planning assignments",
            clusters=len(context.clusters),
            applications=len(applications),
            assignments=len(context.assignments),
        )

        if not fail_fast:
            return assign_each(context, applications, self.select, self.on_diagnostic)

        diagnostics: Dict[str, List[Diagnostic]] = {}

        def collect(diagnostic: Diagnostic) -> None:
            diagnostics.setdefault(diagnostic.application, []).append(diagnostic)
            self.on_diagnostic(diagnostic)

        operations = assign_all(context, applications, self.select, collect)
        orphaned = orphaned_assignments(context, applications)

        plan = ReconciliationPlan(orphaned=orphaned)
        remaining = operations[len(orphaned):]
        for application in applications:
            plan.results.append(ApplicationResult(
                application=application.name,
                operations=[
                    o for o in remaining
                    if o.assignment.application == application.name
                ],
                diagnostics=diagnostics.get(application.name, []),
            ))
        return plan

    def apply(self, plan: ReconciliationPlan) -> Dict[str, int]:
        """Persist a plan's create and delete operations.

        Operations of failed applications are not part of ``plan.operations``
        and are never applied.

        Returns:
            Operation counts by type.
        """
        operations = plan.operations
        for operation in operations:
            self._apply_operation(operation)

        summary = summarize(operations)
        logger.info("processed assignments", path=str(self.client.local_path), **summary)
        return summary

    def reconcile(self, dry_run: bool = False, fail_fast: bool = True) -> ReconciliationPlan:
        """Plan and, unless ``dry_run``, apply in one step."""
        plan = self.plan(fail_fast=fail_fast)
        if not dry_run:
            self.apply(plan)
        return plan

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    def _apply_operation(self, operation: AssignmentOperation) -> None:
        assignment = operation.assignment
        log = logger.bind(
            operation=operation.operation.value,
            application=assignment.application,
            cluster=assignment.cluster,
        )
        if operation.operation == OperationType.CREATE:
            log.info("creating assignment")
            self.client.add_assignment(assignment)
        elif operation.operation == OperationType.DELETE:
            log.info("deleting assignment")
            self.client.delete_assignment(assignment.name)
        else:
            log.debug("keeping assignment")
