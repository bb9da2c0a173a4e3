"""Assignment reconciliation.

Compares the recorded assignments of each application against its desired
placement and emits the create/delete/keep operations that converge them.

Operations for one application are always ordered as:

1. deletes for assignments whose cluster is no longer eligible
2. existing valid assignments in recorded order; when there are more than
   desired, the earliest ones are deleted and the rest kept
3. creates for newly selected clusters
"""

from dataclasses import dataclass, field
from typing import Dict, List, Optional, Sequence

from fleetplane.placement.models import (
    ApplicationDeployment,
    Assignment,
    AssignmentContext,
    AssignmentOperation,
    Cluster,
    OperationType,
)
from fleetplane.placement.selector import Diagnostic, DiagnosticSink, filter_clusters
from fleetplane.placement.strategy import SelectionStrategy, random_selection


class InsufficientClustersError(Exception):
    """Raised when an application needs more new placements than there are free clusters.

    An application can be assigned to a given cluster at most once.
    """

    def __init__(self, requested: int, available: int, application: Optional[str] = None):
        super().__init__(
            f"Requested {requested} assignments, but only {available} clusters are available"
        )
        self.requested = requested
        self.available = available
        self.application = application


@dataclass
class ValidatedAssignment:
    """An existing assignment tagged with whether its cluster is still eligible."""

    assignment: Assignment
    is_valid: bool


@dataclass
class ApplicationResult:
    """Outcome of reconciling a single application."""

    application: str
    operations: List[AssignmentOperation] = field(default_factory=list)
    diagnostics: List[Diagnostic] = field(default_factory=list)
    error: Optional[InsufficientClustersError] = None

    @property
    def ok(self) -> bool:
        return self.error is None


@dataclass
class ReconciliationPlan:
    """Per-application results of a full reconciliation pass.

    ``orphaned`` holds deletes for assignments whose application no longer
    exists. Failed applications contribute no operations, so their current
    assignments are left untouched when the plan is applied.
    """

    orphaned: List[AssignmentOperation] = field(default_factory=list)
    results: List[ApplicationResult] = field(default_factory=list)

    @property
    def operations(self) -> List[AssignmentOperation]:
        ops = list(self.orphaned)
        for result in self.results:
            if result.ok:
                ops.extend(result.operations)
        return ops

    @property
    def failures(self) -> List[ApplicationResult]:
        return [r for r in self.results if not r.ok]

    @property
    def diagnostics(self) -> List[Diagnostic]:
        return [d for r in self.results for d in r.diagnostics]

    @property
    def ok(self) -> bool:
        return not self.failures


def validate_assignments(
    clusters: List[Cluster],
    assignments: List[Assignment],
    application: ApplicationDeployment,
) -> List[ValidatedAssignment]:
    """Classify an application's assignments against the eligible clusters.

    Args:
        clusters: Clusters currently eligible to host the application.
        assignments: Every recorded assignment in the fleet.
        application: The application whose assignments are checked.

    Returns:
        The application's assignments in recorded order. Those referring to
        a cluster outside ``clusters`` (deleted, renamed or no longer
        matching the selector) are marked invalid.
    """
    cluster_names = {c.name for c in clusters}
    return [
        ValidatedAssignment(assignment=a, is_valid=a.cluster in cluster_names)
        for a in assignments
        if a.application == application.name
    ]


def assign(
    context: AssignmentContext,
    application: ApplicationDeployment,
    select: Optional[SelectionStrategy] = None,
    on_diagnostic: Optional[DiagnosticSink] = None,
) -> List[AssignmentOperation]:
    """Generate assignment operations for a single application.

    Args:
        context: Snapshot of clusters and recorded assignments.
        application: The application to reconcile.
        select: Picks clusters for new assignments. Defaults to a uniform
            random sample.
        on_diagnostic: Receives non-fatal diagnostics (empty selector match).

    Returns:
        Ordered list of operations for this application.

    Raises:
        InsufficientClustersError: If the application needs more new
            assignments than there are unscheduled eligible clusters.
    """
    eligible = filter_clusters(context.clusters, application, on_diagnostic)
    current = validate_assignments(eligible, context.assignments, application)
    valid = [v.assignment for v in current if v.is_valid]
    desired = len(eligible) if application.wants_all else application.clusters

    operations = [
        AssignmentOperation(OperationType.DELETE, v.assignment)
        for v in current
        if not v.is_valid
    ]

    # the earliest recorded assignments are the first to go
    excess = len(valid) - desired
    for idx, assignment in enumerate(valid):
        op = OperationType.DELETE if idx < excess else OperationType.KEEP
        operations.append(AssignmentOperation(op, assignment))

    operations.extend(
        _new_assignments(valid, eligible, application, desired, select)
    )
    return operations


def _new_assignments(
    valid: List[Assignment],
    clusters: List[Cluster],
    application: ApplicationDeployment,
    desired: int,
    select: Optional[SelectionStrategy],
) -> List[AssignmentOperation]:
    """Create assignments on unscheduled clusters to reach the desired count."""
    if not clusters:
        return []

    shortfall = desired - len(valid)
    if shortfall <= 0:
        return []

    scheduled = {a.cluster for a in valid}
    unscheduled = [c for c in clusters if c.name not in scheduled]

    # an application can only be placed once per cluster
    if shortfall > len(unscheduled):
        raise InsufficientClustersError(shortfall, len(unscheduled), application.name)

    select = select or random_selection()
    chosen = _checked_selection(select, unscheduled, shortfall)

    return [
        AssignmentOperation(
            OperationType.CREATE,
            Assignment.for_placement(application.name, c.name),
        )
        for c in chosen
    ]


def _checked_selection(
    select: SelectionStrategy,
    candidates: List[Cluster],
    count: int,
) -> List[Cluster]:
    chosen = list(select(candidates, count))
    candidate_names = {c.name for c in candidates}
    chosen_names = [c.name for c in chosen]
    if (
        len(chosen) != count
        or len(set(chosen_names)) != count
        or not candidate_names.issuperset(chosen_names)
    ):
        raise ValueError(
            f"Selection strategy must return {count} distinct candidates, "
            f"got: {', '.join(chosen_names) or 'none'}"
        )
    return chosen


def orphaned_assignments(
    context: AssignmentContext,
    applications: Sequence[ApplicationDeployment],
) -> List[AssignmentOperation]:
    """Delete operations for assignments whose application no longer exists."""
    app_names = {a.name for a in applications}
    return [
        AssignmentOperation(OperationType.DELETE, a)
        for a in context.assignments
        if a.application not in app_names
    ]


def assign_all(
    context: AssignmentContext,
    applications: Sequence[ApplicationDeployment],
    select: Optional[SelectionStrategy] = None,
    on_diagnostic: Optional[DiagnosticSink] = None,
) -> List[AssignmentOperation]:
    """Generate assignment operations for every application in the fleet.

    All-or-nothing: an InsufficientClustersError for any application
    propagates and no operations are returned. Use :func:`assign_each` to
    get per-application results instead.

    Raises:
        InsufficientClustersError: If any application cannot be satisfied.
    """
    operations = orphaned_assignments(context, applications)
    for application in applications:
        operations.extend(assign(context, application, select, on_diagnostic))
    return operations


def assign_each(
    context: AssignmentContext,
    applications: Sequence[ApplicationDeployment],
    select: Optional[SelectionStrategy] = None,
    on_diagnostic: Optional[DiagnosticSink] = None,
) -> ReconciliationPlan:
    """Reconcile every application independently, collecting failures.

    Unlike :func:`assign_all`, one application's InsufficientClustersError
    is recorded on its result and the remaining applications are still
    processed.
    """
    plan = ReconciliationPlan(orphaned=orphaned_assignments(context, applications))

    for application in applications:
        result = ApplicationResult(application=application.name)

        def collect(diagnostic: Diagnostic, result: ApplicationResult = result) -> None:
            result.diagnostics.append(diagnostic)
            if on_diagnostic:
                on_diagnostic(diagnostic)

        try:
            result.operations = assign(context, application, select, collect)
        except InsufficientClustersError as e:
            result.error = e
        plan.results.append(result)

    return plan


def apply_operations(
    assignments: List[Assignment],
    operations: List[AssignmentOperation],
) -> List[Assignment]:
    """Fold operations into an assignment list, as a store would after applying them."""
    deleted = {o.assignment.name for o in operations if o.operation == OperationType.DELETE}
    result = [a for a in assignments if a.name not in deleted]
    result.extend(o.assignment for o in operations if o.operation == OperationType.CREATE)
    return result


def summarize(operations: List[AssignmentOperation]) -> Dict[str, int]:
    """Count operations by type."""
    counts = {op.value: 0 for op in OperationType}
    for o in operations:
        counts[o.operation.value] += 1
    counts["total"] = len(operations)
    return counts


reconcile_one = assign
reconcile_all = assign_all
