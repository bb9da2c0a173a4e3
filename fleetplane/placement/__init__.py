"""Assignment of applications to clusters.

Evaluates placement selectors against the cluster inventory and computes the
create/delete/keep operations that converge recorded assignments to each
application's desired placement.
"""

from fleetplane.placement.models import (
    ALL_CLUSTERS,
    ApplicationDeployment,
    Assignment,
    AssignmentContext,
    AssignmentOperation,
    Cluster,
    OperationType,
)
from fleetplane.placement.reconciler import (
    ApplicationResult,
    InsufficientClustersError,
    ReconciliationPlan,
    assign,
    assign_all,
    assign_each,
    reconcile_all,
    reconcile_one,
)
from fleetplane.placement.selector import Diagnostic, filter_clusters, is_eligible
from fleetplane.placement.strategy import SelectionMode, ordered_selection, random_selection

__all__ = [
    "ALL_CLUSTERS",
    "ApplicationDeployment",
    "ApplicationResult",
    "Assignment",
    "AssignmentContext",
    "AssignmentOperation",
    "Cluster",
    "Diagnostic",
    "InsufficientClustersError",
    "OperationType",
    "ReconciliationPlan",
    "SelectionMode",
    "assign",
    "assign_all",
    "assign_each",
    "filter_clusters",
    "is_eligible",
    "ordered_selection",
    "random_selection",
    "reconcile_all",
    "reconcile_one",
]
