"""Selector evaluation: which clusters may host an application."""

from dataclasses import dataclass
from typing import Any, Callable, Dict, List, Optional

import structlog

from fleetplane.placement.models import ApplicationDeployment, Cluster

logger = structlog.get_logger(__name__)

# Selector key matched against a cluster's environments instead of its labels
ENVIRONMENT_KEY = "environment"


@dataclass
class Diagnostic:
    """A non-fatal observation raised while reconciling an application."""

    level: str
    application: str
    message: str

    def to_dict(self) -> Dict[str, Any]:
        return {
            "level": self.level,
            "application": self.application,
            "message": self.message,
        }


DiagnosticSink = Callable[[Diagnostic], None]


def log_diagnostic(diagnostic: Diagnostic) -> None:
    """Default sink: forward the diagnostic to the structured log."""
    log = getattr(logger, diagnostic.level, logger.warning)
    log(diagnostic.message, application=diagnostic.application)


def is_eligible(cluster: Cluster, selector: Optional[Dict[str, str]]) -> bool:
    """Check whether a cluster satisfies every criterion of a selector.

    The ``environment`` key must appear in the cluster's environment list;
    every other key must be a label with exactly the given value. An empty
    selector matches every cluster.
    """
    for key, value in (selector or {}).items():
        if key == ENVIRONMENT_KEY:
            if value not in (cluster.environments or []):
                return False
        elif (cluster.labels or {}).get(key) != value:
            return False
    return True


def filter_clusters(
    clusters: List[Cluster],
    application: ApplicationDeployment,
    on_diagnostic: Optional[DiagnosticSink] = None,
) -> List[Cluster]:
    """Return the clusters eligible to host an application.

    Args:
        clusters: The cluster inventory.
        application: The application whose selector is evaluated.
        on_diagnostic: Receives a warning when a selector matches nothing.
            Defaults to logging it.

    Returns:
        Eligible clusters, in inventory order.
    """
    if not application.selector:
        return list(clusters)

    eligible = [c for c in clusters if is_eligible(c, application.selector)]
    if not eligible:
        sink = on_diagnostic or log_diagnostic
        sink(Diagnostic(
            level="warning",
            application=application.name,
            message=f"There are no eligible clusters for application: {application.name}",
        ))
    return eligible
