"""Client for the contents of a control plane repository.

Layout::

    <repo>/
      clusters/       one Cluster record per file
      applications/   one ApplicationDeployment record per file
      assignments/    one ApplicationAssignment record per file

New records are written as ``<metadata.name>.yaml``. Existing records may
use either YAML suffix and any file name; the client remembers where each
assignment was read from so it can delete the right file.
"""

from pathlib import Path
from typing import Dict, List, Optional, Tuple

import structlog

from fleetplane.config.loader import dump_record, load_record_files
from fleetplane.config.validator import ValidationError, validate_inventory
from fleetplane.placement.models import (
    ApplicationDeployment,
    Assignment,
    AssignmentContext,
    Cluster,
)

logger = structlog.get_logger(__name__)

CLUSTERS_DIR = "clusters"
APPLICATIONS_DIR = "applications"
ASSIGNMENTS_DIR = "assignments"


class ControlPlaneClient:
    """Reads and writes records in a local control plane checkout."""

    def __init__(self, local_path: str):
        """Initialise with the path of the repository checkout.

        Args:
            local_path: Root directory of the control plane repository.
        """
        self.local_path = Path(local_path)
        self._assignment_files: Dict[str, Path] = {}

    # ------------------------------------------------------------------
    # Clusters
    # ------------------------------------------------------------------

    def get_clusters(self) -> List[Cluster]:
        records = load_record_files(self.local_path / CLUSTERS_DIR, Cluster.KIND)
        return [Cluster.from_dict(r) for _, r in records]

    def cluster_path(self, name: str) -> Path:
        return self.local_path / CLUSTERS_DIR / f"{name}.yaml"

    def add_cluster(self, cluster: Cluster) -> Path:
        path = self.cluster_path(cluster.name)
        dump_record(path, cluster.to_dict())
        return path

    # ------------------------------------------------------------------
    # Applications
    # ------------------------------------------------------------------

    def get_applications(self) -> List[ApplicationDeployment]:
        records = load_record_files(
            self.local_path / APPLICATIONS_DIR, ApplicationDeployment.KIND
        )
        return [ApplicationDeployment.from_dict(r) for _, r in records]

    def application_path(self, name: str) -> Path:
        return self.local_path / APPLICATIONS_DIR / f"{name}.yaml"

    def add_application(self, application: ApplicationDeployment) -> Path:
        path = self.application_path(application.name)
        dump_record(path, application.to_dict())
        return path

    # ------------------------------------------------------------------
    # Assignments
    # ------------------------------------------------------------------

    def get_assignments(self) -> List[Assignment]:
        records = load_record_files(self.local_path / ASSIGNMENTS_DIR, Assignment.KIND)
        assignments = []
        self._assignment_files = {}
        for path, record in records:
            assignment = Assignment.from_dict(record)
            self._assignment_files[assignment.name] = path
            assignments.append(assignment)
        return assignments

    def assignment_path(self, name: str) -> Path:
        return self.local_path / ASSIGNMENTS_DIR / f"{name}.yaml"

    def add_assignment(self, assignment: Assignment) -> Path:
        path = self.assignment_path(assignment.name)
        dump_record(path, assignment.to_dict())
        self._assignment_files[assignment.name] = path
        logger.debug("assignment written", assignment=assignment.name, path=str(path))
        return path

    def delete_assignment(self, name: str) -> None:
        """Remove an assignment record, whatever file it is stored in.

        Raises:
            FileNotFoundError: If no record with that name exists.
        """
        path = self._find_assignment_file(name)
        if path is None:
            raise FileNotFoundError(
                f"Assignment not found: {name} in {self.local_path / ASSIGNMENTS_DIR}"
            )
        path.unlink()
        self._assignment_files.pop(name, None)
        logger.debug("assignment removed", assignment=name, path=str(path))

    def _find_assignment_file(self, name: str) -> Optional[Path]:
        path = self._assignment_files.get(name)
        if path is not None and path.is_file():
            return path
        # not seen yet, or moved since the last read
        self.get_assignments()
        path = self._assignment_files.get(name)
        if path is not None and path.is_file():
            return path
        return None

    # ------------------------------------------------------------------
    # Snapshot
    # ------------------------------------------------------------------

    def load_context(self) -> AssignmentContext:
        """Read clusters and assignments as one snapshot for reconciliation.

        Raises:
            ValidationError: If records are malformed or the one assignment
                per application and cluster rule is broken.
        """
        clusters = self.get_clusters()
        assignments = self.get_assignments()
        self._check_inventory(clusters, [], assignments)
        return AssignmentContext(clusters=clusters, assignments=assignments)

    def load_inventory(self) -> Tuple[AssignmentContext, List[ApplicationDeployment]]:
        """Read and cross-check every record in the repository.

        Returns:
            The reconciliation snapshot and the applications to reconcile.

        Raises:
            ValidationError: If records are malformed, names are duplicated,
                or generated assignment names would collide.
        """
        clusters = self.get_clusters()
        applications = self.get_applications()
        assignments = self.get_assignments()
        self._check_inventory(clusters, applications, assignments)
        return AssignmentContext(clusters=clusters, assignments=assignments), applications

    def _check_inventory(
        self,
        clusters: List[Cluster],
        applications: List[ApplicationDeployment],
        assignments: List[Assignment],
    ) -> None:
        errors = validate_inventory(
            [c.to_dict() for c in clusters],
            [a.to_dict() for a in applications],
            [a.to_dict() for a in assignments],
        )
        if errors:
            raise ValidationError("Inconsistent control plane inventory", errors)
