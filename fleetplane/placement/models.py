"""Record types consumed and produced by the assignment engine.

Each type maps to a Kubernetes-style record in the control plane repo::

    kind: Cluster
    metadata:
      name: cluster1
      labels: {ring: prod}
    spec:
      environments: [prod]
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Union

ALL_CLUSTERS = "all"


class OperationType(str, Enum):
    """What to do with an assignment record."""

    CREATE = "create"
    DELETE = "delete"
    KEEP = "keep"


@dataclass
class Cluster:
    """A deployment target."""

    name: str
    labels: Dict[str, str] = field(default_factory=dict)
    environments: List[str] = field(default_factory=list)

    KIND = "Cluster"

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Cluster":
        metadata = data.get("metadata", {})
        spec = data.get("spec") or {}
        return cls(
            name=metadata["name"],
            labels=dict(metadata.get("labels") or {}),
            environments=list(spec.get("environments") or []),
        )

    def to_dict(self) -> Dict[str, Any]:
        metadata: Dict[str, Any] = {"name": self.name}
        if self.labels:
            metadata["labels"] = dict(self.labels)
        return {
            "kind": self.KIND,
            "metadata": metadata,
            "spec": {"environments": list(self.environments)},
        }


@dataclass
class ApplicationDeployment:
    """Desired placement policy for one application.

    ``clusters`` is either a positive integer or ``"all"``. Spec keys the
    engine does not interpret (repo, ref, path, values...) are carried in
    ``extra`` so they survive a load/save cycle.
    """

    name: str
    clusters: Union[int, str] = 1
    selector: Dict[str, str] = field(default_factory=dict)
    extra: Dict[str, Any] = field(default_factory=dict)

    KIND = "ApplicationDeployment"

    def __post_init__(self):
        if self.clusters == ALL_CLUSTERS:
            return
        if isinstance(self.clusters, bool) or not isinstance(self.clusters, int) or self.clusters < 1:
            raise ValueError(
                f"Application '{self.name}': clusters must be a positive integer "
                f"or '{ALL_CLUSTERS}', got {self.clusters!r}"
            )

    @property
    def wants_all(self) -> bool:
        return self.clusters == ALL_CLUSTERS

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "ApplicationDeployment":
        spec = dict(data.get("spec") or {})
        clusters = spec.pop("clusters")
        selector = spec.pop("selector", None) or {}
        return cls(
            name=data["metadata"]["name"],
            clusters=clusters,
            selector=dict(selector),
            extra=spec,
        )

    def to_dict(self) -> Dict[str, Any]:
        spec: Dict[str, Any] = {"clusters": self.clusters}
        if self.selector:
            spec["selector"] = dict(self.selector)
        spec.update(self.extra)
        return {
            "kind": self.KIND,
            "metadata": {"name": self.name},
            "spec": spec,
        }


@dataclass
class Assignment:
    """A recorded placement of one application on one cluster."""

    name: str
    application: str
    cluster: str

    KIND = "ApplicationAssignment"

    @classmethod
    def for_placement(cls, application: str, cluster: str) -> "Assignment":
        """Build a new assignment with the deterministic ``{app}-{cluster}`` name."""
        return cls(
            name=f"{application}-{cluster}",
            application=application,
            cluster=cluster,
        )

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Assignment":
        spec = data["spec"]
        return cls(
            name=data["metadata"]["name"],
            application=spec["application"],
            cluster=spec["cluster"],
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "kind": self.KIND,
            "metadata": {"name": self.name},
            "spec": {
                "application": self.application,
                "cluster": self.cluster,
            },
        }


@dataclass
class AssignmentOperation:
    """A single create/delete/keep decision for an assignment."""

    operation: OperationType
    assignment: Assignment

    def to_dict(self) -> Dict[str, Any]:
        return {
            "operation": self.operation.value,
            "assignment": self.assignment.name,
            "application": self.assignment.application,
            "cluster": self.assignment.cluster,
        }


@dataclass
class AssignmentContext:
    """Point-in-time snapshot of the inventory a reconciliation pass reads."""

    clusters: List[Cluster] = field(default_factory=list)
    assignments: List[Assignment] = field(default_factory=list)
