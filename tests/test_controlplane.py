"""Tests for the control plane repository client."""

import pytest
import yaml

from fleetplane.config.validator import ValidationError
from fleetplane.controlplane.client import ControlPlaneClient
from fleetplane.placement.models import ApplicationDeployment, Assignment, Cluster


class TestControlPlaneClient:
    """Tests for reading and writing control plane records."""

    def test_empty_directory(self, tmp_path):
        client = ControlPlaneClient(str(tmp_path))
        assert client.get_clusters() == []
        assert client.get_applications() == []
        assert client.get_assignments() == []

    def test_read_clusters(self, control_plane_repo):
        clusters = ControlPlaneClient(str(control_plane_repo)).get_clusters()
        assert [c.name for c in clusters] == ["dev-cluster1", "prod-cluster1", "prod-cluster2"]
        assert clusters[0].labels == {"ring": "preview"}
        assert clusters[1].environments == ["prod"]

    def test_read_applications(self, control_plane_repo):
        apps = ControlPlaneClient(str(control_plane_repo)).get_applications()
        assert [a.name for a in apps] == ["testapp1", "testapp2"]
        assert apps[0].wants_all is True
        assert apps[0].selector == {"environment": "prod"}
        assert apps[0].extra["ref"] == "main"
        assert apps[1].clusters == 1

    def test_read_assignments(self, control_plane_repo):
        assignments = ControlPlaneClient(str(control_plane_repo)).get_assignments()
        assert [a.name for a in assignments] == [
            "oldapp-dev-cluster1", "testapp1-prod-cluster1",
        ]

    def test_write_assignment(self, control_plane_repo):
        client = ControlPlaneClient(str(control_plane_repo))
        assignment = Assignment.for_placement("testapp2", "dev-cluster1")

        path = client.add_assignment(assignment)

        assert path == control_plane_repo / "assignments" / "testapp2-dev-cluster1.yaml"
        assert yaml.safe_load(path.read_text()) == assignment.to_dict()
        assert assignment in client.get_assignments()

    def test_delete_assignment(self, control_plane_repo):
        client = ControlPlaneClient(str(control_plane_repo))
        client.delete_assignment("oldapp-dev-cluster1")

        assert not (control_plane_repo / "assignments" / "oldapp-dev-cluster1.yaml").exists()
        assert [a.name for a in client.get_assignments()] == ["testapp1-prod-cluster1"]

    def test_delete_assignment_stored_under_other_name(self, control_plane_repo):
        assignments = control_plane_repo / "assignments"
        (assignments / "oldapp-dev-cluster1.yaml").rename(assignments / "legacy.yml")
        client = ControlPlaneClient(str(control_plane_repo))

        client.delete_assignment("oldapp-dev-cluster1")

        assert not (assignments / "legacy.yml").exists()
        assert [a.name for a in client.get_assignments()] == ["testapp1-prod-cluster1"]

    def test_delete_after_read_uses_source_file(self, control_plane_repo):
        assignments = control_plane_repo / "assignments"
        (assignments / "testapp1-prod-cluster1.yaml").rename(assignments / "testapp1.yml")
        client = ControlPlaneClient(str(control_plane_repo))
        client.get_assignments()

        client.delete_assignment("testapp1-prod-cluster1")

        assert sorted(p.name for p in assignments.iterdir()) == ["oldapp-dev-cluster1.yaml"]

    def test_delete_missing_assignment(self, control_plane_repo):
        client = ControlPlaneClient(str(control_plane_repo))
        with pytest.raises(FileNotFoundError):
            client.delete_assignment("nope")

    def test_write_cluster_and_application(self, tmp_path):
        client = ControlPlaneClient(str(tmp_path))
        cluster = Cluster(name="c1", labels={"ring": "prod"}, environments=["prod"])
        app = ApplicationDeployment(name="app1", clusters="all", selector={"ring": "prod"})

        client.add_cluster(cluster)
        client.add_application(app)

        assert client.get_clusters() == [cluster]
        assert client.get_applications() == [app]

    def test_invalid_record_rejected(self, control_plane_repo):
        (control_plane_repo / "clusters" / "broken.yaml").write_text(
            "kind: Cluster\nmetadata: {}\n"
        )
        with pytest.raises(ValidationError, match="broken.yaml"):
            ControlPlaneClient(str(control_plane_repo)).get_clusters()

    def test_load_context(self, control_plane_repo):
        context = ControlPlaneClient(str(control_plane_repo)).load_context()
        assert len(context.clusters) == 3
        assert len(context.assignments) == 2

    def test_load_context_rejects_duplicate_placement(self, control_plane_repo):
        client = ControlPlaneClient(str(control_plane_repo))
        duplicate = Assignment(name="copy", application="testapp1", cluster="prod-cluster1")
        client.add_assignment(duplicate)

        with pytest.raises(ValidationError) as excinfo:
            client.load_context()
        assert "more than once" in excinfo.value.errors[0]

    def test_load_inventory(self, control_plane_repo):
        context, applications = ControlPlaneClient(str(control_plane_repo)).load_inventory()
        assert len(context.clusters) == 3
        assert len(context.assignments) == 2
        assert [a.name for a in applications] == ["testapp1", "testapp2"]

    def test_load_inventory_rejects_duplicate_application(self, control_plane_repo):
        client = ControlPlaneClient(str(control_plane_repo))
        (control_plane_repo / "applications" / "copy.yaml").write_text(
            (control_plane_repo / "applications" / "testapp2.yaml").read_text()
        )

        with pytest.raises(ValidationError) as excinfo:
            client.load_inventory()
        assert excinfo.value.errors == ["Duplicate application name: testapp2"]

    def test_load_inventory_rejects_colliding_assignment_names(self, control_plane_repo):
        client = ControlPlaneClient(str(control_plane_repo))
        client.add_cluster(Cluster(name="prod-cluster1-b", environments=["prod"]))
        client.add_application(ApplicationDeployment(name="testapp1-prod", clusters=1))
        client.add_cluster(Cluster(name="cluster1-b"))

        with pytest.raises(ValidationError) as excinfo:
            client.load_inventory()
        assert any("testapp1-prod-cluster1-b" in e for e in excinfo.value.errors)
