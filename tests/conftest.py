"""Pytest configuration and fixtures."""

import pytest
import yaml


def _write(path, record):
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(yaml.safe_dump(record, sort_keys=False))


@pytest.fixture
def cluster_records():
    """Cluster records as stored in a control plane repo."""
    return [
        {
            "kind": "Cluster",
            "metadata": {"name": "dev-cluster1", "labels": {"ring": "preview"}},
            "spec": {"environments": ["dev"]},
        },
        {
            "kind": "Cluster",
            "metadata": {"name": "prod-cluster1", "labels": {"ring": "public"}},
            "spec": {"environments": ["prod"]},
        },
        {
            "kind": "Cluster",
            "metadata": {"name": "prod-cluster2", "labels": {"ring": "public"}},
            "spec": {"environments": ["prod"]},
        },
    ]


@pytest.fixture
def application_records():
    """ApplicationDeployment records as stored in a control plane repo."""
    return [
        {
            "kind": "ApplicationDeployment",
            "metadata": {"name": "testapp1"},
            "spec": {
                "clusters": "all",
                "selector": {"environment": "prod"},
                "repo": "https://github.com/example/testapp1",
                "ref": "main",
                "path": "app.yaml",
            },
        },
        {
            "kind": "ApplicationDeployment",
            "metadata": {"name": "testapp2"},
            "spec": {"clusters": 1, "selector": {"ring": "preview"}},
        },
    ]


@pytest.fixture
def assignment_records():
    """ApplicationAssignment records as stored in a control plane repo."""
    return [
        {
            "kind": "ApplicationAssignment",
            "metadata": {"name": "testapp1-prod-cluster1"},
            "spec": {"application": "testapp1", "cluster": "prod-cluster1"},
        },
        {
            "kind": "ApplicationAssignment",
            "metadata": {"name": "oldapp-dev-cluster1"},
            "spec": {"application": "oldapp", "cluster": "dev-cluster1"},
        },
    ]


@pytest.fixture
def control_plane_repo(tmp_path, cluster_records, application_records, assignment_records):
    """A control plane repository checkout populated with sample records."""
    repo = tmp_path / "control-plane"
    for record in cluster_records:
        _write(repo / "clusters" / f"{record['metadata']['name']}.yaml", record)
    for record in application_records:
        _write(repo / "applications" / f"{record['metadata']['name']}.yaml", record)
    for record in assignment_records:
        _write(repo / "assignments" / f"{record['metadata']['name']}.yaml", record)
    return repo
