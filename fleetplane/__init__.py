"""fleetplane - assigns applications to clusters in a declarative control plane repository."""

__version__ = "0.1.0"
