"""Access to the control plane repository's stored records."""

from fleetplane.controlplane.client import ControlPlaneClient

__all__ = ["ControlPlaneClient"]
