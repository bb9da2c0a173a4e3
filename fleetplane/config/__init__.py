"""Loading and validation of control plane records."""

from fleetplane.config.loader import load_record, load_records
from fleetplane.config.validator import ValidationError, validate_record

__all__ = ["load_record", "load_records", "ValidationError", "validate_record"]
