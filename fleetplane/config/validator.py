"""Schema validation for control plane records."""

from typing import Any, Dict, List

import jsonschema

from fleetplane.placement.models import Assignment

# JSON Schema for records stored in the control plane repository
CONTROL_PLANE_SCHEMA = {
    "$schema": "https://json-schema.org/draft/2020-12/schema",
    "$defs": {
        "metadata": {
            "type": "object",
            "required": ["name"],
            "properties": {
                "name": {"type": "string", "minLength": 1},
                "labels": {
                    "type": "object",
                    "additionalProperties": {"type": "string"}
                }
            }
        },
        "Cluster": {
            "type": "object",
            "required": ["kind", "metadata"],
            "properties": {
                "kind": {"const": "Cluster"},
                "metadata": {"$ref": "#/$defs/metadata"},
                "spec": {
                    "type": "object",
                    "properties": {
                        "environments": {
                            "type": "array",
                            "items": {"type": "string"}
                        }
                    }
                }
            }
        },
        "ApplicationDeployment": {
            "type": "object",
            "required": ["kind", "metadata", "spec"],
            "properties": {
                "kind": {"const": "ApplicationDeployment"},
                "metadata": {"$ref": "#/$defs/metadata"},
                "spec": {
                    "type": "object",
                    "required": ["clusters"],
                    "properties": {
                        "clusters": {
                            "oneOf": [
                                {"type": "integer", "minimum": 1},
                                {"const": "all"}
                            ]
                        },
                        "selector": {
                            "type": "object",
                            "additionalProperties": {"type": "string"}
                        },
                        "repo": {"type": "string"},
                        "ref": {"type": "string"},
                        "path": {"type": "string"},
                        "template": {"type": "string"},
                        "values": {"type": "object"}
                    }
                }
            }
        },
        "ApplicationAssignment": {
            "type": "object",
            "required": ["kind", "metadata", "spec"],
            "properties": {
                "kind": {"const": "ApplicationAssignment"},
                "metadata": {"$ref": "#/$defs/metadata"},
                "spec": {
                    "type": "object",
                    "required": ["application", "cluster"],
                    "properties": {
                        "application": {"type": "string", "minLength": 1},
                        "cluster": {"type": "string", "minLength": 1}
                    }
                }
            }
        }
    }
}

RECORD_KINDS = ("Cluster", "ApplicationDeployment", "ApplicationAssignment")


class ValidationError(Exception):
    """Exception raised when a control plane record fails validation."""

    def __init__(self, message: str, errors: List[str] = None):
        super().__init__(message)
        self.errors = errors or []


def schema_for(kind: str) -> Dict[str, Any]:
    """Build a standalone schema for one record kind."""
    if kind not in RECORD_KINDS:
        raise ValueError(f"Unknown record kind: {kind}")
    return {
        "$schema": CONTROL_PLANE_SCHEMA["$schema"],
        "$defs": CONTROL_PLANE_SCHEMA["$defs"],
        "$ref": f"#/$defs/{kind}",
    }


def validate_record(record: Any, kind: str, source: str = "<record>") -> bool:
    """Validate a record against the schema for its kind.

    Args:
        record: The parsed YAML document.
        kind: Expected record kind, one of RECORD_KINDS.
        source: Where the record came from, used in error messages.

    Returns:
        True if validation passes.

    Raises:
        ValidationError: If validation fails.
    """
    validator = jsonschema.Draft202012Validator(schema_for(kind))
    errors = sorted(validator.iter_errors(record), key=lambda e: [str(p) for p in e.path])
    if errors:
        raise ValidationError(
            f"Invalid {kind} in {source}: {errors[0].message}",
            [_format_error(e) for e in errors],
        )
    return True


def validate_inventory(
    clusters: List[Dict[str, Any]],
    applications: List[Dict[str, Any]],
    assignments: List[Dict[str, Any]],
) -> List[str]:
    """Cross-record checks beyond schema validation.

    Returns:
        List of problems: duplicate names, more than one assignment for
        the same application and cluster, and application/cluster pairs
        whose generated assignment names would be the same.
    """
    errors = []

    for label, records in (
        ("cluster", clusters),
        ("application", applications),
        ("assignment", assignments),
    ):
        seen = set()
        for record in records:
            name = record["metadata"]["name"]
            if name in seen:
                errors.append(f"Duplicate {label} name: {name}")
            seen.add(name)

    pairs = set()
    for record in assignments:
        pair = (record["spec"]["application"], record["spec"]["cluster"])
        if pair in pairs:
            errors.append(
                f"Application '{pair[0]}' is assigned to cluster '{pair[1]}' more than once"
            )
        pairs.add(pair)

    generated: Dict[str, tuple] = {}
    for app in applications:
        for cluster in clusters:
            pair = (app["metadata"]["name"], cluster["metadata"]["name"])
            name = Assignment.for_placement(*pair).name
            other = generated.setdefault(name, pair)
            if other != pair:
                errors.append(
                    f"Assignment name '{name}' is shared by application '{other[0]}' "
                    f"on cluster '{other[1]}' and application '{pair[0]}' on cluster '{pair[1]}'"
                )

    return errors


def _format_error(error: jsonschema.ValidationError) -> str:
    location = "/".join(str(p) for p in error.absolute_path) or "<root>"
    return f"{location}: {error.message}"
