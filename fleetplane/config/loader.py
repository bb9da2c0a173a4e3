"""YAML record loader for the control plane repository.

Each record lives in its own YAML file. Files in a record directory are
loaded in name order so the resulting lists are stable between runs.
"""

from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple

import yaml

from fleetplane.config.validator import validate_record

YAML_SUFFIXES = (".yaml", ".yml")


def load_record(filepath: Path, kind: Optional[str] = None) -> Dict[str, Any]:
    """Load a single YAML record, optionally validating it.

    Args:
        filepath: Path to the YAML file.
        kind: Record kind to validate against. Skips validation when None.

    Returns:
        The parsed record.

    Raises:
        FileNotFoundError: If the file does not exist.
        ValueError: If the file is not valid YAML or is empty.
        ValidationError: If the record does not match the schema.
    """
    path = Path(filepath)
    if not path.is_file():
        raise FileNotFoundError(f"Record file not found: {path}")

    try:
        record = yaml.safe_load(path.read_text())
    except yaml.YAMLError as e:
        raise ValueError(f"Invalid YAML in {path}: {e}")

    if record is None:
        raise ValueError(f"Empty record file: {path}")

    if kind:
        validate_record(record, kind, source=str(path))
    return record


def load_record_files(
    dirpath: Path, kind: Optional[str] = None
) -> List[Tuple[Path, Dict[str, Any]]]:
    """Load every YAML record in a directory along with the file it came from.

    A missing directory is treated as holding no records.
    """
    path = Path(dirpath)
    if not path.exists():
        return []
    if not path.is_dir():
        raise ValueError(f"Not a directory: {path}")

    files = sorted(
        f for f in path.iterdir()
        if f.is_file() and f.suffix in YAML_SUFFIXES
    )
    return [(f, load_record(f, kind)) for f in files]


def load_records(dirpath: Path, kind: Optional[str] = None) -> List[Dict[str, Any]]:
    """Load every YAML record in a directory."""
    return [record for _, record in load_record_files(dirpath, kind)]


def dump_record(filepath: Path, record: Dict[str, Any]) -> None:
    """Write a record as YAML, creating the parent directory if needed."""
    path = Path(filepath)
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(yaml.safe_dump(record, sort_keys=False))
