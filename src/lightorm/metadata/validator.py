"""
metadata/validator.py: JSON Schema validation for record-type YAML files.

Usage:
    from lightorm.metadata.validator import validate_metadata_dir, validate_yaml_file

    issues = validate_metadata_dir(Path("metadata"))
    for issue in issues:
        print(issue)

Files live under ``record_types/`` in the metadata directory and are checked
against ``record_type.schema.json``, which pulls its field and relationship
shapes from ``_defs.schema.json``.
"""
from __future__ import annotations

import json
from dataclasses import dataclass
from pathlib import Path
from typing import Any

import yaml
from jsonschema import Draft202012Validator
from jsonschema.exceptions import ValidationError
from referencing import Registry, Resource
from referencing.jsonschema import DRAFT202012

# ---------------------------------------------------------------------------
# Public data types
# ---------------------------------------------------------------------------

_SCHEMAS_DIR = Path(__file__).parent / "schemas"

RECORD_TYPES_DIR = "record_types"
RECORD_TYPE_SCHEMA = "record_type.schema.json"

_SCHEMA_NAMES = ["_defs.schema.json", RECORD_TYPE_SCHEMA]


@dataclass
class ValidationIssue:
    """A single validation finding for a metadata YAML file."""

    file: Path
    message: str
    path: str = ""          # location within the document, e.g. "fields[0]/type"
    severity: str = "error"

    def __str__(self) -> str:
        loc = f" at {self.path}" if self.path else ""
        return f"[{self.severity.upper()}] {self.file}{loc}: {self.message}"


# ---------------------------------------------------------------------------
# Internal helpers
# ---------------------------------------------------------------------------


def _load_schema(name: str) -> dict[str, Any]:
    schema_path = _SCHEMAS_DIR / name
    with schema_path.open() as fh:
        return json.load(fh)


def _load_registry() -> Registry:
    """Build a jsonschema Registry containing every bundled schema."""
    resources = []
    for name in _SCHEMA_NAMES:
        schema = _load_schema(name)
        resources.append(
            (schema["$id"], Resource(contents=schema, specification=DRAFT202012))
        )
    return Registry().with_resources(resources)


def _json_path(error: ValidationError) -> str:
    """Convert a jsonschema ValidationError path to a readable string."""
    parts = []
    for p in error.absolute_path:
        if isinstance(p, int):
            parts.append(f"[{p}]")
        else:
            parts.append(str(p))
    return "/".join(parts).replace("/[", "[")


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------


def validate_document(
    doc: Any,
    source: Path,
    *,
    registry: Registry | None = None,
) -> list[ValidationIssue]:
    """Validate an already-parsed record-type document."""
    if registry is None:
        registry = _load_registry()
    validator = Draft202012Validator(_load_schema(RECORD_TYPE_SCHEMA), registry=registry)
    return [
        ValidationIssue(file=source, message=error.message, path=_json_path(error))
        for error in sorted(validator.iter_errors(doc), key=lambda e: list(e.path))
    ]


def validate_yaml_file(
    yaml_path: Path,
    *,
    registry: Registry | None = None,
) -> list[ValidationIssue]:
    """
    Validate a single record-type YAML file.

    Args:
        yaml_path: Path to the YAML file to validate.
        registry:  Pre-built schema registry.  Built automatically if omitted.

    Returns:
        A list of :class:`ValidationIssue` objects (empty on success).
    """
    try:
        with yaml_path.open() as fh:
            raw = yaml.safe_load(fh)
    except yaml.YAMLError as exc:
        return [ValidationIssue(file=yaml_path, message=f"YAML parse error: {exc}")]

    if raw is None:
        return [
            ValidationIssue(file=yaml_path, message="File is empty or contains only whitespace")
        ]

    return validate_document(raw, yaml_path, registry=registry)


def validate_metadata_dir(metadata_dir: Path) -> list[ValidationIssue]:
    """
    Validate every ``record_types/*.yaml`` file under *metadata_dir*.

    Returns:
        A flat list of :class:`ValidationIssue` objects across all files.
        Empty list means all files are valid.
    """
    if not metadata_dir.is_dir():
        return [
            ValidationIssue(
                file=metadata_dir,
                message=f"Metadata directory does not exist: {metadata_dir}",
            )
        ]

    # Build registry once, shared across all file validations
    try:
        registry = _load_registry()
    except (FileNotFoundError, json.JSONDecodeError) as exc:
        return [
            ValidationIssue(
                file=_SCHEMAS_DIR,
                message=f"Failed to load JSON Schema files: {exc}",
            )
        ]

    all_issues: list[ValidationIssue] = []
    target = metadata_dir / RECORD_TYPES_DIR
    if not target.is_dir():
        return all_issues
    for yaml_file in sorted(target.glob("*.yaml")):
        all_issues.extend(validate_yaml_file(yaml_file, registry=registry))
    return all_issues
