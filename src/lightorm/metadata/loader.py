"""Load record types declared in YAML files.

A metadata directory holds one file per table under ``record_types/``:

    table: employees
    class: Employee
    fields:
      - name: first_name
        type: string
        length: 50
      - name: supervisor_id
        type: integer
        nullable: true
        foreignKey: {table: employees}
    relationships:
      - kind: oneToOne
        name: supervisor
      - kind: oneToMany
        name: subordinates
        related: employees
        remoteForeignKey: supervisor_id

Each file is validated against the bundled JSON Schema, turned into a
``Record`` dataclass with ``dataclasses.make_dataclass`` and registered
through ``@record_type``, the same path hand-written record types take.
"""

import dataclasses
import logging
from datetime import datetime
from decimal import Decimal
from pathlib import Path
from typing import Any

import yaml

from lightorm.errors import ConfigurationError
from lightorm.metadata.descriptors import ForeignKey, TimestampDefault
from lightorm.metadata.record import (
    Record,
    column,
    many_to_many,
    one_to_many,
    one_to_one,
    record_type,
)
from lightorm.metadata.registry import MetadataRegistry, default_registry
from lightorm.metadata.validator import RECORD_TYPES_DIR, validate_document

logger = logging.getLogger(__name__)

_PYTHON_TYPES: dict[str, type] = {
    "integer": int,
    "bigint": int,
    "string": str,
    "char": str,
    "boolean": bool,
    "timestamp": datetime,
    "decimal": Decimal,
    "float": float,
    "double": float,
}

_TIMESTAMP_SENTINELS = {sentinel.value: sentinel for sentinel in TimestampDefault}


def _default_value(semantic_type: str, raw: Any) -> Any:
    """Convert a YAML default to the value the column declaration expects."""
    if raw is None:
        return None
    if semantic_type == "timestamp":
        if raw in _TIMESTAMP_SENTINELS:
            return _TIMESTAMP_SENTINELS[raw]
        return datetime.fromisoformat(str(raw))
    if semantic_type == "decimal":
        return Decimal(str(raw))
    if semantic_type in ("float", "double"):
        return float(raw)
    return raw


class MetadataLoader:
    """Loads record-type definitions from YAML files."""

    def __init__(self, metadata_path: Path, registry: MetadataRegistry | None = None):
        self.metadata_path = metadata_path
        self.registry = registry if registry is not None else default_registry
        self.record_types: dict[str, type] = {}

    def load_all(self) -> dict[str, type]:
        """Load and register every record type.

        Returns:
            Record classes keyed by table name

        Raises:
            ConfigurationError: If a file fails schema validation or its
                metadata is inconsistent
        """
        types_path = self.metadata_path / RECORD_TYPES_DIR
        if not types_path.exists():
            return self.record_types

        for yaml_file in sorted(types_path.glob("*.yaml")):
            with open(yaml_file) as f:
                data = yaml.safe_load(f)
            if not data:
                continue
            issues = validate_document(data, yaml_file)
            if issues:
                details = "; ".join(str(issue) for issue in issues)
                raise ConfigurationError(f"Invalid record type metadata: {details}")
            cls = self._build_record_type(data)
            self.record_types[data["table"]] = cls
            logger.debug("Loaded record type %s from %s", cls.__name__, yaml_file)

        return self.record_types

    def _build_record_type(self, data: dict) -> type:
        specs: list[tuple[str, Any, Any]] = []
        for field_data in data["fields"]:
            specs.append(self._field_spec(field_data))
        for relationship in data.get("relationships", []):
            specs.append(self._relationship_spec(relationship))

        cls = dataclasses.make_dataclass(
            data["class"], specs, bases=(Record,), kw_only=True
        )
        return record_type(data["table"], registry=self.registry)(cls)

    def _field_spec(self, data: dict) -> tuple[str, Any, Any]:
        semantic_type = data["type"]
        python_type: Any = _PYTHON_TYPES[semantic_type]
        nullable = data.get("nullable", False)
        if nullable:
            python_type = python_type | None

        foreign_key = None
        if "foreignKey" in data:
            fk = data["foreignKey"]
            foreign_key = ForeignKey(fk["table"], fk.get("column", "id"))

        declaration = column(
            name=data.get("column"),
            type=semantic_type,
            nullable=nullable,
            max_length=data.get("length"),
            precision=data.get("precision"),
            scale=data.get("scale"),
            unsigned=data.get("unsigned", False),
            unique=data.get("unique", False),
            indexed=data.get("indexed", False),
            check=data.get("check"),
            enum=data.get("enum"),
            default=_default_value(semantic_type, data.get("default")),
            foreign_key=foreign_key,
        )
        return data["name"], python_type, declaration

    def _relationship_spec(self, data: dict) -> tuple[str, Any, Any]:
        kind = data["kind"]
        if kind == "oneToOne":
            declaration = one_to_one(data.get("related"), data.get("foreignKey"))
        elif kind == "oneToMany":
            declaration = one_to_many(data["related"], data["remoteForeignKey"])
        else:
            declaration = many_to_many(
                data["related"],
                data["associationTable"],
                data["sourceForeignKey"],
                data["targetForeignKey"],
            )
        return data["name"], Any, declaration
