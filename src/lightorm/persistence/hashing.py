"""Content hashing for cache validation.

The hash covers every column except the primary key and the hash column
itself, in declaration order, so a row whose stored hash matches the
cached one is known to carry the same values. Values are rendered in a
canonical text form and joined with ``|``:

    None      -> \\N
    bool      -> 1 / 0
    datetime  -> ISO-8601
    Decimal   -> fixed-point, at the column's scale
    other     -> str()

The digest is SHA-256, base64-encoded (44 characters, fits CHAR(44)).
"""

import base64
import hashlib
from datetime import date, datetime
from decimal import Decimal
from typing import Any

from lightorm.metadata.descriptors import FieldDescriptor, RecordType
from lightorm.sql.dialect import quantize

NULL_MARKER = "\\N"
SEPARATOR = "|"


def canonical_value(field: FieldDescriptor, value: Any) -> str:
    """Stable text form of one column value."""
    if value is None:
        return NULL_MARKER
    if isinstance(value, bool):
        return "1" if value else "0"
    if isinstance(value, (datetime, date)):
        return value.isoformat()
    if field.semantic_type == "decimal" or isinstance(value, Decimal):
        return format(quantize(field, value), "f")
    return str(value)


def content_hash(record_type: RecordType, record: Any) -> str:
    """Base64 SHA-256 over the canonical values of the hashed columns."""
    payload = SEPARATOR.join(
        canonical_value(f, getattr(record, f.attribute))
        for f in record_type.hashed_fields
    )
    digest = hashlib.sha256(payload.encode("utf-8")).digest()
    return base64.b64encode(digest).decode("ascii")
