"""Tests for content hashing."""

from datetime import datetime
from decimal import Decimal

from lightorm.persistence.hashing import NULL_MARKER, canonical_value, content_hash
from sample_models import Employee, Widget, registry

WIDGETS = registry.record_type(Widget)
EMPLOYEES = registry.record_type(Employee)
STAMP = datetime(2024, 5, 6, 7, 8, 9)


def widget(**overrides) -> Widget:
    values = {"name": "gear", "quantity": 2, "created_at": STAMP, "updated_at": STAMP}
    values.update(overrides)
    return Widget(**values)


class TestCanonicalValue:
    def test_forms(self):
        salary = EMPLOYEES.field_by_column("salary")
        active = EMPLOYEES.field_by_column("active")
        assert canonical_value(active, None) == NULL_MARKER == "\\N"
        assert canonical_value(active, True) == "1"
        assert canonical_value(active, False) == "0"
        assert canonical_value(salary, Decimal("1.5")) == "1.50"
        assert canonical_value(salary, Decimal("1E+2")) == "100.00"
        assert canonical_value(active, STAMP) == "2024-05-06T07:08:09"


class TestContentHash:
    def test_shape(self):
        digest = content_hash(WIDGETS, widget())
        assert len(digest) == 44
        assert digest.endswith("=")

    def test_deterministic(self):
        assert content_hash(WIDGETS, widget()) == content_hash(WIDGETS, widget())

    def test_sensitive_to_values(self):
        assert content_hash(WIDGETS, widget()) != content_hash(WIDGETS, widget(quantity=3))
        assert content_hash(WIDGETS, widget()) != content_hash(
            WIDGETS, widget(updated_at=datetime(2024, 5, 6, 7, 8, 10))
        )

    def test_ignores_key_and_hash_column(self):
        base = content_hash(WIDGETS, widget())
        assert content_hash(WIDGETS, widget(id=42)) == base
        assert content_hash(WIDGETS, widget(content_hash="stale")) == base

    def test_null_differs_from_text_marker(self):
        first = Employee(first_name="A", last_name="B", salary=None)
        second = Employee(first_name="A", last_name="B", salary=Decimal("0"))
        assert content_hash(EMPLOYEES, first) != content_hash(EMPLOYEES, second)

    def test_decimal_scale_normalized(self):
        first = Employee(first_name="A", last_name="B", salary=Decimal("1.5"))
        second = Employee(first_name="A", last_name="B", salary=Decimal("1.50"))
        assert content_hash(EMPLOYEES, first) == content_hash(EMPLOYEES, second)
