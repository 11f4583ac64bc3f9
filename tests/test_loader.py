"""Tests for YAML record types: schema validation and loading."""

from pathlib import Path

import pytest

from lightorm import ConfigurationError, IdentityCache, Repository
from lightorm.metadata.loader import MetadataLoader
from lightorm.metadata.registry import MetadataRegistry
from lightorm.metadata.validator import validate_metadata_dir, validate_yaml_file

DEPARTMENTS_YAML = """\
table: departments
class: Department
fields:
  - name: name
    type: string
    length: 100
    unique: true
  - name: budget
    type: decimal
    precision: 12
    scale: 2
    nullable: true
    default: 0
relationships:
  - kind: oneToMany
    name: employees
    related: employees
    remoteForeignKey: department_id
"""

EMPLOYEES_YAML = """\
table: employees
class: Employee
fields:
  - name: first_name
    type: string
    length: 50
  - name: status
    type: string
    length: 20
    enum: [active, inactive]
    default: active
  - name: hired_at
    type: timestamp
    nullable: true
    default: CURRENT_TIMESTAMP
  - name: department_id
    type: integer
    nullable: true
    indexed: true
    foreignKey:
      table: departments
  - name: supervisor_id
    type: integer
    nullable: true
    foreignKey:
      table: employees
relationships:
  - kind: oneToOne
    name: department
  - kind: oneToOne
    name: supervisor
    foreignKey: supervisor_id
  - kind: oneToMany
    name: subordinates
    related: employees
    remoteForeignKey: supervisor_id
"""


@pytest.fixture
def metadata_dir(tmp_path) -> Path:
    types_dir = tmp_path / "record_types"
    types_dir.mkdir()
    (types_dir / "departments.yaml").write_text(DEPARTMENTS_YAML)
    (types_dir / "employees.yaml").write_text(EMPLOYEES_YAML)
    return tmp_path


def write_record_type(metadata_dir: Path, name: str, text: str) -> Path:
    path = metadata_dir / "record_types" / name
    path.write_text(text)
    return path


class TestValidator:
    def test_valid_directory(self, metadata_dir):
        assert validate_metadata_dir(metadata_dir) == []

    def test_missing_directory(self, tmp_path):
        issues = validate_metadata_dir(tmp_path / "nope")
        assert len(issues) == 1
        assert "does not exist" in issues[0].message

    def test_unknown_field_type(self, metadata_dir):
        path = write_record_type(
            metadata_dir,
            "bad.yaml",
            "table: bad\nclass: Bad\nfields:\n  - name: x\n    type: uuid\n",
        )
        issues = validate_yaml_file(path)
        assert len(issues) == 1
        assert issues[0].path == "fields[0]/type"
        assert "uuid" in str(issues[0])

    def test_unsafe_table_name(self, metadata_dir):
        path = write_record_type(
            metadata_dir,
            "evil.yaml",
            'table: "users; DROP TABLE users"\nclass: Evil\nfields: []\n',
        )
        issues = validate_yaml_file(path)
        assert [i.path for i in issues] == ["table"]

    def test_one_to_many_requires_remote_key(self, metadata_dir):
        path = write_record_type(
            metadata_dir,
            "teams.yaml",
            "table: teams\nclass: Team\nfields: []\n"
            "relationships:\n  - kind: oneToMany\n    name: members\n    related: members\n",
        )
        issues = validate_yaml_file(path)
        assert any("remoteForeignKey" in i.message for i in issues)

    def test_empty_file(self, metadata_dir):
        path = write_record_type(metadata_dir, "empty.yaml", "")
        issues = validate_yaml_file(path)
        assert "empty" in issues[0].message

    def test_yaml_parse_error(self, metadata_dir):
        path = write_record_type(metadata_dir, "broken.yaml", "table: [unclosed\n")
        issues = validate_yaml_file(path)
        assert "YAML parse error" in issues[0].message


class TestMetadataLoader:
    def test_load_all_registers_types(self, metadata_dir):
        registry = MetadataRegistry()
        loaded = MetadataLoader(metadata_dir, registry).load_all()

        assert sorted(loaded) == ["departments", "employees"]
        employee_cls = loaded["employees"]
        assert employee_cls.__name__ == "Employee"
        assert registry.type_for_table_name("employees") is employee_cls

        by_name = {f.name: f for f in registry.describe(employee_cls)}
        assert by_name["status"].enumerated_values == ("active", "inactive")
        assert by_name["department_id"].indexed
        assert by_name["department_id"].foreign_key.table == "departments"
        assert by_name["hired_at"].nullable

        supervisor = next(
            r for r in registry.relationships_of(employee_cls) if r.attribute == "supervisor"
        )
        assert supervisor.related == "employees"

    def test_missing_record_types_dir(self, tmp_path):
        assert MetadataLoader(tmp_path, MetadataRegistry()).load_all() == {}

    def test_invalid_file_raises(self, metadata_dir):
        write_record_type(
            metadata_dir, "bad.yaml", "table: bad\nclass: Bad\nfields:\n  - name: x\n"
        )
        with pytest.raises(ConfigurationError, match="Invalid record type metadata"):
            MetadataLoader(metadata_dir, MetadataRegistry()).load_all()

    def test_navigation_mismatch_raises(self, metadata_dir):
        write_record_type(
            metadata_dir,
            "staff.yaml",
            "table: staff\nclass: Staff\nfields:\n"
            "  - name: manager_id\n    type: integer\n    nullable: true\n"
            "relationships:\n"
            "  - kind: oneToOne\n    name: boss\n    related: staff\n    foreignKey: manager_id\n",
        )
        with pytest.raises(ConfigurationError, match="boss"):
            MetadataLoader(metadata_dir, MetadataRegistry()).load_all()

    @pytest.mark.asyncio
    async def test_loaded_types_persist_and_resolve(self, metadata_dir, executor):
        registry = MetadataRegistry()
        loaded = MetadataLoader(metadata_dir, registry).load_all()
        Department, Employee = loaded["departments"], loaded["employees"]
        cache = IdentityCache()
        departments = Repository(Department, executor, cache, registry)
        employees = Repository(Employee, executor, cache, registry)
        await departments.ensure_schema()
        await employees.ensure_schema()

        research = Department(name="Research")
        await departments.save(research)
        boss = Employee(first_name="Grace", department_id=research.id)
        await employees.save(boss)
        await employees.save(Employee(first_name="Ada", supervisor_id=boss.id))

        assert research.budget == 0
        assert boss.status == "active"
        assert boss.hired_at is not None

        loaded_boss = await employees.find_by_id(boss.id, include_related=True)
        assert loaded_boss.department.name == "Research"
        assert [s.first_name for s in loaded_boss.subordinates] == ["Ada"]

        loaded_research = await departments.find_by_id(research.id, include_related=True)
        assert [e.first_name for e in loaded_research.employees] == ["Grace"]
