"""Metadata CLI commands: validate record-type YAML files."""

from pathlib import Path

import click

from lightorm.errors import LightOrmError
from lightorm.metadata.loader import MetadataLoader
from lightorm.metadata.registry import MetadataRegistry
from lightorm.metadata.validator import validate_metadata_dir, validate_yaml_file


def resolve_metadata_path(path: Path | None) -> Path:
    """Explicit path, or ``metadata/`` under the current directory."""
    if path is not None:
        return path
    return Path.cwd() / "metadata"


@click.group()
def metadata():
    """Metadata commands."""
    pass


@metadata.command()
@click.option(
    "--path",
    "target_path",
    default=None,
    type=click.Path(exists=True, path_type=Path),
    help="Metadata directory, or a single record-type YAML file.",
)
def validate(target_path: Path | None):
    """Validate record-type YAML files, then load them."""
    if target_path is not None and target_path.is_file():
        issues = validate_yaml_file(target_path)
        metadata_path = None
    else:
        metadata_path = resolve_metadata_path(target_path)
        if not metadata_path.exists():
            click.echo(f"Error: Metadata directory not found at {metadata_path}", err=True)
            raise SystemExit(1)
        issues = validate_metadata_dir(metadata_path)

    for issue in issues:
        click.echo(click.style(str(issue), fg="red"))

    if issues:
        click.echo(click.style(f"\n{len(issues)} schema error(s) found", fg="red", bold=True))
        raise SystemExit(1)

    # Semantic validation only runs for a whole directory
    if metadata_path is not None:
        registry = MetadataRegistry()
        try:
            loaded = MetadataLoader(metadata_path, registry).load_all()
        except LightOrmError as e:
            click.echo(click.style(f"\nSemantic validation failed: {e}", fg="red"), err=True)
            raise SystemExit(1)

        click.echo(f"\nLoaded {len(loaded)} record types:")
        for table in sorted(loaded):
            record_type = registry.record_type(loaded[table])
            click.echo(
                f"  ✓ {table} ({len(record_type.fields)} columns, "
                f"{len(record_type.relationships)} relationships)"
            )

    click.echo(click.style("\nAll metadata is valid.", fg="green", bold=True))
