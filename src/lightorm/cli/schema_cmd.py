"""Schema CLI commands: show and create tables for record types."""

import asyncio
from pathlib import Path

import click

from lightorm.cli.metadata_cmd import resolve_metadata_path
from lightorm.errors import LightOrmError
from lightorm.metadata.loader import MetadataLoader
from lightorm.metadata.registry import MetadataRegistry
from lightorm.persistence.cache import IdentityCache
from lightorm.persistence.config import DatabaseConfig, create_executor
from lightorm.persistence.repository import Repository
from lightorm.sql.dialect import DIALECTS, get_dialect
from lightorm.sql.schema import schema_statements


def _load(metadata_path: Path) -> tuple[MetadataRegistry, dict[str, type]]:
    if not metadata_path.exists():
        click.echo(f"Error: Metadata directory not found at {metadata_path}", err=True)
        raise SystemExit(1)
    registry = MetadataRegistry()
    try:
        loaded = MetadataLoader(metadata_path, registry).load_all()
    except LightOrmError as e:
        click.echo(click.style(f"Error: {e}", fg="red"), err=True)
        raise SystemExit(1)
    return registry, loaded


@click.group()
def schema():
    """Schema commands."""
    pass


@schema.command()
@click.option(
    "--path",
    "metadata_path",
    default=None,
    type=click.Path(exists=True, file_okay=False, path_type=Path),
    help="Metadata directory (default: ./metadata).",
)
@click.option(
    "--dialect",
    "dialect_name",
    default="sqlite",
    type=click.Choice(sorted(DIALECTS)),
    show_default=True,
    help="SQL dialect to render.",
)
def show(metadata_path: Path | None, dialect_name: str):
    """Print the DDL for every record type."""
    registry, loaded = _load(resolve_metadata_path(metadata_path))
    dialect = get_dialect(dialect_name)

    try:
        for cls in loaded.values():
            for sql in schema_statements(cls, dialect, registry):
                click.echo(f"{sql};")
    except LightOrmError as e:
        click.echo(click.style(f"Error: {e}", fg="red"), err=True)
        raise SystemExit(1)


async def _ensure(config: DatabaseConfig, registry: MetadataRegistry, types: list[type]) -> None:
    executor = create_executor(config)
    await executor.open()
    try:
        cache = IdentityCache()
        for cls in types:
            await Repository(cls, executor, cache, registry).ensure_schema()
    finally:
        await executor.close()


@schema.command()
@click.option(
    "--path",
    "metadata_path",
    default=None,
    type=click.Path(exists=True, file_okay=False, path_type=Path),
    help="Metadata directory (default: ./metadata).",
)
@click.option(
    "--url",
    default=None,
    help="Database URL (default: DATABASE_URL, then LIGHTORM_DB_PATH, then ./lightorm.db).",
)
def ensure(metadata_path: Path | None, url: str | None):
    """Create missing tables and indexes for every record type."""
    registry, loaded = _load(resolve_metadata_path(metadata_path))
    config = DatabaseConfig(url=url) if url else DatabaseConfig.from_env()

    try:
        asyncio.run(_ensure(config, registry, list(loaded.values())))
    except (LightOrmError, ValueError) as e:
        click.echo(click.style(f"Error: {e}", fg="red"), err=True)
        raise SystemExit(1)

    click.echo(f"Ensured {len(loaded)} table(s) at {config.url}")
