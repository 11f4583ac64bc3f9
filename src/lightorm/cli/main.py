"""LightORM CLI entry point."""

import logging

import click


@click.group()
@click.option("--verbose", "-v", is_flag=True, default=False, help="Log SQL and cache activity.")
def cli(verbose: bool):
    """LightORM: metadata-driven mapping engine CLI."""
    if verbose:
        logging.basicConfig(
            level=logging.DEBUG, format="%(levelname)s %(name)s: %(message)s"
        )


# Register subcommand groups
from lightorm.cli.metadata_cmd import metadata  # noqa: E402
from lightorm.cli.schema_cmd import schema  # noqa: E402

cli.add_command(metadata)
cli.add_command(schema)
