"""Main CLI entry point."""

import click
from estimatekit.config import Settings
from estimatekit.database.factories import create_sqlite_database
from estimatekit.logging import setup_logging

# Import and register all commands at module level
from estimatekit.cli.commands import (
    project,
    view,
    section,
    item,
    version,
    act,
    payment,
    completion,
    material,
)


@click.group()
@click.option(
    "--db-path",
    type=click.Path(),
    help="Path to database file (overrides ESTIMATEKIT_DB_PATH environment variable)",
    envvar="ESTIMATEKIT_DB_PATH",
)
@click.option("--log-level", help="Log level (overrides ESTIMATEKIT_LOG_LEVEL)")
@click.pass_context
def cli(ctx, db_path: str | None, log_level: str | None):
    """Estimatekit - Construction cost estimates.

    Keep a project estimate priced through several views, freeze versions,
    issue acts of completed work and track payments against estimate items.
    """
    ctx.ensure_object(dict)
    settings = Settings.from_env()
    setup_logging(log_level or settings.log_level, settings.log_format)
    ctx.obj["settings"] = settings

    # Initialize database connection only when actually running a command
    # (not when showing help)
    if ctx.invoked_subcommand is not None:
        db = create_sqlite_database(database_path=db_path, settings=settings)
        db.connect()
        db.initialize_schema()
        ctx.obj["db"] = db


# Register all commands
project.register_commands(cli)
view.register_commands(cli)
section.register_commands(cli)
item.register_commands(cli)
version.register_commands(cli)
act.register_commands(cli)
payment.register_commands(cli)
completion.register_commands(cli)
material.register_commands(cli)


def main():
    """Main entry point for CLI."""
    cli()


if __name__ == "__main__":
    main()
