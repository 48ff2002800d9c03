"""CLI error handling helpers."""

import click
import structlog

from estimatekit.domain.errors import DomainError, ExternalServiceError, ItemLockedError

logger = structlog.get_logger(__name__)


def handle_domain_error(ctx: click.Context, error: DomainError | ValueError) -> None:
    """Print the error to stderr and exit with status 1.

    Provider and parser failures are also logged with the failing command,
    lock conflicts with the command that hit them.
    """
    if isinstance(error, ExternalServiceError):
        logger.warning("external_service_failed", command=ctx.command_path, error=str(error))
    elif isinstance(error, ItemLockedError):
        logger.info("locked_item_rejected", command=ctx.command_path)
    click.echo(f"Error: {error}", err=True)
    ctx.exit(1)
