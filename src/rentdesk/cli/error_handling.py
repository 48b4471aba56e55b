"""CLI error handling helpers."""

import logging

import click

from rentdesk.domain.errors import DomainError

logger = logging.getLogger(__name__)


def handle_domain_error(ctx: click.Context, error: DomainError | ValueError) -> None:
    """Render a domain error and exit with failure.

    Plain ValueErrors come from the input parsers and are shown the same way.
    """
    logger.debug("%s in %s: %s", type(error).__name__, ctx.command_path, error)
    click.echo(f"Error: {error}", err=True)
    ctx.exit(1)
