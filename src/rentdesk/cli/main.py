"""Main CLI entry point."""

import click

from rentdesk.database.factories import create_sqlite_database
from rentdesk.domain.audit import LoggingAuditSink
from rentdesk.domain.clock import SystemClock
from rentdesk.logging_config import configure_logging

# Import and register all commands at module level
from rentdesk.cli.commands import (
    cashier,
    client,
    dashboard,
    item,
    payment,
    rental,
    report,
)

LOG_LEVELS = ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]


@click.group()
@click.option(
    "--db-path",
    type=click.Path(),
    help="Path to database file (overrides RENTDESK_DB_PATH environment variable)",
    envvar="RENTDESK_DB_PATH",
)
@click.option(
    "--log-level",
    type=click.Choice(LOG_LEVELS, case_sensitive=False),
    default="WARNING",
    show_default=True,
    envvar="RENTDESK_LOG_LEVEL",
    help="Logging level (audit events are logged at INFO)",
)
@click.option(
    "--user",
    "user_id",
    type=int,
    default=1,
    show_default=True,
    envvar="RENTDESK_USER",
    help="ID of the acting operator",
)
@click.pass_context
def cli(ctx, db_path: str | None, log_level: str, user_id: int):
    """Rentdesk - Rental back office.

    Manage clients, rental items, rentals and payments, and keep a
    per-operator cash register.
    """
    ctx.ensure_object(dict)
    configure_logging(log_level)

    # Initialize database connection only when actually running a command
    # (not when showing help)
    if ctx.invoked_subcommand is not None:
        db = create_sqlite_database(database_path=db_path)
        db.connect()
        db.initialize_schema()
        ctx.obj["db"] = db
        ctx.obj["user_id"] = user_id
        ctx.obj.setdefault("clock", SystemClock())
        ctx.obj.setdefault("audit", LoggingAuditSink(origin="cli"))
        ctx.call_on_close(db.disconnect)


# Register all commands
client.register_commands(cli)
item.register_commands(cli)
rental.register_commands(cli)
payment.register_commands(cli)
cashier.register_commands(cli)
dashboard.register_commands(cli)
report.register_commands(cli)


def main():
    """Main entry point for CLI."""
    cli()


if __name__ == "__main__":
    main()
