"""Business report commands."""

import click

from rentdesk.cli.context import build_service
from rentdesk.cli.date_filters import period_flags_from, period_options, resolve_cli_date_range
from rentdesk.cli.error_handling import handle_domain_error
from rentdesk.domain.dashboard import DEFAULT_TOP_LIMIT, DashboardService
from rentdesk.domain.entities import RevenueGrouping
from rentdesk.domain.item import ItemService


def _dashboard_service(ctx) -> DashboardService:
    return DashboardService(ctx.obj["db"], clock=ctx.obj["clock"])


def _echo_items(items, empty_message: str):
    if not items:
        click.echo(empty_message)
        return
    category = None
    for i in items:
        if i.category != category:
            category = i.category
            click.echo(f"\n{category}:")
        click.echo(f"  ID: {i.id:3d} | {i.code:10s} | {i.name:20s} | {i.base_rental_value:>8.2f}/{i.rental_period.value}")


@click.group()
def report_group():
    """Revenue, rankings and item availability reports."""
    pass


@report_group.command("revenue")
@click.option("--start-date", help="First day (inclusive)")
@click.option("--end-date", help="Last day (inclusive)")
@click.option("--year", type=int, help="Whole calendar year, per month")
@click.option(
    "--group-by",
    type=click.Choice([g.value for g in RevenueGrouping]),
    default=RevenueGrouping.DAY.value,
    show_default=True,
    help="Bucket size",
)
@period_options
@click.pass_context
def revenue(ctx, start_date: str | None, end_date: str | None, year: int | None, group_by: str, **kwargs):
    """Payment revenue per day, week or month.

    Defaults to the current month, per day.

    Examples:
        rentdesk report revenue --this-month
        rentdesk report revenue --start-date 2024-01-01 --end-date 2024-03-31 --group-by week
        rentdesk report revenue --year 2024
    """
    service = _dashboard_service(ctx)
    period_flags = period_flags_from(kwargs)
    if year is not None and (start_date or end_date or any(period_flags.values())):
        click.echo("Error: --year cannot be combined with other date options.", err=True)
        ctx.exit(1)

    try:
        if year is not None:
            title = f"Revenue {year}, per month"
            periods = service.revenue_by_month(year)
        else:
            today = ctx.obj["clock"].now().date()
            start, end = resolve_cli_date_range(
                ctx,
                start_date=start_date,
                end_date=end_date,
                period_flags=period_flags,
                today=today,
                default_range=(today.replace(day=1), today),
            )
            end = end or today
            start = start or end
            title = f"Revenue {start.isoformat()} to {end.isoformat()}, per {group_by}"
            periods = service.revenue_by_period(start, end, RevenueGrouping(group_by))
    except ValueError as e:
        handle_domain_error(ctx, e)

    click.echo(f"\n{title}")
    click.echo("-" * 50)
    if not periods:
        click.echo("No payments in this period.")
        return
    for p in periods:
        click.echo(f"{p.period:12s} {p.total:>12.2f}  ({p.count} payment(s))")
    click.echo("-" * 50)
    click.echo(f"{'Total':12s} {sum(p.total for p in periods):>12.2f}")


@report_group.command("top-items")
@click.option("--limit", type=int, default=DEFAULT_TOP_LIMIT, show_default=True, help="Number of items to show")
@click.pass_context
def top_items(ctx, limit: int):
    """Most rented items."""
    try:
        ranking = _dashboard_service(ctx).top_items(limit)
    except ValueError as e:
        handle_domain_error(ctx, e)
    if not ranking:
        click.echo("No rentals yet.")
        return

    click.echo("\nTop items:")
    click.echo("-" * 70)
    for position, t in enumerate(ranking, start=1):
        click.echo(
            f"{position:2d}. {t.item_code:10s} | {t.item_name:20s} | {t.rental_count:4d} rental(s) | {t.total_revenue:>10.2f}"
        )


@report_group.command("top-clients")
@click.option("--limit", type=int, default=DEFAULT_TOP_LIMIT, show_default=True, help="Number of clients to show")
@click.pass_context
def top_clients(ctx, limit: int):
    """Clients with the highest rental totals."""
    try:
        ranking = _dashboard_service(ctx).top_clients(limit)
    except ValueError as e:
        handle_domain_error(ctx, e)
    if not ranking:
        click.echo("No rentals yet.")
        return

    click.echo("\nTop clients:")
    click.echo("-" * 70)
    for position, t in enumerate(ranking, start=1):
        click.echo(f"{position:2d}. {t.client_name:25s} | {t.rental_count:4d} rental(s) | {t.total_spent:>10.2f}")


@report_group.command("available")
@click.pass_context
def available(ctx):
    """Items ready to rent, grouped by category."""
    _echo_items(build_service(ctx, ItemService).available_items(), "No items available.")


@report_group.command("maintenance")
@click.pass_context
def maintenance(ctx):
    """Items in maintenance, grouped by category."""
    _echo_items(build_service(ctx, ItemService).maintenance_items(), "No items in maintenance.")


def register_commands(cli):
    """Register report commands with main CLI."""
    cli.add_command(report_group, name="report")
