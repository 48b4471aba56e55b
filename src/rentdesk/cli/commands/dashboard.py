"""Dashboard command."""

from datetime import timedelta

import click

from rentdesk.cli.error_handling import handle_domain_error
from rentdesk.domain.dashboard import DashboardService


@click.command()
@click.option("--days", type=int, default=7, show_default=True, help="Days of revenue history to show")
@click.pass_context
def dashboard(ctx, days: int):
    """Show headline numbers: items, rentals and revenue."""
    clock = ctx.obj["clock"]
    service = DashboardService(ctx.obj["db"], clock=clock)
    snapshot = service.get_snapshot()

    click.echo("\nDashboard")
    click.echo("=" * 40)
    click.echo(f"Clients:            {snapshot.total_clients}")
    click.echo(
        f"Items:              {snapshot.total_items} "
        f"({snapshot.items_available} available, {snapshot.items_rented} rented, "
        f"{snapshot.items_maintenance} in maintenance)"
    )
    click.echo(f"Active rentals:     {snapshot.active_rentals}")
    click.echo(f"Overdue rentals:    {snapshot.overdue_rentals}")
    click.echo(f"Revenue today:      {snapshot.revenue_today:>10.2f}")
    click.echo(f"Revenue this month: {snapshot.revenue_month:>10.2f}")
    click.echo(f"Revenue total:      {snapshot.revenue_total:>10.2f}")

    if days > 0:
        today = clock.now().date()
        try:
            points = service.revenue_by_day(today - timedelta(days=days - 1), today)
        except ValueError as e:
            handle_domain_error(ctx, e)
        if points:
            click.echo(f"\nRevenue, last {days} day(s):")
            for p in points:
                click.echo(f"  {p.day.isoformat()}  {p.total:>10.2f}  ({p.count} payment(s))")

    stats = service.payment_method_stats()
    if stats:
        click.echo("\nBy payment method:")
        for s in stats:
            click.echo(f"  {s.method.value:12s} {s.total:>10.2f}  ({s.count})")


def register_commands(cli):
    """Register dashboard command with main CLI."""
    cli.add_command(dashboard)
