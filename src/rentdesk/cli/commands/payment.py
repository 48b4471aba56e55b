"""Payment commands."""

import click

from rentdesk.cli.context import acting_user, build_service
from rentdesk.cli.error_handling import handle_domain_error
from rentdesk.domain.entities import PaymentMethod
from rentdesk.domain.payment import PaymentService
from rentdesk.utils.amount_parser import parse_amount
from rentdesk.utils.date_parser import parse_datetime


@click.group()
def payment_group():
    """Record and inspect rental payments."""
    pass


@payment_group.command("add")
@click.argument("rental_id", type=int)
@click.argument("amount")
@click.option(
    "--method",
    type=click.Choice([m.value for m in PaymentMethod]),
    default=PaymentMethod.CASH.value,
    show_default=True,
    help="Payment method",
)
@click.option("--date", "payment_date", help="Payment date (defaults to now)")
@click.option("--notes", help="Notes")
@click.pass_context
def add_payment(ctx, rental_id: int, amount: str, method: str, payment_date: str | None, notes: str | None):
    """Record a payment against a rental.

    Examples:
        rentdesk payment add 4 25.00 --method pix
    """
    service = build_service(ctx, PaymentService)
    try:
        paid_at = parse_datetime(payment_date, now=ctx.obj["clock"].now()) if payment_date else None
        payment = service.create(
            rental_id=rental_id,
            amount=parse_amount(amount),
            method=PaymentMethod(method),
            user_id=acting_user(ctx),
            payment_date=paid_at,
            notes=notes,
        )
        click.echo(f"Recorded payment {payment.id}: {payment.amount:.2f} via {payment.method.value}")
    except ValueError as e:
        handle_domain_error(ctx, e)


@payment_group.command("list")
@click.option("--rental", "rental_id", type=int, help="Filter by rental ID")
@click.option("--method", type=click.Choice([m.value for m in PaymentMethod]), help="Filter by method")
@click.pass_context
def list_payments(ctx, rental_id: int | None, method: str | None):
    """List payments, newest first."""
    service = build_service(ctx, PaymentService)
    payments = service.list_payments(
        rental_id=rental_id,
        method=PaymentMethod(method) if method else None,
    )
    if not payments:
        click.echo("No payments found.")
        return

    click.echo("\nPayments:")
    click.echo("-" * 80)
    for p in payments:
        click.echo(
            f"ID: {p.id:3d} | rental {p.rental_id:3d} | {p.payment_date:%Y-%m-%d %H:%M} | "
            f"{p.amount:>10.2f} | {p.method.value:12s} | {p.notes or ''}"
        )


@payment_group.command("balance")
@click.argument("rental_id", type=int)
@click.pass_context
def show_balance(ctx, rental_id: int):
    """Show total, paid and remaining amounts of a rental."""
    service = build_service(ctx, PaymentService)
    try:
        balance = service.get_balance(rental_id)
        click.echo(f"Total:     {balance.total_value:>10.2f}")
        click.echo(f"Paid:      {balance.total_paid:>10.2f}")
        click.echo(f"Remaining: {balance.remaining:>10.2f}")
    except ValueError as e:
        handle_domain_error(ctx, e)


def register_commands(cli):
    """Register payment commands with main CLI."""
    cli.add_command(payment_group, name="payment")
