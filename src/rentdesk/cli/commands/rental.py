"""Rental lifecycle commands."""

import click

from rentdesk.cli.context import acting_user, build_service
from rentdesk.cli.error_handling import handle_domain_error
from rentdesk.domain.entities import PaymentMethod, Rental, RentalStatus, SettlementMode
from rentdesk.domain.payment import PaymentService
from rentdesk.domain.rental import RentalService
from rentdesk.domain.settlement import CashierSettlementService
from rentdesk.utils.amount_parser import parse_amount
from rentdesk.utils.date_parser import parse_datetime

DATETIME_FORMAT = "%Y-%m-%d %H:%M"


def _format_rental(r: Rental) -> str:
    return (
        f"ID: {r.id:3d} | client {r.client_id:3d} | item {r.item_id:3d} | "
        f"{r.start_date:{DATETIME_FORMAT}} -> {r.expected_end_date:{DATETIME_FORMAT}} | "
        f"{r.total_value:>8.2f} | {r.status.value}"
    )


@click.group()
def rental_group():
    """Manage rentals."""
    pass


@rental_group.command("create")
@click.option("--client", "client_id", type=int, required=True, help="Client ID")
@click.option("--item", "item_id", type=int, required=True, help="Item ID")
@click.option("--start", default="now", show_default=True, help="Start (e.g. '2024-01-01 10:00', 'now')")
@click.option("--end", required=True, help="Expected end (e.g. '2024-01-01 12:00', '+2h', 'tomorrow 18:00')")
@click.option("--deposit", default="0", help="Deposit paid up front")
@click.option("--discount", default="0", help="Discount on the rental value")
@click.option("--tier", "tier_id", type=int, help="Pricing tier ID of the item")
@click.option("--observations", help="Notes")
@click.pass_context
def create_rental(
    ctx,
    client_id: int,
    item_id: int,
    start: str,
    end: str,
    deposit: str,
    discount: str,
    tier_id: int | None,
    observations: str | None,
):
    """Rent an item to a client.

    Examples:
        rentdesk rental create --client 1 --item 2 --end "+2h"
        rentdesk rental create --client 1 --item 2 --start "2024-01-01 10:00" --end "2024-01-01 12:00" --deposit 10
    """
    service = build_service(ctx, RentalService)
    now = ctx.obj["clock"].now()
    try:
        rental = service.create(
            client_id=client_id,
            item_id=item_id,
            start_date=parse_datetime(start, now=now),
            expected_end_date=parse_datetime(end, now=now),
            user_id=acting_user(ctx),
            deposit=parse_amount(deposit),
            discount=parse_amount(discount),
            observations=observations,
            pricing_tier_id=tier_id,
        )
        click.echo(
            f"Created rental {rental.id}: value {rental.rental_value:.2f}, "
            f"discount {rental.discount:.2f}, total {rental.total_value:.2f}"
        )
        if rental.deposit > 0:
            click.echo(f"Deposit {rental.deposit:.2f} recorded as payment")
    except ValueError as e:
        handle_domain_error(ctx, e)


@rental_group.command("show")
@click.argument("rental_id", type=int)
@click.pass_context
def show_rental(ctx, rental_id: int):
    """Show a rental with its payments and balance."""
    service = build_service(ctx, RentalService)
    payments = build_service(ctx, PaymentService)
    rental = service.get_rental(rental_id)
    if rental is None:
        click.echo(f"Error: Rental {rental_id} not found", err=True)
        ctx.exit(1)

    balance = payments.get_balance(rental_id)
    click.echo(f"\nRental {rental.id} ({rental.status.value})")
    click.echo("-" * 50)
    click.echo(f"Client:        {rental.client_id}")
    click.echo(f"Item:          {rental.item_id}")
    click.echo(f"Start:         {rental.start_date:{DATETIME_FORMAT}}")
    click.echo(f"Expected end:  {rental.expected_end_date:{DATETIME_FORMAT}}")
    if rental.actual_end_date:
        click.echo(f"Returned:      {rental.actual_end_date:{DATETIME_FORMAT}}")
    click.echo(f"Rental value:  {rental.rental_value:>10.2f}")
    click.echo(f"Discount:      {rental.discount:>10.2f}")
    click.echo(f"Late fee:      {rental.late_fee:>10.2f}")
    click.echo(f"Total:         {rental.total_value:>10.2f}")
    click.echo(f"Deposit:       {rental.deposit:>10.2f}")
    click.echo(f"Paid:          {balance.total_paid:>10.2f}")
    click.echo(f"Remaining:     {balance.remaining:>10.2f}")

    for p in payments.list_payments(rental_id=rental_id):
        note = f" - {p.notes}" if p.notes else ""
        click.echo(f"  Payment {p.id}: {p.amount:.2f} via {p.method.value} on {p.payment_date:{DATETIME_FORMAT}}{note}")


@rental_group.command("list")
@click.option("--status", type=click.Choice([s.value for s in RentalStatus]), help="Filter by status")
@click.option("--client", "client_id", type=int, help="Filter by client ID")
@click.option("--item", "item_id", type=int, help="Filter by item ID")
@click.pass_context
def list_rentals(ctx, status: str | None, client_id: int | None, item_id: int | None):
    """List rentals, newest first."""
    service = build_service(ctx, RentalService)
    rentals = service.list_rentals(
        status=RentalStatus(status) if status else None,
        client_id=client_id,
        item_id=item_id,
    )
    if not rentals:
        click.echo("No rentals found.")
        return

    click.echo("\nRentals:")
    click.echo("-" * 100)
    for r in rentals:
        click.echo(_format_rental(r))


@rental_group.command("complete")
@click.argument("rental_id", type=int)
@click.option("--at", "returned_at", help="Return time (defaults to now)")
@click.pass_context
def complete_rental(ctx, rental_id: int, returned_at: str | None):
    """Complete a rental, charging a late fee if returned late."""
    service = build_service(ctx, RentalService)
    try:
        actual_end = parse_datetime(returned_at, now=ctx.obj["clock"].now()) if returned_at else None
        rental = service.complete(rental_id, user_id=acting_user(ctx), actual_end_date=actual_end)
        click.echo(f"Completed rental {rental.id}: late fee {rental.late_fee:.2f}, total {rental.total_value:.2f}")
    except ValueError as e:
        handle_domain_error(ctx, e)


@rental_group.command("cancel")
@click.argument("rental_id", type=int)
@click.pass_context
def cancel_rental(ctx, rental_id: int):
    """Cancel a rental and release its item."""
    service = build_service(ctx, RentalService)
    try:
        rental = service.cancel(rental_id, user_id=acting_user(ctx))
        click.echo(f"Cancelled rental {rental.id}")
    except ValueError as e:
        handle_domain_error(ctx, e)


@rental_group.command("check-overdue")
@click.pass_context
def check_overdue(ctx):
    """Flag active rentals past their expected end as overdue."""
    service = build_service(ctx, RentalService)
    count = service.check_overdue_rentals(user_id=acting_user(ctx))
    click.echo(f"{count} rental(s) marked overdue")


@rental_group.command("send-to-cashier")
@click.argument("rental_id", type=int)
@click.option(
    "--mode",
    type=click.Choice([m.value for m in SettlementMode]),
    default=SettlementMode.FULL.value,
    show_default=True,
    help="full: unsent payments and discount; deposit: unsent deposit; amount: --amount",
)
@click.option("--amount", help="Amount to send (amount mode)")
@click.option(
    "--method",
    type=click.Choice([m.value for m in PaymentMethod]),
    default=PaymentMethod.CASH.value,
    show_default=True,
    help="Payment method of the posted entries",
)
@click.pass_context
def send_to_cashier(ctx, rental_id: int, mode: str, amount: str | None, method: str):
    """Post a rental's unsent money to your open cash register."""
    service = build_service(ctx, CashierSettlementService)
    try:
        result = service.send_to_cashier(
            rental_id=rental_id,
            operator_id=acting_user(ctx),
            mode=SettlementMode(mode),
            amount=parse_amount(amount) if amount else None,
            payment_method=PaymentMethod(method),
        )
        click.echo(f"{len(result.transactions)} transaction(s) posted to register {result.register_id}")
        for t in result.transactions:
            click.echo(f"  {t.type.value:5s} {t.category.value:15s} {t.amount:>10.2f}  {t.description}")
    except ValueError as e:
        handle_domain_error(ctx, e)


def register_commands(cli):
    """Register rental commands with main CLI."""
    cli.add_command(rental_group, name="rental")
