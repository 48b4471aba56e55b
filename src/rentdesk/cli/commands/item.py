"""Rental item commands."""

import click

from rentdesk.cli.context import acting_user, build_service
from rentdesk.cli.error_handling import handle_domain_error
from rentdesk.domain.entities import ItemStatus, PricingTierInput, RentalPeriod
from rentdesk.domain.item import ItemService
from rentdesk.utils.amount_parser import parse_amount


def parse_tier(value: str) -> PricingTierInput:
    """Parse ``LABEL:MINUTES:PRICE[:TOLERANCE]`` into a tier definition.

    Raises:
        ValueError: If the value does not follow the format
    """
    parts = [part.strip() for part in value.split(":")]
    if len(parts) not in (3, 4):
        raise ValueError(f"Invalid tier '{value}'. Expected LABEL:MINUTES:PRICE[:TOLERANCE]")
    try:
        minutes = int(parts[1])
        tolerance = int(parts[3]) if len(parts) == 4 else 0
    except ValueError as e:
        raise ValueError(f"Invalid tier '{value}': minutes and tolerance must be integers") from e
    return PricingTierInput(
        duration_minutes=minutes,
        label=parts[0],
        price=parse_amount(parts[2]),
        tolerance_minutes=tolerance,
    )


def _tiers_callback(ctx, param, values):
    try:
        return [parse_tier(v) for v in values]
    except ValueError as e:
        raise click.BadParameter(str(e), ctx=ctx, param=param)


@click.group()
def item_group():
    """Manage rental items and their pricing tiers."""
    pass


@item_group.command("create")
@click.argument("name", metavar="NAME")
@click.option("--code", required=True, help="Unique item code")
@click.option("--category", required=True, help="Item category")
@click.option("--value", "base_value", default="0", help="Base rental value per period")
@click.option(
    "--period",
    type=click.Choice([p.value for p in RentalPeriod]),
    default=RentalPeriod.HOUR.value,
    show_default=True,
    help="Billing period of the base value",
)
@click.option("--observations", help="Notes about the item")
@click.option(
    "--tier",
    "tiers",
    multiple=True,
    callback=_tiers_callback,
    help="Pricing tier as LABEL:MINUTES:PRICE[:TOLERANCE] (repeatable)",
)
@click.pass_context
def create_item(ctx, name: str, code: str, category: str, base_value: str, period: str, observations: str | None, tiers):
    """Create a new rental item.

    With --tier options the first tier's price becomes the base value.

    Examples:
        rentdesk item create "Kayak" --code KY-01 --category boats --value 25 --period hour
        rentdesk item create "Bike" --code BK-01 --category bikes --tier "30 min:30:10" --tier "1 hour:60:18"
    """
    service = build_service(ctx, ItemService)
    try:
        item = service.create_item(
            name=name,
            code=code,
            category=category,
            user_id=acting_user(ctx),
            base_rental_value=parse_amount(base_value),
            rental_period=RentalPeriod(period),
            observations=observations,
            pricing_tiers=tiers,
        )
        click.echo(f"Created item '{item.name}' [{item.code}] (ID: {item.id})")
    except ValueError as e:
        handle_domain_error(ctx, e)


@item_group.command("list")
@click.option("--status", type=click.Choice([s.value for s in ItemStatus]), help="Filter by status")
@click.option("--category", help="Filter by category")
@click.option("--search", help="Filter by part of the name or code")
@click.pass_context
def list_items(ctx, status: str | None, category: str | None, search: str | None):
    """List active items."""
    service = build_service(ctx, ItemService)
    items = service.list_items(
        status=ItemStatus(status) if status else None,
        category=category,
        search=search,
    )
    if not items:
        click.echo("No items found.")
        return

    click.echo("\nItems:")
    click.echo("-" * 80)
    for i in items:
        click.echo(
            f"ID: {i.id:3d} | {i.code:10s} | {i.name:20s} | {i.category:12s} | "
            f"{i.base_rental_value:>8.2f}/{i.rental_period.value:5s} | {i.status.value}"
        )


@item_group.command("status")
@click.argument("item_id", type=int)
@click.argument("status", type=click.Choice([ItemStatus.AVAILABLE.value, ItemStatus.MAINTENANCE.value]))
@click.pass_context
def set_status(ctx, item_id: int, status: str):
    """Put an item into or out of maintenance."""
    service = build_service(ctx, ItemService)
    try:
        item = service.set_status(item_id, ItemStatus(status), user_id=acting_user(ctx))
        click.echo(f"Item {item.id} is now {item.status.value}")
    except ValueError as e:
        handle_domain_error(ctx, e)


@item_group.command("edit")
@click.argument("item_id", type=int)
@click.option("--name", help="New name")
@click.option("--code", help="New unique code")
@click.option("--category", help="New category")
@click.option("--value", "base_value", help="New base rental value per period")
@click.option("--period", type=click.Choice([p.value for p in RentalPeriod]), help="New billing period")
@click.option("--observations", help="Notes about the item (empty to clear)")
@click.option(
    "--status",
    type=click.Choice([ItemStatus.AVAILABLE.value, ItemStatus.MAINTENANCE.value]),
    help="Put the item into or out of maintenance",
)
@click.pass_context
def edit_item(
    ctx,
    item_id: int,
    name: str | None,
    code: str | None,
    category: str | None,
    base_value: str | None,
    period: str | None,
    observations: str | None,
    status: str | None,
):
    """Change an item's details.

    Pricing tiers are edited with set-pricing.

    Examples:
        rentdesk item edit 3 --value 30 --period hour
        rentdesk item edit 3 --code KY-02 --observations "New paddles"
    """
    service = build_service(ctx, ItemService)
    try:
        item = service.update_item(
            item_id,
            user_id=acting_user(ctx),
            name=name,
            code=code,
            category=category,
            base_rental_value=parse_amount(base_value) if base_value is not None else None,
            rental_period=RentalPeriod(period) if period else None,
            observations=observations,
            status=ItemStatus(status) if status else None,
        )
        click.echo(f"Updated item '{item.name}' [{item.code}] (ID: {item.id})")
    except ValueError as e:
        handle_domain_error(ctx, e)


@item_group.command("pricing")
@click.argument("item_id", type=int)
@click.pass_context
def show_pricing(ctx, item_id: int):
    """Show the pricing tiers of an item."""
    service = build_service(ctx, ItemService)
    tiers = service.list_pricing_tiers(item_id)
    if not tiers:
        click.echo(f"Item {item_id} has no pricing tiers.")
        return

    click.echo(f"\nPricing tiers for item {item_id}:")
    click.echo("-" * 60)
    for t in tiers:
        tolerance = f" (+{t.tolerance_minutes} min tolerance)" if t.tolerance_minutes else ""
        click.echo(f"{t.sort_order + 1:2d}. {t.label:15s} | {t.duration_minutes:5d} min | {t.price:>8.2f}{tolerance}")


@item_group.command("set-pricing")
@click.argument("item_id", type=int)
@click.option(
    "--tier",
    "tiers",
    multiple=True,
    callback=_tiers_callback,
    help="Pricing tier as LABEL:MINUTES:PRICE[:TOLERANCE] (repeatable, in display order)",
)
@click.option("--clear", is_flag=True, help="Remove all pricing tiers")
@click.pass_context
def set_pricing(ctx, item_id: int, tiers, clear: bool):
    """Replace all pricing tiers of an item.

    Examples:
        rentdesk item set-pricing 3 --tier "30 min:30:10" --tier "1 hour:60:18:5"
        rentdesk item set-pricing 3 --clear
    """
    if not tiers and not clear:
        click.echo("Error: Give at least one --tier, or --clear to remove all tiers.", err=True)
        ctx.exit(1)
    if tiers and clear:
        click.echo("Error: --clear cannot be combined with --tier.", err=True)
        ctx.exit(1)

    service = build_service(ctx, ItemService)
    try:
        saved = service.save_pricing_tiers(item_id, tiers, user_id=acting_user(ctx))
        click.echo(f"Saved {len(saved)} pricing tier(s) for item {item_id}")
    except ValueError as e:
        handle_domain_error(ctx, e)


@item_group.command("deactivate")
@click.argument("item_id", type=int)
@click.pass_context
def deactivate_item(ctx, item_id: int):
    """Deactivate an item that is not rented."""
    service = build_service(ctx, ItemService)
    try:
        service.deactivate_item(item_id, user_id=acting_user(ctx))
        click.echo(f"Deactivated item {item_id}")
    except ValueError as e:
        handle_domain_error(ctx, e)


def register_commands(cli):
    """Register item commands with main CLI."""
    cli.add_command(item_group, name="item")
