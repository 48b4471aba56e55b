"""Client management commands."""

import click

from rentdesk.cli.context import acting_user, build_service
from rentdesk.cli.error_handling import handle_domain_error
from rentdesk.domain.client import ClientService


@click.group()
def client_group():
    """Manage clients."""
    pass


@client_group.command("create")
@click.argument("name", metavar="NAME")
@click.option("--document", help="Identity document number")
@click.option("--phone", help="Phone number")
@click.option("--email", help="E-mail address")
@click.pass_context
def create_client(ctx, name: str, document: str | None, phone: str | None, email: str | None):
    """Create a new client.

    Examples:
        rentdesk client create "Maria Silva" --phone "555-0101"
    """
    service = build_service(ctx, ClientService)
    try:
        client = service.create_client(
            name=name,
            user_id=acting_user(ctx),
            document=document,
            phone=phone,
            email=email,
        )
        click.echo(f"Created client '{client.name}' (ID: {client.id})")
    except ValueError as e:
        handle_domain_error(ctx, e)


@client_group.command("list")
@click.option("--search", help="Filter by part of the name")
@click.option("--all", "include_inactive", is_flag=True, help="Include inactive clients")
@click.pass_context
def list_clients(ctx, search: str | None, include_inactive: bool):
    """List clients."""
    service = build_service(ctx, ClientService)
    clients = service.list_clients(search=search, include_inactive=include_inactive)
    if not clients:
        click.echo("No clients found.")
        return

    click.echo("\nClients:")
    click.echo("-" * 70)
    for c in clients:
        status = "" if c.active else " (inactive)"
        click.echo(f"ID: {c.id:3d} | {c.name:25s} | {c.phone or '-':15s} | {c.email or '-'}{status}")


@client_group.command("edit")
@click.argument("client_id", type=int)
@click.option("--name", help="New name")
@click.option("--document", help="Identity document number (empty to clear)")
@click.option("--phone", help="Phone number (empty to clear)")
@click.option("--email", help="E-mail address (empty to clear)")
@click.pass_context
def edit_client(ctx, client_id: int, name: str | None, document: str | None, phone: str | None, email: str | None):
    """Change a client's details.

    Examples:
        rentdesk client edit 3 --phone "555-0199"
        rentdesk client edit 3 --email ""
    """
    service = build_service(ctx, ClientService)
    try:
        client = service.update_client(
            client_id,
            user_id=acting_user(ctx),
            name=name,
            document=document,
            phone=phone,
            email=email,
        )
        click.echo(f"Updated client '{client.name}' (ID: {client.id})")
    except ValueError as e:
        handle_domain_error(ctx, e)


@client_group.command("history")
@click.argument("client_id", type=int)
@click.pass_context
def client_history(ctx, client_id: int):
    """Show a client's rentals, newest first."""
    service = build_service(ctx, ClientService)
    try:
        history = service.rental_history(client_id)
    except ValueError as e:
        handle_domain_error(ctx, e)
    if not history:
        click.echo(f"Client {client_id} has no rentals.")
        return

    click.echo(f"\nRentals of client {client_id}:")
    click.echo("-" * 90)
    for entry in history:
        r = entry.rental
        click.echo(
            f"#{r.id:4d} | {entry.item_code:10s} | {entry.item_name:20s} | "
            f"{r.start_date:%Y-%m-%d %H:%M} -> {r.expected_end_date:%Y-%m-%d %H:%M} | "
            f"{r.total_value:>8.2f} | {r.status.value}"
        )


@client_group.command("deactivate")
@click.argument("client_id", type=int)
@click.pass_context
def deactivate_client(ctx, client_id: int):
    """Deactivate a client without open rentals."""
    service = build_service(ctx, ClientService)
    try:
        service.deactivate_client(client_id, user_id=acting_user(ctx))
        click.echo(f"Deactivated client {client_id}")
    except ValueError as e:
        handle_domain_error(ctx, e)


def register_commands(cli):
    """Register client commands with main CLI."""
    cli.add_command(client_group, name="client")
