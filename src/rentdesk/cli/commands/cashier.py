"""Cash register commands."""

import click

from rentdesk.cli.context import acting_user, build_service
from rentdesk.cli.date_filters import period_flags_from, period_options, resolve_cli_date_range
from rentdesk.cli.error_handling import handle_domain_error
from rentdesk.domain.cash_report import CashReportService
from rentdesk.domain.cashier import CashierService
from rentdesk.domain.entities import (
    CashTransaction,
    PaymentMethod,
    RegisterStatus,
    RegisterSummary,
    TransactionCategory,
    TransactionType,
)
from rentdesk.utils.amount_parser import parse_amount
from rentdesk.utils.date_parser import parse_date


def _format_transaction(t: CashTransaction) -> str:
    method = t.payment_method.value if t.payment_method else "-"
    line = (
        f"ID: {t.id:4d} | {t.created_at:%Y-%m-%d %H:%M} | {t.type.value:5s} | "
        f"{t.category.value:15s} | {t.amount:>10.2f} | {method:12s} | {t.description}"
    )
    if t.cancelled:
        line += f" [CANCELLED: {t.cancellation_reason}]"
    return line


def _print_summary(summary: RegisterSummary) -> None:
    register = summary.register
    click.echo(f"\nCash register {register.id} (operator {register.operator_id}, {register.status.value})")
    click.echo("-" * 60)
    click.echo(f"Opened:          {register.opened_at:%Y-%m-%d %H:%M}")
    if register.closed_at:
        click.echo(f"Closed:          {register.closed_at:%Y-%m-%d %H:%M}")
    click.echo(f"Opening balance: {register.opening_balance:>10.2f}")
    click.echo(f"Entries:         {summary.totals.entries:>10.2f}")
    click.echo(f"Exits:           {summary.totals.exits:>10.2f}")
    click.echo(f"Current balance: {summary.current_balance:>10.2f}")
    click.echo(
        f"Transactions:    {summary.totals.active_count} active, {summary.totals.cancelled_count} cancelled"
    )

    if summary.by_category:
        click.echo("\nBy category:")
        for c in summary.by_category:
            click.echo(f"  {c.type.value:5s} {c.category.value:15s} {c.total:>10.2f} ({c.count})")
    if summary.by_payment_method:
        click.echo("\nBy payment method:")
        for m in summary.by_payment_method:
            click.echo(f"  {m.payment_method.value:12s} {m.type.value:5s} {m.total:>10.2f} ({m.count})")


@click.group()
def cashier_group():
    """Open, operate and close cash registers."""
    pass


@cashier_group.command("open")
@click.option("--balance", "opening_balance", default="0", help="Cash in the drawer at opening")
@click.option("--observations", help="Notes")
@click.pass_context
def open_register(ctx, opening_balance: str, observations: str | None):
    """Open a cash register for the acting operator."""
    service = build_service(ctx, CashierService)
    try:
        register = service.open_register(
            operator_id=acting_user(ctx),
            opening_balance=parse_amount(opening_balance),
            observations=observations,
        )
        click.echo(f"Opened cash register {register.id} with {register.opening_balance:.2f}")
    except ValueError as e:
        handle_domain_error(ctx, e)


@cashier_group.command("close")
@click.argument("register_id", type=int, required=False)
@click.option("--observations", help="Closing notes")
@click.pass_context
def close_register(ctx, register_id: int | None, observations: str | None):
    """Close a cash register.

    REGISTER_ID defaults to the acting operator's open register.
    """
    service = build_service(ctx, CashierService)
    user_id = acting_user(ctx)
    if register_id is None:
        register = service.get_open_register(user_id)
        if register is None:
            click.echo("Error: You have no open cash register.", err=True)
            ctx.exit(1)
        register_id = register.id

    try:
        closed = service.close_register(register_id, operator_id=user_id, observations=observations)
        click.echo(f"Closed cash register {closed.id}")
        click.echo(f"Entries:         {closed.total_entries:>10.2f}")
        click.echo(f"Exits:           {closed.total_exits:>10.2f}")
        click.echo(f"Closing balance: {closed.closing_balance:>10.2f}")
    except ValueError as e:
        handle_domain_error(ctx, e)


@cashier_group.command("show")
@click.pass_context
def show_open_register(ctx):
    """Show the acting operator's open register."""
    service = build_service(ctx, CashierService)
    register = service.get_open_register(acting_user(ctx))
    if register is None:
        click.echo("You have no open cash register.")
        return
    _print_summary(service.get_register_summary(register.id))


@cashier_group.command("summary")
@click.argument("register_id", type=int)
@click.pass_context
def register_summary(ctx, register_id: int):
    """Show the live summary of any register."""
    service = build_service(ctx, CashierService)
    try:
        _print_summary(service.get_register_summary(register_id))
    except ValueError as e:
        handle_domain_error(ctx, e)


@cashier_group.command("registers")
@click.option("--operator", "operator_id", type=int, help="Filter by operator ID")
@click.option("--status", type=click.Choice([s.value for s in RegisterStatus]), help="Filter by status")
@click.option("--start-date", help="Opened on or after this date")
@click.option("--end-date", help="Opened on or before this date")
@click.option("--limit", type=int, default=50, show_default=True, help="Maximum number of registers")
@click.pass_context
def list_registers(ctx, operator_id, status, start_date, end_date, limit):
    """List cash registers, newest first."""
    service = build_service(ctx, CashierService)
    start, end = resolve_cli_date_range(ctx, start_date=start_date, end_date=end_date, period_flags={})
    registers = service.list_registers(
        operator_id=operator_id,
        status=RegisterStatus(status) if status else None,
        start_date=start,
        end_date=end,
        limit=limit,
    )
    if not registers:
        click.echo("No cash registers found.")
        return

    for r in registers:
        closing = f"{r.closing_balance:>10.2f}" if r.closing_balance is not None else f"{'-':>10s}"
        click.echo(
            f"ID: {r.id:3d} | operator {r.operator_id:3d} | {r.opened_at:%Y-%m-%d %H:%M} | "
            f"{r.opening_balance:>10.2f} | {closing} | {r.status.value}"
        )


def _record_movement(ctx, txn_type: TransactionType, amount: str, category: str, description: str, method: str | None):
    service = build_service(ctx, CashierService)
    user_id = acting_user(ctx)
    register = service.get_open_register(user_id)
    if register is None:
        click.echo("Error: You have no open cash register.", err=True)
        ctx.exit(1)

    try:
        txn = service.create_transaction(
            register_id=register.id,
            type=txn_type,
            category=TransactionCategory(category),
            amount=parse_amount(amount),
            description=description,
            user_id=user_id,
            payment_method=PaymentMethod(method) if method else None,
        )
        click.echo(f"Recorded {txn.type.value} {txn.id}: {txn.category.value} {txn.amount:.2f}")
    except ValueError as e:
        handle_domain_error(ctx, e)


_CATEGORY_CHOICE = click.Choice([c.value for c in TransactionCategory])
_METHOD_CHOICE = click.Choice([m.value for m in PaymentMethod])


@cashier_group.command("entry")
@click.argument("amount")
@click.option("--category", type=_CATEGORY_CHOICE, default=TransactionCategory.OTHER.value, show_default=True)
@click.option("--description", required=True, help="What the money is for")
@click.option("--method", type=_METHOD_CHOICE, help="Payment method")
@click.pass_context
def record_entry(ctx, amount: str, category: str, description: str, method: str | None):
    """Record money coming into your open register."""
    _record_movement(ctx, TransactionType.ENTRY, amount, category, description, method)


@cashier_group.command("exit")
@click.argument("amount")
@click.option("--category", type=_CATEGORY_CHOICE, default=TransactionCategory.EXPENSE.value, show_default=True)
@click.option("--description", required=True, help="What the money is for")
@click.option("--method", type=_METHOD_CHOICE, help="Payment method")
@click.pass_context
def record_exit(ctx, amount: str, category: str, description: str, method: str | None):
    """Record money leaving your open register."""
    _record_movement(ctx, TransactionType.EXIT, amount, category, description, method)


@cashier_group.command("cancel")
@click.argument("transaction_id", type=int)
@click.option("--reason", required=True, help="Why the transaction is cancelled (at least 3 characters)")
@click.pass_context
def cancel_transaction(ctx, transaction_id: int, reason: str):
    """Cancel a transaction of an open register."""
    service = build_service(ctx, CashierService)
    try:
        txn = service.cancel_transaction(transaction_id, cancelled_by=acting_user(ctx), reason=reason)
        click.echo(f"Cancelled transaction {txn.id}")
    except ValueError as e:
        handle_domain_error(ctx, e)


@cashier_group.command("transactions")
@click.option("--register", "register_id", type=int, help="Register ID (defaults to your open register)")
@click.option("--type", "txn_type", type=click.Choice([t.value for t in TransactionType]), help="Filter by type")
@click.option("--category", type=_CATEGORY_CHOICE, help="Filter by category")
@click.option("--cancelled/--active", default=None, help="Only cancelled or only active transactions")
@click.option("--limit", type=int, default=100, show_default=True, help="Maximum number of transactions")
@click.pass_context
def list_transactions(ctx, register_id, txn_type, category, cancelled, limit):
    """List cash transactions, newest first."""
    service = build_service(ctx, CashierService)
    if register_id is None:
        register = service.get_open_register(acting_user(ctx))
        if register is None:
            click.echo("Error: You have no open cash register. Use --register.", err=True)
            ctx.exit(1)
        register_id = register.id

    transactions = service.list_transactions(
        register_id=register_id,
        type=TransactionType(txn_type) if txn_type else None,
        category=TransactionCategory(category) if category else None,
        cancelled=cancelled,
        limit=limit,
    )
    if not transactions:
        click.echo("No transactions found.")
        return

    click.echo(f"\nTransactions of register {register_id}:")
    click.echo("-" * 100)
    for t in transactions:
        click.echo(_format_transaction(t))


@cashier_group.command("daily")
@click.argument("day", required=False)
@click.pass_context
def daily_report(ctx, day: str | None):
    """Report on the registers opened on DAY (defaults to today)."""
    service = CashReportService(ctx.obj["db"])
    today = ctx.obj["clock"].now().date()
    try:
        report_day = parse_date(day, today=today) if day else today
    except ValueError as e:
        handle_domain_error(ctx, e)

    report = service.get_daily_report(report_day)
    click.echo(f"\nDaily cash report for {report.date.isoformat()}")
    click.echo("=" * 100)
    if not report.registers:
        click.echo("No cash registers were opened on this day.")
        return

    for entry in report.registers:
        r = entry.register
        click.echo(
            f"\nRegister {r.id} (operator {r.operator_id}, {r.status.value}) "
            f"opened {r.opened_at:%H:%M} with {r.opening_balance:.2f}"
        )
        for t in entry.transactions:
            click.echo(f"  {_format_transaction(t)}")

    totals = report.totals
    closing = f"{totals.closing_balance:.2f}" if totals.closing_balance is not None else "n/a (register open)"
    click.echo("\nTotals:")
    click.echo(f"  Opening balance: {totals.opening_balance:.2f}")
    click.echo(f"  Entries:         {totals.total_entries:.2f}")
    click.echo(f"  Exits:           {totals.total_exits:.2f}")
    click.echo(f"  Net movement:    {totals.net_movement:.2f}")
    click.echo(f"  Closing balance: {closing}")
    click.echo(f"  Transactions:    {totals.transaction_count} ({totals.cancelled_count} cancelled)")


@cashier_group.command("period")
@click.option("--start-date", help="First day (inclusive)")
@click.option("--end-date", help="Last day (inclusive)")
@period_options
@click.pass_context
def period_report(ctx, start_date: str | None, end_date: str | None, **kwargs):
    """Day-by-day summary of registers opened in a date range.

    Defaults to the current month.
    """
    service = CashReportService(ctx.obj["db"])
    today = ctx.obj["clock"].now().date()
    start, end = resolve_cli_date_range(
        ctx,
        start_date=start_date,
        end_date=end_date,
        period_flags=period_flags_from(kwargs),
        today=today,
        default_range=(today.replace(day=1), today),
    )
    end = end or today
    start = start or end

    try:
        report = service.get_period_report(start, end)
    except ValueError as e:
        handle_domain_error(ctx, e)

    click.echo(f"\nCash report {report.start_date.isoformat()} to {report.end_date.isoformat()}")
    click.echo("-" * 80)
    for d in report.days:
        closing = f"{d.total_closing:>10.2f}" if d.total_closing is not None else f"{'open':>10s}"
        click.echo(
            f"{d.date.isoformat()} | {d.registers_count:2d} register(s) | opening {d.total_opening:>10.2f} | "
            f"in {d.total_entries:>10.2f} | out {d.total_exits:>10.2f} | closing {closing}"
        )

    totals = report.totals
    click.echo("-" * 80)
    click.echo(f"Days: {totals.days_count}, registers: {totals.total_registers}")
    click.echo(f"Entries: {totals.total_entries:.2f}, exits: {totals.total_exits:.2f}, net: {totals.net_movement:.2f}")


def register_commands(cli):
    """Register cashier commands with main CLI."""
    cli.add_command(cashier_group, name="cashier")
