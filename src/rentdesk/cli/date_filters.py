"""CLI helpers for date range resolution."""

from datetime import date

import click

from rentdesk.utils.date_parser import get_date_range, parse_date

PERIOD_OPTIONS = ("today", "this-week", "this-month", "last-week", "last-month", "this-year")


def period_options(func):
    """Add one boolean flag per named period (``--this-month``, ...)."""
    for period in reversed(PERIOD_OPTIONS):
        func = click.option(
            f"--{period}",
            period.replace("-", "_"),
            is_flag=True,
            help=f"Limit to {period.replace('-', ' ')}",
        )(func)
    return func


def period_flags_from(kwargs: dict) -> dict[str, bool]:
    """Pop the period flags added by period_options out of a command's kwargs."""
    return {period: kwargs.pop(period.replace("-", "_"), False) for period in PERIOD_OPTIONS}


def resolve_cli_date_range(
    ctx,
    *,
    start_date: str | None,
    end_date: str | None,
    period_flags: dict[str, bool],
    today: date | None = None,
    default_range: tuple[date, date] | None = None,
) -> tuple[date | None, date | None]:
    """Resolve CLI date range from period flags or explicit dates."""
    period_count = sum(1 for is_set in period_flags.values() if is_set)

    if period_count > 1:
        click.echo("Error: Only one period option can be specified at a time.", err=True)
        ctx.exit(1)

    if period_count > 0 and (start_date or end_date):
        click.echo(
            "Error: Period options (--this-month, --last-week, etc.) cannot be combined with --start-date or --end-date.",
            err=True,
        )
        ctx.exit(1)

    start = None
    end = None

    if period_count == 1:
        for period, is_set in period_flags.items():
            if is_set:
                start, end = get_date_range(period, today=today)
                break
    else:
        if start_date:
            try:
                start = parse_date(start_date, today=today)
            except ValueError as e:
                click.echo(f"Error: Invalid start date: {e}", err=True)
                ctx.exit(1)

        if end_date:
            try:
                end = parse_date(end_date, today=today)
            except ValueError as e:
                click.echo(f"Error: Invalid end date: {e}", err=True)
                ctx.exit(1)

        if start is None and end is None and default_range is not None:
            start, end = default_range

    return start, end
