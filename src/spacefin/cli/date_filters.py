"""CLI helpers for as-of dates and report periods."""

from datetime import date, timedelta

import click

from spacefin.domain.entities import Period
from spacefin.utils.date_parser import get_date_range, month_bounds, parse_date


def resolve_as_of(ctx, as_of: str | None) -> date:
    """Resolve the --as-of option, defaulting to today."""
    if not as_of:
        return date.today()
    try:
        return parse_date(as_of)
    except ValueError as e:
        click.echo(f"Error: Invalid as-of date: {e}", err=True)
        ctx.exit(1)


def resolve_report_period(
    ctx,
    *,
    as_of: date,
    start_date: str | None,
    end_date: str | None,
    period_flags: dict[str, bool],
) -> Period | None:
    """Resolve the current reporting period from period flags or explicit dates.

    Returns None when nothing was specified, so the report falls back to
    the calendar month containing the as-of date. End dates are inclusive
    on the command line and converted to the half-open Period form.
    """
    period_count = sum(1 for is_set in period_flags.values() if is_set)

    if period_count > 1:
        click.echo(
            "Error: Only one period option (--this-month, --last-month, --this-year, --last-year) can be specified at a time.",
            err=True,
        )
        ctx.exit(1)

    if period_count > 0 and (start_date or end_date):
        click.echo(
            "Error: Period options (--this-month, --last-month, etc.) cannot be combined with --period-start or --period-end.",
            err=True,
        )
        ctx.exit(1)

    if period_count == 1:
        for period, is_set in period_flags.items():
            if is_set:
                return named_period(period, as_of)

    if not start_date and not end_date:
        return None

    if not (start_date and end_date):
        click.echo("Error: --period-start and --period-end must be given together.", err=True)
        ctx.exit(1)

    try:
        start = parse_date(start_date)
    except ValueError as e:
        click.echo(f"Error: Invalid period start: {e}", err=True)
        ctx.exit(1)
    try:
        end = parse_date(end_date)
    except ValueError as e:
        click.echo(f"Error: Invalid period end: {e}", err=True)
        ctx.exit(1)

    if end < start:
        click.echo("Error: --period-end must not be before --period-start.", err=True)
        ctx.exit(1)
    return Period(start, end + timedelta(days=1))


def named_period(period: str, as_of: date) -> Period:
    """Return the full half-open window for a named period around as_of."""
    if period == "this-month":
        return Period(*month_bounds(as_of))
    if period == "this-year":
        start = as_of.replace(month=1, day=1)
        return Period(start, start.replace(year=start.year + 1))
    start, end = get_date_range(period, today=as_of)
    return Period(start, end + timedelta(days=1))
