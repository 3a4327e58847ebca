"""Financial report commands."""

import io

import click
from spacefin.cli.context import get_database
from spacefin.cli.date_filters import resolve_as_of, resolve_report_period
from spacefin.cli.error_handling import handle_domain_error
from spacefin.cli.formatting import format_amount, format_growth, format_percent
from spacefin.domain.entities import ReportDimension
from spacefin.domain.normalize import normalize_records
from spacefin.domain.report_io import REPORT_SECTIONS, load_invoice_records, write_report_csv
from spacefin.domain.reports import FinancialReportService
from spacefin.utils.amount_parser import parse_rate


REPORT_OPTIONS = (
    click.option("--as-of", help="Date the report is evaluated at (defaults to today)"),
    click.option(
        "--input",
        "input_path",
        type=click.Path(),
        help="Read invoices from a JSON export instead of the database",
    ),
    click.option("--period-start", help="Start of the current period (inclusive)"),
    click.option("--period-end", help="End of the current period (inclusive)"),
    click.option("--this-month", is_flag=True, help="Use the month containing the as-of date"),
    click.option("--last-month", is_flag=True, help="Use the month before the as-of date"),
    click.option("--this-year", is_flag=True, help="Use the year containing the as-of date"),
    click.option("--last-year", is_flag=True, help="Use the year before the as-of date"),
)


def report_options(func):
    """Attach the options shared by every report command."""
    for option in reversed(REPORT_OPTIONS):
        func = option(func)
    return func


def _load_records(ctx, input_path: str | None) -> list:
    if input_path is None:
        return get_database(ctx).list_invoices()
    try:
        return load_invoice_records(input_path)
    except FileNotFoundError as e:
        click.echo(f"Error: {e}", err=True)
        ctx.exit(1)
    except ValueError as e:
        handle_domain_error(ctx, e)


def _report_service(ctx, months: int = 6, top_n: int = 5) -> FinancialReportService:
    try:
        return FinancialReportService(
            tax_rate=parse_rate(ctx.obj["tax_rate"]), months=months, top_n=top_n
        )
    except ValueError as e:
        click.echo(f"Error: {e}", err=True)
        ctx.exit(1)


def _build_snapshot(ctx, service: FinancialReportService, options: dict):
    as_of = resolve_as_of(ctx, options["as_of"])
    current_period = resolve_report_period(
        ctx,
        as_of=as_of,
        start_date=options["period_start"],
        end_date=options["period_end"],
        period_flags={
            "this-month": options["this_month"],
            "last-month": options["last_month"],
            "this-year": options["this_year"],
            "last-year": options["last_year"],
        },
    )
    records = _load_records(ctx, options["input_path"])
    return service.build_report_snapshot(records, as_of, current_period=current_period)


def _echo_warnings(snapshot) -> None:
    """Print data-quality warnings without failing the report."""
    if not snapshot.warnings:
        return
    click.echo(
        f"\nWarning: {snapshot.skipped_count} data issue(s) found; affected invoices "
        "were left out of some views.",
        err=True,
    )
    for warning in snapshot.warnings:
        click.echo(f"  {warning.invoice_id} ({warning.view}): {warning.reason}", err=True)


def _echo_revenue(revenue) -> None:
    current = revenue.current_period
    previous = revenue.previous_period
    click.echo("\nRevenue")
    click.echo("-" * 60)
    click.echo(
        f"  {'Current':<10} {current.start} to {current.end}  {format_amount(revenue.current_revenue):>20}"
    )
    click.echo(
        f"  {'Previous':<10} {previous.start} to {previous.end}  {format_amount(revenue.previous_revenue):>20}"
    )
    click.echo(f"  {'Growth':<34} {format_growth(revenue.growth_percent):>20}")


def _echo_breakdown(breakdown) -> None:
    title = "Service" if breakdown.dimension is ReportDimension.SERVICE else "City"
    click.echo(f"\nRevenue by {title}")
    click.echo("-" * 60)
    if not breakdown.rows:
        click.echo("  No paid revenue in this window.")
        return
    for row in breakdown.rows:
        click.echo(
            f"  {row.name[:26]:<26} {format_amount(row.amount):>18} {format_percent(row.percentage):>8}"
            f" ({row.invoice_count})"
        )


def _echo_aging(aging) -> None:
    labels = {
        "current": "Current",
        "days_30": "1-30 days",
        "days_60": "31-60 days",
        "days_90": "61-90 days",
        "over_90": "Over 90 days",
    }
    click.echo("\nAging Receivables")
    click.echo("-" * 60)
    for name, amount in aging.buckets():
        count = aging.bucket_counts.get(name, 0)
        click.echo(f"  {labels[name]:<26} {format_amount(amount):>18} ({count})")
    if aging.skipped:
        click.echo(
            f"  {'No due date':<26} {format_amount(aging.unbucketed_amount):>18} ({aging.skipped})"
        )
    click.echo(f"  {'Total outstanding':<26} {format_amount(aging.total_outstanding):>18}")


def _echo_cash_flow(cash_flow) -> None:
    click.echo("\nCash Flow")
    click.echo("-" * 60)
    click.echo(f"  {'Month':<10} {'Inflow':>15} {'Outflow':>15} {'Net':>15}")
    for month in cash_flow.months:
        click.echo(
            f"  {month.label:<10} {format_amount(month.inflow):>15} "
            f"{format_amount(month.outflow):>15} {format_amount(month.net):>15}"
        )


def _echo_tax(tax) -> None:
    click.echo(f"\nTax Summary (rate {tax.tax_rate}%)")
    click.echo("-" * 60)
    for month in tax.details:
        click.echo(
            f"  {month.label:<10} {format_amount(month.revenue):>20} {format_amount(month.tax):>20}"
        )
    click.echo(
        f"  {'Total':<10} {format_amount(tax.total_revenue):>20} {format_amount(tax.total_tax):>20}"
    )


@click.group()
def report_group():
    """Build financial reports from invoices."""
    pass


@report_group.command("summary")
@report_options
@click.pass_context
def summary(ctx, **options):
    """Show every report view for one snapshot.

    Examples:
        spacefin report summary
        spacefin report summary --as-of 2024-06-30 --input invoices.json
    """
    snapshot = _build_snapshot(ctx, _report_service(ctx), options)
    click.echo(f"Financial report as of {snapshot.as_of}")
    _echo_revenue(snapshot.revenue)
    _echo_breakdown(snapshot.by_service)
    _echo_breakdown(snapshot.by_city)
    _echo_aging(snapshot.aging)
    _echo_cash_flow(snapshot.cash_flow)
    _echo_tax(snapshot.tax)
    _echo_warnings(snapshot)


@report_group.command("revenue")
@report_options
@click.pass_context
def revenue(ctx, **options):
    """Compare paid revenue in the current and previous period."""
    snapshot = _build_snapshot(ctx, _report_service(ctx), options)
    _echo_revenue(snapshot.revenue)
    _echo_warnings(snapshot)


@report_group.command("breakdown")
@report_options
@click.option(
    "--by",
    "dimension",
    type=click.Choice([d.value for d in ReportDimension]),
    default=ReportDimension.SERVICE.value,
    show_default=True,
    help="Group revenue by service or city",
)
@click.option("--limit", type=int, default=5, show_default=True, help="Number of rows to show")
@click.pass_context
def breakdown(ctx, dimension: str, limit: int, **options):
    """Show top revenue contributors by service or city."""
    snapshot = _build_snapshot(ctx, _report_service(ctx, top_n=limit), options)
    if ReportDimension(dimension) is ReportDimension.SERVICE:
        _echo_breakdown(snapshot.by_service)
    else:
        _echo_breakdown(snapshot.by_city)
    _echo_warnings(snapshot)


@report_group.command("aging")
@report_options
@click.pass_context
def aging(ctx, **options):
    """Show outstanding receivables by days past due."""
    snapshot = _build_snapshot(ctx, _report_service(ctx), options)
    _echo_aging(snapshot.aging)
    _echo_warnings(snapshot)


@report_group.command("cashflow")
@report_options
@click.option("--months", type=int, default=6, show_default=True, help="Number of trailing months")
@click.pass_context
def cashflow(ctx, months: int, **options):
    """Show monthly cash flow for the trailing months."""
    snapshot = _build_snapshot(ctx, _report_service(ctx, months=months), options)
    _echo_cash_flow(snapshot.cash_flow)
    _echo_warnings(snapshot)


@report_group.command("tax")
@report_options
@click.option("--months", type=int, default=6, show_default=True, help="Number of trailing months")
@click.pass_context
def tax(ctx, months: int, **options):
    """Show tax collected on paid invoices."""
    snapshot = _build_snapshot(ctx, _report_service(ctx, months=months), options)
    _echo_tax(snapshot.tax)
    _echo_warnings(snapshot)


@report_group.command("stats")
@click.option("--as-of", help="Date used to decide which invoices are overdue (defaults to today)")
@click.option(
    "--input",
    "input_path",
    type=click.Path(),
    help="Read invoices from a JSON export instead of the database",
)
@click.pass_context
def stats(ctx, as_of: str | None, input_path: str | None):
    """Show invoice counters for the dashboard."""
    as_of_date = resolve_as_of(ctx, as_of)
    invoices, _ = normalize_records(_load_records(ctx, input_path))
    statistics = _report_service(ctx).invoice_statistics(invoices, as_of_date)

    click.echo(f"\nInvoice Statistics as of {as_of_date}")
    click.echo("-" * 60)
    click.echo(
        f"  {'All invoices':<20} {statistics.total_count:>6} {format_amount(statistics.total_revenue):>22}"
    )
    click.echo(
        f"  {'Paid':<20} {statistics.paid_count:>6} {format_amount(statistics.paid_amount):>22}"
    )
    click.echo(
        f"  {'Outstanding':<20} {statistics.outstanding_count:>6} {format_amount(statistics.outstanding_amount):>22}"
    )
    click.echo(
        f"  {'Overdue':<20} {statistics.overdue_count:>6} {format_amount(statistics.overdue_amount):>22}"
    )


@report_group.command("export")
@click.argument("section", type=click.Choice(REPORT_SECTIONS))
@report_options
@click.option(
    "--output",
    "-o",
    type=click.Path(dir_okay=False, writable=True),
    help="Write CSV to this file (defaults to stdout)",
)
@click.pass_context
def export(ctx, section: str, output: str | None, **options):
    """Export one report section as CSV.

    Examples:
        spacefin report export aging --output aging.csv
        spacefin report export service --input invoices.json --last-month
    """
    snapshot = _build_snapshot(ctx, _report_service(ctx), options)
    if output is None:
        buffer = io.StringIO()
        write_report_csv(snapshot, section, buffer)
        click.echo(buffer.getvalue(), nl=False)
        _echo_warnings(snapshot)
        return

    with open(output, "w", newline="", encoding="utf-8") as f:
        count = write_report_csv(snapshot, section, f)
    click.echo(f"Wrote {count} row(s) to {output}")
    _echo_warnings(snapshot)


def register_commands(cli):
    """Register report commands with main CLI."""
    cli.add_command(report_group, name="report")
