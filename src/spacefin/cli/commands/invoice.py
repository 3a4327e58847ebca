"""Invoice management commands."""

from decimal import Decimal

import click
from spacefin.cli.context import get_database
from spacefin.cli.date_filters import resolve_as_of
from spacefin.cli.error_handling import handle_domain_error
from spacefin.cli.formatting import format_amount
from spacefin.domain.calculator import price_invoice
from spacefin.domain.entities import Invoice, LineItem
from spacefin.domain.invoice import InvoiceService, PAYMENT_METHODS
from spacefin.utils.amount_parser import parse_amount, parse_rate
from spacefin.utils.date_parser import parse_date


def parse_item(item_str: str) -> LineItem:
    """Parse an item option of the form DESCRIPTION:QUANTITY:UNIT_PRICE.

    The description may itself contain colons; the last two fields are
    always quantity and unit price.

    Raises:
        ValueError: If the item cannot be parsed
    """
    parts = item_str.rsplit(":", 2)
    if len(parts) != 3:
        raise ValueError(
            f"Invalid item '{item_str}'. Expected DESCRIPTION:QUANTITY:UNIT_PRICE"
        )
    description, quantity, unit_price = parts
    try:
        qty = Decimal(quantity.strip())
    except ArithmeticError:
        raise ValueError(f"Invalid quantity '{quantity}' in item '{item_str}'")
    return LineItem(
        description=description.strip(),
        quantity=qty,
        unit_price=parse_amount(unit_price),
    )


def _parse_items(ctx, items: tuple[str, ...]) -> list[LineItem]:
    try:
        return [parse_item(item) for item in items]
    except ValueError as e:
        click.echo(f"Error: {e}", err=True)
        ctx.exit(1)


def _parse_rate_option(ctx, value: str | None, name: str) -> Decimal | None:
    if value is None:
        return None
    try:
        return parse_rate(value)
    except ValueError as e:
        click.echo(f"Error: Invalid {name}: {e}", err=True)
        ctx.exit(1)


def _parse_date_option(ctx, value: str | None, name: str):
    if value is None:
        return None
    try:
        return parse_date(value)
    except ValueError as e:
        click.echo(f"Error: Invalid {name}: {e}", err=True)
        ctx.exit(1)


def _echo_totals(subtotal, discount_rate, discount_amount, tax_rate, tax_amount, total) -> None:
    click.echo(f"  {'Subtotal:':<24} {format_amount(subtotal):>20}")
    if discount_amount:
        click.echo(f"  {f'Discount ({discount_rate}%):':<24} {'-' + format_amount(discount_amount):>20}")
    click.echo(f"  {f'Tax ({tax_rate}%):':<24} {format_amount(tax_amount):>20}")
    click.echo(f"  {'Total:':<24} {format_amount(total):>20}")


def _echo_invoice(invoice: Invoice) -> None:
    click.echo(f"\nInvoice {invoice.id} [{invoice.status.value}]")
    click.echo("=" * 80)
    click.echo(f"  Customer: {invoice.customer_name}")
    if invoice.customer_email:
        click.echo(f"  Email: {invoice.customer_email}")
    if invoice.customer_phone:
        click.echo(f"  Phone: {invoice.customer_phone}")
    if invoice.order_id:
        click.echo(f"  Order: {invoice.order_id}")
    click.echo(f"  Service: {invoice.service_name}")
    click.echo(f"  City: {invoice.city_name}")
    click.echo(f"  Issued: {invoice.issue_date or '-'}")
    term = invoice.payment_term.value if invoice.payment_term else "-"
    click.echo(f"  Terms: {term}")
    click.echo(f"  Due: {invoice.due_date or '-'}")
    if invoice.paid_date:
        click.echo(
            f"  Paid: {invoice.paid_date} ({format_amount(invoice.paid_amount)}"
            f" via {invoice.payment_method or 'unknown'})"
        )
        if invoice.payment_reference:
            click.echo(f"  Reference: {invoice.payment_reference}")

    click.echo("-" * 80)
    click.echo(f"  {'Description':<34} {'Qty':>6} {'Unit Price':>16} {'Amount':>18}")
    click.echo("-" * 80)
    for item in invoice.items:
        click.echo(
            f"  {item.description[:34]:<34} {item.quantity:>6} "
            f"{format_amount(item.unit_price):>16} {format_amount(item.amount):>18}"
        )
    click.echo("-" * 80)
    _echo_totals(
        invoice.subtotal,
        invoice.discount_rate,
        invoice.discount_amount,
        invoice.tax_rate,
        invoice.tax_amount,
        invoice.total,
    )
    if invoice.notes:
        click.echo(f"\n  Notes: {invoice.notes}")


@click.group()
def invoice_group():
    """Manage invoices."""
    pass


@invoice_group.command("create")
@click.option("--customer", "customer_name", required=True, help="Customer name")
@click.option("--email", "customer_email", help="Customer email")
@click.option("--phone", "customer_phone", help="Customer phone")
@click.option("--order", "order_id", help="Booking order ID")
@click.option(
    "--item",
    "items",
    multiple=True,
    help="Line item as DESCRIPTION:QUANTITY:UNIT_PRICE (repeatable)",
)
@click.option("--tax-rate", help="Tax rate in percent (defaults to the configured rate)")
@click.option("--discount-rate", default="0", show_default=True, help="Discount rate in percent")
@click.option("--issue-date", default="today", show_default=True, help="Issue date (YYYY-MM-DD or relative like 'today')")
@click.option("--terms", default="NET30", show_default=True, help="Payment terms: NET15, NET30, NET45 or NET60")
@click.option("--service", "service_name", help="Service name used for revenue breakdowns")
@click.option("--city", "city_name", help="City name used for revenue breakdowns")
@click.option("--notes", help="Notes")
@click.option("--id", "invoice_id", help="Explicit invoice ID (generated if omitted)")
@click.pass_context
def create_invoice(
    ctx,
    customer_name: str,
    customer_email: str | None,
    customer_phone: str | None,
    order_id: str | None,
    items: tuple[str, ...],
    tax_rate: str | None,
    discount_rate: str,
    issue_date: str,
    terms: str,
    service_name: str | None,
    city_name: str | None,
    notes: str | None,
    invoice_id: str | None,
):
    """Create a draft invoice.

    Examples:
        spacefin invoice create --customer "PT Maju" --item "Meeting Room:2:100000"
        spacefin invoice create --customer "CV Kreatif" --item "Desk:1:50000" --discount-rate 10 --terms NET15
    """
    service = InvoiceService(
        get_database(ctx), default_tax_rate=parse_rate(ctx.obj["tax_rate"])
    )
    line_items = _parse_items(ctx, items)
    issued = _parse_date_option(ctx, issue_date, "issue date")

    try:
        invoice = service.create_invoice(
            customer_name=customer_name,
            items=line_items,
            issue_date=issued,
            payment_term=terms,
            tax_rate=_parse_rate_option(ctx, tax_rate, "tax rate"),
            discount_rate=_parse_rate_option(ctx, discount_rate, "discount rate"),
            customer_email=customer_email,
            customer_phone=customer_phone,
            order_id=order_id,
            service_name=service_name,
            city_name=city_name,
            notes=notes,
            invoice_id=invoice_id,
        )
    except ValueError as e:
        handle_domain_error(ctx, e)
        return

    click.echo(f"Created invoice {invoice.id} for {invoice.customer_name}")
    click.echo(f"Total: {format_amount(invoice.total)} (due {invoice.due_date})")


@invoice_group.command("quote")
@click.option(
    "--item",
    "items",
    multiple=True,
    help="Line item as DESCRIPTION:QUANTITY:UNIT_PRICE (repeatable)",
)
@click.option("--tax-rate", help="Tax rate in percent (defaults to the configured rate)")
@click.option("--discount-rate", default="0", show_default=True, help="Discount rate in percent")
@click.pass_context
def quote_invoice(ctx, items: tuple[str, ...], tax_rate: str | None, discount_rate: str):
    """Price line items without saving an invoice."""
    line_items = _parse_items(ctx, items)
    rate = _parse_rate_option(ctx, tax_rate, "tax rate")
    if rate is None:
        rate = parse_rate(ctx.obj["tax_rate"])
    discount = _parse_rate_option(ctx, discount_rate, "discount rate")

    try:
        totals = price_invoice(line_items, rate, discount)
    except ValueError as e:
        handle_domain_error(ctx, e)
        return

    click.echo("\nQuote:")
    click.echo("-" * 48)
    _echo_totals(
        totals.subtotal,
        discount,
        totals.discount_amount,
        rate,
        totals.tax_amount,
        totals.total,
    )


@invoice_group.command("list")
@click.option("--status", help="Filter by status (draft, sent, paid, overdue, cancelled)")
@click.option("--email", "customer_email", help="Filter by customer email")
@click.option("--order", "order_id", help="Filter by booking order ID")
@click.option("--search", help="Search customer name, email, invoice ID or order ID")
@click.pass_context
def list_invoices(ctx, status: str | None, customer_email: str | None, order_id: str | None, search: str | None):
    """List invoices."""
    service = InvoiceService(get_database(ctx))
    try:
        invoices = service.list_invoices(
            status=status, customer_email=customer_email, order_id=order_id, search=search
        )
    except ValueError as e:
        handle_domain_error(ctx, e)
        return

    if not invoices:
        click.echo("No invoices found.")
        return

    click.echo(f"\nFound {len(invoices)} invoice(s):")
    click.echo("-" * 100)
    click.echo(
        f"{'ID':<16} {'Issued':<12} {'Due':<12} {'Status':<10} {'Customer':<28} {'Total':>18}"
    )
    click.echo("-" * 100)
    for inv in invoices:
        click.echo(
            f"{inv.id:<16} {str(inv.issue_date or '-'):<12} {str(inv.due_date or '-'):<12} "
            f"{inv.status.value:<10} {inv.customer_name[:28]:<28} {format_amount(inv.total):>18}"
        )


@invoice_group.command("show")
@click.argument("invoice_id")
@click.pass_context
def show_invoice(ctx, invoice_id: str):
    """Show an invoice with its line items and totals."""
    service = InvoiceService(get_database(ctx))
    invoice = service.get_invoice(invoice_id)
    if invoice is None:
        click.echo(f"Error: Invoice {invoice_id} not found", err=True)
        ctx.exit(1)
    _echo_invoice(invoice)


@invoice_group.command("update")
@click.argument("invoice_id")
@click.option(
    "--item",
    "items",
    multiple=True,
    help="Replacement line items as DESCRIPTION:QUANTITY:UNIT_PRICE (repeatable)",
)
@click.option("--tax-rate", help="Tax rate in percent")
@click.option("--discount-rate", help="Discount rate in percent")
@click.option("--issue-date", help="Issue date")
@click.option("--terms", help="Payment terms: NET15, NET30, NET45 or NET60")
@click.option("--customer", "customer_name", help="Customer name")
@click.option("--service", "service_name", help="Service name")
@click.option("--city", "city_name", help="City name")
@click.pass_context
def update_invoice(
    ctx,
    invoice_id: str,
    items: tuple[str, ...],
    tax_rate: str | None,
    discount_rate: str | None,
    issue_date: str | None,
    terms: str | None,
    customer_name: str | None,
    service_name: str | None,
    city_name: str | None,
):
    """Update an invoice and recompute its totals.

    Passing --item replaces all existing line items.

    Examples:
        spacefin invoice update INV-2024-05-001 --discount-rate 5
        spacefin invoice update INV-2024-05-001 --item "Private Office:1:3500000" --terms NET45
    """
    service = InvoiceService(get_database(ctx))
    line_items = _parse_items(ctx, items) if items else None

    try:
        invoice = service.update_invoice(
            invoice_id,
            items=line_items,
            tax_rate=_parse_rate_option(ctx, tax_rate, "tax rate"),
            discount_rate=_parse_rate_option(ctx, discount_rate, "discount rate"),
            issue_date=_parse_date_option(ctx, issue_date, "issue date"),
            payment_term=terms,
            customer_name=customer_name,
            service_name=service_name,
            city_name=city_name,
        )
    except ValueError as e:
        handle_domain_error(ctx, e)
        return

    click.echo(f"Updated invoice {invoice.id}")
    click.echo(f"Total: {format_amount(invoice.total)} (due {invoice.due_date})")


@invoice_group.command("send")
@click.argument("invoice_id")
@click.pass_context
def send_invoice(ctx, invoice_id: str):
    """Mark a draft invoice as sent."""
    service = InvoiceService(get_database(ctx))
    try:
        service.send_invoice(invoice_id)
    except ValueError as e:
        handle_domain_error(ctx, e)
        return
    click.echo(f"Invoice {invoice_id} marked as sent")


@invoice_group.command("pay")
@click.argument("invoice_id")
@click.option("--date", "paid_date", default="today", show_default=True, help="Payment date")
@click.option("--amount", help="Amount received (defaults to the invoice total)")
@click.option(
    "--method",
    type=click.Choice(PAYMENT_METHODS),
    default="bank_transfer",
    show_default=True,
    help="Payment method",
)
@click.option("--reference", help="Payment reference")
@click.pass_context
def pay_invoice(ctx, invoice_id: str, paid_date: str, amount: str | None, method: str, reference: str | None):
    """Record payment of an invoice."""
    service = InvoiceService(get_database(ctx))
    paid_on = _parse_date_option(ctx, paid_date, "payment date")

    paid_amount = None
    if amount is not None:
        try:
            paid_amount = parse_amount(amount)
        except ValueError as e:
            click.echo(f"Error: Invalid amount: {e}", err=True)
            ctx.exit(1)

    try:
        invoice = service.record_payment(
            invoice_id,
            paid_date=paid_on,
            amount=paid_amount,
            payment_method=method,
            reference=reference,
        )
    except ValueError as e:
        handle_domain_error(ctx, e)
        return
    click.echo(
        f"Recorded payment of {format_amount(invoice.paid_amount)} for invoice {invoice_id} on {invoice.paid_date}"
    )


@invoice_group.command("cancel")
@click.argument("invoice_id")
@click.pass_context
def cancel_invoice(ctx, invoice_id: str):
    """Cancel an unpaid invoice."""
    service = InvoiceService(get_database(ctx))
    try:
        service.cancel_invoice(invoice_id)
    except ValueError as e:
        handle_domain_error(ctx, e)
        return
    click.echo(f"Invoice {invoice_id} cancelled")


@invoice_group.command("delete")
@click.argument("invoice_id")
@click.option("--yes", is_flag=True, help="Skip confirmation")
@click.pass_context
def delete_invoice(ctx, invoice_id: str, yes: bool):
    """Delete an invoice."""
    service = InvoiceService(get_database(ctx))
    if not yes:
        click.confirm(f"Delete invoice {invoice_id}?", abort=True)
    try:
        service.delete_invoice(invoice_id)
    except ValueError as e:
        handle_domain_error(ctx, e)
        return
    click.echo(f"Deleted invoice {invoice_id}")


@invoice_group.command("mark-overdue")
@click.option("--as-of", help="Date to evaluate due dates against (defaults to today)")
@click.pass_context
def mark_overdue(ctx, as_of: str | None):
    """Flag sent invoices past their due date as overdue."""
    service = InvoiceService(get_database(ctx))
    changed = service.mark_overdue(resolve_as_of(ctx, as_of))
    if not changed:
        click.echo("No invoices became overdue.")
        return
    for inv in changed:
        click.echo(f"Invoice {inv.id} is overdue (due {inv.due_date})")
    click.echo(f"Marked {len(changed)} invoice(s) as overdue")


def register_commands(cli):
    """Register invoice commands with main CLI."""
    cli.add_command(invoice_group, name="invoice")
