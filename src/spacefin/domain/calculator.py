"""Invoice pricing and due date rules.

Pricing is exact Decimal arithmetic over the line items:

    subtotal  = sum(quantity * unit_price)
    discount  = subtotal * discount_rate / 100
    taxable   = subtotal - discount
    tax       = taxable * tax_rate / 100
    total     = taxable + tax

Inputs are validated up front; a draft that fails validation is never
partially priced.
"""

from dataclasses import replace
from datetime import date, timedelta
from decimal import Decimal, InvalidOperation
from typing import Iterable, Optional, Union

from spacefin.domain.entities import Invoice, LineItem, PaymentTerm, PricedTotals, ZERO
from spacefin.domain.errors import (
    ValidationError,
    invalid_rate,
    unknown_payment_term,
)

# Indonesian PPN, the console's default when no rate is configured
DEFAULT_TAX_RATE = Decimal("11")

HUNDRED = Decimal("100")


def to_decimal(value: Union[Decimal, int, str, float, None], name: str) -> Decimal:
    """Convert a numeric input to Decimal, raising ValidationError if absent or malformed.

    Floats go through str() so 0.1 becomes Decimal("0.1") rather than its
    binary expansion.
    """
    if value is None or isinstance(value, bool):
        raise ValidationError(f"{name} is required")
    if isinstance(value, float):
        value = str(value)
    try:
        result = Decimal(value)
    except (InvalidOperation, TypeError, ValueError):
        raise ValidationError(f"{name} must be a number, got {value!r}")
    if not result.is_finite():
        raise ValidationError(f"{name} must be a finite number, got {value!r}")
    return result


def validate_rate(value, name: str) -> Decimal:
    """Validate a percentage in [0, 100] and return it as Decimal."""
    rate = to_decimal(value, name)
    if rate < ZERO or rate > HUNDRED:
        raise ValidationError(invalid_rate(name, value))
    return rate


def validate_line_items(items: Iterable[LineItem]) -> tuple[LineItem, ...]:
    """Check every line item and return them as a tuple.

    Raises:
        ValidationError: If any item has a blank description or a
            non-positive quantity or unit price
    """
    validated = []
    for index, item in enumerate(items, start=1):
        if not item.description or not item.description.strip():
            raise ValidationError(f"Item {index}: description is required")
        quantity = to_decimal(item.quantity, f"Item {index} quantity")
        unit_price = to_decimal(item.unit_price, f"Item {index} unit price")
        if quantity <= ZERO:
            raise ValidationError(
                f"Item {index}: quantity must be greater than 0, got {quantity}"
            )
        if unit_price <= ZERO:
            raise ValidationError(
                f"Item {index}: unit price must be greater than 0, got {unit_price}"
            )
        validated.append(
            LineItem(
                description=item.description.strip(),
                quantity=quantity,
                unit_price=unit_price,
            )
        )
    return tuple(validated)


def price_invoice(
    items: Iterable[LineItem],
    tax_rate,
    discount_rate,
) -> PricedTotals:
    """Price a set of line items.

    Args:
        items: Line items in invoice order
        tax_rate: Tax rate in percent, 0 to 100
        discount_rate: Discount rate in percent, 0 to 100

    Returns:
        PricedTotals with subtotal, discount, tax and total

    Raises:
        ValidationError: If an item or a rate is malformed
    """
    validated = validate_line_items(items)
    tax = validate_rate(tax_rate, "Tax rate")
    discount = validate_rate(discount_rate, "Discount rate")

    subtotal = sum((item.amount for item in validated), ZERO)
    discount_amount = subtotal * discount / HUNDRED
    taxable_amount = subtotal - discount_amount
    tax_amount = taxable_amount * tax / HUNDRED
    total = taxable_amount + tax_amount

    return PricedTotals(
        subtotal=subtotal,
        discount_amount=discount_amount,
        tax_amount=tax_amount,
        total=total,
    )


def parse_payment_term(code: Union[PaymentTerm, str, int]) -> PaymentTerm:
    """Resolve a payment term code.

    Accepts enum members, codes such as "NET30", labels such as "Net 30",
    and bare day counts such as 30.

    Raises:
        ValidationError: If the code is not one of the supported terms
    """
    if isinstance(code, PaymentTerm):
        return code
    if isinstance(code, bool):
        raise ValidationError(unknown_payment_term(code))
    if isinstance(code, int):
        normalized = f"NET{code}"
    elif isinstance(code, str):
        normalized = code.replace(" ", "").upper()
        if normalized.isdigit():
            normalized = f"NET{int(normalized)}"
    else:
        raise ValidationError(unknown_payment_term(code))

    try:
        return PaymentTerm(normalized)
    except ValueError:
        raise ValidationError(unknown_payment_term(code))


def compute_due_date(issue_date: date, payment_term: Union[PaymentTerm, str, int]) -> date:
    """Return issue date plus the term's calendar days."""
    if issue_date is None:
        raise ValidationError("Issue date is required to compute a due date")
    term = parse_payment_term(payment_term)
    return issue_date + timedelta(days=term.days)


def price_draft(invoice: Invoice, payment_term: Optional[PaymentTerm] = None) -> Invoice:
    """Return a copy of the invoice with totals and due date recomputed.

    All four outputs are derived from the items and rates on every call.
    """
    totals = price_invoice(invoice.items, invoice.tax_rate, invoice.discount_rate)
    term = payment_term or invoice.payment_term
    due_date = invoice.due_date
    if term is not None and invoice.issue_date is not None:
        term = parse_payment_term(term)
        due_date = compute_due_date(invoice.issue_date, term)

    return replace(
        invoice,
        items=validate_line_items(invoice.items),
        tax_rate=validate_rate(invoice.tax_rate, "Tax rate"),
        discount_rate=validate_rate(invoice.discount_rate, "Discount rate"),
        subtotal=totals.subtotal,
        discount_amount=totals.discount_amount,
        tax_amount=totals.tax_amount,
        total=totals.total,
        payment_term=term,
        due_date=due_date,
    )
