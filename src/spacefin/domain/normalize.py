"""Normalization of raw invoice records into domain entities.

Records exported from the document store are loosely shaped: keys may be
camelCase or snake_case, dimension values may be plain strings or nested
objects with a ``name``, and dates arrive as ISO strings, epoch numbers,
serialized timestamps or real date objects. Everything is resolved here so
that report code only ever sees canonical ``Invoice`` entities.
"""

import logging
from datetime import date, datetime, timezone
from decimal import Decimal, InvalidOperation
from typing import Any, Iterable, Mapping, Optional

from spacefin.domain.calculator import parse_payment_term
from spacefin.domain.entities import (
    DataQualityWarning,
    Invoice,
    InvoiceStatus,
    LineItem,
    PaymentTerm,
    ReportDimension,
    UNKNOWN_CITY,
    UNKNOWN_SERVICE,
    ZERO,
)
from spacefin.domain.errors import ValidationError
from spacefin.utils.amount_parser import parse_amount
from spacefin.utils.date_parser import as_date, parse_datetime

logger = logging.getLogger(__name__)

INPUT_VIEW = "input"


def _field(record: Mapping[str, Any], *keys: str) -> Any:
    """Return the first non-None value among the given keys."""
    for key in keys:
        value = record.get(key)
        if value is not None:
            return value
    return None


def coerce_decimal(value: Any) -> Optional[Decimal]:
    """Convert a stored numeric value to Decimal, or None if unusable."""
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, Decimal):
        return value if value.is_finite() else None
    if isinstance(value, int):
        return Decimal(value)
    if isinstance(value, float):
        result = Decimal(str(value))
        return result if result.is_finite() else None
    if isinstance(value, str):
        try:
            return parse_amount(value)
        except ValueError:
            return None
    return None


def coerce_date(value: Any) -> Optional[date]:
    """Convert a stored date-like value to a date, or None if unusable."""
    if value is None or value == "":
        return None
    if isinstance(value, date):
        return as_date(value)
    if isinstance(value, Mapping):
        seconds = _field(value, "seconds", "_seconds")
        if seconds is None:
            return None
        value = seconds
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        # Epoch values above 1e11 are milliseconds
        if abs(value) > 1e11:
            value = value / 1000
        try:
            return datetime.fromtimestamp(value, tz=timezone.utc).date()
        except (OverflowError, OSError, ValueError):
            return None
    if isinstance(value, str):
        try:
            return parse_datetime(value).date()
        except ValueError:
            return None
    to_datetime = getattr(value, "to_datetime", None)
    if callable(to_datetime):
        return as_date(to_datetime())
    return None


def coerce_dimension(value: Any, dimension: ReportDimension) -> str:
    """Resolve a dimension value that may be a string or an object with a name."""
    if isinstance(value, Mapping):
        value = value.get("name")
    elif value is not None and not isinstance(value, str):
        value = getattr(value, "name", None)
    if isinstance(value, str) and value.strip():
        return value.strip()
    return dimension.unknown_label


def coerce_status(value: Any) -> InvoiceStatus:
    """Resolve a stored status string.

    Raises:
        ValidationError: If the status is missing or unrecognized
    """
    if isinstance(value, InvoiceStatus):
        return value
    if not isinstance(value, str) or not value.strip():
        raise ValidationError(f"Invoice status is missing or malformed: {value!r}")
    normalized = value.strip().lower()
    if normalized == "canceled":
        normalized = InvoiceStatus.CANCELLED.value
    try:
        return InvoiceStatus(normalized)
    except ValueError:
        raise ValidationError(f"Unknown invoice status '{value}'")


def _optional_text(value: Any) -> Optional[str]:
    if value is None:
        return None
    text = str(value).strip()
    return text or None


def _line_items(raw_items: Any) -> tuple[LineItem, ...]:
    if not isinstance(raw_items, (list, tuple)):
        return ()
    items = []
    for raw in raw_items:
        if isinstance(raw, LineItem):
            items.append(raw)
            continue
        if not isinstance(raw, Mapping):
            continue
        items.append(
            LineItem(
                description=str(_field(raw, "description", "name") or "").strip(),
                quantity=coerce_decimal(_field(raw, "quantity", "qty")) or ZERO,
                unit_price=coerce_decimal(_field(raw, "unitPrice", "unit_price", "price"))
                or ZERO,
            )
        )
    return tuple(items)


def normalize_invoice(
    record: Mapping[str, Any],
    warnings: Optional[list[DataQualityWarning]] = None,
) -> Invoice:
    """Convert one raw record into an Invoice.

    Recoverable problems (unparseable dates, missing amounts) are appended
    to ``warnings`` and the affected field falls back to None or zero.

    Raises:
        ValidationError: If the record has no id or an unrecognized status
    """
    if warnings is None:
        warnings = []

    invoice_id = _optional_text(_field(record, "id", "invoiceId", "invoice_id"))
    if invoice_id is None:
        raise ValidationError("Invoice record has no id")

    def warn(reason: str) -> None:
        warnings.append(DataQualityWarning(invoice_id=invoice_id, view=INPUT_VIEW, reason=reason))

    status = coerce_status(_field(record, "status"))

    dates: dict[str, Optional[date]] = {}
    for name, keys in (
        ("issue_date", ("issueDate", "issuedDate", "issue_date")),
        ("due_date", ("dueDate", "due_date")),
        ("paid_date", ("paidDate", "paid_date")),
    ):
        raw = _field(record, *keys)
        parsed = coerce_date(raw)
        if raw not in (None, "") and parsed is None:
            warn(f"unparseable {name.replace('_', ' ')} {raw!r}")
        dates[name] = parsed

    amounts: dict[str, Optional[Decimal]] = {}
    for name, keys in (
        ("subtotal", ("subtotal", "amountBase", "amount_base")),
        ("discount_amount", ("discountAmount", "discount_amount")),
        ("tax_amount", ("taxAmount", "tax_amount")),
        ("total", ("total",)),
        ("paid_amount", ("paidAmount", "paid_amount")),
        ("tax_rate", ("taxRate", "tax_rate")),
        ("discount_rate", ("discountRate", "discount_rate")),
    ):
        raw = _field(record, *keys)
        parsed = coerce_decimal(raw)
        if raw is not None and parsed is None:
            warn(f"malformed {name.replace('_', ' ')} {raw!r}")
        amounts[name] = parsed

    subtotal = amounts["subtotal"] or ZERO
    discount_amount = amounts["discount_amount"] or ZERO
    tax_amount = amounts["tax_amount"] or ZERO
    total = amounts["total"]
    if total is None:
        total = subtotal - discount_amount + tax_amount
        if amounts["subtotal"] is None:
            warn("missing total and subtotal; amount treated as 0")

    payment_term: Optional[PaymentTerm] = None
    raw_term = _field(record, "paymentTerms", "paymentTerm", "payment_term")
    if raw_term not in (None, ""):
        try:
            payment_term = parse_payment_term(raw_term)
        except ValidationError:
            warn(f"unknown payment term {raw_term!r}")

    return Invoice(
        id=invoice_id,
        customer_name=_optional_text(_field(record, "customerName", "customer_name")) or "",
        items=_line_items(_field(record, "items", "lineItems", "line_items")),
        tax_rate=amounts["tax_rate"] or ZERO,
        discount_rate=amounts["discount_rate"] or ZERO,
        subtotal=subtotal,
        discount_amount=discount_amount,
        tax_amount=tax_amount,
        total=total,
        status=status,
        issue_date=dates["issue_date"],
        payment_term=payment_term,
        due_date=dates["due_date"],
        paid_date=dates["paid_date"],
        paid_amount=amounts["paid_amount"] or ZERO,
        payment_method=_optional_text(_field(record, "paymentMethod", "payment_method")),
        payment_reference=_optional_text(
            _field(record, "paymentReference", "payment_reference", "reference")
        ),
        order_id=_optional_text(_field(record, "orderId", "order_id")),
        customer_email=_optional_text(_field(record, "customerEmail", "customer_email")),
        customer_phone=_optional_text(_field(record, "customerPhone", "customer_phone")),
        service_name=coerce_dimension(
            _field(record, "serviceName", "service_name", "service"), ReportDimension.SERVICE
        ),
        city_name=coerce_dimension(
            _field(record, "cityName", "city_name", "city"), ReportDimension.CITY
        ),
        notes=_optional_text(_field(record, "notes")),
    )


def normalize_records(
    records: Iterable[Any],
) -> tuple[list[Invoice], list[DataQualityWarning]]:
    """Normalize a snapshot of records, dropping only the unusable ones.

    Invoice entities pass through unchanged.

    Returns:
        Tuple of (invoices, warnings)
    """
    invoices: list[Invoice] = []
    warnings: list[DataQualityWarning] = []

    for position, record in enumerate(records):
        if isinstance(record, Invoice):
            invoices.append(record)
            continue
        if not isinstance(record, Mapping):
            warnings.append(
                DataQualityWarning(
                    invoice_id=f"#{position}",
                    view=INPUT_VIEW,
                    reason=f"record is not a mapping ({type(record).__name__})",
                )
            )
            continue
        try:
            invoices.append(normalize_invoice(record, warnings))
        except ValidationError as e:
            record_id = _optional_text(_field(record, "id", "invoiceId", "invoice_id"))
            warnings.append(
                DataQualityWarning(
                    invoice_id=record_id or f"#{position}",
                    view=INPUT_VIEW,
                    reason=str(e),
                )
            )

    for warning in warnings:
        logger.warning(
            "Invoice %s: %s (%s)", warning.invoice_id, warning.reason, warning.view
        )
    return invoices, warnings


__all__ = [
    "coerce_date",
    "coerce_decimal",
    "coerce_dimension",
    "coerce_status",
    "normalize_invoice",
    "normalize_records",
]
