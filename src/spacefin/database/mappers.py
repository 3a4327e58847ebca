"""Mapper functions to convert between domain models and SQLAlchemy models.

This layer isolates the conversion logic, so the invoice entities stay
independent of how rows are laid out in the store.
"""

from decimal import Decimal
from typing import Optional

from spacefin.domain import entities as domain
from spacefin.database.models import (
    Invoice as ORMInvoice,
    LineItem as ORMLineItem,
)


def _decimal(value) -> Decimal:
    """Return a Decimal with trailing zeros removed."""
    if value is None:
        return domain.ZERO
    result = Decimal(value)
    # Normalize only when it does not switch to exponent notation
    normalized = result.normalize()
    return normalized if normalized.as_tuple().exponent <= 0 else result.quantize(Decimal(1))


def line_item_to_domain(orm_item: ORMLineItem) -> domain.LineItem:
    """Convert SQLAlchemy LineItem model to domain LineItem entity."""
    return domain.LineItem(
        description=orm_item.description,
        quantity=_decimal(orm_item.quantity),
        unit_price=_decimal(orm_item.unit_price),
    )


def invoice_to_domain(orm_invoice: ORMInvoice) -> domain.Invoice:
    """Convert SQLAlchemy Invoice model to domain Invoice entity."""
    payment_term: Optional[domain.PaymentTerm] = None
    if orm_invoice.payment_term:
        payment_term = domain.PaymentTerm(orm_invoice.payment_term)

    return domain.Invoice(
        id=orm_invoice.id,
        customer_name=orm_invoice.customer_name,
        items=tuple(line_item_to_domain(item) for item in orm_invoice.items),
        tax_rate=_decimal(orm_invoice.tax_rate),
        discount_rate=_decimal(orm_invoice.discount_rate),
        subtotal=_decimal(orm_invoice.subtotal),
        discount_amount=_decimal(orm_invoice.discount_amount),
        tax_amount=_decimal(orm_invoice.tax_amount),
        total=_decimal(orm_invoice.total),
        status=domain.InvoiceStatus(orm_invoice.status),
        issue_date=orm_invoice.issue_date,
        payment_term=payment_term,
        due_date=orm_invoice.due_date,
        paid_date=orm_invoice.paid_date,
        paid_amount=_decimal(orm_invoice.paid_amount),
        payment_method=orm_invoice.payment_method,
        payment_reference=orm_invoice.payment_reference,
        order_id=orm_invoice.order_id,
        customer_email=orm_invoice.customer_email,
        customer_phone=orm_invoice.customer_phone,
        service_name=orm_invoice.service_name or domain.UNKNOWN_SERVICE,
        city_name=orm_invoice.city_name or domain.UNKNOWN_CITY,
        notes=orm_invoice.notes,
        created_at=orm_invoice.created_at,
        updated_at=orm_invoice.updated_at,
    )


def apply_invoice_to_orm(invoice: domain.Invoice, orm_invoice: ORMInvoice) -> ORMInvoice:
    """Copy every field of a domain Invoice onto an ORM row, replacing its items."""
    orm_invoice.id = invoice.id
    orm_invoice.order_id = invoice.order_id
    orm_invoice.customer_name = invoice.customer_name
    orm_invoice.customer_email = invoice.customer_email
    orm_invoice.customer_phone = invoice.customer_phone
    orm_invoice.tax_rate = invoice.tax_rate
    orm_invoice.discount_rate = invoice.discount_rate
    orm_invoice.subtotal = invoice.subtotal
    orm_invoice.discount_amount = invoice.discount_amount
    orm_invoice.tax_amount = invoice.tax_amount
    orm_invoice.total = invoice.total
    orm_invoice.status = invoice.status.value
    orm_invoice.issue_date = invoice.issue_date
    orm_invoice.payment_term = invoice.payment_term.value if invoice.payment_term else None
    orm_invoice.due_date = invoice.due_date
    orm_invoice.paid_date = invoice.paid_date
    orm_invoice.paid_amount = invoice.paid_amount
    orm_invoice.payment_method = invoice.payment_method
    orm_invoice.payment_reference = invoice.payment_reference
    orm_invoice.service_name = invoice.service_name
    orm_invoice.city_name = invoice.city_name
    orm_invoice.notes = invoice.notes
    orm_invoice.items = [
        ORMLineItem(
            position=position,
            description=item.description,
            quantity=item.quantity,
            unit_price=item.unit_price,
        )
        for position, item in enumerate(invoice.items)
    ]
    return orm_invoice
