"""Tests for the invoice lifecycle service."""

import pytest
from datetime import date
from decimal import Decimal

from spacefin.domain.entities import InvoiceStatus, LineItem, PaymentTerm
from spacefin.domain.errors import ConflictError, NotFoundError, ValidationError
from spacefin.domain.invoice import InvoiceService, next_invoice_id


def test_next_invoice_id_starts_each_month_at_one():
    assert next_invoice_id([], date(2024, 5, 10)) == "INV-2024-05-001"


def test_next_invoice_id_continues_after_highest():
    existing = ["INV-2024-05-001", "INV-2024-05-007", "INV-2024-04-099", "INV-2024-05-draft"]
    assert next_invoice_id(existing, date(2024, 5, 31)) == "INV-2024-05-008"


def test_create_invoice_prices_and_persists(sample_invoice, temp_db):
    assert sample_invoice.id == "INV-2024-05-001"
    assert sample_invoice.status is InvoiceStatus.DRAFT
    assert sample_invoice.subtotal == Decimal("250000")
    assert sample_invoice.discount_amount == Decimal("25000")
    assert sample_invoice.tax_amount == Decimal("24750")
    assert sample_invoice.total == Decimal("249750")
    assert sample_invoice.tax_rate == Decimal("11")
    assert sample_invoice.due_date == date(2024, 6, 9)
    assert sample_invoice.payment_term is PaymentTerm.NET30
    assert [item.description for item in sample_invoice.items] == ["Hot Desk", "Meeting Room"]
    assert sample_invoice.created_at is not None

    stored = temp_db.get_invoice(sample_invoice.id)
    assert stored.total == Decimal("249750")


def test_create_invoice_sequence(invoice_service, sample_invoice, sample_items):
    second = invoice_service.create_invoice(
        customer_name="CV Kreatif", items=sample_items, issue_date=date(2024, 5, 20)
    )
    assert second.id == "INV-2024-05-002"


def test_create_invoice_uses_service_default_tax_rate(temp_db, sample_items):
    service = InvoiceService(temp_db, default_tax_rate=Decimal("12"))

    invoice = service.create_invoice(
        customer_name="CV Kreatif", items=sample_items, issue_date=date(2024, 5, 20)
    )

    assert invoice.tax_rate == Decimal("12")
    assert invoice.tax_amount == Decimal("30000")


def test_create_invoice_rejects_duplicate_id(invoice_service, sample_invoice, sample_items):
    with pytest.raises(ConflictError, match="already exists"):
        invoice_service.create_invoice(
            customer_name="Again",
            items=sample_items,
            issue_date=date(2024, 5, 10),
            invoice_id=sample_invoice.id,
        )


def test_create_invoice_requires_customer(invoice_service, sample_items):
    with pytest.raises(ValidationError, match="Customer name is required"):
        invoice_service.create_invoice(customer_name=" ", items=sample_items, issue_date=date(2024, 5, 1))


def test_create_invoice_rejects_invalid_item(invoice_service):
    items = [LineItem(description="Desk", quantity=Decimal("0"), unit_price=Decimal("10"))]
    with pytest.raises(ValidationError, match="quantity must be greater than 0"):
        invoice_service.create_invoice(customer_name="PT", items=items, issue_date=date(2024, 5, 1))
    assert invoice_service.list_invoices() == []


def test_create_invoice_rejects_unknown_term(invoice_service, sample_items):
    with pytest.raises(ValidationError, match="Unknown payment term"):
        invoice_service.create_invoice(
            customer_name="PT", items=sample_items, issue_date=date(2024, 5, 1), payment_term="NET90"
        )


def test_update_invoice_reprices(invoice_service, sample_invoice):
    updated = invoice_service.update_invoice(
        sample_invoice.id,
        items=[LineItem(description="Private Office", quantity=Decimal("1"), unit_price=Decimal("1000000"))],
        discount_rate=Decimal("0"),
        payment_term="NET15",
    )

    assert updated.subtotal == Decimal("1000000")
    assert updated.discount_amount == Decimal("0")
    assert updated.tax_amount == Decimal("110000")
    assert updated.total == Decimal("1110000")
    assert updated.due_date == date(2024, 5, 25)
    assert len(updated.items) == 1


@pytest.mark.parametrize("discount_rate", ["0.001", "0.0133", "0.199", "7.77"])
def test_update_without_pricing_changes_keeps_totals(invoice_service, discount_rate):
    created = invoice_service.create_invoice(
        customer_name="PT Maju Jaya",
        items=[
            LineItem(description="Hot Desk", quantity=Decimal("3"), unit_price=Decimal("1.01")),
            LineItem(description="Annual Lease", quantity=Decimal("1"), unit_price=Decimal("123456789012345.67")),
        ],
        issue_date=date(2024, 5, 10),
        tax_rate=Decimal("11.123456"),
        discount_rate=Decimal(discount_rate),
    )

    updated = invoice_service.update_invoice(created.id, notes="call first")

    assert updated.items[1].unit_price == Decimal("123456789012345.67")
    assert updated.tax_rate == Decimal("11.123456")
    assert updated.subtotal == created.subtotal
    assert updated.discount_amount == created.discount_amount
    assert updated.tax_amount == created.tax_amount
    assert updated.total == created.total
    assert updated.total == updated.subtotal - updated.discount_amount + updated.tax_amount


def test_update_invoice_issue_date_moves_due_date(invoice_service, sample_invoice):
    updated = invoice_service.update_invoice(sample_invoice.id, issue_date=date(2024, 5, 20))

    assert updated.due_date == date(2024, 6, 19)
    assert updated.total == sample_invoice.total


def test_update_invoice_can_clear_optional_fields(invoice_service, sample_invoice):
    updated = invoice_service.update_invoice(sample_invoice.id, customer_email=None, notes="Thanks")

    assert updated.customer_email is None
    assert updated.notes == "Thanks"


def test_update_paid_invoice_conflicts(invoice_service, sample_invoice):
    invoice_service.record_payment(sample_invoice.id, paid_date=date(2024, 5, 15))

    with pytest.raises(ConflictError, match="invoice is paid"):
        invoice_service.update_invoice(sample_invoice.id, discount_rate=Decimal("5"))


def test_update_missing_invoice(invoice_service):
    with pytest.raises(NotFoundError):
        invoice_service.update_invoice("INV-404", discount_rate=Decimal("5"))


def test_lifecycle_send_then_pay(invoice_service, sample_invoice):
    sent = invoice_service.send_invoice(sample_invoice.id)
    assert sent.status is InvoiceStatus.SENT

    paid = invoice_service.record_payment(
        sample_invoice.id,
        paid_date=date(2024, 6, 1),
        payment_method="cash",
        reference="RCPT-7",
    )
    assert paid.status is InvoiceStatus.PAID
    assert paid.paid_date == date(2024, 6, 1)
    assert paid.paid_amount == paid.total
    assert paid.payment_method == "cash"
    assert paid.payment_reference == "RCPT-7"


def test_send_twice_conflicts(invoice_service, sample_invoice):
    invoice_service.send_invoice(sample_invoice.id)
    with pytest.raises(ConflictError, match="Cannot send"):
        invoice_service.send_invoice(sample_invoice.id)


def test_send_without_items_fails(invoice_service):
    invoice = invoice_service.create_invoice(customer_name="PT", items=[], issue_date=date(2024, 5, 1))
    with pytest.raises(ValidationError, match="no line items"):
        invoice_service.send_invoice(invoice.id)


def test_record_payment_validations(invoice_service, sample_invoice):
    with pytest.raises(ValidationError, match="payment method"):
        invoice_service.record_payment(sample_invoice.id, paid_date=date(2024, 6, 1), payment_method="barter")
    with pytest.raises(ValidationError, match="greater than 0"):
        invoice_service.record_payment(sample_invoice.id, paid_date=date(2024, 6, 1), amount=Decimal("0"))
    with pytest.raises(ValidationError, match="Payment date is required"):
        invoice_service.record_payment(sample_invoice.id, paid_date=None)


def test_cancel_invoice(invoice_service, sample_invoice):
    cancelled = invoice_service.cancel_invoice(sample_invoice.id)
    assert cancelled.status is InvoiceStatus.CANCELLED

    with pytest.raises(ConflictError):
        invoice_service.record_payment(sample_invoice.id, paid_date=date(2024, 6, 1))
    with pytest.raises(ConflictError):
        invoice_service.cancel_invoice(sample_invoice.id)


def test_delete_invoice(invoice_service, sample_invoice):
    invoice_service.delete_invoice(sample_invoice.id)

    assert invoice_service.get_invoice(sample_invoice.id) is None
    with pytest.raises(NotFoundError):
        invoice_service.delete_invoice(sample_invoice.id)


def test_mark_overdue(invoice_service, sample_invoice, sample_items):
    invoice_service.send_invoice(sample_invoice.id)
    later = invoice_service.create_invoice(
        customer_name="CV Kreatif", items=sample_items, issue_date=date(2024, 6, 1)
    )
    invoice_service.send_invoice(later.id)

    changed = invoice_service.mark_overdue(date(2024, 6, 10))

    assert [inv.id for inv in changed] == [sample_invoice.id]
    assert invoice_service.get_invoice(sample_invoice.id).status is InvoiceStatus.OVERDUE
    assert invoice_service.get_invoice(later.id).status is InvoiceStatus.SENT
    assert invoice_service.mark_overdue(date(2024, 6, 10)) == []


def test_overdue_invoice_can_be_paid(invoice_service, sample_invoice):
    invoice_service.send_invoice(sample_invoice.id)
    invoice_service.mark_overdue(date(2024, 7, 1))

    paid = invoice_service.record_payment(sample_invoice.id, paid_date=date(2024, 7, 2))

    assert paid.status is InvoiceStatus.PAID


def test_list_invoices_filters(invoice_service, sample_invoice, sample_items):
    other = invoice_service.create_invoice(
        customer_name="CV Kreatif",
        items=sample_items,
        issue_date=date(2024, 6, 1),
        customer_email="hello@kreatif.id",
    )
    invoice_service.send_invoice(other.id)

    assert [inv.id for inv in invoice_service.list_invoices()] == [other.id, sample_invoice.id]
    assert [inv.id for inv in invoice_service.list_invoices(status="sent")] == [other.id]
    assert [inv.id for inv in invoice_service.list_invoices(order_id="ORD-1001")] == [sample_invoice.id]
    assert [inv.id for inv in invoice_service.list_invoices(search="kreatif")] == [other.id]
    assert [inv.id for inv in invoice_service.list_invoices(customer_email="finance@majujaya.co.id")] == [
        sample_invoice.id
    ]


def test_list_invoices_unknown_status(invoice_service):
    with pytest.raises(ValidationError, match="Unknown invoice status"):
        invoice_service.list_invoices(status="lost")


def test_get_statistics(invoice_service, sample_invoice, sample_items):
    invoice_service.send_invoice(sample_invoice.id)
    paid = invoice_service.create_invoice(
        customer_name="CV Kreatif", items=sample_items, issue_date=date(2024, 6, 1)
    )
    invoice_service.record_payment(paid.id, paid_date=date(2024, 6, 2))

    stats = invoice_service.get_statistics(date(2024, 6, 15))

    assert stats.total_count == 2
    assert stats.paid_count == 1
    assert stats.outstanding_count == 1
    assert stats.overdue_count == 1
    assert stats.overdue_amount == Decimal("249750")
