"""Invoice domain service."""

import logging
from dataclasses import replace
from datetime import date
from decimal import Decimal
from typing import TYPE_CHECKING, Iterable, Optional, Union

from spacefin.domain.calculator import (
    DEFAULT_TAX_RATE,
    parse_payment_term,
    price_draft,
    to_decimal,
)
from spacefin.domain.entities import (
    Invoice,
    InvoiceStatistics,
    InvoiceStatus,
    LineItem,
    PaymentTerm,
    ReportDimension,
    ZERO,
)
from spacefin.domain.errors import (
    ConflictError,
    NotFoundError,
    ValidationError,
    invalid_status_transition,
    invoice_not_found,
)
from spacefin.domain.normalize import coerce_dimension
from spacefin.domain.reports import FinancialReportService

if TYPE_CHECKING:
    from spacefin.database.base import Database

logger = logging.getLogger(__name__)

INVOICE_ID_PREFIX = "INV"

PAYMENT_METHODS = (
    "bank_transfer",
    "cash",
    "credit_card",
    "debit_card",
    "e_wallet",
    "check",
    "other",
)

_UNSET = object()


def invoice_id_prefix(issue_date: date) -> str:
    """Return the monthly ID prefix, e.g. INV-2024-05."""
    return f"{INVOICE_ID_PREFIX}-{issue_date.year}-{issue_date.month:02d}"


def next_invoice_id(existing_ids: Iterable[str], issue_date: date) -> str:
    """Return the next sequential invoice ID for the issue month.

    IDs look like INV-2024-05-001; the sequence restarts each month and
    continues after the highest sequence already taken.
    """
    prefix = invoice_id_prefix(issue_date)
    max_sequence = 0
    for invoice_id in existing_ids:
        if not invoice_id.startswith(prefix + "-"):
            continue
        sequence_part = invoice_id[len(prefix) + 1:]
        if sequence_part.isdigit():
            max_sequence = max(max_sequence, int(sequence_part))
    return f"{prefix}-{max_sequence + 1:03d}"


class InvoiceService:
    """Service for managing the invoice lifecycle."""

    def __init__(self, db: "Database", default_tax_rate: Decimal = DEFAULT_TAX_RATE):
        """Initialize invoice service.

        Args:
            db: Database instance
            default_tax_rate: Tax rate in percent used when a caller gives none
        """
        self.db = db
        self.default_tax_rate = Decimal(default_tax_rate)

    def _require(self, invoice_id: str) -> Invoice:
        invoice = self.db.get_invoice(invoice_id)
        if invoice is None:
            raise NotFoundError(invoice_not_found(invoice_id))
        return invoice

    def create_invoice(
        self,
        customer_name: str,
        items: Iterable[LineItem],
        issue_date: date,
        payment_term: Union[PaymentTerm, str, int] = PaymentTerm.NET30,
        tax_rate: Optional[Decimal] = None,
        discount_rate: Decimal = ZERO,
        customer_email: Optional[str] = None,
        customer_phone: Optional[str] = None,
        order_id: Optional[str] = None,
        service_name: Optional[str] = None,
        city_name: Optional[str] = None,
        notes: Optional[str] = None,
        invoice_id: Optional[str] = None,
    ) -> Invoice:
        """Price and persist a new draft invoice.

        Args:
            customer_name: Customer name (required)
            items: Line items in display order
            issue_date: Issue date
            payment_term: Payment term code, label or day count
            tax_rate: Tax rate in percent (defaults to the service default)
            discount_rate: Discount rate in percent
            customer_email: Optional customer email
            customer_phone: Optional customer phone
            order_id: Optional booking order reference
            service_name: Optional service grouping label
            city_name: Optional city grouping label
            notes: Optional notes
            invoice_id: Explicit ID; generated from the issue month if omitted

        Returns:
            The priced, stored invoice

        Raises:
            ValidationError: If customer, items, rates or term are invalid
            ConflictError: If an explicit invoice ID is already taken
        """
        if not customer_name or not customer_name.strip():
            raise ValidationError("Customer name is required")
        if issue_date is None:
            raise ValidationError("Issue date is required")

        draft = Invoice(
            id=invoice_id or "",
            customer_name=customer_name.strip(),
            items=tuple(items),
            tax_rate=self.default_tax_rate if tax_rate is None else tax_rate,
            discount_rate=discount_rate,
            issue_date=issue_date,
            customer_email=customer_email,
            customer_phone=customer_phone,
            order_id=order_id,
            service_name=coerce_dimension(service_name, ReportDimension.SERVICE),
            city_name=coerce_dimension(city_name, ReportDimension.CITY),
            notes=notes,
        )
        priced = price_draft(draft, parse_payment_term(payment_term))

        if invoice_id is None:
            prefix = invoice_id_prefix(issue_date)
            invoice_id = next_invoice_id(self.db.list_invoice_ids(prefix), issue_date)
        elif self.db.invoice_exists(invoice_id):
            raise ConflictError(f"Invoice {invoice_id} already exists")

        priced = replace(priced, id=invoice_id)
        self.db.create_invoice(priced)
        logger.info("Created invoice %s for %s (total %s)", invoice_id, priced.customer_name, priced.total)
        return self._require(invoice_id)

    def get_invoice(self, invoice_id: str) -> Optional[Invoice]:
        """Get invoice by ID.

        Args:
            invoice_id: Invoice ID

        Returns:
            Invoice entity or None if not found
        """
        return self.db.get_invoice(invoice_id)

    def list_invoices(
        self,
        status: Optional[Union[InvoiceStatus, str]] = None,
        customer_email: Optional[str] = None,
        order_id: Optional[str] = None,
        search: Optional[str] = None,
    ) -> list[Invoice]:
        """List invoices with optional filters.

        Args:
            status: Optional status filter
            customer_email: Optional exact customer email filter
            order_id: Optional order ID filter
            search: Case-insensitive text matched against customer name,
                customer email, invoice ID and order ID

        Raises:
            ValidationError: If status is not a known invoice status
        """
        status_filter = None
        if status is not None:
            try:
                status_filter = InvoiceStatus(status)
            except ValueError:
                raise ValidationError(f"Unknown invoice status '{status}'")

        invoices = self.db.list_invoices(
            status=status_filter, customer_email=customer_email, order_id=order_id
        )
        if not search:
            return invoices

        needle = search.lower()
        return [
            inv
            for inv in invoices
            if any(
                needle in (value or "").lower()
                for value in (inv.customer_name, inv.customer_email, inv.id, inv.order_id)
            )
        ]

    def update_invoice(
        self,
        invoice_id: str,
        items: Optional[Iterable[LineItem]] = None,
        tax_rate: Optional[Decimal] = None,
        discount_rate: Optional[Decimal] = None,
        issue_date: Optional[date] = None,
        payment_term: Optional[Union[PaymentTerm, str, int]] = None,
        customer_name: Optional[str] = None,
        customer_email=_UNSET,
        customer_phone=_UNSET,
        service_name: Optional[str] = None,
        city_name: Optional[str] = None,
        notes=_UNSET,
    ) -> Invoice:
        """Update an invoice and re-price it from scratch.

        Only provided fields change. Totals and due date are always
        recomputed from the resulting items, rates, issue date and term.

        Raises:
            NotFoundError: If the invoice doesn't exist
            ConflictError: If the invoice is paid or cancelled
            ValidationError: If the resulting draft fails pricing validation
        """
        invoice = self._require(invoice_id)
        if not invoice.is_outstanding:
            raise ConflictError(
                invalid_status_transition(invoice_id, invoice.status.value, "edit")
            )

        changes = {}
        if items is not None:
            changes["items"] = tuple(items)
        if tax_rate is not None:
            changes["tax_rate"] = tax_rate
        if discount_rate is not None:
            changes["discount_rate"] = discount_rate
        if issue_date is not None:
            changes["issue_date"] = issue_date
        if customer_name is not None:
            if not customer_name.strip():
                raise ValidationError("Customer name is required")
            changes["customer_name"] = customer_name.strip()
        if customer_email is not _UNSET:
            changes["customer_email"] = customer_email
        if customer_phone is not _UNSET:
            changes["customer_phone"] = customer_phone
        if service_name is not None:
            changes["service_name"] = coerce_dimension(service_name, ReportDimension.SERVICE)
        if city_name is not None:
            changes["city_name"] = coerce_dimension(city_name, ReportDimension.CITY)
        if notes is not _UNSET:
            changes["notes"] = notes

        term = parse_payment_term(payment_term) if payment_term is not None else None
        updated = price_draft(replace(invoice, **changes), term)
        self.db.save_invoice(updated)
        logger.info("Updated invoice %s (total %s)", invoice_id, updated.total)
        return self._require(invoice_id)

    def send_invoice(self, invoice_id: str) -> Invoice:
        """Mark a draft invoice as sent.

        Raises:
            NotFoundError: If the invoice doesn't exist
            ConflictError: If the invoice is not a draft
        """
        invoice = self._require(invoice_id)
        if invoice.status is not InvoiceStatus.DRAFT:
            raise ConflictError(
                invalid_status_transition(invoice_id, invoice.status.value, "send")
            )
        if not invoice.items:
            raise ValidationError(f"Cannot send invoice {invoice_id}: it has no line items")
        return self._transition(invoice, status=InvoiceStatus.SENT)

    def record_payment(
        self,
        invoice_id: str,
        paid_date: date,
        amount: Optional[Decimal] = None,
        payment_method: str = "bank_transfer",
        reference: Optional[str] = None,
    ) -> Invoice:
        """Record full payment of an invoice and mark it paid.

        Args:
            invoice_id: Invoice ID
            paid_date: Date the payment was received
            amount: Amount received (defaults to the invoice total)
            payment_method: One of PAYMENT_METHODS
            reference: Optional bank or receipt reference

        Raises:
            NotFoundError: If the invoice doesn't exist
            ConflictError: If the invoice is already paid or cancelled
            ValidationError: If amount, date or method are invalid
        """
        invoice = self._require(invoice_id)
        if not invoice.is_outstanding:
            raise ConflictError(
                invalid_status_transition(invoice_id, invoice.status.value, "record payment for")
            )
        if paid_date is None:
            raise ValidationError("Payment date is required")
        if payment_method not in PAYMENT_METHODS:
            raise ValidationError(
                f"Unknown payment method '{payment_method}'. "
                f"Supported methods: {', '.join(PAYMENT_METHODS)}"
            )

        paid_amount = invoice.total if amount is None else to_decimal(amount, "Payment amount")
        if paid_amount <= ZERO:
            raise ValidationError(f"Payment amount must be greater than 0, got {paid_amount}")

        return self._transition(
            invoice,
            status=InvoiceStatus.PAID,
            paid_date=paid_date,
            paid_amount=paid_amount,
            payment_method=payment_method,
            payment_reference=reference,
        )

    def cancel_invoice(self, invoice_id: str) -> Invoice:
        """Cancel an unpaid invoice.

        Raises:
            NotFoundError: If the invoice doesn't exist
            ConflictError: If the invoice is paid or already cancelled
        """
        invoice = self._require(invoice_id)
        if not invoice.is_outstanding:
            raise ConflictError(
                invalid_status_transition(invoice_id, invoice.status.value, "cancel")
            )
        return self._transition(invoice, status=InvoiceStatus.CANCELLED)

    def delete_invoice(self, invoice_id: str) -> None:
        """Delete an invoice.

        Raises:
            NotFoundError: If the invoice doesn't exist
        """
        self._require(invoice_id)
        self.db.delete_invoice(invoice_id)
        logger.info("Deleted invoice %s", invoice_id)

    def mark_overdue(self, as_of: date) -> list[Invoice]:
        """Flag sent invoices whose due date is before as_of as overdue.

        Returns:
            The invoices that changed status
        """
        changed = []
        for invoice in self.db.list_invoices(status=InvoiceStatus.SENT):
            if invoice.due_date is not None and invoice.due_date < as_of:
                changed.append(self._transition(invoice, status=InvoiceStatus.OVERDUE))
        return changed

    def get_statistics(self, as_of: date) -> InvoiceStatistics:
        """Compute dashboard counters over all stored invoices."""
        return FinancialReportService().invoice_statistics(self.db.list_invoices(), as_of)

    def _transition(self, invoice: Invoice, status: InvoiceStatus, **changes) -> Invoice:
        updated = replace(invoice, status=status, **changes)
        self.db.save_invoice(updated)
        logger.info(
            "Invoice %s: %s -> %s", invoice.id, invoice.status.value, status.value
        )
        return self._require(invoice.id)
