"""Domain layer for spacefin application."""

from spacefin.domain.invoice import InvoiceService
from spacefin.domain.reports import FinancialReportService
from spacefin.domain.calculator import compute_due_date, price_invoice, price_draft

__all__ = [
    "InvoiceService",
    "FinancialReportService",
    "compute_due_date",
    "price_invoice",
    "price_draft",
]
