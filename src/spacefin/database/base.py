"""Abstract database interface."""

from abc import ABC, abstractmethod
from typing import Optional

# Import entities directly to avoid circular import through domain/__init__.py
from spacefin.domain.entities import Invoice, InvoiceStatus


class Database(ABC):
    """Abstract invoice store interface for spacefin."""

    @abstractmethod
    def connect(self) -> None:
        """Connect to the database."""
        pass

    @abstractmethod
    def disconnect(self) -> None:
        """Disconnect from the database."""
        pass

    @abstractmethod
    def initialize_schema(self) -> None:
        """Initialize database schema (create tables)."""
        pass

    # Invoice operations
    @abstractmethod
    def create_invoice(self, invoice: Invoice) -> str:
        """Persist a new invoice with its line items. Returns invoice ID."""
        pass

    @abstractmethod
    def get_invoice(self, invoice_id: str) -> Optional[Invoice]:
        """Get invoice by ID."""
        pass

    @abstractmethod
    def invoice_exists(self, invoice_id: str) -> bool:
        """Check if an invoice with the given ID exists."""
        pass

    @abstractmethod
    def save_invoice(self, invoice: Invoice) -> None:
        """Replace a stored invoice, including its line items."""
        pass

    @abstractmethod
    def delete_invoice(self, invoice_id: str) -> None:
        """Delete an invoice and its line items."""
        pass

    @abstractmethod
    def list_invoices(
        self,
        status: Optional[InvoiceStatus] = None,
        customer_email: Optional[str] = None,
        order_id: Optional[str] = None,
    ) -> list[Invoice]:
        """List invoices with optional filters, newest issue date first.

        Args:
            status: Optional status filter
            customer_email: Optional exact customer email filter
            order_id: Optional order ID filter
        """
        pass

    @abstractmethod
    def list_invoice_ids(self, prefix: str) -> list[str]:
        """List invoice IDs starting with prefix."""
        pass
