"""Shared pytest fixtures for spacefin tests."""

import tempfile
import os
from datetime import date
from decimal import Decimal
from pathlib import Path
import pytest

from spacefin.database.factories import create_sqlite_database
from spacefin.domain.entities import Invoice, InvoiceStatus, LineItem, PaymentTerm
from spacefin.domain.invoice import InvoiceService
from spacefin.domain.reports import FinancialReportService


@pytest.fixture
def temp_db():
    """Create a temporary database for testing."""
    # Create a temporary file for the database
    fd, db_path = tempfile.mkstemp(suffix=".db")
    os.close(fd)

    # Create database
    db = create_sqlite_database(database_path=db_path)
    # Store the path for tests that need it
    db.database_path = db_path
    db.connect()
    db.initialize_schema()

    yield db

    # Cleanup
    db.disconnect()
    if os.path.exists(db_path):
        os.unlink(db_path)


@pytest.fixture
def invoice_service(temp_db):
    """Create an InvoiceService with a temporary database."""
    return InvoiceService(temp_db)


@pytest.fixture
def report_service():
    """Create a FinancialReportService with the default settings."""
    return FinancialReportService()


@pytest.fixture
def sample_items():
    """Two desk bookings and one meeting room hour."""
    return [
        LineItem(description="Hot Desk", quantity=Decimal("2"), unit_price=Decimal("100000")),
        LineItem(description="Meeting Room", quantity=Decimal("1"), unit_price=Decimal("50000")),
    ]


@pytest.fixture
def sample_invoice(invoice_service, sample_items):
    """Create a draft invoice issued on 2024-05-10."""
    return invoice_service.create_invoice(
        customer_name="PT Maju Jaya",
        items=sample_items,
        issue_date=date(2024, 5, 10),
        payment_term=PaymentTerm.NET30,
        discount_rate=Decimal("10"),
        customer_email="finance@majujaya.co.id",
        order_id="ORD-1001",
        service_name="Hot Desk",
        city_name="Jakarta",
    )


@pytest.fixture
def make_invoice():
    """Build an in-memory invoice entity with sensible defaults."""

    def _make(invoice_id="INV-1", total="100", status=InvoiceStatus.PAID, **kwargs):
        total = Decimal(total)
        kwargs.setdefault("customer_name", "Customer")
        kwargs.setdefault("subtotal", total)
        return Invoice(id=invoice_id, total=total, status=status, **kwargs)

    return _make


@pytest.fixture
def cli_runner():
    """Create a Click CLI test runner."""
    from click.testing import CliRunner

    return CliRunner()


@pytest.fixture
def fixtures_dir():
    """Return the path to the test fixtures directory."""
    return Path(__file__).parent / "fixtures"
