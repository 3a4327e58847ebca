"""Tests for invoice CLI commands."""

import pytest
from datetime import date
from decimal import Decimal

from spacefin.cli.commands.invoice import parse_item
from spacefin.cli.main import cli
from spacefin.domain.entities import InvoiceStatus


def _invoke(cli_runner, temp_db, *args):
    return cli_runner.invoke(cli, ["--db-path", temp_db.database_path, *args])


def _create(cli_runner, temp_db, *extra):
    return _invoke(
        cli_runner,
        temp_db,
        "invoice",
        "create",
        "--customer",
        "PT Maju Jaya",
        "--item",
        "Hot Desk:2:100000",
        "--item",
        "Meeting Room:1:Rp 50,000",
        "--discount-rate",
        "10%",
        "--issue-date",
        "2024-05-10",
        *extra,
    )


def test_parse_item():
    item = parse_item("Room: Garuda:2:150000")
    assert item.description == "Room: Garuda"
    assert item.quantity == Decimal("2")
    assert item.unit_price == Decimal("150000")


@pytest.mark.parametrize("value", ["Hot Desk", "Hot Desk:2", "Hot Desk:two:100"])
def test_parse_item_rejects_malformed(value):
    with pytest.raises(ValueError):
        parse_item(value)


def test_create_invoice(cli_runner, temp_db):
    result = _create(cli_runner, temp_db, "--service", "Hot Desk", "--city", "Jakarta")

    assert result.exit_code == 0, result.output
    assert "Created invoice INV-2024-05-001 for PT Maju Jaya" in result.output
    assert "Rp 249,750" in result.output
    assert "2024-06-09" in result.output

    stored = temp_db.get_invoice("INV-2024-05-001")
    assert stored.total == Decimal("249750")
    assert stored.city_name == "Jakarta"


def test_create_invoice_uses_global_tax_rate(cli_runner, temp_db):
    result = cli_runner.invoke(
        cli,
        [
            "--db-path",
            temp_db.database_path,
            "--tax-rate",
            "12",
            "invoice",
            "create",
            "--customer",
            "CV Kreatif",
            "--item",
            "Desk:1:100000",
            "--issue-date",
            "2024-05-10",
        ],
    )

    assert result.exit_code == 0, result.output
    assert temp_db.get_invoice("INV-2024-05-001").tax_amount == Decimal("12000")


def test_create_invoice_tax_rate_from_environment(cli_runner, temp_db):
    result = cli_runner.invoke(
        cli,
        [
            "--db-path",
            temp_db.database_path,
            "invoice",
            "create",
            "--customer",
            "CV Kreatif",
            "--item",
            "Desk:1:100000",
            "--issue-date",
            "2024-05-10",
        ],
        env={"SPACEFIN_TAX_RATE": "0"},
    )

    assert result.exit_code == 0, result.output
    assert temp_db.get_invoice("INV-2024-05-001").total == Decimal("100000")


def test_create_invoice_invalid_item(cli_runner, temp_db):
    result = _invoke(
        cli_runner,
        temp_db,
        "invoice",
        "create",
        "--customer",
        "PT",
        "--item",
        "Desk:0:100",
    )

    assert result.exit_code == 1
    assert "quantity must be greater than 0" in result.output


def test_create_invoice_invalid_terms(cli_runner, temp_db):
    result = _create(cli_runner, temp_db, "--terms", "NET90")

    assert result.exit_code == 1
    assert "Unknown payment term" in result.output


def test_quote(cli_runner, temp_db):
    result = _invoke(
        cli_runner,
        temp_db,
        "invoice",
        "quote",
        "--item",
        "Hot Desk:2:100000",
        "--item",
        "Meeting Room:1:50000",
        "--discount-rate",
        "10",
    )

    assert result.exit_code == 0, result.output
    assert "Rp 250,000" in result.output
    assert "-Rp 25,000" in result.output
    assert "Rp 24,750" in result.output
    assert "Rp 249,750" in result.output
    assert temp_db.list_invoices() == []


def test_list_and_show(cli_runner, temp_db):
    _create(cli_runner, temp_db, "--order", "ORD-1001", "--notes", "Monthly booking")

    result = _invoke(cli_runner, temp_db, "invoice", "list")
    assert result.exit_code == 0
    assert "Found 1 invoice(s)" in result.output
    assert "INV-2024-05-001" in result.output

    result = _invoke(cli_runner, temp_db, "invoice", "show", "INV-2024-05-001")
    assert result.exit_code == 0
    assert "Invoice INV-2024-05-001 [draft]" in result.output
    assert "Meeting Room" in result.output
    assert "Order: ORD-1001" in result.output
    assert "Notes: Monthly booking" in result.output


def test_list_empty(cli_runner, temp_db):
    result = _invoke(cli_runner, temp_db, "invoice", "list", "--status", "paid")

    assert result.exit_code == 0
    assert "No invoices found." in result.output


def test_list_unknown_status(cli_runner, temp_db):
    result = _invoke(cli_runner, temp_db, "invoice", "list", "--status", "lost")

    assert result.exit_code == 1
    assert "Unknown invoice status" in result.output


def test_show_missing(cli_runner, temp_db):
    result = _invoke(cli_runner, temp_db, "invoice", "show", "INV-404")

    assert result.exit_code == 1
    assert "Invoice INV-404 not found" in result.output


def test_update_reprices(cli_runner, temp_db):
    _create(cli_runner, temp_db)

    result = _invoke(
        cli_runner,
        temp_db,
        "invoice",
        "update",
        "INV-2024-05-001",
        "--discount-rate",
        "0",
        "--terms",
        "NET15",
    )

    assert result.exit_code == 0, result.output
    stored = temp_db.get_invoice("INV-2024-05-001")
    assert stored.total == Decimal("277500")
    assert stored.due_date == date(2024, 5, 25)


def test_full_lifecycle(cli_runner, temp_db):
    _create(cli_runner, temp_db)

    result = _invoke(cli_runner, temp_db, "invoice", "send", "INV-2024-05-001")
    assert result.exit_code == 0
    assert "marked as sent" in result.output

    result = _invoke(cli_runner, temp_db, "invoice", "mark-overdue", "--as-of", "2024-06-15")
    assert result.exit_code == 0
    assert "Marked 1 invoice(s) as overdue" in result.output

    result = _invoke(
        cli_runner,
        temp_db,
        "invoice",
        "pay",
        "INV-2024-05-001",
        "--date",
        "2024-06-20",
        "--method",
        "cash",
        "--reference",
        "RCPT-1",
    )
    assert result.exit_code == 0, result.output
    assert "Recorded payment of Rp 249,750" in result.output

    stored = temp_db.get_invoice("INV-2024-05-001")
    assert stored.status is InvoiceStatus.PAID
    assert stored.paid_date == date(2024, 6, 20)

    result = _invoke(cli_runner, temp_db, "invoice", "cancel", "INV-2024-05-001")
    assert result.exit_code == 1
    assert "Cannot cancel invoice INV-2024-05-001: invoice is paid" in result.output


def test_send_missing_invoice(cli_runner, temp_db):
    result = _invoke(cli_runner, temp_db, "invoice", "send", "INV-404")

    assert result.exit_code == 1
    assert "Invoice INV-404 not found" in result.output


def test_pay_invalid_amount(cli_runner, temp_db):
    _create(cli_runner, temp_db)

    result = _invoke(cli_runner, temp_db, "invoice", "pay", "INV-2024-05-001", "--amount", "lots")

    assert result.exit_code == 1
    assert "Invalid amount" in result.output


def test_delete_with_confirmation(cli_runner, temp_db):
    _create(cli_runner, temp_db)

    result = _invoke(cli_runner, temp_db, "invoice", "delete", "INV-2024-05-001", "--yes")

    assert result.exit_code == 0
    assert "Deleted invoice INV-2024-05-001" in result.output
    assert temp_db.get_invoice("INV-2024-05-001") is None


def test_mark_overdue_nothing_to_do(cli_runner, temp_db):
    result = _invoke(cli_runner, temp_db, "invoice", "mark-overdue", "--as-of", "2024-06-15")

    assert result.exit_code == 0
    assert "No invoices became overdue." in result.output
