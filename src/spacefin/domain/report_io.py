"""Report input and export helpers.

Reads raw invoice exports from the document store and writes report
sections as CSV for spreadsheet users.
"""

import csv
import json
from decimal import Decimal
from pathlib import Path
from typing import Any, TextIO

from spacefin.domain.entities import ReportSnapshot
from spacefin.domain.errors import ValidationError
from spacefin.domain.reports import display_percent

REPORT_SECTIONS = ("revenue", "service", "city", "aging", "cashflow", "tax", "warnings")


def load_invoice_records(path: str) -> list[Any]:
    """Load raw invoice records from a JSON export.

    The file may hold a list of records or an object with an "invoices"
    list, which is what the console's list endpoint returns.

    Raises:
        FileNotFoundError: If the file doesn't exist
        ValidationError: If the file is not valid JSON of the expected shape
    """
    file_path = Path(path)
    if not file_path.exists():
        raise FileNotFoundError(f"Invoice export not found: {path}")

    with open(file_path, "r", encoding="utf-8") as f:
        try:
            data = json.load(f, parse_float=Decimal)
        except json.JSONDecodeError as e:
            raise ValidationError(f"Invalid JSON in {path}: {e}")

    if isinstance(data, dict):
        data = data.get("invoices")
    if not isinstance(data, list):
        raise ValidationError(
            f"Expected a list of invoices in {path}, or an object with an 'invoices' list"
        )
    return data


def report_rows(snapshot: ReportSnapshot, section: str) -> tuple[list[str], list[list[Any]]]:
    """Return (header, rows) for one report section.

    Raises:
        ValidationError: If section is unknown
    """
    if section == "revenue":
        revenue = snapshot.revenue
        return (
            ["period", "start", "end", "revenue"],
            [
                ["current", revenue.current_period.start, revenue.current_period.end, revenue.current_revenue],
                ["previous", revenue.previous_period.start, revenue.previous_period.end, revenue.previous_revenue],
                ["growth_percent", "", "", display_percent(revenue.growth_percent)],
            ],
        )

    if section in ("service", "city"):
        breakdown = snapshot.by_service if section == "service" else snapshot.by_city
        return (
            [section, "amount", "percentage", "invoices"],
            [
                [row.name, row.amount, display_percent(row.percentage), row.invoice_count]
                for row in breakdown.rows
            ],
        )

    if section == "aging":
        aging = snapshot.aging
        rows = [
            [name, amount, aging.bucket_counts.get(name, 0)]
            for name, amount in aging.buckets()
        ]
        rows.append(["unbucketed", aging.unbucketed_amount, aging.skipped])
        rows.append(["total_outstanding", aging.total_outstanding, ""])
        return ["bucket", "amount", "invoices"], rows

    if section == "cashflow":
        return (
            ["month", "inflow", "outflow", "net"],
            [[m.label, m.inflow, m.outflow, m.net] for m in snapshot.cash_flow.months],
        )

    if section == "tax":
        tax = snapshot.tax
        rows = [[m.label, m.revenue, m.tax] for m in tax.details]
        rows.append(["total", tax.total_revenue, tax.total_tax])
        return ["month", "revenue", "tax"], rows

    if section == "warnings":
        return (
            ["invoice_id", "view", "reason"],
            [[w.invoice_id, w.view, w.reason] for w in snapshot.warnings],
        )

    raise ValidationError(
        f"Unknown report section '{section}'. Supported sections: {', '.join(REPORT_SECTIONS)}"
    )


def write_report_csv(snapshot: ReportSnapshot, section: str, stream: TextIO) -> int:
    """Write one report section as CSV. Returns the number of data rows."""
    header, rows = report_rows(snapshot, section)
    writer = csv.writer(stream)
    writer.writerow(header)
    writer.writerows(rows)
    return len(rows)
