"""Financial report aggregation domain service.

Every view is a full pass over an in-memory snapshot of invoices, evaluated
as of a caller-supplied date. Nothing is cached between calls and the wall
clock is never consulted.
"""

import logging
from collections import defaultdict
from datetime import date
from decimal import Decimal, ROUND_HALF_UP
from typing import Any, Iterable, Optional, Sequence

from dateutil.relativedelta import relativedelta

from spacefin.domain.calculator import DEFAULT_TAX_RATE, HUNDRED
from spacefin.domain.entities import (
    AgingReport,
    CashFlowMonth,
    CashFlowReport,
    DataQualityWarning,
    DimensionBreakdown,
    DimensionBreakdownRow,
    Invoice,
    InvoiceStatistics,
    InvoiceStatus,
    Period,
    ReportDimension,
    ReportSnapshot,
    RevenueByPeriod,
    TaxMonth,
    TaxSummary,
    ZERO,
)
from spacefin.domain.normalize import normalize_records
from spacefin.utils.date_parser import (
    add_months,
    as_date,
    month_bounds,
    month_start,
    trailing_months,
)

logger = logging.getLogger(__name__)

AGING_VIEW = "aging"
CASH_FLOW_VIEW = "cash_flow"
TAX_VIEW = "tax"

DISPLAY_PERCENT = Decimal("0.1")


def percentage(part: Decimal, whole: Decimal) -> Decimal:
    """Return part / whole * 100, or 0 when whole is 0."""
    if whole == ZERO:
        return ZERO
    return part / whole * HUNDRED


def growth_percent(current: Decimal, previous: Decimal) -> Decimal:
    """Return period-over-period growth, defined as 0 when previous is 0."""
    if previous == ZERO:
        return ZERO
    return (current - previous) / previous * HUNDRED


def display_percent(value: Decimal) -> Decimal:
    """Round a percentage to one decimal place for display."""
    return value.quantize(DISPLAY_PERCENT, rounding=ROUND_HALF_UP)


def month_periods(as_of: date) -> tuple[Period, Period]:
    """Return (this month, previous month) as half-open periods."""
    start, end = month_bounds(as_of)
    return Period(start, end), Period(add_months(start, -1), start)


def preceding_period(period: Period) -> Period:
    """Return the period of equal length immediately before period.

    Whole calendar months map to the same number of preceding months;
    any other window is shifted back by its length in days.
    """
    delta = relativedelta(period.end, period.start)
    if period.start.day == 1 and period.end.day == 1 and delta.days == 0:
        months = delta.years * 12 + delta.months
        return Period(add_months(period.start, -months), period.start)
    return Period(period.start - (period.end - period.start), period.start)


def aging_bucket(days_past_due: int) -> str:
    """Map days past due onto one of the five aging buckets."""
    if days_past_due <= 0:
        return "current"
    if days_past_due <= 30:
        return "days_30"
    if days_past_due <= 60:
        return "days_60"
    if days_past_due <= 90:
        return "days_90"
    return "over_90"


def _paid(invoices: Iterable[Invoice]) -> list[Invoice]:
    return [inv for inv in invoices if inv.status is InvoiceStatus.PAID]


class FinancialReportService:
    """Service for building financial report views from invoice snapshots."""

    def __init__(
        self,
        tax_rate: Decimal = DEFAULT_TAX_RATE,
        months: int = 6,
        top_n: int = 5,
    ):
        """Initialize report service.

        Args:
            tax_rate: Configured tax rate in percent, echoed in the tax summary
            months: Length of the trailing cash flow and tax month walk
            top_n: Number of rows kept in dimension breakdowns
        """
        if months < 1:
            raise ValueError(f"months must be at least 1, got {months}")
        if top_n < 1:
            raise ValueError(f"top_n must be at least 1, got {top_n}")
        self.tax_rate = Decimal(tax_rate)
        self.months = months
        self.top_n = top_n

    def revenue_by_period(
        self,
        invoices: Sequence[Invoice],
        current_period: Period,
        previous_period: Period,
    ) -> RevenueByPeriod:
        """Sum paid revenue in two periods and compute growth.

        Paid invoices without a paid date belong to neither period.
        """
        current = ZERO
        previous = ZERO
        for inv in _paid(invoices):
            if inv.paid_date is None:
                continue
            if current_period.contains(inv.paid_date):
                current += inv.total
            elif previous_period.contains(inv.paid_date):
                previous += inv.total

        return RevenueByPeriod(
            current_period=current_period,
            previous_period=previous_period,
            current_revenue=current,
            previous_revenue=previous,
            growth_percent=growth_percent(current, previous),
        )

    def revenue_by_dimension(
        self,
        invoices: Sequence[Invoice],
        dimension: ReportDimension,
        combined_revenue: Decimal,
        window: Optional[Period] = None,
        warnings: Optional[list[DataQualityWarning]] = None,
    ) -> DimensionBreakdown:
        """Break paid revenue down by service or city.

        Args:
            invoices: Invoice snapshot
            dimension: Grouping dimension
            combined_revenue: Denominator for each row's percentage
            window: If given, only paid invoices with a paid date inside it count
            warnings: Collects paid invoices left out for lacking a paid date

        Returns:
            DimensionBreakdown with the top rows by amount, descending
        """
        amounts: dict[str, Decimal] = defaultdict(lambda: ZERO)
        counts: dict[str, int] = defaultdict(int)

        for inv in _paid(invoices):
            if window is not None:
                if inv.paid_date is None:
                    self._warn(warnings, inv, dimension.value, "paid invoice has no paid date")
                    continue
                if not window.contains(inv.paid_date):
                    continue
            key = inv.dimension_value(dimension).strip() or dimension.unknown_label
            amounts[key] += inv.total
            counts[key] += 1

        ranked = sorted(amounts.items(), key=lambda item: (-item[1], item[0]))
        rows = tuple(
            DimensionBreakdownRow(
                name=name,
                amount=amount,
                percentage=percentage(amount, combined_revenue),
                invoice_count=counts[name],
            )
            for name, amount in ranked[: self.top_n]
        )
        return DimensionBreakdown(
            dimension=dimension, rows=rows, combined_revenue=combined_revenue
        )

    def aging_receivables(
        self,
        invoices: Sequence[Invoice],
        as_of: date,
        warnings: Optional[list[DataQualityWarning]] = None,
    ) -> AgingReport:
        """Partition outstanding invoices into aging buckets.

        Outstanding invoices without a due date cannot be bucketed; their
        amount is still part of total_outstanding and is reported as
        unbucketed_amount.
        """
        as_of = as_date(as_of)
        buckets: dict[str, Decimal] = defaultdict(lambda: ZERO)
        bucket_counts: dict[str, int] = defaultdict(int)
        total_outstanding = ZERO
        unbucketed = ZERO
        skipped = 0

        for inv in invoices:
            if not inv.is_outstanding:
                continue
            total_outstanding += inv.total
            if inv.due_date is None:
                unbucketed += inv.total
                skipped += 1
                self._warn(warnings, inv, AGING_VIEW, "missing due date")
                continue
            bucket = aging_bucket((as_of - as_date(inv.due_date)).days)
            buckets[bucket] += inv.total
            bucket_counts[bucket] += 1

        return AgingReport(
            current=buckets["current"],
            days_30=buckets["days_30"],
            days_60=buckets["days_60"],
            days_90=buckets["days_90"],
            over_90=buckets["over_90"],
            total_outstanding=total_outstanding,
            unbucketed_amount=unbucketed,
            bucket_counts=dict(bucket_counts),
            skipped=skipped,
        )

    def monthly_cash_flow(
        self,
        invoices: Sequence[Invoice],
        as_of: date,
        warnings: Optional[list[DataQualityWarning]] = None,
    ) -> CashFlowReport:
        """Build the trailing monthly cash flow series.

        Outflow is always 0: there is no expense ledger to draw from.
        """
        inflow_by_month, skipped = self._paid_by_month(
            invoices, CASH_FLOW_VIEW, warnings, lambda inv: inv.total
        )
        months = []
        for month in trailing_months(as_date(as_of), self.months):
            inflow = inflow_by_month.get(month, ZERO)
            outflow = ZERO
            months.append(
                CashFlowMonth(month=month, inflow=inflow, outflow=outflow, net=inflow - outflow)
            )
        return CashFlowReport(months=tuple(months), skipped=skipped)

    def tax_summary(
        self,
        invoices: Sequence[Invoice],
        as_of: date,
        warnings: Optional[list[DataQualityWarning]] = None,
    ) -> TaxSummary:
        """Summarize tax collected on paid invoices.

        Totals cover every paid invoice. The monthly detail only lists
        months in the trailing walk that had revenue.
        """
        paid = _paid(invoices)
        revenue_by_month, skipped = self._paid_by_month(
            paid, TAX_VIEW, warnings, lambda inv: inv.total
        )
        tax_by_month, _ = self._paid_by_month(paid, TAX_VIEW, None, lambda inv: inv.tax_amount)

        details = tuple(
            TaxMonth(
                month=month,
                revenue=revenue_by_month[month],
                tax=tax_by_month.get(month, ZERO),
            )
            for month in trailing_months(as_date(as_of), self.months)
            if revenue_by_month.get(month, ZERO) != ZERO
        )
        return TaxSummary(
            total_tax=sum((inv.tax_amount for inv in paid), ZERO),
            total_revenue=sum((inv.total for inv in paid), ZERO),
            tax_rate=self.tax_rate,
            details=details,
            skipped=skipped,
        )

    def invoice_statistics(
        self, invoices: Sequence[Invoice], as_of: date
    ) -> InvoiceStatistics:
        """Count invoices and amounts for the dashboard.

        An invoice is overdue when it is explicitly marked overdue, or when
        it is still outstanding and its due date has passed.
        """
        as_of = as_date(as_of)
        paid = _paid(invoices)
        outstanding = [inv for inv in invoices if inv.is_outstanding]
        overdue = [
            inv
            for inv in outstanding
            if inv.status is InvoiceStatus.OVERDUE
            or (inv.due_date is not None and inv.due_date < as_of)
        ]
        return InvoiceStatistics(
            total_count=len(invoices),
            total_revenue=sum((inv.total for inv in invoices), ZERO),
            paid_count=len(paid),
            paid_amount=sum((inv.total for inv in paid), ZERO),
            overdue_count=len(overdue),
            overdue_amount=sum((inv.total for inv in overdue), ZERO),
            outstanding_count=len(outstanding),
            outstanding_amount=sum((inv.total for inv in outstanding), ZERO),
        )

    def build_report_snapshot(
        self,
        records: Iterable[Any],
        as_of: date,
        current_period: Optional[Period] = None,
        previous_period: Optional[Period] = None,
    ) -> ReportSnapshot:
        """Build every report view from one snapshot of invoice records.

        Args:
            records: Invoice entities or raw document-store mappings
            as_of: Date the report is evaluated at
            current_period: Defaults to the calendar month containing as_of
            previous_period: Defaults to the equal-length period before current_period

        Returns:
            ReportSnapshot including any data-quality warnings
        """
        as_of = as_date(as_of)
        invoices, warnings = normalize_records(records)

        if current_period is None:
            current_period, default_previous = month_periods(as_of)
        else:
            default_previous = preceding_period(current_period)
        previous_period = previous_period or default_previous

        revenue = self.revenue_by_period(invoices, current_period, previous_period)
        window = Period(
            min(current_period.start, previous_period.start),
            max(current_period.end, previous_period.end),
        )
        view_warnings: list[DataQualityWarning] = []
        by_service = self.revenue_by_dimension(
            invoices, ReportDimension.SERVICE, revenue.combined_revenue, window, view_warnings
        )
        by_city = self.revenue_by_dimension(
            invoices, ReportDimension.CITY, revenue.combined_revenue, window, view_warnings
        )
        aging = self.aging_receivables(invoices, as_of, view_warnings)
        cash_flow = self.monthly_cash_flow(invoices, as_of, view_warnings)
        tax = self.tax_summary(invoices, as_of, view_warnings)

        for warning in view_warnings:
            logger.warning(
                "Invoice %s excluded from %s: %s",
                warning.invoice_id,
                warning.view,
                warning.reason,
            )

        return ReportSnapshot(
            as_of=as_of,
            revenue=revenue,
            by_service=by_service,
            by_city=by_city,
            aging=aging,
            cash_flow=cash_flow,
            tax=tax,
            warnings=tuple(warnings + view_warnings),
        )

    def _paid_by_month(
        self,
        invoices: Iterable[Invoice],
        view: str,
        warnings: Optional[list[DataQualityWarning]],
        amount_of,
    ) -> tuple[dict[date, Decimal], int]:
        """Sum an amount of paid invoices keyed by the first day of the paid month."""
        by_month: dict[date, Decimal] = defaultdict(lambda: ZERO)
        skipped = 0
        for inv in _paid(invoices):
            if inv.paid_date is None:
                skipped += 1
                self._warn(warnings, inv, view, "paid invoice has no paid date")
                continue
            by_month[month_start(inv.paid_date)] += amount_of(inv)
        return by_month, skipped

    @staticmethod
    def _warn(
        warnings: Optional[list[DataQualityWarning]],
        invoice: Invoice,
        view: str,
        reason: str,
    ) -> None:
        if warnings is not None:
            warnings.append(
                DataQualityWarning(invoice_id=invoice.id, view=view, reason=reason)
            )
