"""Domain model entities for spacefin.

These are pure data classes representing invoicing and reporting concepts,
independent of database schema or the shape of records in the upstream
document store. Monetary amounts and rates are always Decimal.
"""

from dataclasses import dataclass, field
from datetime import date, datetime
from decimal import Decimal
from enum import Enum
from typing import Optional

UNKNOWN_SERVICE = "Unknown Service"
UNKNOWN_CITY = "Unknown City"

ZERO = Decimal("0")


class InvoiceStatus(str, Enum):
    """Lifecycle status of an invoice."""

    DRAFT = "draft"
    SENT = "sent"
    PAID = "paid"
    OVERDUE = "overdue"
    CANCELLED = "cancelled"


class PaymentTerm(str, Enum):
    """Payment term code with a fixed number of calendar days."""

    NET15 = "NET15"
    NET30 = "NET30"
    NET45 = "NET45"
    NET60 = "NET60"

    @property
    def days(self) -> int:
        return int(self.value[3:])


class ReportDimension(str, Enum):
    """Grouping dimension for revenue breakdowns."""

    SERVICE = "service"
    CITY = "city"

    @property
    def unknown_label(self) -> str:
        return UNKNOWN_SERVICE if self is ReportDimension.SERVICE else UNKNOWN_CITY


@dataclass(frozen=True)
class LineItem:
    """One priced entry within an invoice."""

    description: str
    quantity: Decimal
    unit_price: Decimal

    @property
    def amount(self) -> Decimal:
        return self.quantity * self.unit_price


@dataclass(frozen=True)
class PricedTotals:
    """Outputs of pricing a set of line items."""

    subtotal: Decimal
    discount_amount: Decimal
    tax_amount: Decimal
    total: Decimal

    @property
    def taxable_amount(self) -> Decimal:
        return self.subtotal - self.discount_amount


@dataclass(frozen=True)
class Invoice:
    """Invoice aggregate root.

    The four financial outputs are only ever produced by the calculator;
    services replace the whole entity rather than patching totals.
    """

    id: str
    customer_name: str
    items: tuple[LineItem, ...] = ()
    tax_rate: Decimal = ZERO
    discount_rate: Decimal = ZERO
    subtotal: Decimal = ZERO
    discount_amount: Decimal = ZERO
    tax_amount: Decimal = ZERO
    total: Decimal = ZERO
    status: InvoiceStatus = InvoiceStatus.DRAFT
    issue_date: Optional[date] = None
    payment_term: Optional[PaymentTerm] = None
    due_date: Optional[date] = None
    paid_date: Optional[date] = None
    paid_amount: Decimal = ZERO
    payment_method: Optional[str] = None
    payment_reference: Optional[str] = None
    order_id: Optional[str] = None
    customer_email: Optional[str] = None
    customer_phone: Optional[str] = None
    service_name: str = UNKNOWN_SERVICE
    city_name: str = UNKNOWN_CITY
    notes: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    @property
    def totals(self) -> PricedTotals:
        return PricedTotals(
            subtotal=self.subtotal,
            discount_amount=self.discount_amount,
            tax_amount=self.tax_amount,
            total=self.total,
        )

    @property
    def is_outstanding(self) -> bool:
        """True when the invoice still represents an open receivable."""
        return self.status not in (InvoiceStatus.PAID, InvoiceStatus.CANCELLED)

    def dimension_value(self, dimension: ReportDimension) -> str:
        if dimension is ReportDimension.SERVICE:
            return self.service_name
        return self.city_name


@dataclass(frozen=True)
class Period:
    """Half-open date window [start, end)."""

    start: date
    end: date

    def contains(self, day: date) -> bool:
        if isinstance(day, datetime):
            day = day.date()
        return self.start <= day < self.end


@dataclass(frozen=True)
class DataQualityWarning:
    """A record excluded from one report view because of missing data."""

    invoice_id: str
    view: str
    reason: str


@dataclass(frozen=True)
class RevenueByPeriod:
    """Paid revenue in the current and previous period."""

    current_period: Period
    previous_period: Period
    current_revenue: Decimal
    previous_revenue: Decimal
    growth_percent: Decimal

    @property
    def combined_revenue(self) -> Decimal:
        return self.current_revenue + self.previous_revenue


@dataclass(frozen=True)
class DimensionBreakdownRow:
    """Revenue for one dimension value."""

    name: str
    amount: Decimal
    percentage: Decimal
    invoice_count: int = 0


@dataclass(frozen=True)
class DimensionBreakdown:
    """Top-N revenue rows for a dimension."""

    dimension: ReportDimension
    rows: tuple[DimensionBreakdownRow, ...]
    combined_revenue: Decimal


@dataclass(frozen=True)
class AgingReport:
    """Outstanding receivables partitioned by days past due."""

    current: Decimal = ZERO
    days_30: Decimal = ZERO
    days_60: Decimal = ZERO
    days_90: Decimal = ZERO
    over_90: Decimal = ZERO
    total_outstanding: Decimal = ZERO
    unbucketed_amount: Decimal = ZERO
    bucket_counts: dict[str, int] = field(default_factory=dict)
    skipped: int = 0

    @property
    def bucketed_total(self) -> Decimal:
        return self.current + self.days_30 + self.days_60 + self.days_90 + self.over_90

    def buckets(self) -> tuple[tuple[str, Decimal], ...]:
        return (
            ("current", self.current),
            ("days_30", self.days_30),
            ("days_60", self.days_60),
            ("days_90", self.days_90),
            ("over_90", self.over_90),
        )


@dataclass(frozen=True)
class CashFlowMonth:
    """Cash movement in one calendar month."""

    month: date
    inflow: Decimal
    outflow: Decimal
    net: Decimal

    @property
    def label(self) -> str:
        return self.month.strftime("%Y-%m")


@dataclass(frozen=True)
class CashFlowReport:
    """Trailing monthly cash flow, oldest month first."""

    months: tuple[CashFlowMonth, ...]
    skipped: int = 0

    @property
    def inflow(self) -> Decimal:
        return sum((m.inflow for m in self.months), ZERO)

    @property
    def outflow(self) -> Decimal:
        return sum((m.outflow for m in self.months), ZERO)

    @property
    def net(self) -> Decimal:
        return self.inflow - self.outflow


@dataclass(frozen=True)
class TaxMonth:
    """Revenue and tax collected in one calendar month."""

    month: date
    revenue: Decimal
    tax: Decimal

    @property
    def label(self) -> str:
        return self.month.strftime("%Y-%m")


@dataclass(frozen=True)
class TaxSummary:
    """Tax totals across all paid invoices plus a monthly detail table."""

    total_tax: Decimal
    total_revenue: Decimal
    tax_rate: Decimal
    details: tuple[TaxMonth, ...]
    skipped: int = 0


@dataclass(frozen=True)
class InvoiceStatistics:
    """Counters for the finance dashboard."""

    total_count: int
    total_revenue: Decimal
    paid_count: int
    paid_amount: Decimal
    overdue_count: int
    overdue_amount: Decimal
    outstanding_count: int
    outstanding_amount: Decimal


@dataclass(frozen=True)
class ReportSnapshot:
    """Full output of one aggregator run. Never persisted."""

    as_of: date
    revenue: RevenueByPeriod
    by_service: DimensionBreakdown
    by_city: DimensionBreakdown
    aging: AgingReport
    cash_flow: CashFlowReport
    tax: TaxSummary
    warnings: tuple[DataQualityWarning, ...] = ()

    @property
    def skipped_count(self) -> int:
        return len(self.warnings)
