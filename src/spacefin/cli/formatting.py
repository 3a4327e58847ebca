"""CLI output formatting helpers."""

from decimal import Decimal

from spacefin.domain.reports import display_percent


def format_amount(amount: Decimal) -> str:
    """Format a currency amount, e.g. 'Rp 1,250,000' or 'Rp 12,500.50'."""
    if amount == amount.to_integral_value():
        return f"Rp {amount:,.0f}"
    return f"Rp {amount:,.2f}"


def format_percent(value: Decimal) -> str:
    """Format a percentage with one decimal place."""
    return f"{display_percent(value)}%"


def format_growth(value: Decimal) -> str:
    """Format growth with an explicit sign."""
    rounded = display_percent(value)
    sign = "+" if rounded > 0 else ""
    return f"{sign}{rounded}%"
