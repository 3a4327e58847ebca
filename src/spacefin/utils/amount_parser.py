"""Amount and rate parsing utilities."""

from decimal import Decimal, InvalidOperation
import re


def parse_amount(amount_str: str) -> Decimal:
    """Parse an amount string into a Decimal.

    Handles various formats:
    - "250000"
    - "Rp 250,000"
    - "IDR 1,250,000.50"
    - "$123.45"
    - "(123.45)" (negative in parentheses)

    Args:
        amount_str: Amount string

    Returns:
        Decimal amount

    Raises:
        ValueError: If amount string cannot be parsed
    """
    if not amount_str or not amount_str.strip():
        raise ValueError("Empty amount string")

    amount_str = amount_str.strip()

    is_negative = False
    if amount_str.startswith("(") and amount_str.endswith(")"):
        is_negative = True
        amount_str = amount_str[1:-1]

    amount_str = re.sub(r"(?i)^\s*(rp\.?|idr)", "", amount_str)
    amount_str = re.sub(r"[$€£¥]", "", amount_str)
    amount_str = amount_str.replace(",", "").strip()

    try:
        amount = Decimal(amount_str)
    except InvalidOperation:
        raise ValueError(f"Could not parse amount '{amount_str}'")
    if not amount.is_finite():
        raise ValueError(f"Could not parse amount '{amount_str}'")
    return -amount if is_negative else amount


def parse_rate(rate_str: str) -> Decimal:
    """Parse a percentage such as "11", "11%" or "7.5 %".

    Range checks belong to the calculator; this only parses.

    Raises:
        ValueError: If the string is not a number
    """
    if not rate_str or not rate_str.strip():
        raise ValueError("Empty rate string")
    cleaned = rate_str.strip().rstrip("%").strip()
    try:
        rate = Decimal(cleaned)
    except InvalidOperation:
        raise ValueError(f"Could not parse rate '{rate_str}'")
    if not rate.is_finite():
        raise ValueError(f"Could not parse rate '{rate_str}'")
    return rate
