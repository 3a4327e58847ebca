"""Utility functions for spacefin."""

from spacefin.utils.date_parser import parse_date, get_date_range
from spacefin.utils.amount_parser import parse_amount, parse_rate

__all__ = ["parse_date", "get_date_range", "parse_amount", "parse_rate"]
