"""Currency rounding and formatting utilities"""

import math


def round2(amount: float) -> float:
    """Round to cents, half-up (2.345 -> 2.35, -2.345 -> -2.34)"""
    return math.floor(amount * 100 + 0.5) / 100


def format_currency(amount: float) -> str:
    """Format dollars with thousands separators and cents: 1234.5 -> '1,234.50'"""
    return f"{amount:,.2f}"


def format_percent(rate: float) -> str:
    """Format a decimal rate as a percentage: 0.0625 -> '6.25'"""
    return f"{rate * 100:.2f}"
