"""
Formatting helpers shared across services.
Currency formatting, progress colors, date helpers.
"""

from decimal import Decimal
from datetime import datetime, date
from typing import Union


PROGRESS_COLOR_DEFAULT = "#9b87f5"
PROGRESS_COLOR_APPROACHING = "#f97316"
PROGRESS_COLOR_EXCEEDED = "#ea384c"

SCORE_COLORS = {
    "Excellent": "#22c55e",
    "Very Good": "#4ade80",
    "Good": "#facc15",
    "Fair": "#f97316",
    "Poor": "#ea384c",
}


def format_currency(amount: Union[int, float, Decimal, str], decimals: int = 0) -> str:
    """Format amount as Indian Rupee currency string."""
    try:
        if isinstance(amount, str):
            amount = Decimal(amount)
        elif isinstance(amount, (int, float)):
            amount = Decimal(str(amount))
        return f"₹{amount:,.{decimals}f}"
    except Exception:
        return f"₹{amount}"


def format_date(dt: Union[datetime, date, None]) -> str:
    """Format date for display."""
    if dt is None:
        return "N/A"
    if isinstance(dt, datetime):
        return dt.strftime("%d %b %Y, %I:%M %p")
    return dt.strftime("%d %b %Y")


def progress_color(is_exceeded: bool, is_approaching: bool) -> str:
    """Return the progress ring color for a budget state."""
    if is_exceeded:
        return PROGRESS_COLOR_EXCEEDED
    if is_approaching:
        return PROGRESS_COLOR_APPROACHING
    return PROGRESS_COLOR_DEFAULT


def score_color(category: str) -> str:
    """Return the display color for a credit score category."""
    return SCORE_COLORS.get(category, SCORE_COLORS["Poor"])
