"""
Display formatters for dashboard payloads.
Deterministic string formatting for currency, percentages, and chart dates.
"""

import math
from datetime import datetime, date
from typing import Optional, Union


class FormatterError(Exception):
    """Raised when formatter input validation fails."""
    pass


def _check_numeric(value, label: str) -> None:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise FormatterError(f"{label} value must be numeric, got {type(value)}")
    if not math.isfinite(value):
        raise FormatterError(f"{label} value must be finite, got {value}")


def format_currency(value: Optional[float]) -> str:
    """
    Format a dollar amount in US style with exactly two fraction digits.

    Args:
        value: Dollar amount

    Returns:
        Formatted currency string (e.g., "$1,234.50", "-$12.00")
    """
    if value is None:
        return "Not available"

    _check_numeric(value, "Currency")

    sign = "-" if value < 0 else ""
    formatted = f"{abs(value):,.2f}"

    # Avoid "-$0.00" for tiny negative values that round to zero
    if formatted == "0.00":
        sign = ""

    return f"{sign}${formatted}"


def format_percentage(value: Optional[float], decimal_places: int = 1) -> str:
    """
    Format decimal as percentage with specified precision.

    Args:
        value: Decimal value (0.0845 = 8.45%)
        decimal_places: Number of decimal places (default: 1)

    Returns:
        Formatted percentage string (e.g., "8.5%")
    """
    if value is None:
        return "Not available"

    _check_numeric(value, "Percentage")

    return f"{value * 100:.{decimal_places}f}%"


def _to_date(date_input: Union[str, date, datetime]) -> date:
    if isinstance(date_input, datetime):
        return date_input.date()
    if isinstance(date_input, date):
        return date_input
    if isinstance(date_input, str):
        try:
            if 'T' in date_input:
                return datetime.fromisoformat(date_input.replace('Z', '+00:00')).date()
            return date.fromisoformat(date_input)
        except ValueError:
            raise FormatterError(f"Invalid date string: {date_input}")
    raise FormatterError(f"Date must be string, date, or datetime, got {type(date_input)}")


def format_axis_date(date_input: Union[str, date, datetime]) -> str:
    """
    Format a day for a line/area chart axis (e.g., "Oct 05").
    """
    return _to_date(date_input).strftime("%b %d")


def format_weekday(date_input: Union[str, date, datetime]) -> str:
    """
    Format a day as its abbreviated weekday for bar chart axes (e.g., "Mon").
    """
    return _to_date(date_input).strftime("%a")


def format_date_display(date_input: Union[str, date, datetime, None]) -> str:
    """
    Format date as "Month DD, YYYY".

    Args:
        date_input: Date as string, date object, or datetime object

    Returns:
        Formatted date string (e.g., "July 15, 2025")
    """
    if date_input is None:
        return "Not available"

    return _to_date(date_input).strftime("%B %d, %Y")
