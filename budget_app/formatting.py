"""Display helpers."""

from decimal import Decimal
from typing import Optional


def format_money(amount: Decimal | float | int, currency: Optional[str] = None) -> str:
    """
    Format an amount with thousands separators and two decimals.

    >>> format_money(Decimal("1234.5"), "SAR")
    'SAR 1,234.50'
    """
    formatted = f"{Decimal(str(amount)):,.2f}"
    if currency:
        return f"{currency} {formatted}"
    return formatted
