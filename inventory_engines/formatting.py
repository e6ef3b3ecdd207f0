"""
inventory_engines.formatting -- Display formatting for money.

Amounts are shown in the configured currency with zero fractional digits,
rounded half-up, with thousands separators.
"""

from __future__ import annotations

from decimal import ROUND_HALF_UP, Decimal

CURRENCY_SYMBOLS = {
    "PHP": "₱",
    "USD": "$",
    "EUR": "€",
    "GBP": "£",
    "JPY": "¥",
}


def format_currency(amount: Decimal | int, currency: str = "PHP") -> str:
    """
    >>> format_currency(Decimal("22500.50"))
    '₱22,501'
    """
    rounded = Decimal(amount).quantize(Decimal("1"), rounding=ROUND_HALF_UP)
    sign = "-" if rounded < 0 else ""
    symbol = CURRENCY_SYMBOLS.get(currency, f"{currency} ")
    return f"{sign}{symbol}{abs(rounded):,}"
