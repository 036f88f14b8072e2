"""Exact decimal currency helpers"""

from decimal import Decimal, ROUND_HALF_UP
from microloan.config import settings

CENT = Decimal("0.01")


def to_decimal(value) -> Decimal:
    """Convert without binary float drift (floats go through their repr)"""
    if isinstance(value, Decimal):
        return value
    if isinstance(value, float):
        return Decimal(repr(value))
    return Decimal(value)


def round_currency(amount: Decimal) -> Decimal:
    """Round to cents, half-up"""
    return amount.quantize(CENT, rounding=ROUND_HALF_UP)


def format_currency(amount, prefix: str | None = None) -> str:
    """Fixed two-decimal mask with currency prefix, e.g. 'S/ 1234.50'"""
    prefix = settings.currency_prefix if prefix is None else prefix
    return f"{prefix} {round_currency(to_decimal(amount)):.2f}"
