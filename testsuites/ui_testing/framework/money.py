"""
Money helpers for price assertions.

Formatting takes an explicit ``MoneyFormat`` value instead of touching the
process locale, so concurrent tests cannot leak settings into each other.
"""

from __future__ import annotations

from dataclasses import dataclass
from decimal import ROUND_HALF_UP, Decimal
from typing import Dict, Union


@dataclass(frozen=True)
class MoneyFormat:
    """
    Currency rendering rules.

    Attributes:
        symbol: Currency symbol placed before the number
        decimal_point: Separator between whole and fractional part
        thousands_sep: Separator between digit groups
        precision: Number of fractional digits
    """
    symbol: str = "$"
    decimal_point: str = "."
    thousands_sep: str = ","
    precision: int = 2


US_DOLLAR = MoneyFormat()
EURO_DE = MoneyFormat(symbol="€", decimal_point=",", thousands_sep=".")


def format_money(
    amount: Union[float, int, str, Decimal],
    money_format: MoneyFormat = US_DOLLAR,
) -> Dict[str, str]:
    """
    Split a formatted price into currency prefix and number.

    Args:
        amount: Price to format
        money_format: Rendering rules

    Returns:
        {"prefix": "$", "number": "1,234.50"}; negative amounts carry the
        sign in the prefix ("-$")

    Raises:
        ValueError: NaN or infinite amount

    Example:
        >>> format_money(1234.5)
        {'prefix': '$', 'number': '1,234.50'}
    """
    amount = Decimal(str(amount))
    if not amount.is_finite():
        raise ValueError(f"Cannot format non-finite amount: {amount}")

    quantum = Decimal(1).scaleb(-money_format.precision)
    value = amount.quantize(quantum, rounding=ROUND_HALF_UP)

    sign = "-" if value < 0 else ""
    whole, _, fraction = f"{abs(value):.{money_format.precision}f}".partition(".")

    groups = []
    while len(whole) > 3:
        groups.insert(0, whole[-3:])
        whole = whole[:-3]
    groups.insert(0, whole)

    number = money_format.thousands_sep.join(groups)
    if money_format.precision > 0:
        number = f"{number}{money_format.decimal_point}{fraction}"

    return {"prefix": f"{sign}{money_format.symbol}", "number": number}


def parse_float(text: str) -> float:
    """
    Parse a number that may contain comma thousands separators.

    Example:
        >>> parse_float("1,234.56")
        1234.56
    """
    return float(text.replace(",", ""))
