"""Money as integer minor units.

All arithmetic inside the pricing engine and the order lifecycle works on
``Money`` (plain ``int`` paise). ``format_money`` is for the presentation
boundary only.
"""

from decimal import ROUND_FLOOR, ROUND_HALF_UP, Decimal
from typing import Annotated

from pydantic import Field

Money = Annotated[int, Field(ge=0, strict=True)]

MINOR_UNITS_PER_MAJOR = 100

CURRENCY_SYMBOLS = {
    "INR": "₹",
    "USD": "$",
    "EUR": "€",
    "GBP": "£",
}


def percent_of(amount: int, percent, *, round_half_up: bool = False) -> int:
    """Return ``percent`` % of ``amount`` in minor units.

    Rounds down unless ``round_half_up`` is set.
    """
    raw = Decimal(amount) * Decimal(str(percent)) / Decimal(100)
    rounding = ROUND_HALF_UP if round_half_up else ROUND_FLOOR
    return int(raw.to_integral_value(rounding=rounding))


def to_major(amount: int) -> Decimal:
    return (Decimal(amount) / MINOR_UNITS_PER_MAJOR).quantize(Decimal("0.01"))


def format_money(amount: int, currency: str = "INR") -> str:
    """Render minor units for display, e.g. ``141600`` → ``"₹1,416.00"``."""
    symbol = CURRENCY_SYMBOLS.get(currency, f"{currency} ")
    sign = "-" if amount < 0 else ""
    return f"{sign}{symbol}{to_major(abs(amount)):,}"
