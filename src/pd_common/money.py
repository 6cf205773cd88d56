"""Decimal money utilities.

All amounts and balances are Decimal with two fractional digits, matching
the NUMERIC(10, 2) columns. Never float inside the domain; floats only
appear when a response schema renders JSON numbers.
"""

from decimal import ROUND_HALF_UP, Decimal

CENT = Decimal("0.01")
ZERO = Decimal("0.00")


def to_money(value: Decimal | int | float | str) -> Decimal:
    """Quantize any numeric input to 2 decimal places (half-up).

    Floats go through str() first so 0.1 becomes Decimal("0.10"), not
    the binary expansion.
    """
    if isinstance(value, float):
        value = str(value)
    return Decimal(value).quantize(CENT, rounding=ROUND_HALF_UP)


def money_to_display(amount: Decimal) -> str:
    """Render an amount for humans: Decimal("1500") -> '¥1,500.00', negatives keep the sign."""
    amount = to_money(amount)
    if amount < 0:
        return f"-¥{-amount:,.2f}"
    return f"¥{amount:,.2f}"
