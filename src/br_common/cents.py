"""Integer arithmetic utilities for money in minor units (öre).

All amounts, refunds, and fees use int. No float, no Decimal.
"""


def cents_to_display(cents: int, currency_suffix: str = "kr") -> str:
    """Convert minor units to display string: 129950 -> '1,299.50 kr', -2900 -> '-29.00 kr'."""
    if cents < 0:
        abs_cents = -cents
        return f"-{abs_cents // 100:,}.{abs_cents % 100:02d} {currency_suffix}"
    return f"{cents // 100:,}.{cents % 100:02d} {currency_suffix}"


def percentage_of(amount: int, percentage: int) -> int:
    """Round-half-up share of an amount: round(amount * percentage / 100).

    Integer only: (a * p + 50) // 100. Amount and percentage must be >= 0.
    """
    if amount < 0 or percentage < 0:
        raise ValueError(f"amount and percentage must be >= 0, got {amount}, {percentage}")
    return (amount * percentage + 50) // 100
