"""Integer arithmetic utilities for money.

All prices, amounts and balances are int cents. No float, no Decimal.
Commission rates are int basis points (1000 bps = 10%).
"""

BPS_DENOMINATOR = 10000


def cents_to_display(cents: int) -> str:
    """Convert cents to display string: 6500 -> '65.00', -1200 -> '-12.00'."""
    if cents < 0:
        abs_cents = -cents
        return f"-{abs_cents // 100:,}.{abs_cents % 100:02d}"
    return f"{cents // 100:,}.{cents % 100:02d}"


def calculate_commission(item_total: int, rate_bps: int) -> int:
    """Platform commission with ceiling division (platform never loses a cent).

    commission = ceil(item_total * rate_bps / 10000)
    """
    if item_total == 0 or rate_bps == 0:
        return 0
    return (item_total * rate_bps + BPS_DENOMINATOR - 1) // BPS_DENOMINATOR


def cents_to_amount_str(cents: int) -> str:
    """Provider wire format without grouping: 15050 -> '150.50'."""
    sign = "-" if cents < 0 else ""
    abs_cents = abs(cents)
    return f"{sign}{abs_cents // 100}.{abs_cents % 100:02d}"


def amount_to_cents(value: str | int | float) -> int:
    """Parse a provider amount ('150.5', 150, '150.00') into cents.

    Digits past the second decimal place are dropped.
    """
    raw = str(value).strip()
    negative = raw.startswith("-")
    if negative:
        raw = raw[1:]
    whole, _, frac = raw.partition(".")
    if not (whole or frac) or not (whole or "0").isdigit() or not (frac or "0").isdigit():
        raise ValueError(f"Not a monetary amount: {value!r}")
    cents = int(whole or "0") * 100 + int((frac + "00")[:2])
    return -cents if negative else cents
