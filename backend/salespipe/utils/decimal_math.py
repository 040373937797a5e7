from decimal import Decimal, ROUND_HALF_UP


MONEY_QUANT = Decimal("0.01")
PCT_QUANT = Decimal("0.01")
WHOLE_QUANT = Decimal("1")


def money(value: Decimal | int | float | str) -> Decimal:
    return Decimal(str(value)).quantize(MONEY_QUANT, rounding=ROUND_HALF_UP)


def pct(value: Decimal | int | float | str) -> Decimal:
    return Decimal(str(value)).quantize(PCT_QUANT, rounding=ROUND_HALF_UP)


def whole(value: Decimal | int | float | str) -> Decimal:
    return Decimal(str(value)).quantize(WHOLE_QUANT, rounding=ROUND_HALF_UP)


def safe_rate(numerator: Decimal | int, denominator: Decimal | int) -> Decimal:
    """Percentage of numerator over denominator, 0 when the denominator is empty."""
    if not denominator:
        return Decimal("0")
    return Decimal(numerator) * Decimal("100") / Decimal(denominator)
