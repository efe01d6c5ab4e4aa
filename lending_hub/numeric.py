"""Fixed-point helpers for atomic <-> display token amounts, no I/O."""
from __future__ import annotations

from decimal import ROUND_FLOOR, Decimal, InvalidOperation
from typing import Any

# Fraction digits kept when rendering atomic amounts as labels.
MAX_LABEL_FRACTION_DIGITS = 12


def to_decimal(value: Any) -> Decimal:
    """Convert a number-like value to Decimal without binary float noise.

    Floats go through ``str`` so ``0.1`` becomes ``Decimal("0.1")``.
    Anything unparseable yields zero.
    """
    if isinstance(value, Decimal):
        return value
    if isinstance(value, bool):
        return Decimal(int(value))
    if isinstance(value, int):
        return Decimal(value)
    if isinstance(value, float):
        if value != value or value in (float("inf"), float("-inf")):
            return Decimal(0)
        return Decimal(repr(value))
    if isinstance(value, str):
        try:
            result = Decimal(value.strip())
        except InvalidOperation:
            return Decimal(0)
        return result if result.is_finite() else Decimal(0)
    return Decimal(0)


def to_number(value: Any) -> float:
    """Lenient float coercion for SDK / JSON payload values.

    Accepts numbers, numeric strings and Move-style ``{"fields": {"value": x}}``
    or ``{"value": x}`` bags. Returns 0.0 for anything else.
    """
    if isinstance(value, bool):
        return float(value)
    if isinstance(value, (int, float)):
        result = float(value)
        return result if result == result else 0.0
    if isinstance(value, Decimal):
        return float(value) if value.is_finite() else 0.0
    if isinstance(value, str):
        try:
            result = float(value)
        except ValueError:
            return 0.0
        return result if result == result else 0.0
    if isinstance(value, dict):
        if "value" in value:
            return to_number(value["value"])
        if "fields" in value:
            return to_number(value["fields"])
    return 0.0


def to_atomic(amount: Any, decimals: int) -> int:
    """Floor ``amount * 10^decimals`` to an integer atomic amount."""
    scaled = to_decimal(amount).scaleb(decimals)
    return int(scaled.to_integral_value(rounding=ROUND_FLOOR))


def to_display(atomic: int, decimals: int) -> Decimal:
    """Convert an atomic integer amount to display units."""
    return Decimal(int(atomic)).scaleb(-decimals)


def floor_display(amount: Any, decimals: int) -> Decimal:
    """Floor a display amount to ``decimals`` fraction digits."""
    quantum = Decimal(1).scaleb(-decimals)
    return to_decimal(amount).quantize(quantum, rounding=ROUND_FLOOR)


def format_atomic_amount(atomic: int, decimals: int) -> str:
    """Render an atomic amount as a trimmed decimal string.

    Examples:
        format_atomic_amount(1_500_000, 6) -> "1.5"
        format_atomic_amount(2_000_000, 6) -> "2"
    """
    raw = str(int(atomic))
    if decimals <= 0:
        return raw
    negative = raw.startswith("-")
    digits = raw.lstrip("-").rjust(decimals + 1, "0")
    whole = digits[:-decimals]
    fraction = digits[-decimals:][:MAX_LABEL_FRACTION_DIGITS].rstrip("0")
    text = f"{whole}.{fraction}" if fraction else whole
    return f"-{text}" if negative else text


def token_symbol(coin_type: str) -> str:
    """Last ``::`` segment of a coin type, e.g. ``0x2::sui::SUI`` -> ``SUI``."""
    if not coin_type:
        return ""
    return coin_type.split("::")[-1]
