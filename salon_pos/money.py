"""Cents arithmetic and operator input parsing.

Money is always an `int` number of cents. Percentages go through `Decimal`
and round half-up, so no float ever reaches a stored or compared total.
"""

from __future__ import annotations

from decimal import ROUND_HALF_UP, Decimal, InvalidOperation

_CENTS = Decimal(100)


def to_decimal(value: int | str | Decimal) -> Decimal | None:
    """Convert operator input to a Decimal, or None when it is not a finite number."""
    try:
        parsed = Decimal(str(value).strip())
    except (InvalidOperation, ValueError):
        return None
    if not parsed.is_finite():
        return None
    return parsed


def parse_amount_cents(text: str) -> int | None:
    """Parse a dollar amount typed on the keypad into cents.

    Returns None for empty or non-numeric input so the caller can keep the
    commit action disabled. More than two decimals round half-up to the cent.
    """
    if not text or not text.strip():
        return None
    value = to_decimal(text)
    if value is None or value < 0:
        return None
    return int((value * _CENTS).quantize(Decimal(1), rounding=ROUND_HALF_UP))


def percent_of(cents: int, percent: int | str | Decimal) -> int:
    """`cents * percent / 100`, rounded half-up to a whole cent."""
    value = to_decimal(percent)
    if value is None:
        raise ValueError(f"Invalid percent: {percent!r}")
    return int((Decimal(cents) * value / _CENTS).quantize(Decimal(1), rounding=ROUND_HALF_UP))


def dollars_to_cents(dollars: int) -> int:
    return dollars * 100


def format_cents(cents: int) -> str:
    """Render cents as `$12.34` (or `-$12.34`)."""
    sign = "-" if cents < 0 else ""
    whole, frac = divmod(abs(cents), 100)
    return f"{sign}${whole:,}.{frac:02d}"


def is_cents(value: object) -> bool:
    """True for a plain `int` amount; bools and floats are not cents."""
    return isinstance(value, int) and not isinstance(value, bool)
