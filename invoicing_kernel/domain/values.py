"""
Values -- numeric coercion and display rounding.

Responsibility:
    Converts editor input (free text, ints, Decimals) into ``Decimal`` and
    renders amounts for display.  Every number in the kernel passes through
    ``to_decimal`` on the way in and ``round_display`` on the way out.

Architecture position:
    Kernel > Domain -- pure functional core, zero I/O.

Invariants enforced:
    - Amounts are ``Decimal``, never ``float``.  Float inputs are converted
      through ``str`` so ``0.1`` becomes ``Decimal("0.1")``.
    - Rounding only happens at display time (``round_display``); arithmetic
      is carried at full precision.

Failure modes:
    - ``to_decimal`` never raises: unparseable input becomes ``Decimal("0")``.
"""

from __future__ import annotations

from decimal import ROUND_HALF_UP, Decimal, InvalidOperation

ZERO = Decimal("0")
HUNDRED = Decimal("100")

DISPLAY_DECIMAL_PLACES = 2
DEFAULT_ROUNDING = ROUND_HALF_UP


def to_decimal(value: object, default: Decimal = ZERO) -> Decimal:
    """
    Coerce a user-supplied value to Decimal.

    Strings are stripped and may use thousands separators ("1,250.50").
    Empty strings, None, booleans, NaN/infinity and anything unparseable
    fall back to ``default``.
    """
    if isinstance(value, bool) or value is None:
        return default
    if isinstance(value, Decimal):
        result = value
    elif isinstance(value, int):
        return Decimal(value)
    else:
        text = str(value).strip().replace(",", "")
        if not text:
            return default
        try:
            result = Decimal(text)
        except (InvalidOperation, ValueError):
            return default
    if not result.is_finite():
        return default
    return result


def round_display(
    value: Decimal,
    decimal_places: int = DISPLAY_DECIMAL_PLACES,
    rounding: str = DEFAULT_ROUNDING,
) -> Decimal:
    """Round a value for presentation (two places, half-up by default)."""
    quantize_str = "1." + "0" * decimal_places if decimal_places else "1"
    return value.quantize(Decimal(quantize_str), rounding=rounding)


def format_amount(value: Decimal, currency: str = "") -> str:
    """
    Render an amount with thousands separators and two decimals.

    Example:
        format_amount(Decimal("1234.5"), "MVR") -> "MVR 1,234.50"
    """
    text = f"{round_display(value):,.2f}"
    return f"{currency} {text}" if currency else text
