"""Helpers for amount normalization and display."""

from decimal import ROUND_HALF_UP, Decimal, InvalidOperation

ZERO = Decimal("0")


def coerce_amount(value) -> Decimal:
    """Normalize a raw amount to a finite Decimal.

    Anything that is not a finite number (None, NaN, infinity, booleans,
    unparsable strings) becomes zero, so sums over amounts stay finite.

    Args:
        value: Raw amount from the backend or an entity.

    Returns:
        Decimal: The amount, or zero when it is not a usable number.
    """
    if value is None or isinstance(value, bool):
        return ZERO
    if isinstance(value, Decimal):
        return value if value.is_finite() else ZERO
    if isinstance(value, (int, float)):
        try:
            result = Decimal(str(value))
        except InvalidOperation:
            return ZERO
        return result if result.is_finite() else ZERO
    if isinstance(value, str):
        try:
            result = Decimal(value.strip())
        except InvalidOperation:
            return ZERO
        return result if result.is_finite() else ZERO
    return ZERO


def _group_indian(digits: str) -> str:
    # 12345678 -> 1,23,45,678
    if len(digits) <= 3:
        return digits
    head, tail = digits[:-3], digits[-3:]
    groups = []
    while len(head) > 2:
        groups.insert(0, head[-2:])
        head = head[:-2]
    if head:
        groups.insert(0, head)
    return ",".join(groups) + "," + tail


def format_currency(amount, symbol: str = "₹") -> str:
    """Format an amount the way the dashboard shows it.

    Whole rupees with lakh/crore digit grouping, e.g. ``₹1,23,456`` and
    ``-₹3,000``.
    """
    value = coerce_amount(amount).quantize(Decimal("1"), rounding=ROUND_HALF_UP)
    sign = "-" if value < 0 else ""
    digits = str(abs(int(value)))
    return f"{sign}{symbol}{_group_indian(digits)}"


__all__ = ["ZERO", "coerce_amount", "format_currency"]
