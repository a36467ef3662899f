# voltsplus/utils/formatting.py

from decimal import Decimal, ROUND_HALF_UP, InvalidOperation
from typing import Any, Union

Number = Union[int, float, str, Decimal]


def to_money(value: Number) -> Decimal:
    """
    Coerce a wire/form value into a Decimal.
    Floats go through str() so 0.09 stays 0.09 and not its binary expansion.
    """
    if isinstance(value, bool):
        raise ValueError(f"Not a money value: {value!r}")
    if isinstance(value, Decimal):
        return value
    if isinstance(value, float):
        value = str(value)
    try:
        return Decimal(value)
    except (InvalidOperation, TypeError):
        raise ValueError(f"Not a money value: {value!r}") from None


def round_half_up(value: Decimal) -> Decimal:
    """Nearest integer, halves away from zero (2.5 -> 3)."""
    return value.quantize(Decimal("1"), rounding=ROUND_HALF_UP)


def money_to_json(value: Decimal) -> Any:
    """
    JSON-friendly number: int when integral, float otherwise.
    Example: Decimal("9180.00") -> 9180, Decimal("12.5") -> 12.5
    """
    if value == value.to_integral_value():
        return int(value)
    return float(value)


def format_inr(n: Number, decimals: int = 0) -> str:
    """
    Format a number with Indian digit grouping (lakh / crore).
    Example: 1234567 -> "12,34,567", 118000 -> "1,18,000"
    """
    amount = to_money(n)
    sign = "-" if amount < 0 else ""
    amount = abs(amount)

    if decimals:
        quantum = Decimal(1).scaleb(-decimals)
        text = str(amount.quantize(quantum, rounding=ROUND_HALF_UP))
        whole, frac = text.split(".")
    else:
        whole, frac = str(round_half_up(amount)), ""

    if len(whole) > 3:
        head, tail = whole[:-3], whole[-3:]
        groups = []
        while len(head) > 2:
            groups.insert(0, head[-2:])
            head = head[:-2]
        if head:
            groups.insert(0, head)
        whole = ",".join(groups + [tail])

    return f"{sign}{whole}.{frac}" if frac else f"{sign}{whole}"


def format_rupee(n: Number) -> str:
    return f"₹{format_inr(n)}"
