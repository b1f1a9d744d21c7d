"""House-number and block/lot label normalization."""

import re

_NON_DIGITS = re.compile(r"\D")

# Largest value a stored range bound (SQL INTEGER column) can hold
MAX_HOUSE_NUMBER = 2**31 - 1


def parse_house_number(value: str | int | None) -> int | None:
    """Extract the numeric part of a municipal house number.

    All non-digit characters are dropped, so "250-A" → 250 and "Nº 12" → 12.
    Inputs with no digits at all ("S/N", "") yield None.

    Args:
        value: House number as entered, or an int.

    Returns:
        Non-negative integer, or None when nothing numeric remains.
    """
    if value is None:
        return None
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value if value >= 0 else None
    digits = _NON_DIGITS.sub("", value)
    if not digits:
        return None
    return int(digits)


def hundred_block(number: int) -> int:
    """Hundred-block ("cuadra") of a house number: 450 → 4."""
    return number // 100


def normalize_label(value: str | None) -> str | None:
    """Trim and upper-case a block or lot label; blank labels become None."""
    if value is None:
        return None
    cleaned = str(value).strip().upper()
    return cleaned or None


def normalize_house_number(value: str | None) -> str | None:
    """Canonical text form of a house number for equality comparisons."""
    if value is None:
        return None
    cleaned = re.sub(r"\s+", "", str(value)).upper()
    return cleaned or None
