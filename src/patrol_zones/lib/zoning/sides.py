"""Street side classes and parity rules.

ALL and BOTH are the same class (kept distinct only because both spellings
arrive from input forms). Two sides overlap when they can both cover at least
one common house number.
"""

import enum


class StreetSide(enum.StrEnum):
    """Side of the street a segment range applies to."""

    BOTH = "BOTH"
    EVEN = "EVEN"
    ODD = "ODD"
    ALL = "ALL"


# Spanish spellings accepted from legacy data and CLI input
_SIDE_ALIASES: dict[str, StreetSide] = {
    "AMBOS": StreetSide.BOTH,
    "PAR": StreetSide.EVEN,
    "IMPAR": StreetSide.ODD,
    "TODOS": StreetSide.ALL,
}

_EVEN = "even"
_ODD = "odd"

_PARITIES: dict[StreetSide, frozenset[str]] = {
    StreetSide.BOTH: frozenset({_EVEN, _ODD}),
    StreetSide.ALL: frozenset({_EVEN, _ODD}),
    StreetSide.EVEN: frozenset({_EVEN}),
    StreetSide.ODD: frozenset({_ODD}),
}


def parse_side(value: str | StreetSide | None) -> StreetSide:
    """Coerce user input into a StreetSide (defaults to BOTH).

    Args:
        value: Side name in English or Spanish, any case, or None.

    Returns:
        The matching StreetSide.

    Raises:
        ValueError: If the value names no known side.
    """
    if value is None:
        return StreetSide.BOTH
    if isinstance(value, StreetSide):
        return value
    upper = value.strip().upper()
    if upper in _SIDE_ALIASES:
        return _SIDE_ALIASES[upper]
    try:
        return StreetSide(upper)
    except ValueError:
        msg = f"Unknown street side: {value!r}. Expected one of {[s.value for s in StreetSide]}"
        raise ValueError(msg) from None


def covers_all_numbers(side: StreetSide | str) -> bool:
    """True for BOTH/ALL, which accept any parity."""
    return len(_PARITIES[StreetSide(side)]) == 2


def sides_overlap(first: StreetSide | str, second: StreetSide | str) -> bool:
    """Whether two side classes share at least one parity."""
    return bool(_PARITIES[StreetSide(first)] & _PARITIES[StreetSide(second)])


def overlapping_sides(side: StreetSide | str) -> list[StreetSide]:
    """All sides whose class overlaps ``side``, in declaration order."""
    return [candidate for candidate in StreetSide if sides_overlap(side, candidate)]


def side_accepts(side: StreetSide | str, number: int) -> bool:
    """Whether a range on ``side`` may serve house ``number``."""
    parity = _EVEN if number % 2 == 0 else _ODD
    return parity in _PARITIES[StreetSide(side)]
