"""Closed house-number intervals and the overlap rule between street segments."""

from collections.abc import Iterable
from typing import Protocol, TypeVar

from patrol_zones.lib.zoning.sides import StreetSide, sides_overlap


class Segment(Protocol):
    """Anything carrying a numeric range and a side (ORM rows, request models)."""

    range_start: int | None
    range_end: int | None
    side: str


SegmentT = TypeVar("SegmentT", bound=Segment)


def intervals_overlap(start_a: int, end_a: int, start_b: int, end_b: int) -> bool:
    """Closed-interval intersection test: [a1, a2] and [b1, b2] share a number."""
    return not (end_a < start_b or start_a > end_b)


def interval_contains(start: int | None, end: int | None, number: int) -> bool:
    """Whether ``number`` lies inside the range; an open range contains everything."""
    if start is None or end is None:
        return True
    return start <= number <= end


def segments_conflict(
    start: int,
    end: int,
    side: StreetSide | str,
    other: Segment,
) -> bool:
    """Whether a candidate range collides with an existing segment.

    Segments without numeric bounds never conflict numerically.
    """
    if other.range_start is None or other.range_end is None:
        return False
    if not sides_overlap(side, other.side):
        return False
    return intervals_overlap(start, end, other.range_start, other.range_end)


def find_conflict(
    start: int,
    end: int,
    side: StreetSide | str,
    existing: Iterable[SegmentT],
) -> SegmentT | None:
    """Return the first existing segment that collides with the candidate, if any."""
    for other in existing:
        if segments_conflict(start, end, side, other):
            return other
    return None


def describe_segment(
    range_start: int | None,
    range_end: int | None,
    side: StreetSide | str,
    from_intersection: str | None = None,
    to_intersection: str | None = None,
) -> str:
    """Short human-readable description of a street segment.

    Examples:
        >>> describe_segment(100, 299, "EVEN", "Av. Arequipa", "Jr. Lampa")
        'Numbers 100-299 (EVEN) | From Av. Arequipa to Jr. Lampa'
        >>> describe_segment(None, None, "BOTH")
        'Whole street'
    """
    parts: list[str] = []
    if range_start is not None and range_end is not None:
        parts.append(f"Numbers {range_start}-{range_end}")
    if StreetSide(side) not in (StreetSide.BOTH, StreetSide.ALL):
        parts.append(f"({StreetSide(side).value})")
    text = " ".join(parts)

    if from_intersection or to_intersection:
        ends: list[str] = []
        if from_intersection:
            ends.append(f"From {from_intersection}")
        if to_intersection:
            ends.append(f"to {to_intersection}" if from_intersection else f"To {to_intersection}")
        text = f"{text} | {' '.join(ends)}" if text else " ".join(ends)

    return text or "Whole street"
