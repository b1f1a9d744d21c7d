"""Zoning library — pure rules for street segment ranges.

Public API:
    - StreetSide / parse_side: Side-of-street enum and input coercion
    - sides_overlap / side_accepts / overlapping_sides: Parity class rules
    - intervals_overlap / interval_contains: Closed-interval arithmetic
    - find_conflict / segments_conflict: Overlap test between segments
    - describe_segment: Human-readable segment description
    - parse_house_number / hundred_block: House-number parsing
    - normalize_label / normalize_house_number: Label normalization
    - RangeValidationError / RangeConflictError: Error taxonomy
"""

from patrol_zones.lib.zoning.errors import (
    ConflictKind,
    RangeConflictError,
    RangeValidationError,
    ValidationKind,
)
from patrol_zones.lib.zoning.intervals import (
    Segment,
    describe_segment,
    find_conflict,
    interval_contains,
    intervals_overlap,
    segments_conflict,
)
from patrol_zones.lib.zoning.numbers import (
    MAX_HOUSE_NUMBER,
    hundred_block,
    normalize_house_number,
    normalize_label,
    parse_house_number,
)
from patrol_zones.lib.zoning.sides import (
    StreetSide,
    covers_all_numbers,
    overlapping_sides,
    parse_side,
    side_accepts,
    sides_overlap,
)

__all__ = [
    "MAX_HOUSE_NUMBER",
    "ConflictKind",
    "RangeConflictError",
    "RangeValidationError",
    "Segment",
    "StreetSide",
    "ValidationKind",
    "covers_all_numbers",
    "describe_segment",
    "find_conflict",
    "hundred_block",
    "interval_contains",
    "intervals_overlap",
    "normalize_house_number",
    "normalize_label",
    "overlapping_sides",
    "parse_house_number",
    "parse_side",
    "segments_conflict",
    "side_accepts",
    "sides_overlap",
]
