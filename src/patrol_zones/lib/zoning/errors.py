"""Error taxonomy for range writes and resolution input.

Both error types subclass ValueError so callers that only distinguish
"bad input" from "system failure" keep working.
"""

import enum
import uuid


class ValidationKind(enum.StrEnum):
    """Why caller-supplied data was rejected before any lookup or write."""

    INCOMPLETE_RANGE = "incomplete-range"
    INVERTED_RANGE = "inverted-range"
    NEGATIVE_BOUND = "negative-bound"
    BOUND_TOO_LARGE = "bound-too-large"
    INPUT_TOO_SHORT = "input-too-short"
    UNKNOWN_ZONE = "unknown-zone"
    UNKNOWN_STREET = "unknown-street"
    MISSING_ADDRESSING = "missing-addressing"
    LABEL_TOO_LONG = "label-too-long"


class ConflictKind(enum.StrEnum):
    """Which write-time rule a range would break."""

    RANGE_OVERLAP = "range-overlap"
    DUPLICATE_RANGE = "duplicate-range"
    DUPLICATE_BLOCK = "duplicate-block"


class RangeValidationError(ValueError):
    """Raised when input is structurally invalid. Never retried."""

    def __init__(self, kind: ValidationKind, message: str) -> None:
        self.kind = kind
        self.message = message
        super().__init__(message)


class RangeConflictError(ValueError):
    """Raised when a write would break a uniqueness or non-overlap rule.

    Args:
        kind: The rule that would be broken.
        message: Human-readable description naming the conflicting record.
        conflicting_id: Id of the existing range, when known.
        zone_code: Zone code of the existing range, when known.
        range_start: Start of the existing interval, when numeric.
        range_end: End of the existing interval, when numeric.
    """

    def __init__(
        self,
        kind: ConflictKind,
        message: str,
        *,
        conflicting_id: uuid.UUID | None = None,
        zone_code: str | None = None,
        range_start: int | None = None,
        range_end: int | None = None,
    ) -> None:
        self.kind = kind
        self.message = message
        self.conflicting_id = conflicting_id
        self.zone_code = zone_code
        self.range_start = range_start
        self.range_end = range_end
        super().__init__(message)
