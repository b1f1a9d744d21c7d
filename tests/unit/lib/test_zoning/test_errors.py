"""Unit tests for the range error taxonomy."""

import uuid

from patrol_zones.lib.zoning import ConflictKind, RangeConflictError, RangeValidationError, ValidationKind


class TestRangeErrors:
    def test_validation_error_is_value_error(self) -> None:
        err = RangeValidationError(ValidationKind.INVERTED_RANGE, "start after end")
        assert isinstance(err, ValueError)
        assert err.kind == ValidationKind.INVERTED_RANGE
        assert str(err) == "start after end"

    def test_conflict_error_carries_conflicting_record(self) -> None:
        conflicting_id = uuid.uuid4()
        err = RangeConflictError(
            ConflictKind.RANGE_OVERLAP,
            "overlap",
            conflicting_id=conflicting_id,
            zone_code="C001",
            range_start=100,
            range_end=199,
        )
        assert isinstance(err, ValueError)
        assert err.kind == "range-overlap"
        assert err.conflicting_id == conflicting_id
        assert (err.zone_code, err.range_start, err.range_end) == ("C001", 100, 199)
