"""Street segment range service -- overlap-checked writes and containment queries.

Writes lock the owning street row before reading the street's other ranges,
so two concurrent writers on the same street serialize and the overlap check
always sees committed state. Nothing here commits: callers run these
functions inside ``core.database.unit_of_work()``.
"""

import uuid
from datetime import UTC, datetime
from typing import Any

from loguru import logger
from sqlalchemy import or_, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from patrol_zones.lib.zoning import (
    MAX_HOUSE_NUMBER,
    ConflictKind,
    RangeConflictError,
    RangeValidationError,
    StreetSide,
    ValidationKind,
    describe_segment,
    find_conflict,
    normalize_label,
    parse_side,
)
from patrol_zones.models.street import Street
from patrol_zones.models.street_segment_range import (
    BLOCK_LABEL_MAX_LENGTH,
    MAX_PRIORITY,
    MIN_PRIORITY,
    StreetSegmentRange,
)
from patrol_zones.models.zone import Zone

# Fields that may be changed by ``update_range``.  The owning street is
# fixed for the life of a range.
_UPDATABLE_FIELDS: frozenset[str] = frozenset(
    {
        "zone_id",
        "range_start",
        "range_end",
        "side",
        "block_label",
        "priority",
        "from_intersection",
        "to_intersection",
        "notes",
    }
)


# ---------------------------------------------------------------------------
# Validation helpers
# ---------------------------------------------------------------------------


def clamp_priority(priority: int | None) -> int:
    """Default a missing priority to 1 and clamp into [1, 10]."""
    if priority is None:
        return MIN_PRIORITY
    return max(MIN_PRIORITY, min(MAX_PRIORITY, int(priority)))


def validate_bounds(range_start: int | None, range_end: int | None) -> None:
    """Check that range bounds are paired, non-negative and ordered.

    Args:
        range_start: First house number, or None.
        range_end: Last house number, or None.

    Raises:
        RangeValidationError: If exactly one bound is given, a bound is
            negative or too large, or start is greater than end.
    """
    if (range_start is None) != (range_end is None):
        msg = "Range start and end must be given together"
        raise RangeValidationError(ValidationKind.INCOMPLETE_RANGE, msg)
    if range_start is None or range_end is None:
        return
    if range_start < 0 or range_end < 0:
        msg = f"Range bounds must be non-negative, got {range_start}-{range_end}"
        raise RangeValidationError(ValidationKind.NEGATIVE_BOUND, msg)
    if range_end > MAX_HOUSE_NUMBER:
        msg = f"Range end {range_end} exceeds the largest storable house number {MAX_HOUSE_NUMBER}"
        raise RangeValidationError(ValidationKind.BOUND_TOO_LARGE, msg)
    if range_start > range_end:
        msg = f"Range start {range_start} is greater than range end {range_end}"
        raise RangeValidationError(ValidationKind.INVERTED_RANGE, msg)


def _validate_block_label(block_label: str | None) -> None:
    if block_label is not None and len(block_label) > BLOCK_LABEL_MAX_LENGTH:
        msg = f"Block label {block_label!r} exceeds {BLOCK_LABEL_MAX_LENGTH} characters"
        raise RangeValidationError(ValidationKind.LABEL_TOO_LONG, msg)


async def _lock_street(session: AsyncSession, street_id: uuid.UUID) -> Street:
    """Take the row lock that serializes range writes for one street."""
    result = await session.execute(select(Street).where(Street.id == street_id).with_for_update())
    street = result.scalar_one_or_none()
    if street is None:
        msg = f"Street {street_id} not found"
        raise RangeValidationError(ValidationKind.UNKNOWN_STREET, msg)
    return street


async def _require_zone(session: AsyncSession, zone_id: uuid.UUID) -> Zone:
    result = await session.execute(select(Zone).where(Zone.id == zone_id, Zone.is_active.is_(True)))
    zone = result.scalar_one_or_none()
    if zone is None:
        msg = f"Zone {zone_id} not found or inactive"
        raise RangeValidationError(ValidationKind.UNKNOWN_ZONE, msg)
    return zone


async def _zone_code(session: AsyncSession, zone_id: uuid.UUID) -> str | None:
    zone = await session.get(Zone, zone_id)
    return zone.code if zone is not None else None


async def _check_overlap(
    session: AsyncSession,
    street_id: uuid.UUID,
    range_start: int,
    range_end: int,
    side: StreetSide,
    exclude_id: uuid.UUID | None,
) -> None:
    """Reject a numeric range that shares a number and a parity with another active range."""
    query = select(StreetSegmentRange).where(
        StreetSegmentRange.street_id == street_id,
        StreetSegmentRange.is_active.is_(True),
        StreetSegmentRange.range_start.is_not(None),
    )
    if exclude_id is not None:
        query = query.where(StreetSegmentRange.id != exclude_id)
    result = await session.execute(query.order_by(StreetSegmentRange.range_start))

    conflict = find_conflict(range_start, range_end, side, result.scalars().all())
    if conflict is None:
        return

    zone_code = await _zone_code(session, conflict.zone_id)
    msg = (
        f"Range {range_start}-{range_end} ({side.value}) overlaps existing range "
        f"{conflict.range_start}-{conflict.range_end} ({conflict.side}) of zone {zone_code}"
    )
    raise RangeConflictError(
        ConflictKind.RANGE_OVERLAP,
        msg,
        conflicting_id=conflict.id,
        zone_code=zone_code,
        range_start=conflict.range_start,
        range_end=conflict.range_end,
    )


async def _check_duplicates(
    session: AsyncSession,
    *,
    street_id: uuid.UUID,
    zone_id: uuid.UUID,
    range_start: int | None,
    side: StreetSide,
    block_label: str | None,
    exclude_id: uuid.UUID | None,
) -> None:
    """Enforce the (street, zone, start, side) and (street, block) uniqueness rules."""
    base = select(StreetSegmentRange).where(
        StreetSegmentRange.street_id == street_id,
        StreetSegmentRange.is_active.is_(True),
    )
    if exclude_id is not None:
        base = base.where(StreetSegmentRange.id != exclude_id)

    if range_start is not None:
        result = await session.execute(
            base.where(
                StreetSegmentRange.zone_id == zone_id,
                StreetSegmentRange.range_start == range_start,
                StreetSegmentRange.side == side.value,
            ).limit(1)
        )
        duplicate = result.scalar_one_or_none()
        if duplicate is not None:
            zone_code = await _zone_code(session, zone_id)
            msg = f"Zone {zone_code} already has a range starting at {range_start} ({side.value}) on this street"
            raise RangeConflictError(
                ConflictKind.DUPLICATE_RANGE,
                msg,
                conflicting_id=duplicate.id,
                zone_code=zone_code,
                range_start=duplicate.range_start,
                range_end=duplicate.range_end,
            )

    if block_label is not None:
        result = await session.execute(base.where(StreetSegmentRange.block_label == block_label).limit(1))
        duplicate = result.scalar_one_or_none()
        if duplicate is not None:
            zone_code = await _zone_code(session, duplicate.zone_id)
            msg = f"Block {block_label} is already assigned to zone {zone_code} on this street"
            raise RangeConflictError(
                ConflictKind.DUPLICATE_BLOCK,
                msg,
                conflicting_id=duplicate.id,
                zone_code=zone_code,
                range_start=duplicate.range_start,
                range_end=duplicate.range_end,
            )


async def _flush(session: AsyncSession) -> None:
    """Flush pending writes, translating a unique-index violation into a conflict."""
    try:
        await session.flush()
    except IntegrityError as exc:
        await session.rollback()
        kind = ConflictKind.DUPLICATE_BLOCK if "block" in str(exc.orig) else ConflictKind.DUPLICATE_RANGE
        msg = "Range write rejected by a uniqueness constraint"
        raise RangeConflictError(kind, msg) from None


# ---------------------------------------------------------------------------
# Write operations
# ---------------------------------------------------------------------------


async def insert_range(
    session: AsyncSession,
    *,
    street_id: uuid.UUID,
    zone_id: uuid.UUID,
    range_start: int | None = None,
    range_end: int | None = None,
    side: StreetSide | str | None = StreetSide.BOTH,
    block_label: str | None = None,
    priority: int | None = None,
    from_intersection: str | None = None,
    to_intersection: str | None = None,
    notes: str | None = None,
    actor_id: uuid.UUID | None = None,
) -> StreetSegmentRange:
    """Create a street segment range after validating it against the street's other ranges.

    Args:
        session: Database session (flushed, not committed).
        street_id: Owning street.
        zone_id: Zone the segment belongs to.
        range_start: First house number, paired with range_end.
        range_end: Last house number, inclusive.
        side: Side of the street; English or Spanish names accepted.
        block_label: Block label for block/lot addressing.
        priority: 1 (highest) to 10; defaults to 1 and is clamped.
        from_intersection: Cross street at the start of the segment.
        to_intersection: Cross street at the end of the segment.
        notes: Free-text remarks.
        actor_id: User performing the change, for the audit columns.

    Returns:
        The persisted StreetSegmentRange.

    Raises:
        RangeValidationError: If the bounds are malformed or the street or
            zone does not exist.
        RangeConflictError: If the range overlaps another active range of the
            street or duplicates an existing range or block.
    """
    side = parse_side(side)
    block_label = normalize_label(block_label)
    validate_bounds(range_start, range_end)
    _validate_block_label(block_label)

    await _lock_street(session, street_id)
    await _require_zone(session, zone_id)
    await _check_duplicates(
        session,
        street_id=street_id,
        zone_id=zone_id,
        range_start=range_start,
        side=side,
        block_label=block_label,
        exclude_id=None,
    )
    if range_start is not None and range_end is not None:
        await _check_overlap(session, street_id, range_start, range_end, side, exclude_id=None)

    segment = StreetSegmentRange(
        street_id=street_id,
        zone_id=zone_id,
        range_start=range_start,
        range_end=range_end,
        side=side.value,
        block_label=block_label,
        priority=clamp_priority(priority),
        from_intersection=from_intersection,
        to_intersection=to_intersection,
        notes=notes,
        is_active=True,
        created_by=actor_id,
        updated_by=actor_id,
    )
    session.add(segment)
    await _flush(session)
    logger.info(
        f"Created street range {segment.id} on street {street_id} -> zone {zone_id} "
        f"({describe_segment(range_start, range_end, side)})"
    )
    return segment


async def update_range(
    session: AsyncSession,
    range_id: uuid.UUID,
    changes: dict[str, Any],
    actor_id: uuid.UUID | None = None,
) -> StreetSegmentRange | None:
    """Apply changes to an active range, re-running every write-time check.

    Only allowlisted fields are applied.  A key present with value None
    clears that field; absent keys keep their current value.  The range
    being updated is excluded from its own overlap and uniqueness checks.

    Args:
        session: Database session (flushed, not committed).
        range_id: Range to update.
        changes: Dict of field_name -> new value.
        actor_id: User performing the change.

    Returns:
        The updated range, or None if it does not exist or is inactive.

    Raises:
        RangeValidationError: If the resulting bounds are malformed or the
            new zone does not exist.
        RangeConflictError: If the resulting range conflicts with another.
    """
    segment = await get_range(session, range_id)
    if segment is None:
        return None

    data = {key: value for key, value in changes.items() if key in _UPDATABLE_FIELDS}
    if "side" in data:
        data["side"] = parse_side(data["side"])
    if "block_label" in data:
        data["block_label"] = normalize_label(data["block_label"])
    if "priority" in data:
        data["priority"] = clamp_priority(data["priority"])

    zone_id = data.get("zone_id", segment.zone_id)
    range_start = data.get("range_start", segment.range_start)
    range_end = data.get("range_end", segment.range_end)
    side = parse_side(data.get("side", segment.side))
    block_label = data.get("block_label", segment.block_label)

    validate_bounds(range_start, range_end)
    _validate_block_label(block_label)

    await _lock_street(session, segment.street_id)
    if zone_id is None:
        msg = "A range must belong to a zone"
        raise RangeValidationError(ValidationKind.UNKNOWN_ZONE, msg)
    if zone_id != segment.zone_id:
        await _require_zone(session, zone_id)
    await _check_duplicates(
        session,
        street_id=segment.street_id,
        zone_id=zone_id,
        range_start=range_start,
        side=side,
        block_label=block_label,
        exclude_id=segment.id,
    )
    if range_start is not None and range_end is not None:
        await _check_overlap(session, segment.street_id, range_start, range_end, side, exclude_id=segment.id)

    for field_name, value in data.items():
        setattr(segment, field_name, value.value if isinstance(value, StreetSide) else value)
    segment.updated_by = actor_id
    await _flush(session)
    logger.info(f"Updated street range {segment.id} ({', '.join(sorted(data)) or 'no fields'})")
    return segment


async def deactivate_range(
    session: AsyncSession,
    range_id: uuid.UUID,
    actor_id: uuid.UUID | None = None,
) -> StreetSegmentRange | None:
    """Soft-delete a range so it no longer resolves or blocks other ranges.

    Returns:
        The deactivated range, or None if it does not exist or is already inactive.
    """
    segment = await get_range(session, range_id)
    if segment is None:
        return None

    await _lock_street(session, segment.street_id)
    segment.is_active = False
    segment.deleted_at = datetime.now(UTC)
    segment.deleted_by = actor_id
    await session.flush()
    logger.info(f"Deactivated street range {segment.id}")
    return segment


# ---------------------------------------------------------------------------
# Read operations
# ---------------------------------------------------------------------------


async def get_range(
    session: AsyncSession,
    range_id: uuid.UUID,
    *,
    include_inactive: bool = False,
) -> StreetSegmentRange | None:
    """Return a range by id; inactive ranges only when ``include_inactive``."""
    query = select(StreetSegmentRange).where(StreetSegmentRange.id == range_id)
    if not include_inactive:
        query = query.where(StreetSegmentRange.is_active.is_(True))
    result = await session.execute(query)
    return result.scalar_one_or_none()


async def ranges_containing(
    session: AsyncSession,
    street_id: uuid.UUID,
    number: int,
) -> list[StreetSegmentRange]:
    """Return the active ranges of a street that may contain a house number.

    A range without numeric bounds covers the whole street and always
    qualifies; it is also the only kind that can hold a number above
    MAX_HOUSE_NUMBER.  Parity is not applied here.

    Args:
        session: Database session.
        street_id: Street to search.
        number: Parsed house number.

    Returns:
        Ranges ordered by priority (1 first), then most recently created,
        then id.
    """
    if number > MAX_HOUSE_NUMBER:
        bounds = [StreetSegmentRange.range_end.is_(None)]
    else:
        bounds = [
            or_(StreetSegmentRange.range_start.is_(None), StreetSegmentRange.range_start <= number),
            or_(StreetSegmentRange.range_end.is_(None), StreetSegmentRange.range_end >= number),
        ]

    result = await session.execute(
        select(StreetSegmentRange)
        .where(
            StreetSegmentRange.street_id == street_id,
            StreetSegmentRange.is_active.is_(True),
            *bounds,
        )
        .order_by(
            StreetSegmentRange.priority.asc(),
            StreetSegmentRange.created_at.desc(),
            StreetSegmentRange.id,
        )
    )
    return list(result.scalars().all())


async def range_for_block(
    session: AsyncSession,
    street_id: uuid.UUID,
    block_label: str | None,
) -> StreetSegmentRange | None:
    """Return the active range assigned to a block label, matched case-insensitively."""
    label = normalize_label(block_label)
    if label is None:
        return None
    result = await session.execute(
        select(StreetSegmentRange)
        .where(
            StreetSegmentRange.street_id == street_id,
            StreetSegmentRange.is_active.is_(True),
            StreetSegmentRange.block_label == label,
        )
        .order_by(StreetSegmentRange.priority.asc(), StreetSegmentRange.created_at.desc())
        .limit(1)
    )
    return result.scalar_one_or_none()


async def list_ranges_for_street(session: AsyncSession, street_id: uuid.UUID) -> list[StreetSegmentRange]:
    """Return the active ranges of a street, numeric ranges first in ascending order."""
    result = await session.execute(
        select(StreetSegmentRange)
        .where(StreetSegmentRange.street_id == street_id, StreetSegmentRange.is_active.is_(True))
        .order_by(
            StreetSegmentRange.range_start.asc().nulls_last(),
            StreetSegmentRange.block_label,
            StreetSegmentRange.priority,
        )
    )
    ranges = list(result.scalars().all())
    logger.debug(f"Listed {len(ranges)} ranges for street {street_id}")
    return ranges


async def list_ranges_for_zone(session: AsyncSession, zone_id: uuid.UUID) -> list[StreetSegmentRange]:
    """Return the active ranges assigned to a zone, grouped by street name."""
    result = await session.execute(
        select(StreetSegmentRange)
        .join(Street, Street.id == StreetSegmentRange.street_id)
        .where(StreetSegmentRange.zone_id == zone_id, StreetSegmentRange.is_active.is_(True))
        .order_by(Street.name, StreetSegmentRange.range_start.asc().nulls_last())
    )
    return list(result.scalars().all())


def describe_range(segment: StreetSegmentRange) -> str:
    """Human-readable description of a stored range."""
    return describe_segment(
        segment.range_start,
        segment.range_end,
        segment.side,
        segment.from_intersection,
        segment.to_intersection,
    )
