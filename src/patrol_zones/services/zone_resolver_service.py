"""Zone resolver service -- map a street plus house number or block label to a zone."""

import uuid

from loguru import logger
from sqlalchemy.ext.asyncio import AsyncSession

from patrol_zones.lib.zoning import parse_house_number, side_accepts
from patrol_zones.models.area import Area
from patrol_zones.models.zone import Zone
from patrol_zones.schemas.resolution import ZoneAssignment
from patrol_zones.services import street_range_service, zone_catalog_service

RANGE_LOOKUP = "range-lookup"
BLOCK_LOOKUP = "block-lookup"


async def resolve_by_number(
    session: AsyncSession,
    street_id: uuid.UUID,
    house_number: str | int | None,
) -> Zone | None:
    """Resolve the zone serving a house number on a street.

    The number is parsed by dropping every non-digit ("250-A" -> 250).
    Candidate ranges come back priority-ordered; the first one whose side
    accepts the number's parity and whose zone is active wins.

    Args:
        session: Database session.
        street_id: Street to search.
        house_number: House number as entered, or an int.

    Returns:
        The zone, or None when the number has no digits or no range matches.
    """
    number = parse_house_number(house_number)
    if number is None:
        logger.debug(f"House number {house_number!r} has no digits; nothing to resolve")
        return None

    for segment in await street_range_service.ranges_containing(session, street_id, number):
        if not side_accepts(segment.side, number):
            continue
        zone = await zone_catalog_service.get_zone(session, segment.zone_id)
        if zone is not None:
            return zone
        logger.warning(f"Range {segment.id} points at inactive zone {segment.zone_id}; skipping")
    return None


async def resolve_by_block(
    session: AsyncSession,
    street_id: uuid.UUID,
    block_label: str | None,
) -> Zone | None:
    """Resolve the zone assigned to a block label on a street (no parity rule applies)."""
    segment = await street_range_service.range_for_block(session, street_id, block_label)
    if segment is None:
        return None
    return await zone_catalog_service.get_zone(session, segment.zone_id)


async def resolve_zone_and_area(session: AsyncSession, zone: Zone) -> tuple[Zone, Area | None]:
    """Pair a zone with its parent area."""
    return zone, await zone_catalog_service.area_of_zone(session, zone)


async def assign_zone(
    session: AsyncSession,
    street_id: uuid.UUID,
    *,
    house_number: str | int | None = None,
    block_label: str | None = None,
) -> ZoneAssignment:
    """Choose the zone for a structured address.

    The house number is tried first, then the block label.

    Args:
        session: Database session.
        street_id: Street of the address.
        house_number: House number, if the address has one.
        block_label: Block label, if the address has one.

    Returns:
        The assignment; empty when neither strategy resolves.
    """
    zone = await resolve_by_number(session, street_id, house_number)
    method = RANGE_LOOKUP
    if zone is None:
        zone = await resolve_by_block(session, street_id, block_label)
        method = BLOCK_LOOKUP
    if zone is None:
        return ZoneAssignment()
    return ZoneAssignment(zone_id=zone.id, area_id=zone.area_id, method=method)
