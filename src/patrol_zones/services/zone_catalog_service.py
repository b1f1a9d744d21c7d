"""Zone catalog service -- read access to zones, areas and zone centroids."""

import uuid

from loguru import logger
from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from patrol_zones.lib.geocoder.distance import haversine_meters, meters_to_degrees
from patrol_zones.models.area import Area
from patrol_zones.models.zone import Zone


async def get_zone(session: AsyncSession, zone_id: uuid.UUID) -> Zone | None:
    """Return an active zone by id.

    Args:
        session: Database session.
        zone_id: Zone UUID.

    Returns:
        The zone, or None if it does not exist or is inactive.
    """
    result = await session.execute(select(Zone).where(Zone.id == zone_id, Zone.is_active.is_(True)))
    return result.scalar_one_or_none()


async def get_zone_by_code(session: AsyncSession, code: str) -> Zone | None:
    """Return an active zone by its code, ignoring case."""
    result = await session.execute(
        select(Zone).where(func.upper(Zone.code) == code.strip().upper(), Zone.is_active.is_(True))
    )
    return result.scalar_one_or_none()


async def get_area(session: AsyncSession, area_id: uuid.UUID) -> Area | None:
    """Return an area by id, or None."""
    return await session.get(Area, area_id)


async def area_of_zone(session: AsyncSession, zone: Zone) -> Area | None:
    """Return the parent area of a zone."""
    return await get_area(session, zone.area_id)


async def list_zones_for_area(session: AsyncSession, area_id: uuid.UUID) -> list[Zone]:
    """Return the active zones of an area ordered by code."""
    result = await session.execute(
        select(Zone).where(Zone.area_id == area_id, Zone.is_active.is_(True)).order_by(Zone.code)
    )
    return list(result.scalars().all())


async def find_zones_near(
    session: AsyncSession,
    latitude: float,
    longitude: float,
    radius_meters: float,
) -> list[tuple[Zone, float]]:
    """Find active zones whose centroid lies within a radius of a point.

    A bounding box derived from the radius narrows the query; the exact
    great-circle distance then filters and orders the candidates.

    Args:
        session: Database session.
        latitude: WGS84 latitude of the point.
        longitude: WGS84 longitude of the point.
        radius_meters: Search radius in meters.

    Returns:
        (zone, distance_meters) pairs, nearest first.
    """
    delta = meters_to_degrees(radius_meters, latitude)
    result = await session.execute(
        select(Zone).where(
            Zone.is_active.is_(True),
            Zone.latitude.is_not(None),
            Zone.longitude.is_not(None),
            Zone.latitude.between(latitude - delta, latitude + delta),
            Zone.longitude.between(longitude - delta, longitude + delta),
        )
    )

    matches: list[tuple[Zone, float]] = []
    for zone in result.scalars().all():
        distance = haversine_meters(latitude, longitude, zone.latitude, zone.longitude)
        if distance <= radius_meters:
            matches.append((zone, distance))
    matches.sort(key=lambda pair: (pair[1], pair[0].code))
    logger.debug(f"Found {len(matches)} zones within {radius_meters:.0f} m of ({latitude}, {longitude})")
    return matches


async def nearest_zone(
    session: AsyncSession,
    latitude: float,
    longitude: float,
    max_distance_meters: float,
) -> tuple[Zone, float] | None:
    """Return the nearest active zone within ``max_distance_meters``, with its distance."""
    matches = await find_zones_near(session, latitude, longitude, max_distance_meters)
    return matches[0] if matches else None
