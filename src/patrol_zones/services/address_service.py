"""Address service -- structured address writes with automatic zone assignment.

An address is numbered either by house number or by block and lot.  When
the caller does not pin a zone manually, the zone is derived from the
street's segment ranges through ``zone_resolver_service.assign_zone``.
"""

import uuid
from typing import Any

from loguru import logger
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from patrol_zones.lib.geocoder.distance import validate_coordinates
from patrol_zones.lib.zoning import (
    RangeValidationError,
    ValidationKind,
    normalize_house_number,
    normalize_label,
)
from patrol_zones.models.address import Address, ResolutionSource
from patrol_zones.models.street import Street
from patrol_zones.services import zone_catalog_service, zone_resolver_service

_UPDATABLE_FIELDS: frozenset[str] = frozenset(
    {
        "street_id",
        "house_number",
        "block_label",
        "lot_label",
        "full_address",
        "zone_id",
        "latitude",
        "longitude",
    }
)

# Changing any of these re-runs automatic zone assignment
_ZONE_INPUT_FIELDS: frozenset[str] = frozenset({"street_id", "house_number", "block_label"})
_FULL_ADDRESS_FIELDS: frozenset[str] = _ZONE_INPUT_FIELDS | {"lot_label"}


def validate_addressing_scheme(
    house_number: str | None,
    block_label: str | None,
    lot_label: str | None,
) -> None:
    """Require a house number, or both a block and a lot.

    Raises:
        RangeValidationError: With kind MISSING_ADDRESSING otherwise.
    """
    if house_number:
        return
    if block_label and lot_label:
        return
    msg = "An address needs a house number or both a block and a lot"
    raise RangeValidationError(ValidationKind.MISSING_ADDRESSING, msg)


def _compose_full_address(street: Street, address: Address) -> str:
    parts = [street.full_name or street.name]
    if address.house_number:
        parts.append(address.house_number)
    if address.block_label:
        parts.append(f"Mz {address.block_label}")
    if address.lot_label:
        parts.append(f"Lt {address.lot_label}")
    return " ".join(parts)


async def _get_street(session: AsyncSession, street_id: uuid.UUID) -> Street:
    street = await session.get(Street, street_id)
    if street is None:
        msg = f"Street {street_id} not found"
        raise RangeValidationError(ValidationKind.UNKNOWN_STREET, msg)
    return street


async def _apply_zone(session: AsyncSession, address: Address, manual_zone_id: uuid.UUID | None) -> None:
    """Set zone, area and provenance on an address, manually or from its street ranges."""
    if manual_zone_id is not None:
        zone = await zone_catalog_service.get_zone(session, manual_zone_id)
        if zone is None:
            msg = f"Zone {manual_zone_id} not found or inactive"
            raise RangeValidationError(ValidationKind.UNKNOWN_ZONE, msg)
        address.zone_id = zone.id
        address.area_id = zone.area_id
        address.resolution_source = ResolutionSource.MANUAL.value
        address.resolution_method = ResolutionSource.MANUAL.value
        return

    assignment = await zone_resolver_service.assign_zone(
        session,
        address.street_id,
        house_number=address.house_number,
        block_label=address.block_label,
    )
    address.zone_id = assignment.zone_id
    address.area_id = assignment.area_id
    address.resolution_source = ResolutionSource.DATABASE.value if assignment.resolved else None
    address.resolution_method = assignment.method
    if not assignment.resolved:
        logger.warning(f"No zone found for address on street {address.street_id}")


async def get_address(session: AsyncSession, address_id: uuid.UUID) -> Address | None:
    """Return an active address by id."""
    result = await session.execute(
        select(Address).where(Address.id == address_id, Address.is_active.is_(True))
    )
    return result.scalar_one_or_none()


async def create_address(
    session: AsyncSession,
    *,
    street_id: uuid.UUID,
    house_number: str | None = None,
    block_label: str | None = None,
    lot_label: str | None = None,
    full_address: str | None = None,
    zone_id: uuid.UUID | None = None,
    latitude: float | None = None,
    longitude: float | None = None,
) -> Address:
    """Create a structured address and assign its zone.

    Args:
        session: Database session (flushed, not committed).
        street_id: Street of the address.
        house_number: Municipal number ("250", "250-A", "S/N").
        block_label: Block label, for block/lot addressing.
        lot_label: Lot label, for block/lot addressing.
        full_address: Display line; composed from the parts when omitted.
        zone_id: Zone to pin manually; automatic assignment when None.
        latitude: Optional WGS84 latitude (paired with longitude).
        longitude: Optional WGS84 longitude.

    Returns:
        The persisted Address.

    Raises:
        RangeValidationError: If the addressing scheme is incomplete or the
            street or manual zone does not exist.
        ValueError: If coordinates are out of range.
    """
    house_number = normalize_house_number(house_number)
    block_label = normalize_label(block_label)
    lot_label = normalize_label(lot_label)
    validate_addressing_scheme(house_number, block_label, lot_label)
    if latitude is not None and longitude is not None:
        validate_coordinates(latitude, longitude)

    street = await _get_street(session, street_id)
    address = Address(
        street_id=street_id,
        house_number=house_number,
        block_label=block_label,
        lot_label=lot_label,
        latitude=latitude,
        longitude=longitude,
        is_active=True,
    )
    address.full_address = full_address or _compose_full_address(street, address)
    await _apply_zone(session, address, zone_id)

    session.add(address)
    await session.flush()
    logger.info(f"Created address {address.id} ({address.full_address}) -> zone {address.zone_id}")
    return address


async def update_address(
    session: AsyncSession,
    address_id: uuid.UUID,
    changes: dict[str, Any],
) -> Address | None:
    """Update an address, reassigning its zone when its location changes.

    A ``zone_id`` in ``changes`` pins that zone manually (None returns the
    address to automatic assignment).  Otherwise the zone is recomputed
    whenever the street, house number or block changes.  The full address
    text is rebuilt from the parts when any of them changes, unless the
    caller passes its own ``full_address``.

    Args:
        session: Database session (flushed, not committed).
        address_id: Address to update.
        changes: Dict of field_name -> new value; only allowlisted fields apply.

    Returns:
        The updated Address, or None if it does not exist or is inactive.
    """
    address = await get_address(session, address_id)
    if address is None:
        return None

    data = {key: value for key, value in changes.items() if key in _UPDATABLE_FIELDS}
    if "house_number" in data:
        data["house_number"] = normalize_house_number(data["house_number"])
    for label in ("block_label", "lot_label"):
        if label in data:
            data[label] = normalize_label(data[label])

    validate_addressing_scheme(
        data.get("house_number", address.house_number),
        data.get("block_label", address.block_label),
        data.get("lot_label", address.lot_label),
    )
    latitude = data.get("latitude", address.latitude)
    longitude = data.get("longitude", address.longitude)
    if latitude is not None and longitude is not None:
        validate_coordinates(latitude, longitude)
    street = await _get_street(session, data["street_id"]) if "street_id" in data else None

    manual_zone_id = data.pop("zone_id", None)
    for field_name, value in data.items():
        setattr(address, field_name, value)

    if "full_address" in data:
        recompose = not data["full_address"]
    else:
        recompose = bool(_FULL_ADDRESS_FIELDS & data.keys())
    if recompose:
        street = street or await _get_street(session, address.street_id)
        address.full_address = _compose_full_address(street, address)

    if "zone_id" in changes or _ZONE_INPUT_FIELDS & data.keys():
        await _apply_zone(session, address, manual_zone_id)

    await session.flush()
    logger.info(f"Updated address {address.id} -> zone {address.zone_id}")
    return address
