"""Free-text address resolution -- the cascading pipeline from raw text to a zone.

Stages run in order and the first one that produces a zone wins:

1. geocode the text once (bounded by ``geocoder_timeout``)
2. exact match against stored addresses on the candidate streets
3. nearest stored number in the same hundred-block
4. stored address in the same block, lowest lot first
5. street range lookup on the best candidate street
6. nearest zone centroid within ``resolution_nearest_zone_radius_meters``

When nothing matches the result still carries the geocoded coordinates.
"""

import asyncio
import uuid
from collections.abc import Awaitable, Callable, Sequence

from loguru import logger
from sqlalchemy import func, or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from patrol_zones.core.config import Settings, get_settings
from patrol_zones.lib.geocoder import (
    GeocodedAddress,
    GeocodingProviderError,
    get_configured_geocoder,
    geocode_address_text,
)
from patrol_zones.lib.geocoder.address import ParsedAddress, parse_address_text
from patrol_zones.lib.zoning import (
    RangeValidationError,
    ValidationKind,
    hundred_block,
    normalize_house_number,
    normalize_label,
    parse_house_number,
)
from patrol_zones.models.address import Address, ResolutionSource
from patrol_zones.models.street import Street
from patrol_zones.models.zone import Zone
from patrol_zones.schemas.resolution import (
    AddressResolutionResult,
    MatchedReference,
    ParsedFragments,
    ResolutionProvenance,
)
from patrol_zones.services import zone_catalog_service, zone_resolver_service

MIN_INPUT_CHARACTERS = 3

GeocodeFn = Callable[[str], Awaitable[GeocodedAddress | None]]


def validate_address_input(text: str | None) -> str:
    """Trim the input and require at least three non-whitespace characters.

    Raises:
        RangeValidationError: With kind INPUT_TOO_SHORT otherwise.
    """
    stripped = (text or "").strip()
    if len("".join(stripped.split())) < MIN_INPUT_CHARACTERS:
        msg = f"Address must contain at least {MIN_INPUT_CHARACTERS} non-whitespace characters"
        raise RangeValidationError(ValidationKind.INPUT_TOO_SHORT, msg)
    return stripped


def build_geocode(settings: Settings) -> GeocodeFn:
    """Bind the configured provider and locality context into a single-argument geocode call."""
    geocoder = get_configured_geocoder(settings)

    async def _geocode(text: str) -> GeocodedAddress | None:
        return await geocode_address_text(
            geocoder,
            text,
            city=settings.geocoder_city,
            region=settings.geocoder_region,
            country=settings.geocoder_country,
            timeout=settings.geocoder_timeout,
        )

    return _geocode


async def find_candidate_streets(
    session: AsyncSession,
    street_name: str,
    limit: int = 10,
) -> list[Street]:
    """Active streets whose name or full name contains ``street_name``, ignoring case."""
    name = street_name.strip()
    if not name:
        return []
    result = await session.execute(
        select(Street)
        .where(
            Street.is_active.is_(True),
            or_(
                Street.name.icontains(name, autoescape=True),
                Street.full_name.icontains(name, autoescape=True),
            ),
        )
        .order_by(func.length(Street.name), Street.name)
        .limit(limit)
    )
    return list(result.scalars().all())


def _reference_query(street_ids: Sequence[uuid.UUID]):
    """Active stored addresses on the candidate streets that carry an active zone."""
    return (
        select(Address)
        .join(Zone, Zone.id == Address.zone_id)
        .where(
            Address.street_id.in_(street_ids),
            Address.is_active.is_(True),
            Zone.is_active.is_(True),
        )
    )


async def _exact_match(
    session: AsyncSession,
    street_ids: Sequence[uuid.UUID],
    parsed: ParsedAddress,
) -> Address | None:
    house_number = normalize_house_number(parsed.number)
    if house_number is not None and house_number != "S/N":
        result = await session.execute(
            _reference_query(street_ids)
            .where(func.upper(func.replace(Address.house_number, " ", "")) == house_number)
            .order_by(Address.created_at)
            .limit(1)
        )
        match = result.scalar_one_or_none()
        if match is not None:
            return match

    block = normalize_label(parsed.block)
    lot = normalize_label(parsed.lot)
    if block is not None and lot is not None:
        result = await session.execute(
            _reference_query(street_ids)
            .where(func.upper(Address.block_label) == block, func.upper(Address.lot_label) == lot)
            .order_by(Address.created_at)
            .limit(1)
        )
        return result.scalar_one_or_none()
    return None


async def _nearest_in_block(
    session: AsyncSession,
    street_ids: Sequence[uuid.UUID],
    number: int,
    reference_limit: int,
) -> tuple[Address, int] | None:
    """Closest stored house number sharing the hundred-block of ``number``."""
    result = await session.execute(
        _reference_query(street_ids)
        .where(Address.house_number.is_not(None))
        .order_by(Address.created_at)
        .limit(reference_limit)
    )

    best: tuple[Address, int] | None = None
    target_block = hundred_block(number)
    for reference in result.scalars().all():
        reference_number = parse_house_number(reference.house_number)
        if reference_number is None or hundred_block(reference_number) != target_block:
            continue
        distance = abs(reference_number - number)
        if best is None or distance < best[1]:
            best = (reference, distance)
    return best


async def _block_fallback(
    session: AsyncSession,
    street_ids: Sequence[uuid.UUID],
    block: str,
) -> Address | None:
    result = await session.execute(
        _reference_query(street_ids)
        .where(func.upper(Address.block_label) == block)
        .order_by(Address.lot_label.asc().nulls_last(), Address.created_at)
        .limit(1)
    )
    return result.scalar_one_or_none()


def _parsed_fragments(parsed: ParsedAddress) -> ParsedFragments:
    return ParsedFragments(**parsed.to_dict())


async def _zone_result(
    session: AsyncSession,
    base: AddressResolutionResult,
    zone: Zone,
    provenance: ResolutionProvenance,
    **extra: object,
) -> AddressResolutionResult:
    """Fill zone and area fields onto the coordinates-only base result."""
    _, area = await zone_resolver_service.resolve_zone_and_area(session, zone)
    return base.model_copy(
        update={
            "provenance": provenance,
            "zone_id": zone.id,
            "zone_code": zone.code,
            "area_id": area.id if area is not None else zone.area_id,
            "area_code": area.code if area is not None else None,
            **extra,
        }
    )


def _reference(address: Address, distance: int | None = None) -> MatchedReference:
    return MatchedReference(
        address_id=address.id,
        full_address=address.full_address,
        house_number=address.house_number,
        numeric_distance=distance,
    )


async def resolve_address_text(
    session: AsyncSession,
    text: str,
    *,
    geocode: GeocodeFn | None = None,
    settings: Settings | None = None,
) -> AddressResolutionResult:
    """Resolve a free-text address to a zone.

    Args:
        session: Database session (read-only use).
        text: Address as typed, e.g. "Av. Santa Rosa 250" or "Calle Lima Mz B Lt 4".
        geocode: Geocoding call to use; defaults to the configured provider
            wrapped in the variant cascade.
        settings: Application settings; loaded from the environment when omitted.

    Returns:
        AddressResolutionResult whose ``provenance`` names the stage that
        produced the zone, or ``unresolved`` / ``geocoding-failed``.

    Raises:
        RangeValidationError: If the input has fewer than three
            non-whitespace characters.
    """
    text = validate_address_input(text)
    settings = settings or get_settings()
    # The built-in cascade spends its own time budget and keeps partial results
    limit = settings.geocoder_timeout if geocode is not None else None
    geocode = geocode or build_geocode(settings)

    try:
        geocoded = await asyncio.wait_for(geocode(text), timeout=limit)
    except TimeoutError:
        logger.warning(f"Geocoding timed out after {settings.geocoder_timeout}s for {text!r}")
        geocoded = None
    except GeocodingProviderError as exc:
        logger.warning(f"Geocoding provider {exc.provider_name} failed for {text!r}: {exc.message}")
        geocoded = None

    if geocoded is None:
        return AddressResolutionResult(
            input_address=text,
            provenance=ResolutionProvenance.GEOCODING_FAILED,
            parsed=_parsed_fragments(parse_address_text(text)),
        )

    parsed = geocoded.parsed
    base = AddressResolutionResult(
        input_address=text,
        provenance=ResolutionProvenance.UNRESOLVED,
        latitude=geocoded.latitude,
        longitude=geocoded.longitude,
        source=ResolutionSource.EXTERNAL_GEOCODER.value,
        geocoder_quality=geocoded.result.quality.value if geocoded.result.quality else None,
        parsed=_parsed_fragments(parsed),
    )

    streets = await find_candidate_streets(
        session, parsed.street_name, limit=settings.resolution_street_candidate_limit
    )
    street_ids = [street.id for street in streets]
    logger.debug(f"{len(streets)} candidate streets for {parsed.street_name!r}")

    if street_ids:
        exact = await _exact_match(session, street_ids, parsed)
        if exact is not None:
            zone = await zone_catalog_service.get_zone(session, exact.zone_id)
            extra: dict[str, object] = {"matched_reference": _reference(exact)}
            if exact.has_coordinates:
                extra.update(
                    latitude=exact.latitude,
                    longitude=exact.longitude,
                    source=ResolutionSource.DATABASE.value,
                )
            logger.info(f"Resolved {text!r} to zone {zone.code} by exact match")
            return await _zone_result(session, base, zone, ResolutionProvenance.EXACT, **extra)

        number = parse_house_number(parsed.number)
        if number is not None:
            nearest = await _nearest_in_block(session, street_ids, number, settings.resolution_reference_limit)
            if nearest is not None:
                reference, distance = nearest
                zone = await zone_catalog_service.get_zone(session, reference.zone_id)
                logger.info(f"Resolved {text!r} to zone {zone.code} from number {reference.house_number}")
                return await _zone_result(
                    session,
                    base,
                    zone,
                    ResolutionProvenance.NEAREST_IN_BLOCK,
                    matched_reference=_reference(reference, distance),
                )

        block = normalize_label(parsed.block)
        if block is not None:
            reference = await _block_fallback(session, street_ids, block)
            if reference is not None:
                zone = await zone_catalog_service.get_zone(session, reference.zone_id)
                logger.info(f"Resolved {text!r} to zone {zone.code} from block {block}")
                return await _zone_result(
                    session,
                    base,
                    zone,
                    ResolutionProvenance.BLOCK_FALLBACK,
                    matched_reference=_reference(reference),
                )

        zone = await zone_resolver_service.resolve_by_number(session, street_ids[0], parsed.number)
        if zone is not None:
            logger.info(f"Resolved {text!r} to zone {zone.code} by street range")
            return await _zone_result(session, base, zone, ResolutionProvenance.RANGE_LOOKUP)

    nearest_zone = await zone_catalog_service.nearest_zone(
        session, geocoded.latitude, geocoded.longitude, settings.resolution_nearest_zone_radius_meters
    )
    if nearest_zone is not None:
        zone, distance_meters = nearest_zone
        logger.info(f"Resolved {text!r} to zone {zone.code} by centroid {distance_meters:.0f} m away")
        return await _zone_result(
            session,
            base,
            zone,
            ResolutionProvenance.NEAREST_BY_COORDINATE,
            distance_meters=round(distance_meters, 1),
        )

    logger.info(f"Could not resolve {text!r} to a zone")
    return base
