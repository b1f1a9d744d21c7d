"""Tests for the free-text address resolution pipeline."""

import asyncio
from unittest.mock import AsyncMock, patch

import pytest
from sqlalchemy.ext.asyncio import AsyncSession

from patrol_zones.core.config import Settings
from patrol_zones.lib.geocoder import (
    BaseGeocoder,
    GeocodedAddress,
    GeocodeQuality,
    GeocodingProviderError,
    GeocodingResult,
)
from patrol_zones.lib.geocoder.address import parse_address_text
from patrol_zones.lib.zoning import RangeValidationError, ValidationKind
from patrol_zones.models.address import Address
from patrol_zones.schemas.resolution import ResolutionProvenance
from patrol_zones.services.address_resolution_service import (
    find_candidate_streets,
    resolve_address_text,
    validate_address_input,
)
from patrol_zones.services.street_range_service import insert_range

# Far enough from every seeded zone centroid that the coordinate stage finds nothing
FAR_AWAY = (-16.3950, -71.5600)


def _geocoder(latitude: float = FAR_AWAY[0], longitude: float = FAR_AWAY[1]):
    async def _geocode(text: str) -> GeocodedAddress:
        result = GeocodingResult(latitude=latitude, longitude=longitude, quality=GeocodeQuality.STREET_CENTER)
        return GeocodedAddress(result=result, parsed=parse_address_text(text), attempts=1)

    return _geocode


async def _address(
    session: AsyncSession,
    street,
    zone,
    *,
    house_number: str | None = None,
    block: str | None = None,
    lot: str | None = None,
    latitude: float | None = None,
    longitude: float | None = None,
) -> Address:
    address = Address(
        street_id=street.id,
        zone_id=zone.id,
        area_id=zone.area_id,
        house_number=house_number,
        block_label=block,
        lot_label=lot,
        full_address=f"{street.full_name} {house_number or ''}".strip(),
        latitude=latitude,
        longitude=longitude,
        resolution_source="manual",
    )
    session.add(address)
    await session.flush()
    return address


class TestInputValidation:
    def test_too_short_input_rejected(self) -> None:
        for text in ("", "   ", " a b ", None):
            with pytest.raises(RangeValidationError) as exc_info:
                validate_address_input(text)
            assert exc_info.value.kind == ValidationKind.INPUT_TOO_SHORT

    def test_input_is_trimmed(self) -> None:
        assert validate_address_input("  Lima 5 ") == "Lima 5"
        assert validate_address_input("a b c") == "a b c"

    async def test_pipeline_rejects_before_geocoding(self, async_session: AsyncSession, settings: Settings) -> None:
        geocode = AsyncMock()
        with pytest.raises(RangeValidationError):
            await resolve_address_text(async_session, "ab", geocode=geocode, settings=settings)
        geocode.assert_not_called()


class TestGeocodingFailures:
    """Geocoding failure is terminal and reported, never raised."""

    async def test_no_result(self, async_session: AsyncSession, zoning, settings: Settings) -> None:
        result = await resolve_address_text(
            async_session, "Av. Ejercito 250", geocode=AsyncMock(return_value=None), settings=settings
        )

        assert result.provenance == ResolutionProvenance.GEOCODING_FAILED
        assert result.latitude is None
        assert result.zone_id is None
        assert result.parsed.street_name == "Ejercito"

    async def test_provider_error(self, async_session: AsyncSession, zoning, settings: Settings) -> None:
        geocode = AsyncMock(side_effect=GeocodingProviderError("nominatim", "HTTP 503", status_code=503))

        result = await resolve_address_text(async_session, "Av. Ejercito 250", geocode=geocode, settings=settings)

        assert result.provenance == ResolutionProvenance.GEOCODING_FAILED

    async def test_timeout(self, async_session: AsyncSession, zoning) -> None:
        settings = Settings(database_url="sqlite+aiosqlite:///:memory:", geocoder_timeout=0.05)

        async def _slow(text: str) -> None:
            await asyncio.sleep(1)

        result = await resolve_address_text(async_session, "Av. Ejercito 250", geocode=_slow, settings=settings)

        assert result.provenance == ResolutionProvenance.GEOCODING_FAILED

    async def test_default_geocoder_keeps_early_hit_when_budget_runs_out(
        self, async_session: AsyncSession, zoning
    ) -> None:
        settings = Settings(database_url="sqlite+aiosqlite:///:memory:", geocoder_timeout=1.0)

        class _SlowProvider(BaseGeocoder):
            @property
            def provider_name(self) -> str:
                return "slow"

            async def geocode(self, address: str) -> GeocodingResult:
                await asyncio.sleep(0.4)
                latitude, longitude = FAR_AWAY
                return GeocodingResult(latitude=latitude, longitude=longitude, quality=GeocodeQuality.STREET_CENTER)

            async def geocode_street(self, street, *, city="", region="", country="") -> GeocodingResult:
                return await self.geocode(street)

        with patch(
            "patrol_zones.services.address_resolution_service.get_configured_geocoder",
            return_value=_SlowProvider(),
        ):
            result = await resolve_address_text(async_session, "Av. Santa Rosa 250", settings=settings)

        assert result.provenance != ResolutionProvenance.GEOCODING_FAILED
        assert (result.latitude, result.longitude) == FAR_AWAY

    async def test_default_geocoder_uses_configured_locality(
        self, async_session: AsyncSession, zoning, settings: Settings
    ) -> None:
        with patch(
            "patrol_zones.services.address_resolution_service.geocode_address_text",
            new_callable=AsyncMock,
            return_value=None,
        ) as mock_geocode:
            result = await resolve_address_text(async_session, "Av. Ejercito 250", settings=settings)

        assert result.provenance == ResolutionProvenance.GEOCODING_FAILED
        kwargs = mock_geocode.call_args.kwargs
        assert (kwargs["city"], kwargs["region"], kwargs["country"]) == ("Cayma", "Arequipa", "Peru")


class TestCascade:
    """Each stage, in order, with earlier stages short-circuiting later ones."""

    async def test_exact_number_match_wins_over_range(
        self, async_session: AsyncSession, zoning, settings: Settings
    ) -> None:
        await insert_range(
            async_session, street_id=zoning.ejercito.id, zone_id=zoning.z1.id, range_start=100, range_end=299
        )
        stored = await _address(
            async_session, zoning.ejercito, zoning.z2, house_number="250", latitude=-16.3811, longitude=-71.5362
        )

        result = await resolve_address_text(async_session, "Av. Ejercito 250", geocode=_geocoder(), settings=settings)

        assert result.provenance == ResolutionProvenance.EXACT
        assert result.zone_id == zoning.z2.id
        assert result.zone_code == "C002"
        assert result.area_code == "S01"
        assert result.matched_reference.address_id == stored.id
        assert (result.latitude, result.longitude) == (-16.3811, -71.5362)
        assert result.source == "database"

    async def test_exact_match_wins_over_near_duplicate_in_other_zone(
        self, async_session: AsyncSession, zoning, settings: Settings
    ) -> None:
        stored = await _address(async_session, zoning.ejercito, zoning.z1, house_number="450")
        await _address(async_session, zoning.ejercito, zoning.z2, house_number="452")

        result = await resolve_address_text(async_session, "Av. Ejercito 450", geocode=_geocoder(), settings=settings)

        assert result.provenance == ResolutionProvenance.EXACT
        assert result.zone_id == zoning.z1.id
        assert result.matched_reference.address_id == stored.id

    async def test_exact_match_without_stored_coordinates_keeps_geocoded_ones(
        self, async_session: AsyncSession, zoning, settings: Settings
    ) -> None:
        await _address(async_session, zoning.ejercito, zoning.z2, house_number="250-A")

        result = await resolve_address_text(
            async_session, "Av. Ejercito 250-a", geocode=_geocoder(), settings=settings
        )

        assert result.provenance == ResolutionProvenance.EXACT
        assert (result.latitude, result.longitude) == FAR_AWAY
        assert result.source == "external-geocoder"
        assert result.geocoder_quality == "street_center"

    async def test_exact_block_and_lot_match(self, async_session: AsyncSession, zoning, settings: Settings) -> None:
        await _address(async_session, zoning.lima, zoning.z1, block="B", lot="3")
        stored = await _address(async_session, zoning.lima, zoning.z2, block="B", lot="4")

        result = await resolve_address_text(
            async_session, "Calle Lima Mz b Lt 4", geocode=_geocoder(), settings=settings
        )

        assert result.provenance == ResolutionProvenance.EXACT
        assert result.matched_reference.address_id == stored.id
        assert result.zone_id == zoning.z2.id

    async def test_nearest_in_same_hundred_block(
        self, async_session: AsyncSession, zoning, settings: Settings
    ) -> None:
        await _address(async_session, zoning.ejercito, zoning.z1, house_number="410")
        closest = await _address(async_session, zoning.ejercito, zoning.z2, house_number="480")
        await _address(async_session, zoning.ejercito, zoning.z3, house_number="505")

        result = await resolve_address_text(async_session, "Av. Ejercito 470", geocode=_geocoder(), settings=settings)

        assert result.provenance == ResolutionProvenance.NEAREST_IN_BLOCK
        assert result.zone_id == zoning.z2.id
        assert result.matched_reference.address_id == closest.id
        assert result.matched_reference.numeric_distance == 10

    async def test_other_hundred_block_is_not_a_neighbour(
        self, async_session: AsyncSession, zoning, settings: Settings
    ) -> None:
        await _address(async_session, zoning.ejercito, zoning.z3, house_number="501")

        result = await resolve_address_text(async_session, "Av. Ejercito 499", geocode=_geocoder(), settings=settings)

        assert result.provenance == ResolutionProvenance.UNRESOLVED

    async def test_block_fallback_lowest_lot(self, async_session: AsyncSession, zoning, settings: Settings) -> None:
        await _address(async_session, zoning.lima, zoning.z1, block="C", lot="7")
        lowest = await _address(async_session, zoning.lima, zoning.z2, block="C", lot="2")

        result = await resolve_address_text(
            async_session, "Calle Lima Mz C Lt 9", geocode=_geocoder(), settings=settings
        )

        assert result.provenance == ResolutionProvenance.BLOCK_FALLBACK
        assert result.zone_id == zoning.z2.id
        assert result.matched_reference.address_id == lowest.id

    async def test_range_lookup(self, async_session: AsyncSession, zoning, settings: Settings) -> None:
        await insert_range(
            async_session, street_id=zoning.ejercito.id, zone_id=zoning.z1.id, range_start=100, range_end=299
        )

        result = await resolve_address_text(async_session, "Av. Ejercito 150", geocode=_geocoder(), settings=settings)

        assert result.provenance == ResolutionProvenance.RANGE_LOOKUP
        assert result.zone_id == zoning.z1.id
        assert result.matched_reference is None
        assert result.source == "external-geocoder"
        assert (result.latitude, result.longitude) == FAR_AWAY

    async def test_oversized_number_falls_through_to_unresolved(
        self, async_session: AsyncSession, zoning, settings: Settings
    ) -> None:
        await insert_range(
            async_session, street_id=zoning.ejercito.id, zone_id=zoning.z1.id, range_start=100, range_end=299
        )

        result = await resolve_address_text(
            async_session, f"Av. Ejercito {'9' * 25}", geocode=_geocoder(), settings=settings
        )

        assert result.provenance == ResolutionProvenance.UNRESOLVED
        assert result.zone_id is None

    async def test_references_in_inactive_zones_are_skipped(
        self, async_session: AsyncSession, zoning, settings: Settings
    ) -> None:
        await insert_range(
            async_session, street_id=zoning.ejercito.id, zone_id=zoning.z1.id, range_start=100, range_end=299
        )
        await _address(async_session, zoning.ejercito, zoning.z2, house_number="250")
        zoning.z2.is_active = False
        await async_session.flush()

        result = await resolve_address_text(async_session, "Av. Ejercito 250", geocode=_geocoder(), settings=settings)

        assert result.provenance == ResolutionProvenance.RANGE_LOOKUP
        assert result.zone_id == zoning.z1.id

    async def test_nearest_zone_by_coordinate(self, async_session: AsyncSession, zoning, settings: Settings) -> None:
        result = await resolve_address_text(
            async_session,
            "Calle Inexistente 10",
            geocode=_geocoder(-16.3905, -71.5450),
            settings=settings,
        )

        assert result.provenance == ResolutionProvenance.NEAREST_BY_COORDINATE
        assert result.zone_id == zoning.z1.id
        assert result.distance_meters == pytest.approx(55.6, abs=0.5)

    async def test_unresolved_keeps_coordinates(self, async_session: AsyncSession, zoning, settings: Settings) -> None:
        result = await resolve_address_text(
            async_session, "Calle Inexistente 10", geocode=_geocoder(), settings=settings
        )

        assert result.provenance == ResolutionProvenance.UNRESOLVED
        assert result.zone_id is None
        assert result.area_id is None
        assert (result.latitude, result.longitude) == FAR_AWAY
        assert not result.resolved


class TestFindCandidateStreets:
    async def test_substring_ignores_case(self, async_session: AsyncSession, zoning) -> None:
        streets = await find_candidate_streets(async_session, "ejer")
        assert [s.id for s in streets] == [zoning.ejercito.id]

    async def test_full_name_matches(self, async_session: AsyncSession, zoning) -> None:
        streets = await find_candidate_streets(async_session, "calle lima")
        assert [s.id for s in streets] == [zoning.lima.id]

    async def test_wildcards_are_literal(self, async_session: AsyncSession, zoning) -> None:
        assert await find_candidate_streets(async_session, "%") == []

    async def test_empty_name_and_inactive_streets(self, async_session: AsyncSession, zoning) -> None:
        assert await find_candidate_streets(async_session, "  ") == []
        zoning.lima.is_active = False
        await async_session.flush()
        assert await find_candidate_streets(async_session, "lima") == []

    async def test_limit(self, async_session: AsyncSession, zoning) -> None:
        streets = await find_candidate_streets(async_session, "i", limit=1)
        assert len(streets) == 1
