"""Unit tests for the variant-cascading free-text geocoder."""

import asyncio

import pytest

from patrol_zones.lib.geocoder import (
    BaseGeocoder,
    GeocodeQuality,
    GeocodingProviderError,
    GeocodingResult,
    geocode_address_text,
)


class ScriptedGeocoder(BaseGeocoder):
    """Returns canned results per query and records every call."""

    def __init__(self, street_results: dict[str, GeocodingResult] | None = None, free_form=None) -> None:
        self.street_results = street_results or {}
        self.free_form = free_form
        self.street_calls: list[str] = []
        self.free_form_calls: list[str] = []

    @property
    def provider_name(self) -> str:
        return "scripted"

    async def geocode(self, address: str) -> GeocodingResult | None:
        self.free_form_calls.append(address)
        return self.free_form

    async def geocode_street(self, street, *, city="", region="", country="") -> GeocodingResult | None:
        self.street_calls.append(street)
        return self.street_results.get(street)


def _result(quality: GeocodeQuality, lat: float = -16.39) -> GeocodingResult:
    return GeocodingResult(latitude=lat, longitude=-71.54, quality=quality)


class TestGeocodeAddressText:
    """Tests for geocode_address_text."""

    async def test_exact_hit_stops_the_cascade(self) -> None:
        geocoder = ScriptedGeocoder({"250 Avenida Santa Rosa": _result(GeocodeQuality.EXACT)})

        geocoded = await geocode_address_text(geocoder, "Av. Santa Rosa 250")

        assert geocoded is not None
        assert geocoded.result.quality == GeocodeQuality.EXACT
        assert geocoded.attempts == 1
        assert geocoder.street_calls == ["250 Avenida Santa Rosa"]
        assert geocoder.free_form_calls == []
        assert geocoded.parsed.street_name == "Santa Rosa"

    async def test_variants_are_tried_in_order(self) -> None:
        geocoder = ScriptedGeocoder({"250 Sta. Rosa": _result(GeocodeQuality.EXACT, lat=-16.40)})

        geocoded = await geocode_address_text(geocoder, "Av. Santa Rosa 250")

        assert geocoder.street_calls == ["250 Avenida Santa Rosa", "250 Santa Rosa", "250 Sta. Rosa"]
        assert geocoded is not None
        assert geocoded.latitude == -16.40

    async def test_falls_back_to_free_form_with_locality(self) -> None:
        geocoder = ScriptedGeocoder(
            {"450 Ejercito": _result(GeocodeQuality.APPROXIMATE, lat=-16.30)},
            free_form=_result(GeocodeQuality.STREET_CENTER, lat=-16.35),
        )

        geocoded = await geocode_address_text(geocoder, "Ejercito 450", city="Cayma", country="Peru")

        assert geocoder.free_form_calls == ["Ejercito 450, Cayma, Peru"]
        assert geocoded is not None
        assert geocoded.result.quality == GeocodeQuality.STREET_CENTER
        assert geocoded.latitude == -16.35

    async def test_keeps_better_structured_result_over_worse_free_form(self) -> None:
        geocoder = ScriptedGeocoder(
            {"450 Ejercito": _result(GeocodeQuality.STREET_CENTER, lat=-16.30)},
            free_form=_result(GeocodeQuality.APPROXIMATE, lat=-16.35),
        )

        geocoded = await geocode_address_text(geocoder, "Ejercito 450")

        assert geocoded is not None
        assert geocoded.latitude == -16.30

    async def test_interpolated_result_skips_free_form(self) -> None:
        geocoder = ScriptedGeocoder({"450 Ejercito": _result(GeocodeQuality.INTERPOLATED)})

        await geocode_address_text(geocoder, "Ejercito 450")

        assert geocoder.free_form_calls == []

    async def test_number_omitted_for_s_n(self) -> None:
        geocoder = ScriptedGeocoder()

        await geocode_address_text(geocoder, "Calle Mercaderes S/N")

        assert geocoder.street_calls == ["Calle Mercaderes", "Mercaderes"]

    async def test_nothing_found_returns_none(self) -> None:
        geocoder = ScriptedGeocoder()

        assert await geocode_address_text(geocoder, "Calle Inexistente 10") is None
        assert len(geocoder.free_form_calls) == 1

    async def test_provider_error_propagates(self) -> None:
        class FailingGeocoder(ScriptedGeocoder):
            async def geocode_street(self, street, *, city="", region="", country=""):
                raise GeocodingProviderError("scripted", "boom")

        with pytest.raises(GeocodingProviderError):
            await geocode_address_text(FailingGeocoder(), "Ejercito 450")


class SlowGeocoder(ScriptedGeocoder):
    """Answers every street query with the same result after a fixed delay."""

    def __init__(self, result: GeocodingResult | None, delay: float) -> None:
        super().__init__()
        self.result = result
        self.delay = delay

    async def geocode_street(self, street, *, city="", region="", country="") -> GeocodingResult | None:
        self.street_calls.append(street)
        await asyncio.sleep(self.delay)
        return self.result

    async def geocode(self, address: str) -> GeocodingResult | None:
        self.free_form_calls.append(address)
        await asyncio.sleep(self.delay)
        return self.result


class TestGeocodeTimeBudget:
    """Tests for the timeout budget of geocode_address_text."""

    async def test_keeps_first_hit_when_later_attempts_overrun(self) -> None:
        geocoder = SlowGeocoder(_result(GeocodeQuality.STREET_CENTER, lat=-16.41), delay=0.2)

        geocoded = await geocode_address_text(geocoder, "Av. Santa Rosa 250", timeout=0.5)

        assert geocoded is not None
        assert geocoded.latitude == -16.41
        assert 1 <= geocoded.attempts < 4
        assert geocoder.free_form_calls == []

    async def test_budget_spent_before_any_hit_returns_none(self) -> None:
        geocoder = SlowGeocoder(_result(GeocodeQuality.STREET_CENTER), delay=1.0)

        assert await geocode_address_text(geocoder, "Av. Santa Rosa 250", timeout=0.05) is None
        assert len(geocoder.street_calls) == 1

    async def test_rate_limit_pause_that_exceeds_budget_stops_the_cascade(self) -> None:
        class RateLimited(ScriptedGeocoder):
            @property
            def rate_limit_delay(self) -> float:
                return 5.0

        geocoder = RateLimited({"450 Ejercito": _result(GeocodeQuality.APPROXIMATE, lat=-16.30)})

        geocoded = await geocode_address_text(geocoder, "Ejercito 450", timeout=1.0)

        assert geocoded is not None
        assert geocoded.latitude == -16.30
        assert geocoder.street_calls == ["450 Ejercito"]
        assert geocoder.free_form_calls == []

    async def test_no_timeout_runs_every_attempt(self) -> None:
        geocoder = SlowGeocoder(_result(GeocodeQuality.STREET_CENTER), delay=0.01)

        geocoded = await geocode_address_text(geocoder, "Av. Santa Rosa 250")

        assert geocoded is not None
        assert geocoded.attempts == 4
