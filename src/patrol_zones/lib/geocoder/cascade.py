"""Variant-cascading geocoding of a free-text address.

One logical geocode call for the resolution pipeline: the address is parsed
locally, then the provider is queried with structured street variants
(canonical prefix, no prefix, saint-name abbreviations) before a free-form
fallback. The most precise hit wins; an exact hit stops the cascade.
"""

import asyncio
from collections.abc import Awaitable, Callable
from dataclasses import dataclass, field

from loguru import logger

from patrol_zones.lib.geocoder.address import (
    ParsedAddress,
    normalize_street_prefix,
    parse_address_text,
    street_name_variants,
)
from patrol_zones.lib.geocoder.base import (
    BaseGeocoder,
    GeocodeQuality,
    GeocodingResult,
    quality_rank,
)


@dataclass
class GeocodedAddress:
    """Coordinates for a free-text address plus the fragments parsed from it."""

    result: GeocodingResult
    parsed: ParsedAddress = field(default_factory=ParsedAddress)
    attempts: int = 0

    @property
    def latitude(self) -> float:
        return self.result.latitude

    @property
    def longitude(self) -> float:
        return self.result.longitude


def _street_queries(parsed: ParsedAddress) -> list[str]:
    """Ordered, de-duplicated street lines to try for a parsed address."""
    number = parsed.number if parsed.number and parsed.number != "S/N" else ""
    queries: list[str] = []

    prefix = normalize_street_prefix(parsed.street_prefix)
    if prefix:
        queries.append(f"{number} {prefix} {parsed.street_name}".strip())
    queries.append(f"{number} {parsed.street_name}".strip())
    queries.extend(f"{number} {variant}".strip() for variant in street_name_variants(parsed.street_name)[1:])

    return list(dict.fromkeys(queries))


def _better(candidate: GeocodingResult | None, current: GeocodingResult | None) -> bool:
    if candidate is None:
        return False
    if current is None:
        return True
    return quality_rank(candidate.quality) < quality_rank(current.quality)


async def geocode_address_text(
    geocoder: BaseGeocoder,
    text: str,
    *,
    city: str = "",
    region: str = "",
    country: str = "",
    timeout: float | None = None,
) -> GeocodedAddress | None:
    """Geocode a free-text address, trying structured variants first.

    When ``timeout`` is given the whole cascade, rate-limit pauses included,
    runs within that many seconds. Once the budget is spent no further
    attempt is made and the best result found so far is returned.

    Args:
        geocoder: Provider to query.
        text: Raw address text.
        city: City / district context appended to every query.
        region: Province / county context.
        country: Country name.
        timeout: Time budget in seconds for all attempts, or None for no limit.

    Returns:
        GeocodedAddress with the most precise result, or None if every
        attempt came back empty or the budget ran out before any hit.

    Raises:
        GeocodingProviderError: If the provider fails (propagated unchanged).
    """
    parsed = parse_address_text(text)
    best: GeocodingResult | None = None
    attempts = 0
    loop = asyncio.get_running_loop()
    deadline = loop.time() + timeout if timeout is not None else None

    def _remaining() -> float | None:
        return None if deadline is None else deadline - loop.time()

    async def _attempt(call: Callable[[], Awaitable[GeocodingResult | None]]) -> GeocodingResult | None:
        nonlocal attempts
        delay = geocoder.rate_limit_delay if attempts else 0.0
        remaining = _remaining()
        if remaining is not None and remaining <= delay:
            raise TimeoutError
        if delay:
            await asyncio.sleep(delay)
        attempts += 1
        return await asyncio.wait_for(call(), timeout=_remaining())

    async def _cascade() -> None:
        nonlocal best
        if parsed.street_name:
            for street in _street_queries(parsed):
                result = await _attempt(
                    lambda street=street: geocoder.geocode_street(street, city=city, region=region, country=country)
                )
                logger.debug(f"Structured attempt {attempts}: quality={result.quality if result else None}")
                if _better(result, best):
                    best = result
                if best is not None and best.quality == GeocodeQuality.EXACT:
                    return

        if best is None or quality_rank(best.quality) > quality_rank(GeocodeQuality.INTERPOLATED):
            query = ", ".join(part for part in (text.strip(), city, region, country) if part)
            result = await _attempt(lambda: geocoder.geocode(query))
            if _better(result, best):
                best = result

    try:
        await _cascade()
    except TimeoutError:
        logger.warning(f"Geocoding budget of {timeout}s spent after {attempts} attempts; keeping best result so far")

    if best is None:
        logger.info(f"No geocoding result after {attempts} attempts")
        return None

    return GeocodedAddress(result=best, parsed=parsed, attempts=attempts)
