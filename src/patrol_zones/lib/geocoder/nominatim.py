"""OpenStreetMap Nominatim geocoder provider.

Uses the Nominatim API (https://nominatim.org/release-docs/develop/api/Search/)
for address-to-coordinate resolution. Free but rate-limited to 1 req/sec.
Supports both free-form (``q=``) and structured (``street=``/``city=``) search.
"""

import httpx
from loguru import logger

from patrol_zones.lib.geocoder.base import (
    BaseGeocoder,
    GeocodeQuality,
    GeocodingProviderError,
    GeocodingResult,
)

NOMINATIM_API_URL = "https://nominatim.openstreetmap.org/search"
DEFAULT_TIMEOUT = 10.0
DEFAULT_USER_AGENT = "patrol-zones/0.1"

_BUILDING_TYPES = frozenset({"house", "building", "apartments", "house_number"})
_STREET_TYPES = frozenset(
    {
        "street",
        "road",
        "highway",
        "residential",
        "tertiary",
        "secondary",
        "primary",
        "unclassified",
        "pedestrian",
        "service",
    }
)


class NominatimGeocoder(BaseGeocoder):
    """OpenStreetMap Nominatim geocoder provider."""

    def __init__(
        self,
        timeout: float = DEFAULT_TIMEOUT,
        email: str = "",
        user_agent: str = DEFAULT_USER_AGENT,
        country_code: str = "",
        base_url: str = NOMINATIM_API_URL,
    ) -> None:
        self._timeout = timeout
        self._email = email
        self._user_agent = user_agent
        self._country_code = country_code.lower()
        self._base_url = base_url

    @property
    def provider_name(self) -> str:
        return "nominatim"

    @property
    def rate_limit_delay(self) -> float:
        return 1.0

    async def geocode(self, address: str) -> GeocodingResult | None:
        """Geocode a free-form address using the Nominatim API.

        Args:
            address: Full address string.

        Returns:
            GeocodingResult or None if no match found.

        Raises:
            GeocodingProviderError: On transport or service errors.
        """
        return await self._search({"q": address})

    async def geocode_street(
        self,
        street: str,
        *,
        city: str = "",
        region: str = "",
        country: str = "",
    ) -> GeocodingResult | None:
        """Geocode a street line with Nominatim's structured search.

        Raises:
            GeocodingProviderError: On transport or service errors.
        """
        params: dict[str, str | int] = {"street": street}
        if city:
            params["city"] = city
        if region:
            params["county"] = region
        if country:
            params["country"] = country
        return await self._search(params)

    async def _search(self, query_params: dict[str, str | int]) -> GeocodingResult | None:
        params: dict[str, str | int] = {
            **query_params,
            "format": "json",
            "limit": 1,
            "addressdetails": 1,
        }
        if self._country_code:
            params["countrycodes"] = self._country_code
        if self._email:
            params["email"] = self._email

        headers = {"User-Agent": self._user_agent, "Accept-Language": "es"}

        try:
            async with httpx.AsyncClient(timeout=self._timeout) as client:
                response = await client.get(self._base_url, params=params, headers=headers)
                response.raise_for_status()

            data = response.json()
            return self._parse_response(data)

        except httpx.TimeoutException as e:
            logger.warning("Nominatim geocoder timeout for address (redacted)")
            raise GeocodingProviderError("nominatim", "Geocoding request timed out") from e
        except httpx.HTTPStatusError as e:
            logger.warning(f"Nominatim geocoder HTTP error {e.response.status_code}")
            raise GeocodingProviderError(
                "nominatim",
                f"Provider returned HTTP {e.response.status_code}",
                status_code=e.response.status_code,
            ) from e
        except httpx.ConnectError as e:
            logger.warning("Nominatim geocoder connection error")
            raise GeocodingProviderError("nominatim", "Connection to geocoding provider failed") from e
        except GeocodingProviderError:
            raise
        except Exception as e:
            logger.exception("Nominatim geocoder unexpected error")
            raise GeocodingProviderError("nominatim", f"Unexpected error: {e}") from e

    def _parse_response(self, data: list[dict]) -> GeocodingResult | None:
        """Parse Nominatim API response into a GeocodingResult.

        Args:
            data: Raw JSON response (list of results) from Nominatim API.

        Returns:
            GeocodingResult or None if no match found.
        """
        if not data:
            return None

        best = data[0]
        try:
            lat = round(float(best["lat"]), 8)
            lon = round(float(best["lon"]), 8)
        except (KeyError, ValueError, TypeError) as e:
            logger.warning(f"Failed to parse Nominatim response: {e}")
            raise GeocodingProviderError("nominatim", f"Failed to parse response: {e}") from e

        importance = best.get("importance")
        confidence = min(float(importance), 1.0) if importance is not None else None

        return GeocodingResult(
            latitude=lat,
            longitude=lon,
            confidence_score=confidence,
            raw_response={"results": data},
            matched_address=best.get("display_name"),
            quality=self._map_quality(best.get("type"), best.get("class")),
        )

    @staticmethod
    def _map_quality(osm_type: str | None, osm_class: str | None) -> GeocodeQuality:
        """Map the OSM feature type/class of a hit to GeocodeQuality."""
        if osm_type in _BUILDING_TYPES:
            return GeocodeQuality.EXACT
        if osm_type in _STREET_TYPES or osm_class == "highway":
            return GeocodeQuality.STREET_CENTER
        return GeocodeQuality.APPROXIMATE
