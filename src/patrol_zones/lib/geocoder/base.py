"""Abstract base geocoder interface for pluggable provider support."""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from enum import StrEnum


class GeocodeQuality(StrEnum):
    """Quality level of a geocoding result, from most to least precise."""

    EXACT = "exact"
    INTERPOLATED = "interpolated"
    STREET_CENTER = "street_center"
    APPROXIMATE = "approximate"


# Ranking for quality comparison (lower = better)
QUALITY_RANK: dict[GeocodeQuality, int] = {
    GeocodeQuality.EXACT: 0,
    GeocodeQuality.INTERPOLATED: 1,
    GeocodeQuality.STREET_CENTER: 2,
    GeocodeQuality.APPROXIMATE: 3,
}


def quality_rank(quality: GeocodeQuality | None) -> int:
    """Rank of a quality value; unknown quality sorts after every known one."""
    if quality is None:
        return len(QUALITY_RANK)
    return QUALITY_RANK[quality]


@dataclass
class GeocodingResult:
    """Result from a geocoding operation."""

    latitude: float
    longitude: float
    confidence_score: float | None = None
    raw_response: dict | None = None
    matched_address: str | None = None
    quality: GeocodeQuality | None = None

    def __post_init__(self) -> None:
        if not (-90 <= self.latitude <= 90):
            msg = f"latitude must be between -90 and 90, got {self.latitude}"
            raise ValueError(msg)
        if not (-180 <= self.longitude <= 180):
            msg = f"longitude must be between -180 and 180, got {self.longitude}"
            raise ValueError(msg)
        if self.confidence_score is not None and not (0 <= self.confidence_score <= 1):
            msg = f"confidence_score must be between 0 and 1, got {self.confidence_score}"
            raise ValueError(msg)


class GeocodingProviderError(Exception):
    """Raised when a geocoding provider experiences a transport or service error.

    Distinguishes provider failures (timeout, HTTP error, connection error)
    from a successful response with no match (which returns None).

    Args:
        provider_name: Name of the failing provider.
        message: Human-readable error description.
        status_code: Optional HTTP status code from the provider.
    """

    def __init__(self, provider_name: str, message: str, status_code: int | None = None) -> None:
        self.provider_name = provider_name
        self.message = message
        self.status_code = status_code
        super().__init__(f"{provider_name}: {message}")


class BaseGeocoder(ABC):
    """Abstract geocoder interface. All providers must implement this."""

    @property
    @abstractmethod
    def provider_name(self) -> str:
        """Unique name identifying this geocoder provider."""

    @property
    def rate_limit_delay(self) -> float:
        """Minimum delay in seconds between requests (for rate-limited providers)."""
        return 0.0

    @abstractmethod
    async def geocode(self, address: str) -> GeocodingResult | None:
        """Geocode a single free-form address.

        Args:
            address: Full address string.

        Returns:
            GeocodingResult or None if the address could not be geocoded.
        """

    async def geocode_street(
        self,
        street: str,
        *,
        city: str = "",
        region: str = "",
        country: str = "",
    ) -> GeocodingResult | None:
        """Geocode a street line within a locality.

        Providers with a structured search endpoint override this; the
        default joins the parts into a free-form query.

        Args:
            street: House number and street (e.g., "450 Avenida Ejercito").
            city: City or district.
            region: Province, county or state.
            country: Country name.

        Returns:
            GeocodingResult or None if no match.
        """
        query = ", ".join(part for part in (street, city, region, country) if part)
        return await self.geocode(query)
