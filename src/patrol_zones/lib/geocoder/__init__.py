"""Geocoder library — free-text address parsing and pluggable provider geocoding.

Public API:
    - parse_address_text: Split free text into street, number, block and lot
    - ParsedAddress: Parsed address fragments dataclass
    - street_name_variants / normalize_street_prefix: Query variant helpers
    - geocode_address_text: Variant-cascading geocode of one address
    - GeocodedAddress: Coordinates plus parsed fragments
    - BaseGeocoder: Abstract provider interface
    - GeocodingResult: Result dataclass
    - GeocodeQuality / QUALITY_RANK: Quality levels and their ordering
    - GeocodingProviderError: Provider transport/service failure
    - NominatimGeocoder: OpenStreetMap Nominatim provider
    - haversine_meters / meters_to_degrees: Distance helpers
    - get_geocoder / get_configured_geocoder: Provider factory/registry
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

from patrol_zones.lib.geocoder.address import (
    ParsedAddress,
    normalize_street_prefix,
    parse_address_text,
    street_name_variants,
)
from patrol_zones.lib.geocoder.base import (
    QUALITY_RANK,
    BaseGeocoder,
    GeocodeQuality,
    GeocodingProviderError,
    GeocodingResult,
    quality_rank,
)
from patrol_zones.lib.geocoder.cascade import GeocodedAddress, geocode_address_text
from patrol_zones.lib.geocoder.distance import haversine_meters, meters_to_degrees, validate_coordinates
from patrol_zones.lib.geocoder.nominatim import NominatimGeocoder

if TYPE_CHECKING:
    from patrol_zones.core.config import Settings

# Registered providers, keyed by the name used in settings
_PROVIDERS: dict[str, type[BaseGeocoder]] = {
    "nominatim": NominatimGeocoder,
}


def get_available_providers() -> list[str]:
    """Return the names of all registered geocoder providers."""
    return sorted(_PROVIDERS.keys())


def get_geocoder(provider: str = "nominatim", **kwargs: Any) -> BaseGeocoder:
    """Get a geocoder instance by provider name.

    Args:
        provider: Provider name (e.g., "nominatim").
        **kwargs: Additional arguments forwarded to the provider constructor
            (e.g., ``timeout=2.0``).

    Returns:
        An instance of the requested geocoder provider.

    Raises:
        ValueError: If the provider is not registered.
    """
    cls = _PROVIDERS.get(provider)
    if cls is None:
        msg = f"Unknown geocoder provider: {provider!r}. Available: {list(_PROVIDERS.keys())}"
        raise ValueError(msg)
    return cls(**kwargs)


def get_configured_geocoder(settings: Settings) -> BaseGeocoder:
    """Instantiate the provider named by ``settings.geocoder_provider`` with its settings."""
    provider_kwargs: dict[str, dict[str, Any]] = {
        "nominatim": {
            "timeout": settings.geocoder_timeout,
            "email": settings.geocoder_nominatim_email,
            "user_agent": settings.geocoder_user_agent,
            "country_code": settings.geocoder_country_code,
        },
    }
    name = settings.geocoder_provider.strip().lower()
    return get_geocoder(name, **provider_kwargs.get(name, {}))


__all__ = [
    "QUALITY_RANK",
    "BaseGeocoder",
    "GeocodeQuality",
    "GeocodedAddress",
    "GeocodingProviderError",
    "GeocodingResult",
    "NominatimGeocoder",
    "ParsedAddress",
    "geocode_address_text",
    "get_available_providers",
    "get_configured_geocoder",
    "get_geocoder",
    "haversine_meters",
    "meters_to_degrees",
    "normalize_street_prefix",
    "parse_address_text",
    "quality_rank",
    "street_name_variants",
    "validate_coordinates",
]
