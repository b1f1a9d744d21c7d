"""Great-circle distance and meter-to-degree conversion for nearest-zone lookup."""

import math

EARTH_RADIUS_METERS = 6_371_000.0
METERS_PER_DEGREE_LAT = 111_320


def validate_coordinates(lat: float, lng: float) -> None:
    """Validate WGS84 coordinate ranges.

    Args:
        lat: Latitude.
        lng: Longitude.

    Raises:
        ValueError: If either value is out of range.
    """
    if not (-90 <= lat <= 90 and -180 <= lng <= 180):
        msg = f"Coordinates out of range: ({lat}, {lng})"
        raise ValueError(msg)


def haversine_meters(lat1: float, lng1: float, lat2: float, lng2: float) -> float:
    """Great-circle distance between two WGS84 points in meters."""
    phi1 = math.radians(lat1)
    phi2 = math.radians(lat2)
    d_phi = math.radians(lat2 - lat1)
    d_lambda = math.radians(lng2 - lng1)

    a = math.sin(d_phi / 2) ** 2 + math.cos(phi1) * math.cos(phi2) * math.sin(d_lambda / 2) ** 2
    return 2 * EARTH_RADIUS_METERS * math.atan2(math.sqrt(a), math.sqrt(1 - a))


def meters_to_degrees(meters: float, latitude: float) -> float:
    """Convert meters to approximate degrees at a given latitude.

    Used to build a bounding box before computing exact distances, so it
    returns the larger of the latitude and longitude conversions.

    Args:
        meters: Distance in meters.
        latitude: WGS84 latitude for longitude scaling.

    Returns:
        Conservative radius in degrees.
    """
    if meters <= 0:
        return 0.0

    lat_deg = meters / METERS_PER_DEGREE_LAT
    cos_lat = max(math.cos(math.radians(latitude)), 1e-6)
    lng_deg = meters / (METERS_PER_DEGREE_LAT * cos_lat)
    return max(lat_deg, lng_deg)
