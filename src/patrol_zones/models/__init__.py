"""Importing this package registers every table on Base.metadata (Alembic relies on it)."""

from patrol_zones.models.address import Address, ResolutionSource
from patrol_zones.models.area import Area
from patrol_zones.models.street import Street
from patrol_zones.models.street_segment_range import StreetSegmentRange
from patrol_zones.models.zone import Zone

__all__ = [
    "Address",
    "Area",
    "ResolutionSource",
    "Street",
    "StreetSegmentRange",
    "Zone",
]
