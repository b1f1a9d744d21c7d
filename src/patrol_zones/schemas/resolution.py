"""Pydantic v2 schemas for zone assignment and free-text address resolution."""

import enum
import uuid

from pydantic import BaseModel


class ResolutionProvenance(enum.StrEnum):
    """Which strategy produced a resolution result, from most to least precise."""

    EXACT = "exact"
    NEAREST_IN_BLOCK = "nearest-in-block"
    BLOCK_FALLBACK = "block-fallback"
    RANGE_LOOKUP = "range-lookup"
    NEAREST_BY_COORDINATE = "nearest-by-coordinate"
    UNRESOLVED = "unresolved"
    GEOCODING_FAILED = "geocoding-failed"


class ZoneAssignment(BaseModel):
    """Zone/area chosen for a structured address (both None when unresolved)."""

    zone_id: uuid.UUID | None = None
    area_id: uuid.UUID | None = None
    method: str | None = None

    @property
    def resolved(self) -> bool:
        return self.zone_id is not None


class MatchedReference(BaseModel):
    """Stored address that a database strategy matched against."""

    address_id: uuid.UUID
    full_address: str | None = None
    house_number: str | None = None
    numeric_distance: int | None = None


class ParsedFragments(BaseModel):
    """Fragments the geocoding step parsed out of the input text."""

    street_prefix: str | None = None
    street_name: str = ""
    number: str | None = None
    block: str | None = None
    lot: str | None = None


class AddressResolutionResult(BaseModel):
    """Outcome of resolving a free-text address to a zone."""

    input_address: str
    provenance: ResolutionProvenance
    zone_id: uuid.UUID | None = None
    zone_code: str | None = None
    area_id: uuid.UUID | None = None
    area_code: str | None = None
    latitude: float | None = None
    longitude: float | None = None
    source: str | None = None
    geocoder_quality: str | None = None
    distance_meters: float | None = None
    matched_reference: MatchedReference | None = None
    parsed: ParsedFragments | None = None

    @property
    def resolved(self) -> bool:
        return self.zone_id is not None
