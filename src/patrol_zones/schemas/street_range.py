"""Pydantic v2 schemas for street segment ranges."""

import uuid
from datetime import datetime

from pydantic import BaseModel, Field, field_validator

from patrol_zones.lib.zoning import StreetSide, describe_segment, normalize_label, parse_side


class StreetRangeCreateRequest(BaseModel):
    """Input for creating a street segment range.

    Bound pairing and ordering are checked by the range service, not here,
    so that callers get the typed validation error either way.
    """

    street_id: uuid.UUID
    zone_id: uuid.UUID
    range_start: int | None = None
    range_end: int | None = None
    side: StreetSide = StreetSide.BOTH
    block_label: str | None = Field(default=None, max_length=10)
    priority: int | None = None
    from_intersection: str | None = Field(default=None, max_length=200)
    to_intersection: str | None = Field(default=None, max_length=200)
    notes: str | None = None

    @field_validator("side", mode="before")
    @classmethod
    def coerce_side(cls, v: object) -> StreetSide:
        if v is None or isinstance(v, str | StreetSide):
            return parse_side(v)
        msg = "side must be a string"
        raise ValueError(msg)

    @field_validator("block_label")
    @classmethod
    def normalize_block(cls, v: str | None) -> str | None:
        return normalize_label(v)


class StreetRangeResponse(BaseModel):
    """A stored street segment range."""

    model_config = {"from_attributes": True}

    id: uuid.UUID
    street_id: uuid.UUID
    zone_id: uuid.UUID
    range_start: int | None = None
    range_end: int | None = None
    side: StreetSide
    block_label: str | None = None
    priority: int
    from_intersection: str | None = None
    to_intersection: str | None = None
    notes: str | None = None
    is_active: bool
    created_at: datetime

    @property
    def description(self) -> str:
        return describe_segment(
            self.range_start, self.range_end, self.side, self.from_intersection, self.to_intersection
        )
