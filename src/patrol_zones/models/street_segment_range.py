"""StreetSegmentRange model — maps a house-number interval or block of a street to a zone.

Overlap between active ranges of the same street is a logical
rule enforced by ``street_range_service`` under a street row lock; the
database only backs the simpler uniqueness rules with partial indexes.
"""

import uuid

from sqlalchemy import (
    Boolean,
    CheckConstraint,
    ForeignKey,
    Index,
    Integer,
    String,
    Text,
    Uuid,
    text,
    true,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from patrol_zones.lib.zoning import StreetSide
from patrol_zones.models.base import Base, SoftDeleteMixin, TimestampMixin, UUIDMixin

MIN_PRIORITY = 1
MAX_PRIORITY = 10
BLOCK_LABEL_MAX_LENGTH = 10


class StreetSegmentRange(Base, UUIDMixin, TimestampMixin, SoftDeleteMixin):
    """A street segment assigned to a zone.

    Attributes:
        street_id: FK to streets.
        zone_id: FK to zones.
        range_start: First house number of the segment (paired with range_end).
        range_end: Last house number of the segment, inclusive.
        side: Which side of the street the segment covers (BOTH, EVEN, ODD, ALL).
        block_label: Normalized block ("manzana") label for block/lot addressing.
        priority: 1 (highest) to 10; breaks ties between matching ranges.
        from_intersection: Cross street at the start of the segment.
        to_intersection: Cross street at the end of the segment.
        notes: Free-text remarks.
        is_active: False once soft-deleted.
    """

    __tablename__ = "street_segment_ranges"

    street_id: Mapped[uuid.UUID] = mapped_column(Uuid, ForeignKey("streets.id"), nullable=False)
    zone_id: Mapped[uuid.UUID] = mapped_column(Uuid, ForeignKey("zones.id"), nullable=False)
    range_start: Mapped[int | None] = mapped_column(Integer, nullable=True)
    range_end: Mapped[int | None] = mapped_column(Integer, nullable=True)
    side: Mapped[str] = mapped_column(String(10), nullable=False, default=StreetSide.BOTH.value)
    block_label: Mapped[str | None] = mapped_column(String(BLOCK_LABEL_MAX_LENGTH), nullable=True)
    priority: Mapped[int] = mapped_column(Integer, nullable=False, default=MIN_PRIORITY, server_default="1")
    from_intersection: Mapped[str | None] = mapped_column(String(200), nullable=True)
    to_intersection: Mapped[str | None] = mapped_column(String(200), nullable=True)
    notes: Mapped[str | None] = mapped_column(Text, nullable=True)
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True, server_default=true())
    created_by: Mapped[uuid.UUID | None] = mapped_column(Uuid, nullable=True)
    updated_by: Mapped[uuid.UUID | None] = mapped_column(Uuid, nullable=True)
    deleted_by: Mapped[uuid.UUID | None] = mapped_column(Uuid, nullable=True)

    zone = relationship("Zone", lazy="raise")

    __table_args__ = (
        CheckConstraint(
            "(range_start IS NULL AND range_end IS NULL) OR (range_start IS NOT NULL AND range_end IS NOT NULL)",
            name="ck_range_bounds_paired",
        ),
        CheckConstraint(
            "range_start IS NULL OR (range_start >= 0 AND range_end >= range_start)",
            name="ck_range_bounds_ordered",
        ),
        CheckConstraint("side IN ('BOTH', 'EVEN', 'ODD', 'ALL')", name="ck_range_side"),
        CheckConstraint(f"priority BETWEEN {MIN_PRIORITY} AND {MAX_PRIORITY}", name="ck_range_priority"),
        Index(
            "uq_range_street_zone_start_side",
            "street_id",
            "zone_id",
            "range_start",
            "side",
            unique=True,
            postgresql_where=text("is_active"),
            sqlite_where=text("is_active"),
        ),
        Index(
            "uq_range_street_block",
            "street_id",
            "block_label",
            unique=True,
            postgresql_where=text("is_active AND block_label IS NOT NULL"),
            sqlite_where=text("is_active AND block_label IS NOT NULL"),
        ),
        Index("ix_ranges_street_side_start", "street_id", "side", "range_start"),
        Index("ix_ranges_zone_id", "zone_id"),
    )

    @property
    def has_numeric_range(self) -> bool:
        return self.range_start is not None and self.range_end is not None

    @property
    def street_side(self) -> StreetSide:
        return StreetSide(self.side)
