"""Address model — structured addresses with their resolved zone and provenance.

Addresses are owned by the surrounding administration workflow; the
resolution pipeline reads them as reference data (exact, nearest-in-block and
block fallbacks) and ``address_service`` writes the resolved zone back.
"""

import enum
import uuid

from sqlalchemy import Boolean, CheckConstraint, Double, ForeignKey, Index, String, Uuid, true
from sqlalchemy.orm import Mapped, mapped_column

from patrol_zones.models.base import Base, TimestampMixin, UUIDMixin


class ResolutionSource(enum.StrEnum):
    """Where an address' zone assignment (or coordinates) came from."""

    DATABASE = "database"
    EXTERNAL_GEOCODER = "external-geocoder"
    MANUAL = "manual"


class Address(Base, UUIDMixin, TimestampMixin):
    """An address on a street, numbered by house number or by block/lot.

    Attributes:
        street_id: FK to streets.
        house_number: Municipal number as written ("250", "250-A", "S/N").
        block_label: Block ("Mz") label, upper-case.
        lot_label: Lot ("Lt") label, upper-case.
        full_address: Human-readable address line.
        zone_id: Resolved zone, if any.
        area_id: Area of the resolved zone.
        latitude: WGS84 latitude.
        longitude: WGS84 longitude.
        resolution_source: database, external-geocoder or manual.
        resolution_method: Strategy tag that produced the zone (e.g. "range-lookup").
        is_active: Inactive addresses are ignored as reference data.
    """

    __tablename__ = "addresses"

    street_id: Mapped[uuid.UUID] = mapped_column(Uuid, ForeignKey("streets.id"), nullable=False)
    house_number: Mapped[str | None] = mapped_column(String(20), nullable=True)
    block_label: Mapped[str | None] = mapped_column(String(10), nullable=True)
    lot_label: Mapped[str | None] = mapped_column(String(10), nullable=True)
    full_address: Mapped[str | None] = mapped_column(String(300), nullable=True)
    zone_id: Mapped[uuid.UUID | None] = mapped_column(Uuid, ForeignKey("zones.id"), nullable=True)
    area_id: Mapped[uuid.UUID | None] = mapped_column(Uuid, ForeignKey("areas.id"), nullable=True)
    latitude: Mapped[float | None] = mapped_column(Double, nullable=True)
    longitude: Mapped[float | None] = mapped_column(Double, nullable=True)
    resolution_source: Mapped[str | None] = mapped_column(String(20), nullable=True)
    resolution_method: Mapped[str | None] = mapped_column(String(30), nullable=True)
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True, server_default=true())

    __table_args__ = (
        CheckConstraint(
            "resolution_source IS NULL OR resolution_source IN ('database', 'external-geocoder', 'manual')",
            name="ck_address_resolution_source",
        ),
        Index("ix_addresses_street_number", "street_id", "house_number"),
        Index("ix_addresses_street_block_lot", "street_id", "block_label", "lot_label"),
        Index("ix_addresses_zone_id", "zone_id"),
    )

    @property
    def has_coordinates(self) -> bool:
        return self.latitude is not None and self.longitude is not None
