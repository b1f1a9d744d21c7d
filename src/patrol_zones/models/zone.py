"""Zone model — the smallest patrol unit (cuadrante), child of an Area."""

import uuid

from sqlalchemy import Boolean, CheckConstraint, Double, ForeignKey, Index, Integer, String, Uuid, true
from sqlalchemy.orm import Mapped, mapped_column, relationship

from patrol_zones.models.base import Base, TimestampMixin, UUIDMixin


class Zone(Base, UUIDMixin, TimestampMixin):
    """Patrol zone with an optional centroid used for nearest-zone lookups.

    Attributes:
        code: Unique upper-case zone code (e.g., "C001").
        name: Display name.
        area_id: Parent area.
        latitude: Centroid latitude (WGS84), paired with longitude.
        longitude: Centroid longitude (WGS84), paired with latitude.
        radius_meters: Optional nominal coverage radius.
        is_active: Inactive zones never resolve.
    """

    __tablename__ = "zones"

    code: Mapped[str] = mapped_column(String(20), nullable=False, unique=True)
    name: Mapped[str] = mapped_column(String(100), nullable=False)
    area_id: Mapped[uuid.UUID] = mapped_column(Uuid, ForeignKey("areas.id"), nullable=False)
    latitude: Mapped[float | None] = mapped_column(Double, nullable=True)
    longitude: Mapped[float | None] = mapped_column(Double, nullable=True)
    radius_meters: Mapped[int | None] = mapped_column(Integer, nullable=True)
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True, server_default=true())

    area = relationship("Area", back_populates="zones", lazy="raise")

    __table_args__ = (
        CheckConstraint(
            "(latitude IS NULL AND longitude IS NULL) OR (latitude IS NOT NULL AND longitude IS NOT NULL)",
            name="ck_zone_centroid_pair",
        ),
        CheckConstraint("radius_meters IS NULL OR radius_meters > 0", name="ck_zone_radius_positive"),
        Index("ix_zones_area_id", "area_id"),
        Index("ix_zones_centroid", "latitude", "longitude"),
    )

    @property
    def has_centroid(self) -> bool:
        return self.latitude is not None and self.longitude is not None
