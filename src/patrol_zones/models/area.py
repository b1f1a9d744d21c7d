"""Area model — a sector grouping several patrol zones."""

from sqlalchemy import Boolean, String, true
from sqlalchemy.orm import Mapped, mapped_column, relationship

from patrol_zones.models.base import Base, TimestampMixin, UUIDMixin


class Area(Base, UUIDMixin, TimestampMixin):
    """Administrative sector. Reference data owned outside the resolution engine.

    Attributes:
        code: Unique upper-case sector code (e.g., "S01").
        name: Display name.
        is_active: Inactive areas are hidden from lookups.
    """

    __tablename__ = "areas"

    code: Mapped[str] = mapped_column(String(20), nullable=False, unique=True)
    name: Mapped[str] = mapped_column(String(100), nullable=False)
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True, server_default=true())

    zones = relationship("Zone", back_populates="area", lazy="raise")
