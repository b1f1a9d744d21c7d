"""Street model — referenced by id from ranges and addresses."""

from sqlalchemy import Boolean, Index, String, true
from sqlalchemy.orm import Mapped, mapped_column

from patrol_zones.models.base import Base, TimestampMixin, UUIDMixin


class Street(Base, UUIDMixin, TimestampMixin):
    """A named street. The row doubles as the per-street write lock for ranges.

    Attributes:
        name: Bare street name (e.g., "Ejercito").
        full_name: Name including street type (e.g., "Av. Ejercito").
        neighborhood: Optional neighborhood / urbanization label.
        is_active: Inactive streets are skipped by the resolution pipeline.
    """

    __tablename__ = "streets"

    name: Mapped[str] = mapped_column(String(150), nullable=False)
    full_name: Mapped[str | None] = mapped_column(String(200), nullable=True)
    neighborhood: Mapped[str | None] = mapped_column(String(150), nullable=True)
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True, server_default=true())

    __table_args__ = (Index("ix_streets_name", "name"),)
