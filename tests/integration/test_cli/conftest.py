"""Fixtures for CLI tests: a seeded SQLite file database and patched settings."""

from __future__ import annotations

import asyncio
import uuid
from dataclasses import dataclass
from typing import TYPE_CHECKING
from unittest.mock import patch

import pytest
from sqlalchemy import select
from sqlalchemy.ext.asyncio import async_sessionmaker, create_async_engine

from patrol_zones.core.config import Settings
from patrol_zones.models.area import Area
from patrol_zones.models.base import Base
from patrol_zones.models.street import Street
from patrol_zones.models.street_segment_range import StreetSegmentRange
from patrol_zones.models.zone import Zone

if TYPE_CHECKING:
    from collections.abc import Iterator
    from pathlib import Path


@dataclass
class CliDatabase:
    """Connection string and seeded ids for a CLI test database."""

    url: str
    street_id: uuid.UUID
    zone1_id: uuid.UUID
    zone2_id: uuid.UUID

    def ranges(self) -> list[StreetSegmentRange]:
        """Return every range row, active or not, ordered by range_start."""
        return asyncio.run(_fetch_ranges(self.url))


async def _fetch_ranges(url: str) -> list[StreetSegmentRange]:
    engine = create_async_engine(url)
    try:
        async with async_sessionmaker(engine, expire_on_commit=False)() as session:
            result = await session.execute(
                select(StreetSegmentRange).order_by(StreetSegmentRange.range_start.asc().nulls_last())
            )
            return list(result.scalars().all())
    finally:
        await engine.dispose()


async def _seed(url: str) -> CliDatabase:
    engine = create_async_engine(url)
    area = Area(id=uuid.uuid4(), code="S01", name="Sector 1", is_active=True)
    z1 = Zone(
        id=uuid.uuid4(),
        code="C001",
        name="Cuadrante 1",
        area_id=area.id,
        latitude=-16.3900,
        longitude=-71.5450,
        is_active=True,
    )
    z2 = Zone(id=uuid.uuid4(), code="C002", name="Cuadrante 2", area_id=area.id, is_active=True)
    street = Street(id=uuid.uuid4(), name="Ejercito", full_name="Av. Ejercito", is_active=True)
    try:
        async with engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)
        async with async_sessionmaker(engine, expire_on_commit=False)() as session:
            session.add_all([area, z1, z2, street])
            await session.commit()
    finally:
        await engine.dispose()
    return CliDatabase(url=url, street_id=street.id, zone1_id=z1.id, zone2_id=z2.id)


@pytest.fixture
def cli_db(tmp_path: Path) -> Iterator[CliDatabase]:
    """Seed a file database and point every CLI command at it."""
    url = f"sqlite+aiosqlite:///{tmp_path / 'cli.db'}"
    database = asyncio.run(_seed(url))
    settings = Settings(database_url=url, log_level="WARNING")

    with (
        patch("patrol_zones.core.config.get_settings", return_value=settings),
        patch("patrol_zones.cli.app.get_settings", return_value=settings),
        patch("patrol_zones.cli.app.setup_logging"),
        patch("patrol_zones.core.logging.setup_logging"),
    ):
        yield database
