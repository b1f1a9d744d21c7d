"""Shared test fixtures for the async database, sessions and seeded zoning data."""

import uuid
from collections.abc import AsyncGenerator
from dataclasses import dataclass

import pytest
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine

from patrol_zones.core.config import Settings
from patrol_zones.models.area import Area
from patrol_zones.models.base import Base
from patrol_zones.models.street import Street
from patrol_zones.models.zone import Zone


@pytest.fixture
def settings() -> Settings:
    """Test application settings."""
    return Settings(
        database_url="sqlite+aiosqlite:///:memory:",
        geocoder_timeout=2.0,
        geocoder_city="Cayma",
        geocoder_region="Arequipa",
    )


@pytest.fixture
async def async_engine() -> AsyncGenerator[AsyncEngine]:
    """Create an in-memory async SQLite engine for testing."""
    engine = create_async_engine("sqlite+aiosqlite:///:memory:", echo=False)

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield engine

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)

    await engine.dispose()


@pytest.fixture
async def async_session(async_engine: AsyncEngine) -> AsyncGenerator[AsyncSession]:
    """Create a per-test async session."""
    session_factory = async_sessionmaker(async_engine, expire_on_commit=False)
    async with session_factory() as session:
        yield session


@dataclass
class ZoningFixture:
    """Seeded catalog: one area, three zones and two streets."""

    area: Area
    z1: Zone
    z2: Zone
    z3: Zone
    ejercito: Street
    lima: Street


@pytest.fixture
async def zoning(async_session: AsyncSession) -> ZoningFixture:
    """Seed an area with three zones (z3 has no centroid) and two streets."""
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
    z2 = Zone(
        id=uuid.uuid4(),
        code="C002",
        name="Cuadrante 2",
        area_id=area.id,
        latitude=-16.3800,
        longitude=-71.5350,
        is_active=True,
    )
    z3 = Zone(id=uuid.uuid4(), code="C003", name="Cuadrante 3", area_id=area.id, is_active=True)
    ejercito = Street(id=uuid.uuid4(), name="Ejercito", full_name="Av. Ejercito", is_active=True)
    lima = Street(id=uuid.uuid4(), name="Lima", full_name="Calle Lima", is_active=True)

    async_session.add_all([area, z1, z2, z3, ejercito, lima])
    await async_session.commit()
    return ZoningFixture(area=area, z1=z1, z2=z2, z3=z3, ejercito=ejercito, lima=lima)
