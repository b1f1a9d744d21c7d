"""CLI commands for resolving streets and free-text addresses to zones."""

from __future__ import annotations

import asyncio
import uuid
from typing import TYPE_CHECKING, Annotated

import typer

if TYPE_CHECKING:
    from sqlalchemy.ext.asyncio import AsyncSession

    from patrol_zones.models.zone import Zone

resolve_app = typer.Typer()


def _init():
    from patrol_zones.core.config import get_settings
    from patrol_zones.core.database import init_engine

    settings = get_settings()
    init_engine(settings.database_url, schema=settings.database_schema, echo=False)
    return settings


async def _echo_zone(session: AsyncSession, zone: Zone | None) -> None:
    from patrol_zones.services import zone_resolver_service

    if zone is None:
        typer.echo("No zone found")
        raise typer.Exit(code=1)
    zone, area = await zone_resolver_service.resolve_zone_and_area(session, zone)
    area_code = area.code if area is not None else "-"
    typer.echo(f"Zone: {zone.code} ({zone.name}) | Area: {area_code}")


@resolve_app.command("number")
def number(
    street_id: Annotated[uuid.UUID, typer.Option("--street-id", help="Street UUID")],
    house_number: Annotated[str, typer.Argument(help="House number, e.g. 250 or 250-A")],
) -> None:
    """Resolve the zone serving a house number on a street."""
    asyncio.run(_number_impl(street_id, house_number))


async def _number_impl(street_id: uuid.UUID, house_number: str) -> None:
    """Async implementation of the number command."""
    from patrol_zones.core.database import dispose_engine, get_session_factory
    from patrol_zones.services import zone_resolver_service

    _init()
    try:
        factory = get_session_factory()
        async with factory() as session:
            zone = await zone_resolver_service.resolve_by_number(session, street_id, house_number)
            await _echo_zone(session, zone)
    finally:
        await dispose_engine()


@resolve_app.command("block")
def block(
    street_id: Annotated[uuid.UUID, typer.Option("--street-id", help="Street UUID")],
    block_label: Annotated[str, typer.Argument(help="Block (manzana) label")],
) -> None:
    """Resolve the zone assigned to a block of a street."""
    asyncio.run(_block_impl(street_id, block_label))


async def _block_impl(street_id: uuid.UUID, block_label: str) -> None:
    """Async implementation of the block command."""
    from patrol_zones.core.database import dispose_engine, get_session_factory
    from patrol_zones.services import zone_resolver_service

    _init()
    try:
        factory = get_session_factory()
        async with factory() as session:
            zone = await zone_resolver_service.resolve_by_block(session, street_id, block_label)
            await _echo_zone(session, zone)
    finally:
        await dispose_engine()


@resolve_app.command("address")
def address(
    text: Annotated[str, typer.Argument(help='Free-text address, e.g. "Av. Santa Rosa 250"')],
    as_json: Annotated[bool, typer.Option("--json", help="Print the full result as JSON")] = False,
) -> None:
    """Resolve a free-text address through the fallback pipeline."""
    asyncio.run(_address_impl(text, as_json))


async def _address_impl(text: str, as_json: bool) -> None:
    """Async implementation of the address command."""
    from patrol_zones.core.database import dispose_engine, get_session_factory
    from patrol_zones.lib.zoning import RangeValidationError
    from patrol_zones.services import address_resolution_service

    settings = _init()
    try:
        factory = get_session_factory()
        async with factory() as session:
            result = await address_resolution_service.resolve_address_text(session, text, settings=settings)
    except RangeValidationError as exc:
        typer.echo(f"Error ({exc.kind}): {exc.message}")
        raise typer.Exit(code=1) from None
    finally:
        await dispose_engine()

    if as_json:
        typer.echo(result.model_dump_json(indent=2))
        return

    typer.echo(f"Provenance: {result.provenance}")
    if result.latitude is not None and result.longitude is not None:
        typer.echo(f"Coordinates: {result.latitude}, {result.longitude} ({result.source})")
    if result.zone_code is not None:
        typer.echo(f"Zone: {result.zone_code} | Area: {result.area_code or '-'}")
    if result.matched_reference is not None:
        reference = result.matched_reference
        distance = f" (distance {reference.numeric_distance})" if reference.numeric_distance is not None else ""
        typer.echo(f"Matched: {reference.full_address or reference.address_id}{distance}")
    if not result.resolved:
        raise typer.Exit(code=1)
