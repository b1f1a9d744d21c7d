"""CLI commands for maintaining street segment ranges.

Each write runs in its own unit of work: the range is validated against the
street's other active ranges, flushed, and committed when the command ends.
"""

from __future__ import annotations

import asyncio
import json
import uuid
from typing import TYPE_CHECKING, Annotated, Any

import typer
from loguru import logger

if TYPE_CHECKING:
    from patrol_zones.models.street_segment_range import StreetSegmentRange

ranges_app = typer.Typer()


def _init() -> None:
    from patrol_zones.core.config import get_settings
    from patrol_zones.core.database import init_engine

    settings = get_settings()
    init_engine(settings.database_url, schema=settings.database_schema, echo=False)


def _format_range(segment: StreetSegmentRange) -> str:
    from patrol_zones.services.street_range_service import describe_range

    block = f" block={segment.block_label}" if segment.block_label else ""
    return f"{segment.id}  zone={segment.zone_id}  priority={segment.priority}{block}  {describe_range(segment)}"


@ranges_app.command("add")
def add(
    street_id: Annotated[uuid.UUID, typer.Option("--street-id", help="Street UUID")],
    zone: Annotated[str, typer.Option("--zone", help="Zone code (e.g. C001)")],
    start: Annotated[int | None, typer.Option("--start", help="First house number")] = None,
    end: Annotated[int | None, typer.Option("--end", help="Last house number (inclusive)")] = None,
    side: Annotated[str, typer.Option("--side", help="BOTH, EVEN, ODD or ALL (PAR/IMPAR accepted)")] = "BOTH",
    block: Annotated[str | None, typer.Option("--block", help="Block (manzana) label")] = None,
    priority: Annotated[int | None, typer.Option("--priority", help="1 (highest) to 10")] = None,
    from_intersection: Annotated[str | None, typer.Option("--from", help="Cross street at the start")] = None,
    to_intersection: Annotated[str | None, typer.Option("--to", help="Cross street at the end")] = None,
    notes: Annotated[str | None, typer.Option("--notes", help="Free-text remarks")] = None,
) -> None:
    """Assign a house-number range or block of a street to a zone."""
    asyncio.run(
        _add_impl(
            street_id,
            zone,
            {
                "range_start": start,
                "range_end": end,
                "side": side,
                "block_label": block,
                "priority": priority,
                "from_intersection": from_intersection,
                "to_intersection": to_intersection,
                "notes": notes,
            },
        )
    )


async def _add_impl(street_id: uuid.UUID, zone_code: str, fields: dict[str, Any]) -> None:
    """Async implementation of the add command."""
    from pydantic import ValidationError

    from patrol_zones.core.database import dispose_engine, unit_of_work
    from patrol_zones.lib.zoning import RangeConflictError, RangeValidationError
    from patrol_zones.schemas.street_range import StreetRangeCreateRequest
    from patrol_zones.services import street_range_service, zone_catalog_service

    _init()
    try:
        async with unit_of_work() as session:
            zone = await zone_catalog_service.get_zone_by_code(session, zone_code)
            if zone is None:
                typer.echo(f"Error: zone {zone_code} not found")
                raise typer.Exit(code=1)
            try:
                request = StreetRangeCreateRequest(street_id=street_id, zone_id=zone.id, **fields)
            except ValidationError as exc:
                typer.echo(f"Error: {exc.errors()[0]['msg']}")
                raise typer.Exit(code=1) from None
            segment = await street_range_service.insert_range(session, **request.model_dump())
            typer.echo(f"Created {_format_range(segment)}")
    except (RangeValidationError, RangeConflictError) as exc:
        logger.warning(f"Range rejected: {exc.kind}: {exc.message}")
        typer.echo(f"Error ({exc.kind}): {exc.message}")
        raise typer.Exit(code=1) from None
    finally:
        await dispose_engine()


@ranges_app.command("update")
def update(
    range_id: Annotated[uuid.UUID, typer.Argument(help="Range UUID")],
    zone: Annotated[str | None, typer.Option("--zone", help="New zone code")] = None,
    start: Annotated[int | None, typer.Option("--start", help="New first house number")] = None,
    end: Annotated[int | None, typer.Option("--end", help="New last house number")] = None,
    side: Annotated[str | None, typer.Option("--side", help="New side")] = None,
    block: Annotated[str | None, typer.Option("--block", help="New block label")] = None,
    priority: Annotated[int | None, typer.Option("--priority", help="New priority")] = None,
    notes: Annotated[str | None, typer.Option("--notes", help="New remarks")] = None,
    clear_range: Annotated[bool, typer.Option("--clear-range", help="Remove the numeric bounds")] = False,
    clear_block: Annotated[bool, typer.Option("--clear-block", help="Remove the block label")] = False,
) -> None:
    """Change an existing range; only the given options are updated."""
    changes: dict[str, Any] = {}
    for key, value in (
        ("range_start", start),
        ("range_end", end),
        ("side", side),
        ("block_label", block),
        ("priority", priority),
        ("notes", notes),
    ):
        if value is not None:
            changes[key] = value
    if clear_range:
        changes["range_start"] = None
        changes["range_end"] = None
    if clear_block:
        changes["block_label"] = None
    asyncio.run(_update_impl(range_id, zone, changes))


async def _update_impl(range_id: uuid.UUID, zone_code: str | None, changes: dict[str, Any]) -> None:
    """Async implementation of the update command."""
    from patrol_zones.core.database import dispose_engine, unit_of_work
    from patrol_zones.lib.zoning import RangeConflictError, RangeValidationError
    from patrol_zones.services import street_range_service, zone_catalog_service

    _init()
    try:
        async with unit_of_work() as session:
            if zone_code is not None:
                zone = await zone_catalog_service.get_zone_by_code(session, zone_code)
                if zone is None:
                    typer.echo(f"Error: zone {zone_code} not found")
                    raise typer.Exit(code=1)
                changes["zone_id"] = zone.id
            segment = await street_range_service.update_range(session, range_id, changes)
            if segment is None:
                typer.echo(f"Error: range {range_id} not found")
                raise typer.Exit(code=1)
            typer.echo(f"Updated {_format_range(segment)}")
    except (RangeValidationError, RangeConflictError) as exc:
        logger.warning(f"Range update rejected: {exc.kind}: {exc.message}")
        typer.echo(f"Error ({exc.kind}): {exc.message}")
        raise typer.Exit(code=1) from None
    finally:
        await dispose_engine()


@ranges_app.command("deactivate")
def deactivate(
    range_id: Annotated[uuid.UUID, typer.Argument(help="Range UUID")],
) -> None:
    """Soft-delete a range."""
    asyncio.run(_deactivate_impl(range_id))


async def _deactivate_impl(range_id: uuid.UUID) -> None:
    """Async implementation of the deactivate command."""
    from patrol_zones.core.database import dispose_engine, unit_of_work
    from patrol_zones.services import street_range_service

    _init()
    try:
        async with unit_of_work() as session:
            segment = await street_range_service.deactivate_range(session, range_id)
        if segment is None:
            typer.echo(f"Error: range {range_id} not found")
            raise typer.Exit(code=1)
        typer.echo(f"Deactivated range {range_id}")
    finally:
        await dispose_engine()


@ranges_app.command("list")
def list_ranges(
    street_id: Annotated[uuid.UUID | None, typer.Option("--street-id", help="List ranges of a street")] = None,
    zone: Annotated[str | None, typer.Option("--zone", help="List ranges of a zone code")] = None,
    as_json: Annotated[bool, typer.Option("--json", help="Print the ranges as JSON")] = False,
) -> None:
    """List the active ranges of a street or a zone."""
    if (street_id is None) == (zone is None):
        typer.echo("Error: pass exactly one of --street-id or --zone")
        raise typer.Exit(code=1)
    asyncio.run(_list_impl(street_id, zone, as_json))


async def _list_impl(street_id: uuid.UUID | None, zone_code: str | None, as_json: bool) -> None:
    """Async implementation of the list command."""
    from patrol_zones.core.database import dispose_engine, get_session_factory
    from patrol_zones.schemas.street_range import StreetRangeResponse
    from patrol_zones.services import street_range_service, zone_catalog_service

    _init()
    try:
        factory = get_session_factory()
        async with factory() as session:
            if street_id is not None:
                segments = await street_range_service.list_ranges_for_street(session, street_id)
            else:
                zone = await zone_catalog_service.get_zone_by_code(session, zone_code)
                if zone is None:
                    typer.echo(f"Error: zone {zone_code} not found")
                    raise typer.Exit(code=1)
                segments = await street_range_service.list_ranges_for_zone(session, zone.id)

        if as_json:
            payload = [StreetRangeResponse.model_validate(s).model_dump(mode="json") for s in segments]
            typer.echo(json.dumps(payload, indent=2))
            return
        if not segments:
            typer.echo("No active ranges")
            return
        for segment in segments:
            typer.echo(_format_range(segment))
        typer.echo(f"{len(segments)} range(s)")
    finally:
        await dispose_engine()
