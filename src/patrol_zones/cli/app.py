"""Typer CLI root application."""

import typer

from patrol_zones.core.config import get_settings
from patrol_zones.core.logging import setup_logging

app = typer.Typer(name="patrol-zones", help="Street range and address-to-zone resolution CLI")


@app.callback()
def _main_callback() -> None:
    """Initialize logging for all CLI commands."""
    settings = get_settings()
    setup_logging(
        settings.log_level,
        log_dir=settings.log_dir,
        json_logs=settings.log_json,
        retention_days=settings.log_retention_days,
    )


def _register_subcommands() -> None:
    """Register all CLI subcommand groups."""
    from patrol_zones.cli.db_cmd import db_app
    from patrol_zones.cli.ranges_cmd import ranges_app
    from patrol_zones.cli.resolve_cmd import resolve_app

    app.add_typer(db_app, name="db", help="Database migration commands")
    app.add_typer(ranges_app, name="ranges", help="Street segment range commands")
    app.add_typer(resolve_app, name="resolve", help="Zone resolution commands")


_register_subcommands()
