"""Tests for the `patrol-zones db` migration commands (Alembic mocked)."""

from collections.abc import Iterator
from unittest.mock import patch

import pytest
from typer.testing import CliRunner

from patrol_zones.cli.app import app
from patrol_zones.core.config import Settings

runner = CliRunner()


@pytest.fixture(autouse=True)
def _settings() -> Iterator[None]:
    settings = Settings(database_url="sqlite+aiosqlite:///:memory:")
    with (
        patch("patrol_zones.cli.app.get_settings", return_value=settings),
        patch("patrol_zones.cli.app.setup_logging"),
    ):
        yield


class TestDbCommands:
    def test_upgrade_defaults_to_head(self) -> None:
        with patch("alembic.command.upgrade") as mock_upgrade:
            result = runner.invoke(app, ["db", "upgrade"])

        assert result.exit_code == 0, result.output
        config, revision = mock_upgrade.call_args.args
        assert revision == "head"
        assert config.config_file_name == "alembic.ini"

    def test_downgrade_one_step(self) -> None:
        with patch("alembic.command.downgrade") as mock_downgrade:
            result = runner.invoke(app, ["db", "downgrade"])

        assert result.exit_code == 0, result.output
        assert mock_downgrade.call_args.args[1] == "-1"

    def test_current(self) -> None:
        with patch("alembic.command.current") as mock_current:
            result = runner.invoke(app, ["db", "current"])

        assert result.exit_code == 0, result.output
        assert mock_current.call_args.kwargs == {"verbose": True}
