"""Unit tests for logging configuration."""

import json
from pathlib import Path

import pytest
from loguru import logger

from patrol_zones.core.logging import LOG_FILE_NAME, setup_logging


@pytest.fixture(autouse=True)
def _reset_logging():
    yield
    setup_logging("INFO")


class TestLogging:
    """Tests for Loguru logging setup."""

    def test_setup_logging_case_insensitive(self) -> None:
        """setup_logging accepts case-insensitive log levels."""
        setup_logging("info")
        setup_logging("debug")
        setup_logging("WARNING")

    def test_text_sink_writes_to_stderr(self, capsys: pytest.CaptureFixture[str]) -> None:
        setup_logging("INFO")
        logger.info("range created")
        logger.debug("hidden at INFO")

        captured = capsys.readouterr()
        assert captured.out == ""
        assert "| INFO     |" in captured.err
        assert "range created" in captured.err
        assert "hidden at INFO" not in captured.err

    def test_json_sink_serializes_records(self, capsys: pytest.CaptureFixture[str]) -> None:
        setup_logging("INFO", json_logs=True)
        logger.warning("geocoding timed out")

        line = capsys.readouterr().err.strip().splitlines()[-1]
        record = json.loads(line)["record"]
        assert record["message"] == "geocoding timed out"
        assert record["level"]["name"] == "WARNING"

    def test_log_dir_creates_file_sink(self, tmp_path: Path) -> None:
        log_dir = tmp_path / "logs"
        setup_logging("INFO", log_dir=str(log_dir), retention_days=3)
        logger.info("file sink check")
        logger.complete()

        log_file = log_dir / LOG_FILE_NAME
        assert log_file.exists()
        assert "file sink check" in log_file.read_text(encoding="utf-8")
