"""Loguru logging configuration.

Log records go to stderr so that command output on stdout (including the
``--json`` views) stays machine-readable.  ``LOG_JSON=true`` switches the
stderr sink to serialized records; ``LOG_DIR`` adds a daily-rotated file.
"""

import sys
from pathlib import Path

from loguru import logger

LOG_FILE_NAME = "patrol-zones.log"

_CONSOLE_FORMAT = "<green>{time:HH:mm:ss.SSS}</green> | <level>{level:<8}</level> | <cyan>{name}</cyan> | {message}"
_FILE_FORMAT = "{time:YYYY-MM-DD HH:mm:ss.SSS} | {level:<8} | {name}:{function}:{line} | {message}"


def setup_logging(
    log_level: str = "INFO",
    log_dir: str | None = None,
    *,
    json_logs: bool = False,
    retention_days: int = 7,
) -> None:
    """Replace every Loguru sink with the configured ones.

    Args:
        log_level: Minimum log level to emit (case-insensitive).
        log_dir: Optional directory for ``patrol-zones.log``, rotated at
            midnight.
        json_logs: Emit one JSON object per record on stderr instead of text.
        retention_days: Days of rotated log files to keep.
    """
    level = log_level.upper()
    logger.remove()
    if json_logs:
        logger.add(sys.stderr, level=level, serialize=True)
    else:
        logger.add(sys.stderr, level=level, format=_CONSOLE_FORMAT)

    if log_dir:
        log_path = Path(log_dir)
        log_path.mkdir(parents=True, exist_ok=True)
        logger.add(
            log_path / LOG_FILE_NAME,
            level=level,
            format=_FILE_FORMAT,
            rotation="00:00",
            retention=f"{retention_days} days",
            encoding="utf-8",
        )
