from __future__ import annotations

import logging
import sys
from pathlib import Path
from typing import Optional

DETAILED_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - [%(filename)s:%(lineno)d] - %(message)s"
SIMPLE_FORMAT = "%(levelname)s - %(message)s"

# HTTP client internals log every request and connection at INFO/DEBUG
QUIET_LOGGERS = ("httpx", "httpcore", "asyncio")


class ColoredFormatter(logging.Formatter):
    """Colours the level name when writing to a terminal."""

    LEVEL_COLOURS = {
        logging.DEBUG: "36",
        logging.INFO: "32",
        logging.WARNING: "33",
        logging.ERROR: "31",
        logging.CRITICAL: "35",
    }

    def format(self, record: logging.LogRecord) -> str:
        code = self.LEVEL_COLOURS.get(record.levelno)
        if code is None or not sys.stdout.isatty():
            return super().format(record)
        # The record is shared with every other handler
        coloured = logging.makeLogRecord(record.__dict__)
        coloured.levelname = f"\033[{code}m{record.levelname}\033[0m"
        return super().format(coloured)


def _resolve_level(level: str) -> int:
    value = logging.getLevelName(str(level).upper())
    return value if isinstance(value, int) else logging.INFO


def _handler(handler: logging.Handler, level: int, formatter: logging.Formatter) -> logging.Handler:
    handler.setLevel(level)
    handler.setFormatter(formatter)
    return handler


def setup_logging(
    level: str = "INFO",
    *,
    log_file: Optional[str | Path] = None,
    format_style: str = "detailed",
    use_color: Optional[bool] = None,
) -> None:
    """
    Configure the root logger for the exporter.

    Called once when the CLI starts and again after the configuration is
    loaded, so ``logging.level`` takes effect. Existing root handlers are
    replaced.

    Args:
        level: Level name; unknown names fall back to INFO.
        log_file: Also write plain (uncoloured) records to this file.
        format_style: "detailed" adds logger, file and line; "simple" does not.
        use_color: Force colour on or off. Defaults to on for a TTY.
    """
    level_value = _resolve_level(level)
    fmt = DETAILED_FORMAT if format_style == "detailed" else SIMPLE_FORMAT
    if use_color is None:
        use_color = sys.stdout.isatty()

    root_logger = logging.getLogger()
    root_logger.setLevel(level_value)
    root_logger.handlers.clear()
    root_logger.addHandler(
        _handler(
            logging.StreamHandler(sys.stdout),
            level_value,
            ColoredFormatter(fmt) if use_color else logging.Formatter(fmt),
        )
    )

    if log_file:
        log_path = Path(log_file)
        log_path.parent.mkdir(parents=True, exist_ok=True)
        root_logger.addHandler(
            _handler(
                logging.FileHandler(log_path, encoding="utf-8"),
                level_value,
                logging.Formatter(fmt),
            )
        )

    for name in QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)
