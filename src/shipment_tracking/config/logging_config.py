from __future__ import annotations

import logging
import os
import sys
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import Optional, Union

# Library modules log under this name (shipment_tracking.api.normalize, ...)
PACKAGE_LOGGER = "shipment_tracking"

_FMT = "%(asctime)s | %(levelname)s | %(name)s | %(message)s"
_DATEFMT = "%Y-%m-%d %H:%M:%S"


def qualified_name(name: Optional[str] = None) -> str:
    """Place `name` under the package logger: "pipelines" -> "shipment_tracking.pipelines"."""
    if not name or name == PACKAGE_LOGGER:
        return PACKAGE_LOGGER
    if name.startswith(PACKAGE_LOGGER + "."):
        return name
    return f"{PACKAGE_LOGGER}.{name}"


def resolve_level(level: Optional[Union[int, str]] = None) -> int:
    """
    int or level name ('INFO', 'debug', 'warn'). None falls back to LOG_LEVEL,
    unknown names to INFO.
    """
    if level is None:
        level = os.getenv("LOG_LEVEL") or logging.INFO
    if isinstance(level, int):
        return level
    value = logging.getLevelName(str(level).strip().upper())
    return value if isinstance(value, int) else logging.INFO


def default_log_path(source: Union[str, Path]) -> Path:
    """Log file beside a run's input: orders.xlsx -> orders.log."""
    return Path(source).with_suffix(".log")


def _console_handler(logger: logging.Logger) -> Optional[logging.Handler]:
    for h in logger.handlers:
        if type(h) is logging.StreamHandler and h.stream in (sys.stderr, sys.stdout):
            return h
    return None


def _file_handler(logger: logging.Logger, path: Path) -> Optional[logging.Handler]:
    target = os.path.abspath(path)
    for h in logger.handlers:
        if isinstance(h, RotatingFileHandler) and h.baseFilename == target:
            return h
    return None


def get_logger(
    name: Optional[str] = None,
    *,
    level: Optional[Union[int, str]] = None,
    log_file: Optional[Union[str, Path]] = None,
    console: bool = True,
    max_bytes: int = 5_000_000,
    backup_count: int = 5,
) -> logging.Logger:
    """
    Configure a logger in the shipment_tracking hierarchy and return it.

    With no name this is the package logger, so configuring it once (as the
    CLI does) routes every library module's records to the same handlers.
    Repeated calls add only missing handlers and re-apply the level to the
    ones already attached.
    """
    logger = logging.getLogger(qualified_name(name))
    lvl = resolve_level(level)
    logger.setLevel(lvl)
    # handlers live here; root would print every record twice
    logger.propagate = False

    formatter = logging.Formatter(fmt=_FMT, datefmt=_DATEFMT)

    if console and _console_handler(logger) is None:
        sh = logging.StreamHandler(stream=sys.stderr)
        sh.setFormatter(formatter)
        logger.addHandler(sh)

    if log_file is not None:
        log_path = Path(log_file)
        if _file_handler(logger, log_path) is None:
            log_path.parent.mkdir(parents=True, exist_ok=True)
            fh = RotatingFileHandler(
                filename=str(log_path),
                maxBytes=max_bytes,
                backupCount=backup_count,
                encoding="utf-8",
                delay=True,
            )
            fh.setFormatter(formatter)
            logger.addHandler(fh)

    for h in logger.handlers:
        h.setLevel(lvl)
    return logger
