"""Loguru helpers for consistent logging in CLI commands."""

from __future__ import annotations

import sys
from pathlib import Path

from loguru import logger

_SINK_IDS: dict[str, int] = {}


def log_dir() -> Path:
    return Path.home() / ".lnbridge" / "logs"


def ensure_rotating_log_file(name: str, level: str = "INFO") -> Path:
    """Ensure a rotating log sink for the given command name."""
    log_path = log_dir() / f"{name}.log"
    if name in _SINK_IDS:
        return log_path
    log_path.parent.mkdir(parents=True, exist_ok=True)
    sink_id = logger.add(
        str(log_path),
        level=level,
        rotation="10 MB",
        retention="14 days",
        enqueue=True,
        encoding="utf-8",
        backtrace=False,
        diagnose=False,
    )
    _SINK_IDS[name] = sink_id
    return log_path


def configure_cli_logging(debug: bool, logs: bool) -> None:
    """Enable library logs on stderr (--debug) and/or to a rotating file (--logs)."""
    if debug:
        logger.remove()
        logger.add(sys.stderr, level="DEBUG", format="<dim>{time:HH:mm:ss.SSS}</dim> | <level>{level: <8}</level> | <level>{message}</level>")
        logger.enable("lnbridge")
    if logs:
        logger.enable("lnbridge")
        ensure_rotating_log_file("lnbridge", level="DEBUG" if debug else "INFO")
    if not debug and not logs:
        logger.disable("lnbridge")
