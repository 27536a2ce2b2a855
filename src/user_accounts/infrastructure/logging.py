"""Shared logging configuration helpers for the API process."""

from __future__ import annotations

import logging

_LOG_FORMAT = "%(asctime)s %(levelname)s [%(name)s] %(message)s"
_NOISY_LOGGERS = ("sqlalchemy.engine", "aiosqlite")


def resolve_log_level(level: str) -> int:
    """Return the numeric level for a level name, defaulting to INFO."""

    normalized_level = level.strip().upper() if level.strip() else "INFO"
    resolved = getattr(logging, normalized_level, logging.INFO)
    return resolved if isinstance(resolved, int) else logging.INFO


def configure_logging(*, level: str) -> None:
    """Configure process logging with consistent format and runtime level."""

    resolved_level = resolve_log_level(level)
    logging.basicConfig(
        level=resolved_level,
        format=_LOG_FORMAT,
    )
    # Driver chatter stays at WARNING unless DEBUG is requested explicitly.
    for name in _NOISY_LOGGERS:
        logging.getLogger(name).setLevel(max(resolved_level, logging.WARNING))
