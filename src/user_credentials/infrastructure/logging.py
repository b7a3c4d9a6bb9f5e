"""Process logging configuration for credential entrypoints."""

from __future__ import annotations

import logging

_LOG_FORMAT = "%(asctime)s %(levelname)s [%(name)s] %(message)s"

# These emit statement parameters (password hashes included) at DEBUG.
_PARAMETER_LOGGING_LIBRARIES = ("aiosqlite", "sqlalchemy.engine")


def configure_logging(*, level: str) -> None:
    """Configure process logging with consistent format and runtime level.

    Services only emit through their injected loggers; the entrypoint calls this once.
    Driver loggers are held at INFO or above even when the process runs at DEBUG.
    """

    normalized_level = level.strip().upper() if level.strip() else "INFO"
    resolved_level = getattr(logging, normalized_level, logging.INFO)

    logging.basicConfig(
        level=resolved_level,
        format=_LOG_FORMAT,
    )
    for name in _PARAMETER_LOGGING_LIBRARIES:
        logging.getLogger(name).setLevel(max(resolved_level, logging.INFO))
