"""Logging setup helpers for request-scopes."""

from __future__ import annotations

import logging

from request_scopes.config.settings import settings

LOGGER_NAME = "request_scopes"


def configure_logging(debug: bool | None = None) -> None:
    if debug is None:
        debug = settings.debug
    level = logging.DEBUG if debug else logging.INFO
    logging.basicConfig(
        level=level,
        format="%(asctime)s %(levelname)s %(name)s %(message)s",
    )


def get_logger(name: str | None = None) -> logging.Logger:
    return logging.getLogger(name or LOGGER_NAME)


def skip_log_level() -> int:
    """Level the engine uses for skipped scopes."""
    return logging.INFO if settings.log_scope_decisions else logging.DEBUG
