from __future__ import annotations

import logging

from salesdesk.core import config

logger = logging.getLogger(__name__)
STARTUP_PREFIX = "[STARTUP]"


def validate_environment(database_url: str | None = None) -> None:
    if not config.IS_PROD:
        return

    url = database_url or config.DATABASE_URL
    if url.startswith("sqlite"):
        logger.critical("%s SQLite is forbidden in production", STARTUP_PREFIX)
        raise RuntimeError("SQLite is forbidden in production environment")

    if not config.JWT_SECRET_KEY:
        logger.critical("%s JWT_SECRET_KEY is not configured", STARTUP_PREFIX)
        raise RuntimeError("JWT_SECRET_KEY must be set in production environment")
