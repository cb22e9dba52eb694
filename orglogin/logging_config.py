from __future__ import annotations

import logging


def configure_app_logging(level: str = "INFO") -> None:
    """
    Minimal logging configuration for this repo.

    Notes:
    - stdlib logging only; uvicorn already installs handlers.
    - Set `APP_LOG_LEVEL=DEBUG` (or INFO/WARNING/ERROR) to control verbosity.
    - Token values and secrets are never passed to a logger.
    """

    normalized = level.upper()
    logging.getLogger("orglogin").setLevel(normalized)
    # Child loggers under orglogin.* inherit this level.
    logging.getLogger("orglogin").propagate = True
