from __future__ import annotations

import logging


def configure_app_logging(level: str = "INFO") -> None:
    """
    Set the level for the `propauth` logger tree.

    Uvicorn already installs handlers; this only adjusts our package.
    `PROPAUTH_LOG_LEVEL=DEBUG` shows individual authorization decisions.
    """

    normalized = level.upper()
    logging.getLogger("propauth").setLevel(normalized)
    logging.getLogger("propauth").propagate = True
