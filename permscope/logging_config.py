from __future__ import annotations

import logging


def configure_app_logging(level: str = "INFO") -> None:
    """
    Set the level for the ``permscope`` logger tree.

    Notes:
    - stdlib logging only; uvicorn already installs handlers.
    - ``PERMSCOPE_LOG_LEVEL=DEBUG`` shows every individual decision.
    """

    normalized = level.upper()
    logging.getLogger("permscope").setLevel(normalized)
    logging.getLogger("permscope").propagate = True
