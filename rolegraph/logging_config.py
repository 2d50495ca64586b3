from __future__ import annotations

import logging


def configure_app_logging(level: str = "INFO") -> None:
    """
    Set the level of the ``rolegraph`` logger tree.

    Notes:
    - Handlers are left to the server (uvicorn configures its own).
    - ``ROLEGRAPH_LOG_LEVEL=DEBUG`` shows every RBAC decision ("RBAC: allowed ...").
    """

    normalized = level.upper()
    logging.getLogger("rolegraph").setLevel(normalized)
    logging.getLogger("rolegraph").propagate = True
