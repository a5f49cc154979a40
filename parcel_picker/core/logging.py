"""Logger configuration for the ``parcel_picker`` namespace.

Modules log through ``logging.getLogger("parcel_picker.<module>")`` with a
``key=value | key=value`` message style; this helper only wires a handler
and level onto the package root logger for hosts that have none.
"""

from __future__ import annotations

import logging

LOGGER_NAME = "parcel_picker"
LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s | %(message)s"


def configure_logging(level: str = "INFO") -> logging.Logger:
    """Attach a stream handler to the package logger (idempotent).

    Args:
        level: Standard logging level name.

    Returns:
        The configured ``parcel_picker`` logger.
    """
    root = logging.getLogger(LOGGER_NAME)
    root.setLevel(level)
    if not any(getattr(h, "_parcel_picker", False) for h in root.handlers):
        handler = logging.StreamHandler()
        handler.setFormatter(logging.Formatter(LOG_FORMAT))
        handler._parcel_picker = True  # type: ignore[attr-defined]
        root.addHandler(handler)
    return root
