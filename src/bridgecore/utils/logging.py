from __future__ import annotations

import logging
from typing import Optional

LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"


def configure_logging(level: Optional[str] = None) -> None:
    """
    Configure the ``bridgecore`` logger hierarchy.

    Uses RuntimeSettings.log_level when no level is given. Safe to call more
    than once; the handler is installed a single time.
    """
    if level is None:
        from bridgecore.core.settings import get_settings

        level = get_settings().runtime.log_level

    root = logging.getLogger("bridgecore")
    root.setLevel(level.upper())
    if not any(getattr(h, "_bridgecore", False) for h in root.handlers):
        handler = logging.StreamHandler()
        handler.setFormatter(logging.Formatter(LOG_FORMAT))
        handler._bridgecore = True  # type: ignore[attr-defined]
        root.addHandler(handler)
