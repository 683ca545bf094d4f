"""Process-wide logging setup."""

from __future__ import annotations

import logging

_FORMAT = "%(asctime)s %(levelname)s [%(name)s] %(message)s"


def setup_logging(level: str = "INFO") -> None:
    """Attach a single stream handler to the root logger.

    Safe to call more than once: an already configured root logger is only
    re-leveled.
    """
    root = logging.getLogger()
    root.setLevel(level.upper())
    if root.handlers:
        return

    handler = logging.StreamHandler()
    handler.setFormatter(logging.Formatter(_FORMAT, datefmt="%Y-%m-%d %H:%M:%S"))
    root.addHandler(handler)

    # uvicorn logs every request itself; keep ours as the single access log
    logging.getLogger("uvicorn.access").setLevel(logging.WARNING)
