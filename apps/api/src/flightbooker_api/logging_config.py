"""Process-wide logging setup."""

from __future__ import annotations

import logging

_FORMAT = "%(asctime)s %(levelname)s [%(name)s] %(message)s"


def configure_logging(level: str = "INFO") -> None:
    """Install a single stream handler on the root logger."""
    logging.basicConfig(level=level.upper(), format=_FORMAT, force=True)
    # redis-py logs every reconnect attempt at INFO
    logging.getLogger("redis").setLevel(logging.WARNING)
