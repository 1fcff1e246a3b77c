"""Root logger configuration for the CLI."""
from __future__ import annotations

import logging

LOG_FORMAT = "%(asctime)s %(levelname)-8s %(name)s: %(message)s"


def configure_logging(level: str = "INFO") -> None:
    """Configure the root logger.

    Unknown level names fall back to INFO. aiohttp is held at WARNING so
    request chatter does not drown out position output.
    """
    numeric_level = getattr(logging, str(level).upper(), None)
    if not isinstance(numeric_level, int):
        numeric_level = logging.INFO

    logging.basicConfig(format=LOG_FORMAT, force=True)
    logging.getLogger().setLevel(numeric_level)
    logging.getLogger("aiohttp").setLevel(logging.WARNING)
