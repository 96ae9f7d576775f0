"""Logging setup shared by the API server and scripts."""

import logging

from .settings import settings

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


def configure_logging(level: str | None = None) -> None:
    """Configure root logging once; later calls only adjust the level."""
    logging.basicConfig(
        level=(level or settings.log_level).upper(),
        format=LOG_FORMAT,
    )
    logging.getLogger().setLevel((level or settings.log_level).upper())
