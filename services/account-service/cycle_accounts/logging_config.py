"""Logging configuration."""

from __future__ import annotations

import logging
import sys

from .config import Settings


def setup_logging(settings: Settings) -> None:
    """Configure process-wide logging from the service settings."""
    logging.basicConfig(
        level=getattr(logging, settings.log_level.upper(), logging.INFO),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        handlers=[logging.StreamHandler(sys.stdout)],
    )

    # psycopg logs every pool checkout at DEBUG
    logging.getLogger("psycopg.pool").setLevel(logging.WARNING)
    logging.getLogger("uvicorn").setLevel(logging.INFO)
