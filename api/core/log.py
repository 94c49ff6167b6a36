"""
Logging setup shared by the API process and the CLI.
"""

from __future__ import annotations

import logging
import os

LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s %(message)s"


def configure_logging(level: str | None = None) -> None:
    level_name = (level or os.environ.get("LOG_LEVEL", "INFO")).strip().upper()
    if not isinstance(logging.getLevelName(level_name), int):
        level_name = "INFO"
    logging.basicConfig(level=level_name, format=LOG_FORMAT)
