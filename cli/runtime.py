"""Runtime boot helpers for Prompt Shelf CLI.

Updates:
  v0.1.0 - 2026-08-27 - Extract logging configuration helpers.
"""

from __future__ import annotations

import configparser
import logging
import logging.config
from pathlib import Path

DEFAULT_LOGGING_CONFIG = Path("config/logging.conf")


def setup_logging(logging_conf_path: Path | None) -> None:
    """Configure logging using *logging_conf_path* when available."""
    path = logging_conf_path or DEFAULT_LOGGING_CONFIG
    if path.exists():
        try:
            logging.config.fileConfig(path, disable_existing_loggers=False)
            return
        except (configparser.Error, KeyError, ValueError, RuntimeError) as exc:
            logging.basicConfig(level=logging.INFO)
            logging.getLogger("prompt_shelf.cli").warning(
                "Ignoring invalid logging configuration %s: %s", path, exc
            )
            return
    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
