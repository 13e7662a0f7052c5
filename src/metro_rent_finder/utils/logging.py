"""Logging configuration for the rent finder."""

import logging
import os
import sys
from datetime import datetime
from pathlib import Path
from typing import Any, Dict, Optional

LOG_FORMAT = "%(asctime)s | %(levelname)-8s | %(name)s | %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

# Handlers installed by setup_logging, replaced on the next call
_installed_handlers = []


def setup_logging(log_level: str = None, log_dir: Optional[str] = "./logs") -> None:
    """
    Configure application logging.

    Calling it again (e.g. once the config file has been read) replaces the
    handlers from the previous call instead of stacking them.

    Args:
        log_level: Logging level (DEBUG, INFO, WARNING, ERROR).
                   Defaults to LOG_LEVEL env var or INFO.
        log_dir: Directory for a daily log file. Nothing is written to disk
                 unless the directory already exists.
    """
    level = log_level or os.getenv("LOG_LEVEL", "INFO")
    formatter = logging.Formatter(fmt=LOG_FORMAT, datefmt=DATE_FORMAT)

    handlers = [logging.StreamHandler(sys.stdout)]
    if log_dir and Path(log_dir).is_dir():
        log_file = Path(log_dir) / f"metro_rent_finder_{datetime.now():%Y%m%d}.log"
        handlers.append(logging.FileHandler(log_file, encoding="utf-8"))

    root_logger = logging.getLogger()
    for handler in _installed_handlers:
        root_logger.removeHandler(handler)
        handler.close()
    _installed_handlers[:] = handlers

    root_logger.setLevel(getattr(logging, str(level).upper(), logging.INFO))
    for handler in handlers:
        handler.setFormatter(formatter)
        root_logger.addHandler(handler)

    logging.getLogger("urllib3").setLevel(logging.WARNING)
    logging.getLogger("requests").setLevel(logging.WARNING)
    logging.getLogger("werkzeug").setLevel(logging.WARNING)


def setup_logging_from_config(config: Dict[str, Any], verbose: bool = False) -> None:
    """Apply the ``logging`` config section; ``verbose`` forces DEBUG."""
    section = config.get("logging") or {}
    level = "DEBUG" if verbose else section.get("level")
    setup_logging(level, section.get("dir"))
