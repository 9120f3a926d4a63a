# snippetbox/core/logging_config.py
"""Logging configuration shared by the server and the command line entry point"""

import logging
import os
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import Optional

LOG_FORMAT = "%(asctime)s %(levelname)-7s %(name)s: %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"
LOG_FILE_NAME = "snippetbox.log"

# Third-party loggers that are too chatty at INFO
QUIET_LOGGERS = ("uvicorn.access", "sqlalchemy.engine", "passlib")


def _has_handler(logger: logging.Logger, kind: type, path: Optional[Path] = None) -> bool:
    for handler in logger.handlers:
        if type(handler) is not kind:
            continue
        if path is None or getattr(handler, "baseFilename", None) == str(path):
            return True
    return False


def setup_logging(level: Optional[str] = None) -> logging.Logger:
    """
    Configure the root logger and return it. Safe to call repeatedly.

    Level comes from the argument, else LOG_LEVEL, else INFO. When LOG_DIR is
    set, records also go to a rotating file (5 MB x 5).
    """
    root = logging.getLogger()
    root.setLevel((level or os.getenv("LOG_LEVEL", "INFO")).upper())
    formatter = logging.Formatter(LOG_FORMAT, datefmt=DATE_FORMAT)

    if not _has_handler(root, logging.StreamHandler):
        console = logging.StreamHandler()
        console.setFormatter(formatter)
        root.addHandler(console)

    log_dir = os.getenv("LOG_DIR")
    if log_dir:
        log_path = Path(log_dir)
        log_path.mkdir(parents=True, exist_ok=True)
        log_file = (log_path / LOG_FILE_NAME).resolve()
        if not _has_handler(root, RotatingFileHandler, log_file):
            rotating = RotatingFileHandler(log_file, maxBytes=5 * 1024 * 1024, backupCount=5, encoding="utf-8")
            rotating.setFormatter(formatter)
            root.addHandler(rotating)

    for name in QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)

    return root
