"""Central logging configuration.

Usage:
    from utils.logging_config import configure_logging
    configure_logging(json_logs=False, level="INFO")

Idempotent: safe to call multiple times. Pass ``force=True`` to rebuild the
sinks (e.g. after the CLI parsed a ``--log-level`` flag).
"""
from __future__ import annotations
import os
import sys
from typing import Optional

from loguru import logger

_CONFIGURED = False

PLAIN_FORMAT = "{time:YYYY-MM-DD HH:mm:ss} | {level: <7} | {name} | {message}"


def configure_logging(json_logs: bool = False, level: str = "INFO",
                      log_file: Optional[str] = None, force: bool = False) -> None:
    global _CONFIGURED
    if _CONFIGURED and not force:
        return
    logger.remove()
    logger.add(sys.stderr, level=level.upper(), format=PLAIN_FORMAT, serialize=json_logs)

    # Optional rotating file (JSON lines when json_logs) controlled by POCKETLENS_LOG_FILE
    log_file = log_file or os.getenv('POCKETLENS_LOG_FILE')
    if log_file:
        directory = os.path.dirname(log_file)
        if directory:
            os.makedirs(directory, exist_ok=True)
        logger.add(log_file, level=level.upper(), format=PLAIN_FORMAT,
                   serialize=json_logs, rotation="5 MB", retention=3)
    _CONFIGURED = True


def configure_from_settings(level: Optional[str] = None, force: bool = False) -> None:
    """Configure sinks from the environment-backed Settings.

    ``level`` overrides ``POCKETLENS_LOG_LEVEL`` (e.g. a CLI flag).
    """
    from utils.settings import get_settings
    settings = get_settings()
    configure_logging(json_logs=settings.json_logs, level=level or settings.log_level,
                      log_file=settings.log_file, force=force)
