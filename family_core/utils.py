"""
Utility functions for FamilySync.
Contains helpers for logging and timestamp handling shared by the services.
"""

import logging
import os
from datetime import datetime, timezone
from typing import Any, Optional

import arrow

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


def setup_logging(log_level: str = "INFO", log_file: Optional[str] = None) -> logging.Logger:
    """
    Configure the `family_core` logger used by every service.

    Args:
        log_level: Level name (DEBUG, INFO, WARNING, ERROR)
        log_file: Optional path of a log file written next to the console output

    Returns:
        logging.Logger: The package logger; services log through its children.
    """
    level = getattr(logging, log_level.upper(), logging.INFO)
    logger = logging.getLogger("family_core")
    logger.setLevel(level)

    # repeated calls (app reloads, tests) must not stack handlers
    while logger.handlers:
        logger.removeHandler(logger.handlers[0])

    handlers: list = [logging.StreamHandler()]
    if log_file:
        log_dir = os.path.dirname(log_file)
        if log_dir:
            os.makedirs(log_dir, exist_ok=True)
        handlers.append(logging.FileHandler(log_file))

    formatter = logging.Formatter(LOG_FORMAT)
    for handler in handlers:
        handler.setLevel(level)
        handler.setFormatter(formatter)
        logger.addHandler(handler)

    return logger


def to_datetime(value: Any) -> Optional[datetime]:
    """
    Coerce a stored or submitted time value into an aware UTC datetime.

    Accepts datetimes (including Firestore's DatetimeWithNanoseconds), ISO-8601
    strings, epoch seconds and `{"seconds": ...}` mappings as produced by
    serialized Firestore timestamps.

    Returns:
        Optional[datetime]: The parsed value, or None when it cannot be parsed.
    """
    if value is None or isinstance(value, bool):
        return None

    if isinstance(value, datetime):
        if value.tzinfo is None:
            return value.replace(tzinfo=timezone.utc)
        return value.astimezone(timezone.utc)

    if isinstance(value, dict):
        seconds = value.get("seconds", value.get("_seconds"))
        if seconds is None:
            return None
        return to_datetime(seconds)

    try:
        if isinstance(value, (int, float)):
            return arrow.get(value).datetime
        if isinstance(value, str) and value.strip():
            return arrow.get(value.strip()).to("utc").datetime
    except (ValueError, TypeError, OverflowError):
        return None

    return None


def utcnow() -> datetime:
    return datetime.now(timezone.utc)
