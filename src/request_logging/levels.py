"""Severity Levels & Emission.

Registers the TRACE and PANIC level names with the logging module
and maps every emitting Severity onto a stdlib level number.
"""

import logging
from typing import Any, Mapping, Optional

from src.request_logging.config import Severity

TRACE = 5
PANIC = 60

logging.addLevelName(TRACE, "TRACE")
logging.addLevelName(PANIC, "PANIC")

SEVERITY_LEVELS: dict[Severity, int] = {
    Severity.TRACE: TRACE,
    Severity.DEBUG: logging.DEBUG,
    Severity.INFO: logging.INFO,
    Severity.WARN: logging.WARNING,
    Severity.ERROR: logging.ERROR,
    Severity.FATAL: logging.CRITICAL,
    Severity.PANIC: PANIC,
}


def level_for(severity: Any) -> Optional[int]:
    """Return the stdlib level for a severity, or None if it does not emit."""
    if not isinstance(severity, Severity):
        return None
    return SEVERITY_LEVELS.get(severity)


def emit(logger: Any, severity: Any, message: str, fields: Mapping[str, Any]) -> bool:
    """Emit one record at ``severity`` carrying ``fields``.

    Severities without a level (NO_LEVEL, DISABLED, or a value that
    is not a Severity at all) emit nothing. Returns whether a record
    was handed to the logger.
    """
    level = level_for(severity)
    if level is None:
        return False
    logger.log(level, message, extra={"fields": dict(fields)})
    return True
