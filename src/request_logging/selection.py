"""Status Classification.

Maps a response status code to its status class and picks the
severity and message configured for that class.
"""

from enum import IntEnum
from typing import Any, Sequence, TypeVar

T = TypeVar("T")


class StatusClass(IntEnum):
    """Status class, valued by its index into severities/messages."""
    SERVER_ERROR = 0
    CLIENT_ERROR = 1
    SUCCESS = 2


def classify_status(status_code: int) -> StatusClass:
    """Classify an HTTP status code.

    >= 500 is a server error, 400-499 a client error, anything
    else (including 1xx and 3xx) counts as success.
    """
    if status_code >= 500:
        return StatusClass.SERVER_ERROR
    if status_code >= 400:
        return StatusClass.CLIENT_ERROR
    return StatusClass.SUCCESS


def pick(values: Sequence[T], index: int) -> T:
    """Return ``values[index]``, clamped to the last entry.

    ``values`` must be non-empty; RequestLoggerConfig guarantees it.
    """
    return values[min(index, len(values) - 1)]


def select_severity(config: Any, status_class: StatusClass) -> Any:
    return pick(config.severities, int(status_class))


def select_message(config: Any, status_class: StatusClass) -> str:
    return pick(config.messages, int(status_class))
