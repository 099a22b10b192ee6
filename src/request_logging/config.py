"""Request Logging Configuration.

Severities, access-log fields, and the immutable middleware configuration,
plus the settings used to configure process-wide log output.
"""

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Any, Awaitable, Callable, Optional, Union

from src.request_logging.exceptions import ConfigurationError


class Severity(str, Enum):
    """Severity of an access log record.

    The first seven members emit a record; NO_LEVEL and DISABLED
    switch logging off for the status class they are assigned to.
    """
    TRACE = "trace"
    DEBUG = "debug"
    INFO = "info"
    WARN = "warn"
    ERROR = "error"
    FATAL = "fatal"
    PANIC = "panic"
    NO_LEVEL = "no_level"
    DISABLED = "disabled"

    @classmethod
    def coerce(cls, value: Any) -> Any:
        """Convert a string to a Severity when it names one.

        Values that match no member are returned unchanged; they
        never emit a record.
        """
        if isinstance(value, cls):
            return value
        if isinstance(value, str):
            name = value.strip().lower()
            name = _SEVERITY_ALIASES.get(name, name)
            for member in cls:
                if member.value == name:
                    return member
        return value

    @property
    def is_silent(self) -> bool:
        return self in (Severity.NO_LEVEL, Severity.DISABLED)


_SEVERITY_ALIASES = {
    "warning": "warn",
    "critical": "fatal",
    "none": "no_level",
    "": "no_level",
}


class LogField(str, Enum):
    """Fields the default logger builder can attach to a record.

    Values are the camelCase keys; ``key(snake_case=True)`` gives
    the snake_case spelling.
    """
    IP = "ip"
    IPS = "ips"
    HOST = "host"
    URL = "url"
    USER_AGENT = "userAgent"
    LATENCY = "latency"
    STATUS = "status"
    METHOD = "method"
    PATH = "path"
    ROUTE = "route"
    PROTOCOL = "protocol"
    PID = "pid"
    QUERY_PARAMS = "queryParams"
    BYTES_RECEIVED = "bytesReceived"
    BYTES_SENT = "bytesSent"
    REQ_HEADERS = "reqHeaders"
    RES_HEADERS = "resHeaders"
    REQUEST_ID = "requestId"
    ERROR = "error"

    def key(self, snake_case: bool = False) -> str:
        return self.name.lower() if snake_case else self.value

    @classmethod
    def coerce(cls, value: Any) -> "LogField":
        if isinstance(value, cls):
            return value
        if isinstance(value, str):
            for member in cls:
                if value in (member.value, member.name.lower()):
                    return member
        raise ConfigurationError(f"Unknown log field: {value!r}")


# Index 0 = server error (5xx), 1 = client error (4xx), 2 = success
DEFAULT_SEVERITIES: tuple[Severity, ...] = (Severity.ERROR, Severity.WARN, Severity.INFO)
DEFAULT_MESSAGES: tuple[str, ...] = ("Server error", "Client error", "Success")
DEFAULT_FIELDS: tuple[LogField, ...] = (
    LogField.IP,
    LogField.LATENCY,
    LogField.STATUS,
    LogField.METHOD,
    LogField.PATH,
    LogField.URL,
    LogField.ERROR,
)

ACCESS_LOGGER_NAME = "request_logging.access"

LoggerBuilder = Callable[[Any, float, Optional[BaseException]], Any]
ErrorHandler = Callable[[Any, Exception], Union[Any, Awaitable[Any]]]


def _as_tuple(value: Any) -> tuple:
    if value is None:
        return ()
    if isinstance(value, (str, bytes)):
        return (value,)
    return tuple(value)


@dataclass(frozen=True)
class RequestLoggerConfig:
    """Immutable configuration for RequestLoggerMiddleware.

    Attributes:
        bypass: Predicate on the request; when it returns True the
            request is passed through untouched and not logged.
        skip_paths: Exact request paths that are never logged.
        severities: Severities for server-error, client-error and
            success responses, in that order. Shorter tuples reuse
            their last entry for the remaining classes.
        messages: Message text per status class, same indexing.
        logger_builder: ``(request, latency_ms, error) -> logger``.
            Defaults to the field-based builder in ``fields.py``.
        logger: Base logger for the default builder.
        get_logger: Per-request base logger for the default builder;
            takes precedence over ``logger``.
        fields: Fields the default builder attaches.
        fields_snake_case: Use snake_case keys for multi-word fields.
        wrap_headers: Nest headers under a single key instead of one
            field per header.
        error_handler: Overrides the application's exception handlers
            when translating a downstream error into a response.
    """

    bypass: Optional[Callable[[Any], bool]] = None
    skip_paths: tuple[str, ...] = ()
    severities: tuple[Any, ...] = DEFAULT_SEVERITIES
    messages: tuple[str, ...] = DEFAULT_MESSAGES
    logger_builder: Optional[LoggerBuilder] = None
    logger: Optional[logging.Logger] = None
    get_logger: Optional[Callable[[Any], logging.Logger]] = None
    fields: tuple[LogField, ...] = DEFAULT_FIELDS
    fields_snake_case: bool = False
    wrap_headers: bool = False
    error_handler: Optional[ErrorHandler] = None

    def __post_init__(self):
        severities = tuple(Severity.coerce(s) for s in _as_tuple(self.severities))
        if not severities:
            raise ConfigurationError("severities must contain at least one entry")

        messages = tuple(str(m) for m in _as_tuple(self.messages))
        if not messages:
            raise ConfigurationError("messages must contain at least one entry")

        object.__setattr__(self, "severities", severities)
        object.__setattr__(self, "messages", messages)
        object.__setattr__(self, "skip_paths", tuple(_as_tuple(self.skip_paths)))
        object.__setattr__(
            self, "fields", tuple(LogField.coerce(f) for f in _as_tuple(self.fields))
        )


DEFAULT_REQUEST_LOGGER_CONFIG = RequestLoggerConfig()


class LogLevel(str, Enum):
    """Root log level options."""
    DEBUG = "DEBUG"
    INFO = "INFO"
    WARNING = "WARNING"
    ERROR = "ERROR"
    CRITICAL = "CRITICAL"


class LogFormat(str, Enum):
    """Log output format."""
    JSON = "json"
    CONSOLE = "console"


@dataclass
class LoggingConfig:
    """Process-wide log output settings."""

    level: LogLevel = LogLevel.INFO
    format: LogFormat = LogFormat.JSON
    include_caller: bool = True
    service_name: str = "request-logging"


DEFAULT_LOGGING_CONFIG = LoggingConfig()
