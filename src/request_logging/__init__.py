"""Request Logging Middleware.

One structured access log record per HTTP request, with severity and
message chosen by response status class, an error trace ID header,
and downstream errors routed through the application's error handling.
"""

from src.request_logging.config import (
    DEFAULT_MESSAGES,
    DEFAULT_SEVERITIES,
    LogField,
    LogFormat,
    LoggingConfig,
    LogLevel,
    RequestLoggerConfig,
    Severity,
)
from src.request_logging.context import (
    RequestContext,
    bind_context,
    generate_trace_id,
    get_trace_id,
)
from src.request_logging.exceptions import ConfigurationError, RequestLoggingError
from src.request_logging.fields import BoundLogger, ResponseInfo, get_response_info
from src.request_logging.middleware import (
    TRACE_ID_FIELD,
    TRACE_ID_HEADER,
    RequestLoggerMiddleware,
    install_request_logger,
)
from src.request_logging.selection import StatusClass, classify_status, pick
from src.request_logging.setup import configure_logging, get_logger

__all__ = [
    # Config
    "DEFAULT_MESSAGES",
    "DEFAULT_SEVERITIES",
    "LogField",
    "LogFormat",
    "LogLevel",
    "LoggingConfig",
    "RequestLoggerConfig",
    "Severity",
    # Context
    "RequestContext",
    "bind_context",
    "generate_trace_id",
    "get_trace_id",
    # Errors
    "ConfigurationError",
    "RequestLoggingError",
    # Fields
    "BoundLogger",
    "ResponseInfo",
    "get_response_info",
    # Middleware
    "TRACE_ID_FIELD",
    "TRACE_ID_HEADER",
    "RequestLoggerMiddleware",
    "install_request_logger",
    # Selection
    "StatusClass",
    "classify_status",
    "pick",
    # Setup
    "configure_logging",
    "get_logger",
]
