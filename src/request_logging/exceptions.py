"""Request Logging Exceptions.

Errors raised while building or running the request logger.
"""


class RequestLoggingError(Exception):
    """Base exception for the request logging package."""


class ConfigurationError(RequestLoggingError, ValueError):
    """Raised when a RequestLoggerConfig cannot be built."""
