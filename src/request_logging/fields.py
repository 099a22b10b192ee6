"""Access Log Fields.

The default logger builder: binds request and response data to a
logger according to the configured LogField list.
"""

import logging
import os
from dataclasses import dataclass, field
from typing import Any, Callable, Optional

from starlette.requests import Request

from src.request_logging.config import (
    ACCESS_LOGGER_NAME,
    LogField,
    LoggerBuilder,
    RequestLoggerConfig,
)

RESPONSE_SCOPE_KEY = "request_logging.response"
REQUEST_ID_HEADER = "X-Request-ID"


@dataclass
class ResponseInfo:
    """Response data observed while the downstream app was sending."""

    status_code: int = 200
    headers: list[tuple[str, str]] = field(default_factory=list)
    bytes_sent: int = 0
    started: bool = False


def get_response_info(request: Request) -> ResponseInfo:
    """Return the ResponseInfo recorded for a request.

    Available to logger builders once the middleware has delegated
    the request; a blank ResponseInfo is returned otherwise.
    """
    info = request.scope.get(RESPONSE_SCOPE_KEY)
    if isinstance(info, ResponseInfo):
        return info
    return ResponseInfo()


class BoundLogger(logging.LoggerAdapter):
    """LoggerAdapter that merges its bound fields into ``record.fields``.

    Fields passed at call time via ``extra={"fields": {...}}`` win over
    bound ones.
    """

    def process(self, msg: Any, kwargs: dict[str, Any]) -> tuple[Any, dict[str, Any]]:
        extra = dict(kwargs.get("extra") or {})
        fields = {**self.extra, **extra.pop("fields", {})}
        kwargs["extra"] = {**extra, "fields": fields}
        return msg, kwargs

    def bind(self, **fields: Any) -> "BoundLogger":
        return BoundLogger(self.logger, {**self.extra, **fields})


def _client_ip(request: Request, response: ResponseInfo) -> str:
    return request.client.host if request.client else ""


def _forwarded_ips(request: Request, response: ResponseInfo) -> list[str]:
    forwarded = request.headers.get("x-forwarded-for", "")
    return [ip.strip() for ip in forwarded.split(",") if ip.strip()]


def _original_url(request: Request, response: ResponseInfo) -> str:
    query = request.url.query
    return f"{request.url.path}?{query}" if query else request.url.path


def _route(request: Request, response: ResponseInfo) -> str:
    return getattr(request.scope.get("route"), "path", "")


def _bytes_received(request: Request, response: ResponseInfo) -> int:
    try:
        return int(request.headers.get("content-length", 0))
    except ValueError:
        return 0


_EXTRACTORS: dict[LogField, Callable[[Request, ResponseInfo], Any]] = {
    LogField.IP: _client_ip,
    LogField.IPS: _forwarded_ips,
    LogField.HOST: lambda req, res: req.headers.get("host", ""),
    LogField.URL: _original_url,
    LogField.USER_AGENT: lambda req, res: req.headers.get("user-agent", ""),
    LogField.STATUS: lambda req, res: res.status_code,
    LogField.METHOD: lambda req, res: req.method,
    LogField.PATH: lambda req, res: req.url.path,
    LogField.ROUTE: _route,
    LogField.PROTOCOL: lambda req, res: req.url.scheme,
    LogField.PID: lambda req, res: os.getpid(),
    LogField.QUERY_PARAMS: lambda req, res: req.url.query,
    LogField.BYTES_RECEIVED: _bytes_received,
    LogField.BYTES_SENT: lambda req, res: res.bytes_sent,
    LogField.REQUEST_ID: lambda req, res: req.headers.get(REQUEST_ID_HEADER, ""),
}

_RESERVED_KEYS = frozenset(
    log_field.key(snake) for log_field in LogField for snake in (False, True)
)


def collect_fields(
    config: RequestLoggerConfig,
    request: Request,
    latency_ms: float,
    error: Optional[BaseException],
) -> dict[str, Any]:
    """Build the field mapping for one request."""
    response = get_response_info(request)
    snake = config.fields_snake_case
    fields: dict[str, Any] = {}
    flattened: dict[str, Any] = {}

    for log_field in config.fields:
        key = log_field.key(snake)
        if log_field == LogField.LATENCY:
            fields[key] = round(latency_ms, 2)
        elif log_field == LogField.ERROR:
            if error is not None:
                fields[key] = str(error) or type(error).__name__
        elif log_field in (LogField.REQ_HEADERS, LogField.RES_HEADERS):
            if log_field == LogField.REQ_HEADERS:
                headers = dict(request.headers.items())
            else:
                headers = dict(response.headers)
            if config.wrap_headers:
                fields[key] = headers
            else:
                flattened.update(headers)
        else:
            fields[key] = _EXTRACTORS[log_field](request, response)

    # Flattened headers never replace or impersonate built-in fields
    for name, value in flattened.items():
        if name not in _RESERVED_KEYS:
            fields.setdefault(name, value)

    return fields


def default_logger_builder(config: RequestLoggerConfig) -> LoggerBuilder:
    """Return a builder that binds ``config.fields`` to the base logger."""

    def build(request: Request, latency_ms: float, error: Optional[BaseException]) -> BoundLogger:
        if config.get_logger is not None:
            base = config.get_logger(request)
        else:
            base = config.logger or logging.getLogger(ACCESS_LOGGER_NAME)
        return BoundLogger(base, collect_fields(config, request, latency_ms, error))

    return build


def resolve_logger_builder(config: RequestLoggerConfig) -> LoggerBuilder:
    return config.logger_builder or default_logger_builder(config)
