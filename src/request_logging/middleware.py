"""ASGI Request Logging Middleware.

Times every HTTP request, tags the response with an error trace ID,
hands downstream exceptions to the application's error handling, and
emits one access log record whose severity and message depend on the
response status class.
"""

import logging
import time
from typing import Any, Optional

from starlette.datastructures import MutableHeaders
from starlette.requests import Request

from src.request_logging.config import (
    DEFAULT_REQUEST_LOGGER_CONFIG,
    RequestLoggerConfig,
    Severity,
)
from src.request_logging.context import (
    TRACE_ID_FIELD,
    RequestContext,
    generate_trace_id,
    get_context_dict,
)
from src.request_logging.errors import server_error_response, translate_error
from src.request_logging.fields import RESPONSE_SCOPE_KEY, ResponseInfo, resolve_logger_builder
from src.request_logging.levels import emit
from src.request_logging.selection import classify_status, select_message, select_severity

logger = logging.getLogger(__name__)

TRACE_ID_HEADER = "errorTraceID"


class RequestLoggerMiddleware:
    """ASGI middleware that writes one access log record per request.

    Features:
    - Bypass predicate and exact-path skip list
    - ``errorTraceID`` response header, also bound to the log context
    - Downstream exceptions translated by the app's exception handlers
    - Severity and message chosen per status class (5xx, 4xx, other)

    Usage:
        app.add_middleware(RequestLoggerMiddleware, config=RequestLoggerConfig(...))
    """

    def __init__(self, app, config: Optional[RequestLoggerConfig] = None):
        self.app = app
        self.config = config or DEFAULT_REQUEST_LOGGER_CONFIG
        self.skip_paths = frozenset(self.config.skip_paths)
        self.logger_builder = resolve_logger_builder(self.config)

    async def __call__(self, scope, receive, send):
        if scope["type"] != "http":
            await self.app(scope, receive, send)
            return

        request = Request(scope, receive)

        if self.config.bypass is not None and self.config.bypass(request):
            await self.app(scope, receive, send)
            return

        if scope.get("path", "") in self.skip_paths:
            await self.app(scope, receive, send)
            return

        start_time = time.perf_counter()
        trace_id = generate_trace_id()
        response = ResponseInfo()
        scope[RESPONSE_SCOPE_KEY] = response

        async def send_wrapper(message: dict[str, Any]) -> None:
            if message["type"] == "http.response.start":
                message.setdefault("headers", [])
                headers = MutableHeaders(scope=message)
                headers[TRACE_ID_HEADER] = trace_id
                response.status_code = message["status"]
                response.headers = [
                    (key.decode("latin-1"), value.decode("latin-1"))
                    for key, value in message["headers"]
                ]
                response.started = True
            elif message["type"] == "http.response.body":
                response.bytes_sent += len(message.get("body", b""))
            await send(message)

        with RequestContext(trace_id=trace_id):
            chain_error: Optional[Exception] = None
            try:
                await self.app(scope, receive, send_wrapper)
            except Exception as exc:
                chain_error = exc
                await self._handle_error(request, exc, response, send_wrapper)

            latency_ms = (time.perf_counter() - start_time) * 1000
            self._log(request, response.status_code, latency_ms, chain_error, trace_id)

    async def _handle_error(self, request: Request, exc: Exception, response: ResponseInfo, send) -> None:
        """Send the response the error handler builds for ``exc``."""
        if response.started:
            logger.debug(
                f"Response already started, cannot translate {type(exc).__name__}",
            )
            return

        try:
            error_response = await translate_error(request, exc, self.config.error_handler)
            await error_response(request.scope, request.receive, send)
        except Exception:
            logger.exception(f"Error handler failed while handling {type(exc).__name__}")
            if not response.started:
                response.status_code = 500
                await server_error_response()(request.scope, request.receive, send)

    def _log(
        self,
        request: Request,
        status_code: int,
        latency_ms: float,
        error: Optional[Exception],
        trace_id: str,
    ) -> None:
        status_class = classify_status(status_code)

        severity = select_severity(self.config, status_class)
        if isinstance(severity, Severity) and severity.is_silent:
            return

        message = select_message(self.config, status_class)

        try:
            request_logger = self.logger_builder(request, latency_ms, error)
            fields = {**get_context_dict(), TRACE_ID_FIELD: trace_id}
            emit(request_logger, severity, message, fields)
        except Exception:
            logger.exception("Failed to write access log record")


def install_request_logger(app: Any, config: Optional[RequestLoggerConfig] = None) -> None:
    """Install the request logging middleware on a Starlette/FastAPI app."""
    app.add_middleware(RequestLoggerMiddleware, config=config)
