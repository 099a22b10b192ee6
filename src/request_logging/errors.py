"""Error Translation.

Turns an exception raised by the downstream application into a
response. The application's registered exception handlers are used
when one matches; otherwise a structured JSON error envelope is
returned.
"""

import inspect
import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Callable, Optional

from starlette.concurrency import run_in_threadpool
from starlette.exceptions import HTTPException
from starlette.requests import Request
from starlette.responses import JSONResponse, PlainTextResponse, Response

from src.request_logging.config import ErrorHandler
from src.request_logging.context import get_trace_id

logger = logging.getLogger(__name__)

INTERNAL_ERROR_MESSAGE = "An internal error occurred"


@dataclass
class ErrorResponse:
    """Structured error response envelope."""

    code: str
    message: str
    status_code: int = 500
    trace_id: Optional[str] = None
    timestamp: str = ""

    def __post_init__(self):
        if not self.timestamp:
            self.timestamp = datetime.now(timezone.utc).isoformat()

    def to_dict(self) -> dict[str, Any]:
        body: dict[str, Any] = {
            "error": {
                "code": self.code,
                "message": self.message,
                "timestamp": self.timestamp,
            }
        }
        if self.trace_id:
            body["error"]["trace_id"] = self.trace_id
        return body


def lookup_exception_handler(app: Any, exc: Exception) -> Optional[Callable]:
    """Find the handler an application registered for ``exc``'s class.

    Walks the exception's MRO so a handler registered for a base
    class (including ``Exception``) matches subclasses.
    """
    handlers = getattr(app, "exception_handlers", None) or {}
    for cls in type(exc).__mro__:
        if cls in handlers:
            return handlers[cls]
    return None


def default_error_response(exc: Exception, trace_id: Optional[str] = None) -> Response:
    """Build the fallback JSON error response for ``exc``."""
    if isinstance(exc, HTTPException):
        error = ErrorResponse(
            code="HTTP_ERROR",
            message=str(exc.detail),
            status_code=exc.status_code,
            trace_id=trace_id,
        )
        return JSONResponse(
            error.to_dict(), status_code=error.status_code, headers=exc.headers
        )

    error = ErrorResponse(
        code="INTERNAL_ERROR",
        message=INTERNAL_ERROR_MESSAGE,
        trace_id=trace_id,
    )
    return JSONResponse(error.to_dict(), status_code=error.status_code)


def server_error_response() -> Response:
    """Last-resort response when error translation itself fails."""
    return PlainTextResponse("Internal Server Error", status_code=500)


def _is_async_callable(obj: Any) -> bool:
    return inspect.iscoroutinefunction(obj) or inspect.iscoroutinefunction(
        getattr(obj, "__call__", None)
    )


async def translate_error(
    request: Request,
    exc: Exception,
    handler: Optional[ErrorHandler] = None,
) -> Response:
    """Translate ``exc`` into a response.

    Uses ``handler`` if given, else the application's handler for the
    exception class, else ``default_error_response``. Sync handlers
    run in the threadpool. Exceptions raised by the handler propagate
    to the caller.
    """
    handler = handler or lookup_exception_handler(request.scope.get("app"), exc)
    if handler is None:
        return default_error_response(exc, get_trace_id() or None)

    if _is_async_callable(handler):
        return await handler(request, exc)
    return await run_in_threadpool(handler, request, exc)
