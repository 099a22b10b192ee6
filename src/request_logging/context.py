"""Request Context Management.

Task-local request context using contextvars. Binds the error trace
ID and any extra values to every log record emitted while a request
is being handled.

Each request gets its own extra-values dict, updated in place, so
values bound from threadpool workers (which run on a copy of the
context) reach the access record.
"""

import uuid
from contextvars import ContextVar
from dataclasses import dataclass, field
from typing import Any, Optional

TRACE_ID_FIELD = "errorTraceId"

_trace_id_var: ContextVar[str] = ContextVar("error_trace_id", default="")
_extra_context_var: ContextVar[Optional[dict[str, Any]]] = ContextVar("extra_context", default=None)


def generate_trace_id() -> str:
    """Generate a unique error trace ID using UUID4."""
    return str(uuid.uuid4())


def get_trace_id() -> str:
    """Get the current error trace ID from context."""
    return _trace_id_var.get()


def get_extra_context() -> dict[str, Any]:
    """Get the values bound with ``bind`` / ``bind_context``."""
    return dict(_extra_context_var.get() or {})


def get_context_dict() -> dict[str, Any]:
    """Get the bound context as a dictionary for log records."""
    ctx: dict[str, Any] = {}
    trace_id = _trace_id_var.get()
    if trace_id:
        ctx[TRACE_ID_FIELD] = trace_id
    ctx.update(get_extra_context())
    return ctx


def _bind(values: dict[str, Any]) -> None:
    extra = _extra_context_var.get()
    if extra is None:
        # No request context active: start a dict owned by this context only
        _extra_context_var.set(dict(values))
    else:
        extra.update(values)


@dataclass
class RequestContext:
    """Context manager for request-scoped logging context.

    Example:
        with RequestContext(trace_id=generate_trace_id()) as ctx:
            ctx.bind(user_id="user_1")
            logger.info("processing")  # carries errorTraceId, user_id
    """

    trace_id: str = ""
    extra: dict[str, Any] = field(default_factory=dict)

    _tokens: list = field(default_factory=list, repr=False)

    def __post_init__(self):
        if not self.trace_id:
            self.trace_id = generate_trace_id()

    def __enter__(self) -> "RequestContext":
        self._tokens = [
            (_trace_id_var, _trace_id_var.set(self.trace_id)),
            (_extra_context_var, _extra_context_var.set(dict(self.extra))),
        ]
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        for var, token in reversed(self._tokens):
            var.reset(token)
        self._tokens.clear()

    def bind(self, **kwargs: Any) -> None:
        """Add extra key-value pairs to the context."""
        _bind(kwargs)
        self.extra.update(kwargs)


def bind_context(**kwargs: Any) -> None:
    """Bind values to the current request context from downstream code."""
    _bind(kwargs)
