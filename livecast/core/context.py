"""Request context management using contextvars.

Each HTTP request gets a unique ID, and each live event stream gets a
subscriber ID. Both can be read anywhere in the call stack without passing
parameters explicitly and are injected into every log entry.
"""

from contextvars import ContextVar
from typing import Any
from uuid import uuid4


# Context variables for request tracking
request_id_var: ContextVar[str] = ContextVar("request_id", default="")
trace_id_var: ContextVar[str | None] = ContextVar("trace_id", default=None)
subscriber_id_var: ContextVar[int | None] = ContextVar("subscriber_id", default=None)


def generate_request_id() -> str:
    """Generate a new unique request ID."""
    return str(uuid4())


def get_request_id() -> str:
    """Get the current request ID."""
    return request_id_var.get()


def set_request_id(request_id: str | None = None) -> str:
    """Set the request ID for the current context.

    Args:
        request_id: Optional request ID. If not provided, generates a new one.

    Returns:
        The request ID that was set.
    """
    rid = request_id or generate_request_id()
    request_id_var.set(rid)
    return rid


def get_trace_id() -> str | None:
    """Get the current trace ID."""
    return trace_id_var.get()


def set_trace_id(trace_id: str | None) -> None:
    """Set the trace ID from distributed tracing headers."""
    trace_id_var.set(trace_id)


def get_subscriber_id() -> int | None:
    """Get the live event subscriber bound to the current context."""
    return subscriber_id_var.get()


def set_subscriber_id(subscriber_id: int | None) -> None:
    """Bind a live event subscriber to the current context."""
    subscriber_id_var.set(subscriber_id)


def get_context() -> dict[str, Any]:
    """Get all context variables as a dictionary.

    Returns:
        Dictionary with request_id, trace_id and subscriber_id (when set).
    """
    context: dict[str, Any] = {}

    request_id = get_request_id()
    if request_id:
        context["request_id"] = request_id

    trace_id = get_trace_id()
    if trace_id:
        context["trace_id"] = trace_id

    subscriber_id = get_subscriber_id()
    if subscriber_id is not None:
        context["subscriber_id"] = subscriber_id

    return context


def clear_context() -> None:
    """Clear all context variables.

    This should be called at the end of each request to prevent
    context leakage between requests.
    """
    request_id_var.set("")
    trace_id_var.set(None)
    subscriber_id_var.set(None)
