# Core infrastructure
from livecast.core.context import (
    clear_context,
    get_context,
    get_request_id,
    get_subscriber_id,
    get_trace_id,
    set_request_id,
    set_subscriber_id,
    set_trace_id,
)
from livecast.core.logging import configure_structlog, get_logger
from livecast.core.middleware import RequestContextMiddleware


__all__ = [
    "RequestContextMiddleware",
    "clear_context",
    "configure_structlog",
    "get_context",
    "get_logger",
    "get_request_id",
    "get_subscriber_id",
    "get_trace_id",
    "set_request_id",
    "set_subscriber_id",
    "set_trace_id",
]
