"""HTTP middleware binding request context for logging.

Every request gets a request id (taken from ``X-Request-ID`` or generated)
and, when the caller sends one, a trace id. Both land in the log context and
the request id is echoed back on the response. WebSocket connections pass
through untouched; their handlers bind a subscriber id instead.
"""

import time
from collections.abc import Awaitable, Callable

from fastapi import Request, Response
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.types import ASGIApp

from livecast.core.context import clear_context, set_request_id, set_trace_id
from livecast.core.logging import get_logger


logger = get_logger(__name__)

REQUEST_ID_HEADER = "X-Request-ID"
TRACE_ID_HEADER = "X-Trace-ID"
TRACEPARENT_HEADER = "traceparent"

EVENT_STREAM_MEDIA_TYPE = "text/event-stream"


def trace_id_from_headers(request: Request) -> str | None:
    """Trace id from ``X-Trace-ID`` or a W3C ``traceparent`` header.

    traceparent format: {version}-{trace-id}-{parent-id}-{trace-flags}
    """
    trace_id = request.headers.get(TRACE_ID_HEADER)
    if trace_id:
        return trace_id

    parts = request.headers.get(TRACEPARENT_HEADER, "").split("-")
    if len(parts) == 4 and parts[1]:
        return parts[1]
    return None


class RequestContextMiddleware(BaseHTTPMiddleware):
    """Bind request/trace ids and log each request once it is answered.

    Event-stream responses are logged when the stream is handed to the
    server, not when it ends, since a live stream may stay open for hours.
    """

    def __init__(
        self,
        app: ASGIApp,
        log_requests: bool = True,
        exclude_paths: list[str] | None = None,
    ) -> None:
        super().__init__(app)
        self.log_requests = log_requests
        self.exclude_paths = tuple(exclude_paths or ())

    def _is_logged(self, path: str) -> bool:
        return self.log_requests and not path.startswith(self.exclude_paths)

    async def dispatch(
        self,
        request: Request,
        call_next: Callable[[Request], Awaitable[Response]],
    ) -> Response:
        started = time.perf_counter()

        request_id = set_request_id(request.headers.get(REQUEST_ID_HEADER))
        request.state.request_id = request_id
        trace_id = trace_id_from_headers(request)
        if trace_id:
            set_trace_id(trace_id)

        path = request.url.path
        log_this = self._is_logged(path)

        if log_this:
            logger.info(
                "request_started",
                method=request.method,
                path=path,
                client_ip=request.client.host if request.client else None,
            )

        try:
            response = await call_next(request)
        except Exception as e:
            logger.exception(
                "request_failed",
                method=request.method,
                path=path,
                error_type=type(e).__name__,
                duration_ms=round((time.perf_counter() - started) * 1000, 2),
            )
            raise
        finally:
            clear_context()

        response.headers[REQUEST_ID_HEADER] = request_id

        if log_this:
            streaming = response.headers.get("content-type", "").startswith(
                EVENT_STREAM_MEDIA_TYPE
            )
            log = logger.warning if response.status_code >= 400 else logger.info
            log(
                "request_streaming" if streaming else "request_completed",
                method=request.method,
                path=path,
                status_code=response.status_code,
                duration_ms=round((time.perf_counter() - started) * 1000, 2),
                request_id=request_id,
            )

        return response


__all__ = ["RequestContextMiddleware", "trace_id_from_headers"]
