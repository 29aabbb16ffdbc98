"""FastAPI dependencies for the live comment system.

Provides dependency injection for:
- Live comment service
- Error translation to HTTP responses
"""

from typing import Annotated

from fastapi import Depends, HTTPException, Request, status

from .service import LiveCommentError, LiveCommentService, ModerationRejectedError


async def get_live_comment_service(request: Request) -> LiveCommentService:
    """Get live comment service from app state.

    Args:
        request: FastAPI request

    Returns:
        LiveCommentService instance
    """
    app_state = request.app.state
    if not getattr(app_state, "live_comment_service", None):
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Live comment service not available",
        )
    return app_state.live_comment_service


# Type aliases for dependency injection
LiveCommentServiceDep = Annotated[
    LiveCommentService, Depends(get_live_comment_service)
]


STATUS_MAP = {
    "invalid_input": status.HTTP_400_BAD_REQUEST,
    "malformed_request": status.HTTP_400_BAD_REQUEST,
    "moderation_rejected": status.HTTP_400_BAD_REQUEST,
    "comment_not_found": status.HTTP_404_NOT_FOUND,
    "reply_not_allowed": status.HTTP_409_CONFLICT,
}


class LiveCommentHTTPException(HTTPException):
    """HTTP exception that keeps the domain error code and extra fields."""

    def __init__(
        self,
        status_code: int,
        detail: str,
        code: str,
        extra: dict[str, object] | None = None,
    ) -> None:
        super().__init__(status_code=status_code, detail=detail)
        self.code = code
        self.extra = extra or {}


def handle_comment_error(error: LiveCommentError) -> LiveCommentHTTPException:
    """Convert live comment errors to HTTP exceptions.

    Args:
        error: Live comment error

    Returns:
        HTTPException with appropriate status code
    """
    extra: dict[str, object] = {}
    if isinstance(error, ModerationRejectedError):
        extra["detectedWords"] = error.detected_words

    return LiveCommentHTTPException(
        status_code=STATUS_MAP.get(error.code, status.HTTP_500_INTERNAL_SERVER_ERROR),
        detail=error.message,
        code=error.code,
        extra=extra,
    )
