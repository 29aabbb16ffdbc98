"""Live comment module.

Provides the live comment system with:
- Ordered in-memory comment store
- Reactions (like, love, laugh)
- Host replies and reply requirement flag
- Orchestration of moderation, storage and live events

Note: Router is not exported here to avoid circular imports.
Import directly from livecast.comments.router when needed.
"""

from .exceptions import (
    CommentNotFoundError,
    InvalidInputError,
    LiveCommentError,
    MalformedRequestError,
    ModerationRejectedError,
    ReplyNotAllowedError,
)
from .models import Comment, ReactionType, Reply
from .service import LiveCommentService
from .store import CommentStore


__all__ = [
    "Comment",
    "CommentNotFoundError",
    "CommentStore",
    "InvalidInputError",
    "LiveCommentError",
    "LiveCommentService",
    "MalformedRequestError",
    "ModerationRejectedError",
    "ReactionType",
    "Reply",
    "ReplyNotAllowedError",
]
