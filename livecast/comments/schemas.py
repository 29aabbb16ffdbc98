"""Pydantic schemas for the live comment system.

Request/Response models with validation for:
- Posting comments and replies
- Reactions
- Reply requirement updates
"""

from datetime import datetime

from pydantic import Field, StrictBool, field_validator

from livecast.core.schemas import CamelModel

from .models import Comment, ReactionType, Reply


def _strip_required(v: str) -> str:
    v = v.strip()
    if not v:
        msg = "message is required"
        raise ValueError(msg)
    return v


# ==============================================================================
# Request Schemas
# ==============================================================================


class CreateCommentRequest(CamelModel):
    """Request to post a comment."""

    name: str | None = None
    message: str

    @field_validator("message")
    @classmethod
    def validate_message(cls, v: str) -> str:
        """Strip whitespace and validate message."""
        return _strip_required(v)


class AddReactionRequest(CamelModel):
    """Request to react to a comment."""

    reaction: ReactionType


class CreateReplyRequest(CamelModel):
    """Request to reply to a comment."""

    name: str | None = None
    message: str

    @field_validator("message")
    @classmethod
    def validate_message(cls, v: str) -> str:
        """Strip whitespace and validate message."""
        return _strip_required(v)


class ReplyStatusRequest(CamelModel):
    """Request to mark whether a comment still needs a reply."""

    needs_reply: StrictBool


# ==============================================================================
# Response Schemas
# ==============================================================================


class ReactionCountsResponse(CamelModel):
    """Reaction counts for a comment."""

    like: int = 0
    love: int = 0
    laugh: int = 0


class ReplyResponse(CamelModel):
    """Reply attached to a comment."""

    id: int
    name: str
    message: str
    created_at: datetime

    @classmethod
    def from_reply(cls, reply: Reply) -> "ReplyResponse":
        return cls(
            id=reply.id,
            name=reply.name,
            message=reply.message,
            created_at=reply.created_at,
        )


class CommentResponse(CamelModel):
    """Full comment with replies and reactions."""

    id: int
    name: str
    message: str
    created_at: datetime
    reactions: ReactionCountsResponse = Field(default_factory=ReactionCountsResponse)
    replies: list[ReplyResponse] = Field(default_factory=list)
    needs_reply: bool = True

    @classmethod
    def from_comment(cls, comment: Comment) -> "CommentResponse":
        return cls(
            id=comment.id,
            name=comment.name,
            message=comment.message,
            created_at=comment.created_at,
            reactions=ReactionCountsResponse(
                **{kind.value: comment.reactions[kind.value] for kind in ReactionType}
            ),
            replies=[ReplyResponse.from_reply(reply) for reply in comment.replies],
            needs_reply=comment.needs_reply,
        )


class ReactionUpdateResponse(CamelModel):
    """Reaction counters after a reaction was added."""

    comment_id: int
    reactions: ReactionCountsResponse


class ReplyAddedResponse(CamelModel):
    """Reply that was just attached to a comment."""

    comment_id: int
    reply: ReplyResponse


class ReplyStatusResponse(CamelModel):
    """Reply requirement after an update."""

    comment_id: int
    needs_reply: bool
