"""Live comment API endpoints.

Provides routes for:
- Posting and listing comments
- Reactions
- Host replies and reply requirement
"""

from fastapi import APIRouter, status

from .dependencies import LiveCommentServiceDep, handle_comment_error
from .schemas import (
    AddReactionRequest,
    CommentResponse,
    CreateCommentRequest,
    CreateReplyRequest,
    ReactionUpdateResponse,
    ReplyAddedResponse,
    ReplyStatusRequest,
    ReplyStatusResponse,
)
from .service import LiveCommentError


router = APIRouter(prefix="/comments", tags=["comments"])


@router.post(
    "",
    response_model=CommentResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Post comment",
)
async def create_comment(
    data: CreateCommentRequest,
    service: LiveCommentServiceDep,
) -> CommentResponse:
    """Post a comment.

    The message is checked against the banned-word filter first; a rejected
    message returns the detected words and is never broadcast.
    """
    try:
        comment = await service.create_comment(data.name, data.message)
    except LiveCommentError as e:
        raise handle_comment_error(e) from e

    return CommentResponse.from_comment(comment)


@router.get("", response_model=list[CommentResponse], summary="List comments")
async def list_comments(service: LiveCommentServiceDep) -> list[CommentResponse]:
    """All comments in the order they were posted."""
    return [CommentResponse.from_comment(c) for c in service.list_comments()]


@router.get("/{comment_id}", response_model=CommentResponse, summary="Get comment")
async def get_comment(
    comment_id: int,
    service: LiveCommentServiceDep,
) -> CommentResponse:
    try:
        comment = service.get_comment(comment_id)
    except LiveCommentError as e:
        raise handle_comment_error(e) from e

    return CommentResponse.from_comment(comment)


@router.post(
    "/{comment_id}/reactions",
    response_model=ReactionUpdateResponse,
    summary="Add reaction",
)
async def add_reaction(
    comment_id: int,
    data: AddReactionRequest,
    service: LiveCommentServiceDep,
) -> ReactionUpdateResponse:
    """Increment a like/love/laugh counter on a comment."""
    try:
        return await service.add_reaction(comment_id, data.reaction)
    except LiveCommentError as e:
        raise handle_comment_error(e) from e


@router.post(
    "/{comment_id}/replies",
    response_model=ReplyAddedResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Reply to comment",
)
async def add_reply(
    comment_id: int,
    data: CreateReplyRequest,
    service: LiveCommentServiceDep,
) -> ReplyAddedResponse:
    """Attach a host reply to a comment.

    Returns 409 when replies were disabled for the comment.
    """
    try:
        return await service.add_reply(comment_id, data.name, data.message)
    except LiveCommentError as e:
        raise handle_comment_error(e) from e


@router.put(
    "/{comment_id}/reply-status",
    response_model=ReplyStatusResponse,
    summary="Set reply requirement",
)
async def set_reply_status(
    comment_id: int,
    data: ReplyStatusRequest,
    service: LiveCommentServiceDep,
) -> ReplyStatusResponse:
    try:
        return await service.set_reply_status(comment_id, data.needs_reply)
    except LiveCommentError as e:
        raise handle_comment_error(e) from e
