"""Moderation API endpoints."""

from fastapi import APIRouter

from livecast.comments.dependencies import LiveCommentServiceDep


router = APIRouter(tags=["moderation"])


@router.get("/ng-words", response_model=list[str], summary="List banned words")
async def list_banned_words(service: LiveCommentServiceDep) -> list[str]:
    """Every banned word, learned or configured, sorted."""
    return service.list_banned_words()
