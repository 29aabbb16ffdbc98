"""Live comment service layer.

Business logic for:
- Posting comments through the moderation filter
- Reactions, replies and reply requirement updates
- Live event emission for every accepted change
- Subscriber join with a full state backlog

Each operation holds the service lock from validation through event
publication, so subscribers observe store changes in exactly the order they
were applied and a joining subscriber's backlog lines up with the live feed.
"""

import asyncio

from livecast.core.logging import get_logger
from livecast.events.broadcaster import EventBroadcaster, Subscriber
from livecast.events.models import Event, EventType
from livecast.moderation.filter import WordFilter
from livecast.moderation.schemas import NgWordsUpdateResponse

from .exceptions import (
    CommentNotFoundError,
    InvalidInputError,
    LiveCommentError,
    MalformedRequestError,
    ModerationRejectedError,
    ReplyNotAllowedError,
)
from .models import Comment, ReactionType
from .schemas import (
    CommentResponse,
    ReactionCountsResponse,
    ReactionUpdateResponse,
    ReplyAddedResponse,
    ReplyResponse,
    ReplyStatusResponse,
)
from .store import CommentStore, clean_message


logger = get_logger(__name__)


__all__ = [
    "CommentNotFoundError",
    "InvalidInputError",
    "LiveCommentError",
    "LiveCommentService",
    "MalformedRequestError",
    "ModerationRejectedError",
    "ReplyNotAllowedError",
]


def comment_event(comment: Comment) -> Event:
    return Event(EventType.COMMENT, CommentResponse.from_comment(comment).to_payload())


def ng_words_event(words: list[str], added: list[str] | None = None) -> Event:
    update = NgWordsUpdateResponse(ng_words=words, added=added or [])
    return Event(EventType.NG_WORDS_UPDATED, update.to_payload())


class LiveCommentService:
    """Orchestrates moderation, the comment store and the event broadcaster."""

    def __init__(
        self,
        store: CommentStore,
        word_filter: WordFilter,
        broadcaster: EventBroadcaster,
    ) -> None:
        self.store = store
        self.word_filter = word_filter
        self.broadcaster = broadcaster
        self._lock = asyncio.Lock()

    # ==========================================================================
    # Comments
    # ==========================================================================

    async def create_comment(self, name: str | None, message: str) -> Comment:
        """Post a comment after it passes moderation.

        A blocked message can still teach the filter new words; subscribers
        are told about those even though no comment is created.

        Raises:
            InvalidInputError: message is empty after trimming
            ModerationRejectedError: message contains banned words
        """
        message = clean_message(message)

        async with self._lock:
            result = self.word_filter.check(message)

            if result.newly_banned:
                self.broadcaster.publish(
                    ng_words_event(
                        self.word_filter.words(), sorted(result.newly_banned)
                    )
                )

            if result.blocked:
                detected = sorted(result.matched_words)
                logger.info("comment_rejected", detected_words=detected)
                raise ModerationRejectedError(detected)

            comment = self.store.append(name, message)
            self.broadcaster.publish(comment_event(comment))

        logger.info("comment_created", comment_id=comment.id, name=comment.name)
        return comment

    def list_comments(self) -> list[Comment]:
        return self.store.list_comments()

    def get_comment(self, comment_id: int) -> Comment:
        return self.store.get(comment_id)

    def list_banned_words(self) -> list[str]:
        return self.word_filter.words()

    # ==========================================================================
    # Reactions
    # ==========================================================================

    async def add_reaction(
        self, comment_id: int, reaction: ReactionType | str
    ) -> ReactionUpdateResponse:
        """Increment a reaction counter and broadcast the new counts."""
        kind = reaction.value if isinstance(reaction, ReactionType) else reaction

        async with self._lock:
            counts = self.store.add_reaction(comment_id, kind)
            update = ReactionUpdateResponse(
                comment_id=comment_id,
                reactions=ReactionCountsResponse(**counts),
            )
            self.broadcaster.publish(
                Event(EventType.REACTION_UPDATED, update.to_payload())
            )

        logger.debug("reaction_added", comment_id=comment_id, reaction=kind)
        return update

    # ==========================================================================
    # Replies
    # ==========================================================================

    async def add_reply(
        self, comment_id: int, name: str | None, message: str
    ) -> ReplyAddedResponse:
        """Attach a reply and broadcast it.

        Raises:
            CommentNotFoundError: unknown comment
            ReplyNotAllowedError: replies were disabled for the comment
            InvalidInputError: message is empty after trimming
        """
        async with self._lock:
            reply = self.store.add_reply(comment_id, name, message)
            added = ReplyAddedResponse(
                comment_id=comment_id, reply=ReplyResponse.from_reply(reply)
            )
            self.broadcaster.publish(Event(EventType.REPLY_ADDED, added.to_payload()))

        logger.info("reply_added", comment_id=comment_id, reply_id=reply.id)
        return added

    async def set_reply_status(
        self, comment_id: int, needs_reply: bool
    ) -> ReplyStatusResponse:
        """Set whether a comment still needs a reply and broadcast it."""
        async with self._lock:
            self.store.set_reply_status(comment_id, needs_reply)
            status = ReplyStatusResponse(comment_id=comment_id, needs_reply=needs_reply)
            self.broadcaster.publish(
                Event(EventType.REPLY_REQUIREMENT_UPDATED, status.to_payload())
            )

        logger.info(
            "reply_status_updated", comment_id=comment_id, needs_reply=needs_reply
        )
        return status

    # ==========================================================================
    # Live events
    # ==========================================================================

    async def subscribe(self) -> Subscriber:
        """Register a live subscriber with the current state as its backlog.

        The backlog is one ``comment`` event per stored comment in creation
        order followed by one ``ng_words_updated`` snapshot. It is built and
        the subscriber registered under the service lock, so no event
        published meanwhile is lost or duplicated.
        """
        async with self._lock:
            backlog = [comment_event(comment) for comment in self.store.list_comments()]
            backlog.append(ng_words_event(self.word_filter.words()))
            return self.broadcaster.subscribe(backlog)

    def unsubscribe(self, subscriber: Subscriber) -> None:
        self.broadcaster.unsubscribe(subscriber)
