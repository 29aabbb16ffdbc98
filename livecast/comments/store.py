"""Ordered in-memory comment store.

Ids come from per-kind counters incremented under the store lock, so they
are unique and strictly increasing regardless of clock resolution. Every
public method returns snapshots; stored entities never leave the store.
"""

import itertools
import threading
from dataclasses import replace

from .exceptions import (
    CommentNotFoundError,
    InvalidInputError,
    ReplyNotAllowedError,
)
from .models import Comment, ReactionType, Reply


def clean_message(message: object) -> str:
    """Trim a message, rejecting anything that is not non-blank text."""
    if not isinstance(message, str):
        msg = "message is required"
        raise InvalidInputError(msg)
    message = message.strip()
    if not message:
        msg = "message is required"
        raise InvalidInputError(msg)
    return message


def clean_name(name: object, default: str) -> str:
    """Trim a display name, falling back to ``default`` when blank."""
    if name is None:
        return default
    return str(name).strip() or default


class CommentStore:
    """Comments in insertion order with nested replies and reactions."""

    def __init__(
        self,
        default_name: str = "anonymous",
        default_reply_name: str = "host",
    ) -> None:
        self.default_name = default_name
        self.default_reply_name = default_reply_name

        self._comments: list[Comment] = []
        self._by_id: dict[int, Comment] = {}
        self._comment_ids = itertools.count(1)
        self._reply_ids = itertools.count(1)
        self._lock = threading.Lock()

    def _get(self, comment_id: int) -> Comment:
        comment = self._by_id.get(comment_id)
        if comment is None:
            raise CommentNotFoundError(comment_id)
        return comment

    def append(self, name: str | None, message: str) -> Comment:
        """Create a comment. The message must already have passed moderation."""
        message = clean_message(message)
        name = clean_name(name, self.default_name)

        with self._lock:
            comment = Comment(id=next(self._comment_ids), name=name, message=message)
            self._comments.append(comment)
            self._by_id[comment.id] = comment
            return comment.snapshot()

    def get(self, comment_id: int) -> Comment:
        with self._lock:
            return self._get(comment_id).snapshot()

    def add_reaction(self, comment_id: int, kind: str) -> dict[str, int]:
        """Increment one reaction counter and return the full counter map."""
        with self._lock:
            comment = self._get(comment_id)
            try:
                reaction = ReactionType(kind)
            except ValueError:
                msg = f"Invalid reaction type: {kind!r}"
                raise InvalidInputError(msg) from None

            comment.reactions[reaction.value] += 1
            return dict(comment.reactions)

    def add_reply(self, comment_id: int, name: str | None, message: str) -> Reply:
        """Attach a reply unless replies were explicitly disabled.

        ``needs_reply`` is a hint for the host view, not a single-reply limit:
        a comment that still needs a reply accepts any number of them.
        """
        with self._lock:
            comment = self._get(comment_id)
            if comment.needs_reply is False:
                raise ReplyNotAllowedError(comment_id)

            message = clean_message(message)
            reply = Reply(
                id=next(self._reply_ids),
                name=clean_name(name, self.default_reply_name),
                message=message,
            )
            comment.replies.append(reply)
            return replace(reply)

    def set_reply_status(self, comment_id: int, needs_reply: bool) -> None:
        if not isinstance(needs_reply, bool):
            msg = "needsReply must be a boolean"
            raise InvalidInputError(msg)

        with self._lock:
            self._get(comment_id).needs_reply = needs_reply

    def list_comments(self) -> list[Comment]:
        """All comments in insertion order."""
        with self._lock:
            return [comment.snapshot() for comment in self._comments]

    def __len__(self) -> int:
        with self._lock:
            return len(self._comments)
