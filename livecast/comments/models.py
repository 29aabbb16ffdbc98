"""In-memory entities for live comments.

Comments own their replies and reaction counters. Entities are created once
and mutated in place by the store; nothing is ever deleted.
"""

from dataclasses import dataclass, field, replace
from datetime import UTC, datetime
from enum import Enum
from typing import Any


class ReactionType(str, Enum):
    """Available reaction types for comments."""

    LIKE = "like"
    LOVE = "love"
    LAUGH = "laugh"


def empty_reactions() -> dict[str, int]:
    """Reaction counters with every kind present and zeroed."""
    return {reaction.value: 0 for reaction in ReactionType}


def normalize_reactions(raw: dict[str, Any] | None) -> dict[str, int]:
    """Coerce a reaction mapping to all known kinds with non-negative counts.

    Missing, non-integer or negative values become 0; unknown kinds are
    dropped.
    """
    counts = empty_reactions()
    for kind in counts:
        value = (raw or {}).get(kind)
        if isinstance(value, int) and not isinstance(value, bool) and value > 0:
            counts[kind] = value
    return counts


def utc_now() -> datetime:
    return datetime.now(UTC)


@dataclass
class Reply:
    """Response attached to a comment, usually authored by the host."""

    id: int
    name: str
    message: str
    created_at: datetime = field(default_factory=utc_now)


@dataclass
class Comment:
    """Top-level viewer comment."""

    id: int
    name: str
    message: str
    created_at: datetime = field(default_factory=utc_now)
    reactions: dict[str, int] = field(default_factory=empty_reactions)
    replies: list[Reply] = field(default_factory=list)
    needs_reply: bool = True

    def __post_init__(self) -> None:
        self.reactions = normalize_reactions(self.reactions)

    def snapshot(self) -> "Comment":
        """Copy detached from the stored entity."""
        return replace(
            self,
            reactions=dict(self.reactions),
            replies=[replace(reply) for reply in self.replies],
        )
