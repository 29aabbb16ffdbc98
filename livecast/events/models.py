"""Typed live events and their wire encodings."""

from dataclasses import dataclass
from enum import Enum
from typing import Any

import orjson


class EventType(str, Enum):
    """Kinds of live events pushed to subscribers."""

    COMMENT = "comment"
    NG_WORDS_UPDATED = "ng_words_updated"
    REACTION_UPDATED = "reaction_updated"
    REPLY_ADDED = "reply_added"
    REPLY_REQUIREMENT_UPDATED = "reply_requirement_updated"


@dataclass(frozen=True)
class Event:
    """A single live event.

    ``sequence`` is assigned by the broadcaster when the event is published;
    backlog events replayed on subscribe have none.
    """

    type: EventType
    data: dict[str, Any]
    sequence: int | None = None

    def with_sequence(self, sequence: int) -> "Event":
        return Event(type=self.type, data=self.data, sequence=sequence)

    def to_sse(self) -> str:
        """Format as a Server-Sent Events message."""
        lines = [f"event: {self.type.value}"]
        if self.sequence is not None:
            lines.append(f"id: {self.sequence}")
        lines.append(f"data: {orjson.dumps(self.data).decode()}")
        return "\n".join(lines) + "\n\n"

    def to_message(self) -> dict[str, Any]:
        """Format as a WebSocket JSON message."""
        return {
            "type": self.type.value,
            "sequence": self.sequence,
            "data": self.data,
        }
