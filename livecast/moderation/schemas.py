"""Pydantic schemas for moderation."""

from pydantic import Field

from livecast.core.schemas import CamelModel


class NgWordsUpdateResponse(CamelModel):
    """Banned-word set, with the words added by the triggering check."""

    ng_words: list[str]
    added: list[str] = Field(default_factory=list)
