"""Banned-word moderation.

Note: Router is not exported here to avoid circular imports.
Import directly from livecast.moderation.router when needed.
"""

from .filter import DEFAULT_CANDIDATE_WORDS, FilterResult, WordFilter, normalize_text


__all__ = [
    "DEFAULT_CANDIDATE_WORDS",
    "FilterResult",
    "WordFilter",
    "normalize_text",
]
