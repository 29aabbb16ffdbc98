"""Self-learning banned-word filter.

Every message is checked against a fixed list of candidate phrases and
against the words banned so far. A candidate found in a message is banned
from then on, so the banned set grows with every attempt to post it. Words
are never removed.
"""

import threading
import unicodedata
from collections.abc import Iterable
from dataclasses import dataclass, field

from livecast.core.logging import get_logger


logger = get_logger(__name__)


# Profanity and violence phrases, matched as substrings after normalization
DEFAULT_CANDIDATE_WORDS: tuple[str, ...] = (
    # English
    "kill",
    "murder",
    "fuck",
    "shit",
    "bitch",
    "asshole",
    # Japanese
    "死ね",
    "殺す",
    "殺してやる",
    "くたばれ",
    "消えろ",
    # Spanish
    "mierda",
    "matar",
    "puta",
    # French
    "merde",
    "connard",
)


def normalize_text(text: str) -> str:
    """Normalize text for case-insensitive substring matching.

    NFKC folds full-width and compatibility forms (common in Japanese input)
    before casefolding.
    """
    return unicodedata.normalize("NFKC", text).casefold()


@dataclass(frozen=True)
class FilterResult:
    """Outcome of a single moderation check."""

    matched_words: frozenset[str] = field(default_factory=frozenset)
    newly_banned: frozenset[str] = field(default_factory=frozenset)

    @property
    def blocked(self) -> bool:
        """A message is blocked iff at least one word matched."""
        return bool(self.matched_words)


class WordFilter:
    """Banned-word filter with auto-detection of candidate phrases."""

    def __init__(
        self,
        candidates: Iterable[str] = DEFAULT_CANDIDATE_WORDS,
        initial_words: Iterable[str] = (),
    ) -> None:
        self._candidates = tuple(
            dict.fromkeys(w for w in map(normalize_text, candidates) if w.strip())
        )
        self._banned: set[str] = {
            w for w in map(normalize_text, initial_words) if w.strip()
        }
        self._lock = threading.Lock()

    def check(self, message: str) -> FilterResult:
        """Check a message, banning any candidate phrase it contains.

        The banned set is updated even when the message ends up blocked.
        """
        text = normalize_text(message)

        with self._lock:
            matched: set[str] = set()
            newly_banned: set[str] = set()

            for candidate in self._candidates:
                if candidate in text:
                    matched.add(candidate)
                    if candidate not in self._banned:
                        self._banned.add(candidate)
                        newly_banned.add(candidate)

            matched.update(word for word in self._banned if word in text)

        if newly_banned:
            logger.info("ng_words_learned", words=sorted(newly_banned))

        return FilterResult(
            matched_words=frozenset(matched),
            newly_banned=frozenset(newly_banned),
        )

    def words(self) -> list[str]:
        """Snapshot of the banned set, sorted."""
        with self._lock:
            return sorted(self._banned)

    def is_banned(self, word: str) -> bool:
        """Check whether a word is currently banned."""
        with self._lock:
            return normalize_text(word) in self._banned

    def __len__(self) -> int:
        with self._lock:
            return len(self._banned)
