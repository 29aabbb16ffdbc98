"""Tests for the in-memory comment store."""

from concurrent.futures import ThreadPoolExecutor

import pytest

from livecast.comments.exceptions import (
    CommentNotFoundError,
    InvalidInputError,
    ReplyNotAllowedError,
)
from livecast.comments.models import Comment, normalize_reactions
from livecast.comments.store import CommentStore


@pytest.fixture
def store() -> CommentStore:
    """Empty store with default names."""
    return CommentStore()


class TestAppend:
    """Tests for CommentStore.append."""

    def test_creates_comment_with_defaults(self, store: CommentStore) -> None:
        """New comments start with zeroed reactions and no replies."""
        comment = store.append("A", "hello")

        assert comment.name == "A"
        assert comment.message == "hello"
        assert comment.reactions == {"like": 0, "love": 0, "laugh": 0}
        assert comment.replies == []
        assert comment.needs_reply is True
        assert comment.created_at.tzinfo is not None

    def test_trims_message_and_name(self, store: CommentStore) -> None:
        comment = store.append("  A  ", "  hello  ")

        assert comment.name == "A"
        assert comment.message == "hello"

    @pytest.mark.parametrize("name", [None, "", "   "])
    def test_default_name(self, store: CommentStore, name: str | None) -> None:
        """Missing or blank names fall back to the default."""
        assert store.append(name, "hello").name == "anonymous"

    @pytest.mark.parametrize("message", ["", "   ", "\n\t"])
    def test_rejects_blank_message(self, store: CommentStore, message: str) -> None:
        with pytest.raises(InvalidInputError):
            store.append("A", message)

        assert len(store) == 0

    def test_ids_strictly_increase(self, store: CommentStore) -> None:
        """Ids are unique even when created within the same clock tick."""
        ids = [store.append(None, f"m{i}").id for i in range(100)]

        assert ids == sorted(set(ids))

    def test_ids_unique_under_concurrency(self, store: CommentStore) -> None:
        with ThreadPoolExecutor(max_workers=8) as pool:
            comments = list(pool.map(lambda i: store.append(None, f"m{i}"), range(200)))

        assert len({c.id for c in comments}) == 200


class TestGetAndList:
    """Tests for lookup and listing."""

    def test_get_unknown_id(self, store: CommentStore) -> None:
        with pytest.raises(CommentNotFoundError) as exc_info:
            store.get(42)

        assert exc_info.value.code == "comment_not_found"

    def test_list_in_insertion_order(self, store: CommentStore) -> None:
        first = store.append(None, "first")
        second = store.append(None, "second")

        assert [c.id for c in store.list_comments()] == [first.id, second.id]

    def test_returns_snapshots(self, store: CommentStore) -> None:
        """Mutating a returned comment does not touch the store."""
        comment = store.append(None, "hello")
        comment.reactions["like"] = 99
        comment.replies.append(None)

        stored = store.get(comment.id)
        assert stored.reactions["like"] == 0
        assert stored.replies == []


class TestReactions:
    """Tests for CommentStore.add_reaction."""

    def test_increments_kind(self, store: CommentStore) -> None:
        comment = store.append(None, "hello")

        reactions = store.add_reaction(comment.id, "love")

        assert reactions == {"like": 0, "love": 1, "laugh": 0}
        assert store.get(comment.id).reactions["love"] == 1

    def test_invalid_kind(self, store: CommentStore) -> None:
        comment = store.append(None, "hello")

        with pytest.raises(InvalidInputError):
            store.add_reaction(comment.id, "angry")

    def test_unknown_comment(self, store: CommentStore) -> None:
        with pytest.raises(CommentNotFoundError):
            store.add_reaction(7, "like")

    def test_no_lost_updates_under_concurrency(self, store: CommentStore) -> None:
        """Each final count equals the number of calls for that kind."""
        comment = store.append(None, "hello")
        kinds = ["like"] * 300 + ["love"] * 200 + ["laugh"] * 100

        with ThreadPoolExecutor(max_workers=16) as pool:
            list(pool.map(lambda k: store.add_reaction(comment.id, k), kinds))

        assert store.get(comment.id).reactions == {
            "like": 300,
            "love": 200,
            "laugh": 100,
        }


class TestReplies:
    """Tests for replies and the reply requirement flag."""

    def test_add_reply(self, store: CommentStore) -> None:
        comment = store.append(None, "hello")

        reply = store.add_reply(comment.id, None, "  hi  ")

        assert reply.name == "host"
        assert reply.message == "hi"
        assert [r.id for r in store.get(comment.id).replies] == [reply.id]

    def test_multiple_replies_while_reply_needed(self, store: CommentStore) -> None:
        """A reply does not close the comment to further replies."""
        comment = store.append(None, "hello")

        store.add_reply(comment.id, "host", "one")
        store.add_reply(comment.id, "host", "two")

        assert [r.message for r in store.get(comment.id).replies] == ["one", "two"]

    def test_reply_rejected_when_disabled(self, store: CommentStore) -> None:
        comment = store.append(None, "hello")
        store.set_reply_status(comment.id, False)

        with pytest.raises(ReplyNotAllowedError) as exc_info:
            store.add_reply(comment.id, None, "hi")

        assert exc_info.value.code == "reply_not_allowed"

    def test_blank_reply(self, store: CommentStore) -> None:
        comment = store.append(None, "hello")

        with pytest.raises(InvalidInputError):
            store.add_reply(comment.id, None, "   ")

    def test_reply_unknown_comment(self, store: CommentStore) -> None:
        with pytest.raises(CommentNotFoundError):
            store.add_reply(3, None, "hi")

    def test_set_reply_status_is_idempotent(self, store: CommentStore) -> None:
        """Disabling twice keeps replies disabled both times."""
        comment = store.append(None, "hello")

        for _ in range(2):
            store.set_reply_status(comment.id, False)
            assert store.get(comment.id).needs_reply is False
            with pytest.raises(ReplyNotAllowedError):
                store.add_reply(comment.id, None, "hi")

    def test_reenable_replies(self, store: CommentStore) -> None:
        comment = store.append(None, "hello")
        store.set_reply_status(comment.id, False)
        store.set_reply_status(comment.id, True)

        assert store.add_reply(comment.id, None, "hi").message == "hi"

    def test_set_reply_status_requires_bool(self, store: CommentStore) -> None:
        comment = store.append(None, "hello")

        with pytest.raises(InvalidInputError):
            store.set_reply_status(comment.id, "false")  # type: ignore[arg-type]

    def test_set_reply_status_unknown_comment(self, store: CommentStore) -> None:
        with pytest.raises(CommentNotFoundError):
            store.set_reply_status(9, True)


class TestReactionNormalization:
    """Tests for reaction map normalization."""

    def test_missing_and_invalid_values_default_to_zero(self) -> None:
        assert normalize_reactions({"like": 3, "love": -1, "laugh": "2"}) == {
            "like": 3,
            "love": 0,
            "laugh": 0,
        }

    def test_unknown_kinds_dropped(self) -> None:
        assert normalize_reactions({"angry": 5}) == {"like": 0, "love": 0, "laugh": 0}

    def test_comment_normalizes_on_creation(self) -> None:
        comment = Comment(id=1, name="A", message="m", reactions={"like": 2})

        assert comment.reactions == {"like": 2, "love": 0, "laugh": 0}
