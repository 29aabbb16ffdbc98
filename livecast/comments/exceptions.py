"""Comment system errors.

Every error carries a stable ``code`` that the HTTP layer maps to a status.
"""


class LiveCommentError(Exception):
    """Base live comment error."""

    def __init__(self, message: str, code: str = "live_comment_error"):
        self.message = message
        self.code = code
        super().__init__(message)


class InvalidInputError(LiveCommentError):
    """Missing, empty or wrong-typed field."""

    def __init__(self, message: str = "Invalid input"):
        super().__init__(message, "invalid_input")


class MalformedRequestError(LiveCommentError):
    """Request body could not be parsed."""

    def __init__(self, message: str = "invalid json"):
        super().__init__(message, "malformed_request")


class CommentNotFoundError(LiveCommentError):
    """Comment not found."""

    def __init__(self, comment_id: int):
        self.comment_id = comment_id
        super().__init__(f"Comment {comment_id} not found", "comment_not_found")


class ReplyNotAllowedError(LiveCommentError):
    """Replies were explicitly disabled for the comment."""

    def __init__(self, comment_id: int):
        self.comment_id = comment_id
        super().__init__(
            f"Comment {comment_id} does not accept replies", "reply_not_allowed"
        )


class ModerationRejectedError(LiveCommentError):
    """Message contains banned words."""

    def __init__(self, detected_words: list[str]):
        self.detected_words = detected_words
        super().__init__("Message contains banned words", "moderation_rejected")
