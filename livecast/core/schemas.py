"""Shared Pydantic base schema.

Field names are snake_case in Python and camelCase on the wire, which is what
the browser clients read (``createdAt``, ``needsReply``, ``commentId``).
"""

from typing import Any

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    """Base model serialized with camelCase aliases."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    def to_payload(self) -> dict[str, Any]:
        """JSON-ready dict as sent to clients."""
        return self.model_dump(mode="json", by_alias=True)
