"""Shared base types for declarative documents and traces."""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel

# JSON value as produced by json.loads / yaml.safe_load
JSONValue = Any
JSONObject = dict[str, Any]


class DocumentModel(BaseModel):
    """Base model for documents exchanged as camelCase JSON.

    Attributes are snake_case in Python; both spellings are accepted on input
    and ``to_json_dict`` emits camelCase.
    """

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    def to_json_dict(self) -> dict[str, Any]:
        """Serialize to a plain JSON-compatible dict with camelCase keys."""
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)
