"""Mapping entry model shared by request and response maps."""

from __future__ import annotations

from typing import Any

from pydantic import ConfigDict, Field, model_validator

from ruleflow.core.ontology.types import DocumentModel


class MappingSource(DocumentModel):
    """Where a mapped value comes from and how it is shaped.

    A bare string is accepted as shorthand for ``{"from": <string>}``.
    """

    model_config = ConfigDict(extra="forbid")

    from_: str = Field(..., alias="from", description="ValueRef to read")
    transform: str | None = Field(None, description="Transform expression, e.g. upper($)")
    default: Any = Field(None, description="Used when the source is absent")

    @model_validator(mode="before")
    @classmethod
    def _coerce_shorthand(cls, value: Any) -> Any:
        if isinstance(value, str):
            return {"from": value}
        return value

    @property
    def has_default(self) -> bool:
        """True when ``default`` was given explicitly (``null`` included)."""
        return "default" in self.model_fields_set
