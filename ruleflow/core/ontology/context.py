"""Execution context model for step evaluation."""

from __future__ import annotations

from typing import Any, Literal

from pydantic import ConfigDict, Field
from pydantic.alias_generators import to_camel

from .types import DocumentModel


class ExecutionContext(DocumentModel):
    """Per-call identity and environment record.

    The context is read-only input to rule and guard evaluation. Phases that
    change it (``setContext`` actions, response mapping) edit a copy of
    ``to_document()`` and build a new instance with ``from_document``.

    Example:
        {
            "tenantId": "acme",
            "userId": "u-1",
            "role": "agent",
            "roles": ["agent"],
            "country": "US",
            "locale": "en-US",
            "timezone": "America/New_York",
            "device": "desktop"
        }
    """

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        frozen=True,
        extra="allow",
    )

    tenant_id: str
    user_id: str
    role: str = ""
    roles: list[str] = Field(default_factory=list)

    # Optional organisational scoping
    org_id: str | None = None
    program_id: str | None = None
    issuer_id: str | None = None

    country: str = ""
    locale: str = "en-US"
    timezone: str = "UTC"
    device: Literal["mobile", "tablet", "desktop"] = "desktop"
    permissions: list[str] = Field(default_factory=list)
    feature_flags: dict[str, bool] = Field(default_factory=dict)

    def to_document(self) -> dict[str, Any]:
        """Dump to the camelCase dict that ``context.*`` paths resolve against."""
        return self.model_dump(mode="json", by_alias=True)

    @classmethod
    def from_document(cls, document: dict[str, Any]) -> ExecutionContext:
        """Build a context from a camelCase dict (e.g. after response mapping)."""
        return cls.model_validate(document)

    def all_roles(self) -> set[str]:
        """Primary role plus the role set."""
        roles = set(self.roles)
        if self.role:
            roles.add(self.role)
        return roles
