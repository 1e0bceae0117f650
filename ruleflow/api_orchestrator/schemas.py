"""API mapping documents - how to build a request and where its response goes."""

from __future__ import annotations

from typing import Literal

from pydantic import ConfigDict, Field

from ruleflow.core.ontology.types import DocumentModel
from ruleflow.mapping.schemas import MappingSource

HttpMethod = Literal["GET", "POST", "PUT", "PATCH", "DELETE"]


class RequestMap(DocumentModel):
    """Request parts built from data and context."""

    model_config = ConfigDict(extra="forbid")

    query: dict[str, MappingSource] | None = None
    headers: dict[str, MappingSource] | None = None
    body: dict[str, MappingSource] | None = None


class ResponseMap(DocumentModel):
    """Target paths in data / context, filled from the response body."""

    model_config = ConfigDict(extra="forbid")

    data: dict[str, MappingSource] | None = None
    context: dict[str, MappingSource] | None = None


class ApiMapping(DocumentModel):
    """A declarative REST call bound to a flow transition.

    Example:
        apiId: lookupCustomer
        method: GET
        endpoint: https://api.example.com/customers
        requestMap:
          query:
            id: {from: data.customerId}
        responseMap:
          data:
            customer.name: response.name
    """

    version: str | None = None
    api_id: str
    type: Literal["rest"] = "rest"
    method: HttpMethod
    endpoint: str = Field(..., min_length=1)
    request_map: RequestMap = Field(default_factory=RequestMap)
    response_map: ResponseMap = Field(default_factory=ResponseMap)
