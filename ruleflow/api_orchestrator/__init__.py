"""API orchestrator - declarative REST calls bound to flow transitions."""

from .schemas import HttpMethod, RequestMap, ResponseMap, ApiMapping
from .service import ApiResult, append_query, call_api
from .transport import FetchFn, FetchInit, create_default_fetch, create_httpx_fetch, default_fetch

__all__ = [
    # Schemas
    "HttpMethod",
    "RequestMap",
    "ResponseMap",
    "ApiMapping",
    # Orchestrator
    "ApiResult",
    "append_query",
    "call_api",
    # Transport
    "FetchFn",
    "FetchInit",
    "create_default_fetch",
    "create_httpx_fetch",
    "default_fetch",
]
