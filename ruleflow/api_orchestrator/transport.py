"""httpx adapters for the orchestrator's ``fetch_fn`` seam."""

from __future__ import annotations

from typing import Awaitable, Callable, TypedDict

import httpx

from ruleflow.core.config import Settings, get_settings


class FetchInit(TypedDict, total=False):
    """Request options passed to a fetch function."""

    method: str
    headers: dict[str, str]
    body: str | None


FetchFn = Callable[[str, FetchInit], Awaitable[httpx.Response]]


def create_httpx_fetch(client: httpx.AsyncClient) -> FetchFn:
    """Adapt an ``httpx.AsyncClient`` owned by the caller to a fetch function."""

    async def fetch(url: str, init: FetchInit) -> httpx.Response:
        return await client.request(
            init.get("method", "GET"),
            url,
            headers=init.get("headers"),
            content=init.get("body"),
        )

    return fetch


def create_default_fetch(settings: Settings | None = None) -> FetchFn:
    """Fetch function that opens a short-lived client per call."""
    timeout = (settings or get_settings()).http_timeout_seconds

    async def fetch(url: str, init: FetchInit) -> httpx.Response:
        async with httpx.AsyncClient(timeout=timeout) as client:
            response = await create_httpx_fetch(client)(url, init)
            await response.aread()
            return response

    return fetch


async def default_fetch(url: str, init: FetchInit) -> httpx.Response:
    """Fetch with a fresh client and the configured timeout."""
    return await create_default_fetch()(url, init)
