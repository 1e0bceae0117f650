"""Pytest fixtures for test suite."""

from pathlib import Path
from typing import Any, Callable

import httpx
import pytest

from ruleflow.api_orchestrator import FetchFn, create_httpx_fetch
from ruleflow.core import ExecutionContext, Settings
from ruleflow.flow import FlowSchema


# =============================================================================
# Core Fixtures
# =============================================================================


@pytest.fixture
def fixtures_dir() -> Path:
    """Path to the test fixtures directory."""
    return Path(__file__).parent / "fixtures"


@pytest.fixture
def bundle_dir(fixtures_dir: Path) -> Path:
    """Path to the sample application bundle."""
    return fixtures_dir / "bundle"


@pytest.fixture
def settings() -> Settings:
    """Settings isolated from the environment and any .env file."""
    return Settings(_env_file=None, validate_documents=True, log_traces=False)


@pytest.fixture
def context() -> ExecutionContext:
    """Sample execution context for a US agent."""
    return ExecutionContext(
        tenant_id="acme",
        user_id="u-1",
        role="agent",
        roles=["agent"],
        country="US",
        locale="en-US",
        timezone="America/New_York",
        device="desktop",
        feature_flags={"beta": True},
    )


@pytest.fixture
def data() -> dict[str, Any]:
    """Sample data snapshot."""
    return {
        "email": "Jane.Doe@Example.com",
        "amount": 250,
        "items": [{"sku": "A-1", "qty": 2}, {"sku": "B-2", "qty": 1}],
        "customer": {"name": "Jane", "address": {"city": "Austin"}},
    }


# =============================================================================
# Flow Fixtures
# =============================================================================


@pytest.fixture
def simple_flow() -> FlowSchema:
    """Two-page flow: start --next--> review."""
    return FlowSchema.model_validate(
        {
            "initialState": "start",
            "states": {
                "start": {"uiPageId": "p1", "on": {"next": {"to": "review"}}},
                "review": {"uiPageId": "p2", "on": {}},
            },
        }
    )


@pytest.fixture
def simple_ui_schemas() -> dict[str, dict[str, Any]]:
    """UI schemas for the simple flow's pages."""
    return {
        "p1": {"version": "1.0", "pageId": "p1", "layout": {"id": "root", "type": "stack"}, "components": []},
        "p2": {"version": "1.0", "pageId": "p2", "layout": {"id": "root", "type": "stack"}, "components": []},
    }


# =============================================================================
# HTTP Fixtures
# =============================================================================


def mock_fetch(handler: Callable[[httpx.Request], httpx.Response]) -> FetchFn:
    """Fetch function that routes every request to ``handler``."""

    async def fetch(url, init):
        async with httpx.AsyncClient(transport=httpx.MockTransport(handler)) as client:
            return await create_httpx_fetch(client)(url, init)

    return fetch


@pytest.fixture
def recorded_requests() -> list[httpx.Request]:
    """Requests seen by ``json_fetch``."""
    return []


@pytest.fixture
def json_fetch(recorded_requests: list[httpx.Request]) -> FetchFn:
    """Fetch function answering every request with a fixed JSON customer."""

    def handler(request: httpx.Request) -> httpx.Response:
        recorded_requests.append(request)
        return httpx.Response(200, json={"id": "c-42", "tier": "gold", "name": "Jane Doe"})

    return mock_fetch(handler)


@pytest.fixture
def fetch_factory() -> Callable[[Callable[[httpx.Request], httpx.Response]], FetchFn]:
    """Build a fetch function from a MockTransport handler."""
    return mock_fetch
