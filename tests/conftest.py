"""Pytest configuration and fixtures."""

import json
from collections.abc import AsyncGenerator
from typing import Any

import httpx
import pytest
from httpx import ASGITransport, AsyncClient

from trigger_kit.config import Settings
from trigger_kit.main import create_app
from trigger_kit.services.dispatcher import InvocationDispatcher

BOT_TOKEN = "123456:TEST-BOT-TOKEN"


class MockAPI:
    """Routes ``(method, path)`` to canned responses and records every request.

    Several responses registered for the same route are returned in order; the
    last one repeats.
    """

    def __init__(self) -> None:
        self.routes: dict[tuple[str, str], list[httpx.Response]] = {}
        self.requests: list[httpx.Request] = []
        self.client = AsyncClient(transport=httpx.MockTransport(self._handle))

    def add(
        self,
        method: str,
        path: str,
        json: Any = None,
        status_code: int = 200,
        headers: dict[str, str] | None = None,
        content: bytes | None = None,
    ) -> None:
        if content is not None:
            response = httpx.Response(status_code, content=content, headers=headers)
        else:
            response = httpx.Response(status_code, json=json, headers=headers)
        self.routes.setdefault((method.upper(), path), []).append(response)

    def _handle(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        responses = self.routes.get((request.method, request.url.path))
        if not responses:
            return httpx.Response(404, json={"error": "NOT_FOUND"})
        if len(responses) > 1:
            return responses.pop(0)
        return responses[0]

    def calls(self, path: str) -> list[httpx.Request]:
        return [request for request in self.requests if request.url.path == path]

    @staticmethod
    def json_body(request: httpx.Request) -> Any:
        return json.loads(request.content)


@pytest.fixture
def settings() -> Settings:
    return Settings(
        log_level="DEBUG",
        http_timeout_seconds=5.0,
        airtable_client_id="client-id",
        airtable_client_secret="client-secret",
        airtable_scopes=[],
        telegram_bot_token=BOT_TOKEN,
    )


@pytest.fixture
async def mock_api() -> AsyncGenerator[MockAPI, None]:
    api = MockAPI()
    yield api
    await api.client.aclose()


@pytest.fixture
async def client(settings: Settings, mock_api: MockAPI) -> AsyncGenerator[AsyncClient, None]:
    """Create an async test client for the app, wired to the mocked remote APIs."""
    app = create_app(settings)
    app.state.http_client = mock_api.client
    app.state.dispatcher = InvocationDispatcher.from_registry()

    async with AsyncClient(
        transport=ASGITransport(app=app),
        base_url="http://test",
    ) as client:
        yield client
