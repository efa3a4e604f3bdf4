"""
pytest configuration and shared fixtures.

Provides isolated Settings pointing at a tmp cache directory and a fake
upstream API built on httpx.MockTransport.
"""

import base64
from typing import Callable, Optional

import httpx
import orjson
import pytest

from utils.config import Settings
from utils.http import BackoffPolicy

TOKEN_URL = "https://api.test/api/get-token"
CONTENT_URL = "https://api.test/api/get-live-classes"


class SleepRecorder:
    """Awaitable stand-in for asyncio.sleep that records delays."""

    def __init__(self) -> None:
        self.delays: list[float] = []

    async def __call__(self, seconds: float) -> None:
        self.delays.append(float(seconds))


class FakeUpstream:
    """
    Fake token + content API.

    Content responses are configured per type; a type mapped to an int
    answers with that HTTP status, a dict is returned as JSON, a str is
    returned as base64 `data`.
    """

    def __init__(self, token: Optional[dict] = None) -> None:
        self.token = token if token is not None else {"timestamp": "123", "signature": "abcdef"}
        self.token_status = 200
        self.content: dict[str, object] = {}
        self.requests: list[httpx.Request] = []

    def content_calls(self) -> list[httpx.Request]:
        return [r for r in self.requests if str(r.url) == CONTENT_URL]

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        url = str(request.url)

        if url == TOKEN_URL:
            if self.token_status != 200:
                return httpx.Response(self.token_status)
            return httpx.Response(200, json=self.token)

        if url == CONTENT_URL:
            content_type = orjson.loads(request.content)["type"]
            answer = self.content.get(content_type, 404)
            if isinstance(answer, int):
                return httpx.Response(answer)
            if isinstance(answer, str):
                encoded = base64.b64encode(answer.encode("utf-8")).decode("ascii")
                return httpx.Response(200, json={"data": encoded})
            return httpx.Response(200, json=answer)

        return httpx.Response(404)

    def client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(transport=httpx.MockTransport(self.handler))


@pytest.fixture
def settings(tmp_path) -> Settings:
    return Settings(
        TOKEN_URL=TOKEN_URL,
        CONTENT_URL=CONTENT_URL,
        CACHE_DIR=str(tmp_path / "cache"),
        STATIC_DIR=str(tmp_path / "static"),
        FETCH_MAX_ATTEMPTS=2,
    )


@pytest.fixture
def sleep() -> SleepRecorder:
    return SleepRecorder()


@pytest.fixture
def policy() -> BackoffPolicy:
    return BackoffPolicy(max_attempts=2)


@pytest.fixture
def upstream() -> FakeUpstream:
    return FakeUpstream()


def sequence_transport(
    responses: list[Callable[[httpx.Request], httpx.Response]],
) -> httpx.MockTransport:
    """Transport that answers successive requests from a list of handlers."""
    calls = iter(responses)

    def handler(request: httpx.Request) -> httpx.Response:
        return next(calls)(request)

    return httpx.MockTransport(handler)
