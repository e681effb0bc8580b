"""Shared test fixtures for typefetch.

Provides an output-reset fixture, scripted fake transports for driving the
retry loop, and helpers for building clients on top of
:class:`httpx.MockTransport`.  These fixtures are automatically discovered
by pytest and available to all test modules without explicit imports.
"""

from __future__ import annotations

import asyncio
import json
from typing import Any, Callable, Coroutine, Optional

import httpx
import pytest

from typefetch.client import TypeFetchClient
from typefetch.output import reset_output
from typefetch.transport import HttpxTransport, RequestInit


# ---------------------------------------------------------------------------
# Auto-reset global output state between tests
# ---------------------------------------------------------------------------


@pytest.fixture(autouse=True)
def _reset_output_between_tests() -> None:
    """Reset the global OutputManager after every test.

    The OutputManager caches references to sys.stdout/sys.stderr at
    creation time; CliRunner and capsys swap those streams per test.
    """
    yield
    reset_output()


# ---------------------------------------------------------------------------
# Fake transport
# ---------------------------------------------------------------------------


class FakeResponse:
    """Minimal :class:`~typefetch.transport.FetchResponse` for scripted tests."""

    def __init__(
        self,
        status: int = 200,
        body: str = "",
        headers: Optional[dict[str, str]] = None,
    ) -> None:
        self.status = status
        self.ok = 200 <= status < 300
        self.headers = headers or {}
        self._body = body

    async def text(self) -> str:
        return self._body

    async def json(self) -> Any:
        return json.loads(self._body)


def json_response(data: Any, status: int = 200) -> FakeResponse:
    return FakeResponse(status, json.dumps(data), {"content-type": "application/json"})


class ScriptedTransport:
    """Transport that plays back a list of outcomes, one per call.

    Each outcome is either a response object or an exception instance to
    raise.  The last outcome repeats once the script is exhausted.
    """

    def __init__(self, *outcomes: Any) -> None:
        self._outcomes = list(outcomes)
        self.calls: list[tuple[str, RequestInit]] = []

    async def __call__(self, url: str, init: RequestInit) -> Any:
        self.calls.append((url, init))
        index = min(len(self.calls) - 1, len(self._outcomes) - 1)
        outcome = self._outcomes[index]
        if isinstance(outcome, BaseException):
            raise outcome
        return outcome

    @property
    def call_count(self) -> int:
        return len(self.calls)


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def run(coro: Coroutine[Any, Any, Any]) -> Any:
    """Drive a coroutine to completion on a fresh event loop."""
    return asyncio.run(coro)


def mock_transport(handler: Callable[[httpx.Request], httpx.Response]) -> HttpxTransport:
    """Build an :class:`HttpxTransport` whose requests are answered by *handler*."""
    return HttpxTransport(client=httpx.AsyncClient(transport=httpx.MockTransport(handler)))


@pytest.fixture
def make_client() -> Callable[..., TypeFetchClient]:
    """Factory building a client around an httpx mock handler.

    Example::

        client = make_client(handler, retry={"count": 1, "delay_ms": 0})
    """

    def _make(
        handler: Callable[[httpx.Request], httpx.Response],
        config: Any = None,
        **overrides: Any,
    ) -> TypeFetchClient:
        return TypeFetchClient(config, transport=mock_transport(handler), **overrides)

    return _make
