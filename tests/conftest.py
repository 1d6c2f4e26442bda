"""Test fixtures and configuration for vpsdash tests.

This module provides shared fixtures organized into:
- Time utilities: deterministic clock and ID generation
- Fetch fixtures: scripted log fetchers for the poller
- Backend fixtures: an httpx mock transport standing in for the dashboard API
"""

from __future__ import annotations

import asyncio
from collections.abc import Callable, Iterable
from datetime import UTC, datetime, timedelta
from typing import Any

import httpx
import pytest

from vpsdash.core.models import LogSnapshot, TargetRef
from vpsdash.services.poller import ProgressPoller

# =============================================================================
# Time Utilities
# =============================================================================


class MockClock:
    """Mock clock for deterministic time-based testing.

    Usage:
        clock = MockClock()
        clock.advance(60)  # Advance by 60 seconds
    """

    def __init__(self, initial: datetime | None = None) -> None:
        self._time = initial or datetime(2024, 1, 1, 12, 0, 0, tzinfo=UTC)

    def __call__(self) -> datetime:
        return self._time

    def advance(self, seconds: int) -> None:
        """Advance the clock by the specified seconds."""
        self._time += timedelta(seconds=seconds)


class MockIdGenerator:
    """Mock ID generator for deterministic ID generation.

    Usage:
        gen = MockIdGenerator(prefix="run")
        gen()  # Returns "run-0001"
    """

    def __init__(self, prefix: str = "run") -> None:
        self._counter = 0
        self._prefix = prefix

    def __call__(self) -> str:
        self._counter += 1
        return f"{self._prefix}-{self._counter:04d}"


@pytest.fixture
def clock() -> MockClock:
    """Provide a mock clock."""
    return MockClock()


@pytest.fixture
def id_generator() -> MockIdGenerator:
    """Provide a mock ID generator."""
    return MockIdGenerator()


# =============================================================================
# Fetch Fixtures
# =============================================================================


class ScriptedFetcher:
    """Log fetcher that replays a script of results.

    Each item is either a LogSnapshot (returned) or an Exception (raised).
    The last item repeats once the script is exhausted.
    """

    def __init__(self, script: Iterable[LogSnapshot | Exception]) -> None:
        self._script = list(script)
        self.calls = 0

    async def __call__(self, target: TargetRef) -> LogSnapshot:
        item = self._script[min(self.calls, len(self._script) - 1)]
        self.calls += 1
        if isinstance(item, Exception):
            raise item
        return item


class BlockingFetcher:
    """Log fetcher that waits for `release` before answering."""

    def __init__(self, result: LogSnapshot) -> None:
        self.result = result
        self.release = asyncio.Event()
        self.started = asyncio.Event()
        self.calls = 0

    async def __call__(self, target: TargetRef) -> LogSnapshot:
        self.calls += 1
        self.started.set()
        await self.release.wait()
        return self.result


@pytest.fixture
def scripted() -> type[ScriptedFetcher]:
    return ScriptedFetcher


@pytest.fixture
def blocking() -> type[BlockingFetcher]:
    return BlockingFetcher


@pytest.fixture
def target() -> TargetRef:
    return TargetRef(server_id="srv-1", app_id="app-1")


@pytest.fixture
def make_poller(
    clock: MockClock, id_generator: MockIdGenerator
) -> Callable[..., ProgressPoller]:
    """Factory for pollers that tick without delay."""

    def _make_poller(**kwargs: Any) -> ProgressPoller:
        options: dict[str, Any] = {
            "interval": 0,
            "max_attempts": 60,
            "fetch_timeout": 1.0,
            "clock": clock,
            "id_generator": id_generator,
        }
        options.update(kwargs)
        return ProgressPoller(**options)

    return _make_poller


# =============================================================================
# Backend Fixtures
# =============================================================================


class FakeBackend:
    """In-memory dashboard backend served through httpx.MockTransport.

    Records every request and answers app endpoints from `apps`, a map of
    app id to {"logs": ..., "status": ...}. Missing apps answer 404.
    """

    def __init__(self) -> None:
        self.apps: dict[str, dict[str, Any]] = {}
        self.requests: list[httpx.Request] = []
        self.fail_actions_with: int | None = None

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        parts = request.url.path.strip("/").split("/")
        # /servers/{server}/apps/{app}[/action]
        if len(parts) < 4 or parts[0] != "servers" or parts[2] != "apps":
            return httpx.Response(404, json={"message": "Not found"})
        app_id = parts[3]
        action = parts[4] if len(parts) > 4 else None

        if action in ("deploy", "stop") or request.method == "DELETE":
            if self.fail_actions_with is not None:
                return httpx.Response(
                    self.fail_actions_with, json={"message": "Action rejected"}
                )
            if request.method == "DELETE":
                self.apps.pop(app_id, None)
                return httpx.Response(204)
            return httpx.Response(200, json={"id": app_id, "name": app_id})

        if (app := self.apps.get(app_id)) is None:
            return httpx.Response(404, json={"message": "App not found"})
        return httpx.Response(200, json={"id": app_id, "name": app_id, **app})

    @property
    def transport(self) -> httpx.MockTransport:
        return httpx.MockTransport(self.handler)


@pytest.fixture
def backend() -> FakeBackend:
    return FakeBackend()
