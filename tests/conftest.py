"""Shared test fixtures for fetchcache.

Provides an isolated config environment, global output reset, a cache
store rooted in ``tmp_path``, and :class:`FakeOrigin` -- a scriptable origin
server behind :class:`httpx.MockTransport` that records every request and
can be switched offline or held on a gate.
"""

from __future__ import annotations

import asyncio
from pathlib import Path
from typing import Optional

import httpx
import pytest
import pytest_asyncio

from fetchcache.cache import CacheStore
from fetchcache.client import OriginClient
from fetchcache.models import GenerationSet
from fetchcache.output import OutputFormat, OutputManager, reset_output, set_output
from fetchcache.registry import Registration

ORIGIN = "https://app.example.com"


# ---------------------------------------------------------------------------
# Auto-reset global output state between tests
# ---------------------------------------------------------------------------


@pytest.fixture(autouse=True)
def _reset_output_between_tests() -> None:
    """Reset the global OutputManager after every test.

    CliRunner swaps sys.stdout/sys.stderr; a manager created during one
    test would keep writing to closed streams in the next.
    """
    yield
    reset_output()


# ---------------------------------------------------------------------------
# Fake origin
# ---------------------------------------------------------------------------


class FakeOrigin:
    """Scriptable origin server.

    Unknown URLs answer ``404``. Setting ``offline`` makes every request
    fail with :class:`httpx.ConnectError`; setting ``gate`` to an unset
    :class:`asyncio.Event` holds every request until the event is set.
    """

    def __init__(self) -> None:
        self.routes: dict[str, tuple[int, bytes, dict[str, str]]] = {}
        self.calls: list[str] = []
        self.offline = False
        self.gate: Optional[asyncio.Event] = None

    def respond(
        self,
        url: str,
        status: int = 200,
        body: bytes | str = b"",
        headers: Optional[dict[str, str]] = None,
    ) -> None:
        if isinstance(body, str):
            body = body.encode()
        self.routes[url] = (status, body, headers or {"content-type": "text/plain"})

    def calls_to(self, url: str) -> int:
        return self.calls.count(url)

    async def handler(self, request: httpx.Request) -> httpx.Response:
        url = str(request.url)
        self.calls.append(url)
        if self.gate is not None:
            await self.gate.wait()
        if self.offline:
            raise httpx.ConnectError("connection refused", request=request)
        status, body, headers = self.routes.get(url, (404, b"not found", {}))
        return httpx.Response(status, content=body, headers=headers)

    def transport(self) -> httpx.MockTransport:
        return httpx.MockTransport(self.handler)


@pytest.fixture
def origin() -> FakeOrigin:
    return FakeOrigin()


@pytest_asyncio.fixture
async def network(origin: FakeOrigin) -> OriginClient:
    """An open OriginClient talking to the fake origin."""
    async with OriginClient(transport=origin.transport()) as client:
        yield client


# ---------------------------------------------------------------------------
# Store fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def store(tmp_path: Path) -> CacheStore:
    """A CacheStore rooted in tmp_path, closed after the test."""
    s = CacheStore(tmp_path / "cache")
    yield s
    s.close()


@pytest.fixture
def generations() -> GenerationSet:
    return GenerationSet(api="test-api-v1", assets="test-assets-v1")


@pytest.fixture
def registration() -> Registration:
    return Registration()


# ---------------------------------------------------------------------------
# Config isolation fixture
# ---------------------------------------------------------------------------


@pytest.fixture
def isolated_config(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    """Isolate configuration to a temporary directory.

    Points XDG_CONFIG_HOME, XDG_CACHE_HOME and XDG_DATA_HOME at
    subdirectories of tmp_path, clears FETCHCACHE_* variables and changes
    the working directory to tmp_path.
    """
    monkeypatch.setattr("fetchcache.config._is_xdg_platform", lambda: True)
    monkeypatch.setenv("XDG_CONFIG_HOME", str(tmp_path / "config"))
    monkeypatch.setenv("XDG_CACHE_HOME", str(tmp_path / "cache"))
    monkeypatch.setenv("XDG_DATA_HOME", str(tmp_path / "data"))

    for var in ["FETCHCACHE_ORIGIN", "FETCHCACHE_VERSION"]:
        monkeypatch.delenv(var, raising=False)

    monkeypatch.chdir(tmp_path)
    return tmp_path


# ---------------------------------------------------------------------------
# Output fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def quiet_output() -> OutputManager:
    """Install a quiet PLAIN OutputManager for the test."""
    output = OutputManager(format=OutputFormat.PLAIN, no_color=True, quiet=True)
    set_output(output)
    yield output
    reset_output()


@pytest.fixture
def cli_runner():
    from typer.testing import CliRunner

    return CliRunner()
