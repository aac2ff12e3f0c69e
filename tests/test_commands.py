"""Tests for the fetchcache CLI commands (fetch, generations, config)."""

from __future__ import annotations

import json
from pathlib import Path

import pytest
from typer.testing import CliRunner

from fetchcache import __version__
from fetchcache.app import app
from fetchcache.cache import CacheStore, request_key
from fetchcache.client import OriginClient
from fetchcache.config import get_cache_dir, load_global_config
from fetchcache.models import CachedResponse

from conftest import ORIGIN, FakeOrigin

runner = CliRunner()


def _invoke(*args: str):
    return runner.invoke(app, ["--no-color", *args])


@pytest.fixture
def routed_origin(isolated_config: Path, origin: FakeOrigin, monkeypatch: pytest.MonkeyPatch) -> FakeOrigin:
    """Route every OriginClient the CLI builds to the fake origin."""

    def _client(config=None):
        return OriginClient(config, transport=origin.transport())

    monkeypatch.setattr("fetchcache.client.OriginClient", _client)
    return origin


def _seed_generation(name: str, url: str | None = None) -> None:
    store = CacheStore(get_cache_dir())
    try:
        generation = store.open(name)
        if url is not None:
            generation.put(
                request_key("GET", url),
                CachedResponse(url=url, status_code=200, headers={}, body=b"x"),
            )
    finally:
        store.close()


class TestRoot:
    def test_version(self) -> None:
        result = _invoke("--version")
        assert result.exit_code == 0
        assert __version__ in result.output

    def test_help_lists_commands(self) -> None:
        result = _invoke("--help")
        assert result.exit_code == 0
        for name in ("fetch", "generations", "config"):
            assert name in result.output


# ---------------------------------------------------------------------------
# fetch
# ---------------------------------------------------------------------------


class TestFetch:
    def test_asset_served_from_cache_on_second_run(self, routed_origin: FakeOrigin) -> None:
        url = f"{ORIGIN}/static/app.css"
        routed_origin.respond(url, body=b"body{}", headers={"content-type": "text/css"})

        first = _invoke("fetch", url, "-d", "style")
        second = _invoke("fetch", url, "-d", "style")

        assert first.exit_code == 0, first.output
        assert "source: network" in first.output
        assert "source: hit" in second.output
        assert "body{}" in second.output
        assert routed_origin.calls_to(url) == 1

    def test_relative_url_uses_origin(self, routed_origin: FakeOrigin) -> None:
        routed_origin.respond(f"{ORIGIN}/api/posts", body=b'{"posts": []}', headers={"content-type": "application/json"})

        result = _invoke("--origin", ORIGIN, "--json", "fetch", "/api/posts")

        assert result.exit_code == 0, result.output
        assert '"posts": []' in result.output

    def test_offline_navigation(self, routed_origin: FakeOrigin) -> None:
        routed_origin.offline = True

        result = _invoke("fetch", f"{ORIGIN}/profile", "--navigate")

        assert result.exit_code == 0
        assert "HTTP 503" in result.output
        assert "source: synthesized" in result.output
        assert "Offline" in result.output

    def test_background_refresh_persists(self, routed_origin: FakeOrigin) -> None:
        url = f"{ORIGIN}/api/feed"
        routed_origin.respond(url, body=b"E")
        _invoke("fetch", url)
        routed_origin.respond(url, body=b"N")

        stale = _invoke("fetch", url)
        fresh = _invoke("fetch", url)

        assert "source: hit" in stale.output
        assert stale.stdout.strip().endswith("E")
        assert fresh.stdout.strip().endswith("N")

    def test_fetch_purges_previous_version(self, routed_origin: FakeOrigin) -> None:
        _seed_generation("fetchcache-assets-v0")
        routed_origin.respond(f"{ORIGIN}/", body=b"home")

        _invoke("fetch", f"{ORIGIN}/", "--navigate")

        assert _invoke("generations", "list").output.count("fetchcache-assets-v0") == 0

    def test_relative_url_without_origin_fails(self, routed_origin: FakeOrigin) -> None:
        result = _invoke("fetch", "/api/posts")
        assert result.exit_code != 0

    def test_unintercepted_network_failure(self, routed_origin: FakeOrigin) -> None:
        routed_origin.offline = True
        result = _invoke("fetch", "-X", "POST", f"{ORIGIN}/api/posts")
        assert result.exit_code != 0


# ---------------------------------------------------------------------------
# generations
# ---------------------------------------------------------------------------


class TestGenerations:
    def test_list_empty(self, isolated_config: Path) -> None:
        result = _invoke("generations", "list")
        assert result.exit_code == 0
        assert "No cache generations." in result.output

    def test_list_marks_current(self, isolated_config: Path) -> None:
        _seed_generation("fetchcache-api-v1", f"{ORIGIN}/api/posts")
        _seed_generation("fetchcache-api-v0")

        result = _invoke("--json", "generations", "list")

        assert result.exit_code == 0
        rows = json.loads(result.stdout)
        assert rows == [
            {"generation": "fetchcache-api-v0", "entries": "0", "current": "no"},
            {"generation": "fetchcache-api-v1", "entries": "1", "current": "yes"},
        ]

    def test_show(self, isolated_config: Path) -> None:
        _seed_generation("fetchcache-api-v1", f"{ORIGIN}/api/posts")

        result = _invoke("--plain", "generations", "show", "fetchcache-api-v1")

        assert result.exit_code == 0
        assert f"{ORIGIN}/api/posts" in result.stdout
        assert "1 entry" in result.output

    def test_show_missing(self, isolated_config: Path) -> None:
        result = _invoke("generations", "show", "nope")
        assert result.exit_code == 2
        assert "No such generation" in result.output

    def test_activate_purges_stale(self, isolated_config: Path) -> None:
        _seed_generation("fetchcache-assets-v1")
        _seed_generation("fetchcache-assets-v0")
        _seed_generation("fetchcache-api-v0")

        result = _invoke("--force", "--cache-version", "v1", "generations", "activate")

        assert result.exit_code == 0, result.output
        assert "fetchcache-api-v0, fetchcache-assets-v0" in result.output
        store = CacheStore(get_cache_dir())
        try:
            assert store.list_generations() == {"fetchcache-assets-v1"}
        finally:
            store.close()

    def test_activate_declined(self, isolated_config: Path) -> None:
        _seed_generation("fetchcache-assets-v0")

        result = runner.invoke(app, ["--no-color", "generations", "activate"], input="n\n")

        assert "Cancelled." in result.output
        assert "fetchcache-assets-v0" in _invoke("generations", "list").output

    def test_activate_disabled(self, isolated_config: Path) -> None:
        _invoke("config", "set", "cache.enabled", "false")
        result = _invoke("--force", "generations", "activate")
        assert result.exit_code == 0
        assert "disabled" in result.output


# ---------------------------------------------------------------------------
# config
# ---------------------------------------------------------------------------


class TestConfig:
    def test_show_defaults(self, isolated_config: Path) -> None:
        result = _invoke("--json", "--quiet", "config", "show")
        assert result.exit_code == 0
        data = json.loads(result.stdout)
        assert data["cache"]["version"] == "v1"
        assert data["origin"] is None

    def test_set_string(self, isolated_config: Path) -> None:
        result = _invoke("config", "set", "origin", ORIGIN)
        assert result.exit_code == 0
        assert load_global_config().origin == ORIGIN

    def test_set_nested(self, isolated_config: Path) -> None:
        _invoke("config", "set", "cache.version", "v2")
        assert load_global_config().cache.version == "v2"

    def test_set_bool(self, isolated_config: Path) -> None:
        _invoke("config", "set", "request.verify_ssl", "false")
        assert load_global_config().request.verify_ssl is False

    def test_set_optional_number(self, isolated_config: Path) -> None:
        _invoke("config", "set", "request.timeout", "2.5")
        assert load_global_config().request.timeout == 2.5
        _invoke("config", "set", "request.timeout", "none")
        assert load_global_config().request.timeout is None

    def test_set_unknown_key(self, isolated_config: Path) -> None:
        result = _invoke("config", "set", "cache.colour", "blue")
        assert result.exit_code == 2
        assert "Unknown config key" in result.output

    def test_reset(self, isolated_config: Path) -> None:
        _invoke("config", "set", "cache.version", "v9")
        result = _invoke("--force", "config", "reset")
        assert result.exit_code == 0
        assert load_global_config().cache.version == "v1"

    def test_configured_format_is_default(self, isolated_config: Path) -> None:
        _invoke("config", "set", "output.format", "json")

        result = _invoke("--quiet", "config", "show")

        assert result.exit_code == 0
        assert json.loads(result.stdout)["output"]["format"] == "json"

    def test_flag_overrides_configured_format(self, isolated_config: Path) -> None:
        _invoke("config", "set", "output.format", "json")
        _seed_generation("fetchcache-api-v1")

        result = _invoke("--plain", "generations", "list")

        assert result.exit_code == 0
        assert result.stdout.splitlines()[0] == "generation\tentries\tcurrent"

    def test_set_unknown_format(self, isolated_config: Path) -> None:
        result = _invoke("config", "set", "output.format", "yaml")
        assert result.exit_code == 2
        assert load_global_config().output.format == "auto"
