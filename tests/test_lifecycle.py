"""Tests for the install/activate cycle and generation cleanup."""

from __future__ import annotations

from unittest.mock import MagicMock

import pytest

from fetchcache.cache import CacheStore
from fetchcache.exceptions import StoreError
from fetchcache.lifecycle import LifecycleManager
from fetchcache.models import GenerationSet, LifecycleState
from fetchcache.registry import Registration


@pytest.fixture
def current() -> GenerationSet:
    return GenerationSet(api="api-v2", assets="assets-v2")


@pytest.fixture
def controller() -> MagicMock:
    mock = MagicMock()
    mock.version = "v2"
    return mock


@pytest.fixture
def manager(store: CacheStore, current: GenerationSet, registration: Registration, controller) -> LifecycleManager:
    return LifecycleManager(store, current, registration, controller)


class TestInstall:
    def test_initial_state(self, manager: LifecycleManager) -> None:
        assert manager.state == LifecycleState.PARSED
        assert manager.skip_waiting is False

    def test_install_skips_waiting(self, manager, registration, controller) -> None:
        manager.install()
        assert manager.state == LifecycleState.INSTALLING
        assert manager.skip_waiting is True
        assert registration.waiting is controller
        assert registration.controller is None

    def test_install_does_not_touch_generations(self, manager, store: CacheStore) -> None:
        store.open("assets-v1")
        manager.install()
        assert store.list_generations() == {"assets-v1"}


class TestActivate:
    def test_purges_stale_generations(self, manager, store: CacheStore) -> None:
        for name in ("assets-v1", "api-v1", "assets-v2"):
            store.open(name)

        purged = manager.activate()

        assert purged == ["api-v1", "assets-v1"]
        assert store.list_generations() == {"assets-v2"}
        assert manager.state == LifecycleState.ACTIVE
        assert manager.last_purged == purged

    def test_current_api_generation_appears_once_created(self, manager, store: CacheStore) -> None:
        for name in ("assets-v1", "api-v1", "assets-v2"):
            store.open(name)

        manager.activate()
        store.open("api-v2")

        assert store.list_generations() == {"assets-v2", "api-v2"}

    def test_nothing_to_purge(self, manager, store: CacheStore) -> None:
        store.open("api-v2")
        assert manager.activate() == []
        assert store.list_generations() == {"api-v2"}

    def test_unrelated_names_are_purged_too(self, manager, store: CacheStore) -> None:
        store.open("someone-elses-cache")
        manager.activate()
        assert store.list_generations() == set()

    def test_claims_registration(self, manager, registration: Registration, controller) -> None:
        manager.install()
        manager.activate()
        assert registration.controller is controller
        assert registration.waiting is None

    def test_activate_installs_first(self, manager, registration, controller) -> None:
        manager.activate()
        assert manager.skip_waiting is True
        assert registration.controller is controller

    def test_store_failure_propagates(self, current, registration, controller) -> None:
        store = MagicMock(spec=CacheStore)
        store.list_generations.return_value = {"api-v1"}
        store.delete_generation.side_effect = StoreError("disk gone")
        manager = LifecycleManager(store, current, registration, controller)

        with pytest.raises(StoreError):
            manager.activate()
        assert manager.state == LifecycleState.ACTIVATING


class TestRegistration:
    def test_claim_counts_open_sessions(self, registration: Registration, controller) -> None:
        registration.attach(object())
        registration.attach(object())
        assert registration.claim(controller) == 2

    def test_detach(self, registration: Registration) -> None:
        session = object()
        registration.attach(session)
        registration.detach(session)
        assert registration.sessions == frozenset()
