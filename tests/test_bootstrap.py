"""Startup wiring and the bounded initialization."""

from __future__ import annotations

import asyncio

from foodabuser.bootstrap import build_container
from foodabuser.db.session import Database
from foodabuser.services.guard import AuthState
from tests.conftest import make_settings


class _StalledBackend:
    async def _stall(self, *args: object) -> None:
        await asyncio.sleep(3600)

    get = set = delete = _stall


class TestBuildContainer:
    async def test_fresh_install(self, settings, clock):
        container = await build_container(settings, clock=clock, configure_logging=False)
        try:
            assert container.store.available
            assert container.guard.state is AuthState.AWAITING_PIN_SETUP
            assert not container.vault.degraded
        finally:
            await container.aclose()

    async def test_disabled_store_still_decides_auth(self, tmp_path, clock):
        settings = make_settings(tmp_path, STORE_ENABLED=False)
        container = await build_container(settings, clock=clock, configure_logging=False)
        assert not container.store.available
        assert container.guard.state is AuthState.AWAITING_PIN_SETUP
        await container.aclose()

    async def test_slow_secure_store_degrades(self, tmp_path, clock):
        settings = make_settings(tmp_path, SECURE_STORE_TIMEOUT_SECONDS=0.05)
        container = await build_container(
            settings, clock=clock, secure_backend=_StalledBackend(), configure_logging=False
        )
        try:
            assert container.vault.degraded
            assert container.guard.state is AuthState.AWAITING_PIN_SETUP
            assert (await container.guard.status()).degraded
        finally:
            await container.aclose()

    async def test_stalled_init_is_forced_unauthenticated(self, tmp_path, clock):
        settings = make_settings(
            tmp_path, SECURE_STORE_TIMEOUT_SECONDS=60, INIT_TIMEOUT_SECONDS=0.2
        )
        container = await build_container(
            settings, clock=clock, secure_backend=_StalledBackend(), configure_logging=False
        )
        try:
            assert container.guard.state is AuthState.AWAITING_PIN_ENTRY
            assert not container.guard.is_authenticated
        finally:
            await container.aclose()

    async def test_stalled_store_is_degraded_and_engine_disposed(
        self, tmp_path, clock, monkeypatch
    ):
        disposed: list[Database] = []
        real_dispose = Database.dispose

        async def stalled_schema(self: Database) -> None:
            await asyncio.sleep(3600)

        async def tracking_dispose(self: Database) -> None:
            disposed.append(self)
            await real_dispose(self)

        monkeypatch.setattr(Database, "create_schema", stalled_schema)
        monkeypatch.setattr(Database, "dispose", tracking_dispose)

        settings = make_settings(tmp_path, INIT_TIMEOUT_SECONDS=0.2)
        container = await build_container(settings, clock=clock, configure_logging=False)
        try:
            assert not container.store.available
            assert len(disposed) == 1
            assert container.guard.state is AuthState.AWAITING_PIN_SETUP
        finally:
            await container.aclose()
