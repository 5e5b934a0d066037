"""Composition root: builds and initializes the application objects.

``build_container`` wires settings, logging, the record store, the
credential vault and the session guard, then opens the store and
initializes the guard concurrently.  Startup is bounded by
``INIT_TIMEOUT_SECONDS``: whatever has not finished by then is
cancelled, the guard settles on "not authenticated" and an unfinished
store runs degraded.
"""

from __future__ import annotations

import asyncio
import functools
import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Callable

from foodabuser.core.config import Settings, get_settings
from foodabuser.core.logging import setup_logging
from foodabuser.core.time import utc_now
from foodabuser.services.credentials import CredentialVault, JsonFileStore, SecretBackend
from foodabuser.services.guard import BiometricProvider, SessionGuard
from foodabuser.services.store import RecordStore
from foodabuser.services.transfer import clear_all

logger = logging.getLogger(__name__)

SECURE_FILE_MODE = 0o600


@dataclass
class AppContainer:
    settings: Settings
    store: RecordStore
    vault: CredentialVault
    preferences: SecretBackend
    guard: SessionGuard

    async def aclose(self) -> None:
        await self.store.close()


def create_container(
    settings: Settings,
    *,
    clock: Callable[[], datetime] = utc_now,
    biometrics: BiometricProvider | None = None,
    secure_backend: SecretBackend | None = None,
) -> AppContainer:
    """Construct every component without touching storage."""
    store = RecordStore(settings, clock=clock)
    secure = secure_backend or JsonFileStore(
        settings.SECURE_STORE_DIR / "credentials.json", mode=SECURE_FILE_MODE
    )
    fallback = JsonFileStore(settings.DATA_DIR / "credentials_fallback.json")
    vault = CredentialVault(secure, fallback, timeout=settings.SECURE_STORE_TIMEOUT_SECONDS)
    preferences = JsonFileStore(settings.DATA_DIR / "preferences.json")
    guard = SessionGuard(
        settings,
        vault,
        preferences,
        functools.partial(clear_all, store),
        biometrics=biometrics,
        clock=clock,
    )
    return AppContainer(
        settings=settings, store=store, vault=vault, preferences=preferences, guard=guard
    )


async def initialize(container: AppContainer) -> None:
    """Open the store and initialize the guard concurrently, with a time bound."""
    store_task = asyncio.create_task(container.store.open(), name="store_open")
    guard_task = asyncio.create_task(container.guard.initialize(), name="guard_init")
    timeout = container.settings.INIT_TIMEOUT_SECONDS

    done, pending = await asyncio.wait({store_task, guard_task}, timeout=timeout)
    for task in pending:
        task.cancel()
    if pending:
        await asyncio.gather(*pending, return_exceptions=True)
        logger.warning(
            "Initialization did not finish within %.1fs",
            timeout,
            extra={"event": "init_timeout", "degraded": True},
        )

    for task in done:
        exc = task.exception()
        if exc is not None:
            logger.error(
                "Initialization step %s failed",
                task.get_name(),
                extra={"event": "init_failed"},
                exc_info=exc,
            )

    if store_task in pending or store_task.exception() is not None:
        container.store.mark_unavailable()
    if guard_task in pending or guard_task.exception() is not None:
        container.guard.force_unauthenticated()

    logger.info(
        "Application initialized",
        extra={
            "event": "init_done",
            "state": container.guard.state.value,
            "degraded": not container.store.available,
        },
    )


async def build_container(
    settings: Settings | None = None,
    *,
    clock: Callable[[], datetime] = utc_now,
    biometrics: BiometricProvider | None = None,
    secure_backend: SecretBackend | None = None,
    configure_logging: bool = True,
) -> AppContainer:
    """Construct and initialize the application objects."""
    settings = settings or get_settings()
    if configure_logging:
        setup_logging(settings.LOG_LEVEL)
    container = create_container(
        settings, clock=clock, biometrics=biometrics, secure_backend=secure_backend
    )
    await initialize(container)
    return container
