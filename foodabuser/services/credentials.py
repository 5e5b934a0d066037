"""Key/value storage for credentials and auth preferences.

Two tiers back the ``CredentialVault``:

* the *secure* tier, a JSON file readable by the owner only (``0o600``
  inside a ``0o700`` directory);
* the *fallback* tier, a plain JSON file used when the secure tier
  errors out or does not answer within ``SECURE_STORE_TIMEOUT_SECONDS``.

Falling back is a degraded-security condition: it is logged with
``event=secure_store_degraded`` and exposed as ``vault.degraded``.
The attempt counter lives in a plain ``JsonFileStore`` of its own.
"""

from __future__ import annotations

import asyncio
import json
import logging
import os
from pathlib import Path
from typing import Protocol

logger = logging.getLogger(__name__)


class SecretBackend(Protocol):
    async def get(self, key: str) -> str | None: ...

    async def set(self, key: str, value: str) -> None: ...

    async def delete(self, key: str) -> None: ...


class JsonFileStore:
    """Async string key/value store persisted as one JSON object.

    Writes go to a temporary file that atomically replaces the original.
    Blocking file I/O runs in a worker thread.

    Args:
        path: JSON file location; parent directories are created on write.
        mode: Optional permission bits for the file (its directory gets
            the same bits plus the execute bit for the owner).
    """

    def __init__(self, path: Path, mode: int | None = None) -> None:
        self.path = Path(path)
        self._mode = mode
        self._lock = asyncio.Lock()

    # --- sync helpers (run in a thread) -----------------------------------
    def _read(self) -> dict[str, str]:
        try:
            text = self.path.read_text(encoding="utf-8")
        except FileNotFoundError:
            return {}
        try:
            data = json.loads(text)
        except json.JSONDecodeError:
            logger.warning(
                "Unreadable key/value file %s ignored", self.path, extra={"event": "kv_corrupt"}
            )
            return {}
        return {str(k): str(v) for k, v in data.items()} if isinstance(data, dict) else {}

    def _write(self, data: dict[str, str]) -> None:
        directory = self.path.parent
        directory.mkdir(parents=True, exist_ok=True)
        if self._mode is not None:
            os.chmod(directory, self._mode | 0o100)
        tmp = self.path.with_name(self.path.name + ".tmp")
        tmp.write_text(json.dumps(data, ensure_ascii=False), encoding="utf-8")
        if self._mode is not None:
            os.chmod(tmp, self._mode)
        tmp.replace(self.path)

    # --- async API ----------------------------------------------------------
    async def get(self, key: str) -> str | None:
        data = await asyncio.to_thread(self._read)
        return data.get(key)

    async def set(self, key: str, value: str) -> None:
        async with self._lock:
            data = await asyncio.to_thread(self._read)
            data[key] = value
            await asyncio.to_thread(self._write, data)

    async def delete(self, key: str) -> None:
        async with self._lock:
            data = await asyncio.to_thread(self._read)
            if data.pop(key, None) is not None:
                await asyncio.to_thread(self._write, data)


class CredentialVault:
    """Secure tier with a bounded timeout and a logged fallback tier.

    Reads prefer the secure tier and consult the fallback when the secure
    tier has no value (a secret written while degraded lives there).
    Successful secure writes drop any stale fallback copy.
    """

    def __init__(
        self, secure: SecretBackend, fallback: SecretBackend, timeout: float = 2.0
    ) -> None:
        self._secure = secure
        self._fallback = fallback
        self._timeout = timeout
        self.degraded = False

    def _degrade(self, operation: str, exc: BaseException) -> None:
        self.degraded = True
        logger.warning(
            "Secure store %s failed (%s); using fallback storage",
            operation,
            exc.__class__.__name__,
            extra={"event": "secure_store_degraded", "degraded": True},
        )

    async def get(self, key: str) -> str | None:
        try:
            value = await asyncio.wait_for(self._secure.get(key), self._timeout)
        except (asyncio.TimeoutError, OSError) as exc:
            self._degrade("read", exc)
            return await self._fallback.get(key)
        if value is None:
            return await self._fallback.get(key)
        return value

    async def set(self, key: str, value: str) -> None:
        try:
            await asyncio.wait_for(self._secure.set(key, value), self._timeout)
        except (asyncio.TimeoutError, OSError) as exc:
            self._degrade("write", exc)
            await self._fallback.set(key, value)
            return
        await self._fallback.delete(key)

    async def delete(self, key: str) -> None:
        try:
            await asyncio.wait_for(self._secure.delete(key), self._timeout)
        except (asyncio.TimeoutError, OSError) as exc:
            self._degrade("delete", exc)
        await self._fallback.delete(key)
