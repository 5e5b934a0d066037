"""Error taxonomy shared by the store, the session guard and the API.

Messages are carried as i18n keys plus format parameters; call
``error.message(lang)`` to obtain the human-readable text.
"""

from __future__ import annotations

from typing import Any

from foodabuser.i18n import t


class FoodAbuserError(Exception):
    """Base class for all application errors."""

    def __init__(self, key: str, **params: Any) -> None:
        super().__init__(key)
        self.key = key
        self.params = params

    def message(self, lang: str | None = None) -> str:
        """Localised, human-readable description of the error."""
        return t(self.key, lang).format(**self.params)

    def __str__(self) -> str:
        return self.message("EN")


class ValidationFailure(FoodAbuserError):
    """Bad input shape or range (malformed PIN, unreadable backup...)."""


class StorageFailure(FoodAbuserError):
    """I/O, schema or transaction failure in the record store."""


class NotFound(FoodAbuserError):
    """An update referenced an id that does not exist."""


class AuthFailure(FoodAbuserError):
    """Wrong PIN, rejected biometric or active lockout.

    Attributes:
        remaining_attempts: Attempts left before lockout, when relevant.
        lockout_remaining_seconds: Seconds until the lockout ends, when locked.
    """

    def __init__(
        self,
        key: str,
        *,
        remaining_attempts: int | None = None,
        lockout_remaining_seconds: int | None = None,
        **params: Any,
    ) -> None:
        super().__init__(key, **params)
        self.remaining_attempts = remaining_attempts
        self.lockout_remaining_seconds = lockout_remaining_seconds

    @property
    def locked(self) -> bool:
        return self.lockout_remaining_seconds is not None
