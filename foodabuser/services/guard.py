"""Session guard: local PIN with attempt-limited lockout and biometric shortcut.

The guard is a finite-state machine.  ``AuthState`` enumerates the
states, ``AuthEvent`` the inputs, and ``_TRANSITIONS`` is the complete
table; ``transition()`` is the only way the state changes.

    Uninitialized ──no PIN──► AwaitingPinSetup ──set_pin──► Authenticated
    Uninitialized ──PIN────► AwaitingPinEntry ──verify_pin─► Authenticated
                                   │  ▲
                     5th failure   ▼  │ cooldown over
                                  Locked

Persisted state:

* ``auth_pin_hash`` and ``auth_biometric_enabled`` go through the
  ``CredentialVault``;
* ``auth_pin_attempts`` and ``auth_last_attempt_time`` (epoch ms) go to
  the plain preferences store so the counter survives restarts.

The cooldown is measured from the last failed attempt.  Attempts made
while locked are rejected without touching the counter or its timestamp.
"""

from __future__ import annotations

import asyncio
import logging
import math
from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Awaitable, Callable, Protocol

from foodabuser.core.config import Settings
from foodabuser.core.errors import AuthFailure, ValidationFailure
from foodabuser.core.time import utc_now
from foodabuser.services.credentials import CredentialVault, SecretBackend
from foodabuser.services.pin import hash_pin, needs_rehash, verify_pin_hash

logger = logging.getLogger(__name__)

PIN_HASH_KEY = "auth_pin_hash"
BIOMETRIC_ENABLED_KEY = "auth_biometric_enabled"
PIN_ATTEMPTS_KEY = "auth_pin_attempts"
LAST_ATTEMPT_TIME_KEY = "auth_last_attempt_time"

PIN_MIN_LENGTH = 4
PIN_MAX_LENGTH = 6


class AuthState(str, Enum):
    UNINITIALIZED = "uninitialized"
    AWAITING_PIN_SETUP = "awaiting_pin_setup"
    AWAITING_PIN_ENTRY = "awaiting_pin_entry"
    AUTHENTICATED = "authenticated"
    LOCKED = "locked"


class AuthEvent(str, Enum):
    NO_PIN_FOUND = "no_pin_found"
    PIN_FOUND = "pin_found"
    INIT_TIMED_OUT = "init_timed_out"
    PIN_SET = "pin_set"
    PIN_ACCEPTED = "pin_accepted"
    PIN_REJECTED = "pin_rejected"
    LOCKOUT_STARTED = "lockout_started"
    LOCKOUT_EXPIRED = "lockout_expired"
    BIOMETRIC_ACCEPTED = "biometric_accepted"
    LOGOUT = "logout"
    RESET = "reset"


S, E = AuthState, AuthEvent

_TRANSITIONS: dict[tuple[AuthState, AuthEvent], AuthState] = {
    # startup
    (S.UNINITIALIZED, E.NO_PIN_FOUND): S.AWAITING_PIN_SETUP,
    (S.UNINITIALIZED, E.PIN_FOUND): S.AWAITING_PIN_ENTRY,
    (S.UNINITIALIZED, E.INIT_TIMED_OUT): S.AWAITING_PIN_ENTRY,
    # first PIN
    (S.AWAITING_PIN_SETUP, E.PIN_SET): S.AUTHENTICATED,
    # a forced decision can leave us waiting for a PIN that was never set
    (S.AWAITING_PIN_ENTRY, E.PIN_SET): S.AUTHENTICATED,
    # PIN entry
    (S.AWAITING_PIN_ENTRY, E.PIN_ACCEPTED): S.AUTHENTICATED,
    (S.AWAITING_PIN_ENTRY, E.PIN_REJECTED): S.AWAITING_PIN_ENTRY,
    (S.AWAITING_PIN_ENTRY, E.LOCKOUT_STARTED): S.LOCKED,
    (S.AWAITING_PIN_ENTRY, E.BIOMETRIC_ACCEPTED): S.AUTHENTICATED,
    (S.AWAITING_PIN_ENTRY, E.RESET): S.AWAITING_PIN_SETUP,
    # lockout
    (S.LOCKED, E.LOCKOUT_EXPIRED): S.AWAITING_PIN_ENTRY,
    (S.LOCKED, E.BIOMETRIC_ACCEPTED): S.AUTHENTICATED,
    (S.LOCKED, E.RESET): S.AWAITING_PIN_SETUP,
    # authenticated session
    (S.AUTHENTICATED, E.PIN_SET): S.AUTHENTICATED,
    (S.AUTHENTICATED, E.PIN_ACCEPTED): S.AUTHENTICATED,
    (S.AUTHENTICATED, E.PIN_REJECTED): S.AUTHENTICATED,
    (S.AUTHENTICATED, E.LOCKOUT_STARTED): S.LOCKED,
    (S.AUTHENTICATED, E.BIOMETRIC_ACCEPTED): S.AUTHENTICATED,
    (S.AUTHENTICATED, E.LOGOUT): S.AWAITING_PIN_ENTRY,
    (S.AUTHENTICATED, E.RESET): S.AWAITING_PIN_SETUP,
}

del S, E


class InvalidTransition(ValueError):
    """Raised for an event that is not allowed in the current state."""


def transition(state: AuthState, event: AuthEvent) -> AuthState:
    """Return the state reached from *state* on *event*."""
    try:
        return _TRANSITIONS[(state, event)]
    except KeyError:
        raise InvalidTransition(f"{event.value} is not allowed in {state.value}") from None


# ---------------------------------------------------------------------------
# Biometrics
# ---------------------------------------------------------------------------
class BiometricProvider(Protocol):
    async def is_available(self) -> bool:
        """Hardware present and at least one biometric enrolled."""
        ...

    async def authenticate(self) -> bool: ...


class UnavailableBiometrics:
    """Provider for hosts without biometric hardware."""

    async def is_available(self) -> bool:
        return False

    async def authenticate(self) -> bool:
        return False


@dataclass(frozen=True)
class GuardStatus:
    state: AuthState
    pin_set: bool
    biometric_available: bool
    biometric_enabled: bool
    failed_attempts: int
    lockout_remaining_seconds: int
    reset_available: bool
    degraded: bool

    @property
    def biometric_offered(self) -> bool:
        return self.biometric_available and self.biometric_enabled


# ---------------------------------------------------------------------------
# SessionGuard
# ---------------------------------------------------------------------------
class SessionGuard:
    """Decides whether the record store may be used.

    Args:
        settings: Attempt limits, lockout length and hash cost.
        vault: Storage for the PIN hash and biometric flag.
        preferences: Plain storage for the attempt counter.
        clear_data: Coroutine that wipes every record (used by ``reset``).
        biometrics: Platform biometric provider.
        clock: Returns the current aware time; injectable for tests.
    """

    def __init__(
        self,
        settings: Settings,
        vault: CredentialVault,
        preferences: SecretBackend,
        clear_data: Callable[[], Awaitable[None]],
        *,
        biometrics: BiometricProvider | None = None,
        clock: Callable[[], datetime] = utc_now,
    ) -> None:
        self._settings = settings
        self._vault = vault
        self._prefs = preferences
        self._clear_data = clear_data
        self._biometrics = biometrics or UnavailableBiometrics()
        self._clock = clock
        self._lock = asyncio.Lock()
        self._state = AuthState.UNINITIALIZED
        self._biometric_enabled = False
        self._biometric_available = False

    @property
    def state(self) -> AuthState:
        return self._state

    @property
    def is_authenticated(self) -> bool:
        return self._state is AuthState.AUTHENTICATED

    def _apply(self, event: AuthEvent) -> AuthState:
        previous = self._state
        self._state = transition(previous, event)
        if self._state is not previous:
            logger.info(
                "Auth state %s -> %s",
                previous.value,
                self._state.value,
                extra={"event": f"auth_{event.value}", "state": self._state.value},
            )
        return self._state

    def _now_ms(self) -> int:
        return int(self._clock().timestamp() * 1000)

    # --- attempt counter ----------------------------------------------------
    async def _attempts(self) -> int:
        raw = await self._prefs.get(PIN_ATTEMPTS_KEY)
        try:
            return int(raw or 0)
        except ValueError:
            return 0

    async def _last_attempt_ms(self) -> int:
        raw = await self._prefs.get(LAST_ATTEMPT_TIME_KEY)
        try:
            return int(raw or 0)
        except ValueError:
            return 0

    async def _clear_attempts(self) -> None:
        await self._prefs.delete(PIN_ATTEMPTS_KEY)
        await self._prefs.delete(LAST_ATTEMPT_TIME_KEY)

    async def _lockout_remaining(self) -> int:
        """Seconds left in the lockout; expires it (and the counter) when over."""
        attempts = await self._attempts()
        if attempts < self._settings.PIN_MAX_ATTEMPTS:
            return 0
        lockout_ms = self._settings.PIN_LOCKOUT_SECONDS * 1000
        elapsed = self._now_ms() - await self._last_attempt_ms()
        if elapsed < lockout_ms:
            if self._state in (AuthState.AWAITING_PIN_ENTRY, AuthState.AUTHENTICATED):
                self._apply(AuthEvent.LOCKOUT_STARTED)
            return math.ceil((lockout_ms - elapsed) / 1000)

        await self._clear_attempts()
        if self._state is AuthState.LOCKED:
            self._apply(AuthEvent.LOCKOUT_EXPIRED)
        return 0

    async def _pin_hash(self) -> str | None:
        return await self._vault.get(PIN_HASH_KEY)

    # -------------------------------------------------------------------------
    # Startup
    # -------------------------------------------------------------------------
    async def initialize(self) -> AuthState:
        """Decide between PIN setup and PIN entry; idempotent."""
        async with self._lock:
            if self._state is not AuthState.UNINITIALIZED:
                return self._state
            pin_hash = await self._pin_hash()
            self._biometric_enabled = (await self._vault.get(BIOMETRIC_ENABLED_KEY)) == "true"
            self._biometric_available = await self._biometrics.is_available()
            if pin_hash:
                self._apply(AuthEvent.PIN_FOUND)
                await self._lockout_remaining()
            else:
                self._apply(AuthEvent.NO_PIN_FOUND)
            return self._state

    def force_unauthenticated(self) -> None:
        """Settle on "not authenticated" when startup did not finish in time."""
        if self._state is AuthState.UNINITIALIZED:
            logger.warning(
                "Auth initialization timed out",
                extra={"event": "auth_init_timeout", "state": "awaiting_pin_entry"},
            )
            self._apply(AuthEvent.INIT_TIMED_OUT)
        elif self._state is AuthState.AUTHENTICATED:
            self._apply(AuthEvent.LOGOUT)

    async def status(self) -> GuardStatus:
        async with self._lock:
            remaining = 0
            if self._state is not AuthState.UNINITIALIZED:
                remaining = await self._lockout_remaining()
            attempts = await self._attempts()
            return GuardStatus(
                state=self._state,
                pin_set=bool(await self._pin_hash()),
                biometric_available=self._biometric_available,
                biometric_enabled=self._biometric_enabled,
                failed_attempts=attempts,
                lockout_remaining_seconds=remaining,
                reset_available=self._reset_allowed(attempts),
                degraded=self._vault.degraded,
            )

    # -------------------------------------------------------------------------
    # PIN
    # -------------------------------------------------------------------------
    @staticmethod
    def validate_pin(pin: str, confirm: str) -> None:
        """Raise ``ValidationFailure`` unless *pin* is 4-6 digits and equals *confirm*."""
        if not PIN_MIN_LENGTH <= len(pin) <= PIN_MAX_LENGTH:
            raise ValidationFailure("err_pin_length")
        if not (pin.isascii() and pin.isdigit()):
            raise ValidationFailure("err_pin_digits")
        if pin != confirm:
            raise ValidationFailure("err_pin_mismatch")

    async def set_pin(self, pin: str, confirm: str) -> AuthState:
        """Store a new PIN and authenticate.

        Allowed during first setup and from an authenticated session
        (PIN change).  Invalid input leaves everything untouched.
        """
        self.validate_pin(pin, confirm)
        async with self._lock:
            if self._state is AuthState.AWAITING_PIN_ENTRY and await self._pin_hash():
                raise AuthFailure("err_not_authenticated")
            if self._state not in (
                AuthState.AWAITING_PIN_SETUP,
                AuthState.AWAITING_PIN_ENTRY,
                AuthState.AUTHENTICATED,
            ):
                raise AuthFailure("err_not_authenticated")

            pin_hash = await asyncio.to_thread(hash_pin, pin, self._settings.PIN_HASH_ITERATIONS)
            await self._vault.set(PIN_HASH_KEY, pin_hash)
            await self._clear_attempts()
            return self._apply(AuthEvent.PIN_SET)

    async def verify_pin(self, pin: str) -> AuthState:
        """Check *pin*; count failures and lock after ``PIN_MAX_ATTEMPTS``.

        Raises:
            AuthFailure: Wrong PIN (with ``remaining_attempts``), lockout
                (with ``lockout_remaining_seconds``) or no PIN set.
        """
        async with self._lock:
            if self._state in (AuthState.UNINITIALIZED, AuthState.AWAITING_PIN_SETUP):
                raise AuthFailure("err_pin_not_set")

            remaining = await self._lockout_remaining()
            if remaining:
                raise AuthFailure(
                    "err_locked",
                    remaining_attempts=0,
                    lockout_remaining_seconds=remaining,
                    minutes=math.ceil(remaining / 60),
                )

            stored = await self._pin_hash()
            if not stored:
                raise AuthFailure("err_pin_not_set")

            if not await asyncio.to_thread(verify_pin_hash, pin, stored):
                return await self._record_failure()

            await self._clear_attempts()
            if needs_rehash(stored, self._settings.PIN_HASH_ITERATIONS):
                upgraded = await asyncio.to_thread(
                    hash_pin, pin, self._settings.PIN_HASH_ITERATIONS
                )
                await self._vault.set(PIN_HASH_KEY, upgraded)
                logger.info("PIN hash upgraded", extra={"event": "pin_rehashed"})
            return self._apply(AuthEvent.PIN_ACCEPTED)

    async def _record_failure(self) -> AuthState:
        max_attempts = self._settings.PIN_MAX_ATTEMPTS
        attempts = await self._attempts() + 1
        await self._prefs.set(PIN_ATTEMPTS_KEY, str(attempts))
        await self._prefs.set(LAST_ATTEMPT_TIME_KEY, str(self._now_ms()))
        logger.warning(
            "Wrong PIN (%d/%d)",
            attempts,
            max_attempts,
            extra={"event": "pin_rejected", "count": attempts},
        )

        if attempts >= max_attempts:
            self._apply(AuthEvent.LOCKOUT_STARTED)
            lockout = self._settings.PIN_LOCKOUT_SECONDS
            raise AuthFailure(
                "err_pin_locked_now",
                remaining_attempts=0,
                lockout_remaining_seconds=lockout,
                minutes=math.ceil(lockout / 60),
            )

        self._apply(AuthEvent.PIN_REJECTED)
        left = max_attempts - attempts
        raise AuthFailure("err_pin_wrong", remaining_attempts=left, remaining=left)

    # -------------------------------------------------------------------------
    # Biometrics
    # -------------------------------------------------------------------------
    async def authenticate_with_biometric(self) -> AuthState:
        """Authenticate through the platform biometric prompt.

        Success resets the attempt counter exactly like a correct PIN and
        also ends an active lockout.  A rejected prompt does not count as
        a failed PIN attempt.
        """
        async with self._lock:
            if self._state in (AuthState.UNINITIALIZED, AuthState.AWAITING_PIN_SETUP):
                raise AuthFailure("err_pin_not_set")
            self._biometric_available = await self._biometrics.is_available()
            if not (self._biometric_available and self._biometric_enabled):
                raise AuthFailure("err_biometric_unavailable")
            if not await self._biometrics.authenticate():
                raise AuthFailure("err_biometric_failed")
            await self._clear_attempts()
            return self._apply(AuthEvent.BIOMETRIC_ACCEPTED)

    async def set_biometric_enabled(self, enabled: bool) -> None:
        async with self._lock:
            if enabled:
                self._biometric_available = await self._biometrics.is_available()
                if not self._biometric_available:
                    raise AuthFailure("err_biometric_unavailable")
            await self._vault.set(BIOMETRIC_ENABLED_KEY, "true" if enabled else "false")
            self._biometric_enabled = enabled

    # -------------------------------------------------------------------------
    # Session end
    # -------------------------------------------------------------------------
    async def logout(self) -> AuthState:
        async with self._lock:
            if self._state is AuthState.AUTHENTICATED:
                self._apply(AuthEvent.LOGOUT)
            return self._state

    def _reset_allowed(self, attempts: int) -> bool:
        return (
            self._state is AuthState.AUTHENTICATED
            or attempts >= self._settings.PIN_RESET_AFTER_ATTEMPTS
        )

    async def reset(self) -> AuthState:
        """Destroy the PIN and every record; back to PIN setup.

        Available from an authenticated session or after
        ``PIN_RESET_AFTER_ATTEMPTS`` failed attempts.
        """
        async with self._lock:
            if self._state not in (
                AuthState.AWAITING_PIN_ENTRY,
                AuthState.LOCKED,
                AuthState.AUTHENTICATED,
            ) or not self._reset_allowed(await self._attempts()):
                raise AuthFailure(
                    "err_reset_not_allowed", attempts=self._settings.PIN_RESET_AFTER_ATTEMPTS
                )

            await self._clear_data()
            await self._vault.delete(PIN_HASH_KEY)
            await self._vault.delete(BIOMETRIC_ENABLED_KEY)
            await self._clear_attempts()
            self._biometric_enabled = False
            logger.warning("Factory reset performed", extra={"event": "auth_reset"})
            return self._apply(AuthEvent.RESET)
