"""Session guard: state machine, PIN lifecycle, lockout and reset."""

from __future__ import annotations

from pathlib import Path

import pytest

from foodabuser.core.config import Settings
from foodabuser.core.errors import AuthFailure, ValidationFailure
from foodabuser.services.credentials import CredentialVault, JsonFileStore
from foodabuser.services.guard import (
    PIN_ATTEMPTS_KEY,
    PIN_HASH_KEY,
    AuthEvent,
    AuthState,
    InvalidTransition,
    SessionGuard,
    transition,
)
from foodabuser.services.pin import legacy_pin_hash
from tests.conftest import FixedClock


class _Biometrics:
    def __init__(self, available: bool = True, accept: bool = True) -> None:
        self.available = available
        self.accept = accept

    async def is_available(self) -> bool:
        return self.available

    async def authenticate(self) -> bool:
        return self.accept


class _Env:
    """Guard plus the stores behind it; ``guard()`` builds a fresh instance."""

    def __init__(self, settings: Settings, clock: FixedClock, tmp_path: Path) -> None:
        self.settings = settings
        self.clock = clock
        self.vault = CredentialVault(
            JsonFileStore(tmp_path / "secure.json"), JsonFileStore(tmp_path / "fallback.json")
        )
        self.prefs = JsonFileStore(tmp_path / "prefs.json")
        self.cleared = 0
        self.biometrics = _Biometrics()

    async def _clear(self) -> None:
        self.cleared += 1

    def guard(self) -> SessionGuard:
        return SessionGuard(
            self.settings,
            self.vault,
            self.prefs,
            self._clear,
            biometrics=self.biometrics,
            clock=self.clock,
        )


@pytest.fixture
def env(settings: Settings, clock: FixedClock, tmp_path: Path) -> _Env:
    return _Env(settings, clock, tmp_path)


async def _with_pin(env: _Env, pin: str = "1234") -> SessionGuard:
    """A guard whose PIN is set, restarted so it awaits PIN entry."""
    first = env.guard()
    await first.initialize()
    await first.set_pin(pin, pin)
    guard = env.guard()
    assert await guard.initialize() is AuthState.AWAITING_PIN_ENTRY
    return guard


async def _fail(guard: SessionGuard, times: int) -> AuthFailure:
    error = None
    for _ in range(times):
        with pytest.raises(AuthFailure) as exc_info:
            await guard.verify_pin("0000")
        error = exc_info.value
    return error


# ---------------------------------------------------------------------------
# Transition table
# ---------------------------------------------------------------------------
class TestTransitions:
    def test_allowed(self):
        expired = transition(AuthState.LOCKED, AuthEvent.LOCKOUT_EXPIRED)
        assert expired is AuthState.AWAITING_PIN_ENTRY
        logged_out = transition(AuthState.AUTHENTICATED, AuthEvent.LOGOUT)
        assert logged_out is AuthState.AWAITING_PIN_ENTRY

    def test_rejected(self):
        with pytest.raises(InvalidTransition):
            transition(AuthState.LOCKED, AuthEvent.PIN_ACCEPTED)
        with pytest.raises(InvalidTransition):
            transition(AuthState.AWAITING_PIN_SETUP, AuthEvent.LOGOUT)


# ---------------------------------------------------------------------------
# Setup and entry
# ---------------------------------------------------------------------------
class TestPinSetup:
    async def test_first_start_asks_for_setup(self, env: _Env):
        guard = env.guard()
        assert await guard.initialize() is AuthState.AWAITING_PIN_SETUP
        status = await guard.status()
        assert not status.pin_set

    async def test_set_pin_authenticates(self, env: _Env):
        guard = env.guard()
        await guard.initialize()
        assert await guard.set_pin("1234", "1234") is AuthState.AUTHENTICATED
        assert (await env.vault.get(PIN_HASH_KEY)).startswith("pbkdf2_sha256$1000$")

    @pytest.mark.parametrize(
        ("pin", "confirm", "key"),
        [
            ("123", "123", "err_pin_length"),
            ("1234567", "1234567", "err_pin_length"),
            ("12a4", "12a4", "err_pin_digits"),
            ("١٢٣٤", "١٢٣٤", "err_pin_digits"),
            ("1234", "1235", "err_pin_mismatch"),
        ],
    )
    async def test_invalid_pin(self, env: _Env, pin: str, confirm: str, key: str):
        guard = env.guard()
        await guard.initialize()
        with pytest.raises(ValidationFailure) as exc_info:
            await guard.set_pin(pin, confirm)
        assert exc_info.value.key == key
        assert guard.state is AuthState.AWAITING_PIN_SETUP
        assert await env.vault.get(PIN_HASH_KEY) is None

    async def test_cannot_replace_pin_without_authenticating(self, env: _Env):
        guard = await _with_pin(env)
        with pytest.raises(AuthFailure):
            await guard.set_pin("9999", "9999")

    async def test_change_pin_when_authenticated(self, env: _Env):
        guard = await _with_pin(env)
        await guard.verify_pin("1234")
        await guard.set_pin("5678", "5678")
        await guard.logout()
        assert await guard.verify_pin("5678") is AuthState.AUTHENTICATED

    async def test_verify_without_pin(self, env: _Env):
        guard = env.guard()
        await guard.initialize()
        with pytest.raises(AuthFailure) as exc_info:
            await guard.verify_pin("1234")
        assert exc_info.value.key == "err_pin_not_set"


class TestVerify:
    async def test_correct_pin(self, env: _Env):
        guard = await _with_pin(env)
        assert await guard.verify_pin("1234") is AuthState.AUTHENTICATED
        assert guard.is_authenticated

    async def test_wrong_pin_reports_remaining(self, env: _Env):
        guard = await _with_pin(env)
        error = await _fail(guard, 1)
        assert error.key == "err_pin_wrong"
        assert error.remaining_attempts == 4
        assert not error.locked
        assert guard.state is AuthState.AWAITING_PIN_ENTRY

    async def test_success_resets_counter(self, env: _Env):
        guard = await _with_pin(env)
        await _fail(guard, 3)
        await guard.verify_pin("1234")
        assert (await guard.status()).failed_attempts == 0

    async def test_legacy_hash_is_upgraded(self, env: _Env):
        await env.vault.set(PIN_HASH_KEY, legacy_pin_hash("2468"))
        guard = env.guard()
        await guard.initialize()
        assert await guard.verify_pin("2468") is AuthState.AUTHENTICATED
        assert (await env.vault.get(PIN_HASH_KEY)).startswith("pbkdf2_sha256$")


# ---------------------------------------------------------------------------
# Lockout
# ---------------------------------------------------------------------------
class TestLockout:
    async def test_fifth_failure_locks(self, env: _Env):
        guard = await _with_pin(env)
        await _fail(guard, 4)
        error = await _fail(guard, 1)
        assert error.key == "err_pin_locked_now"
        assert error.locked
        assert error.lockout_remaining_seconds == 300
        assert guard.state is AuthState.LOCKED

    async def test_attempt_during_lockout_is_not_counted(self, env: _Env):
        guard = await _with_pin(env)
        await _fail(guard, 5)
        env.clock.advance(seconds=60)
        with pytest.raises(AuthFailure) as exc_info:
            await guard.verify_pin("1234")
        assert exc_info.value.key == "err_locked"
        assert exc_info.value.lockout_remaining_seconds == 240
        assert await env.prefs.get(PIN_ATTEMPTS_KEY) == "5"

    async def test_lockout_expires(self, env: _Env):
        guard = await _with_pin(env)
        await _fail(guard, 5)
        env.clock.advance(seconds=300)
        status = await guard.status()
        assert status.state is AuthState.AWAITING_PIN_ENTRY
        assert status.failed_attempts == 0
        assert await guard.verify_pin("1234") is AuthState.AUTHENTICATED

    async def test_lockout_survives_restart(self, env: _Env):
        guard = await _with_pin(env)
        await _fail(guard, 5)
        env.clock.advance(seconds=10)

        restarted = env.guard()
        assert await restarted.initialize() is AuthState.LOCKED
        status = await restarted.status()
        assert status.lockout_remaining_seconds == 290
        assert status.reset_available

    async def test_counter_survives_restart(self, env: _Env):
        guard = await _with_pin(env)
        await _fail(guard, 2)
        restarted = env.guard()
        await restarted.initialize()
        error = await _fail(restarted, 1)
        assert error.remaining_attempts == 2


# ---------------------------------------------------------------------------
# Biometrics
# ---------------------------------------------------------------------------
class TestBiometrics:
    async def test_offered_only_when_available_and_enabled(self, env: _Env):
        guard = await _with_pin(env)
        assert not (await guard.status()).biometric_offered
        await guard.verify_pin("1234")
        await guard.set_biometric_enabled(True)
        assert (await guard.status()).biometric_offered

    async def test_disabled_biometric_is_refused(self, env: _Env):
        guard = await _with_pin(env)
        with pytest.raises(AuthFailure) as exc_info:
            await guard.authenticate_with_biometric()
        assert exc_info.value.key == "err_biometric_unavailable"

    async def test_cannot_enable_without_hardware(self, env: _Env):
        env.biometrics.available = False
        guard = await _with_pin(env)
        await guard.verify_pin("1234")
        with pytest.raises(AuthFailure):
            await guard.set_biometric_enabled(True)

    async def test_success_ends_lockout(self, env: _Env):
        guard = await _with_pin(env)
        await guard.verify_pin("1234")
        await guard.set_biometric_enabled(True)
        await guard.logout()
        await _fail(guard, 5)
        assert await guard.authenticate_with_biometric() is AuthState.AUTHENTICATED
        assert (await guard.status()).failed_attempts == 0

    async def test_rejected_prompt_does_not_count(self, env: _Env):
        guard = await _with_pin(env)
        await guard.verify_pin("1234")
        await guard.set_biometric_enabled(True)
        await guard.logout()
        env.biometrics.accept = False
        with pytest.raises(AuthFailure) as exc_info:
            await guard.authenticate_with_biometric()
        assert exc_info.value.key == "err_biometric_failed"
        assert (await guard.status()).failed_attempts == 0

    async def test_flag_persists(self, env: _Env):
        guard = await _with_pin(env)
        await guard.verify_pin("1234")
        await guard.set_biometric_enabled(True)
        restarted = env.guard()
        await restarted.initialize()
        assert (await restarted.status()).biometric_enabled


# ---------------------------------------------------------------------------
# Logout / reset / startup timeout
# ---------------------------------------------------------------------------
class TestSessionEnd:
    async def test_logout(self, env: _Env):
        guard = await _with_pin(env)
        await guard.verify_pin("1234")
        assert await guard.logout() is AuthState.AWAITING_PIN_ENTRY
        assert not guard.is_authenticated

    async def test_reset_needs_attempts(self, env: _Env):
        guard = await _with_pin(env)
        await _fail(guard, 2)
        assert not (await guard.status()).reset_available
        with pytest.raises(AuthFailure) as exc_info:
            await guard.reset()
        assert exc_info.value.key == "err_reset_not_allowed"
        assert env.cleared == 0

    async def test_reset_after_three_failures(self, env: _Env):
        guard = await _with_pin(env)
        await _fail(guard, 3)
        assert await guard.reset() is AuthState.AWAITING_PIN_SETUP
        assert env.cleared == 1
        assert await env.vault.get(PIN_HASH_KEY) is None
        assert (await guard.status()).failed_attempts == 0

    async def test_reset_while_locked(self, env: _Env):
        guard = await _with_pin(env)
        await _fail(guard, 5)
        assert await guard.reset() is AuthState.AWAITING_PIN_SETUP
        assert await guard.set_pin("1111", "1111") is AuthState.AUTHENTICATED

    async def test_reset_from_session(self, env: _Env):
        guard = await _with_pin(env)
        await guard.verify_pin("1234")
        assert await guard.reset() is AuthState.AWAITING_PIN_SETUP

    async def test_forced_decision_without_pin_allows_setup(self, env: _Env):
        guard = env.guard()
        guard.force_unauthenticated()
        assert guard.state is AuthState.AWAITING_PIN_ENTRY
        assert await guard.set_pin("1234", "1234") is AuthState.AUTHENTICATED

    async def test_initialize_is_idempotent(self, env: _Env):
        guard = env.guard()
        await guard.initialize()
        await guard.set_pin("1234", "1234")
        assert await guard.initialize() is AuthState.AUTHENTICATED
