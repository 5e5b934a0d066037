"""PIN hash format, verification and legacy upgrade detection."""

from __future__ import annotations

from foodabuser.services.pin import (
    hash_pin,
    is_legacy_hash,
    legacy_pin_hash,
    needs_rehash,
    verify_pin_hash,
)


class TestPbkdf2:
    def test_format(self):
        scheme, iterations, salt, digest = hash_pin("1234", 1000).split("$")
        assert scheme == "pbkdf2_sha256"
        assert iterations == "1000"
        assert salt and digest

    def test_salted(self):
        assert hash_pin("1234", 1000) != hash_pin("1234", 1000)

    def test_verify(self):
        stored = hash_pin("123456", 1000)
        assert verify_pin_hash("123456", stored)
        assert not verify_pin_hash("654321", stored)

    def test_garbage_hash_does_not_verify(self):
        assert not verify_pin_hash("1234", "pbkdf2_sha256$abc$$")
        assert not verify_pin_hash("1234", "bcrypt$12$salt$digest")
        assert not verify_pin_hash("1234", "pbkdf2_nosuchalg$1000$c2FsdA$ZGs")

    def test_needs_rehash_on_cost_change(self):
        stored = hash_pin("1234", 1000)
        assert not needs_rehash(stored, 1000)
        assert needs_rehash(stored, 2000)


class TestLegacy:
    def test_known_values(self):
        # "1234".hashCode() style rolling hash
        assert legacy_pin_hash("1234") == "1509442"
        assert legacy_pin_hash("") == "0"

    def test_wraps_to_signed_32_bit(self):
        value = int(legacy_pin_hash("999999999"))
        assert -(2**31) <= value < 2**31

    def test_detection_and_verify(self):
        stored = legacy_pin_hash("4321")
        assert is_legacy_hash(stored)
        assert verify_pin_hash("4321", stored)
        assert not verify_pin_hash("4322", stored)
        assert needs_rehash(stored)

    def test_pbkdf2_is_not_legacy(self):
        assert not is_legacy_hash(hash_pin("1234", 1000))
