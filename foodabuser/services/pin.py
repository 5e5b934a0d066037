"""PIN hashing (stdlib pbkdf2_hmac).

New hashes use ``pbkdf2_sha256$<iterations>$<salt>$<digest>``.  Hashes
written by the first mobile release are a signed 32-bit string hash
(a plain decimal number); they still verify, and ``needs_rehash``
reports them so the guard can upgrade them on the next successful entry.
"""

from __future__ import annotations

import base64
import hashlib
import hmac
import os

_PBKDF2_ALG = "sha256"
DEFAULT_ITERATIONS = 200_000


def _b64url_encode(data: bytes) -> str:
    return base64.urlsafe_b64encode(data).decode("ascii").rstrip("=")


def _b64url_decode(data: str) -> bytes:
    padding = "=" * (-len(data) % 4)
    return base64.urlsafe_b64decode(data + padding)


def hash_pin(pin: str, iterations: int = DEFAULT_ITERATIONS) -> str:
    salt = os.urandom(16)
    dk = hashlib.pbkdf2_hmac(_PBKDF2_ALG, pin.encode("utf-8"), salt, iterations)
    return f"pbkdf2_{_PBKDF2_ALG}${iterations}${_b64url_encode(salt)}${_b64url_encode(dk)}"


def legacy_pin_hash(pin: str) -> str:
    """The 32-bit rolling hash (``h * 31 + code``) used by old installs."""
    h = 0
    for char in pin:
        h = ((h << 5) - h + ord(char)) & 0xFFFFFFFF
    if h >= 0x80000000:
        h -= 0x100000000
    return str(h)


def is_legacy_hash(pin_hash: str) -> bool:
    return pin_hash.lstrip("-").isdigit()


def verify_pin_hash(pin: str, pin_hash: str) -> bool:
    """Check *pin* against a stored PBKDF2 or legacy hash."""
    if is_legacy_hash(pin_hash):
        return hmac.compare_digest(legacy_pin_hash(pin), pin_hash)
    try:
        scheme, iter_s, salt_b64, dk_b64 = pin_hash.split("$", 3)
        if not scheme.startswith("pbkdf2_"):
            return False
        alg = scheme.split("_", 1)[1]
        iterations = int(iter_s)
        salt = _b64url_decode(salt_b64)
        expected = _b64url_decode(dk_b64)
        actual = hashlib.pbkdf2_hmac(alg, pin.encode("utf-8"), salt, iterations)
    except (ValueError, TypeError):
        return False
    return hmac.compare_digest(actual, expected)


def needs_rehash(pin_hash: str, iterations: int = DEFAULT_ITERATIONS) -> bool:
    """True for legacy hashes and PBKDF2 hashes with other iteration counts."""
    if is_legacy_hash(pin_hash):
        return True
    parts = pin_hash.split("$")
    return len(parts) != 4 or parts[1] != str(iterations)
