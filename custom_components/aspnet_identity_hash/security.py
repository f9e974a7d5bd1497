from __future__ import annotations

import hashlib
import hmac
import os

PBKDF2_ITERATIONS = 100_000
NATIVE_SALT_SIZE = 16


def constant_time_equal(a: bytes, b: bytes) -> bool:
    """Compare two byte strings without leaking where they differ.

    Inputs of different length are padded to the longer one before
    comparing, so the work done only depends on the longer buffer.
    """
    size = max(len(a), len(b))
    padded_a = a.ljust(size, b"\0")
    padded_b = b.ljust(size, b"\0")
    same = hmac.compare_digest(padded_a, padded_b)
    return same and len(a) == len(b)


def hash_password(password: str, iterations: int = PBKDF2_ITERATIONS) -> str:
    """Hash a password for the native credential store.

    The returned value is formatted as ``<iterations>$<salt>$<hash>`` where
    salt and hash are hex encoded.
    """
    salt = os.urandom(NATIVE_SALT_SIZE)
    key = hashlib.pbkdf2_hmac("sha256", password.encode(), salt, iterations)
    return f"{iterations}${salt.hex()}${key.hex()}"


def verify_password(password: str, stored: str) -> bool:
    """Verify a password against a native ``<iterations>$<salt>$<hash>`` value."""
    parts = stored.split("$")
    if len(parts) != 3:
        return False
    iterations_raw, salt_hex, hash_hex = parts
    try:
        iterations = int(iterations_raw)
        salt = bytes.fromhex(salt_hex)
        expected = bytes.fromhex(hash_hex)
    except ValueError:
        return False
    if iterations <= 0 or not expected:
        return False

    key = hashlib.pbkdf2_hmac(
        "sha256", password.encode(), salt, iterations, len(expected)
    )
    return constant_time_equal(key, expected)
