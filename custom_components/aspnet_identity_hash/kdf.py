from __future__ import annotations

import hashlib

from .hash_format import LegacyHashRecord

# ASP.NET Core Identity hashes the UTF-8 bytes of the password
PASSWORD_ENCODING = "utf-8"


def derive(password: str, record: LegacyHashRecord) -> bytes:
    """Re-derive the subkey of ``record`` for a candidate password.

    The output has the same length as the stored subkey. Every call runs the
    full PBKDF2 computation.
    """
    return hashlib.pbkdf2_hmac(
        record.prf.hash_name,
        password.encode(PASSWORD_ENCODING),
        record.salt,
        record.iterations,
        len(record.subkey),
    )
