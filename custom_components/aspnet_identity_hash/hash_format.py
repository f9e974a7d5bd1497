"""Decoder for ASP.NET Core Identity password hashes.

Two layouts are stored as base64 text:

* fixed: ``0x01 | salt(16) | subkey(32)`` with PBKDF2-HMAC-SHA256 and
  10000 iterations implied;
* self-describing: ``0x01 | prf(4) | iterations(4) | salt_length(4) | salt |
  subkey`` where the integers are big-endian.

Decoding never raises. Callers get a :class:`DecodeResult` that carries either
a record or the reason the hash was rejected.
"""

from __future__ import annotations

import base64
import binascii
import struct
from dataclasses import dataclass
from enum import Enum, IntEnum

FORMAT_MARKER = 0x01
HEADER_SIZE = 13  # marker + prf + iterations + salt length
# Same lower bound ASP.NET Core Identity applies to the stored subkey
MIN_SUBKEY_SIZE = 16
MIN_SELF_DESCRIBING_SIZE = HEADER_SIZE + MIN_SUBKEY_SIZE

FIXED_SALT_SIZE = 16
FIXED_SUBKEY_SIZE = 32
FIXED_SIZE = 1 + FIXED_SALT_SIZE + FIXED_SUBKEY_SIZE
FIXED_ITERATIONS = 10_000

_HEADER = struct.Struct(">III")
_UINT32_MAX = 0xFFFFFFFF


class Prf(IntEnum):
    """KeyDerivationPrf values as written in the hash header."""

    SHA1 = 0
    SHA256 = 1
    SHA512 = 2

    @property
    def hash_name(self) -> str:
        """Name understood by :func:`hashlib.pbkdf2_hmac`."""
        return self.name.lower()


class Variant(str, Enum):
    FIXED = "fixed"
    SELF_DESCRIBING = "self_describing"


class FailureKind(str, Enum):
    """Reasons a legacy hash fails to validate.

    None of them leaves the coordinator; they only show up in debug logs.
    """

    MALFORMED_ENCODING = "malformed_encoding"
    UNSUPPORTED_PARAMETERS = "unsupported_parameters"
    LENGTH_MISMATCH = "length_mismatch"
    NO_MATCH = "no_match"


class DecodeError(str, Enum):
    INVALID_ENCODING = "invalid_encoding"
    TOO_SHORT = "too_short"
    BAD_MARKER = "bad_marker"
    UNKNOWN_PRF = "unknown_prf"
    BAD_ITERATION_COUNT = "bad_iteration_count"
    BAD_SALT_LENGTH = "bad_salt_length"

    @property
    def kind(self) -> FailureKind:
        return _ERROR_KINDS[self]


_ERROR_KINDS = {
    DecodeError.INVALID_ENCODING: FailureKind.MALFORMED_ENCODING,
    DecodeError.BAD_MARKER: FailureKind.MALFORMED_ENCODING,
    DecodeError.UNKNOWN_PRF: FailureKind.UNSUPPORTED_PARAMETERS,
    DecodeError.BAD_ITERATION_COUNT: FailureKind.UNSUPPORTED_PARAMETERS,
    DecodeError.TOO_SHORT: FailureKind.LENGTH_MISMATCH,
    DecodeError.BAD_SALT_LENGTH: FailureKind.LENGTH_MISMATCH,
}


@dataclass(frozen=True)
class LegacyHashRecord:
    """PBKDF2 parameters recovered from a legacy hash."""

    prf: Prf
    iterations: int
    salt: bytes
    subkey: bytes
    variant: Variant

    def __repr__(self) -> str:
        # Keep salt and subkey out of logs and tracebacks
        return (
            f"LegacyHashRecord(prf={self.prf.name}, iterations={self.iterations}, "
            f"salt_len={len(self.salt)}, subkey_len={len(self.subkey)}, "
            f"variant={self.variant.value})"
        )


@dataclass(frozen=True)
class DecodeResult:
    record: LegacyHashRecord | None = None
    error: DecodeError | None = None

    @property
    def ok(self) -> bool:
        return self.record is not None


def _fail(error: DecodeError) -> DecodeResult:
    return DecodeResult(error=error)


def _decode_self_describing(
    raw: bytes, max_iterations: int | None
) -> DecodeResult:
    prf_id, iterations, salt_length = _HEADER.unpack_from(raw, 1)
    try:
        prf = Prf(prf_id)
    except ValueError:
        return _fail(DecodeError.UNKNOWN_PRF)
    if iterations <= 0 or (max_iterations is not None and iterations > max_iterations):
        return _fail(DecodeError.BAD_ITERATION_COUNT)
    if salt_length > len(raw) - HEADER_SIZE - MIN_SUBKEY_SIZE:
        return _fail(DecodeError.BAD_SALT_LENGTH)
    salt_end = HEADER_SIZE + salt_length
    return DecodeResult(
        record=LegacyHashRecord(
            prf=prf,
            iterations=iterations,
            salt=bytes(raw[HEADER_SIZE:salt_end]),
            subkey=bytes(raw[salt_end:]),
            variant=Variant.SELF_DESCRIBING,
        )
    )


def _decode_fixed(raw: bytes) -> DecodeResult:
    salt_end = 1 + FIXED_SALT_SIZE
    return DecodeResult(
        record=LegacyHashRecord(
            prf=Prf.SHA256,
            iterations=FIXED_ITERATIONS,
            salt=bytes(raw[1:salt_end]),
            subkey=bytes(raw[salt_end:]),
            variant=Variant.FIXED,
        )
    )


def decode(
    raw: bytes,
    *,
    allow_fixed: bool = True,
    max_iterations: int | None = None,
) -> DecodeResult:
    """Decode the binary form of a legacy hash.

    The self-describing layout wins when its header is internally consistent.
    A 49 byte buffer that does not parse that way falls back to the fixed
    layout, unless ``allow_fixed`` is false.
    """
    fixed_candidate = allow_fixed and len(raw) == FIXED_SIZE
    if len(raw) < MIN_SELF_DESCRIBING_SIZE and not fixed_candidate:
        return _fail(DecodeError.TOO_SHORT)
    if raw[0] != FORMAT_MARKER:
        return _fail(DecodeError.BAD_MARKER)

    result = _decode_self_describing(raw, max_iterations)
    if result.ok or not fixed_candidate:
        return result
    return _decode_fixed(raw)


def decode_text(
    text: str,
    *,
    allow_fixed: bool = True,
    max_iterations: int | None = None,
) -> DecodeResult:
    """Decode a hash from its base64 storage form."""
    try:
        raw = base64.b64decode(text.strip(), validate=True)
    except (binascii.Error, ValueError):
        return _fail(DecodeError.INVALID_ENCODING)
    return decode(raw, allow_fixed=allow_fixed, max_iterations=max_iterations)


def encode(record: LegacyHashRecord) -> str:
    """Return the base64 storage form of ``record``.

    Raises ``ValueError`` when the record cannot be written in its variant.
    """
    if record.variant is Variant.FIXED:
        if (
            record.prf is not Prf.SHA256
            or record.iterations != FIXED_ITERATIONS
            or len(record.salt) != FIXED_SALT_SIZE
            or len(record.subkey) != FIXED_SUBKEY_SIZE
        ):
            raise ValueError("record does not fit the fixed layout")
        raw = bytes([FORMAT_MARKER]) + record.salt + record.subkey
    else:
        if not 0 < record.iterations <= _UINT32_MAX:
            raise ValueError("iteration count out of range")
        if len(record.subkey) < MIN_SUBKEY_SIZE:
            raise ValueError(f"subkey must be at least {MIN_SUBKEY_SIZE} bytes")
        raw = (
            bytes([FORMAT_MARKER])
            + _HEADER.pack(int(record.prf), record.iterations, len(record.salt))
            + record.salt
            + record.subkey
        )
    return base64.b64encode(raw).decode("ascii")
