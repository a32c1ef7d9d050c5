"""
Spark Note Hash Functions

Commitment: SHA-256(domain || value_be64 || len(secret)_be64 || secret)
Nullifier:  BLAKE3(commitment || secret)

The two digests use unrelated hash constructions so a commitment and its
nullifier share no structure an observer could exploit. Both functions are
pure and safe to call from any number of threads.
"""

from __future__ import annotations
import hmac

from blake3 import blake3
from Crypto.Hash import SHA256

from spark_note.constants import (
    COMMITMENT_DOMAIN,
    COMMITMENT_LENGTH,
    BIG_ENDIAN,
    U64_SIZE,
)
from spark_note.core.validation import BytesLike, validate_secret, validate_value
from spark_note.errors import OperationError


def _u64_be(n: int) -> bytes:
    return n.to_bytes(U64_SIZE, BIG_ENDIAN)


def compute_commitment(value: int, secret: BytesLike) -> bytes:
    """
    Commit to a (value, secret) pair.

    Inputs are validated before any hashing takes place.

    Args:
        value: Nonzero unsigned 64-bit note value
        secret: Raw secret bytes (8..1024)

    Returns:
        32-byte commitment
    """
    validate_value(value)
    validate_secret(secret)

    secret_len = secret.nbytes if isinstance(secret, memoryview) else len(secret)

    h = SHA256.new()
    h.update(COMMITMENT_DOMAIN)
    h.update(_u64_be(value))
    # Length prefix keeps the variable-length field unambiguous
    h.update(_u64_be(secret_len))
    h.update(secret)
    return h.digest()


def compute_nullifier(commitment: BytesLike, secret: BytesLike) -> bytes:
    """
    Derive the spend token for a commitment.

    Args:
        commitment: 32-byte note commitment
        secret: Raw secret bytes that opened the commitment

    Returns:
        32-byte nullifier
    """
    commitment_len = (
        commitment.nbytes if isinstance(commitment, memoryview) else len(commitment)
    )
    if commitment_len != COMMITMENT_LENGTH:
        raise OperationError(
            f"Commitment must be {COMMITMENT_LENGTH} bytes, got {commitment_len}"
        )
    validate_secret(secret)

    hasher = blake3()
    hasher.update(commitment)
    hasher.update(secret)
    return hasher.digest()


def constant_time_eq(a: BytesLike, b: BytesLike) -> bool:
    """
    Constant-time comparison of two byte strings.

    Returns False on length mismatch. Timing does not depend on where the
    first differing byte sits.
    """
    return hmac.compare_digest(a, b)
