"""
Spark Note Secure Randomness

Secrets come from the operating system CSPRNG via pycryptodome.
"""

from __future__ import annotations
from typing import TYPE_CHECKING

from Crypto.Random import get_random_bytes

from spark_note.constants import DEFAULT_SECRET_LENGTH
from spark_note.core.validation import validate_secret
from spark_note.errors import OperationError

if TYPE_CHECKING:
    from spark_note.core.secret import Secret


def generate_random_bytes(length: int) -> bytearray:
    """
    Generate cryptographically secure random bytes.

    Returns a bytearray so the caller can zero it after use.
    """
    if length < 0:
        raise OperationError(f"Cannot generate {length} random bytes")
    try:
        return bytearray(get_random_bytes(length))
    except OSError as e:
        raise OperationError(f"Failed to generate random bytes: {e}") from e


def generate_secret(length: int = DEFAULT_SECRET_LENGTH) -> "Secret":
    """
    Generate a fresh note secret.

    Args:
        length: Secret length in bytes (validated against secret bounds)
    """
    from spark_note.core.secret import Secret

    buf = generate_random_bytes(length)
    try:
        validate_secret(buf)
        return Secret(buf)
    finally:
        # Secret keeps its own copy
        buf[:] = bytes(len(buf))
