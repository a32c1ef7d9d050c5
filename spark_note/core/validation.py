"""
Spark Note Input Validation

Length and range checks shared by secrets, notes and nullifiers.
Every check raises a typed SparkError; none of them return flags.
"""

from __future__ import annotations
from typing import Union

from spark_note.constants import (
    MIN_SECRET_LENGTH,
    MAX_SECRET_LENGTH,
    NULLIFIER_LENGTH,
    MAX_NOTE_VALUE,
)
from spark_note.errors import (
    InvalidSecretError,
    InvalidValueError,
    NullifierError,
    SecretErrorCode,
    ValueErrorCode,
    NullifierErrorCode,
)

BytesLike = Union[bytes, bytearray, memoryview]


def _byte_length(data: BytesLike) -> int:
    if isinstance(data, memoryview):
        return data.nbytes
    return len(data)


def validate_secret(secret: BytesLike) -> None:
    """
    Validate raw secret bytes.

    Raises:
        InvalidSecretError: EMPTY, TOO_SHORT, TOO_LONG or INVALID_FORMAT
    """
    if not isinstance(secret, (bytes, bytearray, memoryview)):
        raise InvalidSecretError(
            f"Secret must be bytes-like, got {type(secret).__name__}",
            SecretErrorCode.INVALID_FORMAT,
        )

    length = _byte_length(secret)

    if length == 0:
        raise InvalidSecretError("Secret cannot be empty", SecretErrorCode.EMPTY)

    if length < MIN_SECRET_LENGTH:
        raise InvalidSecretError(
            f"Secret must be at least {MIN_SECRET_LENGTH} bytes, got {length}",
            SecretErrorCode.TOO_SHORT,
        )

    if length > MAX_SECRET_LENGTH:
        raise InvalidSecretError(
            f"Secret must be at most {MAX_SECRET_LENGTH} bytes, got {length}",
            SecretErrorCode.TOO_LONG,
        )


def validate_value(value: int) -> None:
    """
    Validate a note value: a nonzero unsigned 64-bit integer.

    Raises:
        InvalidValueError: ZERO, EXCEEDS_MAX or INVALID
    """
    # bool is an int subclass but never a meaningful amount
    if isinstance(value, bool) or not isinstance(value, int):
        raise InvalidValueError(
            f"Value must be an integer, got {type(value).__name__}",
            ValueErrorCode.INVALID,
        )

    if value == 0:
        raise InvalidValueError("Value must be greater than zero", ValueErrorCode.ZERO)

    if value < 0:
        raise InvalidValueError(
            f"Value must be unsigned, got {value}",
            ValueErrorCode.INVALID,
        )

    if value > MAX_NOTE_VALUE:
        raise InvalidValueError(
            f"Value must fit in 64 bits, got {value}",
            ValueErrorCode.EXCEEDS_MAX,
        )


def validate_nullifier(nullifier: BytesLike) -> None:
    """
    Validate raw nullifier bytes.

    Zero-length input is reported as EMPTY so callers can tell missing
    input from malformed input.

    Raises:
        NullifierError: EMPTY, WRONG_LENGTH or INVALID_FORMAT
    """
    if not isinstance(nullifier, (bytes, bytearray, memoryview)):
        raise NullifierError(
            f"Nullifier must be bytes-like, got {type(nullifier).__name__}",
            NullifierErrorCode.INVALID_FORMAT,
        )

    length = _byte_length(nullifier)

    if length == 0:
        raise NullifierError("Nullifier cannot be empty", NullifierErrorCode.EMPTY)

    if length != NULLIFIER_LENGTH:
        raise NullifierError(
            f"Nullifier must be exactly {NULLIFIER_LENGTH} bytes, got {length}",
            NullifierErrorCode.WRONG_LENGTH,
        )
