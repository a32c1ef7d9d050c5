"""
Spark Note Secret Container

Secret owns a private bytearray holding the raw secret. The buffer is
overwritten with zeros exactly once, when the owner releases it: through
release(), on leaving a ``with`` block, or as a last resort when the object
is finalized. Callers that hold a Secret should release it explicitly;
finalization timing is up to the interpreter.

Secrets never cross a serialization boundary. Pickling a Secret records
no secret bytes, and restoring that record raises SerializationError
instead of producing an empty secret.
"""

from __future__ import annotations
import hmac
from typing import Optional, Union

from spark_note.constants import DEFAULT_SECRET_LENGTH
from spark_note.errors import (
    InvalidSecretError,
    OperationError,
    SecretErrorCode,
    SerializationError,
)

SecretSource = Union[bytes, bytearray, memoryview]


def secure_zero(data: bytearray) -> None:
    """Overwrite a bytearray in place with zeros."""
    data[:] = bytes(len(data))


def refuse_restore(type_name: str) -> None:
    raise SerializationError(
        f"{type_name} cannot be deserialized - secrets must not be loaded from untrusted sources"
    )


class Secret:
    """
    Raw secret bytes with zeroization on release.

    The constructor copies its input into a buffer owned by this object,
    so later changes to the caller's buffer never reach the secret.
    Length is not checked here; notes and hash functions validate it.
    """

    __slots__ = ("_buf", "_released", "__weakref__")

    def __init__(self, data: SecretSource = b""):
        if not isinstance(data, (bytes, bytearray, memoryview)):
            raise TypeError(f"Secret requires bytes-like data, got {type(data).__name__}")
        self._buf = bytearray(data)
        self._released = False

    @classmethod
    def generate(cls, length: int = DEFAULT_SECRET_LENGTH) -> "Secret":
        """Create a secret from the system CSPRNG."""
        from spark_note.crypto.rng import generate_secret
        return generate_secret(length)

    @classmethod
    def from_hex(cls, hex_string: str) -> "Secret":
        try:
            buf = bytearray.fromhex(hex_string)
        except ValueError as e:
            raise InvalidSecretError(
                f"Secret is not valid hex: {e}", SecretErrorCode.INVALID_FORMAT
            ) from e
        try:
            return cls(buf)
        finally:
            secure_zero(buf)

    def _check_live(self) -> None:
        if self._released:
            raise OperationError("Secret has been released")

    def view(self) -> memoryview:
        """
        Read-only view over the secret bytes, without copying.

        The view must not outlive the secret.
        """
        self._check_live()
        return memoryview(self._buf).toreadonly()

    def as_bytes(self) -> bytes:
        """
        Copy of the secret bytes.

        WARNING: the returned bytes object is immutable and cannot be zeroed.
        Prefer view() for hashing.
        """
        self._check_live()
        return bytes(self._buf)

    def hex(self) -> str:
        """Hex form of the secret. Exposes the secret; use with caution."""
        self._check_live()
        return self._buf.hex()

    def clone(self) -> "Secret":
        """Independent copy with its own buffer and lifetime."""
        self._check_live()
        return Secret(self._buf)

    @property
    def released(self) -> bool:
        return self._released

    def is_empty(self) -> bool:
        return len(self) == 0

    def release(self) -> None:
        """Zero the buffer. Safe to call more than once."""
        if self._released:
            return
        secure_zero(self._buf)
        self._released = True

    def __len__(self) -> int:
        self._check_live()
        return len(self._buf)

    def __enter__(self) -> "Secret":
        self._check_live()
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.release()

    def __del__(self):
        # Objects half-built by a failing __init__ have no buffer
        if getattr(self, "_buf", None) is not None and not self._released:
            self.release()

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Secret):
            return NotImplemented
        if self._released or other._released:
            return False
        return hmac.compare_digest(self._buf, other._buf)

    # Mutable contents; never usable as a dict key
    __hash__ = None

    def __repr__(self) -> str:
        # Never expose secret data
        return "Secret(***)"

    __str__ = __repr__

    def __reduce__(self):
        return (refuse_restore, ("Secret",))

    def __copy__(self) -> "Secret":
        return self.clone()

    def __deepcopy__(self, memo: Optional[dict]) -> "Secret":
        return self.clone()
