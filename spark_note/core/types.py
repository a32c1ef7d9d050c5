"""
Spark Note Fixed-Size Types

All multi-byte integers are BIG-ENDIAN unless noted.
"""

from __future__ import annotations
from dataclasses import dataclass
import hmac

from spark_note.constants import NULLIFIER_LENGTH
from spark_note.core.validation import BytesLike, validate_nullifier
from spark_note.errors import NullifierError, NullifierErrorCode


@dataclass(frozen=True, slots=True)
class Nullifier:
    """
    BLAKE3 nullifier output.

    SIZE: 32 bytes
    SERIALIZATION: raw bytes, or 64 lowercase hex chars in JSON
    """
    data: bytes

    def __post_init__(self):
        validate_nullifier(self.data)
        if not isinstance(self.data, bytes):
            object.__setattr__(self, "data", bytes(self.data))

    def __bytes__(self) -> bytes:
        return self.data

    def __eq__(self, other: object) -> bool:
        # Constant time: claimed nullifiers may come from untrusted parties
        if isinstance(other, Nullifier):
            return hmac.compare_digest(self.data, other.data)
        if isinstance(other, (bytes, bytearray, memoryview)):
            return hmac.compare_digest(self.data, bytes(other))
        return NotImplemented

    def __hash__(self) -> int:
        return hash(self.data)

    def __len__(self) -> int:
        return NULLIFIER_LENGTH

    def __repr__(self) -> str:
        return f"Nullifier({self.data.hex()[:16]}...)"

    def __str__(self) -> str:
        return self.data.hex()[:16]

    def hex(self) -> str:
        return self.data.hex()

    def to_bytes(self) -> bytes:
        return self.data

    @classmethod
    def from_hex(cls, hex_string: str) -> Nullifier:
        try:
            data = bytes.fromhex(hex_string)
        except ValueError as e:
            raise NullifierError(
                f"Nullifier is not valid hex: {e}",
                NullifierErrorCode.INVALID_FORMAT,
            ) from e
        return cls(data)

    @classmethod
    def from_bytes(cls, data: BytesLike) -> Nullifier:
        return cls(bytes(data))

    @classmethod
    def coerce(cls, value: "Nullifier | BytesLike") -> Nullifier:
        """Accept either a Nullifier or raw bytes."""
        if isinstance(value, Nullifier):
            return value
        return cls(value)

    def serialize(self) -> bytes:
        """Serialize to raw bytes."""
        return self.data

    @classmethod
    def deserialize(cls, data: bytes, offset: int = 0) -> tuple[Nullifier, int]:
        """Deserialize from bytes, return (Nullifier, bytes_consumed)."""
        return cls(data[offset:offset + NULLIFIER_LENGTH]), NULLIFIER_LENGTH
