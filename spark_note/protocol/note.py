"""
Spark Note Structure

A note binds a value to a secret through a commitment. Only the public
projection (value, commitment) may leave the process.
"""

from __future__ import annotations
from dataclasses import dataclass
from typing import Any, Dict, Optional, Union

from spark_note.constants import COMMITMENT_LENGTH
from spark_note.core.secret import Secret, refuse_restore
from spark_note.core.validation import validate_value
from spark_note.crypto.hash import compute_commitment, constant_time_eq
from spark_note.errors import InvalidSecretError, InvalidValueError, SerializationError


@dataclass(frozen=True, slots=True)
class PublicNote:
    """
    Public projection of a note.

    SERIALIZATION: {"value": u64, "commitment": "<64 hex chars>"}
    """
    value: int
    commitment: bytes

    def __post_init__(self):
        validate_value(self.value)
        if len(self.commitment) != COMMITMENT_LENGTH:
            raise SerializationError(
                f"Commitment must be {COMMITMENT_LENGTH} bytes, got {len(self.commitment)}"
            )
        if not isinstance(self.commitment, bytes):
            object.__setattr__(self, "commitment", bytes(self.commitment))

    def __repr__(self) -> str:
        return f"PublicNote(value={self.value}, commitment={self.commitment.hex()[:16]}...)"

    def to_dict(self) -> Dict[str, Any]:
        return {"value": self.value, "commitment": self.commitment.hex()}

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> PublicNote:
        if not isinstance(data, dict):
            raise SerializationError("Public note must be a JSON object")
        if "secret" in data:
            raise SerializationError("Public note must not carry a secret")
        try:
            value = data["value"]
            commitment = bytes.fromhex(data["commitment"])
        except KeyError as e:
            raise SerializationError(f"Public note missing field {e}") from e
        except (TypeError, ValueError) as e:
            raise SerializationError(f"Invalid commitment encoding: {e}") from e
        return cls(value=value, commitment=commitment)


class Note:
    """
    A value note with its secret and commitment.

    The note keeps its own copy of the secret, so the caller remains free to
    release the Secret it passed in. The commitment is computed once at
    construction and cannot be changed.
    """

    __slots__ = ("_value", "_secret", "_commitment")

    def __init__(self, value: int, secret: Union[Secret, bytes, bytearray]):
        owned = secret.clone() if isinstance(secret, Secret) else Secret(secret)
        try:
            commitment = compute_commitment(value, owned.view())
        except Exception:
            owned.release()
            raise

        self._value = value
        self._secret = owned
        self._commitment = commitment

    @property
    def value(self) -> int:
        return self._value

    @property
    def commitment(self) -> bytes:
        return self._commitment

    @property
    def secret(self) -> Secret:
        """The note's secret. Do not release it while the note is in use."""
        return self._secret

    def secret_bytes(self) -> bytes:
        """
        Copy of the secret bytes.

        WARNING: This exposes the secret. Use only when necessary.
        """
        return self._secret.as_bytes()

    def to_public(self) -> PublicNote:
        return PublicNote(value=self._value, commitment=self._commitment)

    def opens_with(self, secret: Union[Secret, bytes, bytearray]) -> bool:
        """Check in constant time whether a secret matches this note's commitment."""
        return verify_opening(self.to_public(), secret)

    def release(self) -> None:
        """Zero the note's secret."""
        self._secret.release()

    def __enter__(self) -> Note:
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.release()

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Note):
            return NotImplemented
        return (
            self._value == other._value
            and constant_time_eq(self._commitment, other._commitment)
            and self._secret == other._secret
        )

    __hash__ = None

    def __repr__(self) -> str:
        return f"Note(value={self._value}, commitment={self._commitment.hex()[:16]}..., secret=***)"

    def __reduce__(self):
        return (refuse_restore, ("Note",))

    def __copy__(self) -> Note:
        return Note(self._value, self._secret)

    def __deepcopy__(self, memo: Optional[dict]) -> Note:
        return Note(self._value, self._secret)


def create_note(value: int, secret: Union[Secret, bytes, bytearray]) -> Note:
    """Creates a new Note (convenience function)."""
    return Note(value, secret)


def note_commitment(note: Note) -> bytes:
    """Returns the commitment of a note."""
    return note.commitment


def verify_opening(public_note: PublicNote, secret: Union[Secret, bytes, bytearray]) -> bool:
    """
    Check that a disclosed secret opens a public note.

    This is the only way to link a note to its holder: the verifier
    recomputes the commitment from the secret.
    """
    data = secret.view() if isinstance(secret, Secret) else secret
    try:
        candidate = compute_commitment(public_note.value, data)
    except (InvalidSecretError, InvalidValueError):
        return False
    return constant_time_eq(candidate, public_note.commitment)
