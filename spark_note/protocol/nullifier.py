"""
Spark Note Nullifier Generation and Spent Tracking

The nullifier is BLAKE3(commitment || secret): a token that marks a note as
consumed without revealing its secret. The helpers below wrap NullifierSet
for call sites that work with plain functions.
"""

from __future__ import annotations
import logging
from typing import Iterable, List, Union, TYPE_CHECKING

from spark_note.core.secret import Secret
from spark_note.core.types import Nullifier
from spark_note.crypto.hash import compute_nullifier
from spark_note.errors import OperationError
from spark_note.protocol.note import Note, PublicNote, verify_opening

if TYPE_CHECKING:
    from spark_note.state.nullifier_set import NullifierLike, NullifierSet, NullifierSetStats

logger = logging.getLogger(__name__)

SecretInput = Union[Secret, bytes, bytearray]


def _secret_view(secret: SecretInput):
    return secret.view() if isinstance(secret, Secret) else secret


def generate_nullifier(note: Note, secret: SecretInput) -> Nullifier:
    """
    Generate the nullifier for a note.

    Args:
        note: The note being spent
        secret: The spending secret

    Returns:
        32-byte Nullifier
    """
    return Nullifier(compute_nullifier(note.commitment, _secret_view(secret)))


def generate_nullifier_for_public(public_note: PublicNote, secret: SecretInput) -> Nullifier:
    """
    Generate a nullifier from a public note and a disclosed secret.

    The secret must open the note's commitment first.

    Raises:
        OperationError: if the secret does not match the commitment
    """
    if not verify_opening(public_note, secret):
        raise OperationError("Commitment mismatch - invalid secret")
    return Nullifier(compute_nullifier(public_note.commitment, _secret_view(secret)))


def is_nullifier_spent(nullifier: NullifierLike, spent_set: NullifierSet) -> bool:
    """Checks if a nullifier has been spent. Malformed input is never spent."""
    return spent_set.contains(nullifier)


def check_multiple_nullifiers(
    nullifiers: Iterable[NullifierLike],
    spent_set: NullifierSet,
) -> List[bool]:
    """
    Checks multiple nullifiers at once.

    Returns:
        Whether each nullifier is spent, in input order
    """
    return spent_set.check_many(nullifiers)


def mark_as_spent(nullifier: NullifierLike, spent_set: NullifierSet) -> None:
    """
    Marks a nullifier as spent with validation.

    Raises:
        NullifierError: if the nullifier is malformed
        AlreadySpentError: if it is already spent
    """
    spent_set.add_or_reject(nullifier)


def mark_multiple_as_spent(
    nullifiers: Iterable[NullifierLike],
    spent_set: NullifierSet,
) -> None:
    """
    Marks multiple nullifiers as spent. Nothing is recorded unless every
    nullifier in the batch is valid and unspent.
    """
    spent_set.mark_many_spent(nullifiers)


def get_nullifier_set_size(spent_set: NullifierSet) -> int:
    return spent_set.size()


def get_nullifier_set_stats(spent_set: NullifierSet) -> NullifierSetStats:
    return spent_set.stats()


def spend_note(note: Note, secret: SecretInput, spent_set: NullifierSet) -> Nullifier:
    """
    Derive a note's nullifier and record it as spent in one call.

    Raises:
        OperationError: if the secret does not open the note
        AlreadySpentError: if the note was already spent
    """
    if not note.opens_with(secret):
        raise OperationError("Commitment mismatch - invalid secret")
    nullifier = generate_nullifier(note, secret)
    spent_set.add_or_reject(nullifier)
    logger.info(f"Note spent: value={note.value} nullifier={nullifier}")
    return nullifier
