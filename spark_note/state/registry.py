"""
Spark Note Registry

Tracks notes by identifier together with their lifecycle:

    Unspent --(generate nullifier, mark spent)--> Spent

There is no transition out of Spent. The registry owns (or shares) a
NullifierSet; marking a note spent records its nullifier there, so the
same nullifier cannot be spent through any other path either.
"""

from __future__ import annotations
import copy
import logging
import threading
from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, List, Optional, Union

from spark_note.core.secret import Secret
from spark_note.core.types import Nullifier
from spark_note.errors import OperationError
from spark_note.protocol.note import Note, PublicNote
from spark_note.protocol.nullifier import generate_nullifier
from spark_note.state.nullifier_set import NullifierLike, NullifierSet, NullifierSetStats

logger = logging.getLogger(__name__)


class NoteState(Enum):
    UNSPENT = "Unspent"
    SPENT = "Spent"


@dataclass(frozen=True)
class NoteEntry:
    """Public view of a registered note. Carries no secret."""
    note: PublicNote
    state: NoteState
    nullifier: Optional[Nullifier] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "note": self.note.to_dict(),
            "state": self.state.value,
            "nullifier": self.nullifier.hex() if self.nullifier else None,
        }


@dataclass
class _Entry:
    note: Note
    state: NoteState = NoteState.UNSPENT
    nullifier: Optional[Nullifier] = None

    def public(self) -> NoteEntry:
        return NoteEntry(note=self.note.to_public(), state=self.state, nullifier=self.nullifier)


class NoteRegistry:
    """
    Note registry with spent tracking.

    All operations are serialized through one lock.
    """

    def __init__(self, spent_set: Optional[NullifierSet] = None):
        self._notes: Dict[str, _Entry] = {}
        self._spent = spent_set if spent_set is not None else NullifierSet()
        self._lock = threading.Lock()

    @property
    def spent_set(self) -> NullifierSet:
        return self._spent

    # =========================================================================
    # NOTES
    # =========================================================================

    def add_note(self, note_id: str, note: Note) -> None:
        """
        Register a copy of a note under an identifier.

        The registry owns its copy; the caller keeps ownership of the note
        it passed in.

        Raises:
            OperationError: if the identifier is already in use
        """
        owned = copy.copy(note)
        with self._lock:
            duplicate = note_id in self._notes
            if not duplicate:
                self._notes[note_id] = _Entry(note=owned)
        if duplicate:
            owned.release()
            raise OperationError(f"Note already registered: {note_id}")
        logger.debug(f"Note registered: {note_id} value={note.value}")

    def get_note(self, note_id: str) -> Optional[NoteEntry]:
        with self._lock:
            entry = self._notes.get(note_id)
            return entry.public() if entry else None

    def list_note_ids(self) -> List[str]:
        with self._lock:
            return list(self._notes)

    def list_notes(self) -> Dict[str, NoteEntry]:
        with self._lock:
            return {note_id: e.public() for note_id, e in self._notes.items()}

    def remove_note(self, note_id: str) -> bool:
        """
        Drop a note from the registry and zero the registry's copy of its secret.

        A spent note's nullifier stays in the spent set.

        Returns:
            True if a note was removed
        """
        with self._lock:
            entry = self._notes.pop(note_id, None)
        if entry is None:
            return False
        entry.note.release()
        logger.debug(f"Note removed: {note_id}")
        return True

    def note_count(self) -> int:
        with self._lock:
            return len(self._notes)

    # =========================================================================
    # SPENDING
    # =========================================================================

    def generate_nullifier_for_note(
        self,
        note_id: str,
        secret: Union[Secret, bytes, bytearray],
    ) -> Nullifier:
        """
        Derive and remember the nullifier of a registered note.

        Raises:
            OperationError: unknown note, note already spent, or the secret
                does not open the note
        """
        with self._lock:
            entry = self._notes.get(note_id)
            if entry is None:
                raise OperationError(f"Note not found: {note_id}")
            if entry.state is NoteState.SPENT:
                raise OperationError(f"Note already spent: {note_id}")
            if not entry.note.opens_with(secret):
                raise OperationError("Commitment mismatch - invalid secret")

            nullifier = generate_nullifier(entry.note, secret)
            entry.nullifier = nullifier
        return nullifier

    def mark_note_as_spent(self, note_id: str) -> None:
        """
        Record a note's nullifier in the spent set and move it to Spent.

        Raises:
            OperationError: unknown note or no nullifier generated yet
            AlreadySpentError: the nullifier is already in the spent set
        """
        with self._lock:
            entry = self._notes.get(note_id)
            if entry is None:
                raise OperationError(f"Note not found: {note_id}")
            if entry.nullifier is None:
                raise OperationError(f"No nullifier generated for note: {note_id}")

            self._spent.add_or_reject(entry.nullifier)
            entry.state = NoteState.SPENT

        logger.info(f"Note spent: {note_id} nullifier={entry.nullifier}")

    def add_spent_nullifier(self, nullifier: NullifierLike) -> None:
        """Record an externally observed spend."""
        self._spent.add_or_reject(nullifier)

    def is_nullifier_spent(self, nullifier: NullifierLike) -> bool:
        return self._spent.contains(nullifier)

    def spent_nullifier_count(self) -> int:
        return self._spent.size()

    def get_nullifier_stats(self) -> NullifierSetStats:
        return self._spent.stats()

    def export_spent_nullifiers(self) -> str:
        """Versioned JSON export of the spent set."""
        return self._spent.to_json()

    def __repr__(self) -> str:
        return f"NoteRegistry(notes={self.note_count()}, spent={self.spent_nullifier_count()})"
