"""
Spark Note Spent Nullifier Set

Append-only set of spent nullifiers. There is no removal: once a nullifier
is recorded it stays recorded for the life of the set.

Every mutation, and every check that decides a mutation, runs under a
single lock, so two threads spending the same nullifier can never both be
told they succeeded.
"""

from __future__ import annotations
import logging
import threading
from dataclasses import dataclass, asdict
from typing import Dict, Iterable, Iterator, List, Set, Union

from spark_note.constants import NULLIFIER_LENGTH, NULLIFIER_SET_ENTRY_OVERHEAD
from spark_note.core.types import Nullifier
from spark_note.errors import AlreadySpentError, NullifierError

logger = logging.getLogger(__name__)

NullifierLike = Union[Nullifier, bytes, bytearray, memoryview]


@dataclass
class NullifierSetStats:
    """Nullifier set statistics."""
    count: int = 0
    memory_usage_bytes: int = 0

    def to_dict(self) -> Dict[str, int]:
        return asdict(self)


def estimate_memory(count: int) -> int:
    """Estimated bytes held by `count` entries: key plus per-entry overhead."""
    return count * (NULLIFIER_LENGTH + NULLIFIER_SET_ENTRY_OVERHEAD)


class NullifierSet:
    """
    Thread-safe set of spent nullifiers.

    Provides:
    - Membership tests (contains)
    - Insert-if-absent (add, add_or_reject)
    - All-or-nothing batch marking (mark_many_spent)
    - Snapshot export and statistics
    """

    def __init__(self, nullifiers: Iterable[NullifierLike] = ()):
        self._spent: Set[Nullifier] = {Nullifier.coerce(n) for n in nullifiers}
        self._lock = threading.Lock()

    # =========================================================================
    # QUERIES
    # =========================================================================

    def contains(self, nullifier: NullifierLike) -> bool:
        """
        Check if a nullifier is in the set.

        Malformed byte input is reported as not present.
        """
        try:
            n = Nullifier.coerce(nullifier)
        except NullifierError:
            return False
        with self._lock:
            return n in self._spent

    def __contains__(self, nullifier: object) -> bool:
        if not isinstance(nullifier, (Nullifier, bytes, bytearray, memoryview)):
            return False
        return self.contains(nullifier)

    def check_many(self, nullifiers: Iterable[NullifierLike]) -> List[bool]:
        """Membership of each nullifier, in input order."""
        candidates = []
        for n in nullifiers:
            try:
                candidates.append(Nullifier.coerce(n))
            except NullifierError:
                candidates.append(None)
        with self._lock:
            return [c is not None and c in self._spent for c in candidates]

    def size(self) -> int:
        with self._lock:
            return len(self._spent)

    def __len__(self) -> int:
        return self.size()

    def __iter__(self) -> Iterator[Nullifier]:
        # Iterate a snapshot so concurrent inserts cannot break iteration
        with self._lock:
            snapshot = list(self._spent)
        return iter(snapshot)

    def stats(self) -> NullifierSetStats:
        count = self.size()
        return NullifierSetStats(count=count, memory_usage_bytes=estimate_memory(count))

    def export(self) -> List[bytes]:
        """Snapshot of all members as raw bytes. Order is not significant."""
        with self._lock:
            return [n.data for n in self._spent]

    def copy(self) -> NullifierSet:
        with self._lock:
            return NullifierSet(self._spent)

    # =========================================================================
    # MUTATIONS
    # =========================================================================

    def add(self, nullifier: NullifierLike) -> bool:
        """
        Insert a nullifier.

        Returns:
            True if newly inserted, False if it was already present

        Raises:
            NullifierError: if the input is not a valid 32-byte nullifier
        """
        n = Nullifier.coerce(nullifier)
        with self._lock:
            if n in self._spent:
                return False
            self._spent.add(n)
        logger.debug(f"Nullifier recorded: {n}")
        return True

    def add_or_reject(self, nullifier: NullifierLike) -> None:
        """
        Record a nullifier as spent, atomically.

        Raises:
            AlreadySpentError: if the nullifier was already recorded
            NullifierError: if the input is malformed
        """
        n = Nullifier.coerce(nullifier)
        with self._lock:
            if n in self._spent:
                logger.warning(f"Double-spend attempt rejected: {n}")
                raise AlreadySpentError()
            self._spent.add(n)
        logger.debug(f"Nullifier spent: {n}")

    def mark_many_spent(self, nullifiers: Iterable[NullifierLike]) -> None:
        """
        Record a batch of nullifiers, all or nothing.

        If any entry is malformed, already spent, or repeated within the
        batch, nothing from the batch is recorded.

        Raises:
            NullifierError: malformed entry
            AlreadySpentError: conflict with the set or within the batch
        """
        batch = [Nullifier.coerce(n) for n in nullifiers]

        if len(set(batch)) != len(batch):
            raise AlreadySpentError("Batch contains the same nullifier more than once")

        with self._lock:
            if any(n in self._spent for n in batch):
                logger.warning(f"Batch of {len(batch)} rejected: already spent")
                raise AlreadySpentError("One or more nullifiers are already spent")
            self._spent.update(batch)

        logger.debug(f"Batch of {len(batch)} nullifiers spent")

    def merge(self, other: Iterable[NullifierLike]) -> int:
        """
        Insert every absent member of another collection.

        Returns:
            Number of nullifiers newly added
        """
        incoming = {Nullifier.coerce(n) for n in other}
        with self._lock:
            fresh = incoming - self._spent
            self._spent.update(fresh)
        return len(fresh)

    # =========================================================================
    # SERIALIZATION
    # =========================================================================

    def to_json(self) -> str:
        """Export as versioned JSON."""
        from spark_note.serialization import export_nullifier_set
        return export_nullifier_set(self)

    @classmethod
    def from_json(cls, payload: Union[str, bytes]) -> NullifierSet:
        """Import from versioned JSON. Fails as a whole on any bad entry."""
        from spark_note.serialization import import_nullifier_set
        return import_nullifier_set(payload)

    def __repr__(self) -> str:
        return f"NullifierSet(count={self.size()})"
