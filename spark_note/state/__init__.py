"""
Spark Note State

Spent nullifier tracking (in-memory and SQLite) and the note registry.
"""

from spark_note.state.nullifier_set import NullifierSet, NullifierSetStats, estimate_memory
from spark_note.state.registry import NoteEntry, NoteRegistry, NoteState
from spark_note.state.store import SqliteNullifierStore

__all__ = [
    "NullifierSet",
    "NullifierSetStats",
    "estimate_memory",
    "NoteEntry",
    "NoteRegistry",
    "NoteState",
    "SqliteNullifierStore",
]
