"""
Spark Note Protocol: notes, commitments and nullifiers
"""

from spark_note.protocol.note import (
    Note,
    PublicNote,
    create_note,
    note_commitment,
    verify_opening,
)
from spark_note.protocol.nullifier import (
    generate_nullifier,
    generate_nullifier_for_public,
    is_nullifier_spent,
    check_multiple_nullifiers,
    mark_as_spent,
    mark_multiple_as_spent,
    get_nullifier_set_size,
    get_nullifier_set_stats,
    spend_note,
)

__all__ = [
    # Notes
    "Note",
    "PublicNote",
    "create_note",
    "note_commitment",
    "verify_opening",
    # Nullifiers
    "generate_nullifier",
    "generate_nullifier_for_public",
    "is_nullifier_spent",
    "check_multiple_nullifiers",
    "mark_as_spent",
    "mark_multiple_as_spent",
    "get_nullifier_set_size",
    "get_nullifier_set_stats",
    "spend_note",
]
