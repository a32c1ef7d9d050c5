"""
Spark Note Core
Commit-and-nullify notes with double-spend tracking

A note hides a value behind a SHA-256 commitment bound to a secret.
Spending reveals a BLAKE3 nullifier that can be recorded exactly once.
"""

__version__ = "0.2.0"

from spark_note.constants import (
    COMMITMENT_LENGTH,
    NULLIFIER_LENGTH,
    MIN_SECRET_LENGTH,
    MAX_SECRET_LENGTH,
)

__all__ = [
    "COMMITMENT_LENGTH",
    "NULLIFIER_LENGTH",
    "MIN_SECRET_LENGTH",
    "MAX_SECRET_LENGTH",
    "__version__",
]
