"""
Spark Note Core Data Structures
"""

from spark_note.core.validation import (
    validate_secret,
    validate_value,
    validate_nullifier,
)
from spark_note.core.types import Nullifier
from spark_note.core.secret import Secret, secure_zero

__all__ = [
    # Types
    "Nullifier",
    "Secret",
    "secure_zero",
    # Validation
    "validate_secret",
    "validate_value",
    "validate_nullifier",
]
