"""
Spark Note Constants

All protocol constants defined here for single source of truth.
"""

from typing import Final

# ==============================================================================
# VALIDATION BOUNDS
# ==============================================================================

MIN_SECRET_LENGTH: Final[int] = 8               # Shortest accepted secret
MAX_SECRET_LENGTH: Final[int] = 1024            # Longest accepted secret
DEFAULT_SECRET_LENGTH: Final[int] = 32          # Length of generated secrets
NULLIFIER_LENGTH: Final[int] = 32               # BLAKE3 output
COMMITMENT_LENGTH: Final[int] = 32              # SHA-256 output

MAX_NOTE_VALUE: Final[int] = 2**64 - 1          # Values are unsigned 64-bit

# ==============================================================================
# HASHING
# ==============================================================================

# Domain tag prepended to every commitment preimage
COMMITMENT_DOMAIN: Final[bytes] = b"SPARK_COMMITMENT_V1"

BIG_ENDIAN: Final[str] = "big"
U64_SIZE: Final[int] = 8

# ==============================================================================
# SPENT SET
# ==============================================================================

# Per-entry overhead estimate used for memory statistics
NULLIFIER_SET_ENTRY_OVERHEAD: Final[int] = 8

# Export format version written by this implementation
EXPORT_FORMAT_VERSION: Final[int] = 1

# ==============================================================================
# STORAGE
# ==============================================================================

STORE_SCHEMA_VERSION: Final[int] = 1
DEFAULT_DB_NAME: Final[str] = "spent_nullifiers.db"
