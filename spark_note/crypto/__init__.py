"""
Spark Note Cryptographic Primitives
"""

from spark_note.crypto.hash import compute_commitment, compute_nullifier, constant_time_eq
from spark_note.crypto.rng import generate_random_bytes, generate_secret

__all__ = [
    # Hash functions
    "compute_commitment",
    "compute_nullifier",
    "constant_time_eq",
    # Randomness
    "generate_random_bytes",
    "generate_secret",
]
