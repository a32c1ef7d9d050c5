"""
Spark Note Hash Function Tests
"""

import hashlib

import pytest
from blake3 import blake3

from spark_note.constants import COMMITMENT_DOMAIN, MAX_NOTE_VALUE
from spark_note.crypto.hash import compute_commitment, compute_nullifier, constant_time_eq
from spark_note.errors import (
    InvalidSecretError,
    InvalidValueError,
    OperationError,
    SecretErrorCode,
    ValueErrorCode,
)


def _reference_commitment(value: int, secret: bytes) -> bytes:
    preimage = (
        COMMITMENT_DOMAIN
        + value.to_bytes(8, "big")
        + len(secret).to_bytes(8, "big")
        + secret
    )
    return hashlib.sha256(preimage).digest()


class TestCommitment:
    """Tests for compute_commitment."""

    def test_preimage_layout(self, sample_secret_bytes):
        """Test commitment is SHA-256 over tag, value, length and secret."""
        commitment = compute_commitment(100, sample_secret_bytes)
        assert commitment == _reference_commitment(100, sample_secret_bytes)
        assert len(commitment) == 32

    def test_domain_tag(self):
        assert COMMITMENT_DOMAIN == b"SPARK_COMMITMENT_V1"

    def test_deterministic(self, sample_secret_bytes):
        assert compute_commitment(5, sample_secret_bytes) == compute_commitment(5, sample_secret_bytes)

    def test_binds_value(self, sample_secret_bytes):
        assert compute_commitment(100, sample_secret_bytes) != compute_commitment(101, sample_secret_bytes)

    def test_binds_secret(self, sample_secret_bytes, other_secret_bytes):
        assert compute_commitment(100, sample_secret_bytes) != compute_commitment(100, other_secret_bytes)

    def test_accepts_memoryview(self, sample_secret):
        assert compute_commitment(100, sample_secret.view()) == _reference_commitment(
            100, bytes(range(1, 9))
        )

    def test_max_value(self, sample_secret_bytes):
        assert compute_commitment(MAX_NOTE_VALUE, sample_secret_bytes) == _reference_commitment(
            MAX_NOTE_VALUE, sample_secret_bytes
        )

    @pytest.mark.parametrize("length", [8, 1024])
    def test_secret_length_bounds_accepted(self, length):
        compute_commitment(1, bytes(length))

    @pytest.mark.parametrize("length,code", [
        (0, SecretErrorCode.EMPTY),
        (7, SecretErrorCode.TOO_SHORT),
        (1025, SecretErrorCode.TOO_LONG),
    ])
    def test_secret_length_bounds_rejected(self, length, code):
        with pytest.raises(InvalidSecretError) as exc:
            compute_commitment(1, bytes(length))
        assert exc.value.code is code

    def test_zero_value_rejected(self, sample_secret_bytes):
        with pytest.raises(InvalidValueError) as exc:
            compute_commitment(0, sample_secret_bytes)
        assert exc.value.code is ValueErrorCode.ZERO

    def test_value_checked_before_secret(self):
        """Test value errors take precedence over secret errors."""
        with pytest.raises(InvalidValueError):
            compute_commitment(0, b"")


class TestNullifierHash:
    """Tests for compute_nullifier."""

    def test_blake3_layout(self, sample_secret_bytes):
        """Test nullifier is BLAKE3 over commitment then secret."""
        commitment = compute_commitment(100, sample_secret_bytes)
        expected = blake3(commitment + sample_secret_bytes).digest()
        assert compute_nullifier(commitment, sample_secret_bytes) == expected

    def test_differs_from_commitment(self, sample_secret_bytes):
        commitment = compute_commitment(100, sample_secret_bytes)
        assert compute_nullifier(commitment, sample_secret_bytes) != commitment

    def test_distinct_notes_distinct_nullifiers(self, sample_secret_bytes):
        c1 = compute_commitment(100, sample_secret_bytes)
        c2 = compute_commitment(200, sample_secret_bytes)
        assert compute_nullifier(c1, sample_secret_bytes) != compute_nullifier(c2, sample_secret_bytes)

    def test_bad_commitment_length(self, sample_secret_bytes):
        with pytest.raises(OperationError):
            compute_nullifier(bytes(31), sample_secret_bytes)

    def test_bad_secret(self):
        with pytest.raises(InvalidSecretError):
            compute_nullifier(bytes(32), bytes(3))


class TestConstantTimeEq:
    """Tests for constant_time_eq."""

    def test_equal(self):
        assert constant_time_eq(b"abc", b"abc")

    def test_unequal(self):
        assert not constant_time_eq(b"abc", b"abd")

    def test_length_mismatch(self):
        assert not constant_time_eq(b"abc", b"abcd")


class TestScenario:
    """Known-input scenario for commitment and nullifier."""

    def test_value_1000_secret_1_to_8(self):
        forward = bytes(range(1, 9))
        reverse = bytes(range(8, 0, -1))

        commitment = compute_commitment(1000, forward)
        assert len(commitment) == 32
        assert commitment == compute_commitment(1000, forward)

        nullifier = compute_nullifier(commitment, forward)
        assert len(nullifier) == 32
        assert nullifier != commitment
        assert nullifier != compute_nullifier(commitment, reverse)
