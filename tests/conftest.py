"""
Spark Note Test Fixtures
"""

import pytest
import asyncio
import logging

from spark_note.core.secret import Secret
from spark_note.core.types import Nullifier
from spark_note.protocol.note import Note
from spark_note.state.nullifier_set import NullifierSet


@pytest.fixture
def sample_secret_bytes() -> bytes:
    """Shortest accepted secret: 0x01..0x08."""
    return bytes(range(1, 9))


@pytest.fixture
def sample_secret(sample_secret_bytes) -> Secret:
    """Secret wrapping the sample bytes."""
    secret = Secret(sample_secret_bytes)
    yield secret
    secret.release()


@pytest.fixture
def other_secret_bytes() -> bytes:
    """A different valid secret."""
    return bytes(range(9, 17))


@pytest.fixture
def sample_note(sample_secret) -> Note:
    """Note of value 100 under the sample secret."""
    note = Note(100, sample_secret)
    yield note
    note.release()


@pytest.fixture
def spent_set() -> NullifierSet:
    """Empty spent nullifier set."""
    return NullifierSet()


@pytest.fixture
def nullifier_a() -> Nullifier:
    return Nullifier(bytes([0xAA] * 32))


@pytest.fixture
def nullifier_b() -> Nullifier:
    return Nullifier(bytes([0xBB] * 32))


# Async fixtures helper
@pytest.fixture
def async_runner():
    """Helper for running async functions in tests."""
    def runner(coro):
        loop = asyncio.new_event_loop()
        try:
            return loop.run_until_complete(coro)
        finally:
            loop.close()
    return runner


@pytest.fixture
def reset_logging():
    """Drop root handlers installed by setup_logging during a test."""
    yield
    root = logging.getLogger()
    for handler in list(root.handlers):
        root.removeHandler(handler)
        handler.close()
