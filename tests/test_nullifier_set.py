"""
Spark Note Spent Nullifier Set Tests
"""

import threading

import pytest

from spark_note.core.types import Nullifier
from spark_note.errors import AlreadySpentError, NullifierError, NullifierErrorCode
from spark_note.state.nullifier_set import NullifierSet, estimate_memory


def _nullifier(i: int) -> Nullifier:
    return Nullifier(i.to_bytes(32, "big"))


class TestNullifierSetBasics:
    """Tests for membership and insertion."""

    def test_empty(self, spent_set):
        assert spent_set.size() == 0
        assert len(spent_set) == 0

    def test_add(self, spent_set, nullifier_a):
        assert spent_set.add(nullifier_a)
        assert not spent_set.add(nullifier_a)
        assert spent_set.size() == 1

    def test_add_raw_bytes(self, spent_set, nullifier_a):
        spent_set.add(nullifier_a.data)
        assert spent_set.contains(nullifier_a)
        assert nullifier_a in spent_set

    def test_add_malformed(self, spent_set):
        with pytest.raises(NullifierError) as exc:
            spent_set.add(bytes(16))
        assert exc.value.code is NullifierErrorCode.WRONG_LENGTH

    def test_contains_malformed(self, spent_set):
        """Test malformed lookups report not present."""
        assert not spent_set.contains(b"")
        assert not spent_set.contains(bytes(5))
        assert "not-a-nullifier" not in spent_set

    def test_add_or_reject(self, spent_set, nullifier_a):
        spent_set.add_or_reject(nullifier_a)
        with pytest.raises(AlreadySpentError):
            spent_set.add_or_reject(nullifier_a)

    def test_check_many(self, spent_set, nullifier_a, nullifier_b):
        spent_set.add(nullifier_a)
        assert spent_set.check_many([nullifier_b, nullifier_a, b"bad"]) == [False, True, False]

    def test_initial_members(self, nullifier_a, nullifier_b):
        s = NullifierSet([nullifier_a, nullifier_b.data])
        assert s.size() == 2

    def test_export_snapshot(self, spent_set, nullifier_a, nullifier_b):
        spent_set.add(nullifier_a)
        spent_set.add(nullifier_b)
        assert sorted(spent_set.export()) == sorted([nullifier_a.data, nullifier_b.data])

    def test_iteration(self, spent_set, nullifier_a):
        spent_set.add(nullifier_a)
        assert list(spent_set) == [nullifier_a]

    def test_stats(self, spent_set):
        for i in range(5):
            spent_set.add(_nullifier(i + 1))
        stats = spent_set.stats()
        assert stats.count == 5
        assert stats.memory_usage_bytes == estimate_memory(5) == 200
        assert stats.to_dict() == {"count": 5, "memory_usage_bytes": 200}

    def test_copy_is_independent(self, spent_set, nullifier_a, nullifier_b):
        spent_set.add(nullifier_a)
        dup = spent_set.copy()
        dup.add(nullifier_b)
        assert spent_set.size() == 1
        assert dup.size() == 2

    def test_merge(self, spent_set, nullifier_a, nullifier_b):
        spent_set.add(nullifier_a)
        assert spent_set.merge([nullifier_a, nullifier_b]) == 1
        assert spent_set.size() == 2


class TestBatchMarking:
    """Tests for all-or-nothing batches."""

    def test_batch(self, spent_set):
        batch = [_nullifier(i) for i in range(1, 11)]
        spent_set.mark_many_spent(batch)
        assert spent_set.size() == 10

    def test_batch_conflict_records_nothing(self, spent_set):
        spent_set.add(_nullifier(3))
        with pytest.raises(AlreadySpentError):
            spent_set.mark_many_spent([_nullifier(1), _nullifier(2), _nullifier(3)])
        assert spent_set.size() == 1
        assert not spent_set.contains(_nullifier(1))

    def test_batch_malformed_records_nothing(self, spent_set):
        with pytest.raises(NullifierError):
            spent_set.mark_many_spent([_nullifier(1), bytes(3)])
        assert spent_set.size() == 0

    def test_batch_internal_duplicate(self, spent_set):
        with pytest.raises(AlreadySpentError):
            spent_set.mark_many_spent([_nullifier(1), _nullifier(1)])
        assert spent_set.size() == 0

    def test_empty_batch(self, spent_set):
        spent_set.mark_many_spent([])
        assert spent_set.size() == 0

    def test_partial_conflict_leaves_rest_unspent(self, spent_set, nullifier_a, nullifier_b):
        spent_set.add(nullifier_a)
        with pytest.raises(AlreadySpentError):
            spent_set.mark_many_spent([nullifier_a, nullifier_b])
        assert not spent_set.contains(nullifier_b)


class TestConcurrency:
    """Tests that concurrent spends of one nullifier succeed exactly once."""

    @pytest.mark.timeout(30)
    def test_concurrent_add_or_reject(self, spent_set, nullifier_a):
        successes = []
        failures = []
        barrier = threading.Barrier(16)

        def worker():
            barrier.wait()
            try:
                spent_set.add_or_reject(nullifier_a)
                successes.append(1)
            except AlreadySpentError:
                failures.append(1)

        threads = [threading.Thread(target=worker) for _ in range(16)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        assert len(successes) == 1
        assert len(failures) == 15
        assert spent_set.size() == 1

    @pytest.mark.timeout(30)
    def test_concurrent_overlapping_batches(self, spent_set):
        """Test overlapping batches never both succeed."""
        shared = _nullifier(999)
        outcomes = []
        barrier = threading.Barrier(8)

        def worker(i):
            barrier.wait()
            try:
                spent_set.mark_many_spent([_nullifier(i + 1), shared])
                outcomes.append(True)
            except AlreadySpentError:
                outcomes.append(False)

        threads = [threading.Thread(target=worker, args=(i,)) for i in range(8)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        assert outcomes.count(True) == 1
        assert spent_set.size() == 2


class TestJson:
    """Tests for the set's JSON helpers."""

    def test_round_trip(self, spent_set, nullifier_a, nullifier_b):
        spent_set.add(nullifier_a)
        spent_set.add(nullifier_b)
        restored = NullifierSet.from_json(spent_set.to_json())
        assert sorted(restored.export()) == sorted(spent_set.export())
