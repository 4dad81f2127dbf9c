"""
Incremental Accumulator Unit Tests
Tests for core/merkle/accumulator.py

1. Empty tree root is the zero-table empty root and is recorded
2. Leaf indices are assigned strictly in insertion order
3. Root after every insertion equals the literal 2^depth padded root
4. Capacity is enforced without partial state changes
5. Concurrent insertions serialize without losing leaves
"""
import threading

import pytest

from core.crypto.hashing import FIELD_MODULUS
from core.merkle.accumulator import IncrementalAccumulator
from core.merkle.merkle_tree import build_dense_root, build_snapshot
from core.pool.root_history import RootHistory
from core.schemas.errors import TreeFullError

from fixtures.common import make_commitments, make_tree_config


class TestEmptyAccumulator:
    """Tests for a freshly constructed accumulator."""

    def test_empty_root_is_zero_table_root(self, tree_config, hasher):
        acc = IncrementalAccumulator(tree_config, hasher)
        assert acc.root == acc.zeros.empty_root
        assert acc.next_index == 0
        assert not acc.is_full

    def test_filled_subtrees_start_as_zeros(self, tree_config, hasher):
        acc = IncrementalAccumulator(tree_config, hasher)
        assert acc.filled_subtrees == acc.zeros.as_list()

    def test_genesis_root_recorded(self, tree_config, hasher):
        """The empty root is recorded before any insertion."""
        history = RootHistory()
        acc = IncrementalAccumulator(tree_config, hasher, history)
        assert history.is_known(acc.root)
        assert len(history) == 1


class TestInsertion:
    """Tests for insert()."""

    def test_indices_sequential(self, tree_config, hasher):
        acc = IncrementalAccumulator(tree_config, hasher)
        results = [acc.insert(c) for c in make_commitments(5, hasher)]
        assert [r.leaf_index for r in results] == [0, 1, 2, 3, 4]
        assert acc.next_index == 5

    def test_root_matches_dense_rebuild_after_each_insert(self, tree_config, hasher):
        """Root equals the fully padded tree root for every prefix."""
        acc = IncrementalAccumulator(tree_config, hasher)
        commitments = make_commitments(tree_config.capacity, hasher)
        for count, commitment in enumerate(commitments, start=1):
            result = acc.insert(commitment)
            assert result.root == acc.root
            assert acc.root == build_dense_root(commitments[:count], acc.zeros, hasher)

    def test_single_leaf_depth_one(self, hasher):
        """At depth 1 the root of [c] is H(c, zeros[0])."""
        config = make_tree_config(depth=1, hash_function=hasher.name)
        acc = IncrementalAccumulator(config, hasher)
        acc.insert(5)
        assert acc.root == hasher.hash_pair(5, config.zero_value)

    def test_first_leaf_fills_level_zero(self, tree_config, hasher):
        acc = IncrementalAccumulator(tree_config, hasher)
        acc.insert(99)
        assert acc.filled_subtrees[0] == 99
        assert acc.filled_subtrees[1] == hasher.hash_pair(99, acc.zeros[0])

    def test_every_root_recorded(self, tree_config, hasher):
        history = RootHistory()
        acc = IncrementalAccumulator(tree_config, hasher, history)
        roots = [acc.insert(c).root for c in make_commitments(3, hasher)]
        assert all(history.is_known(r) for r in roots)
        assert len(history) == 4

    def test_each_insert_changes_root(self, tree_config, hasher):
        acc = IncrementalAccumulator(tree_config, hasher)
        seen = {acc.root}
        for commitment in make_commitments(4, hasher):
            acc.insert(commitment)
            assert acc.root not in seen
            seen.add(acc.root)

    def test_non_field_commitment_rejected(self, tree_config, hasher):
        """A bad commitment leaves the accumulator untouched."""
        acc = IncrementalAccumulator(tree_config, hasher)
        root = acc.root
        with pytest.raises(ValueError):
            acc.insert(FIELD_MODULUS)
        assert acc.next_index == 0
        assert acc.root == root


class TestCapacity:
    """Tests for the 2^depth capacity limit."""

    def test_tree_full(self, hasher):
        config = make_tree_config(depth=2, hash_function=hasher.name)
        acc = IncrementalAccumulator(config, hasher)
        commitments = make_commitments(5, hasher)
        for commitment in commitments[:4]:
            acc.insert(commitment)
        assert acc.is_full

        root = acc.root
        with pytest.raises(TreeFullError) as exc_info:
            acc.insert(commitments[4])
        assert exc_info.value.details == {"depth": 2, "next_index": 4}
        assert acc.root == root
        assert acc.next_index == 4


class TestConcurrency:
    """Tests for serialized insertion."""

    def test_concurrent_inserts(self):
        """Parallel inserts get distinct indices and a consistent root."""
        config = make_tree_config(depth=6)
        hasher = config.create_hasher()
        acc = IncrementalAccumulator(config, hasher)
        commitments = make_commitments(32, hasher)
        assigned: dict[int, int] = {}
        lock = threading.Lock()

        def worker(chunk):
            for commitment in chunk:
                result = acc.insert(commitment)
                with lock:
                    assigned[result.leaf_index] = commitment

        threads = [threading.Thread(target=worker, args=(commitments[i::4],)) for i in range(4)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        assert sorted(assigned) == list(range(32))
        ordered = [assigned[i] for i in range(32)]
        assert build_snapshot(ordered, acc.zeros, hasher).root == acc.root
