"""Tests for reduction kernels and merges."""

import numpy as np
import pytest

from axisfold.core.array import ReductionKind
from axisfold.core.errors import EmptyReductionAxis
from axisfold.parallel.kernels import (
    PartialResult,
    compensated_sum,
    finalize,
    fold_chunk,
    fold_max,
    fold_mean,
    fold_min,
    fold_sum,
    identity,
    merge,
)
from axisfold.parallel.partition import Chunk

nan = np.nan


class TestCompensatedSum:
    """Test the Neumaier-compensated summation."""

    def test_recovers_cancelled_terms(self):
        block = np.array([1e16, 1.0, -1e16])
        assert compensated_sum(block, 0) == 1.0

    def test_matches_fsum(self):
        import math

        rng = np.random.default_rng(0)
        block = rng.normal(size=(1000, 3)) * 10.0 ** rng.integers(-5, 5, size=(1000, 3))
        expected = [math.fsum(block[:, j]) for j in range(3)]
        np.testing.assert_allclose(compensated_sum(block, 0), expected, rtol=1e-14)

    def test_propagates_nan_and_inf(self):
        block = np.array([[1.0, 1.0, 1.0], [nan, np.inf, -np.inf], [2.0, 1.0, np.inf]])
        result = compensated_sum(block, 0)
        assert np.isnan(result[0])
        assert result[1] == np.inf
        assert np.isnan(result[2])

    def test_all_negative_zero(self):
        result = compensated_sum(np.array([-0.0, -0.0]), 0)
        assert result == 0.0
        assert np.signbit(result)


class TestKernels:
    """Test per-chunk folds and the NaN policy."""

    def test_nan_policy(self):
        block = np.array([1.0, nan, 3.0])

        values, counts, folded = fold_min(block, 0)
        assert values == 1.0 and counts == 2 and folded == 3

        values, counts, _ = fold_max(block, 0)
        assert values == 3.0 and counts == 2

        values, counts, _ = fold_sum(block, 0)
        assert np.isnan(values) and counts == 2

    def test_all_nan_cells(self):
        block = np.array([[nan, 1.0], [nan, 2.0]])
        values, counts, _ = fold_min(block, 0)

        assert np.isnan(values[0])
        assert values[1] == 1.0
        assert counts.tolist() == [0, 2]

    def test_infinities_are_values(self):
        values, counts, _ = fold_max(np.array([1.0, np.inf]), 0)
        assert values == np.inf
        assert counts == 2

    def test_fold_mean_rejects_empty_axis(self):
        with pytest.raises(EmptyReductionAxis):
            fold_mean(np.zeros((3, 0)), 1)

    def test_fold_chunk_only_reads_its_rows(self):
        data = np.arange(12.0).reshape(4, 3)
        chunk = Chunk(index=1, dim=0, start=2, stop=4)
        partial = fold_chunk(ReductionKind.SUM, data, chunk, axis=1)

        assert partial.chunk is chunk
        assert partial.values.tolist() == [6.0 + 7.0 + 8.0, 9.0 + 10.0 + 11.0]
        assert partial.folded.tolist() == [3, 3]


class TestMerge:
    """Test merge identities and associativity."""

    @pytest.mark.parametrize("kind", list(ReductionKind))
    def test_identity_is_neutral(self, kind):
        block = np.array([[1.5, nan, -0.0], [2.5, nan, 0.0]])
        partial = fold_chunk(kind, block, Chunk(0, 1, 0, 3), axis=0)
        merged = merge(kind, identity(kind, (3,)), partial)

        np.testing.assert_array_equal(merged.values, partial.values)
        assert merged.counts.tolist() == partial.counts.tolist()
        assert np.signbit(merged.values).tolist() == np.signbit(partial.values).tolist()

    @pytest.mark.parametrize("kind", [ReductionKind.MIN, ReductionKind.MAX])
    def test_min_max_associative(self, kind):
        rng = np.random.default_rng(7)
        parts = []
        for _ in range(3):
            values = rng.normal(size=5)
            values[rng.integers(0, 5)] = nan
            parts.append(
                PartialResult(None, values, np.ones(5, dtype=np.int64), np.ones(5, dtype=np.int64))
            )
        a, b, c = parts

        left = merge(kind, merge(kind, a, b), c)
        right = merge(kind, a, merge(kind, b, c))
        np.testing.assert_array_equal(left.values, right.values)

    def test_min_merge_skips_nan(self):
        a = PartialResult(None, np.array([nan, 2.0]), np.array([0, 1]), np.array([1, 1]))
        b = PartialResult(None, np.array([5.0, nan]), np.array([1, 0]), np.array([1, 1]))
        merged = merge(ReductionKind.MIN, a, b)

        assert merged.values.tolist() == [5.0, 2.0]
        assert merged.counts.tolist() == [1, 1]
        assert merged.folded.tolist() == [2, 2]


class TestFinalize:
    """Test conversion of merged aggregates into output values."""

    def test_mean_divides_by_folded(self):
        partial = PartialResult(None, np.array([6.0, nan]), np.array([3, 2]), np.array([3, 3]))
        values = finalize(ReductionKind.MEAN, partial)
        assert values[0] == 2.0
        assert np.isnan(values[1])

    def test_mean_of_nothing_raises(self):
        partial = identity(ReductionKind.MEAN, (2,))
        with pytest.raises(EmptyReductionAxis):
            finalize(ReductionKind.MEAN, partial)

    def test_sum_passes_through(self):
        partial = PartialResult(None, np.array([1.0, 2.0]), np.array([1, 1]), np.array([1, 1]))
        assert finalize(ReductionKind.SUM, partial).tolist() == [1.0, 2.0]
