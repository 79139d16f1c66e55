"""Tests for the process-wide thread pool and its configuration."""

import threading
from unittest.mock import patch

import pytest

from axisfold.core.errors import ConfigurationError
from axisfold.parallel.pool import (
    MAX_THREADS_FACTOR,
    ParallelConfig,
    active_worker_count,
    available_cores,
    get_parallel_info,
    get_pool,
    max_threads,
    shutdown_pool,
)


class TestParallelConfig:
    """Test thread count validation and defaults."""

    def test_default_uses_all_cores(self):
        config = ParallelConfig()
        assert config.num_threads is None
        assert config.worker_count == available_cores()

    def test_explicit_thread_count(self):
        assert ParallelConfig(1).worker_count == 1

    def test_all_cores(self):
        assert ParallelConfig.all_cores().num_threads == available_cores()

    @pytest.mark.parametrize("value", [0, -1, -8])
    def test_rejects_non_positive(self, value):
        with pytest.raises(ConfigurationError, match="must be positive"):
            ParallelConfig(value)

    @pytest.mark.parametrize("value", ["4", 2.0, True])
    def test_rejects_non_integer(self, value):
        with pytest.raises(ConfigurationError, match="must be an integer"):
            ParallelConfig(value)

    def test_caps_large_requests(self):
        with patch("axisfold.parallel.pool.available_cores", return_value=2):
            config = ParallelConfig(100)
            assert config.worker_count == 2 * MAX_THREADS_FACTOR
            assert max_threads() == 4


class TestThreadPool:
    """Test lazy, once-only pool initialization."""

    def test_pool_is_reused(self):
        first = get_pool(ParallelConfig(2))
        second = get_pool()
        assert first is second

    def test_first_caller_sets_size(self):
        get_pool(ParallelConfig(2))
        assert active_worker_count() == 2

        # A later, different request keeps the existing pool
        get_pool(ParallelConfig(3))
        assert active_worker_count() == 2

    def test_default_size_before_init(self):
        assert active_worker_count() == available_cores()

    def test_shutdown_allows_new_pool(self):
        first = get_pool(ParallelConfig(1))
        shutdown_pool()
        second = get_pool(ParallelConfig(2))

        assert first is not second
        assert active_worker_count() == 2

    def test_concurrent_first_use_creates_one_pool(self):
        n_callers = 8
        barrier = threading.Barrier(n_callers)
        pools = []
        lock = threading.Lock()

        def first_use():
            barrier.wait()
            pool = get_pool(ParallelConfig(2))
            with lock:
                pools.append(pool)

        threads = [threading.Thread(target=first_use) for _ in range(n_callers)]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join()

        assert len(pools) == n_callers
        assert all(pool is pools[0] for pool in pools)


class TestParallelInfo:
    """Test parallel environment reporting."""

    def test_info_reports_pool_size(self):
        get_pool(ParallelConfig(2))
        info = get_parallel_info()

        assert info.current_threads == 2
        assert info.available_cores == available_cores()
        assert info.max_threads == MAX_THREADS_FACTOR * available_cores()

    def test_log_info(self):
        with patch("axisfold.parallel.pool.logger") as mock_logger:
            get_parallel_info().log_info()
        assert mock_logger.info.call_count == 4
