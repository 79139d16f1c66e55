"""
Process-wide worker pool configuration.

The pool is a ``ThreadPoolExecutor`` created lazily on first use and reused
by every reduction in the process. numpy releases the GIL inside its ufunc
loops, so chunk folds running on these threads execute in parallel.
"""

import atexit
import os
import threading
from concurrent.futures import ThreadPoolExecutor

from loguru import logger

from axisfold.core.errors import ConfigurationError

# Requests above this multiple of the logical core count are capped.
MAX_THREADS_FACTOR = 2

_pool: ThreadPoolExecutor | None = None
_pool_size: int | None = None
_pool_lock = threading.Lock()


def available_cores() -> int:
    """Number of logical CPU cores (at least 1)."""
    return os.cpu_count() or 1


def max_threads() -> int:
    """Upper bound applied to requested thread counts."""
    return MAX_THREADS_FACTOR * available_cores()


class ParallelConfig:
    """
    Configuration for parallel processing.

    Args:
        num_threads: Number of worker threads. ``None`` uses the logical core
            count. Values above ``max_threads()`` are capped.

    Raises:
        ConfigurationError: If ``num_threads`` is not a positive integer.

    Examples:
        >>> ParallelConfig(4).num_threads
        4
        >>> ParallelConfig().num_threads is None
        True
    """

    def __init__(self, num_threads: int | None = None):
        if num_threads is not None:
            if isinstance(num_threads, bool) or not isinstance(num_threads, int):
                raise ConfigurationError(
                    f"Thread count must be an integer, got {num_threads!r}"
                )
            if num_threads <= 0:
                raise ConfigurationError(
                    f"Thread count must be positive, got {num_threads}"
                )
        self.num_threads = num_threads

    @classmethod
    def all_cores(cls) -> "ParallelConfig":
        """Configuration that uses every logical core."""
        return cls(available_cores())

    @property
    def worker_count(self) -> int:
        """Effective number of workers after defaulting and capping."""
        if self.num_threads is None:
            return available_cores()
        limit = max_threads()
        if self.num_threads > limit:
            logger.warning(
                f"⚠️ Requested {self.num_threads} threads, capping at {limit} "
                f"({MAX_THREADS_FACTOR}x {available_cores()} cores)"
            )
            return limit
        return self.num_threads

    def __repr__(self) -> str:
        return f"ParallelConfig(num_threads={self.num_threads})"


def get_pool(config: ParallelConfig | None = None) -> ThreadPoolExecutor:
    """
    Return the process-wide worker pool, creating it on first use.

    The first caller decides the pool size. Later callers asking for a
    different size get the existing pool and a warning.

    Args:
        config: Parallel configuration used if the pool does not exist yet

    Returns:
        The shared ThreadPoolExecutor
    """
    global _pool, _pool_size

    config = config or ParallelConfig()
    requested = config.worker_count
    with _pool_lock:
        if _pool is None:
            _pool = ThreadPoolExecutor(
                max_workers=requested, thread_name_prefix="axisfold"
            )
            _pool_size = requested
            logger.info(f"🔧 Initialized thread pool with {requested} threads")
        elif config.num_threads is not None and requested != _pool_size:
            logger.warning(
                f"Thread pool already running with {_pool_size} threads; "
                f"ignoring request for {requested}"
            )
        return _pool


def active_worker_count() -> int:
    """Size of the running pool, or the default size if none is running yet."""
    with _pool_lock:
        if _pool_size is not None:
            return _pool_size
    return available_cores()


def shutdown_pool(wait: bool = True) -> None:
    """Shut down the shared pool; the next ``get_pool`` call creates a new one."""
    global _pool, _pool_size

    with _pool_lock:
        pool, _pool, _pool_size = _pool, None, None
    if pool is not None:
        pool.shutdown(wait=wait)
        logger.debug("Thread pool shut down")


atexit.register(shutdown_pool)


class ParallelInfo:
    """Information about the parallel processing environment."""

    def __init__(self, current_threads: int, available_cores: int, max_threads: int):
        self.current_threads = current_threads
        self.available_cores = available_cores
        self.max_threads = max_threads

    def log_info(self) -> None:
        logger.info("📊 Parallel Processing Information:")
        logger.info(f"   • Current threads: {self.current_threads}")
        logger.info(f"   • Available CPU cores: {self.available_cores}")
        logger.info(f"   • Maximum threads: {self.max_threads}")


def get_parallel_info() -> ParallelInfo:
    return ParallelInfo(
        current_threads=active_worker_count(),
        available_cores=available_cores(),
        max_threads=max_threads(),
    )
