"""
Bounded worker pool that runs metering calls off the caller's thread.
"""
import atexit
import threading
from concurrent.futures import Future, ThreadPoolExecutor
from typing import Any, Callable, Optional

from config import get_config
from logger_config import get_logger

logger = get_logger(__name__)


class WorkerPool:
    """Thread pool with an explicit start/shutdown lifecycle."""

    def __init__(self, max_workers: int = 8, name: str = 'metering-worker') -> None:
        """
        Initialize worker pool.

        Args:
            max_workers: Upper bound on concurrent calls
            name: Thread name prefix
        """
        if max_workers < 1:
            raise ValueError(f'max_workers must be at least 1, got: {max_workers}')
        self.max_workers = max_workers
        self.name = name
        self._executor: Optional[ThreadPoolExecutor] = None
        self._lock = threading.Lock()

    @property
    def running(self) -> bool:
        return self._executor is not None

    def start(self) -> 'WorkerPool':
        with self._lock:
            if self._executor is None:
                self._executor = ThreadPoolExecutor(
                    max_workers=self.max_workers,
                    thread_name_prefix=self.name
                )
                logger.debug(f'Started worker pool {self.name} ({self.max_workers} workers)')
        return self

    def submit(self, fn: Callable[..., Any], *args: Any, **kwargs: Any) -> Future:
        """
        Schedule fn on the pool.

        Raises:
            RuntimeError: If the pool has not been started or was shut down.
        """
        with self._lock:
            if self._executor is None:
                raise RuntimeError(f'worker pool {self.name} is not running')
            return self._executor.submit(fn, *args, **kwargs)

    def shutdown(self, wait: bool = True) -> None:
        """Stop accepting work and, by default, drain queued calls."""
        with self._lock:
            executor, self._executor = self._executor, None
        if executor is not None:
            executor.shutdown(wait=wait)
            logger.debug(f'Stopped worker pool {self.name}')

    def __enter__(self) -> 'WorkerPool':
        return self.start()

    def __exit__(self, *exc_info: Any) -> None:
        self.shutdown()


_worker_pool: Optional[WorkerPool] = None
_worker_pool_lock = threading.Lock()


def get_worker_pool() -> WorkerPool:
    """
    Get the process-scoped worker pool, starting it on first use.

    The pool is sized from Config.max_workers and drained at interpreter exit.
    """
    global _worker_pool
    with _worker_pool_lock:
        if _worker_pool is None or not _worker_pool.running:
            _worker_pool = WorkerPool(max_workers=get_config().max_workers).start()
        return _worker_pool


def shutdown_worker_pool(wait: bool = True) -> None:
    """Stop the process-scoped worker pool if it was started."""
    global _worker_pool
    with _worker_pool_lock:
        pool, _worker_pool = _worker_pool, None
    if pool is not None:
        pool.shutdown(wait=wait)


atexit.register(shutdown_worker_pool)
