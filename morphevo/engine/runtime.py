"""
Process-wide runtime state of the evolutionary engine.

The runtime owns the worker pool that scores individuals within a generation.
It is created on first use and shut down exactly once, after the last
generation of the run.
"""

import logging
import threading
from concurrent.futures import ThreadPoolExecutor
from contextlib import contextmanager
from typing import Iterator, Optional


logger = logging.getLogger(__name__)


class RuntimeShutdownError(RuntimeError):
    """Raised when work is submitted to a runtime that has been shut down."""
    pass


class EngineRuntime:
    """Owner of the evaluation worker pool."""

    def __init__(self):
        self._lock = threading.Lock()
        self._executor: Optional[ThreadPoolExecutor] = None
        self._thread_count: Optional[int] = None
        self._shut_down = False

    @property
    def is_shut_down(self) -> bool:
        return self._shut_down

    def executor(self, thread_count: int) -> ThreadPoolExecutor:
        """Get the worker pool, (re)creating it if the thread count changed."""
        with self._lock:
            if self._shut_down:
                raise RuntimeShutdownError("Engine runtime has already been shut down")
            if self._executor is None or self._thread_count != thread_count:
                if self._executor is not None:
                    self._executor.shutdown(wait=True)
                self._executor = ThreadPoolExecutor(max_workers=thread_count,
                                                    thread_name_prefix="evaluator")
                self._thread_count = thread_count
                logger.debug(f"Started evaluation pool with {thread_count} workers")
            return self._executor

    def shutdown(self) -> bool:
        """
        Release the worker pool.

        Returns:
            True if this call shut the runtime down, False if it already was
        """
        with self._lock:
            if self._shut_down:
                return False
            self._shut_down = True
            if self._executor is not None:
                self._executor.shutdown(wait=True)
                self._executor = None
        logger.debug("Engine runtime shut down")
        return True


_runtime: Optional[EngineRuntime] = None
_runtime_lock = threading.Lock()


def get_runtime() -> EngineRuntime:
    """Get the process-wide runtime, creating it on first use."""
    global _runtime
    with _runtime_lock:
        if _runtime is None:
            _runtime = EngineRuntime()
        return _runtime


@contextmanager
def engine_runtime(runtime: Optional[EngineRuntime] = None) -> Iterator[EngineRuntime]:
    """Scope a runtime so it is shut down on every exit path."""
    runtime = runtime or get_runtime()
    try:
        yield runtime
    finally:
        runtime.shutdown()
