from __future__ import annotations

import threading
from concurrent.futures import Future, ThreadPoolExecutor
from dataclasses import dataclass
from typing import Any, Callable, Optional


@dataclass(frozen=True)
class WorkerPoolConfig:
    """
    Worker pool settings.

    Parameters
    ----------
    max_workers
        Maximum number of concurrently running tasks.
    thread_name_prefix
        Prefix for worker thread names (visible in logs).
    """

    max_workers: int = 8
    thread_name_prefix: str = "worker"


class WorkerPool:
    """
    Explicitly owned thread pool with a start/stop lifecycle.

    The pool is created once by the composition root, injected wherever work
    is offloaded, and shut down when the process stops. Submitting to a pool
    that is not running raises ``RuntimeError``.

    Parameters
    ----------
    cfg
        Pool configuration.
    """

    def __init__(self, cfg: WorkerPoolConfig | None = None):
        self._cfg = cfg or WorkerPoolConfig()
        self._executor: Optional[ThreadPoolExecutor] = None
        self._lock = threading.Lock()

    @property
    def name(self) -> str:
        return self._cfg.thread_name_prefix

    @property
    def is_running(self) -> bool:
        with self._lock:
            return self._executor is not None

    @property
    def executor(self) -> ThreadPoolExecutor:
        """
        The underlying executor.

        Raises
        ------
        RuntimeError
            If the pool has not been started or was stopped.
        """
        with self._lock:
            if self._executor is None:
                raise RuntimeError(f"worker pool '{self.name}' is not running")
            return self._executor

    def start(self) -> None:
        """
        Create the executor if it is not already running.
        """
        with self._lock:
            if self._executor is None:
                self._executor = ThreadPoolExecutor(
                    max_workers=self._cfg.max_workers,
                    thread_name_prefix=self._cfg.thread_name_prefix,
                )

    def stop(self, wait: bool = True) -> None:
        """
        Shut the executor down.

        Parameters
        ----------
        wait
            Whether to block until already submitted tasks finish. Pending
            tasks are never cancelled.
        """
        with self._lock:
            executor, self._executor = self._executor, None
        if executor is not None:
            executor.shutdown(wait=wait, cancel_futures=False)

    def submit(self, fn: Callable[..., Any], *args: Any, **kwargs: Any) -> Future:
        """Schedule ``fn(*args, **kwargs)`` on the pool."""
        return self.executor.submit(fn, *args, **kwargs)
