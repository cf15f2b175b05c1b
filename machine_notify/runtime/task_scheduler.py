from __future__ import annotations

import logging
from concurrent.futures import Future
from typing import Any, Callable

from machine_notify.runtime.worker_pool import WorkerPool

log = logging.getLogger(__name__)


def _log_failure(fut: Future) -> None:
    if fut.cancelled():
        return
    exc = fut.exception()
    if exc is not None:
        log.error("Notification run failed: %r", exc, exc_info=exc)


class TaskScheduler:
    """
    Offload notification runs from the ingestion caller.

    Responsibilities
    ----------------
    - Hand each run to the injected :class:`WorkerPool` and return at once.
    - Log runs that end with an exception, so a failing run never goes
      unnoticed and never reaches the caller.

    Parameters
    ----------
    pool
        Worker pool executing one full pipeline run per status event.
    """

    def __init__(self, pool: WorkerPool):
        self._pool = pool

    def submit(self, run: Callable[[], Any]) -> Future:
        """
        Queue a run on the worker pool (non-blocking).

        Parameters
        ----------
        run
            Zero-argument callable performing one pipeline run.

        Returns
        -------
        Future
            Future of the run; callers may ignore it.
        """
        fut = self._pool.submit(run)
        fut.add_done_callback(_log_failure)
        return fut
