"""
=============================================================================
THREAD-PER-CONNECTION WORKERS
=============================================================================

Each accepted connection gets its own OS thread, started right after
accept(). A WorkerGroup caps how many of those threads exist at once.

    ┌─────────────────────────────────────────────────────────────────────┐
    │                                                                     │
    │   accept loop ──spawn(conn)──► WorkerGroup                          │
    │                                   │                                 │
    │                    slot free? ────┼──── yes ──► ConnectionWorker    │
    │                                   │             (thread, 1 conn)    │
    │                                   │                  │              │
    │                                   no                 │ finished     │
    │                                   │                  ▼              │
    │                        return None after        release slot        │
    │                        ``timeout``; caller                          │
    │                        retries or gives up                          │
    │                                                                     │
    └─────────────────────────────────────────────────────────────────────┘

While all slots are busy the accept loop stops calling accept(), so new
clients wait in the kernel's listen backlog instead of piling up threads.

=============================================================================
INTERVIEW QUESTIONS
=============================================================================

Q: "Why a thread per connection and not a pool with a queue?"
A: "Every connection here is short: one request, one response, close.
   Starting a thread is cheap next to reading and gzipping a file, and
   there is no queue to size or drain. The semaphore gives the same
   protection against thread explosion a bounded pool would."

Q: "What happens to in-flight requests on shutdown?"
A: "Workers are never interrupted. The server stops accepting, then
   join()s the group with a deadline. Worker threads are daemons, so a
   stuck client cannot keep the process alive past that deadline."

=============================================================================
"""

import logging
import threading
from typing import Callable, Optional, Set

from .connection import Connection


logger = logging.getLogger(__name__)

ConnectionTarget = Callable[[Connection], None]


class ConnectionWorker(threading.Thread):
    """
    Thread that runs ``target(connection)`` once and exits.

    Exceptions escaping ``target`` are logged with their traceback and go
    no further; they never reach the accept loop or other workers.
    """

    def __init__(
        self,
        target: ConnectionTarget,
        connection: Connection,
        on_finished: Optional[Callable[["ConnectionWorker"], None]] = None,
    ):
        super().__init__(name=f"conn-{connection.id}", daemon=True)
        self._target_fn = target
        self.connection = connection
        self._on_finished = on_finished

    def run(self):
        try:
            self._target_fn(self.connection)
        except Exception as e:
            logger.exception(f"[{self.connection.id}] Unhandled error in worker: {e}")
        finally:
            if self._on_finished is not None:
                self._on_finished(self)


class WorkerGroup:
    """
    Bounded set of live ConnectionWorker threads.

    Args:
        max_workers: Most connections handled at once. None = no limit.
    """

    def __init__(self, max_workers: Optional[int] = 64):
        self.max_workers = max_workers
        self._slots = threading.BoundedSemaphore(max_workers) if max_workers else None
        self._workers: Set[ConnectionWorker] = set()
        self._lock = threading.Lock()
        self._idle = threading.Condition(self._lock)

    @property
    def active_count(self) -> int:
        """Number of workers currently running."""
        with self._lock:
            return len(self._workers)

    def spawn(
        self,
        target: ConnectionTarget,
        connection: Connection,
        timeout: Optional[float] = None,
    ) -> Optional[ConnectionWorker]:
        """
        Start a worker for ``connection`` once a slot is free.

        Args:
            target: Function run in the new thread with the connection.
            connection: The accepted connection.
            timeout: Seconds to wait for a free slot. None = wait forever.

        Returns:
            The started worker, or None if no slot freed up in time.
        """
        if self._slots is not None and not self._slots.acquire(timeout=timeout):
            return None

        worker = ConnectionWorker(target, connection, on_finished=self._release)
        with self._lock:
            self._workers.add(worker)

        try:
            worker.start()
        except RuntimeError:
            # Thread could not be started (interpreter out of threads)
            self._release(worker)
            raise

        return worker

    def _release(self, worker: ConnectionWorker):
        with self._lock:
            self._workers.discard(worker)
            if not self._workers:
                self._idle.notify_all()
        if self._slots is not None:
            self._slots.release()

    def join(self, timeout: Optional[float] = None) -> bool:
        """
        Wait for every running worker to finish.

        Args:
            timeout: Maximum seconds to wait. None = wait forever.

        Returns:
            True if all workers finished, False if the timeout expired.
        """
        with self._lock:
            finished = self._idle.wait_for(lambda: not self._workers, timeout)

        if not finished:
            logger.warning(f"{self.active_count} connection(s) still running after {timeout}s")
        return finished
