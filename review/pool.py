"""
Bounded pool of local engine workers.

Keeps at most `capacity` workers running. Each worker posts its finished
Future onto a completion queue; the orchestrator drains the queue and frees
slots, so the pool itself never touches position state.

Workers run on their own threads rather than a ThreadPoolExecutor: a worker
abandoned on timeout has to give its slot back straight away, and an
executor thread stays occupied until the blocked engine call returns.
"""

import queue
import time
from concurrent.futures import Future
from dataclasses import dataclass
from typing import Any, Callable

from review.constants import DEFAULT_CONCURRENCY


@dataclass
class Completion:
    """A worker that has finished, successfully or not."""
    index: int
    worker: Any
    future: Future


class WorkerPool:
    """Dispatches workers for positions and collects their completions."""

    def __init__(self, worker_factory: Callable[[], Any], capacity: int = DEFAULT_CONCURRENCY):
        if capacity < 1:
            raise ValueError("Pool capacity must be at least 1")
        self.worker_factory = worker_factory
        self.capacity = capacity
        self.active: dict[int, Any] = {}  # position index -> worker
        self.completions: queue.Queue[Completion] = queue.Queue()

    @property
    def has_capacity(self) -> bool:
        return len(self.active) < self.capacity

    def dispatch(self, index: int, fen: str, depth: int):
        """Start a fresh worker on a position and return it."""
        if not self.has_capacity:
            raise RuntimeError("Worker pool is full")
        if index in self.active:
            raise RuntimeError(f"Position {index} already has a running worker")

        worker = self.worker_factory()
        self.active[index] = worker
        try:
            future = worker.start(fen, depth)
        except Exception:
            del self.active[index]
            raise

        future.add_done_callback(
            lambda f, i=index, w=worker: self.completions.put(Completion(i, w, f))
        )
        return worker

    def release(self, index: int, worker) -> bool:
        """
        Free the slot held by `worker`.

        Returns False if the slot belongs to another worker (or none), which
        means this completion is from a worker that was already abandoned.
        """
        if self.active.get(index) is not worker:
            return False
        del self.active[index]
        return True

    def abandon(self, index: int, worker):
        """Stop a worker and free its slot without waiting for it."""
        self.release(index, worker)
        worker.stop()

    def next_completion(self, timeout: float = 0) -> Completion | None:
        """Wait up to `timeout` seconds for a finished worker."""
        try:
            if timeout > 0:
                return self.completions.get(timeout=timeout)
            return self.completions.get_nowait()
        except queue.Empty:
            return None

    def expired(self, timeout: float, now: float | None = None) -> list[tuple[int, Any]]:
        """Workers that have been running longer than `timeout` seconds (0 = never)."""
        if timeout <= 0:
            return []
        now = now if now is not None else time.time()
        return [
            (index, worker) for index, worker in self.active.items()
            if worker.started_at is not None and now - worker.started_at > timeout
        ]

    def shutdown(self):
        """Stop every running worker."""
        for index, worker in list(self.active.items()):
            self.abandon(index, worker)
