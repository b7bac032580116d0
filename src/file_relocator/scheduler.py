"""Bounded parallel scheduler for a batch of moves.

Resolves filename conflicts for every destination directory, submits one
MoveExecutor per descriptor to a thread pool, and drains the results on a
single coordinator thread in submission order. Each result gets at most
`move_timeout` seconds; a move that overruns is cancelled (best effort),
logged, and abandoned as failed. The coordinator reports (total, remaining)
to a CompletionSink after every dequeue and a final finished() signal.
"""

from __future__ import annotations

import threading
from collections import deque
from collections.abc import Callable
from concurrent.futures import CancelledError, Future, ThreadPoolExecutor

from loguru import logger

from .config import RelocatorConfig
from .errors import SchedulerError
from .executor import MoveExecutor
from .models import BatchResult, MoveDescriptor, MoveOutcome, SchedulerState
from .ops.conflicts import ConflictResolver
from .ops.reaper import DirectoryReaper
from .progress import CompletionSink, ProgressObserver

log = logger.bind(component="scheduler")

ObserverFactory = Callable[[MoveDescriptor], ProgressObserver]


class MoveScheduler:
    """Runs one batch of moves on a worker pool.

    The pool starts with the scheduler. Pass `pool` to share an existing
    ThreadPoolExecutor between schedulers; a scheduler only shuts down a
    pool it created itself.

    Attributes:
        config: Relocator configuration (timeout, worker count, move flags)
        state: CREATED -> RUNNING -> DRAINED
        result: BatchResult once drained, else None
    """

    def __init__(
        self,
        config: RelocatorConfig,
        completion: CompletionSink | None = None,
        observer_factory: ObserverFactory | None = None,
        pool: ThreadPoolExecutor | None = None,
    ) -> None:
        self.config = config
        self.completion = completion or CompletionSink()
        self.observer_factory = observer_factory
        self.state = SchedulerState.CREATED
        self.result: BatchResult | None = None

        self._owns_pool = pool is None
        if pool is None:
            max_workers = config.calculate_max_workers()
            log.debug(f"Starting move pool: max_workers={max_workers}")
            pool = ThreadPoolExecutor(
                max_workers=max_workers, thread_name_prefix="file-mover"
            )
        self._pool = pool
        self._reaper = DirectoryReaper(config.reap_root)
        self._queue: deque[tuple[Future, MoveExecutor]] = deque()
        self._executors: list[MoveExecutor] = []
        self._descriptors: list[MoveDescriptor] = []
        self._total = 0
        self._shutdown = threading.Event()
        self._coordinator = threading.Thread(
            target=self._drain, name="file-move-coordinator", daemon=True
        )

    def run(self, descriptors: list[MoveDescriptor]) -> MoveScheduler:
        """Resolve conflicts, submit every move, and start the coordinator.

        Returns immediately; use wait() to block until the batch drains.
        """
        if self.state != SchedulerState.CREATED:
            raise SchedulerError(f"Scheduler already {self.state}")
        if self._shutdown.is_set():
            raise SchedulerError("Scheduler has been shut down")

        self._descriptors = list(descriptors)

        # Every group is indexed before any move is submitted
        ConflictResolver().resolve_all(self._descriptors)

        for desc in self._descriptors:
            observer = self.observer_factory(desc) if self.observer_factory else None
            executor = MoveExecutor(desc, self.config, observer, self._reaper)
            future = self._pool.submit(executor.run)
            self._queue.append((future, executor))
            self._executors.append(executor)

        self._total = len(self._queue)
        log.info(f"Have {self._total} files to move")

        self.state = SchedulerState.RUNNING
        self._coordinator.start()
        return self

    def wait(self, timeout: float | None = None) -> BatchResult | None:
        """Block until the coordinator drains. Returns None if still running."""
        if self.state == SchedulerState.CREATED:
            raise SchedulerError("Scheduler has not been started")
        self._coordinator.join(timeout)
        return self.result

    def shutdown(self) -> None:
        """Interrupt in-flight moves and discard queued ones.

        Discarded moves are never executed; the coordinator reports them
        as cancelled. In-flight renames finish; copies stop at the next
        chunk boundary.
        """
        if self._shutdown.is_set():
            return
        self._shutdown.set()
        log.warning("Shutting down: cancelling outstanding moves")
        for executor in self._executors:
            executor.cancel()
        if self._owns_pool:
            self._pool.shutdown(wait=False, cancel_futures=True)
        else:
            for future, _ in list(self._queue):
                future.cancel()

    def _drain(self) -> None:
        """Coordinator loop: dequeue, wait with timeout, report, repeat."""
        while True:
            remaining = len(self._queue)
            self.completion.progress(self._total, remaining)
            if remaining == 0:
                break

            future, executor = self._queue.popleft()
            name = executor.descriptor.source_path.name
            try:
                success = future.result(timeout=self.config.move_timeout)
                log.debug(f"Move returned {success}: {name}")
            except TimeoutError:
                future.cancel()
                log.warning(
                    f"Move timed out after {self.config.move_timeout}s: {name}"
                )
                executor.abandon(MoveOutcome.TIMED_OUT, "Timed out")
            except CancelledError:
                log.warning(f"Move cancelled before it ran: {name}")
                executor.abandon(MoveOutcome.CANCELLED, "Cancelled")
            except Exception as e:
                log.warning(f"Exception executing move {name}: {e}")
                executor.abandon(MoveOutcome.RENAME_FAILED, str(e))

        self.result = BatchResult.from_descriptors(self._descriptors)
        self.state = SchedulerState.DRAINED
        log.info(
            f"Batch drained: {self.result.completed}/{self.result.total} moved, "
            f"{self.result.failed} failed, {self.result.not_found} not found"
        )
        if self._owns_pool:
            self._pool.shutdown(wait=False)
        self.completion.finished(self.result)
