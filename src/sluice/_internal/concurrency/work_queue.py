"""Limited-concurrency executor.

Queued work items are drained by *worker activations*: loops borrowed from a
substrate pool that pop items off a FIFO until it is empty. At most
``concurrency_ceiling`` activations exist at any time, so the substrate never
sees more than that many threads' worth of load from one queue no matter how
fast producers submit.

A single lock guards the FIFO, the activation count and the submission total.
Every mutation and every counter read goes through it, which is what makes
``snapshot_counters`` internally consistent.
"""

from __future__ import annotations

import logging
import threading
from collections import deque
from typing import Any, Callable, Deque, List, Optional

from sluice._internal.concurrency.counters import TaskCounters
from sluice.core.exceptions import ConstructionError, ExecutionFault, ProbeContention
from sluice.runtime.substrate import SubstratePool, ThreadPoolSubstrate

logger = logging.getLogger(__name__)

WorkItem = Callable[[], Any]


class WorkQueue:
    """FIFO queue drained by at most ``concurrency_ceiling`` worker activations.

    ``submit`` never blocks; backpressure is the admission gate's job. Items
    that raise are wrapped in ``ExecutionFault`` and handed to the substrate's
    ``report_fault`` channel, and the activation carries on draining. An item
    that raises a ``BaseException`` such as ``SystemExit`` ends its activation;
    the slot passes to a replacement activation when items are still waiting.

    The substrate's ``dispatch`` is called while the queue lock is held, so it
    must hand the closure to another thread rather than run it in place.
    """

    def __init__(
        self,
        concurrency_ceiling: int,
        substrate: Optional[SubstratePool] = None,
    ) -> None:
        """Create a queue.

        Args:
            concurrency_ceiling: Maximum number of concurrently active worker
                activations. Must be at least 1.
            substrate: Pool that lends threads to activations. When omitted
                the queue creates, and later shuts down, a thread pool sized
                to the ceiling.

        Raises:
            ConstructionError: If the ceiling is not a positive integer.
        """
        if (
            isinstance(concurrency_ceiling, bool)
            or not isinstance(concurrency_ceiling, int)
            or concurrency_ceiling < 1
        ):
            raise ConstructionError(
                f"concurrency_ceiling must be a positive integer, got {concurrency_ceiling!r}"
            )

        self._ceiling = concurrency_ceiling
        self._owns_substrate = substrate is None
        self._substrate: SubstratePool = substrate or ThreadPoolSubstrate(
            max_workers=concurrency_ceiling
        )

        self._lock = threading.Lock()
        # Both conditions share the queue lock.
        self._capacity_freed = threading.Condition(self._lock)
        self._idle = threading.Condition(self._lock)

        self._items: Deque[WorkItem] = deque()
        self._active_workers = 0
        self._total_queued = 0
        self._thread_state = threading.local()

    @property
    def maximum_concurrency(self) -> int:
        return self._ceiling

    @property
    def substrate(self) -> SubstratePool:
        return self._substrate

    @property
    def in_worker_activation(self) -> bool:
        """True when the calling thread is running one of this queue's activations."""
        return getattr(self._thread_state, "active", False)

    def submit(self, item: WorkItem) -> None:
        """Append ``item`` to the queue and start an activation if below the ceiling.

        Returns as soon as the item is queued; it runs later on a substrate
        thread.
        """
        if not callable(item):
            raise TypeError(f"work item must be callable, got {type(item).__name__}")

        with self._lock:
            self._items.append(item)
            if self._active_workers < self._ceiling:
                self._active_workers += 1
                try:
                    self._substrate.dispatch(self._run_activation)
                except BaseException:
                    self._active_workers -= 1
                    self._items.pop()
                    raise
            self._total_queued += 1

    def try_remove(self, item: WorkItem) -> bool:
        """Remove ``item`` if it is still waiting.

        Matching is by identity. Returns False when the item was never queued
        or an activation has already claimed it.
        """
        with self._lock:
            for index, queued in enumerate(self._items):
                if queued is item:
                    del self._items[index]
                    self._capacity_freed.notify_all()
                    if not self._items and self._active_workers == 0:
                        self._idle.notify_all()
                    return True
            return False

    def try_execute_inline(self, item: WorkItem, was_queued: bool) -> bool:
        """Run ``item`` on the calling thread if that thread is a worker activation.

        Lets an item that depends on another queued item run it directly
        instead of waiting for a free activation.

        Args:
            item: The work item to run.
            was_queued: Whether ``item`` was previously submitted to this
                queue. If so it is removed first, and if an activation has
                already claimed it nothing is run.

        Returns:
            True if the item ran here, False if the caller must not run it.
        """
        if not self.in_worker_activation:
            return False
        if was_queued and not self.try_remove(item):
            return False
        self._execute(item)
        return True

    def snapshot_counters(self) -> TaskCounters:
        with self._lock:
            return TaskCounters(
                total_queued=self._total_queued,
                current_queued=len(self._items),
                current_running=self._active_workers,
            )

    def list_queued(self) -> List[WorkItem]:
        """Return the waiting items, oldest first.

        Raises:
            ProbeContention: If the queue lock is held elsewhere. The probe
                never waits for it.
        """
        self._probe()
        try:
            return list(self._items)
        finally:
            self._lock.release()

    def queue_length(self) -> int:
        """Return the number of waiting items.

        Raises:
            ProbeContention: If the queue lock is held elsewhere.
        """
        self._probe()
        try:
            return len(self._items)
        finally:
            self._lock.release()

    def wait_for_capacity(self, limit: int, timeout: Optional[float] = None) -> bool:
        """Wait for fewer than ``limit`` items to be waiting.

        Returns at once if there is already room. Otherwise waits for a single
        wake-up (an activation claiming an item, a removal, or
        ``notify_waiters``) or for ``timeout``, so callers loop and re-check.

        Returns:
            Whether there was room when the wait ended.
        """
        with self._capacity_freed:
            if len(self._items) < limit:
                return True
            self._capacity_freed.wait(timeout)
            return len(self._items) < limit

    def wait_idle(self, timeout: Optional[float] = None) -> bool:
        """Block until the queue is empty and no activation is alive.

        Returns:
            False if ``timeout`` elapsed first.
        """
        with self._idle:
            return self._idle.wait_for(
                lambda: not self._items and self._active_workers == 0, timeout
            )

    def notify_waiters(self) -> None:
        """Wake every thread parked in ``wait_for_capacity`` so it can re-check."""
        with self._capacity_freed:
            self._capacity_freed.notify_all()

    def shutdown(self, wait: bool = True) -> None:
        """Shut down the substrate if this queue created it."""
        if self._owns_substrate:
            self._substrate.shutdown(wait=wait)

    def __enter__(self) -> "WorkQueue":
        return self

    def __exit__(self, *exc_info: Any) -> None:
        self.shutdown(wait=True)

    def __repr__(self) -> str:
        # Never blocks, so it is safe while the lock is held.
        if not self._lock.acquire(blocking=False):
            return f"WorkQueue(ceiling={self._ceiling}, locked)"
        try:
            return (
                f"WorkQueue(ceiling={self._ceiling}, queued={len(self._items)}, "
                f"running={self._active_workers}, total={self._total_queued})"
            )
        finally:
            self._lock.release()

    def _probe(self) -> None:
        if not self._lock.acquire(blocking=False):
            raise ProbeContention("work queue lock is held; probe refused")

    def _run_activation(self) -> None:
        self._thread_state.active = True
        logger.debug("Worker activation started on %s", threading.current_thread().name)
        try:
            while True:
                with self._lock:
                    if not self._items:
                        self._active_workers -= 1
                        self._idle.notify_all()
                        break
                    item = self._items.popleft()
                    self._capacity_freed.notify_all()
                self._execute(item)
        except BaseException as exc:
            self._recover_aborted_activation(exc)
            raise
        finally:
            self._thread_state.active = False
        logger.debug("Worker activation finished on %s", threading.current_thread().name)

    def _recover_aborted_activation(self, exc: BaseException) -> None:
        """Settle the slot of an activation unwound by a non-``Exception`` error.

        If items are still waiting the slot passes to a replacement
        activation, otherwise it is released.
        """
        with self._lock:
            logger.warning(
                "Worker activation aborted by %s with %d item(s) waiting",
                type(exc).__name__,
                len(self._items),
            )
            if self._items:
                try:
                    self._substrate.dispatch(self._run_activation)
                    return
                except Exception:
                    logger.exception("Could not dispatch replacement activation")
            self._active_workers -= 1
            self._idle.notify_all()

    def _execute(self, item: WorkItem) -> None:
        try:
            item()
        except Exception as exc:
            fault = ExecutionFault(item, exc)
            try:
                self._substrate.report_fault(fault)
            except Exception:
                logger.exception("Fault channel raised while reporting %s", fault)


__all__ = ["WorkItem", "WorkQueue"]
