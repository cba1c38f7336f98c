"""Blocking admission in front of a work queue.

Producers call ``AdmissionGate.submit`` from any thread. While the queue's
backlog (items waiting, not yet claimed by a worker activation) is at
``max_backlog`` the call blocks; as soon as an activation claims an item the
producer is woken, re-checks under the gate lock, and hands its item over.

Each admission cycle takes the gate lock, reads fresh counters from the
queue, and either forwards the item or releases the lock and waits on the
queue's capacity condition. The wait is sliced by ``poll_interval_s`` so a
cancelled token is noticed even without a wake-up. Whichever producer next
takes the gate lock wins; there is no first-come ordering between producers.
"""

from __future__ import annotations

import logging
import threading
import time
from typing import Any, Callable, List, Optional

from sluice._internal.concurrency.counters import TaskCounters
from sluice._internal.concurrency.work_queue import WorkItem, WorkQueue
from sluice.core.config.schema import DispatchConfig
from sluice.core.exceptions import ConstructionError, SubmissionCancelled
from sluice.runtime.substrate import SubstratePool, ThreadPoolSubstrate

logger = logging.getLogger(__name__)


class CancellationToken:
    """One-shot cancellation flag shared by a gate and the code it feeds.

    Cancelling never interrupts running work. Items that want to stop early
    check ``is_cancelled`` themselves.
    """

    def __init__(self) -> None:
        self._event = threading.Event()
        self._lock = threading.Lock()
        self._callbacks: List[Callable[[], None]] = []

    @property
    def is_cancelled(self) -> bool:
        return self._event.is_set()

    def cancel(self) -> None:
        """Set the flag and run registered callbacks once."""
        with self._lock:
            if self._event.is_set():
                return
            self._event.set()
            callbacks = list(self._callbacks)
            self._callbacks.clear()
        for callback in callbacks:
            try:
                callback()
            except Exception:
                logger.exception("Cancellation callback failed")

    def register(self, callback: Callable[[], None]) -> None:
        """Call ``callback`` on cancellation, immediately if already cancelled."""
        with self._lock:
            if not self._event.is_set():
                self._callbacks.append(callback)
                return
        callback()

    def unregister(self, callback: Callable[[], None]) -> bool:
        """Forget a callback added with ``register``. False if it was not registered."""
        with self._lock:
            try:
                self._callbacks.remove(callback)
            except ValueError:
                return False
            return True

    def raise_if_cancelled(self) -> None:
        if self._event.is_set():
            raise SubmissionCancelled("admission gate has been cancelled")

    def wait(self, timeout: Optional[float] = None) -> bool:
        return self._event.wait(timeout)


class AdmissionGate:
    """Backpressure front door for a ``WorkQueue``.

    ``submit`` returns once the item is in the queue; it never waits for the
    item to run. With the default ``timeout=None`` a backlog that never
    drains blocks the producer indefinitely and silently.

    Example:
        gate = AdmissionGate(concurrency_ceiling=4, max_backlog=100)
        for path in paths:
            gate.submit(functools.partial(scan, path))
        gate.wait_idle()
        gate.shutdown()
    """

    def __init__(
        self,
        concurrency_ceiling: int,
        max_backlog: int,
        *,
        substrate: Optional[SubstratePool] = None,
        work_queue: Optional[WorkQueue] = None,
        poll_interval_s: float = 1.0,
        cancellation: Optional[CancellationToken] = None,
    ) -> None:
        """Create a gate and, unless one is supplied, its work queue.

        Args:
            concurrency_ceiling: Maximum concurrently active worker activations.
            max_backlog: Waiting-item count at which ``submit`` blocks.
            substrate: Thread pool for a newly created queue. Ignored when
                ``work_queue`` is given.
            work_queue: Existing queue to guard. Its ceiling must equal
                ``concurrency_ceiling``.
            poll_interval_s: Longest single wait before a blocked producer
                re-checks its state.
            cancellation: Token to observe. A fresh one is created if omitted.

        Raises:
            ConstructionError: On a non-positive ceiling, backlog or poll
                interval, or a mismatched ``work_queue``.
        """
        if isinstance(max_backlog, bool) or not isinstance(max_backlog, int) or max_backlog < 1:
            raise ConstructionError(f"max_backlog must be a positive integer, got {max_backlog!r}")
        if poll_interval_s <= 0:
            raise ConstructionError(f"poll_interval_s must be positive, got {poll_interval_s!r}")

        if work_queue is None:
            work_queue = WorkQueue(concurrency_ceiling, substrate)
            self._owns_queue = True
        else:
            if work_queue.maximum_concurrency != concurrency_ceiling:
                raise ConstructionError(
                    f"work_queue ceiling {work_queue.maximum_concurrency} does not match "
                    f"concurrency_ceiling {concurrency_ceiling}"
                )
            self._owns_queue = False

        self._work_queue = work_queue
        self._max_backlog = max_backlog
        self._poll_interval_s = poll_interval_s
        self._lock = threading.Lock()
        self._task_counters = TaskCounters.empty()
        self._owned_substrate: Optional[SubstratePool] = None

        self._cancellation = cancellation or CancellationToken()
        self._wake_waiters = self._work_queue.notify_waiters
        self._cancellation.register(self._wake_waiters)

    @classmethod
    def from_config(
        cls,
        config: DispatchConfig,
        *,
        substrate: Optional[SubstratePool] = None,
        cancellation: Optional[CancellationToken] = None,
    ) -> "AdmissionGate":
        """Build a gate from a validated ``DispatchConfig``.

        Without an explicit substrate, a thread pool is created from the
        config's worker count and name prefix and owned by the gate.
        """
        owned: Optional[SubstratePool] = None
        if substrate is None:
            owned = substrate = ThreadPoolSubstrate(
                max_workers=config.substrate_max_workers or config.concurrency_ceiling,
                thread_name_prefix=config.thread_name_prefix,
            )
        try:
            gate = cls(
                config.concurrency_ceiling,
                config.max_backlog,
                substrate=substrate,
                poll_interval_s=config.poll_interval_s,
                cancellation=cancellation,
            )
        except ConstructionError:
            if owned is not None:
                owned.shutdown(wait=False)
            raise
        gate._owned_substrate = owned
        return gate

    @property
    def work_queue(self) -> WorkQueue:
        return self._work_queue

    @property
    def max_backlog(self) -> int:
        return self._max_backlog

    @property
    def cancellation(self) -> CancellationToken:
        return self._cancellation

    @property
    def task_counters(self) -> TaskCounters:
        """Counters as of this gate's last admission check.

        After a successful admission these include the item just handed over.
        Call ``work_queue.snapshot_counters()`` for a fresh reading.
        """
        with self._lock:
            return self._task_counters

    def submit(self, action: WorkItem, timeout: Optional[float] = None) -> bool:
        """Hand ``action`` to the work queue, blocking while the backlog is full.

        Args:
            action: Argument-less callable. It may run on any substrate thread
                and concurrently with any other submitted item.
            timeout: Seconds to wait for admission. ``None`` waits forever.

        Returns:
            True once the item is queued, False if ``timeout`` expired first
            (the item is then not queued).

        Raises:
            SubmissionCancelled: If the gate is cancelled before admission.
        """
        if not callable(action):
            raise TypeError(f"work item must be callable, got {type(action).__name__}")

        deadline = None if timeout is None else time.monotonic() + timeout
        waited = False
        while True:
            with self._lock:
                self._cancellation.raise_if_cancelled()
                counters = self._work_queue.snapshot_counters()
                self._task_counters = counters
                if counters.current_queued < self._max_backlog:
                    self._work_queue.submit(action)
                    self._task_counters = counters.with_admitted()
                    if waited:
                        logger.debug("Producer admitted after waiting for backlog to drain")
                    return True

            if not waited:
                logger.debug(
                    "Backlog saturated (%d queued, limit %d); producer waiting",
                    counters.current_queued,
                    self._max_backlog,
                )
                waited = True

            wait_s = self._poll_interval_s
            if deadline is not None:
                remaining = deadline - time.monotonic()
                if remaining <= 0:
                    logger.debug("Admission timed out after %.3fs", timeout)
                    return False
                wait_s = min(wait_s, remaining)
            self._work_queue.wait_for_capacity(self._max_backlog, timeout=wait_s)

    def cancel(self) -> None:
        """Refuse pending and future submissions.

        Blocked producers wake and raise ``SubmissionCancelled``. Items already
        queued still run.
        """
        logger.info("Admission gate cancelled")
        self._cancellation.cancel()

    def wait_idle(self, timeout: Optional[float] = None) -> bool:
        """Block until every admitted item has run. False on timeout."""
        return self._work_queue.wait_idle(timeout)

    def shutdown(self, wait: bool = True) -> None:
        """Release the threads this gate (or its queue) created."""
        self._cancellation.unregister(self._wake_waiters)
        if self._owns_queue:
            self._work_queue.shutdown(wait=wait)
        if self._owned_substrate is not None:
            self._owned_substrate.shutdown(wait=wait)

    def __enter__(self) -> "AdmissionGate":
        return self

    def __exit__(self, *exc_info: Any) -> None:
        self.shutdown(wait=True)


__all__ = ["AdmissionGate", "CancellationToken"]
