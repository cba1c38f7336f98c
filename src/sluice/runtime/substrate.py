"""Substrate pools that lend threads to worker activations."""

from __future__ import annotations

import concurrent.futures
import logging
from typing import Callable, Optional, Protocol

from sluice.core.exceptions import ExecutionFault

logger = logging.getLogger(__name__)

FaultCallback = Callable[[ExecutionFault], None]


class SubstratePool(Protocol):
    """Raw asynchronous dispatch beneath a work queue's concurrency ceiling."""

    def dispatch(self, fn: Callable[[], None]) -> None:
        """Run ``fn`` on some thread and return immediately."""

    def report_fault(self, fault: ExecutionFault) -> None:
        """Receive a work item failure nobody else handled."""

    def shutdown(self, wait: bool = True) -> None:
        """Release the pool's threads."""


class ThreadPoolSubstrate:
    """Default substrate backed by ``concurrent.futures.ThreadPoolExecutor``.

    Faults are logged and, when ``on_fault`` is set, forwarded to it. Closures
    handed to ``dispatch`` are fire-and-forget; an exception escaping one is
    logged from the future's done-callback rather than lost.
    """

    def __init__(
        self,
        max_workers: Optional[int] = None,
        *,
        thread_name_prefix: str = "sluice",
        on_fault: Optional[FaultCallback] = None,
    ) -> None:
        self._executor = concurrent.futures.ThreadPoolExecutor(
            max_workers=max_workers, thread_name_prefix=thread_name_prefix
        )
        self._on_fault = on_fault
        self.max_workers = max_workers

    def dispatch(self, fn: Callable[[], None]) -> None:
        future = self._executor.submit(fn)
        future.add_done_callback(self._log_escaped)

    def report_fault(self, fault: ExecutionFault) -> None:
        logger.error(
            "Unhandled fault in work item %s",
            fault.diagnostic_context.get("item"),
            exc_info=(type(fault.cause), fault.cause, fault.cause.__traceback__),
        )
        if self._on_fault is not None:
            self._on_fault(fault)

    def shutdown(self, wait: bool = True) -> None:
        self._executor.shutdown(wait=wait)

    @staticmethod
    def _log_escaped(future: concurrent.futures.Future) -> None:
        if future.cancelled():
            return
        exc = future.exception()
        if exc is not None:
            logger.error(
                "Dispatched closure raised", exc_info=(type(exc), exc, exc.__traceback__)
            )


__all__ = ["FaultCallback", "SubstratePool", "ThreadPoolSubstrate"]
