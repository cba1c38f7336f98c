"""Point-in-time work queue counters."""

from __future__ import annotations

from dataclasses import dataclass, replace
from typing import Dict


@dataclass(frozen=True, slots=True)
class TaskCounters:
    """Consistent snapshot of a work queue's progress.

    Attributes:
        total_queued: Submissions ever accepted by the queue. Never decreases.
        current_queued: Items waiting in the queue, not yet claimed by a
            worker activation.
        current_running: Worker activations currently alive. Never exceeds
            the queue's concurrency ceiling.
    """

    total_queued: int = 0
    current_queued: int = 0
    current_running: int = 0

    @classmethod
    def empty(cls) -> "TaskCounters":
        return cls()

    def with_admitted(self) -> "TaskCounters":
        """Return these counters with one more item booked as queued."""
        return replace(
            self,
            total_queued=self.total_queued + 1,
            current_queued=self.current_queued + 1,
        )

    def to_dict(self) -> Dict[str, int]:
        return {
            "total_queued": self.total_queued,
            "current_queued": self.current_queued,
            "current_running": self.current_running,
        }


__all__ = ["TaskCounters"]
