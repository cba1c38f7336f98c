"""Bounded-concurrency dispatch with blocking admission.

Key concepts:
- **WorkQueue**: FIFO drained by at most N worker activations borrowed from a
  substrate pool.
- **AdmissionGate**: blocks producers while the queue's backlog is full.
- **TaskCounters**: consistent snapshot of submitted, queued and running counts.

Example usage:
    from sluice._internal.concurrency import AdmissionGate

    with AdmissionGate(concurrency_ceiling=2, max_backlog=8) as gate:
        for job in jobs:
            gate.submit(job)
        gate.wait_idle()
"""

from sluice._internal.concurrency.admission import AdmissionGate, CancellationToken
from sluice._internal.concurrency.counters import TaskCounters
from sluice._internal.concurrency.work_queue import WorkItem, WorkQueue

__all__ = [
    "AdmissionGate",
    "CancellationToken",
    "TaskCounters",
    "WorkItem",
    "WorkQueue",
]
