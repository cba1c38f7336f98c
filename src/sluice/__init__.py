"""Sluice: bounded-concurrency work dispatch with blocking backpressure.

Producers hand argument-less callables to an ``AdmissionGate``. The gate
blocks them while too many items are waiting, and its ``WorkQueue`` runs the
admitted items on at most ``concurrency_ceiling`` threads borrowed from a
substrate pool.
"""

from sluice._internal.concurrency import (
    AdmissionGate,
    CancellationToken,
    TaskCounters,
    WorkItem,
    WorkQueue,
)
from sluice.core.config import DispatchConfig, SluiceConfig, load_config
from sluice.core.exceptions import (
    ConstructionError,
    ExecutionFault,
    ProbeContention,
    SluiceError,
    SubmissionCancelled,
)
from sluice.runtime import SubstratePool, ThreadPoolSubstrate

__version__ = "0.1.0"

__all__ = [
    "AdmissionGate",
    "CancellationToken",
    "ConstructionError",
    "DispatchConfig",
    "ExecutionFault",
    "ProbeContention",
    "SluiceConfig",
    "SluiceError",
    "SubmissionCancelled",
    "SubstratePool",
    "TaskCounters",
    "ThreadPoolSubstrate",
    "WorkItem",
    "WorkQueue",
    "load_config",
]
