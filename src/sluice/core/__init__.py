"""Core building blocks shared by the Sluice runtime: errors, config, logging."""

from sluice.core.exceptions import (
    ConstructionError,
    ExecutionFault,
    ProbeContention,
    SluiceError,
    SubmissionCancelled,
)

__all__ = [
    "SluiceError",
    "ConstructionError",
    "ExecutionFault",
    "ProbeContention",
    "SubmissionCancelled",
]
