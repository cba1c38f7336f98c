"""Runtime components that supply threads to the dispatcher."""

from sluice.runtime.substrate import FaultCallback, SubstratePool, ThreadPoolSubstrate

__all__ = [
    "FaultCallback",
    "SubstratePool",
    "ThreadPoolSubstrate",
]
