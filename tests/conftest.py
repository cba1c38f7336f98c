"""Configure pytest environment for all tests."""

import logging
import sys
import threading
import time
from pathlib import Path
from typing import Callable, List

import pytest

# Get absolute paths
PROJECT_ROOT = Path(__file__).parent.parent.absolute()
SRC_PATH = PROJECT_ROOT / "src"

# Allow running the suite from a checkout without installing the package
if str(SRC_PATH) not in sys.path:
    sys.path.insert(0, str(SRC_PATH))

from sluice.runtime.substrate import ThreadPoolSubstrate  # noqa: E402

logger = logging.getLogger(__name__)


class ManualSubstrate:
    """Substrate that only records dispatched activations.

    Tests decide when (and on which thread) each activation runs, which makes
    queue states reproducible without sleeps.
    """

    def __init__(self) -> None:
        self.pending: List[Callable[[], None]] = []
        self.faults: list = []
        self.shutdown_calls: List[bool] = []
        self._lock = threading.Lock()

    def dispatch(self, fn: Callable[[], None]) -> None:
        with self._lock:
            self.pending.append(fn)

    def report_fault(self, fault) -> None:
        self.faults.append(fault)

    def shutdown(self, wait: bool = True) -> None:
        self.shutdown_calls.append(wait)

    def run_next(self) -> None:
        with self._lock:
            fn = self.pending.pop(0)
        fn()

    def run_all(self) -> None:
        while True:
            with self._lock:
                if not self.pending:
                    return
                fn = self.pending.pop(0)
            fn()


@pytest.fixture
def manual_substrate() -> ManualSubstrate:
    """Substrate whose activations run only when the test says so."""
    return ManualSubstrate()


@pytest.fixture
def fault_log() -> list:
    return []


@pytest.fixture
def thread_substrate(fault_log):
    """Real thread pool substrate that records faults into ``fault_log``."""
    substrate = ThreadPoolSubstrate(
        max_workers=8, thread_name_prefix="sluice-test", on_fault=fault_log.append
    )
    yield substrate
    substrate.shutdown(wait=True)


def wait_until(predicate: Callable[[], bool], timeout: float = 5.0, interval: float = 0.005) -> bool:
    """Poll ``predicate`` until it is true or ``timeout`` expires."""
    deadline = time.monotonic() + timeout
    while time.monotonic() < deadline:
        if predicate():
            return True
        time.sleep(interval)
    return predicate()


@pytest.fixture
def until() -> Callable[..., bool]:
    """Expose ``wait_until`` to tests without importing from conftest."""
    return wait_until
