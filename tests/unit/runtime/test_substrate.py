"""Tests for the default thread pool substrate."""

import logging
import threading
from unittest.mock import MagicMock

from sluice.core.exceptions import ExecutionFault
from sluice.runtime.substrate import ThreadPoolSubstrate


class TestThreadPoolSubstrate:
    """Dispatch and fault channel behaviour."""

    def test_dispatch_runs_on_named_pool_thread(self):
        substrate = ThreadPoolSubstrate(max_workers=2, thread_name_prefix="substrate-test")
        ran = threading.Event()
        names = []

        def closure():
            names.append(threading.current_thread().name)
            ran.set()

        try:
            substrate.dispatch(closure)
            assert ran.wait(5)
        finally:
            substrate.shutdown(wait=True)

        assert names[0].startswith("substrate-test")
        assert substrate.max_workers == 2

    def test_report_fault_logs_and_forwards(self, caplog):
        on_fault = MagicMock()
        substrate = ThreadPoolSubstrate(max_workers=1, on_fault=on_fault)

        def item():
            pass

        fault = ExecutionFault(item, RuntimeError("disk full"))
        try:
            with caplog.at_level(logging.ERROR, logger="sluice.runtime.substrate"):
                substrate.report_fault(fault)
        finally:
            substrate.shutdown()

        on_fault.assert_called_once_with(fault)
        assert "Unhandled fault in work item" in caplog.text
        assert "disk full" in caplog.text

    def test_escaped_closure_exception_is_logged(self, caplog):
        substrate = ThreadPoolSubstrate(max_workers=1)

        def closure():
            raise LookupError("escaped")

        with caplog.at_level(logging.ERROR, logger="sluice.runtime.substrate"):
            substrate.dispatch(closure)
            substrate.shutdown(wait=True)

        assert "Dispatched closure raised" in caplog.text


class TestExecutionFault:
    """Diagnostic context carried by faults."""

    def test_context_describes_item_and_cause(self):
        def resize_thumbnail():
            pass

        cause = ValueError("bad size")
        fault = ExecutionFault(resize_thumbnail, cause)
        fault.add_context(attempt=1)

        context = fault.get_context_data()
        assert context["item"].endswith("resize_thumbnail")
        assert context["error_type"] == "ValueError"
        assert context["error_message"] == "bad size"
        assert context["attempt"] == 1
        assert fault.__cause__ is cause
        assert "bad size" in str(fault)
