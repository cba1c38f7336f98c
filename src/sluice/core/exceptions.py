from typing import Any, Dict, Optional


class SluiceError(Exception):
    """Base class for all custom exceptions in the Sluice library."""

    pass


class ConstructionError(SluiceError, ValueError):
    """Raised when a dispatcher component is built with invalid limits."""

    pass


class ProbeContention(SluiceError):
    """Raised when a diagnostic probe finds the queue lock already held."""

    pass


class SubmissionCancelled(SluiceError):
    """Raised when a submission is refused because the gate was cancelled."""

    pass


class ExecutionFault(SluiceError):
    """Raised on behalf of a work item that failed while executing.

    The executor never handles item failures itself; it wraps them in an
    ExecutionFault and hands them to the substrate's fault channel.

    Attributes:
        item: The work item that raised.
        cause: The underlying exception.
    """

    def __init__(
        self,
        item: Any,
        cause: BaseException,
        message: str = "Work item raised during execution",
    ) -> None:
        self.item = item
        self.cause = cause
        self.diagnostic_context: Dict[str, Any] = {}
        super().__init__(f"{message}: {type(cause).__name__}: {cause}")
        self.__cause__ = cause
        self.add_context(
            item=_describe(item),
            error_type=type(cause).__name__,
            error_message=str(cause),
        )

    def add_context(self, **kwargs: Any) -> None:
        """Attach diagnostic metadata to the fault."""
        self.diagnostic_context.update(kwargs)

    def get_context_data(self) -> Dict[str, Any]:
        """Return a copy of the diagnostic context."""
        return self.diagnostic_context.copy()


def _describe(item: Any) -> Optional[str]:
    name = getattr(item, "__qualname__", None) or getattr(item, "__name__", None)
    return name or repr(item)


__all__ = [
    "SluiceError",
    "ConstructionError",
    "ProbeContention",
    "SubmissionCancelled",
    "ExecutionFault",
]
