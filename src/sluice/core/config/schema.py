"""Configuration schema module.

This module defines the data structures used for configuring a dispatcher.
The schemas are kept minimal but extensible through Pydantic.
"""

from typing import Dict, Optional

from pydantic import BaseModel, Field, field_validator


class DispatchConfig(BaseModel):
    """Limits and tuning for an admission gate and its work queue.

    Attributes:
        concurrency_ceiling: Maximum number of concurrently active worker
            activations.
        max_backlog: Number of queued, unclaimed items at which producers
            start blocking.
        poll_interval_s: Upper bound on a single wait slice of a blocked
            producer before it re-checks cancellation.
        substrate_max_workers: Thread count of the default substrate pool.
            Defaults to the concurrency ceiling.
        thread_name_prefix: Name prefix for substrate threads.
    """

    concurrency_ceiling: int = 4
    max_backlog: int = 64
    poll_interval_s: float = Field(default=1.0, gt=0)
    substrate_max_workers: Optional[int] = None
    thread_name_prefix: str = "sluice"

    # Allow arbitrary extension
    model_config = {"extra": "allow"}

    @field_validator("concurrency_ceiling", "max_backlog")
    @classmethod
    def _positive(cls, value: int) -> int:
        if value < 1:
            raise ValueError("must be a positive integer")
        return value

    @field_validator("substrate_max_workers")
    @classmethod
    def _positive_or_none(cls, value: Optional[int]) -> Optional[int]:
        if value is not None and value < 1:
            raise ValueError("must be a positive integer when provided")
        return value


class LoggingConfig(BaseModel):
    """Configuration for logging.

    Attributes:
        level: Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        components: Per-logger level overrides keyed by logger name
    """

    level: str = "INFO"
    components: Dict[str, str] = Field(default_factory=dict)

    # Allow arbitrary extension
    model_config = {"extra": "allow"}


class SluiceConfig(BaseModel):
    """Root configuration.

    Attributes:
        dispatch: Dispatcher limits
        logging: Logging configuration
    """

    dispatch: DispatchConfig = Field(default_factory=DispatchConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)

    # Allow arbitrary extension
    model_config = {"extra": "allow"}
