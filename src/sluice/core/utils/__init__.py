from sluice.core.utils.logging import (
    apply_logging_config,
    configure_logging,
    get_logger,
    set_component_level,
)

__all__ = [
    "apply_logging_config",
    "configure_logging",
    "get_logger",
    "set_component_level",
]
