"""Logging utilities for Sluice.

Library code only ever calls ``logging.getLogger(__name__)``; these helpers are
for applications that want a ready-made handler setup for the ``sluice``
logger tree.
"""

from __future__ import annotations

import logging
from typing import Optional, Union

from sluice.core.config.schema import LoggingConfig

ROOT_LOGGER_NAME = "sluice"
_DEFAULT_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
_VERBOSE_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - [%(threadName)s] %(message)s"


def get_logger(name: str) -> logging.Logger:
    """Get a module logger by name (no prefixing).

    Args:
        name: Logger name (typically ``__name__``).

    Returns:
        Logger instance.
    """
    return logging.getLogger(name)


def _level_value(level: Union[str, int]) -> int:
    if isinstance(level, str):
        return getattr(logging, level.upper(), logging.INFO)
    return level


def configure_logging(verbose: bool = False, level: Optional[Union[str, int]] = None) -> None:
    """Attach a stream handler to the ``sluice`` logger.

    Calling this more than once replaces the handler rather than stacking a
    second one.

    Args:
        verbose: Enable DEBUG output and include thread names when True.
        level: Explicit level; overrides ``verbose`` when given.
    """
    logger = logging.getLogger(ROOT_LOGGER_NAME)
    if level is not None:
        resolved = _level_value(level)
    else:
        resolved = logging.DEBUG if verbose else logging.INFO

    for handler in list(logger.handlers):
        if getattr(handler, "_sluice_handler", False):
            logger.removeHandler(handler)

    handler = logging.StreamHandler()
    handler.setFormatter(logging.Formatter(_VERBOSE_FORMAT if verbose else _DEFAULT_FORMAT))
    handler._sluice_handler = True  # type: ignore[attr-defined]
    logger.addHandler(handler)
    logger.setLevel(resolved)


def set_component_level(component: str, level: Union[str, int]) -> None:
    """Set log level for a specific component or group.

    Accepts either string levels (e.g., "INFO") or numeric constants. Bare
    component names are resolved under the ``sluice`` namespace, so
    ``"runtime"`` targets ``sluice.runtime``.
    """
    name = component if component.startswith(ROOT_LOGGER_NAME) else f"{ROOT_LOGGER_NAME}.{component}"
    logging.getLogger(name).setLevel(_level_value(level))


def apply_logging_config(config: LoggingConfig) -> None:
    """Configure logging from a validated ``LoggingConfig`` section."""
    configure_logging(level=config.level)
    for component, level in config.components.items():
        set_component_level(component, level)
