"""Errors raised while loading dispatch configuration."""

from typing import Optional

from sluice.core.exceptions import SluiceError


class ConfigError(SluiceError):
    """A config file or ``SLUICE_*`` override could not be read or validated.

    Attributes:
        path: The config file involved, or None when the failure came from
            environment overrides alone.
    """

    def __init__(self, message: str, path: Optional[str] = None) -> None:
        self.path = path
        super().__init__(f"{message} ({path})" if path else message)
