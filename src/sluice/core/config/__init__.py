"""Sluice configuration system.

Configuration is loaded from a YAML file and from ``SLUICE_*`` environment
variables, with ``${VAR}`` substitution and Pydantic validation.

Example usage:
```python
from sluice.core.config import load_config
from sluice import AdmissionGate

config = load_config("sluice.yaml")
gate = AdmissionGate.from_config(config.dispatch)
```

Environment variables override the file, e.g.
``SLUICE_DISPATCH_MAX_BACKLOG=16`` or ``SLUICE_LOGGING_LEVEL=DEBUG``.
"""

from .schema import SluiceConfig, DispatchConfig, LoggingConfig
from .loader import load_config
from .exceptions import ConfigError

__all__ = [
    'SluiceConfig',
    'DispatchConfig',
    'LoggingConfig',
    'load_config',
    'ConfigError'
]
