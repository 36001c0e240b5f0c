"""Configuration model exports.

    from eventlog.config.models import StorageConfig, LoggingConfig
"""

from eventlog.config.models.observability import (
    LoggingConfig,
    ObservabilityConfig,
)
from eventlog.config.models.storage import StorageConfig

__all__ = [
    "LoggingConfig",
    "ObservabilityConfig",
    "StorageConfig",
]
