"""Configuration models and loaders."""

from .config import (
    MAX_BATCH_SIZE,
    Config,
    ConfigurationError,
    DeduplicationConfig,
    MonitoringConfig,
    StoreConfig,
    find_config_file,
    load_config,
)

__all__ = [
    "MAX_BATCH_SIZE",
    "Config",
    "ConfigurationError",
    "DeduplicationConfig",
    "MonitoringConfig",
    "StoreConfig",
    "find_config_file",
    "load_config",
]
