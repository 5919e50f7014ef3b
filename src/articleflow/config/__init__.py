"""Application configuration."""

from .config import (
    BackendsConfig,
    Config,
    LazyConfig,
    MonitoringConfig,
    RetryConfig,
    TransportConfig,
    find_config_file,
    settings,
)

__all__ = [
    "BackendsConfig",
    "Config",
    "LazyConfig",
    "MonitoringConfig",
    "RetryConfig",
    "TransportConfig",
    "find_config_file",
    "settings",
]
