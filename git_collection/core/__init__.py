"""
Core configuration, logging and error types for the git collection.
"""

from .config import Config, CollectionConfig, MonitoringConfig, get_config, set_config
from .exceptions import (
    GitCollectionError,
    ConfigurationError,
    SynchronizationError,
    FetchError,
    ParseError,
)
from .logger import setup_logger, PerformanceLogger

__all__ = [
    "Config",
    "CollectionConfig",
    "MonitoringConfig",
    "get_config",
    "set_config",
    "GitCollectionError",
    "ConfigurationError",
    "SynchronizationError",
    "FetchError",
    "ParseError",
    "setup_logger",
    "PerformanceLogger",
]
