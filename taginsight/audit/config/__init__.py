"""Configuration loading for the audit engine.

This package provides YAML-based configuration loading with environment
overrides for engine settings.
"""

from .loader import (
    ConfigManager,
    ConfigurationError,
    EngineConfig,
    get_config,
    load_config,
)

__all__ = [
    "ConfigManager",
    "ConfigurationError",
    "EngineConfig",
    "get_config",
    "load_config",
]
