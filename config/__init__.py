"""Configuration package for the mock interview backend."""
from .providers import ConfigurationError, LlmRoute, StorageConfig, TavusConfig
from .settings import Settings, settings

__all__ = [
    "ConfigurationError",
    "LlmRoute",
    "StorageConfig",
    "TavusConfig",
    "Settings",
    "settings",
]
