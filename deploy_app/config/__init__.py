"""
Configuration defaults, loading and validation.
"""
from .defaults import DefaultConfig, RuntimeConfig, TransportParams, get_default_config
from .loader import ConfigLoader
from .validation import ConfigValidator, ValidationError

__all__ = [
    "ConfigLoader",
    "ConfigValidator",
    "DefaultConfig",
    "RuntimeConfig",
    "TransportParams",
    "ValidationError",
    "get_default_config",
]
