"""
swapcore Configuration

Loads config.toml at startup.
Environment variables override TOML values.
"""

from .loader import (
    SwapCoreConfig,
    ExchangeSectionConfig,
    LoggingSectionConfig,
    load_config,
)

__all__ = [
    "SwapCoreConfig",
    "ExchangeSectionConfig",
    "LoggingSectionConfig",
    "load_config",
]
