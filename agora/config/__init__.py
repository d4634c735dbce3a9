"""
Agora Unified Configuration

Loads all sections of agora.toml at startup.
Environment variables override TOML values.
"""

from .loader import (
    AgoraConfig,
    GovernanceSectionConfig,
    LoggingSectionConfig,
    load_config,
)

__all__ = [
    "AgoraConfig",
    "GovernanceSectionConfig",
    "LoggingSectionConfig",
    "load_config",
]
