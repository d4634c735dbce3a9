"""
Agora Exceptions

Root exception classes for the Agora governance package.
"""


class AgoraException(Exception):
    """Base exception for Agora."""
    pass


class ConfigurationError(AgoraException):
    """Configuration error."""
    pass
