"""enginesync - synchronize an engine binary tree with object storage."""

from .exceptions import (
    BackendCommandFailed,
    ConfigMissingError,
    ConfigurationError,
    EngineSyncError,
    NetworkError,
    ToolMissingError,
    VersionFormatError,
)

__all__ = [
    "BackendCommandFailed",
    "ConfigMissingError",
    "ConfigurationError",
    "EngineSyncError",
    "NetworkError",
    "ToolMissingError",
    "VersionFormatError",
]
