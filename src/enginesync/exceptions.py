"""
Custom exceptions for the enginesync application.

This module defines domain-specific exceptions that provide better error
categorization and more informative error messages for operators and developers.
"""

from __future__ import annotations

from typing import Sequence


class EngineSyncError(Exception):
    """
    Base exception for all enginesync errors.

    All custom exceptions in enginesync should inherit from this class
    to allow for easy catching of all application-specific errors.
    """

    def __init__(self, message: str, details: str | None = None) -> None:
        """
        Initialize the exception.

        Args:
            message: The primary error message.
            details: Optional additional context about the error.
        """
        self.message = message
        self.details = details
        super().__init__(message)

    def __str__(self) -> str:
        if self.details:
            return f"{self.message} - {self.details}"
        return self.message


# =============================================================================
# Configuration Errors
# =============================================================================


class ConfigurationError(EngineSyncError):
    """
    Exception raised when configuration is invalid or incomplete.

    This includes:
    - Configuration file parsing errors
    - A required value that is empty when an operation needs it
    """

    pass


class ConfigMissingError(ConfigurationError):
    """Exception raised when no configuration file can be found."""

    def __init__(self, searched: Sequence[str]) -> None:
        super().__init__(
            "No configuration file found",
            details="searched: " + ", ".join(searched),
        )
        self.searched = list(searched)


# =============================================================================
# Selection Errors (logged, never raised out of the orchestrator)
# =============================================================================


class UnrecognizedBackendError(EngineSyncError):
    """Raised internally when a backend name is not in the registry."""

    def __init__(self, name: str, available: Sequence[str]) -> None:
        super().__init__(
            f"Unrecognized backend: {name!r}",
            details="available: " + ", ".join(available),
        )
        self.name = name


class UnrecognizedCommandError(EngineSyncError):
    """Raised internally when the top-level command is not known."""

    def __init__(self, command: str, available: Sequence[str]) -> None:
        super().__init__(
            f"Unrecognized command: {command!r}",
            details="available: " + ", ".join(available),
        )
        self.command = command


# =============================================================================
# Tooling Errors
# =============================================================================


class ToolMissingError(EngineSyncError):
    """
    Exception raised when a backend CLI is not on PATH and could not be installed.

    Attributes:
        executable: The executable name that was looked up.
    """

    def __init__(
        self, message: str, executable: str, details: str | None = None
    ) -> None:
        super().__init__(message, details)
        self.executable = executable


class InstallerError(EngineSyncError):
    """Exception raised when an installer process cannot be launched."""

    pass


class BackendCommandFailed(EngineSyncError):
    """
    Exception raised when a transfer CLI exits with a non-zero status.

    Attributes:
        argv: The command line that was executed.
        returncode: The exit status reported by the process.
        output: Trailing output lines captured from the process.
    """

    def __init__(
        self,
        argv: Sequence[str],
        returncode: int,
        output: Sequence[str] = (),
    ) -> None:
        self.argv = list(argv)
        self.returncode = returncode
        self.output = list(output)
        super().__init__(
            f"{self.argv[0] if self.argv else 'command'} exited with status {returncode}",
            details="\n".join(self.output) or None,
        )


# =============================================================================
# Version Errors
# =============================================================================


class VersionFormatError(EngineSyncError):
    """
    Exception raised when a version marker is not an integer.

    Attributes:
        source: The URL or file path the marker was read from.
        value: The raw text that failed to parse.
    """

    def __init__(self, source: str, value: str) -> None:
        super().__init__(
            f"Version marker from {source} is not an integer",
            details=repr(value),
        )
        self.source = source
        self.value = value


class NetworkError(EngineSyncError):
    """
    Exception raised when the remote version marker cannot be fetched.

    Attributes:
        url: The URL that was requested.
        status_code: The HTTP status code, when a response was received.
    """

    def __init__(
        self,
        message: str,
        url: str | None = None,
        status_code: int | None = None,
        details: str | None = None,
    ) -> None:
        super().__init__(message, details)
        self.url = url
        self.status_code = status_code
