"""Custom exceptions for dotnet-bugreport."""

from __future__ import annotations

from pathlib import Path


class BugReportError(Exception):
    """Base exception for all bug report errors."""


class ConfigurationError(BugReportError):
    """Raised when the root directory is missing, invalid, or forbidden."""


class ParseError(BugReportError):
    """Raised when a project file cannot be read or is not well-formed XML."""

    def __init__(self, path: Path | str, message: str):
        self.path = Path(path)
        self.message = message
        super().__init__(message)


class CollaboratorError(BugReportError):
    """Raised when an external command is unavailable or fails to start."""

    def __init__(self, command: str, message: str):
        self.command = command
        self.message = message
        super().__init__(f"{command}: {message}")
