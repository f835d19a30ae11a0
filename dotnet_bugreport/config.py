"""Runtime configuration read from environment variables."""

from __future__ import annotations

import os
import re
from dataclasses import dataclass
from pathlib import Path
from typing import Mapping

from dotnet_bugreport.exceptions import ConfigurationError

_WINDOWS_DRIVE_ROOT_RE = re.compile(r"^[A-Za-z]:[\\/]*$")


@dataclass(frozen=True)
class Settings:
    log_level: str = "WARNING"
    log_format: str = "console"  # "console" | "json"
    dotnet_command: str = "dotnet"
    git_command: str = "git"
    container_marker: str = "/.dockerenv"

    @classmethod
    def from_env(cls, environ: Mapping[str, str] | None = None) -> Settings:
        """Build settings from ``BUGREPORT_*`` variables.

        Reads:
            BUGREPORT_LOG_LEVEL        — log level (default: WARNING)
            BUGREPORT_LOG_FORMAT       — console | json (default: console)
            BUGREPORT_DOTNET           — dotnet executable (default: dotnet)
            BUGREPORT_GIT              — git executable (default: git)
            BUGREPORT_CONTAINER_MARKER — container marker file (default: /.dockerenv)
        """
        env = os.environ if environ is None else environ
        return cls(
            log_level=env.get("BUGREPORT_LOG_LEVEL", "WARNING").upper(),
            log_format=env.get("BUGREPORT_LOG_FORMAT", "console").lower(),
            dotnet_command=env.get("BUGREPORT_DOTNET", "dotnet"),
            git_command=env.get("BUGREPORT_GIT", "git"),
            container_marker=env.get("BUGREPORT_CONTAINER_MARKER", "/.dockerenv"),
        )


def is_filesystem_root(path: str | Path) -> bool:
    """Return True for ``/``, a drive root such as ``C:\\``, or any path resolving to one."""
    raw = str(path)
    if _WINDOWS_DRIVE_ROOT_RE.match(raw):
        return True
    resolved = Path(raw).resolve()
    return resolved.parent == resolved


def resolve_root(directory: str | Path | None) -> Path:
    """Resolve the scan root to an absolute directory.

    Raises ConfigurationError if the directory does not exist or is the
    root of a filesystem.
    """
    raw = str(directory) if directory else os.getcwd()
    if not raw.strip():
        raw = os.getcwd()
    if is_filesystem_root(raw):
        raise ConfigurationError(
            f"Refusing to scan filesystem root: {raw}. Please specify a project directory."
        )
    resolved = Path(raw).resolve()
    if not resolved.is_dir():
        raise ConfigurationError(f"Directory does not exist: {resolved}")
    return resolved
