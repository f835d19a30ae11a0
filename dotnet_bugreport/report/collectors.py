"""Environment collectors used by the report assembler."""

from __future__ import annotations

import os
import platform
import struct
import sys
from dataclasses import dataclass
from pathlib import Path
from typing import Mapping, Protocol

# Environment variable prefixes worth reporting for .NET issues
RELEVANT_ENV_PREFIXES: tuple[str, ...] = ("DOTNET_", "ASPNETCORE_", "MSBUILD_")


class SystemInfoProvider(Protocol):
    def collect(self) -> list[tuple[str, str]]: ...


class PlatformSystemInfo:
    """System facts from the :mod:`platform` module, as (label, value) pairs."""

    def collect(self) -> list[tuple[str, str]]:
        return [
            ("OS", platform.platform()),
            ("OS Architecture", platform.machine() or "unknown"),
            ("Process Architecture", f"{struct.calcsize('P') * 8}-bit"),
            ("Interpreter", f"{platform.python_implementation()} {platform.python_version()}"),
            ("Runtime Version", sys.version.split()[0]),
        ]


def relevant_environment(
    environ: Mapping[str, str],
    prefixes: tuple[str, ...] = RELEVANT_ENV_PREFIXES,
) -> list[tuple[str, str]]:
    """Filter *environ* to keys starting with one of *prefixes* (case-insensitive).

    Sorted ordinally by key.
    """
    upper = tuple(p.upper() for p in prefixes)
    return sorted(
        ((k, v) for k, v in environ.items() if k.upper().startswith(upper)),
        key=lambda kv: kv[0],
    )


@dataclass(frozen=True)
class ContainerDetector:
    """Detect a container from a marker file or well-known variables."""

    marker: str = "/.dockerenv"

    def detect(self, environ: Mapping[str, str]) -> bool:
        if Path(self.marker).exists():
            return True
        if environ.get("DOTNET_RUNNING_IN_CONTAINER", "").lower() == "true":
            return True
        return "container" in environ


def process_environment() -> dict[str, str]:
    """Snapshot of the current process environment."""
    return dict(os.environ)
