"""Project and solution file discovery."""

from __future__ import annotations

import os
import re
from pathlib import Path

PROJECT_EXTENSION = ".csproj"
SOLUTION_EXTENSION = ".sln"

# Build output directories; a project file under one of these is a copy.
EXCLUDED_SEGMENTS = frozenset({"bin", "obj"})

_SEPARATOR_RE = re.compile(r"[\\/]+")


def is_excluded(relative_path: str | Path) -> bool:
    """Return True if any segment of *relative_path* is ``bin`` or ``obj``.

    Accepts both ``/`` and ``\\`` separators regardless of platform.
    """
    segments = _SEPARATOR_RE.split(str(relative_path))
    return any(seg in EXCLUDED_SEGMENTS for seg in segments)


def _ordinal(paths: list[Path]) -> list[Path]:
    return sorted(paths, key=str)


def find_descriptor_files(root: str | Path, extension: str = PROJECT_EXTENSION) -> list[Path]:
    """Recursively collect project files under *root*, skipping build output."""
    root = Path(root)
    ext = extension.lower()
    matches: list[Path] = []
    for dirpath, dirnames, filenames in os.walk(root):
        dirnames[:] = [d for d in dirnames if d not in EXCLUDED_SEGMENTS]
        for name in filenames:
            if not name.lower().endswith(ext):
                continue
            path = Path(dirpath) / name
            if is_excluded(path.relative_to(root)):
                continue
            matches.append(path)
    return _ordinal(matches)


def find_top_level_files(root: str | Path, extension: str = SOLUTION_EXTENSION) -> list[Path]:
    """Collect direct children of *root* with *extension* (not recursive)."""
    root = Path(root)
    ext = extension.lower()
    return _ordinal(
        [p for p in root.iterdir() if p.is_file() and p.name.lower().endswith(ext)]
    )
