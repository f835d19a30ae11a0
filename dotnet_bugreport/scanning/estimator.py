"""Scan size estimation — decide whether a recursive walk needs confirmation.

Large roots (a home directory, a monorepo checkout with ``node_modules``)
can take minutes to walk. Rather than walking everything up front, the
estimator samples the first few immediate subdirectories and extrapolates.
"""

from __future__ import annotations

import os
from pathlib import Path

import structlog

from dotnet_bugreport.config import is_filesystem_root
from dotnet_bugreport.exceptions import ConfigurationError
from dotnet_bugreport.models import ScanEstimate

log = structlog.get_logger("dotnet_bugreport.scanning")

LOW_VOLUME_SUBDIRECTORIES = 100
SAMPLE_SIZE = 10
MAX_DIRECTORIES = 1000
MAX_FILES = 10000
MAX_IMMEDIATE_FILES = 5000


class ScanEstimator:
    """Estimate the size of a directory tree from a deterministic sample."""

    def __init__(
        self,
        *,
        low_volume_subdirectories: int = LOW_VOLUME_SUBDIRECTORIES,
        sample_size: int = SAMPLE_SIZE,
        max_directories: int = MAX_DIRECTORIES,
        max_files: int = MAX_FILES,
        max_immediate_files: int = MAX_IMMEDIATE_FILES,
    ) -> None:
        self.low_volume_subdirectories = low_volume_subdirectories
        self.sample_size = sample_size
        self.max_directories = max_directories
        self.max_files = max_files
        self.max_immediate_files = max_immediate_files

    def estimate(self, root: str | Path) -> ScanEstimate:
        """
        Estimate the recursive size of *root*.

        Args:
            root: Existing directory to estimate. Must not be a filesystem root.

        Returns:
            ScanEstimate. ``exceeds_threshold`` is True when the caller
            should ask before walking the tree.

        Raises:
            ConfigurationError: *root* is a filesystem root.
        """
        if is_filesystem_root(root):
            raise ConfigurationError(f"Refusing to estimate filesystem root: {root}")

        try:
            subdirs, file_count = self._list_immediate(Path(root))
        except OSError as exc:
            log.warning("estimator.root_unreadable", root=str(root), error=str(exc))
            return ScanEstimate(
                sampled_directory_count=0,
                extrapolated_directory_count=0.0,
                extrapolated_file_count=0.0,
                exceeds_threshold=True,
            )

        too_many_files = file_count > self.max_immediate_files

        if len(subdirs) < self.low_volume_subdirectories:
            return ScanEstimate(
                sampled_directory_count=0,
                extrapolated_directory_count=0.0,
                extrapolated_file_count=0.0,
                exceeds_threshold=too_many_files,
                immediate_directory_count=len(subdirs),
                immediate_file_count=file_count,
            )

        sampled = 0
        total_dirs = 0
        total_files = 0
        for subdir in subdirs[: self.sample_size]:
            try:
                dirs, files = self._count_tree(
                    subdir,
                    self.max_directories - total_dirs,
                    self.max_files - total_files,
                )
            except OSError as exc:
                log.debug("estimator.sample_skipped", path=str(subdir), error=str(exc))
                continue
            sampled += 1
            total_dirs += dirs
            total_files += files
            if total_dirs > self.max_directories or total_files > self.max_files:
                log.debug(
                    "estimator.sample_ceiling_hit",
                    sampled=sampled,
                    directories=total_dirs,
                    files=total_files,
                )
                break

        if sampled:
            est_dirs = total_dirs / sampled * len(subdirs)
            est_files = total_files / sampled * len(subdirs)
        else:
            est_dirs = est_files = 0.0

        exceeds = (
            est_dirs > self.max_directories
            or est_files > self.max_files
            or too_many_files
        )
        log.debug(
            "estimator.done",
            root=str(root),
            subdirectories=len(subdirs),
            sampled=sampled,
            estimated_directories=round(est_dirs, 1),
            estimated_files=round(est_files, 1),
            exceeds=exceeds,
        )
        return ScanEstimate(
            sampled_directory_count=sampled,
            extrapolated_directory_count=est_dirs,
            extrapolated_file_count=est_files,
            exceeds_threshold=exceeds,
            immediate_directory_count=len(subdirs),
            immediate_file_count=file_count,
        )

    @staticmethod
    def _list_immediate(root: Path) -> tuple[list[Path], int]:
        """Return (subdirectories sorted by name, immediate file count)."""
        subdirs: list[Path] = []
        files = 0
        with os.scandir(root) as it:
            for entry in it:
                if entry.is_dir(follow_symlinks=False):
                    subdirs.append(Path(entry.path))
                else:
                    files += 1
        subdirs.sort(key=lambda p: p.name)
        return subdirs, files

    @staticmethod
    def _count_tree(top: Path, dir_budget: int, file_budget: int) -> tuple[int, int]:
        """Count descendant directories and files under *top*.

        Stops as soon as either count goes past its budget. Any OSError
        propagates so the caller can drop the whole subdirectory.
        """
        dirs = 0
        files = 0
        stack = [top]
        while stack:
            with os.scandir(stack.pop()) as it:
                for entry in it:
                    if entry.is_dir(follow_symlinks=False):
                        dirs += 1
                        stack.append(Path(entry.path))
                    else:
                        files += 1
                    if dirs > dir_budget or files > file_budget:
                        return dirs, files
        return dirs, files
