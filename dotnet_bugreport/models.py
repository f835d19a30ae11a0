"""Data models for the scan-and-report pipeline."""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path


@dataclass(frozen=True)
class ScanEstimate:
    """Sampling-based size estimate for a directory tree."""

    sampled_directory_count: int
    extrapolated_directory_count: float
    extrapolated_file_count: float
    exceeds_threshold: bool
    immediate_directory_count: int = 0
    immediate_file_count: int = 0


@dataclass(frozen=True)
class PackageReference:
    """A ``<PackageReference>`` entry from a project file."""

    name: str
    version: str


@dataclass
class ProjectDescriptor:
    """Fields extracted from a single ``.csproj`` file."""

    file_path: Path
    target_frameworks: list[str] = field(default_factory=list)
    package_references: list[PackageReference] = field(default_factory=list)


@dataclass(frozen=True)
class CommandResult:
    """Captured output of an external command."""

    stdout: str
    stderr: str
    exit_code: int

    @property
    def ok(self) -> bool:
        return self.exit_code == 0


@dataclass(frozen=True)
class ReportBlock:
    """One titled section of the report. ``lines`` includes the heading."""

    key: str
    title: str
    lines: tuple[str, ...]


@dataclass(frozen=True)
class ReportDocument:
    """Finished report: an immutable, ordered sequence of blocks."""

    blocks: tuple[ReportBlock, ...]

    @property
    def keys(self) -> list[str]:
        return [b.key for b in self.blocks]

    def block(self, key: str) -> ReportBlock | None:
        for b in self.blocks:
            if b.key == key:
                return b
        return None

    def lines(self) -> list[str]:
        out: list[str] = []
        for b in self.blocks:
            out.extend(b.lines)
        return out

    def render(self) -> str:
        return "\n".join(self.lines())
