"""ReportAssembler — build the ordered bug report document for a root directory."""

from __future__ import annotations

from datetime import datetime, timezone
from pathlib import Path
from typing import Callable, Mapping

import structlog

from dotnet_bugreport.config import Settings, is_filesystem_root
from dotnet_bugreport.exceptions import CollaboratorError, ConfigurationError, ParseError
from dotnet_bugreport.models import ReportBlock, ReportDocument, ScanEstimate
from dotnet_bugreport.prompt import ConfirmationPrompt
from dotnet_bugreport.report.collectors import (
    RELEVANT_ENV_PREFIXES,
    ContainerDetector,
    PlatformSystemInfo,
    SystemInfoProvider,
    relevant_environment,
)
from dotnet_bugreport.runner import CommandRunner
from dotnet_bugreport.scanning.discovery import (
    PROJECT_EXTENSION,
    SOLUTION_EXTENSION,
    find_descriptor_files,
    find_top_level_files,
)
from dotnet_bugreport.scanning.estimator import ScanEstimator
from dotnet_bugreport.scanning.parser import ProjectFileParser

log = structlog.get_logger("dotnet_bugreport.report")

REPORT_TITLE = ".NET Bug Report"
GLOBAL_JSON = "global.json"
GIT_DIR = ".git"
SCAN_CANCELLED = "Scan cancelled by user."
NO_PROJECT_FILES = "No .csproj files found in the current directory."
NO_ENV_VARS = "No relevant environment variables found."
GIT_UNAVAILABLE = "Unable to retrieve Git information."


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


class ReportAssembler:
    """Assemble report blocks in a fixed order.

    Every collaborator is injected so a run can be reproduced in tests:
    the command runner (dotnet, git), the confirmation prompt for large
    scans, and the environment snapshot.
    """

    def __init__(
        self,
        runner: CommandRunner,
        prompt: ConfirmationPrompt,
        environ: Mapping[str, str],
        *,
        settings: Settings | None = None,
        estimator: ScanEstimator | None = None,
        parser: ProjectFileParser | None = None,
        system_info: SystemInfoProvider | None = None,
        container: ContainerDetector | None = None,
        clock: Callable[[], datetime] = _utc_now,
        env_prefixes: tuple[str, ...] = RELEVANT_ENV_PREFIXES,
    ) -> None:
        self._settings = settings or Settings()
        self._runner = runner
        self._prompt = prompt
        self._environ = dict(environ)
        self._estimator = estimator or ScanEstimator()
        self._parser = parser or ProjectFileParser()
        self._system_info = system_info or PlatformSystemInfo()
        self._container = container or ContainerDetector(self._settings.container_marker)
        self._clock = clock
        self._env_prefixes = env_prefixes

    def build(self, root: str | Path) -> ReportDocument:
        """Build every block for *root*.

        Raises ConfigurationError for a filesystem root before any block runs.
        Every other failure is contained in the block that raised it.
        """
        if is_filesystem_root(root):
            raise ConfigurationError(f"Refusing to scan filesystem root: {root}")
        root = Path(root)
        sections: list[tuple[str, str, str, Callable[[Path], list[str] | None]]] = [
            ("header", REPORT_TITLE, "#", self._header),
            ("system", "System Information", "##", self._system),
            ("runtime", "dotnet --info", "###", self._runtime),
            ("global_json", GLOBAL_JSON, "##", self._global_json),
            ("projects", "Project Files", "##", self._projects),
            ("solutions", "Solution Files", "##", self._solutions),
            ("environment", "Environment Variables", "##", self._environment),
            ("git", "Git Information", "##", self._git),
            ("container", "Container Detection", "##", self._container_block),
        ]

        blocks: list[ReportBlock] = []
        for key, title, level, collect in sections:
            try:
                body = collect(root)
            except ConfigurationError:
                raise
            except Exception as exc:
                log.error("assembler.block_failed", block=key, exc_info=True)
                body = [f"Error collecting {title}: {exc}"]
            if body is None:
                log.debug("assembler.block_absent", block=key)
                continue
            blocks.append(ReportBlock(key=key, title=title, lines=(f"{level} {title}", *body, "")))

        log.info("assembler.done", root=str(root), blocks=[b.key for b in blocks])
        return ReportDocument(blocks=tuple(blocks))

    # ── always-present blocks ────────────────────────────────────────────

    def _header(self, root: Path) -> list[str]:
        return [f"Generated: {self._clock():%Y-%m-%d %H:%M:%S}Z"]

    def _system(self, root: Path) -> list[str]:
        return [f"{label}: {value}" for label, value in self._system_info.collect()]

    def _runtime(self, root: Path) -> list[str]:
        return ["```", self._capture(self._settings.dotnet_command, ["--info"]), "```"]

    def _environment(self, root: Path) -> list[str]:
        pairs = relevant_environment(self._environ, self._env_prefixes)
        if not pairs:
            return [NO_ENV_VARS]
        return ["```text", *(f"{k} = {v}" for k, v in pairs), "```"]

    def _container_block(self, root: Path) -> list[str]:
        if self._container.detect(self._environ):
            return ["Running inside a container."]
        return ["Not inside a container."]

    # ── conditional blocks ───────────────────────────────────────────────

    def _global_json(self, root: Path) -> list[str] | None:
        path = root / GLOBAL_JSON
        if not path.is_file():
            return None
        return ["```json", path.read_text(encoding="utf-8", errors="replace"), "```"]

    def _solutions(self, root: Path) -> list[str] | None:
        solutions = find_top_level_files(root, SOLUTION_EXTENSION)
        if not solutions:
            return None
        return [f"- `{p.name}`" for p in solutions]

    def _git(self, root: Path) -> list[str] | None:
        if not (root / GIT_DIR).is_dir():
            return None
        try:
            branch = self._git_value(root, ["rev-parse", "--abbrev-ref", "HEAD"])
            commit = self._git_value(root, ["rev-parse", "HEAD"])
            remote = self._git_value(root, ["remote", "get-url", "origin"])
        except CollaboratorError as exc:
            log.warning("assembler.git_unavailable", error=str(exc))
            return [GIT_UNAVAILABLE]

        lines = []
        if branch:
            lines.append(f"**Branch:** {branch}")
        if commit:
            lines.append(f"**Commit:** {commit}")
        if remote:
            lines.append(f"**Remote:** {remote}")
        return lines

    def _projects(self, root: Path) -> list[str]:
        estimate = self._estimator.estimate(root)
        if estimate.exceeds_threshold and not self._prompt.ask(self._gate_message(root, estimate)):
            log.info("assembler.scan_cancelled", root=str(root))
            return [SCAN_CANCELLED]

        files = find_descriptor_files(root, PROJECT_EXTENSION)
        if not files:
            return [NO_PROJECT_FILES]

        lines = [f"Found {len(files)} project file(s):", ""]
        for path in files:
            lines.extend(self._project_section(root, path))
        # The block wrapper appends the trailing blank line
        if lines[-1] == "":
            lines.pop()
        return lines

    def _project_section(self, root: Path, path: Path) -> list[str]:
        lines = [f"### {path.relative_to(root).as_posix()}"]
        try:
            project = self._parser.parse(path)
        except ParseError as exc:
            log.warning("assembler.project_parse_failed", path=str(path), error=exc.message)
            return [*lines, f"Error parsing project file: {exc.message}", ""]

        if project.target_frameworks:
            lines.append("**Target Framework(s):**")
            lines.extend(f"- {tfm}" for tfm in project.target_frameworks)
            lines.append("")

        if project.package_references:
            lines.append("**Package References:**")
            lines.append("```")
            lines.extend(f"{ref.name}: {ref.version}" for ref in project.package_references)
            lines.append("```")
        else:
            lines.append("**Package References:** None")
        lines.append("")
        return lines

    # ── helpers ──────────────────────────────────────────────────────────

    @staticmethod
    def _gate_message(root: Path, estimate: ScanEstimate) -> str:
        if estimate.sampled_directory_count:
            detail = (
                f"an estimated {estimate.extrapolated_directory_count:,.0f} directories "
                f"and {estimate.extrapolated_file_count:,.0f} files"
            )
        elif estimate.immediate_file_count:
            detail = f"{estimate.immediate_file_count:,} files at the top level"
        else:
            detail = "a size that could not be determined"
        return f"{root} contains {detail}. Scanning for project files may take a while. Continue?"

    def _capture(self, command: str, args: list[str]) -> str:
        """Run a diagnostic command and return its combined output as text."""
        try:
            result = self._runner.run(command, args)
        except CollaboratorError as exc:
            log.warning("assembler.command_failed", command=command, error=exc.message)
            return f"Error running command: {exc.message}"
        output = result.stdout
        if result.stderr.strip():
            output += "\n[stderr]\n" + result.stderr
        return output

    def _git_value(self, root: Path, args: list[str]) -> str:
        result = self._runner.run(self._settings.git_command, args, str(root))
        return result.stdout.strip() if result.ok else ""
