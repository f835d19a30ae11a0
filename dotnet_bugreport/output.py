"""Output sinks — write the report file or copy the report to the clipboard."""

from __future__ import annotations

import sys
from datetime import datetime, timezone
from pathlib import Path
from typing import Callable

import structlog

from dotnet_bugreport.exceptions import CollaboratorError
from dotnet_bugreport.models import ReportDocument
from dotnet_bugreport.runner import CommandRunner

log = structlog.get_logger("dotnet_bugreport.output")

# Clipboard commands per sys.platform prefix, tried in order
CLIPBOARD_COMMANDS: dict[str, list[tuple[str, list[str]]]] = {
    "darwin": [("pbcopy", [])],
    "win32": [("clip.exe", [])],
    "linux": [("xclip", ["-selection", "clipboard"]), ("wl-copy", [])],
}


def report_filename(now: datetime) -> str:
    return f"bugreport-{now:%Y%m%d-%H%M%S}.md"


class FileSink:
    """Write the report as ``bugreport-<YYYYMMDD>-<HHMMSS>.md`` into a directory."""

    def __init__(
        self,
        directory: str | Path,
        clock: Callable[[], datetime] = lambda: datetime.now(timezone.utc),
    ) -> None:
        self.directory = Path(directory)
        self._clock = clock

    def write(self, document: ReportDocument) -> Path:
        path = self.directory / report_filename(self._clock())
        with path.open("w", encoding="utf-8") as fh:
            for line in document.lines():
                fh.write(line + "\n")
        log.info("output.file_written", path=str(path))
        return path


class ClipboardSink:
    """Copy report text to the system clipboard via a platform command."""

    def __init__(self, runner: CommandRunner, platform: str | None = None) -> None:
        self._runner = runner
        self._platform = platform or sys.platform

    def commands(self) -> list[tuple[str, list[str]]]:
        for prefix, commands in CLIPBOARD_COMMANDS.items():
            if self._platform.startswith(prefix):
                return commands
        return []

    def copy(self, document: ReportDocument) -> bool:
        """Return True if one of the platform's clipboard commands succeeded."""
        commands = self.commands()
        if not commands:
            log.warning("output.clipboard_unsupported", platform=self._platform)
            return False

        text = document.render()
        for command, args in commands:
            try:
                result = self._runner.run(command, args, input=text)
            except CollaboratorError as exc:
                log.debug("output.clipboard_unavailable", command=command, error=exc.message)
                continue
            if result.ok:
                log.info("output.clipboard_copied", command=command)
                return True
            log.debug("output.clipboard_failed", command=command, exit_code=result.exit_code)
        return False
