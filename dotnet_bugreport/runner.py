"""External command execution behind a small injectable interface."""

from __future__ import annotations

import subprocess
from typing import Protocol, runtime_checkable

import structlog

from dotnet_bugreport.exceptions import CollaboratorError
from dotnet_bugreport.models import CommandResult

log = structlog.get_logger("dotnet_bugreport.runner")


@runtime_checkable
class CommandRunner(Protocol):
    """Interface for running an external command to completion."""

    def run(
        self,
        command: str,
        args: list[str],
        workdir: str | None = None,
        input: str | None = None,
    ) -> CommandResult: ...


class SubprocessRunner:
    """Run commands with :func:`subprocess.run`.

    Raises CollaboratorError when the command cannot be started. A non-zero
    exit code is not an error here; callers decide what it means.

    No timeout is applied: a hung command blocks the caller.
    """

    def run(
        self,
        command: str,
        args: list[str],
        workdir: str | None = None,
        input: str | None = None,
    ) -> CommandResult:
        cmd = [command, *args]
        log.debug("runner.exec", cmd=cmd, cwd=workdir)
        try:
            proc = subprocess.run(
                cmd,
                capture_output=True,
                text=True,
                encoding="utf-8",
                errors="replace",
                cwd=workdir,
                input=input,
            )
        except FileNotFoundError as exc:
            raise CollaboratorError(command, f"command not found: {exc}") from exc
        except OSError as exc:
            raise CollaboratorError(command, str(exc)) from exc

        if proc.returncode != 0:
            log.debug("runner.nonzero_exit", cmd=cmd, exit_code=proc.returncode)
        return CommandResult(
            stdout=proc.stdout or "",
            stderr=proc.stderr or "",
            exit_code=proc.returncode,
        )
