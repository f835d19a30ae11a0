"""CLI entry point: dotnet-bugreport.

Usage:
    dotnet-bugreport                       # scan current directory, write file
    dotnet-bugreport -p path/to/solution   # scan another directory
    dotnet-bugreport --clipboard           # copy the report instead
    dotnet-bugreport path/to/solution      # positional path (backward compat)
"""

from __future__ import annotations

import sys

import click

from dotnet_bugreport.config import Settings, resolve_root
from dotnet_bugreport.core.logging import setup_logging
from dotnet_bugreport.exceptions import ConfigurationError
from dotnet_bugreport.output import ClipboardSink, FileSink
from dotnet_bugreport.prompt import ConsolePrompt
from dotnet_bugreport.report.assembler import ReportAssembler
from dotnet_bugreport.report.collectors import process_environment
from dotnet_bugreport.runner import SubprocessRunner

USAGE = "Usage: dotnet-bugreport [-p|-path|--path <path>] [-c|-clipboard|--clipboard]"


class _BugReportCommand(click.Command):
    """Report usage errors with exit code 1 instead of click's default 2."""

    def parse_args(self, ctx: click.Context, args: list[str]) -> list[str]:
        try:
            return super().parse_args(ctx, args)
        except click.UsageError as exc:
            exc.exit_code = 1
            raise


@click.command(cls=_BugReportCommand)
@click.option("-p", "-path", "--path", "path_option", default=None, help="Directory to scan")
@click.option(
    "-c", "-clipboard", "--clipboard", "use_clipboard", is_flag=True,
    help="Copy the report to the clipboard instead of writing a file",
)
@click.option("-v", "--verbose", is_flag=True, help="Verbose logging")
@click.argument("legacy_path", required=False)
def main(
    path_option: str | None,
    use_clipboard: bool,
    verbose: bool,
    legacy_path: str | None,
) -> None:
    """Generate a .NET bug report for a project directory."""
    settings = Settings.from_env()
    setup_logging(settings, verbose=verbose)

    try:
        root = resolve_root(path_option or legacy_path)
    except ConfigurationError as e:
        click.echo(f"Error: {e}")
        click.echo(USAGE)
        sys.exit(1)

    runner = SubprocessRunner()
    assembler = ReportAssembler(
        runner,
        ConsolePrompt(),
        process_environment(),
        settings=settings,
    )
    document = assembler.build(root)

    if use_clipboard:
        if ClipboardSink(runner).copy(document):
            click.echo("Bug report copied to clipboard!")
            return
        click.echo("Warning: Failed to copy to clipboard. Writing to file instead...")
        path = FileSink(root).write(document)
        click.echo(f"Bug report written to: {path}")
        sys.exit(1)

    path = FileSink(root).write(document)
    click.echo(f"Bug report written to: {path}")


if __name__ == "__main__":
    main()
