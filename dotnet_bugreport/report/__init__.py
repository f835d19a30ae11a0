"""Report assembly — ordered Markdown blocks describing the environment."""

from dotnet_bugreport.report.assembler import ReportAssembler

__all__ = ["ReportAssembler"]
