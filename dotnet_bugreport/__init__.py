"""dotnet-bugreport: collect .NET environment diagnostics into one Markdown report."""

__version__ = "0.1.0"
