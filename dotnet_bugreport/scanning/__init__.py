"""Project scanning — size estimation, file discovery, and .csproj parsing."""

from dotnet_bugreport.scanning.discovery import find_descriptor_files, find_top_level_files
from dotnet_bugreport.scanning.estimator import ScanEstimator
from dotnet_bugreport.scanning.parser import ProjectFileParser

__all__ = [
    "ProjectFileParser",
    "ScanEstimator",
    "find_descriptor_files",
    "find_top_level_files",
]
