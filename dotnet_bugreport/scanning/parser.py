"""Parser for MSBuild project files (.csproj)."""

from __future__ import annotations

import xml.etree.ElementTree as ET
from pathlib import Path

from dotnet_bugreport.exceptions import ParseError
from dotnet_bugreport.models import PackageReference, ProjectDescriptor

VERSION_PLACEHOLDER = "N/A"


def _namespace(root: ET.Element) -> str:
    """Return the ``{uri}`` prefix of the root tag, or "" for no namespace."""
    if root.tag.startswith("{"):
        return root.tag[: root.tag.index("}") + 1]
    return ""


def _value(element: ET.Element) -> str:
    return "".join(element.itertext())


class ProjectFileParser:
    """Extract target frameworks and package references from a ``.csproj``."""

    def parse(self, path: str | Path) -> ProjectDescriptor:
        path = Path(path)
        try:
            root = ET.parse(path).getroot()
        except (ET.ParseError, OSError, ValueError) as exc:
            raise ParseError(path, str(exc)) from exc

        ns = _namespace(root)
        return ProjectDescriptor(
            file_path=path.resolve(),
            target_frameworks=self._target_frameworks(root, ns),
            package_references=self._package_references(root, ns),
        )

    @staticmethod
    def _target_frameworks(root: ET.Element, ns: str) -> list[str]:
        frameworks: list[str] = []
        for el in root.iter(f"{ns}TargetFrameworks"):
            frameworks.extend(
                part.strip() for part in _value(el).split(";") if part.strip()
            )
        if frameworks:
            return frameworks

        single = next(root.iter(f"{ns}TargetFramework"), None)
        if single is not None:
            value = _value(single).strip()
            if value:
                return [value]
        return []

    @staticmethod
    def _package_references(root: ET.Element, ns: str) -> list[PackageReference]:
        refs: list[PackageReference] = []
        for el in root.iter(f"{ns}PackageReference"):
            name = el.get("Include")
            if name is None or not name.strip():
                continue

            # Attribute, then namespaced child, then bare child
            version = el.get("Version")
            if version is None:
                for tag in (f"{ns}Version", "Version"):
                    child = el.find(tag)
                    if child is not None:
                        version = _value(child)
                        break
            refs.append(
                PackageReference(
                    name=name,
                    version=version if version is not None else VERSION_PLACEHOLDER,
                )
            )
        refs.sort(key=lambda r: r.name)
        return refs
