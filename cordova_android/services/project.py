"""
Android project model backed by ``project.properties``.

``project.properties`` is the list of library references, gradle includes and
system libraries the gradle builder turns into ``settings.gradle`` and
``build.gradle`` content. Plugins with frameworks add entries here.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from pathlib import Path

import aiofiles

from ..models.project import ProjectLocations
from .manifest import AndroidManifest

LIBRARY_REFERENCE = "android.library.reference"
GRADLE_INCLUDE = "cordova.gradle.include"
SYSTEM_LIBRARY = "cordova.system.library"

_LIBRARY_REFERENCE_RE = re.compile(r"^\s*android\.library\.reference\.\d+=(.*?)\s*$", re.MULTILINE)


def extract_sub_project_paths(data: str) -> list[str]:
    """Return the distinct library references of a properties text, in order."""
    seen: dict[str, None] = {}
    for match in _LIBRARY_REFERENCE_RE.finditer(data):
        seen.setdefault(match.group(1), None)
    return list(seen)


def _numbered_values(data: str, prefix: str) -> list[str]:
    pattern = re.compile(rf"^\s*{re.escape(prefix)}\.(\d+)=(.*?)\s*$", re.MULTILINE)
    values = sorted(((int(m.group(1)), m.group(2)) for m in pattern.finditer(data)))
    return [v for _, v in values]


def replace_numbered_values(data: str, prefix: str, values: list[str]) -> str:
    """Rewrite every ``<prefix>.N=`` line with a freshly numbered list.

    Args:
        data: Properties text.
        prefix: Key prefix without the trailing index.
        values: Values to write, numbered from 1.

    Returns:
        The updated properties text, always newline-terminated.
    """
    pattern = re.compile(rf"^\s*{re.escape(prefix)}\.\d+=.*(?:\n|$)", re.MULTILINE)
    data = pattern.sub("", data)
    if data and not data.endswith("\n"):
        data += "\n"
    for i, value in enumerate(values, start=1):
        data += f"{prefix}.{i}={value}\n"
    return data


@dataclass
class ProjectProperties:
    """Parsed content of ``project.properties``."""

    target: str | None = None
    libs: list[str] = field(default_factory=list)
    gradle_includes: list[str] = field(default_factory=list)
    system_libs: list[str] = field(default_factory=list)

    @classmethod
    def parse(cls, data: str) -> ProjectProperties:
        target = re.search(r"^target=(.*?)\s*$", data, re.MULTILINE)
        return cls(
            target=target.group(1) if target else None,
            libs=_numbered_values(data, LIBRARY_REFERENCE),
            gradle_includes=_numbered_values(data, GRADLE_INCLUDE),
            system_libs=_numbered_values(data, SYSTEM_LIBRARY),
        )


class AndroidProject:
    """View of a generated project used by plugin installation and builders."""

    def __init__(self, locations: ProjectLocations) -> None:
        self.locations = locations
        self.root = locations.root
        self.properties_path = self.root / "project.properties"

    def get_package_name(self) -> str | None:
        """Package id declared in the project manifest."""
        return AndroidManifest(self.locations.manifest).get_package_id()

    def custom_sub_project_dir(self, plugin_id: str, src: str) -> str:
        """Project-relative directory a plugin's custom framework is copied to.

        Custom sub-projects are prefixed with the last segment of the package
        id so that sub-projects of different apps never share a name.
        """
        package = self.get_package_name() or ""
        prefix = package.rsplit(".", 1)[-1]
        return f"{plugin_id}/{prefix}-{Path(src).name}"

    def is_clean(self) -> bool:
        """A project is clean when it has no build output directory."""
        return not self.locations.build.exists()

    def read_properties(self) -> ProjectProperties:
        if not self.properties_path.exists():
            return ProjectProperties()
        return ProjectProperties.parse(self.properties_path.read_text(encoding="utf-8"))

    async def _update_list(self, prefix: str, value: str, add: bool) -> bool:
        data = ""
        if self.properties_path.exists():
            async with aiofiles.open(self.properties_path, "r", encoding="utf-8") as f:
                data = await f.read()

        values = _numbered_values(data, prefix)
        if add:
            if value in values:
                return False
            values.append(value)
        else:
            if value not in values:
                return False
            values = [v for v in values if v != value]

        async with aiofiles.open(self.properties_path, "w", encoding="utf-8") as f:
            await f.write(replace_numbered_values(data, prefix, values))
        return True

    async def add_sub_project(self, sub_dir: str) -> bool:
        return await self._update_list(LIBRARY_REFERENCE, _posix(sub_dir), add=True)

    async def remove_sub_project(self, sub_dir: str) -> bool:
        return await self._update_list(LIBRARY_REFERENCE, _posix(sub_dir), add=False)

    async def add_gradle_reference(self, include_path: str) -> bool:
        return await self._update_list(GRADLE_INCLUDE, _posix(include_path), add=True)

    async def remove_gradle_reference(self, include_path: str) -> bool:
        return await self._update_list(GRADLE_INCLUDE, _posix(include_path), add=False)

    async def add_system_library(self, library: str) -> bool:
        return await self._update_list(SYSTEM_LIBRARY, library, add=True)

    async def remove_system_library(self, library: str) -> bool:
        return await self._update_list(SYSTEM_LIBRARY, library, add=False)


def _posix(value: str) -> str:
    return Path(value).as_posix()
