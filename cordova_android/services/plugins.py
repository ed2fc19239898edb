"""
Plugin installation into a platform project.

PluginManager copies (or links) a plugin's native files into the project,
records its frameworks in ``project.properties``, merges its configuration
fragments into the manifest and config.xml, and installs its web assets.
Removal reverses every step so that no file of the plugin is left behind.

Every destination is derived from values in the plugin's ``plugin.xml`` and
must stay inside the project root. XML merged into configuration files is
recorded per plugin in the platform json file so that uninstalling a plugin
only prunes the fragments it actually added.
"""

from __future__ import annotations

import os
import shutil
import xml.etree.ElementTree as ET
from pathlib import Path

import aiofiles

from ..core.exceptions import PluginError
from ..core.logging import PlatformEvents
from ..models.plugin import (
    ConfigFileChange,
    ConfigMunges,
    Framework,
    GraftedFragment,
    PluginInfo,
    PluginInstallOptions,
    PluginUninstallOptions,
)
from ..models.project import ProjectLocations
from . import xmlutil
from .project import AndroidProject

MUNGE_FILE = "android.json"


def _install_path(src: Path, dest: Path, link: bool) -> None:
    if not src.exists():
        raise FileNotFoundError(f'"{src}" not found')
    _remove_path(dest)
    dest.parent.mkdir(parents=True, exist_ok=True)
    if link:
        dest.symlink_to(src.resolve(), target_is_directory=src.is_dir())
    elif src.is_dir():
        shutil.copytree(src, dest)
    else:
        shutil.copy2(src, dest)


def _remove_path(path: Path) -> None:
    if path.is_symlink() or path.is_file():
        path.unlink()
    elif path.is_dir():
        shutil.rmtree(path)


def _remove_empty_parents(path: Path, stop: Path) -> None:
    """Delete now-empty directories from ``path`` upward, stopping below ``stop``."""
    current = path
    while current != stop and stop in current.parents:
        if not current.is_dir() or any(current.iterdir()):
            return
        current.rmdir()
        current = current.parent


def _same_fragment(a: GraftedFragment, b: GraftedFragment) -> bool:
    if a.target != b.target or a.parent != b.parent:
        return False
    return xmlutil.elements_equal(ET.fromstring(a.xml), ET.fromstring(b.xml))


def _is_recorded(munges: ConfigMunges, fragment: GraftedFragment) -> bool:
    return any(_same_fragment(entry, fragment) for entries in munges.plugins.values() for entry in entries)


def _record(munges: ConfigMunges, plugin_id: str, fragment: GraftedFragment) -> None:
    entries = munges.plugins.setdefault(plugin_id, [])
    if not any(_same_fragment(entry, fragment) for entry in entries):
        entries.append(fragment)


class PluginManager:
    """Installs and uninstalls plugins for one project."""

    def __init__(self, locations: ProjectLocations, events: PlatformEvents) -> None:
        self.locations = locations
        self.root = locations.root
        self.events = events
        self.project = AndroidProject(locations)
        self.munge_file = self.root / MUNGE_FILE

    # -- Paths -------------------------------------------------------------

    @property
    def _resource_base(self) -> Path:
        # Plugin resource targets are relative to the directory holding res/
        return self.locations.res.parent

    def _confine(self, plugin: PluginInfo, path: Path) -> Path:
        """Normalize a destination and require it to lie below the project root.

        Raises:
            PluginError: If the path is the root itself or escapes it.
        """
        normalized = Path(os.path.normpath(path))
        real = normalized.parent.resolve() / normalized.name
        try:
            real.relative_to(self.root)
        except ValueError:
            real = self.root
        if real == self.root:
            raise PluginError(
                message=f"Install path is outside the project: {path}",
                plugin_id=plugin.id,
                context={"project": str(self.root)},
            )
        return normalized

    def _source_dest(self, src: str, target_dir: str) -> Path:
        rel = Path(target_dir)
        if rel.parts and rel.parts[0] == "src":
            rel = Path(*rel.parts[1:])
        return self.locations.java_src / rel / Path(src).name

    def _lib_dest(self, src: str, arch: str | None) -> Path:
        base = self.locations.libs / arch if arch else self.locations.libs
        return base / Path(src).name

    def _config_target(self, plugin: PluginInfo, target: str) -> Path:
        name = Path(target).name
        if name == "AndroidManifest.xml":
            return self.locations.manifest
        if name == "config.xml":
            return self.locations.config_xml
        return self._confine(plugin, self._resource_base / target)

    def _file_plan(self, plugin: PluginInfo, use_platform_www: bool) -> list[tuple[Path, Path, bool, Path]]:
        """(source, destination, linkable, prune stop) for every plain file of a plugin."""
        plan = []
        for source in plugin.source_files:
            dest = self._source_dest(source.src, source.target_dir)
            plan.append((plugin.dir / source.src, dest, True, self.locations.java_src))
        for resource in plugin.resource_files:
            dest = self._resource_base / resource.target
            plan.append((plugin.dir / resource.src, dest, True, self.locations.res))
        for lib in plugin.lib_files:
            plan.append((plugin.dir / lib.src, self._lib_dest(lib.src, lib.arch), True, self.locations.libs))
        for asset in plugin.assets:
            plan.append((plugin.dir / asset.src, self.locations.www / asset.target, False, self.root))
            if use_platform_www:
                plan.append((plugin.dir / asset.src, self.locations.platform_www / asset.target, False, self.root))
        return [(src, self._confine(plugin, dest), linkable, stop) for src, dest, linkable, stop in plan]

    def _framework_plan(
        self, plugin: PluginInfo, variables: dict[str, str]
    ) -> list[tuple[Framework, str, str | None]]:
        """(framework, substituted src, project-relative custom dir) per framework."""
        plan = []
        for framework in plugin.get_frameworks():
            src = xmlutil.substitute_variables(framework.src, variables)
            rel = None
            if framework.custom:
                rel = self.project.custom_sub_project_dir(plugin.id, src)
                self._confine(plugin, self.root / rel)
            plan.append((framework, src, rel))
        return plan

    # -- Variables ---------------------------------------------------------

    def _resolve_variables(self, plugin: PluginInfo, variables: dict[str, str], strict: bool) -> dict[str, str]:
        resolved = {name: default for name, default in plugin.preferences.items() if default is not None}
        resolved.update({name.upper(): value for name, value in variables.items()})
        missing = sorted(name for name in plugin.preferences if name not in resolved)
        if missing and strict:
            raise PluginError(
                message=f"Variable(s) missing: {', '.join(missing)}",
                plugin_id=plugin.id,
                context={"missing": missing},
            )
        return resolved

    # -- Install -----------------------------------------------------------

    async def add_plugin(self, plugin: PluginInfo, options: PluginInstallOptions | None = None) -> None:
        """Install a plugin's android content.

        Raises:
            PluginError: If required install variables are missing, a
                destination lies outside the project, or a config file
                target cannot be merged.
        """
        options = options or PluginInstallOptions()
        variables = self._resolve_variables(plugin, options.variables, strict=True)
        files = self._file_plan(plugin, options.use_platform_www)
        frameworks = self._framework_plan(plugin, variables)
        config_paths = [self._config_target(plugin, change.target) for change in plugin.config_files]
        self.events.log(f"Installing plugin {plugin.id}@{plugin.version}")

        for src, dest, linkable, _ in files:
            _install_path(src, dest, options.link and linkable)

        for framework, src, rel in frameworks:
            await self._install_framework(plugin, framework, src, rel, options.link)

        if plugin.config_files:
            munges = await self._load_munges()
            for change, path in zip(plugin.config_files, config_paths):
                self._graft(plugin, change, path, variables, munges)
            await self._save_munges(munges)

        self.events.verbose(f"Installed plugin {plugin.id}", plugin=plugin.id)

    async def _install_framework(
        self, plugin: PluginInfo, framework: Framework, src: str, rel: str | None, link: bool
    ) -> None:
        self.events.verbose(f"Installing framework {src}", plugin=plugin.id)
        if rel is not None:
            _install_path(plugin.dir / src, self.root / rel, link)
            if framework.type == "gradleReference":
                await self.project.add_gradle_reference(rel)
            else:
                await self.project.add_sub_project(rel)
        elif framework.type == "gradleReference":
            await self.project.add_gradle_reference(src)
        else:
            await self.project.add_system_library(src)

    # -- Uninstall ---------------------------------------------------------

    async def remove_plugin(self, plugin: PluginInfo, options: PluginUninstallOptions | None = None) -> None:
        """Remove everything ``add_plugin`` installed for a plugin.

        Raises:
            PluginError: If a destination lies outside the project.
        """
        options = options or PluginUninstallOptions()
        variables = self._resolve_variables(plugin, options.variables, strict=False)
        files = self._file_plan(plugin, options.use_platform_www)
        frameworks = self._framework_plan(plugin, variables)
        self.events.log(f"Uninstalling plugin {plugin.id}")

        for _, dest, _, stop in files:
            _remove_path(dest)
            _remove_empty_parents(dest.parent, stop)

        for framework, src, rel in frameworks:
            await self._uninstall_framework(framework, src, rel)

        munges = await self._load_munges()
        if plugin.id in munges.plugins:
            self._prune(plugin, munges)
            await self._save_munges(munges)

        self.events.verbose(f"Uninstalled plugin {plugin.id}", plugin=plugin.id)

    async def _uninstall_framework(self, framework: Framework, src: str, rel: str | None) -> None:
        if rel is not None:
            if framework.type == "gradleReference":
                await self.project.remove_gradle_reference(rel)
            else:
                await self.project.remove_sub_project(rel)
            _remove_path(self.root / rel)
            _remove_empty_parents((self.root / rel).parent, self.root)
        elif framework.type == "gradleReference":
            await self.project.remove_gradle_reference(src)
        else:
            await self.project.remove_system_library(src)

    # -- Config munging ----------------------------------------------------

    async def _load_munges(self) -> ConfigMunges:
        if not self.munge_file.exists():
            return ConfigMunges()
        async with aiofiles.open(self.munge_file, "r", encoding="utf-8") as f:
            return ConfigMunges.model_validate_json(await f.read())

    async def _save_munges(self, munges: ConfigMunges) -> None:
        if not munges.plugins:
            self.munge_file.unlink(missing_ok=True)
            return
        async with aiofiles.open(self.munge_file, "w", encoding="utf-8") as f:
            await f.write(munges.model_dump_json(indent=2))

    def _graft(
        self,
        plugin: PluginInfo,
        change: ConfigFileChange,
        path: Path,
        variables: dict[str, str],
        munges: ConfigMunges,
    ) -> None:
        if not path.exists():
            raise PluginError(message=f"Config file target does not exist: {change.target}", plugin_id=plugin.id)

        doc = ET.parse(path)
        root = doc.getroot()
        parent = xmlutil.resolve_parent(root, change.parent)
        if parent is None:
            raise PluginError(
                message=f'Unable to graft xml at selector "{change.parent}" in {change.target}',
                plugin_id=plugin.id,
            )

        namespace = xmlutil.namespace_of(root)
        changed = False
        for xml in change.xmls:
            fragment = xmlutil.parse_fragment(xml, variables, namespace)
            entry = GraftedFragment(
                target=change.target, parent=change.parent, xml=ET.tostring(fragment, encoding="unicode")
            )
            if xmlutil.graft(parent, fragment):
                changed = True
                _record(munges, plugin.id, entry)
            elif _is_recorded(munges, entry):
                # Shared with another plugin; the last one out prunes it
                _record(munges, plugin.id, entry)

        if changed:
            xmlutil.write_document(doc, path)
            self.events.verbose(f"Updated {path.name}", plugin=plugin.id, parent=change.parent)

    def _prune(self, plugin: PluginInfo, munges: ConfigMunges) -> None:
        entries = munges.plugins.pop(plugin.id)
        by_target: dict[str, list[GraftedFragment]] = {}
        for entry in entries:
            if not _is_recorded(munges, entry):
                by_target.setdefault(entry.target, []).append(entry)

        for target, fragments in by_target.items():
            path = self._config_target(plugin, target)
            if not path.exists():
                continue
            doc = ET.parse(path)
            root = doc.getroot()
            changed = False
            for entry in fragments:
                parent = xmlutil.resolve_parent(root, entry.parent)
                if parent is not None:
                    changed |= xmlutil.prune(parent, ET.fromstring(entry.xml))
            if changed:
                xmlutil.write_document(doc, path)
                self.events.verbose(f"Updated {path.name}", plugin=plugin.id)
