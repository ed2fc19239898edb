"""
Plugin data models.

A PluginInfo is the android view of a plugin's ``plugin.xml``: the native
files it ships, the frameworks it depends on, and the XML it merges into
project configuration files.
"""

from __future__ import annotations

import copy
import xml.etree.ElementTree as ET
from pathlib import Path

from pydantic import BaseModel, Field

from .. import PLATFORM
from ..core.exceptions import PluginError


class SourceFile(BaseModel):
    """A Java/Kotlin source file copied into the project's source tree."""

    src: str
    target_dir: str = Field(default="", description="Directory below the java source root")


class ResourceFile(BaseModel):
    """A file copied verbatim to a path relative to the resource base."""

    src: str
    target: str


class LibFile(BaseModel):
    """A prebuilt library (.jar/.aar/.so) dropped into ``libs``."""

    src: str
    arch: str | None = None


class Framework(BaseModel):
    """A native build-system dependency declared by a plugin."""

    src: str
    custom: bool = Field(default=False, description="Sub-project shipped inside the plugin")
    type: str | None = Field(default=None, description="'gradleReference' for gradle includes")
    parent: str | None = None


class ConfigFileChange(BaseModel):
    """XML fragments merged under ``parent`` of a project configuration file."""

    target: str
    parent: str
    xmls: list[str] = Field(default_factory=list, description="Serialized child elements")


class AssetFile(BaseModel):
    """A web asset installed into the project's www directory."""

    src: str
    target: str


class GraftedFragment(BaseModel):
    """An XML fragment a plugin added to a project configuration file."""

    target: str
    parent: str
    xml: str


class ConfigMunges(BaseModel):
    """Per-plugin record of grafted XML, kept in the platform json file.

    A fragment is pruned on uninstall only when the plugin being removed is
    the last one recording it. Fragments that were already present before a
    plugin was installed are never recorded, so they survive its removal.
    """

    plugins: dict[str, list[GraftedFragment]] = Field(default_factory=dict)


class PluginInfo(BaseModel):
    """Android-relevant content of a plugin."""

    id: str
    version: str = "0.0.0"
    name: str = ""
    dir: Path
    preferences: dict[str, str | None] = Field(
        default_factory=dict, description="Install variables and their defaults"
    )
    source_files: list[SourceFile] = Field(default_factory=list)
    resource_files: list[ResourceFile] = Field(default_factory=list)
    lib_files: list[LibFile] = Field(default_factory=list)
    frameworks: list[Framework] = Field(default_factory=list)
    config_files: list[ConfigFileChange] = Field(default_factory=list)
    assets: list[AssetFile] = Field(default_factory=list)

    def get_frameworks(self, platform: str = PLATFORM) -> list[Framework]:
        """Frameworks declared for a platform (only android is tracked)."""
        return list(self.frameworks) if platform == PLATFORM else []

    @classmethod
    def from_directory(cls, plugin_dir: Path) -> PluginInfo:
        """Parse ``plugin.xml`` in a plugin directory.

        Args:
            plugin_dir: Directory containing plugin.xml.

        Returns:
            The android view of the plugin.

        Raises:
            PluginError: If plugin.xml is missing, malformed, or has no id.
        """
        plugin_dir = Path(plugin_dir).resolve()
        plugin_xml = plugin_dir / "plugin.xml"
        if not plugin_xml.exists():
            raise PluginError(message=f"plugin.xml not found in {plugin_dir}")
        try:
            root = ET.parse(plugin_xml).getroot()
        except ET.ParseError as e:
            raise PluginError(message=f"Cannot parse {plugin_xml}", cause=e) from e

        root = _strip_namespace(root)
        plugin_id = root.get("id")
        if not plugin_id:
            raise PluginError(message=f"{plugin_xml} has no plugin id")

        name_elem = root.find("name")
        info = cls(
            id=plugin_id,
            version=root.get("version", "0.0.0"),
            name=(name_elem.text or "").strip() if name_elem is not None else "",
            dir=plugin_dir,
        )

        sections = [root] + [p for p in root.findall("platform") if p.get("name") == PLATFORM]
        for section in sections:
            for pref in section.findall("preference"):
                info.preferences[pref.get("name", "").upper()] = pref.get("default")
            for asset in section.findall("asset"):
                info.assets.append(AssetFile(src=asset.get("src", ""), target=asset.get("target", "")))

        for platform in sections[1:]:
            for elem in platform.findall("source-file"):
                info.source_files.append(
                    SourceFile(src=elem.get("src", ""), target_dir=elem.get("target-dir", ""))
                )
            for elem in platform.findall("resource-file"):
                info.resource_files.append(
                    ResourceFile(src=elem.get("src", ""), target=elem.get("target", ""))
                )
            for elem in platform.findall("lib-file"):
                info.lib_files.append(LibFile(src=elem.get("src", ""), arch=elem.get("arch")))
            for elem in platform.findall("framework"):
                info.frameworks.append(
                    Framework(
                        src=elem.get("src", ""),
                        custom=elem.get("custom", "false") == "true",
                        type=elem.get("type"),
                        parent=elem.get("parent"),
                    )
                )
            for tag in ("config-file", "edit-config"):
                for elem in platform.findall(tag):
                    info.config_files.append(
                        ConfigFileChange(
                            target=elem.get("target") or elem.get("file", ""),
                            parent=elem.get("parent", "/*"),
                            xmls=[_serialize(child) for child in elem],
                        )
                    )

        missing = [s.src for s in info.source_files if not (plugin_dir / s.src).exists()]
        if missing:
            raise PluginError(
                message=f"Source files listed in plugin.xml do not exist: {', '.join(missing)}",
                plugin_id=plugin_id,
            )
        return info


class PluginInstallOptions(BaseModel):
    """Options recognized by plugin installation."""

    link: bool = Field(default=False, description="Symlink plugin files instead of copying")
    variables: dict[str, str] = Field(
        default_factory=dict, description="Install variables substituted as $NAME"
    )
    android_studio: bool = Field(default=False, description="Project uses the nested layout")
    use_platform_www: bool = Field(
        default=False, description="Also install web assets into platform_www"
    )


class PluginUninstallOptions(BaseModel):
    """Options recognized by plugin removal."""

    variables: dict[str, str] = Field(
        default_factory=dict, description="Variables used at install time, to match merged XML"
    )
    android_studio: bool = Field(default=False, description="Project uses the nested layout")
    use_platform_www: bool = Field(
        default=False, description="Also remove web assets from platform_www"
    )


def _strip_namespace(elem: ET.Element) -> ET.Element:
    """Drop the plugin.xml default namespace from tags, keeping attribute namespaces."""
    for node in elem.iter():
        if isinstance(node.tag, str) and node.tag.startswith("{") and "cordova" in node.tag:
            node.tag = node.tag.split("}", 1)[1]
    return elem


def _serialize(child: ET.Element) -> str:
    clone = copy.deepcopy(child)
    clone.tail = None
    return ET.tostring(clone, encoding="unicode")
