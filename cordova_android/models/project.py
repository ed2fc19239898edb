"""
Project-level data models.

Describes the application being packaged (ProjectConfig) and where each
logical resource of a generated Android project lives on disk
(ProjectLocations), for both the legacy flat layout and the nested
Android Studio layout.
"""

from __future__ import annotations

import re
import xml.etree.ElementTree as ET
from enum import Enum
from pathlib import Path

from pydantic import BaseModel, ConfigDict, Field

from ..core.exceptions import ValidationError

DEFAULT_PACKAGE_NAME = "my.cordova.project"
DEFAULT_PROJECT_NAME = "CordovaExample"
DEFAULT_ACTIVITY_NAME = "MainActivity"

WIDGETS_NS = "http://www.w3.org/ns/widgets"

PACKAGE_NAME_RE = re.compile(r"^[a-zA-Z][a-zA-Z0-9_]+(\.[a-zA-Z][a-zA-Z0-9_]*)+$")
RESERVED_CLASS_RE = re.compile(r"\bclass\b", re.IGNORECASE)

# Marker probed to tell the two layouts apart
STUDIO_MARKER = Path("app") / "src" / "main" / "AndroidManifest.xml"


def validate_package_name(package_name: str) -> None:
    """Check that a package name is usable as an Android application id.

    Args:
        package_name: Reverse-DNS package identifier.

    Raises:
        ValidationError: If the name does not look like a Java package or
            contains the reserved word ``class``.
    """
    msg = "Error validating package name. "
    if not PACKAGE_NAME_RE.match(package_name):
        raise ValidationError(
            message=msg + "Package name must look like: com.company.Name",
            field_name="package_name",
            actual_value=package_name,
        )

    if RESERVED_CLASS_RE.search(package_name):
        raise ValidationError(
            message=msg + '"class" is a reserved word',
            field_name="package_name",
            actual_value=package_name,
        )


def validate_project_name(project_name: str) -> None:
    """Check that a project name is usable as an Android class name.

    Args:
        project_name: Sanitized display name.

    Raises:
        ValidationError: If the name is empty, is ``CordovaActivity`` or
            begins with a digit.
    """
    msg = "Error validating project name. "
    if project_name == "":
        raise ValidationError(
            message=msg + "Project name cannot be empty",
            field_name="project_name",
            actual_value=project_name,
        )

    if project_name == "CordovaActivity":
        raise ValidationError(
            message=msg + "Project name cannot be CordovaActivity",
            field_name="project_name",
            actual_value=project_name,
        )

    # Java classes don't begin with numbers
    if re.match(r"^[0-9]", project_name):
        raise ValidationError(
            message=msg + "Project name must not begin with a number",
            field_name="project_name",
            actual_value=project_name,
        )


def sanitize_project_name(name: str) -> str:
    """Replace every character that is not a word character or dot with ``_``."""
    return re.sub(r"[^\w.]", "_", name)


class ProjectConfig(BaseModel):
    """Logical description of the app to scaffold.

    Created once from external configuration (usually the app's config.xml)
    and never mutated; a fresh instance is supplied on update.
    """

    model_config = ConfigDict(frozen=True)

    package_name: str = Field(default=DEFAULT_PACKAGE_NAME, description="Reverse-DNS package id")
    name: str = Field(default=DEFAULT_PROJECT_NAME, description="Display name of the app")
    activity_name: str | None = Field(default=None, description="Launch activity class name")
    target_api: str | None = Field(
        default=None, description="Android target such as 'android-25'; discovered when unset"
    )
    version: str = Field(default="1.0.0", description="User-facing version (versionName)")
    android_version_code: str | None = Field(default=None, description="Explicit versionCode")
    preferences: dict[str, str] = Field(default_factory=dict, description="Global preferences")

    @property
    def safe_name(self) -> str:
        """Display name reduced to characters valid in a Java identifier."""
        return sanitize_project_name(self.name) if self.name else DEFAULT_PROJECT_NAME

    def get_preference(self, name: str, default: str | None = None) -> str | None:
        """Look up a preference case-insensitively, as config.xml does."""
        lowered = name.lower()
        for key, value in self.preferences.items():
            if key.lower() == lowered:
                return value
        return default

    def version_code(self) -> str:
        """Return the Android versionCode, derived from the version if not explicit.

        ``1.2.3`` becomes ``10203``, matching the legacy cordova derivation.
        """
        if self.android_version_code:
            return self.android_version_code
        parts = [int(p) if p.isdigit() else 0 for p in self.version.split("-")[0].split(".")[:3]]
        while len(parts) < 3:
            parts.append(0)
        return str(parts[0] * 10000 + parts[1] * 100 + parts[2])

    @classmethod
    def from_config_xml(cls, path: Path) -> ProjectConfig:
        """Build a config from a widget-style config.xml.

        Android-specific ``<platform name="android">`` preferences override the
        global ones.

        Args:
            path: Path to the app's config.xml.

        Returns:
            The parsed project configuration.
        """
        root = ET.parse(path).getroot()

        def _find(elem: ET.Element, tag: str) -> list[ET.Element]:
            return elem.findall(tag) + elem.findall(f"{{{WIDGETS_NS}}}{tag}")

        name_elems = _find(root, "name")
        name = (name_elems[0].text or "").strip() if name_elems else DEFAULT_PROJECT_NAME

        preferences: dict[str, str] = {}
        for pref in _find(root, "preference"):
            if pref.get("name"):
                preferences[pref.get("name", "")] = pref.get("value", "")
        for platform in _find(root, "platform"):
            if platform.get("name") != "android":
                continue
            for pref in _find(platform, "preference"):
                if pref.get("name"):
                    preferences[pref.get("name", "")] = pref.get("value", "")

        return cls(
            package_name=root.get("android-packageName") or root.get("id") or DEFAULT_PACKAGE_NAME,
            name=name,
            activity_name=root.get("android-activityName"),
            version=root.get("version", "1.0.0"),
            android_version_code=root.get("android-versionCode"),
            preferences=preferences,
        )


class ProjectLayout(str, Enum):
    """On-disk layout of a generated Android project."""

    LEGACY = "legacy"
    STUDIO = "studio"


def detect_layout(root: Path) -> ProjectLayout:
    """Probe a project root for the Android Studio marker file.

    Args:
        root: Project root directory.

    Returns:
        STUDIO when ``app/src/main/AndroidManifest.xml`` exists and there is no
        root-level manifest, LEGACY otherwise.
    """
    if (root / STUDIO_MARKER).exists() and not (root / "AndroidManifest.xml").exists():
        return ProjectLayout.STUDIO
    return ProjectLayout.LEGACY


class ProjectLocations(BaseModel):
    """Absolute paths of every logical resource of a platform project."""

    layout: ProjectLayout
    root: Path
    www: Path
    res: Path
    platform_www: Path
    config_xml: Path
    default_config_xml: Path
    strings: Path
    manifest: Path
    build: Path
    java_src: Path
    libs: Path
    # Relative to the platform package, not to the project
    cordova_js: str = "templates/project/assets/www/cordova.js"
    cordova_js_src: str = "cordova-js-src"

    @classmethod
    def for_root(cls, root: Path, layout: ProjectLayout | None = None) -> ProjectLocations:
        """Compute the locations for a project root.

        Args:
            root: Project root directory.
            layout: Layout to use; probed from the directory when omitted.

        Returns:
            Locations derived from root and layout.
        """
        root = Path(root).resolve()
        layout = layout or detect_layout(root)
        base = root / "app" / "src" / "main" if layout is ProjectLayout.STUDIO else root
        return cls(
            layout=layout,
            root=root,
            www=base / "assets" / "www",
            res=base / "res",
            platform_www=root / "platform_www",
            config_xml=base / "res" / "xml" / "config.xml",
            default_config_xml=root / "cordova" / "defaults.xml",
            strings=base / "res" / "values" / "strings.xml",
            manifest=base / "AndroidManifest.xml",
            build=root / "app" / "build" if layout is ProjectLayout.STUDIO else root / "build",
            java_src=base / "java" if layout is ProjectLayout.STUDIO else root / "src",
            libs=root / "app" / "libs" if layout is ProjectLayout.STUDIO else root / "libs",
        )

    @property
    def is_studio(self) -> bool:
        return self.layout is ProjectLayout.STUDIO


class AppProject(BaseModel):
    """The cross-platform app a platform project is prepared from."""

    root: Path
    www: Path
    config_xml: Path

    @classmethod
    def from_root(cls, root: Path) -> AppProject:
        """App with the conventional ``www/`` and ``config.xml`` below ``root``."""
        root = Path(root).resolve()
        return cls(root=root, www=root / "www", config_xml=root / "config.xml")


class PlatformInfo(BaseModel):
    """Read-only description of a platform project."""

    locations: ProjectLocations
    root: Path
    name: str
    version: str
    project_config: ProjectConfig | None = None
