"""
AndroidManifest.xml editor.

Loads a manifest into memory, exposes chainable accessors for the fields the
platform manages, and writes the whole document back on an explicit call.
"""

from __future__ import annotations

import xml.etree.ElementTree as ET
from pathlib import Path

from ..core.exceptions import ManifestError
from ..core.logging import get_logger
from .xmlutil import write_document

logger = get_logger(__name__)

ANDROID_NS = "http://schemas.android.com/apk/res/android"
TOOLS_NS = "http://schemas.android.com/tools"

ET.register_namespace("android", ANDROID_NS)
ET.register_namespace("tools", TOOLS_NS)


def _android(attr: str) -> str:
    return f"{{{ANDROID_NS}}}{attr}"


def _set_or_remove(elem: ET.Element, key: str, value: object | None) -> None:
    if value is None or value == "":
        elem.attrib.pop(key, None)
    else:
        elem.set(key, str(value))


def _as_int(value: str | None) -> int | None:
    if value is None:
        return None
    try:
        return int(value)
    except ValueError:
        return None


class ManifestActivity:
    """Accessor for the launch activity element of a manifest."""

    def __init__(self, element: ET.Element) -> None:
        self._element = element

    def get_name(self) -> str | None:
        return self._element.get(_android("name"))

    def set_name(self, value: str | None) -> ManifestActivity:
        _set_or_remove(self._element, _android("name"), value)
        return self

    def get_orientation(self) -> str | None:
        return self._element.get(_android("screenOrientation"))

    def set_orientation(self, value: str | None) -> ManifestActivity:
        # "default" means the platform decides, so the attribute goes away
        if value == "default":
            value = None
        _set_or_remove(self._element, _android("screenOrientation"), value)
        return self

    def get_launch_mode(self) -> str | None:
        return self._element.get(_android("launchMode"))

    def set_launch_mode(self, value: str | None) -> ManifestActivity:
        _set_or_remove(self._element, _android("launchMode"), value)
        return self


class AndroidManifest:
    """In-memory AndroidManifest.xml.

    Mutators return ``self`` so calls can be chained; nothing reaches the disk
    until ``write`` is called.
    """

    def __init__(self, path: Path | str) -> None:
        """Load a manifest.

        Args:
            path: Path to AndroidManifest.xml.

        Raises:
            ManifestError: If the file cannot be parsed or its root node is
                not ``manifest``.
        """
        self.path = Path(path)
        try:
            self.doc = ET.parse(self.path)
        except ET.ParseError as e:
            raise ManifestError(
                message="Cannot parse AndroidManifest", manifest_path=str(self.path), cause=e
            ) from e
        if self.root.tag != "manifest":
            raise ManifestError(
                message='AndroidManifest has incorrect root node name (expected "manifest")',
                manifest_path=str(self.path),
            )

    @property
    def root(self) -> ET.Element:
        return self.doc.getroot()

    # -- Identity ----------------------------------------------------------

    def get_package_id(self) -> str | None:
        return self.root.get("package")

    def set_package_id(self, package_id: str) -> AndroidManifest:
        self.root.set("package", package_id)
        return self

    def get_version_name(self) -> str | None:
        return self.root.get(_android("versionName"))

    def set_version_name(self, version: str) -> AndroidManifest:
        self.root.set(_android("versionName"), version)
        return self

    def get_version_code(self) -> str | None:
        return self.root.get(_android("versionCode"))

    def set_version_code(self, version_code: str | int) -> AndroidManifest:
        self.root.set(_android("versionCode"), str(version_code))
        return self

    # -- Application -------------------------------------------------------

    def _application(self) -> ET.Element:
        application = self.root.find("application")
        if application is None:
            raise ManifestError(message="Manifest has no <application>", manifest_path=str(self.path))
        return application

    def get_activity(self) -> ManifestActivity:
        """Return the first activity of the application."""
        activity = self.root.find("./application/activity")
        if activity is None:
            raise ManifestError(message="Manifest has no <activity>", manifest_path=str(self.path))
        return ManifestActivity(activity)

    def get_debuggable(self) -> bool:
        return self._application().get(_android("debuggable")) == "true"

    def set_debuggable(self, value: bool) -> AndroidManifest:
        # Leaving the attribute out lets gradle decide per build type
        _set_or_remove(self._application(), _android("debuggable"), "true" if value else None)
        return self

    # -- SDK versions ------------------------------------------------------

    def _uses_sdk(self, create: bool = False) -> ET.Element | None:
        uses_sdk = self.root.find("uses-sdk")
        if uses_sdk is None and create:
            uses_sdk = ET.SubElement(self.root, "uses-sdk")
        return uses_sdk

    def _get_sdk(self, attr: str) -> int | None:
        uses_sdk = self._uses_sdk()
        if uses_sdk is None:
            return None
        return _as_int(uses_sdk.get(_android(attr)))

    def _set_sdk(self, attr: str, value: int | str | None) -> AndroidManifest:
        uses_sdk = self._uses_sdk(create=value is not None)
        if uses_sdk is not None:
            _set_or_remove(uses_sdk, _android(attr), value)
        return self

    def get_min_sdk_version(self) -> int | None:
        return self._get_sdk("minSdkVersion")

    def set_min_sdk_version(self, value: int | str | None) -> AndroidManifest:
        return self._set_sdk("minSdkVersion", value)

    def get_target_sdk_version(self) -> int | None:
        return self._get_sdk("targetSdkVersion")

    def set_target_sdk_version(self, value: int | str | None) -> AndroidManifest:
        return self._set_sdk("targetSdkVersion", value)

    def get_max_sdk_version(self) -> int | None:
        return self._get_sdk("maxSdkVersion")

    def set_max_sdk_version(self, value: int | str | None) -> AndroidManifest:
        return self._set_sdk("maxSdkVersion", value)

    # -- Persistence -------------------------------------------------------

    def write(self, dest_path: Path | str | None = None) -> Path:
        """Serialize the whole document.

        The file is written to a temporary sibling and moved into place, so a
        reader never observes a half-written manifest.

        Args:
            dest_path: Destination; defaults to the path the manifest was
                loaded from.

        Returns:
            The path written.
        """
        target = Path(dest_path) if dest_path else self.path
        target.parent.mkdir(parents=True, exist_ok=True)
        write_document(self.doc, target)
        logger.debug("Wrote AndroidManifest", path=str(target))
        return target
