"""
Prepare: sync the app's web assets and configuration into the platform project.
"""

from __future__ import annotations

import shutil
import xml.etree.ElementTree as ET

from ..core.exceptions import CordovaError
from ..core.logging import PlatformEvents
from ..models.build import PrepareOptions
from ..models.project import AppProject, ProjectConfig, ProjectLocations
from .manifest import AndroidManifest
from .xmlutil import write_document

# config.xml preference -> manifest uses-sdk setter
_SDK_PREFERENCES = {
    "android-minSdkVersion": "set_min_sdk_version",
    "android-targetSdkVersion": "set_target_sdk_version",
    "android-maxSdkVersion": "set_max_sdk_version",
}


def update_www(project: AppProject, locations: ProjectLocations, events: PlatformEvents) -> None:
    """Replace the platform www with the app's, then overlay platform_www."""
    if not project.www.is_dir():
        raise CordovaError(message=f"App www directory not found: {project.www}")
    if locations.www.exists():
        shutil.rmtree(locations.www)
    events.verbose(f"Copying {project.www} to {locations.www}")
    shutil.copytree(project.www, locations.www)
    if locations.platform_www.is_dir():
        shutil.copytree(locations.platform_www, locations.www, dirs_exist_ok=True)


def clean_www(locations: ProjectLocations, events: PlatformEvents) -> None:
    """Drop prepared web assets and restore the default platform config.xml.

    Platform-owned files from platform_www are put back so the project stays
    buildable.
    """
    events.verbose(f"Removing {locations.www}")
    if locations.www.exists():
        shutil.rmtree(locations.www)
    if locations.platform_www.is_dir():
        shutil.copytree(locations.platform_www, locations.www)
    if locations.default_config_xml.exists():
        shutil.copyfile(locations.default_config_xml, locations.config_xml)


def update_strings(config: ProjectConfig, locations: ProjectLocations) -> None:
    doc = ET.parse(locations.strings)
    names = {
        "app_name": config.name.replace("'", "\\'"),
        "launcher_name": "@string/app_name",
        "activity_name": "@string/launcher_name",
    }
    root = doc.getroot()
    for name, value in names.items():
        elem = root.find(f"string[@name='{name}']")
        if elem is None:
            elem = ET.SubElement(root, "string", {"name": name})
        elem.text = value
    write_document(doc, locations.strings)


def update_manifest(config: ProjectConfig, locations: ProjectLocations) -> AndroidManifest:
    manifest = AndroidManifest(locations.manifest)
    manifest.set_version_name(config.version).set_version_code(config.version_code())
    manifest.set_package_id(config.package_name)

    for preference, setter in _SDK_PREFERENCES.items():
        value = config.get_preference(preference)
        if value:
            try:
                level = int(value)
            except ValueError as e:
                raise CordovaError(
                    message=f"Preference {preference} must be an API level number, got \"{value}\"",
                    context={"preference": preference},
                    cause=e,
                ) from e
            getattr(manifest, setter)(level)

    activity = manifest.get_activity()
    orientation = config.get_preference("Orientation")
    if orientation:
        activity.set_orientation(orientation.lower())
    activity.set_launch_mode(config.get_preference("AndroidLaunchMode", "singleTop"))
    if config.activity_name:
        activity.set_name(config.activity_name)

    manifest.write()
    return manifest


async def prepare(
    project: AppProject,
    locations: ProjectLocations,
    options: PrepareOptions | None = None,
    events: PlatformEvents | None = None,
) -> ProjectConfig:
    """Sync an app into the platform project.

    Args:
        project: The app being packaged.
        locations: Locations of the platform project.
        options: Prepare options.
        events: Event sink for progress output.

    Returns:
        The configuration parsed from the app's config.xml.

    Raises:
        CordovaError: If the app has no config.xml or www directory, or an SDK
            version preference is not a number.
    """
    options = options or PrepareOptions()
    events = events or PlatformEvents()
    if not project.config_xml.exists():
        raise CordovaError(message=f"config.xml not found: {project.config_xml}")

    config = ProjectConfig.from_config_xml(project.config_xml)
    if not options.skip_www:
        update_www(project, locations, events)

    locations.config_xml.parent.mkdir(parents=True, exist_ok=True)
    shutil.copyfile(project.config_xml, locations.config_xml)
    update_strings(config, locations)
    update_manifest(config, locations)

    events.verbose("Prepared android project", package=config.package_name, version=config.version)
    return config
