"""
Project scaffolding.

``create`` generates a new Android project from the bundled templates;
``update`` refreshes the platform-owned parts of an existing one (scripts,
CordovaLib, build rules) without touching the package id or user sources.
"""

from __future__ import annotations

import os
import re
import shutil
from pathlib import Path

import aiofiles

from .. import __version__
from ..core.config import TEMPLATES_DIR
from ..core.exceptions import CordovaError, ProjectExistsError
from ..core.logging import PlatformEvents
from ..models.build import CreateOptions, UpdateOptions
from ..models.project import (
    DEFAULT_ACTIVITY_NAME,
    ProjectConfig,
    ProjectLayout,
    ProjectLocations,
    validate_package_name,
    validate_project_name,
)
from . import check_reqs
from .builders import builder_kind_for, get_builder
from .manifest import AndroidManifest
from .project import LIBRARY_REFERENCE, extract_sub_project_paths, replace_numbered_values

MIN_SDK_VERSION = 16

PROJECT_TEMPLATE_DIR = TEMPLATES_DIR / "project"
FRAMEWORK_DIR = TEMPLATES_DIR / "framework"
SCRIPTS_DIR = TEMPLATES_DIR / "cordova"
CORDOVA_JS_SRC_DIR = TEMPLATES_DIR / "cordova-js-src"

# Library references that point at a previous copy of the shared framework
_STALE_FRAMEWORK_REFS = [
    re.compile(r"^CordovaLib$"),
    re.compile(r"[\\/]cordova-android[\\/]framework$"),
    re.compile(r"^(\.\.[\\/])+framework$"),
    re.compile(r"[\\/]cordova_android[\\/]templates[\\/]framework$"),
]

_FRAMEWORK_FILES = ["AndroidManifest.xml", "project.properties", "build.gradle", "cordova.gradle"]


def generate_done_message(action: str, link: bool = False) -> str:
    """Final log line of create/update."""
    msg = f"Android project {'updated ' if action == 'update' else 'created '}with cordova-android@{__version__}"
    if link:
        msg += " and has a linked CordovaLib"
    return msg


def copy_js_and_library(locations: ProjectLocations, link: bool, events: PlatformEvents) -> None:
    """Install cordova.js and the CordovaLib library project.

    cordova.js is kept in ``platform_www`` too, since ``www`` is replaced on
    every prepare. With ``link`` CordovaLib becomes a symlink to the bundled
    framework; otherwise its sources are copied in, replacing only ``src`` of
    an existing copy.
    """
    root = locations.root
    cordova_js = PROJECT_TEMPLATE_DIR / "assets" / "www" / "cordova.js"
    locations.www.mkdir(parents=True, exist_ok=True)
    shutil.copyfile(cordova_js, locations.www / "cordova.js")
    locations.platform_www.mkdir(parents=True, exist_ok=True)
    shutil.copyfile(cordova_js, locations.platform_www / "cordova.js")
    shutil.copytree(CORDOVA_JS_SRC_DIR, locations.platform_www / "cordova-js-src", dirs_exist_ok=True)

    for old_jar in sorted(locations.libs.glob("cordova-*.jar")):
        events.log(f"Deleting {old_jar}")
        old_jar.unlink()

    nested = root / "CordovaLib"
    was_symlink = nested.is_symlink()
    if was_symlink:
        nested.unlink()

    if link:
        if nested.exists():
            shutil.rmtree(nested)
        nested.symlink_to(os.path.relpath(FRAMEWORK_DIR, root), target_is_directory=True)
        return

    if not was_symlink and (nested / "src").exists():
        # Only src is replaced so IDE project files in CordovaLib survive
        shutil.rmtree(nested / "src")
    nested.mkdir(parents=True, exist_ok=True)
    for name in _FRAMEWORK_FILES:
        shutil.copyfile(FRAMEWORK_DIR / name, nested / name)
    shutil.copytree(FRAMEWORK_DIR / "src", nested / "src", dirs_exist_ok=True)


def copy_scripts(root: Path) -> None:
    """Replace the project's ``cordova`` scripts directory."""
    dest = root / "cordova"
    if dest.exists():
        shutil.rmtree(dest)
    shutil.copytree(SCRIPTS_DIR, dest)


def copy_build_rules(locations: ProjectLocations) -> None:
    """Install the gradle build file(s) for the project's layout."""
    if locations.is_studio:
        studio = PROJECT_TEMPLATE_DIR / "studio"
        shutil.copyfile(studio / "build.gradle", locations.root / "build.gradle")
        (locations.root / "app").mkdir(parents=True, exist_ok=True)
        shutil.copyfile(studio / "app" / "build.gradle", locations.root / "app" / "build.gradle")
    else:
        shutil.copyfile(PROJECT_TEMPLATE_DIR / "build.gradle", locations.root / "build.gradle")


async def write_project_properties(root: Path, target_api: str) -> None:
    """Write ``project.properties`` with CordovaLib as the first library reference.

    Starts from the existing file when there is one. References to older
    copies of the shared framework are dropped.
    """
    dest = root / "project.properties"
    src = dest if dest.exists() else PROJECT_TEMPLATE_DIR / "project.properties"
    async with aiofiles.open(src, "r", encoding="utf-8") as f:
        data = await f.read()

    data = re.sub(r"^target=.*", f"target={target_api}", data, count=1, flags=re.MULTILINE)
    sub_projects = [
        p for p in extract_sub_project_paths(data) if not any(r.search(p) for r in _STALE_FRAMEWORK_REFS)
    ]
    data = replace_numbered_values(data, LIBRARY_REFERENCE, ["CordovaLib", *sub_projects])

    async with aiofiles.open(dest, "w", encoding="utf-8") as f:
        await f.write(data)


async def _substitute(path: Path, replacements: dict[str, str]) -> None:
    async with aiofiles.open(path, "r", encoding="utf-8") as f:
        data = await f.read()
    for placeholder, value in replacements.items():
        data = data.replace(placeholder, value)
    async with aiofiles.open(path, "w", encoding="utf-8") as f:
        await f.write(data)


async def create(
    path: Path | str,
    config: ProjectConfig,
    options: CreateOptions | None = None,
    events: PlatformEvents | None = None,
) -> Path:
    """Create a new Android project.

    Names are validated and the destination is checked before anything is
    written, so a failed create leaves the filesystem untouched.

    Args:
        path: Destination directory; must not exist.
        config: Application description.
        options: Creation options.
        events: Event sink for progress output.

    Returns:
        The project directory.

    Raises:
        ValidationError: If the package or project name is invalid.
        ProjectExistsError: If the destination already exists.
        CordovaError: If the project template directory is missing.
    """
    options = options or CreateOptions()
    events = events or PlatformEvents()
    project_path = Path(path)

    package_name = config.package_name
    project_name = config.safe_name
    validate_package_name(package_name)
    validate_project_name(project_name)

    if project_path.exists():
        raise ProjectExistsError(
            message="Project already exists! Delete and recreate",
            field_name="destination",
            actual_value=str(project_path),
        )

    template_dir = Path(options.custom_template) if options.custom_template else PROJECT_TEMPLATE_DIR
    if not template_dir.is_dir():
        raise CordovaError(message=f"Project template not found: {template_dir}")

    activity_name = config.activity_name or options.activity_name or DEFAULT_ACTIVITY_NAME
    target_api = config.target_api or check_reqs.get_target()

    events.log("Creating Cordova project for the Android platform:")
    events.log(f"\tPath: {project_path}")
    events.log(f"\tPackage: {package_name}")
    events.log(f"\tName: {project_name}")
    events.log(f"\tActivity: {activity_name}")
    events.log(f"\tAndroid target: {target_api}")

    layout = ProjectLayout.STUDIO if options.android_studio else ProjectLayout.LEGACY
    locations = ProjectLocations.for_root(project_path, layout)
    root = locations.root
    events.verbose(f"Copying android template project to {root}")

    root.mkdir(parents=True)
    shutil.copytree(template_dir / "assets", locations.www.parent)
    shutil.copytree(template_dir / "res", locations.res)
    shutil.copyfile(template_dir / "gitignore", root / ".gitignore")
    locations.libs.mkdir(parents=True, exist_ok=True)

    copy_js_and_library(locations, options.link, events)

    activity_dir = locations.java_src.joinpath(*package_name.split("."))
    activity_dir.mkdir(parents=True, exist_ok=True)
    activity_path = activity_dir / f"{activity_name}.java"
    shutil.copyfile(template_dir / "Activity.java", activity_path)
    await _substitute(activity_path, {"__ACTIVITY__": activity_name, "__ID__": package_name})
    await _substitute(locations.strings, {"__NAME__": project_name})

    manifest = AndroidManifest(template_dir / "AndroidManifest.xml")
    manifest.set_package_id(package_name).set_target_sdk_version(check_reqs.target_api_level(target_api))
    manifest.get_activity().set_name(activity_name)
    manifest.write(locations.manifest)

    copy_scripts(root)
    copy_build_rules(locations)
    await write_project_properties(root, target_api)
    await get_builder(builder_kind_for(locations), locations, events).prep_build_files()

    events.log(generate_done_message("create", options.link))
    return project_path


async def update(
    path: Path | str,
    options: UpdateOptions | None = None,
    events: PlatformEvents | None = None,
) -> Path:
    """Refresh the platform-owned files of an existing project.

    Raises minSdkVersion to ``MIN_SDK_VERSION`` when lower and clears the
    debuggable flag. The package id and user Java sources are left alone.

    Raises:
        CordovaError: If the directory holds no Android project.
    """
    options = options or UpdateOptions()
    events = events or PlatformEvents()
    project_path = Path(path)
    locations = ProjectLocations.for_root(project_path)
    if not locations.manifest.exists():
        raise CordovaError(message=f"No Android project found at {project_path}")

    manifest = AndroidManifest(locations.manifest)
    min_sdk = manifest.get_min_sdk_version()
    if min_sdk is None or min_sdk < MIN_SDK_VERSION:
        events.verbose(f"Updating minSdkVersion to {MIN_SDK_VERSION} in AndroidManifest.xml")
        manifest.set_min_sdk_version(MIN_SDK_VERSION)
    manifest.set_debuggable(False).write()

    target_api = check_reqs.get_target()
    copy_js_and_library(locations, options.link, events)
    copy_scripts(locations.root)
    copy_build_rules(locations)
    await write_project_properties(locations.root, target_api)
    await get_builder(builder_kind_for(locations), locations, events).prep_build_files()

    events.log(generate_done_message("update", options.link))
    return project_path
