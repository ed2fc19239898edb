"""
Gradle build strategies.

A builder regenerates the gradle files derived from ``project.properties``
and drives gradle to build or clean the project. The strategy is picked from
the closed ``BuilderKind`` set: ``GradleBuilder`` for the legacy flat layout
where the project root is the application module, ``StudioBuilder`` for the
nested layout where the application module lives in ``app/``.
"""

from __future__ import annotations

import os
import re
import shutil
from abc import ABC, abstractmethod
from pathlib import Path

import aiofiles

from ..core.config import Config, get_config
from ..core.exceptions import CordovaError
from ..core.logging import PlatformEvents
from ..models.build import BuilderKind, BuildOptions, BuildResult, BuildType
from ..models.project import ProjectLocations
from . import check_reqs
from .manifest import AndroidManifest
from .process import run_command
from .project import AndroidProject

# Legacy SDK library paths and their maven equivalents
SYSTEM_LIBRARY_MAPPINGS: list[tuple[re.Pattern[str], str]] = [
    (re.compile(r"^/?extras/android/support/(.*)$"), r"com.android.support:support-\1:+"),
    (
        re.compile(r"^/?google/google_play_services/libproject/google-play-services_lib/?$"),
        "com.google.android.gms:play-services:+",
    ),
]

_DEPS_BLOCK_RE = re.compile(r"(SUB-PROJECT DEPENDENCIES START)[\s\S]*(// SUB-PROJECT DEPENDENCIES END)")
_EXTENSIONS_BLOCK_RE = re.compile(r"(PLUGIN GRADLE EXTENSIONS START)[\s\S]*(// PLUGIN GRADLE EXTENSIONS END)")


def system_library_to_maven(library: str) -> str:
    """Map a ``cordova.system.library`` entry to a maven coordinate.

    Raises:
        CordovaError: If the entry is neither a maven coordinate nor a known
            SDK library path.
    """
    # Already in gradle form if it has two ':'s
    if re.search(r":.*:", library):
        return library
    for pattern, replacement in SYSTEM_LIBRARY_MAPPINGS:
        if pattern.match(library):
            return pattern.sub(replacement, library)
    raise CordovaError(
        message=f"Unsupported system library (does not work with gradle): {library}",
        context={"library": library},
    )


class Builder(ABC):
    """Base class of the gradle build strategies."""

    kind: BuilderKind

    def __init__(
        self,
        locations: ProjectLocations,
        events: PlatformEvents,
        config: Config | None = None,
    ) -> None:
        self.locations = locations
        self.root = locations.root
        self.events = events
        self.config = config or get_config()

    @property
    @abstractmethod
    def module_dir(self) -> Path:
        """Directory of the application gradle module."""

    @abstractmethod
    def build_tasks(self, build_type: BuildType) -> list[str]:
        """Gradle tasks that assemble the given build type."""

    @abstractmethod
    def settings_header(self) -> str:
        """Leading include lines of settings.gradle."""

    @property
    def build_gradle_path(self) -> Path:
        return self.module_dir / "build.gradle"

    @property
    def output_dir(self) -> Path:
        return self.module_dir / "build" / "outputs" / "apk"

    def project_name(self) -> str:
        """Last segment of the manifest package id, used to prefix sub-projects.

        Raises:
            CordovaError: If the manifest declares no package.
        """
        package = AndroidManifest(self.locations.manifest).get_package_id()
        if not package:
            raise CordovaError(message=f"Could not find package name in {self.locations.manifest}")
        return package.rsplit(".", 1)[-1]

    # -- Build file generation --------------------------------------------

    async def prep_build_files(self) -> None:
        """Regenerate settings.gradle and the derived blocks of build.gradle."""
        properties = AndroidProject(self.locations).read_properties()
        sub_projects = properties.libs

        plugin_build_gradle = self.root / "cordova" / "lib" / "plugin-build.gradle"
        for sub_project in sub_projects:
            if sub_project == "CordovaLib":
                continue
            sub_gradle = self.root / sub_project / "build.gradle"
            if not sub_gradle.exists() and plugin_build_gradle.exists():
                sub_gradle.parent.mkdir(parents=True, exist_ok=True)
                shutil.copyfile(plugin_build_gradle, sub_gradle)

        name = self.project_name()
        settings = ["// GENERATED FILE - DO NOT EDIT\n", self.settings_header()]
        deps_list = ""
        for sub_project in sub_projects:
            real_dir = re.sub(r"[/\\]", ":", sub_project)
            lib_name = real_dir.replace(f"{name}-", "")
            settings.append(f'include ":{lib_name}"\n')
            if f"{name}-" in real_dir:
                settings.append(f'project(":{lib_name}").projectDir = new File("{sub_project}")\n')

            self.events.verbose(f"Subproject Path: {sub_project}")
            deps_list += f'    implementation(project(path: ":{lib_name}"))'
            deps_list += self._exclude_cordova_lib(sub_project)

        for library in properties.system_libs:
            deps_list += f'    implementation "{system_library_to_maven(library)}"\n'

        include_list = "".join(
            f'apply from: "{self._relative_to_module(include)}"\n' for include in properties.gradle_includes
        )

        async with aiofiles.open(self.root / "settings.gradle", "w", encoding="utf-8") as f:
            await f.write("".join(settings))

        async with aiofiles.open(self.build_gradle_path, "r", encoding="utf-8") as f:
            build_gradle = await f.read()
        build_gradle = _DEPS_BLOCK_RE.sub(lambda m: f"{m.group(1)}\n{deps_list}    {m.group(2)}", build_gradle)
        build_gradle = _EXTENSIONS_BLOCK_RE.sub(lambda m: f"{m.group(1)}\n{include_list}{m.group(2)}", build_gradle)
        async with aiofiles.open(self.build_gradle_path, "w", encoding="utf-8") as f:
            await f.write(build_gradle)

        self.events.verbose("Regenerated gradle build files", builder=self.kind.value)

    def _exclude_cordova_lib(self, sub_project: str) -> str:
        gradle_path = self.root / sub_project / "build.gradle"
        if gradle_path.exists() and "CordovaLib" in gradle_path.read_text(encoding="utf-8"):
            return ' {\n        exclude module: "CordovaLib"\n    }\n'
        return "\n"

    def _relative_to_module(self, root_relative: str) -> str:
        return Path(os.path.relpath(self.root / root_relative, self.module_dir)).as_posix()

    # -- Gradle invocation -------------------------------------------------

    def gradle_command(self) -> list[str]:
        return [str(check_reqs.check_gradle(self.root, self.config))]

    async def write_signing_properties(self, options: BuildOptions) -> Path | None:
        """Write release-signing.properties next to build.gradle when signing options are given."""
        if not options.keystore:
            return None
        lines = [f"storeFile={Path(options.keystore).resolve().as_posix()}"]
        if options.alias:
            lines.append(f"keyAlias={options.alias}")
        if options.store_password:
            lines.append(f"storePassword={options.store_password}")
        if options.password:
            lines.append(f"keyPassword={options.password}")
        if options.keystore_type:
            lines.append(f"storeType={options.keystore_type}")

        path = self.module_dir / "release-signing.properties"
        async with aiofiles.open(path, "w", encoding="utf-8") as f:
            await f.write("\n".join(lines) + "\n")
        return path

    async def build(self, options: BuildOptions) -> BuildResult:
        """Build the project, or only collect existing packages with ``nobuild``.

        Raises:
            BuildToolError: If gradle exits non-zero.
        """
        build_type = options.build_type
        if not options.nobuild:
            if build_type is BuildType.RELEASE:
                await self.write_signing_properties(options)
            args = self.gradle_command() + self.build_tasks(build_type)
            if options.arch:
                args.append(f"-PcdvBuildArch={options.arch}")
            args += self.config.build.gradle_args + options.gradle_args

            self.events.log(f"Running: {' '.join(args)}")
            await run_command(args, cwd=self.root, timeout=self.config.build.gradle_timeout_seconds)

        apk_paths = self.find_output_apks(build_type, options.arch)
        if apk_paths:
            self.events.log("Built the following apk(s):\n\t" + "\n\t".join(str(p) for p in apk_paths))
        else:
            self.events.warn(f"No {build_type.value} apk found in {self.output_dir}")
        return BuildResult(build_type=build_type, build_method=self.kind, apk_paths=apk_paths)

    async def clean(self) -> None:
        """Run gradle clean and drop any build output left behind."""
        args = self.gradle_command() + ["clean"] + self.config.build.gradle_args
        self.events.log(f"Running: {' '.join(args)}")
        await run_command(args, cwd=self.root, timeout=self.config.build.gradle_timeout_seconds)
        if self.locations.build.exists():
            shutil.rmtree(self.locations.build)

    def find_output_apks(self, build_type: BuildType, arch: str | None = None) -> list[Path]:
        """Find built packages, newest first.

        Packages built for ``arch`` are preferred; universal packages are
        returned when none matches.
        """
        if not self.output_dir.exists():
            return []
        candidates = [
            p for p in self.output_dir.rglob("*.apk") if re.search(rf"-{build_type.value}(-|\.apk$)", p.name)
        ]
        if arch:
            arch_specific = [p for p in candidates if f"-{arch}-" in p.name]
            if arch_specific:
                candidates = arch_specific
        return sorted(candidates, key=lambda p: p.stat().st_mtime, reverse=True)


class GradleBuilder(Builder):
    """Legacy flat layout: the project root is the application module."""

    kind = BuilderKind.GRADLE

    @property
    def module_dir(self) -> Path:
        return self.root

    def build_tasks(self, build_type: BuildType) -> list[str]:
        return ["cdvBuildRelease" if build_type is BuildType.RELEASE else "cdvBuildDebug"]

    def settings_header(self) -> str:
        return 'include ":"\n'


class StudioBuilder(Builder):
    """Nested layout: the application module lives in ``app/``."""

    kind = BuilderKind.STUDIO

    @property
    def module_dir(self) -> Path:
        return self.root / "app"

    def build_tasks(self, build_type: BuildType) -> list[str]:
        return [":app:assembleRelease" if build_type is BuildType.RELEASE else ":app:assembleDebug"]

    def settings_header(self) -> str:
        return 'include ":app"\n'


_BUILDERS: dict[BuilderKind, type[Builder]] = {
    BuilderKind.GRADLE: GradleBuilder,
    BuilderKind.STUDIO: StudioBuilder,
}


def builder_kind_for(locations: ProjectLocations) -> BuilderKind:
    """Build strategy matching a project's layout."""
    return BuilderKind.STUDIO if locations.is_studio else BuilderKind.GRADLE


def get_builder(
    kind: BuilderKind,
    locations: ProjectLocations,
    events: PlatformEvents,
    config: Config | None = None,
) -> Builder:
    """Instantiate the builder for a strategy.

    Args:
        kind: Strategy to use.
        locations: Locations of the project to build.
        events: Event sink for progress output.
        config: Toolchain configuration.

    Returns:
        The builder instance.
    """
    return _BUILDERS[kind](locations, events, config)
