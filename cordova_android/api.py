"""
Lifecycle facade of the Android platform.

``Api`` is the single entry point an orchestrator drives: create or update a
platform project, prepare it from an app, add and remove plugins, and build,
run or clean it. Every lifecycle operation is a coroutine; progress is
reported through the ``PlatformEvents`` sink the instance was built with.
"""

from __future__ import annotations

from pathlib import Path

from . import PLATFORM, __version__
from .core.config import Config, get_config
from .core.exceptions import CordovaError
from .core.logging import PlatformEvents
from .models.build import (
    BuildArtifact,
    BuilderKind,
    BuildOptions,
    CleanOptions,
    CreateOptions,
    PrepareOptions,
    Requirement,
    RunOptions,
    UpdateOptions,
)
from .models.plugin import PluginInfo, PluginInstallOptions, PluginUninstallOptions
from .models.project import AppProject, PlatformInfo, ProjectConfig, ProjectLocations
from .services import check_reqs, device, prepare, scaffold
from .services.builders import Builder, builder_kind_for, get_builder
from .services.manifest import AndroidManifest
from .services.plugins import PluginManager
from .services.project import AndroidProject


class Api:
    """Platform API bound to one Android project directory."""

    def __init__(
        self,
        platform: str = PLATFORM,
        platform_root_dir: Path | str = ".",
        events: PlatformEvents | None = None,
        config: Config | None = None,
    ) -> None:
        """Bind to a project root.

        Args:
            platform: Platform name, always ``android``.
            platform_root_dir: Root of the platform project.
            events: Event sink; a console sink is created when omitted.
            config: Toolchain configuration; read from the environment when
                omitted.
        """
        self.platform = platform
        self.root = Path(platform_root_dir).resolve()
        self.events = events or PlatformEvents()
        self.config = config or get_config()
        self.locations = ProjectLocations.for_root(self.root)
        self.project_config: ProjectConfig | None = None
        if self.locations.is_studio:
            self.events.log("Android Studio project detected")

    @property
    def android_studio(self) -> bool:
        return self.locations.is_studio

    @property
    def builder_kind(self) -> BuilderKind:
        return builder_kind_for(self.locations)

    def get_builder(self) -> Builder:
        return get_builder(self.builder_kind, self.locations, self.events, self.config)

    # -- Platform lifecycle ------------------------------------------------

    @classmethod
    async def create_platform(
        cls,
        destination: Path | str,
        config: ProjectConfig,
        options: CreateOptions | None = None,
        events: PlatformEvents | None = None,
    ) -> Api:
        """Scaffold a new project and return an Api bound to it.

        Raises:
            ValidationError: If the names are invalid or the destination
                already exists; nothing is written in that case.
        """
        events = events or PlatformEvents()
        await scaffold.create(destination, config, options, events)
        api = cls(PLATFORM, destination, events)
        api.project_config = config
        return api

    @classmethod
    async def update_platform(
        cls,
        destination: Path | str,
        options: UpdateOptions | None = None,
        events: PlatformEvents | None = None,
    ) -> Api:
        """Refresh the platform files of an existing project and return an Api bound to it."""
        events = events or PlatformEvents()
        await scaffold.update(destination, options, events)
        return cls(PLATFORM, destination, events)

    def get_platform_info(self) -> PlatformInfo:
        return PlatformInfo(
            locations=self.locations,
            root=self.root,
            name=self.platform,
            version=__version__,
            project_config=self.project_config,
        )

    async def prepare(self, project: AppProject, options: PrepareOptions | None = None) -> None:
        """Sync the app's www and config.xml into the platform project."""
        self.project_config = await prepare.prepare(project, self.locations, options, self.events)

    # -- Plugins -----------------------------------------------------------

    async def _regenerate_build_files(self, plugin: PluginInfo) -> None:
        if not plugin.get_frameworks(self.platform):
            return
        self.events.verbose("Updating build files since android plugin contained <framework>")
        await self.get_builder().prep_build_files()

    async def add_plugin(self, plugin: PluginInfo, options: PluginInstallOptions | None = None) -> bool:
        """Install a plugin into the project.

        ``PACKAGE_NAME`` is added to the install variables from the manifest
        when the caller did not set it. A legacy project with build output is
        cleaned first, keeping prepared web assets.

        Returns:
            True, so callers can skip a redundant prepare.
        """
        project = AndroidProject(self.locations)
        options = (options or PluginInstallOptions()).model_copy(deep=True)
        if not options.variables.get("PACKAGE_NAME"):
            options.variables["PACKAGE_NAME"] = project.get_package_name() or ""
        if self.android_studio:
            options.android_studio = True

        if not self.android_studio and not project.is_clean():
            await self.clean(CleanOptions(no_prepare=True))

        await PluginManager(self.locations, self.events).add_plugin(plugin, options)
        await self._regenerate_build_files(plugin)
        return True

    async def remove_plugin(self, plugin: PluginInfo, options: PluginUninstallOptions | None = None) -> bool:
        """Remove a plugin previously installed with ``add_plugin``.

        Returns:
            True, so callers can skip a redundant prepare.
        """
        options = (options or PluginUninstallOptions()).model_copy(deep=True)
        if options.use_platform_www and self.android_studio:
            options.use_platform_www = False
            options.android_studio = True
        if not options.variables.get("PACKAGE_NAME"):
            options.variables["PACKAGE_NAME"] = AndroidProject(self.locations).get_package_name() or ""

        await PluginManager(self.locations, self.events).remove_plugin(plugin, options)
        await self._regenerate_build_files(plugin)
        return True

    # -- Build, run, clean -------------------------------------------------

    async def build(self, options: BuildOptions | None = None) -> list[BuildArtifact]:
        """Build the project and describe the produced packages.

        Raises:
            ToolNotFoundError: If a requirement is missing.
            BuildToolError: If gradle fails.
        """
        options = options or BuildOptions()
        await check_reqs.run(self.config)
        result = await self.get_builder().build(options)
        return [
            BuildArtifact(
                architecture=options.arch,
                build_type=result.build_type,
                build_method=result.build_method,
                path=apk_path,
            )
            for apk_path in result.apk_paths
        ]

    async def run(self, options: RunOptions | None = None) -> None:
        """Build, install and launch the app on a device or emulator.

        Raises:
            ToolNotFoundError: If a requirement is missing.
            DeviceError: If no deployment target can be found.
            CordovaError: If the build produced no package.
        """
        options = options or RunOptions()
        await check_reqs.run(self.config)
        result = await self.get_builder().build(options)
        if not result.apk_paths:
            raise CordovaError(message="Could not find any apk to deploy")

        manifest = AndroidManifest(self.locations.manifest)
        await device.deploy(
            result.apk_paths[0],
            manifest.get_package_id() or "",
            manifest.get_activity().get_name() or "",
            options,
            self.events,
            self.config,
        )

    async def clean(self, options: CleanOptions | None = None) -> None:
        """Remove build output, then prepared web assets unless ``no_prepare``."""
        options = options or CleanOptions()
        await check_reqs.run(self.config)
        await self.get_builder().clean()
        if not options.no_prepare:
            prepare.clean_www(self.locations, self.events)

    async def requirements(self) -> list[Requirement]:
        """Probe the toolchain; missing tools are reported, never raised."""
        return await check_reqs.check_all(self.root, self.config)
