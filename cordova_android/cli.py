"""
cordova-android CLI.

Command-line interface over the platform Api. The scripts copied into a
project's ``cordova/`` directory call these commands with the project root
as first argument.
"""

from __future__ import annotations

import asyncio
from collections.abc import Coroutine
from pathlib import Path
from typing import Any, Optional

import typer
from rich.console import Console
from rich.table import Table

from . import PLATFORM, __version__
from .api import Api
from .core.config import get_config
from .core.exceptions import CordovaError
from .core.logging import PlatformEvents, setup_logging
from .models.build import (
    BuildOptions,
    CleanOptions,
    CreateOptions,
    PrepareOptions,
    RunOptions,
    UpdateOptions,
)
from .models.plugin import PluginInfo, PluginInstallOptions, PluginUninstallOptions
from .models.project import DEFAULT_PACKAGE_NAME, DEFAULT_PROJECT_NAME, AppProject, ProjectConfig

app = typer.Typer(
    name="cordova-android",
    help="Create, build and run Android projects for Cordova apps",
    add_completion=False,
)
plugin_app = typer.Typer(help="Install or remove plugins", add_completion=False)
app.add_typer(plugin_app, name="plugin")

console = Console()

PROJECT_DIR_ARGUMENT = typer.Argument(
    ...,
    help="Android platform project directory",
    exists=True,
    file_okay=False,
    dir_okay=True,
    resolve_path=True,
)


def version_callback(value: bool) -> None:
    """Show version and exit."""
    if value:
        console.print(f"cordova-android v{__version__}")
        raise typer.Exit()


@app.callback()
def callback(
    version: bool = typer.Option(
        False,
        "--version",
        "-v",
        callback=version_callback,
        is_eager=True,
        help="Show version and exit",
    ),
    verbose: bool = typer.Option(False, "--verbose", "-d", help="Enable verbose logging"),
) -> None:
    """cordova-android: Android platform for Cordova apps."""
    config = get_config()
    if verbose:
        config.log_level = "DEBUG"
    setup_logging(config)


def _run(coro: Coroutine[Any, Any, Any]) -> Any:
    """Run a lifecycle coroutine, turning platform errors into exit code 1."""
    try:
        return asyncio.run(coro)
    except CordovaError as e:
        console.print(f"[bold red]✗ {e}[/bold red]")
        raise typer.Exit(1) from e


def _api(project_dir: Path) -> Api:
    return Api(PLATFORM, project_dir, PlatformEvents())


def _parse_variables(values: list[str]) -> dict[str, str]:
    variables = {}
    for item in values:
        name, sep, value = item.partition("=")
        if not sep:
            raise typer.BadParameter(f"Expected NAME=VALUE, got {item!r}", param_hint="--variable")
        variables[name] = value
    return variables


@app.command()
def create(
    path: Path = typer.Argument(..., help="Directory to create the project in", resolve_path=True),
    package_name: str = typer.Option(DEFAULT_PACKAGE_NAME, "--package", "-p", help="Package id"),
    name: str = typer.Option(DEFAULT_PROJECT_NAME, "--name", "-n", help="App display name"),
    activity_name: Optional[str] = typer.Option(None, "--activity", help="Launch activity name"),
    config_xml: Optional[Path] = typer.Option(
        None, "--config", help="Read package, name and activity from an app config.xml", exists=True
    ),
    template: Optional[Path] = typer.Option(None, "--template", help="Custom project template"),
    link: bool = typer.Option(False, "--link", help="Symlink CordovaLib instead of copying it"),
    studio: bool = typer.Option(False, "--studio", help="Use the Android Studio layout"),
) -> None:
    """Create a new Android project."""
    if config_xml:
        project_config = ProjectConfig.from_config_xml(config_xml)
    else:
        project_config = ProjectConfig(package_name=package_name, name=name)
    options = CreateOptions(
        link=link, custom_template=template, activity_name=activity_name, android_studio=studio
    )
    api = _run(Api.create_platform(path, project_config, options, PlatformEvents()))
    console.print(f"[bold green]✓ Created[/bold green] {api.root}")


@app.command()
def update(
    project_dir: Path = PROJECT_DIR_ARGUMENT,
    link: bool = typer.Option(False, "--link", help="Symlink CordovaLib instead of copying it"),
) -> None:
    """Refresh the platform files of an existing project."""
    api = _run(Api.update_platform(project_dir, UpdateOptions(link=link), PlatformEvents()))
    console.print(f"[bold green]✓ Updated[/bold green] {api.root}")


@app.command()
def prepare(
    project_dir: Path = PROJECT_DIR_ARGUMENT,
    app_dir: Path = typer.Argument(..., help="App directory holding www/ and config.xml", exists=True),
    skip_www: bool = typer.Option(False, "--skip-www", help="Leave web assets untouched"),
) -> None:
    """Copy an app's web assets and configuration into the project."""
    _run(_api(project_dir).prepare(AppProject.from_root(app_dir), PrepareOptions(skip_www=skip_www)))


def _build_options(
    release: bool,
    nobuild: bool,
    arch: Optional[str],
    gradle_arg: list[str],
    keystore: Optional[Path],
    alias: Optional[str],
    store_password: Optional[str],
    password: Optional[str],
    keystore_type: Optional[str],
) -> dict[str, Any]:
    return {
        "release": release,
        "nobuild": nobuild,
        "archs": [arch] if arch else [],
        "gradle_args": gradle_arg,
        "keystore": keystore,
        "alias": alias,
        "store_password": store_password,
        "password": password,
        "keystore_type": keystore_type,
    }


@app.command()
def build(
    project_dir: Path = PROJECT_DIR_ARGUMENT,
    release: bool = typer.Option(False, "--release", help="Build the release configuration"),
    nobuild: bool = typer.Option(False, "--nobuild", help="Only report existing packages"),
    arch: Optional[str] = typer.Option(None, "--arch", help="CPU architecture to build for"),
    gradle_arg: list[str] = typer.Option([], "--gradle-arg", help="Extra gradle argument"),
    keystore: Optional[Path] = typer.Option(None, "--keystore", help="Release signing keystore"),
    alias: Optional[str] = typer.Option(None, "--alias", help="Key alias"),
    store_password: Optional[str] = typer.Option(None, "--storePassword", help="Keystore password"),
    password: Optional[str] = typer.Option(None, "--password", help="Key password"),
    keystore_type: Optional[str] = typer.Option(None, "--keystoreType", help="Keystore type"),
) -> None:
    """Build the project."""
    options = BuildOptions(
        **_build_options(release, nobuild, arch, gradle_arg, keystore, alias, store_password, password, keystore_type)
    )
    artifacts = _run(_api(project_dir).build(options))

    table = Table(title="Build Artifacts")
    table.add_column("Type", style="cyan")
    table.add_column("Method")
    table.add_column("Path", style="green")
    for artifact in artifacts:
        table.add_row(artifact.build_type.value, artifact.build_method.value, str(artifact.path))
    console.print(table)


@app.command()
def run(
    project_dir: Path = PROJECT_DIR_ARGUMENT,
    device: bool = typer.Option(False, "--device", help="Deploy to a physical device"),
    emulator: bool = typer.Option(False, "--emulator", help="Deploy to an emulator"),
    target: Optional[str] = typer.Option(None, "--target", help="Device serial or AVD name"),
    release: bool = typer.Option(False, "--release", help="Build the release configuration"),
    nobuild: bool = typer.Option(False, "--nobuild", help="Deploy the existing package"),
    arch: Optional[str] = typer.Option(None, "--arch", help="CPU architecture to build for"),
    gradle_arg: list[str] = typer.Option([], "--gradle-arg", help="Extra gradle argument"),
) -> None:
    """Build the project and launch it on a device or emulator."""
    options = RunOptions(
        device=device,
        emulator=emulator,
        target=target,
        **_build_options(release, nobuild, arch, gradle_arg, None, None, None, None, None),
    )
    _run(_api(project_dir).run(options))


@app.command()
def clean(
    project_dir: Path = PROJECT_DIR_ARGUMENT,
    no_prepare: bool = typer.Option(False, "--no-prepare", help="Keep prepared web assets"),
) -> None:
    """Remove build output and prepared web assets."""
    _run(_api(project_dir).clean(CleanOptions(no_prepare=no_prepare)))


@app.command()
def requirements(
    project_dir: Optional[Path] = typer.Argument(None, help="Android platform project directory"),
) -> None:
    """Check the Android toolchain."""
    api = _api(project_dir or Path.cwd())
    results = _run(api.requirements())

    table = Table(title="Requirements")
    table.add_column("Requirement", style="cyan")
    table.add_column("Status")
    table.add_column("Details")
    for req in results:
        status = "[green]installed[/green]" if req.installed else "[red]missing[/red]"
        table.add_row(req.name, status, req.version if req.installed else (req.reason or ""))
    console.print(table)

    if any(req.is_fatal and not req.installed for req in results):
        raise typer.Exit(1)


@app.command()
def version() -> None:
    """Print the platform version."""
    console.print(__version__)


@plugin_app.command("add")
def plugin_add(
    project_dir: Path = PROJECT_DIR_ARGUMENT,
    plugin_dir: Path = typer.Argument(..., help="Plugin directory holding plugin.xml", exists=True),
    variable: list[str] = typer.Option([], "--variable", help="Install variable NAME=VALUE"),
    link: bool = typer.Option(False, "--link", help="Symlink plugin files instead of copying"),
    use_platform_www: bool = typer.Option(False, "--use-platform-www", help="Also install into platform_www"),
) -> None:
    """Install a plugin into the project."""
    options = PluginInstallOptions(
        link=link, variables=_parse_variables(variable), use_platform_www=use_platform_www
    )

    async def add_async() -> None:
        await _api(project_dir).add_plugin(PluginInfo.from_directory(plugin_dir), options)

    _run(add_async())
    console.print(f"[bold green]✓ Installed[/bold green] {plugin_dir.name}")


@plugin_app.command("remove")
def plugin_remove(
    project_dir: Path = PROJECT_DIR_ARGUMENT,
    plugin_dir: Path = typer.Argument(..., help="Plugin directory holding plugin.xml", exists=True),
    variable: list[str] = typer.Option([], "--variable", help="Variable used at install time NAME=VALUE"),
    use_platform_www: bool = typer.Option(False, "--use-platform-www", help="Also remove from platform_www"),
) -> None:
    """Remove a plugin from the project."""
    options = PluginUninstallOptions(variables=_parse_variables(variable), use_platform_www=use_platform_www)

    async def remove_async() -> None:
        await _api(project_dir).remove_plugin(PluginInfo.from_directory(plugin_dir), options)

    _run(remove_async())
    console.print(f"[bold green]✓ Removed[/bold green] {plugin_dir.name}")


def main() -> None:
    """Entry point for the CLI."""
    app()


if __name__ == "__main__":
    main()
