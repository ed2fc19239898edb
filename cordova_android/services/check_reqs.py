"""
Toolchain requirement checks.

Probes the JDK, Android SDK, the SDK platform for the project target, and
Gradle. ``check_all`` reports every component as data and never raises for a
missing tool; ``run`` raises on the first missing component and is used as a
gate before build, run and clean.
"""

from __future__ import annotations

import re
import shutil
from pathlib import Path

from ..core.config import TEMPLATES_DIR, Config, get_config
from ..core.exceptions import BuildToolError, ToolNotFoundError
from ..core.logging import get_logger
from ..models.build import Requirement
from .process import run_command

logger = get_logger(__name__)

DEFAULT_TARGET = "android-25"


def get_target(properties_path: Path | None = None) -> str:
    """Android target the platform builds against.

    Read from the ``target=`` line of a ``project.properties``, falling back
    to the bundled CordovaLib one.

    Args:
        properties_path: Properties file to read, usually the project's.

    Returns:
        A target such as ``android-25``.
    """
    path = properties_path
    if path is None or not path.exists():
        path = TEMPLATES_DIR / "framework" / "project.properties"
    if path.exists():
        match = re.search(r"^target=(.*?)\s*$", path.read_text(encoding="utf-8"), re.MULTILINE)
        if match:
            return match.group(1)
    return DEFAULT_TARGET


def target_api_level(target: str) -> str:
    """``android-25`` -> ``25``."""
    return target.split("-")[-1]


async def check_java(config: Config | None = None) -> str:
    """Locate javac and return its version.

    Raises:
        ToolNotFoundError: If no JDK can be found.
    """
    config = config or get_config()
    javac: str | None = None
    if config.tools.java_home:
        candidate = config.tools.java_home / "bin" / "javac"
        if candidate.exists():
            javac = str(candidate)
    javac = javac or shutil.which("javac")
    if not javac:
        raise ToolNotFoundError(
            message="Failed to find 'javac'",
            tool_name="javac",
            expected_path=str(config.tools.java_home or "PATH"),
            install_hint="Install a JDK and set JAVA_HOME",
        )

    try:
        result = await run_command([javac, "-version"])
    except BuildToolError as e:
        raise ToolNotFoundError(
            message="javac is installed but could not be run",
            tool_name="javac",
            expected_path=javac,
            cause=e,
        ) from e
    match = re.search(r"javac\s+([\w.\-_]+)", result.output)
    return match.group(1) if match else "unknown"


def check_android(config: Config | None = None) -> Path:
    """Locate the Android SDK root.

    Falls back to the directory above ``platform-tools/adb`` on PATH when
    ANDROID_SDK_ROOT/ANDROID_HOME are unset.

    Raises:
        ToolNotFoundError: If no SDK can be found.
    """
    config = config or get_config()
    sdk_root = config.tools.android_sdk_root
    if sdk_root is None:
        adb = shutil.which("adb")
        if adb:
            sdk_root = Path(adb).resolve().parent.parent

    if sdk_root is None or not sdk_root.is_dir():
        raise ToolNotFoundError(
            message="Failed to find the Android SDK",
            tool_name="android-sdk",
            expected_path=str(sdk_root or "ANDROID_SDK_ROOT"),
            install_hint="Install the Android SDK and set ANDROID_SDK_ROOT",
        )
    return sdk_root


def check_android_target(sdk_root: Path, target: str | None = None) -> str:
    """Check that the SDK platform for the target is installed.

    Raises:
        ToolNotFoundError: If the platform directory is missing.
    """
    target = target or get_target()
    if not (sdk_root / "platforms" / target).is_dir():
        raise ToolNotFoundError(
            message=f"Android target not installed: {target}",
            tool_name=target,
            expected_path=str(sdk_root / "platforms" / target),
            install_hint=f'sdkmanager "platforms;{target}"',
        )
    return target


def check_gradle(project_root: Path | None = None, config: Config | None = None) -> Path:
    """Locate the gradle executable (project wrapper first).

    Raises:
        ToolNotFoundError: If neither a wrapper nor gradle is available.
    """
    config = config or get_config()
    if project_root is not None:
        wrapper = project_root / "gradlew"
        if wrapper.exists():
            return wrapper
    if config.tools.gradle_path and config.tools.gradle_path.exists():
        return config.tools.gradle_path
    gradle = shutil.which("gradle")
    if gradle:
        return Path(gradle)
    raise ToolNotFoundError(
        message="Could not find an installed version of Gradle",
        tool_name="gradle",
        expected_path="PATH",
        install_hint="Install Gradle or add a gradle wrapper to the project",
    )


async def run(config: Config | None = None) -> None:
    """Gate for build/run/clean: raise on the first missing requirement.

    Raises:
        ToolNotFoundError: If any requirement is missing.
    """
    config = config or get_config()
    java_version = await check_java(config)
    sdk_root = check_android(config)
    target = check_android_target(sdk_root)
    logger.debug("Requirements satisfied", java=java_version, sdk=str(sdk_root), target=target)


async def check_all(project_root: Path | None = None, config: Config | None = None) -> list[Requirement]:
    """Probe every requirement and report the results.

    After the first fatal failure the remaining checks are skipped and
    reported as not installed.

    Returns:
        One record per requirement, in check order.
    """
    config = config or get_config()
    requirements = [
        Requirement(id="java", name="Java JDK"),
        Requirement(id="androidSdk", name="Android SDK"),
        Requirement(id="androidTarget", name="Android target"),
        Requirement(id="gradle", name="Gradle"),
    ]

    sdk_root: Path | None = None
    fatal_reason: str | None = None
    for req in requirements:
        if fatal_reason:
            req.reason = f"Skipped: {fatal_reason}"
            continue
        try:
            if req.id == "java":
                req.version = await check_java(config)
            elif req.id == "androidSdk":
                sdk_root = check_android(config)
                req.version = str(sdk_root)
            elif req.id == "androidTarget":
                target = get_target(project_root / "project.properties") if project_root else None
                req.version = check_android_target(sdk_root, target)  # type: ignore[arg-type]
            else:
                req.version = str(check_gradle(project_root, config))
            req.installed = True
        except (ToolNotFoundError, OSError) as e:
            req.reason = e.message if isinstance(e, ToolNotFoundError) else str(e)
            if req.is_fatal:
                fatal_reason = f"{req.name} is missing"

    return requirements
