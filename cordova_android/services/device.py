"""
Device and emulator deployment through adb.

Lists attached devices, starts an emulator when none is available, and
installs and launches a built package on the selected target.
"""

from __future__ import annotations

import asyncio
import shutil
from dataclasses import dataclass
from pathlib import Path

from ..core.config import Config, get_config
from ..core.exceptions import DeviceError, ToolNotFoundError
from ..core.logging import PlatformEvents, get_logger
from ..models.build import RunOptions
from .process import run_command

logger = get_logger(__name__)

EMULATOR_PORTS = range(5554, 5586, 2)
BOOT_POLL_SECONDS = 5.0


@dataclass
class Device:
    """An adb-visible device or emulator."""

    serial: str
    state: str = "device"

    @property
    def is_emulator(self) -> bool:
        return self.serial.startswith("emulator-")

    @property
    def is_online(self) -> bool:
        return self.state == "device"


def parse_devices(output: str) -> list[Device]:
    """Parse ``adb devices`` output."""
    devices = []
    for line in output.splitlines():
        line = line.strip()
        if not line or line.startswith("List of devices") or line.startswith("*"):
            continue
        parts = line.split()
        if len(parts) >= 2:
            devices.append(Device(serial=parts[0], state=parts[1]))
    return devices


def _find_sdk_tool(config: Config, subdir: str, name: str) -> Path:
    sdk_root = config.tools.android_sdk_root
    if sdk_root is not None:
        for candidate in (sdk_root / subdir / name, sdk_root / subdir / f"{name}.exe"):
            if candidate.exists():
                return candidate
    found = shutil.which(name)
    if found:
        return Path(found)
    raise ToolNotFoundError(
        message=f"{name} not found",
        tool_name=name,
        expected_path=str(sdk_root / subdir if sdk_root else "PATH"),
        install_hint="Install the Android SDK and set ANDROID_SDK_ROOT",
    )


def launch_component(package_name: str, activity: str) -> str:
    """``am start`` component for an activity declared in the manifest."""
    if activity.startswith(".") or "." in activity:
        return f"{package_name}/{activity}"
    return f"{package_name}/.{activity}"


class Adb:
    """Thin async wrapper over the adb binary."""

    def __init__(self, config: Config | None = None) -> None:
        self.config = config or get_config()
        self.path = _find_sdk_tool(self.config, "platform-tools", "adb")

    async def _run(self, *args: str, check: bool = True) -> str:
        result = await run_command(
            [str(self.path), *args], timeout=self.config.build.adb_timeout_seconds, check=check
        )
        return result.stdout

    async def devices(self) -> list[Device]:
        return [d for d in parse_devices(await self._run("devices")) if d.is_online]

    async def getprop(self, serial: str, name: str) -> str:
        return (await self._run("-s", serial, "shell", "getprop", name, check=False)).strip()

    async def install(self, serial: str, apk_path: Path) -> None:
        output = await self._run("-s", serial, "install", "-r", str(apk_path))
        # Older adb versions report install failures on stdout with status 0
        if "Failure" in output:
            raise DeviceError(message=f"Failed to install apk: {output.strip()}", serial=serial)

    async def launch(self, serial: str, package_name: str, activity: str) -> None:
        await self._run(
            "-s", serial, "shell", "am", "start", "-W",
            "-a", "android.intent.action.MAIN",
            "-n", launch_component(package_name, activity),
        )


@dataclass
class EmulatorSession:
    """An emulator started for a run."""

    avd_name: str
    port: int
    process: asyncio.subprocess.Process | None = None

    @property
    def serial(self) -> str:
        return f"emulator-{self.port}"

    @classmethod
    async def list_avds(cls, config: Config | None = None) -> list[str]:
        config = config or get_config()
        emulator = _find_sdk_tool(config, "emulator", "emulator")
        result = await run_command([str(emulator), "-list-avds"])
        return [line.strip() for line in result.stdout.splitlines() if line.strip()]

    @classmethod
    async def start(
        cls,
        avd_name: str,
        adb: Adb,
        events: PlatformEvents,
        config: Config | None = None,
    ) -> EmulatorSession:
        """Start an AVD on a free port and wait until it has booted.

        Raises:
            DeviceError: If no port is free or the boot times out.
        """
        config = config or get_config()
        emulator = _find_sdk_tool(config, "emulator", "emulator")
        used = {d.serial for d in await adb.devices()}
        port = next((p for p in EMULATOR_PORTS if f"emulator-{p}" not in used), None)
        if port is None:
            raise DeviceError(message="No free emulator port available")

        session = cls(avd_name=avd_name, port=port)
        events.log(f"Starting emulator {avd_name} on port {port}")
        session.process = await asyncio.create_subprocess_exec(
            str(emulator), "-avd", avd_name, "-port", str(port),
            stdin=asyncio.subprocess.DEVNULL,
            stdout=asyncio.subprocess.DEVNULL,
            stderr=asyncio.subprocess.DEVNULL,
        )
        try:
            await session.wait_for_boot(adb, events, config.build.emulator_boot_timeout_seconds)
        except DeviceError:
            await session.stop()
            raise
        return session

    async def stop(self) -> None:
        """Kill the emulator process if it is still running."""
        if self.process is None or self.process.returncode is not None:
            return
        self.process.kill()
        await self.process.wait()

    async def wait_for_boot(self, adb: Adb, events: PlatformEvents, timeout: float) -> None:
        loop = asyncio.get_running_loop()
        start = loop.time()
        events.log("Waiting for emulator to boot (first run may take longer than usual)", serial=self.serial)
        while loop.time() - start < timeout:
            if await adb.getprop(self.serial, "sys.boot_completed") == "1":
                events.log(f"Emulator {self.serial} booted")
                return
            await asyncio.sleep(BOOT_POLL_SECONDS)
        raise DeviceError(message=f"Emulator boot timeout after {timeout}s", serial=self.serial)


async def _start_emulator(
    adb: Adb, events: PlatformEvents, config: Config, avd_name: str | None = None
) -> str:
    avds = await EmulatorSession.list_avds(config)
    if avd_name is None:
        if not avds:
            raise DeviceError(message="No emulator images (AVDs) found")
        avd_name = avds[0]
    elif avd_name not in avds:
        raise DeviceError(message=f"Unknown device or emulator image: {avd_name}", serial=avd_name)
    session = await EmulatorSession.start(avd_name, adb, events, config)
    return session.serial


async def resolve_target(
    adb: Adb, options: RunOptions, events: PlatformEvents, config: Config | None = None
) -> str:
    """Pick the serial to deploy to.

    An explicit ``target`` wins (a connected serial or an AVD name to start).
    ``device`` requires a physical device and ``emulator`` an emulator.
    Otherwise a physical device is preferred over a running emulator, and
    the first AVD is started when nothing is attached.

    Raises:
        DeviceError: If no suitable target is found.
    """
    config = config or get_config()
    devices = await adb.devices()
    physical = [d for d in devices if not d.is_emulator]
    emulators = [d for d in devices if d.is_emulator]

    if options.target:
        if any(d.serial == options.target for d in devices):
            return options.target
        return await _start_emulator(adb, events, config, options.target)

    if options.device and not options.emulator:
        if not physical:
            raise DeviceError(message="Failed to deploy to device, no devices found.")
        return physical[0].serial

    if options.emulator and not options.device:
        if emulators:
            return emulators[0].serial
        return await _start_emulator(adb, events, config)

    if physical:
        return physical[0].serial
    if emulators:
        return emulators[0].serial
    events.warn("No target specified and no devices found, deploying to emulator")
    return await _start_emulator(adb, events, config)


async def deploy(
    apk_path: Path,
    package_name: str,
    activity: str,
    options: RunOptions,
    events: PlatformEvents,
    config: Config | None = None,
) -> str:
    """Install a package on the selected target and launch it.

    Returns:
        Serial of the device the app was launched on.
    """
    config = config or get_config()
    adb = Adb(config)
    serial = await resolve_target(adb, options, events, config)
    events.log(f"Using apk: {apk_path}")
    events.log(f"Installing app on {serial}")
    await adb.install(serial, apk_path)
    events.log("Launching application...")
    await adb.launch(serial, package_name, activity)
    events.log("LAUNCH SUCCESS")
    logger.debug("Deployed", serial=serial, package=package_name)
    return serial
