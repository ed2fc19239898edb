"""Unit tests for toolchain requirement checks."""

from unittest.mock import AsyncMock

import pytest

from cordova_android.core.config import Config, ToolsConfig
from cordova_android.core.exceptions import ToolNotFoundError
from cordova_android.services import check_reqs
from cordova_android.services.process import CommandResult


@pytest.fixture
def sdk_root(temp_dir):
    """Create an SDK with the android-25 platform installed."""
    root = temp_dir / "sdk"
    (root / "platforms" / "android-25").mkdir(parents=True)
    return root


@pytest.fixture
def no_tools(monkeypatch):
    """Make PATH lookups find nothing."""
    monkeypatch.setattr(check_reqs.shutil, "which", lambda name: None)


@pytest.fixture
def javac(monkeypatch):
    """Pretend a JDK 1.8 is on PATH.

    Returns:
        AsyncMock: The stand-in for run_command.
    """
    monkeypatch.setattr(check_reqs.shutil, "which", lambda name: f"/usr/bin/{name}" if name == "javac" else None)
    runner = AsyncMock(return_value=CommandResult(args=[], returncode=0, stdout="", stderr="javac 1.8.0_152\n"))
    monkeypatch.setattr(check_reqs, "run_command", runner)
    return runner


class TestTarget:
    """Tests for target resolution."""

    def test_bundled_target(self):
        assert check_reqs.get_target() == "android-25"

    def test_project_target(self, temp_dir):
        """Test reading the target line of a project.properties."""
        props = temp_dir / "project.properties"
        props.write_text("# comment\ntarget=android-26\n")
        assert check_reqs.get_target(props) == "android-26"

    def test_missing_file_falls_back(self, temp_dir):
        assert check_reqs.get_target(temp_dir / "project.properties") == "android-25"

    def test_api_level(self):
        assert check_reqs.target_api_level("android-25") == "25"


class TestToolLookup:
    """Tests for SDK and gradle discovery."""

    def test_android_sdk_from_config(self, sdk_root):
        assert check_reqs.check_android(Config(tools=ToolsConfig(android_sdk_root=sdk_root))) == sdk_root

    def test_android_sdk_missing(self, no_tools):
        with pytest.raises(ToolNotFoundError) as exc_info:
            check_reqs.check_android(Config(tools=ToolsConfig(android_sdk_root=None)))
        assert exc_info.value.tool_name == "android-sdk"

    def test_android_target(self, sdk_root):
        assert check_reqs.check_android_target(sdk_root, "android-25") == "android-25"
        with pytest.raises(ToolNotFoundError) as exc_info:
            check_reqs.check_android_target(sdk_root, "android-99")
        assert "sdkmanager" in exc_info.value.install_hint

    def test_gradle_wrapper_preferred(self, temp_dir, no_tools):
        """Test that a project wrapper wins over configuration."""
        wrapper = temp_dir / "gradlew"
        wrapper.write_text("#!/bin/sh\n")
        configured = temp_dir / "gradle"
        configured.write_text("")
        config = Config(tools=ToolsConfig(gradle_path=configured))
        assert check_reqs.check_gradle(temp_dir, config) == wrapper
        assert check_reqs.check_gradle(None, config) == configured

    def test_gradle_missing(self, temp_dir, no_tools):
        with pytest.raises(ToolNotFoundError):
            check_reqs.check_gradle(temp_dir, Config(tools=ToolsConfig(gradle_path=None)))


@pytest.mark.asyncio
class TestChecks:
    """Tests for the aggregated checks."""

    async def test_java_version(self, javac):
        """Test parsing the javac version banner."""
        config = Config(tools=ToolsConfig(java_home=None))
        assert await check_reqs.check_java(config) == "1.8.0_152"
        assert javac.await_args.args[0] == ["/usr/bin/javac", "-version"]

    async def test_java_missing(self, no_tools):
        with pytest.raises(ToolNotFoundError) as exc_info:
            await check_reqs.check_java(Config(tools=ToolsConfig(java_home=None)))
        assert exc_info.value.tool_name == "javac"

    async def test_check_all_reports_everything(self, javac, sdk_root, temp_dir):
        """Test that missing tools are reported, not raised."""
        config = Config(tools=ToolsConfig(android_sdk_root=sdk_root, java_home=None, gradle_path=None))

        requirements = await check_reqs.check_all(temp_dir, config)

        assert [r.id for r in requirements] == ["java", "androidSdk", "androidTarget", "gradle"]
        java, sdk, target, gradle = requirements
        assert java.installed and java.version == "1.8.0_152"
        assert sdk.installed and sdk.version == str(sdk_root)
        assert target.installed and target.version == "android-25"
        assert not gradle.installed
        assert "Gradle" in gradle.reason

    async def test_check_all_skips_after_fatal(self, no_tools):
        """Test that checks after the first fatal failure are skipped."""
        config = Config(tools=ToolsConfig(android_sdk_root=None, java_home=None, gradle_path=None))

        requirements = await check_reqs.check_all(None, config)

        assert not any(r.installed for r in requirements)
        assert requirements[0].reason == "Failed to find 'javac'"
        assert [r.reason for r in requirements[1:]] == ["Skipped: Java JDK is missing"] * 3

    async def test_run_raises_first_missing(self, javac):
        config = Config(tools=ToolsConfig(android_sdk_root=None, java_home=None))
        with pytest.raises(ToolNotFoundError) as exc_info:
            await check_reqs.run(config)
        assert exc_info.value.tool_name == "android-sdk"
