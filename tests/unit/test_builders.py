"""Unit tests for the gradle build strategies."""

import os
import time
from unittest.mock import AsyncMock

import pytest

from cordova_android.core.config import BuildSettings, Config
from cordova_android.core.exceptions import CordovaError
from cordova_android.models.build import BuilderKind, BuildOptions, BuildType
from cordova_android.models.project import ProjectLayout, ProjectLocations
from cordova_android.services import builders, check_reqs
from cordova_android.services.builders import (
    GradleBuilder,
    StudioBuilder,
    builder_kind_for,
    get_builder,
    system_library_to_maven,
)
from cordova_android.services.process import CommandResult
from cordova_android.services.project import AndroidProject


@pytest.fixture
def config():
    """Configuration with extra gradle arguments."""
    return Config(build=BuildSettings(gradle_args=["--offline"]))


@pytest.fixture
def fake_gradle(monkeypatch, temp_dir):
    """Replace gradle discovery and execution.

    Returns:
        AsyncMock: The stand-in for run_command.
    """
    gradle = temp_dir / "bin" / "gradle"
    monkeypatch.setattr(check_reqs, "check_gradle", lambda root=None, config=None: gradle)
    runner = AsyncMock(return_value=CommandResult(args=[], returncode=0, stdout="", stderr=""))
    monkeypatch.setattr(builders, "run_command", runner)
    return runner


class TestSystemLibraries:
    """Tests for system library mapping."""

    def test_maven_coordinate_passes_through(self):
        assert system_library_to_maven("com.android.support:support-v4:24.1.1+") == (
            "com.android.support:support-v4:24.1.1+"
        )

    def test_support_library_path(self):
        """Test the legacy SDK support library path."""
        assert system_library_to_maven("extras/android/support/v4") == "com.android.support:support-v4:+"

    def test_play_services_path(self):
        assert system_library_to_maven(
            "google/google_play_services/libproject/google-play-services_lib"
        ) == "com.google.android.gms:play-services:+"

    def test_unsupported(self):
        """Test that unknown entries are rejected."""
        with pytest.raises(CordovaError) as exc_info:
            system_library_to_maven("some/random/library")
        assert "Unsupported system library" in exc_info.value.message


class TestBuilderSelection:
    """Tests for picking a strategy."""

    def test_kind_follows_layout(self, temp_dir):
        assert builder_kind_for(ProjectLocations.for_root(temp_dir, ProjectLayout.LEGACY)) is BuilderKind.GRADLE
        assert builder_kind_for(ProjectLocations.for_root(temp_dir, ProjectLayout.STUDIO)) is BuilderKind.STUDIO

    def test_get_builder(self, temp_dir, events):
        """Test that each kind maps to its class."""
        locations = ProjectLocations.for_root(temp_dir)
        assert isinstance(get_builder(BuilderKind.GRADLE, locations, events), GradleBuilder)
        assert isinstance(get_builder(BuilderKind.STUDIO, locations, events), StudioBuilder)

    def test_tasks(self, temp_dir, events):
        locations = ProjectLocations.for_root(temp_dir)
        assert GradleBuilder(locations, events).build_tasks(BuildType.RELEASE) == ["cdvBuildRelease"]
        assert StudioBuilder(locations, events).build_tasks(BuildType.DEBUG) == [":app:assembleDebug"]


@pytest.mark.asyncio
class TestPrepBuildFiles:
    """Tests for settings.gradle and build.gradle regeneration."""

    async def test_sub_projects_and_system_libraries(self, legacy_project, events):
        """Test the generated includes and dependency block."""
        locations = ProjectLocations.for_root(legacy_project)
        project = AndroidProject(locations)
        await project.add_sub_project("my-plugin/App-lib")
        await project.add_system_library("extras/android/support/v4")
        await project.add_gradle_reference("my-plugin/App-extra.gradle")
        (legacy_project / "my-plugin").mkdir(exist_ok=True)
        (legacy_project / "my-plugin" / "App-lib").mkdir()
        (legacy_project / "my-plugin" / "App-lib" / "build.gradle").write_text(
            "dependencies { implementation project(':CordovaLib') }\n"
        )

        await GradleBuilder(locations, events).prep_build_files()

        settings = (legacy_project / "settings.gradle").read_text()
        assert settings == (
            "// GENERATED FILE - DO NOT EDIT\n"
            'include ":"\n'
            'include ":CordovaLib"\n'
            'include ":my-plugin:lib"\n'
            'project(":my-plugin:lib").projectDir = new File("my-plugin/App-lib")\n'
        )

        build_gradle = (legacy_project / "build.gradle").read_text()
        assert (
            "// SUB-PROJECT DEPENDENCIES START\n"
            '    implementation(project(path: ":CordovaLib"))\n'
            '    implementation(project(path: ":my-plugin:lib")) {\n'
            '        exclude module: "CordovaLib"\n'
            "    }\n"
            '    implementation "com.android.support:support-v4:+"\n'
            "    // SUB-PROJECT DEPENDENCIES END"
        ) in build_gradle
        assert (
            "// PLUGIN GRADLE EXTENSIONS START\n"
            'apply from: "my-plugin/App-extra.gradle"\n'
            "// PLUGIN GRADLE EXTENSIONS END"
        ) in build_gradle

    async def test_missing_sub_project_build_file_is_seeded(self, legacy_project, events):
        """Test that a sub-project without build.gradle gets the plugin template."""
        locations = ProjectLocations.for_root(legacy_project)
        await AndroidProject(locations).add_sub_project("other/App-sub")

        await GradleBuilder(locations, events).prep_build_files()

        seeded = legacy_project / "other" / "App-sub" / "build.gradle"
        assert seeded.read_text() == (legacy_project / "cordova" / "lib" / "plugin-build.gradle").read_text()

    async def test_regeneration_is_stable(self, legacy_project, events):
        """Test that regenerating twice yields the same files."""
        locations = ProjectLocations.for_root(legacy_project)
        await AndroidProject(locations).add_sub_project("my-plugin/App-lib")
        builder = GradleBuilder(locations, events)
        await builder.prep_build_files()
        first = (legacy_project / "build.gradle").read_text()

        await builder.prep_build_files()

        assert (legacy_project / "build.gradle").read_text() == first

    async def test_studio_includes_relative_to_app(self, studio_project, events):
        """Test that extension paths are relative to the app module."""
        locations = ProjectLocations.for_root(studio_project)
        await AndroidProject(locations).add_gradle_reference("my-plugin/App-extra.gradle")

        await StudioBuilder(locations, events).prep_build_files()

        assert 'include ":app"\n' in (studio_project / "settings.gradle").read_text()
        app_gradle = (studio_project / "app" / "build.gradle").read_text()
        assert 'apply from: "../my-plugin/App-extra.gradle"' in app_gradle

    async def test_unsupported_system_library_fails(self, legacy_project, events):
        locations = ProjectLocations.for_root(legacy_project)
        await AndroidProject(locations).add_system_library("not/a/library")
        with pytest.raises(CordovaError):
            await GradleBuilder(locations, events).prep_build_files()


@pytest.mark.asyncio
class TestBuild:
    """Tests for gradle invocation and output discovery."""

    async def test_debug_build_command(self, legacy_project, events, config, fake_gradle, temp_dir):
        """Test the gradle arguments of a debug build."""
        builder = GradleBuilder(ProjectLocations.for_root(legacy_project), events, config)

        result = await builder.build(BuildOptions(archs=["arm"], gradle_args=["--stacktrace"]))

        args = fake_gradle.await_args.args[0]
        assert args == [
            str(temp_dir / "bin" / "gradle"),
            "cdvBuildDebug",
            "-PcdvBuildArch=arm",
            "--offline",
            "--stacktrace",
        ]
        assert fake_gradle.await_args.kwargs["cwd"] == builder.root
        assert result.build_type is BuildType.DEBUG
        assert result.build_method is BuilderKind.GRADLE
        assert result.apk_paths == []

    async def test_release_build_writes_signing_properties(self, studio_project, events, config, fake_gradle):
        """Test that signing options land next to the module build file."""
        locations = ProjectLocations.for_root(studio_project)
        keystore = studio_project / "release.keystore"
        options = BuildOptions(release=True, keystore=keystore, alias="key0", store_password="secret")

        await StudioBuilder(locations, events, config).build(options)

        props = (studio_project / "app" / "release-signing.properties").read_text()
        assert f"storeFile={keystore.resolve().as_posix()}" in props
        assert "keyAlias=key0" in props
        assert "storePassword=secret" in props
        assert "keyPassword" not in props
        assert fake_gradle.await_args.args[0][1] == ":app:assembleRelease"

    async def test_nobuild_skips_gradle(self, legacy_project, events, config, fake_gradle):
        """Test that nobuild only collects existing packages."""
        builder = GradleBuilder(ProjectLocations.for_root(legacy_project), events, config)
        apk_dir = builder.output_dir / "debug"
        apk_dir.mkdir(parents=True)
        (apk_dir / "MyApp-debug.apk").write_bytes(b"")

        result = await builder.build(BuildOptions(nobuild=True))

        fake_gradle.assert_not_awaited()
        assert result.apk_paths == [apk_dir / "MyApp-debug.apk"]

    async def test_clean_removes_build_directory(self, legacy_project, events, config, fake_gradle):
        builder = GradleBuilder(ProjectLocations.for_root(legacy_project), events, config)
        (legacy_project / "build" / "outputs").mkdir(parents=True)

        await builder.clean()

        assert fake_gradle.await_args.args[0][1:] == ["clean", "--offline"]
        assert not (legacy_project / "build").exists()


class TestFindOutputApks:
    """Tests for locating built packages."""

    def _touch(self, path, mtime):
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_bytes(b"")
        os.utime(path, (mtime, mtime))
        return path

    def test_newest_first_and_filtered_by_type(self, temp_dir, events):
        """Test ordering and build type filtering."""
        builder = GradleBuilder(ProjectLocations.for_root(temp_dir), events)
        now = time.time()
        old = self._touch(builder.output_dir / "MyApp-debug.apk", now - 100)
        new = self._touch(builder.output_dir / "debug" / "MyApp-debug-unaligned.apk", now)
        self._touch(builder.output_dir / "MyApp-release.apk", now)

        assert builder.find_output_apks(BuildType.DEBUG) == [new, old]

    def test_arch_preferred(self, temp_dir, events):
        """Test that architecture-specific packages win over universal ones."""
        builder = GradleBuilder(ProjectLocations.for_root(temp_dir), events)
        now = time.time()
        self._touch(builder.output_dir / "MyApp-debug.apk", now)
        x86 = self._touch(builder.output_dir / "MyApp-x86-debug.apk", now - 10)

        assert builder.find_output_apks(BuildType.DEBUG, "x86") == [x86]
        assert len(builder.find_output_apks(BuildType.DEBUG, "arm")) == 2

    def test_missing_output_directory(self, temp_dir, events):
        builder = StudioBuilder(ProjectLocations.for_root(temp_dir), events)
        assert builder.find_output_apks(BuildType.RELEASE) == []
