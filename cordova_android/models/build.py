"""
Build, run and requirement data models.

Includes the explicit option structures accepted by every lifecycle
operation, the build strategy selector, and the records returned to callers.
"""

from __future__ import annotations

from enum import Enum
from pathlib import Path

from pydantic import BaseModel, Field


class BuildType(str, Enum):
    """Gradle build configuration."""

    DEBUG = "debug"
    RELEASE = "release"


class BuilderKind(str, Enum):
    """Closed set of build strategies."""

    GRADLE = "gradle"
    STUDIO = "studio"


class CreateOptions(BaseModel):
    """Options recognized by project creation."""

    link: bool = Field(default=False, description="Symlink the shared CordovaLib instead of copying it")
    custom_template: Path | None = Field(
        default=None, description="Project template directory overriding the bundled one"
    )
    activity_name: str | None = Field(
        default=None, description="Launch activity name when the config does not set one"
    )
    android_studio: bool = Field(default=False, description="Generate the nested app/src/main layout")


class UpdateOptions(BaseModel):
    """Options recognized by project update."""

    link: bool = Field(default=False, description="Symlink the shared CordovaLib instead of copying it")


class PrepareOptions(BaseModel):
    """Options recognized by prepare."""

    skip_www: bool = Field(default=False, description="Leave web assets untouched")


class CleanOptions(BaseModel):
    """Options recognized by clean."""

    no_prepare: bool = Field(
        default=False, description="Keep prepared web assets; only remove build output"
    )


class BuildOptions(BaseModel):
    """Options recognized by build."""

    release: bool = Field(default=False, description="Build the release configuration")
    nobuild: bool = Field(default=False, description="Skip gradle; report existing packages only")
    archs: list[str] = Field(default_factory=list, description="CPU architecture to build for")
    gradle_args: list[str] = Field(default_factory=list, description="Extra gradle arguments")
    keystore: Path | None = Field(default=None, description="Release signing keystore")
    alias: str | None = Field(default=None, description="Keystore key alias")
    store_password: str | None = Field(default=None, description="Keystore password")
    password: str | None = Field(default=None, description="Key password")
    keystore_type: str | None = Field(default=None, description="Keystore type, e.g. jks or pkcs12")

    @property
    def build_type(self) -> BuildType:
        return BuildType.RELEASE if self.release else BuildType.DEBUG

    @property
    def arch(self) -> str | None:
        return self.archs[0] if self.archs else None


class RunOptions(BuildOptions):
    """Options recognized by run (a superset of build options)."""

    device: bool = Field(default=False, description="Deploy to a connected physical device")
    emulator: bool = Field(default=False, description="Deploy to an emulator")
    target: str | None = Field(default=None, description="Serial of the device to deploy to")


class BuildResult(BaseModel):
    """Raw outcome of a builder invocation."""

    build_type: BuildType
    build_method: BuilderKind
    apk_paths: list[Path] = Field(default_factory=list)


class BuildArtifact(BaseModel):
    """Application package produced by a build."""

    architecture: str | None = None
    build_type: BuildType
    build_method: BuilderKind
    path: Path
    type: str = "apk"


class Requirement(BaseModel):
    """Presence/version probe result for one toolchain component."""

    id: str
    name: str
    version: str | None = None
    installed: bool = False
    is_fatal: bool = True
    reason: str | None = Field(default=None, description="Why the requirement is not met")
