"""
Configuration management for cordova-android.

Provides centralized, type-safe configuration with environment variable overrides
and sensible defaults for the external Android toolchain.
"""

from __future__ import annotations

import os
from functools import lru_cache
from pathlib import Path
from typing import Literal

from dotenv import load_dotenv
from pydantic import BaseModel, Field

# Bundled project, framework and script templates
TEMPLATES_DIR = Path(__file__).resolve().parent.parent / "templates"

# Load .env file if it exists (looks in cwd and parent directories)
load_dotenv()


def _default_sdk_root() -> Path | None:
    value = os.environ.get("ANDROID_SDK_ROOT") or os.environ.get("ANDROID_HOME")
    return Path(value).expanduser() if value else None


def _default_java_home() -> Path | None:
    value = os.environ.get("JAVA_HOME")
    return Path(value).expanduser() if value else None


class ToolsConfig(BaseModel):
    """External tools configuration."""

    android_sdk_root: Path | None = Field(
        default_factory=_default_sdk_root,
        description="Android SDK root path (ANDROID_SDK_ROOT or ANDROID_HOME)",
    )
    java_home: Path | None = Field(
        default_factory=_default_java_home, description="JDK installation (JAVA_HOME)"
    )
    gradle_path: Path | None = Field(
        default=None, description="Gradle binary used when the project has no wrapper"
    )


class BuildSettings(BaseModel):
    """Gradle and device tuning knobs."""

    gradle_timeout_seconds: int = Field(default=1800, ge=60, description="Gradle invocation timeout")
    gradle_args: list[str] = Field(
        default_factory=list, description="Extra arguments appended to every gradle call"
    )
    emulator_boot_timeout_seconds: int = Field(
        default=300, ge=30, description="How long to wait for a started emulator to boot"
    )
    adb_timeout_seconds: int = Field(default=300, ge=10, description="Timeout for adb install/launch")


class Config(BaseModel):
    """Root configuration for cordova-android."""

    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = Field(
        default="INFO", description="Logging level"
    )
    tools: ToolsConfig = Field(default_factory=ToolsConfig)
    build: BuildSettings = Field(default_factory=BuildSettings)

    model_config = {"extra": "ignore"}

    @classmethod
    def from_env(cls) -> Config:
        """Create configuration from environment variables."""
        gradle_path = os.environ.get("CDV_ANDROID_GRADLE")
        gradle_args = os.environ.get("CDV_ANDROID_GRADLE_ARGS", "")
        return cls(
            log_level=os.environ.get("CDV_ANDROID_LOG_LEVEL", "INFO"),  # type: ignore
            tools=ToolsConfig(
                gradle_path=Path(gradle_path) if gradle_path else None,
            ),
            build=BuildSettings(
                gradle_timeout_seconds=int(os.environ.get("CDV_ANDROID_GRADLE_TIMEOUT", "1800")),
                gradle_args=gradle_args.split(),
            ),
        )


@lru_cache(maxsize=1)
def get_config() -> Config:
    """Get cached configuration instance."""
    return Config.from_env()
