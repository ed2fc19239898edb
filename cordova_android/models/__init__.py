"""Data models for cordova-android."""

from .build import (
    BuilderKind,
    BuildArtifact,
    BuildOptions,
    BuildResult,
    BuildType,
    CleanOptions,
    CreateOptions,
    PrepareOptions,
    Requirement,
    RunOptions,
    UpdateOptions,
)
from .plugin import (
    AssetFile,
    ConfigFileChange,
    ConfigMunges,
    Framework,
    GraftedFragment,
    LibFile,
    PluginInfo,
    PluginInstallOptions,
    PluginUninstallOptions,
    ResourceFile,
    SourceFile,
)
from .project import (
    AppProject,
    PlatformInfo,
    ProjectConfig,
    ProjectLayout,
    ProjectLocations,
    detect_layout,
    validate_package_name,
    validate_project_name,
)

__all__ = [
    # Build
    "BuilderKind",
    "BuildArtifact",
    "BuildOptions",
    "BuildResult",
    "BuildType",
    "CleanOptions",
    "CreateOptions",
    "PrepareOptions",
    "Requirement",
    "RunOptions",
    "UpdateOptions",
    # Plugin
    "AssetFile",
    "ConfigFileChange",
    "ConfigMunges",
    "Framework",
    "GraftedFragment",
    "LibFile",
    "PluginInfo",
    "PluginInstallOptions",
    "PluginUninstallOptions",
    "ResourceFile",
    "SourceFile",
    # Project
    "AppProject",
    "PlatformInfo",
    "ProjectConfig",
    "ProjectLayout",
    "ProjectLocations",
    "detect_layout",
    "validate_package_name",
    "validate_project_name",
]
