"""Core infrastructure components for cordova-android."""

from .config import Config, get_config
from .exceptions import (
    BuildToolError,
    CordovaError,
    DeviceError,
    ManifestError,
    PluginError,
    ProjectExistsError,
    ToolNotFoundError,
    ValidationError,
)
from .logging import PlatformEvents, get_logger, setup_logging

__all__ = [
    "Config",
    "get_config",
    "BuildToolError",
    "CordovaError",
    "DeviceError",
    "ManifestError",
    "PluginError",
    "ProjectExistsError",
    "ToolNotFoundError",
    "ValidationError",
    "PlatformEvents",
    "get_logger",
    "setup_logging",
]
