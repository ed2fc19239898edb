"""
Custom exception hierarchy for cordova-android.

All exceptions inherit from CordovaError so callers driving the platform
lifecycle can handle every failure in one place. Each exception type carries
context for debugging and logging.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any


@dataclass
class CordovaError(Exception):
    """Base exception for all cordova-android errors."""

    message: str
    context: dict[str, Any] = field(default_factory=dict)
    cause: Exception | None = None

    def __str__(self) -> str:
        ctx = f" | context: {self.context}" if self.context else ""
        cause = f" | caused by: {self.cause}" if self.cause else ""
        return f"{self.message}{ctx}{cause}"


@dataclass
class ValidationError(CordovaError):
    """Raised when project input fails validation before any mutation."""

    field_name: str | None = None
    actual_value: Any = None

    def __str__(self) -> str:
        base = super().__str__()
        if self.field_name:
            return f"Validation failed for '{self.field_name}': {base}"
        return f"Validation failed: {base}"


@dataclass
class ProjectExistsError(ValidationError):
    """Raised when a project is created over an existing destination."""

    def __str__(self) -> str:
        return f"{self.message} ({self.actual_value})"


@dataclass
class ManifestError(CordovaError):
    """Raised when an AndroidManifest.xml cannot be loaded or is malformed."""

    manifest_path: str = ""

    def __str__(self) -> str:
        return f"{self.message}: {self.manifest_path}"


@dataclass
class BuildToolError(CordovaError):
    """Raised when an external tool (gradle, adb, emulator) exits non-zero.

    The raw diagnostic output of the tool is kept on the exception and is
    part of its string form.
    """

    tool: str = ""
    returncode: int = 0
    output: str = ""

    def __str__(self) -> str:
        base = super().__str__()
        header = f"[{self.tool}] exited with code {self.returncode}: {base}"
        if self.output:
            return f"{header}\n{self.output}"
        return header


@dataclass
class ToolNotFoundError(CordovaError):
    """Raised when a required external tool is not available."""

    tool_name: str = ""
    expected_path: str = ""
    install_hint: str = ""

    def __str__(self) -> str:
        hint = f" Install hint: {self.install_hint}" if self.install_hint else ""
        return f"Tool '{self.tool_name}' not found at '{self.expected_path}'.{hint}"


@dataclass
class DeviceError(CordovaError):
    """Raised when no suitable device or emulator can be used for a run."""

    serial: str = ""


@dataclass
class PluginError(CordovaError):
    """Raised when a plugin cannot be installed into or removed from a project."""

    plugin_id: str = ""

    def __str__(self) -> str:
        base = super().__str__()
        if self.plugin_id:
            return f"[Plugin: {self.plugin_id}] {base}"
        return base
