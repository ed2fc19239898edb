"""Platform services: scaffolding, manifest editing, plugins, builds and deployment."""

from .builders import Builder, GradleBuilder, StudioBuilder, get_builder
from .manifest import AndroidManifest
from .plugins import PluginManager
from .process import CommandResult, run_command
from .project import AndroidProject, ProjectProperties

__all__ = [
    "Builder",
    "GradleBuilder",
    "StudioBuilder",
    "get_builder",
    "AndroidManifest",
    "PluginManager",
    "CommandResult",
    "run_command",
    "AndroidProject",
    "ProjectProperties",
]
