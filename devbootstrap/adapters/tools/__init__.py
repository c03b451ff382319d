"""Tool installers and the registry that routes them."""

from devbootstrap.adapters.tools.base import ToolInstaller
from devbootstrap.adapters.tools.mock import MockTool
from devbootstrap.adapters.tools.registry import ToolEntry, ToolRegistry, build_registry

__all__ = [
    "MockTool",
    "ToolEntry",
    "ToolInstaller",
    "ToolRegistry",
    "build_registry",
]
