"""
Tool registry — central dispatch for every tool operation.

The registry holds a ``(windows, linux)`` installer pair per tool and
sends every call through the PlatformRouter.  Phases never talk to
installers directly, always through the registry.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass

from devbootstrap.adapters.tools.base import ToolInstaller
from devbootstrap.adapters.tools.mock import MockTool
from devbootstrap.adapters.tools.package_manager import RecipeInstaller
from devbootstrap.adapters.tools.recipes import TOOL_RECIPES
from devbootstrap.core.config.loader import BootstrapSettings
from devbootstrap.core.models.context import ExecutionContext
from devbootstrap.core.models.tool import ToolResult
from devbootstrap.core.routing.router import PlatformRouter

logger = logging.getLogger(__name__)


@dataclass
class ToolEntry:
    """Platform-specific implementations of one tool."""

    name: str
    windows: ToolInstaller | None = None
    linux: ToolInstaller | None = None
    requires_linux: bool = False


class ToolRegistry:
    """Registry and router front-end for tool installers."""

    def __init__(self, router: PlatformRouter | None = None):
        self._entries: dict[str, ToolEntry] = {}
        self._router = router or PlatformRouter()

    @property
    def router(self) -> PlatformRouter:
        return self._router

    def register(self, entry: ToolEntry) -> None:
        if entry.name in self._entries:
            logger.warning("Overwriting existing tool: %s", entry.name)
        self._entries[entry.name] = entry
        logger.debug("Registered tool: %s", entry.name)

    def get(self, name: str) -> ToolEntry | None:
        return self._entries.get(name)

    def names(self) -> list[str]:
        return list(self._entries.keys())

    def local_installer(self, name: str, ctx: ExecutionContext) -> ToolInstaller | None:
        """The implementation that runs in-process for ``ctx`` (no tunnel)."""
        entry = self._entries.get(name)
        if entry is None:
            return None
        return entry.windows if ctx.is_windows else entry.linux

    def install(
        self,
        name: str,
        ctx: ExecutionContext,
        check_only: bool = False,
        what_if: bool = False,
        force_wsl: bool = False,
    ) -> ToolResult:
        """Route an install of ``name``."""
        return self._dispatch(
            name, ctx, force_wsl,
            {"action": "install", "check_only": check_only, "what_if": what_if},
        )

    def test(self, name: str, ctx: ExecutionContext, force_wsl: bool = False) -> ToolResult:
        """Route a compliance test of ``name``."""
        return self._dispatch(name, ctx, force_wsl, {"action": "test"})

    def _dispatch(
        self,
        name: str,
        ctx: ExecutionContext,
        force_wsl: bool,
        params: dict,
    ) -> ToolResult:
        entry = self._entries.get(name)
        if entry is None:
            return ToolResult.fail(f"No tool registered for '{name}'", tool=name)

        return self._router.route(
            name,
            entry.windows,
            entry.linux,
            ctx,
            force_wsl=force_wsl,
            params=params,
            requires_linux=entry.requires_linux,
        )


def build_registry(
    settings: BootstrapSettings,
    mock: bool = False,
    router: PlatformRouter | None = None,
) -> ToolRegistry:
    """Registry with every tool in TOOL_RECIPES.

    With ``mock=True`` every tool is a MockTool that reports itself
    installed, so a whole run can be rehearsed safely.  The default
    router tunnels with the same settings file and mock mode.
    """
    if router is None:
        router = PlatformRouter(config_path=settings.source_path, mock=mock)
    registry = ToolRegistry(router=router)

    for tool, recipe in TOOL_RECIPES.items():
        if mock:
            registry.register(ToolEntry(
                name=tool,
                windows=MockTool(tool, platform="windows"),
                linux=MockTool(tool, platform="linux") if "linux" in recipe else None,
                requires_linux=bool(recipe.get("requires_linux")),
            ))
            continue

        requirement = settings.get_version_requirement(tool)
        registry.register(ToolEntry(
            name=tool,
            windows=RecipeInstaller(tool, recipe, "windows", requirement) if "windows" in recipe else None,
            linux=RecipeInstaller(tool, recipe, "linux", requirement) if "linux" in recipe else None,
            requires_linux=bool(recipe.get("requires_linux")),
        ))

    return registry
