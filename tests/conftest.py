"""
Shared test fixtures and configuration.
"""

from datetime import UTC, datetime, timedelta

import pytest

from devbootstrap.adapters.tools.mock import MockTool
from devbootstrap.adapters.tools.registry import ToolEntry, ToolRegistry
from devbootstrap.adapters.tools.recipes import TOOL_RECIPES
from devbootstrap.core.models.context import Environment, ExecutionContext


@pytest.fixture
def linux_ctx() -> ExecutionContext:
    return ExecutionContext(environment=Environment.LINUX_NATIVE)


@pytest.fixture
def wsl_ctx() -> ExecutionContext:
    return ExecutionContext(environment=Environment.WSL_NATIVE, distro_name="Ubuntu")


@pytest.fixture
def windows_ctx() -> ExecutionContext:
    return ExecutionContext(
        environment=Environment.WINDOWS_NATIVE,
        can_invoke_wsl=True,
        distro_name="Ubuntu",
    )


@pytest.fixture
def mock_registry():
    """Factory: a registry of MockTools, optionally with some tools missing.

    Returns ``(registry, tools)`` where ``tools`` maps ``(name, platform)``
    to the MockTool instance so tests can inspect call logs.
    """

    def _make(
        missing: tuple[str, ...] = (),
        fail_install: tuple[str, ...] = (),
        router=None,
    ):
        registry = ToolRegistry(router=router)
        tools: dict[tuple[str, str], MockTool] = {}
        for name, recipe in TOOL_RECIPES.items():
            windows = MockTool(
                name, "windows",
                installed=name not in missing,
                fail_install=name in fail_install,
            )
            linux = None
            if "linux" in recipe:
                linux = MockTool(
                    name, "linux",
                    installed=name not in missing,
                    fail_install=name in fail_install,
                )
                tools[(name, "linux")] = linux
            tools[(name, "windows")] = windows
            registry.register(ToolEntry(name=name, windows=windows, linux=linux))
        return registry, tools

    return _make


class StepClock:
    """Deterministic clock: each call advances by ``step``."""

    def __init__(self, step: timedelta = timedelta(milliseconds=10)):
        self.now = datetime(2026, 1, 1, tzinfo=UTC)
        self.step = step
        self.calls = 0

    def __call__(self) -> datetime:
        self.calls += 1
        self.now += self.step
        return self.now


@pytest.fixture
def clock() -> StepClock:
    return StepClock()
