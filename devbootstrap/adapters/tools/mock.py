"""
Mock tool — universal test double for installers.

Used by ``run --mock`` and by the test suite to drive the orchestrator
without touching the host.  Configurable per instance: installed or
not, compliant or not, install succeeds or fails.
"""

from __future__ import annotations

from devbootstrap.adapters.tools.base import ToolInstaller
from devbootstrap.core.models.tool import ComplianceResult, ToolResult


class MockTool(ToolInstaller):
    """Installer double that records every call."""

    def __init__(
        self,
        tool: str = "mock",
        platform: str = "linux",
        installed: bool = True,
        version: str = "1.0.0",
        fail_install: bool = False,
    ):
        self._tool = tool
        self._platform = platform
        self._installed = installed
        self._version = version
        self._fail_install = fail_install
        self._call_log: list[tuple[str, dict]] = []

    @property
    def name(self) -> str:
        return self._tool

    @property
    def platform(self) -> str:
        return self._platform

    @property
    def call_log(self) -> list[tuple[str, dict]]:
        """``(operation, arguments)`` for every call received."""
        return self._call_log

    @property
    def call_count(self) -> int:
        return len(self._call_log)

    @property
    def install_count(self) -> int:
        return sum(1 for op, _ in self._call_log if op == "install")

    def set_installed(self, installed: bool) -> None:
        self._installed = installed

    def set_failure(self, fail: bool = True) -> None:
        self._fail_install = fail

    def test(self, detailed: bool = False) -> ComplianceResult:
        self._call_log.append(("test", {"detailed": detailed}))
        if not self._installed:
            return ComplianceResult(message=f"[mock] {self._tool} not installed")
        return ComplianceResult(
            installed=True,
            version=self._version,
            compliant=True,
            message=f"[mock] {self._tool} {self._version}",
        )

    def install(self, check_only: bool = False, what_if: bool = False) -> ToolResult:
        self._call_log.append(("install", {"check_only": check_only, "what_if": what_if}))
        if self._installed:
            return ToolResult.ok(f"[mock] {self._tool} already installed", tool=self._tool)
        if check_only:
            return ToolResult.fail(f"[mock] {self._tool} not installed (check only)", tool=self._tool)
        if what_if:
            return ToolResult.ok(f"[mock] would install {self._tool}", tool=self._tool)
        if self._fail_install:
            return ToolResult.fail(f"[mock] {self._tool} install failed", tool=self._tool)
        self._installed = True
        return ToolResult.ok(f"[mock] {self._tool} installed", tool=self._tool)

    def reset(self) -> None:
        """Clear the call log."""
        self._call_log.clear()
