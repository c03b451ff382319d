"""
Tool installer base — the contract between phases and installers.

Every tool (Git, Docker, Poetry, ...) exposes the same two operations:

    test(detailed)              → ComplianceResult
    install(check_only, what_if) → ToolResult

Installers NEVER raise; failures are captured in the result.  Calling
an installer with a params dict dispatches on ``params["action"]``,
which is what makes it routable by the PlatformRouter and reachable
through the WSL tunnel's ``tool run`` re-entry point.

To create a new installer:
    1. Subclass ToolInstaller
    2. Implement name, platform, test, install
    3. Register it in the ToolRegistry
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any

from devbootstrap.core.models.tool import ComplianceResult, ToolResult


class ToolInstaller(ABC):
    """Abstract base class for all tool installers."""

    @property
    @abstractmethod
    def name(self) -> str:
        """The tool identifier (e.g. 'git', 'poetry')."""

    @property
    @abstractmethod
    def platform(self) -> str:
        """'windows' or 'linux'."""

    @abstractmethod
    def test(self, detailed: bool = False) -> ComplianceResult:
        """Check whether the tool is installed and meets its version requirement."""

    @abstractmethod
    def install(self, check_only: bool = False, what_if: bool = False) -> ToolResult:
        """Make the tool compliant.

        ``check_only`` reports compliance without changing anything;
        ``what_if`` describes the changes that would be made.
        """

    def __call__(self, params: dict[str, Any]) -> ToolResult:
        action = params.get("action", "install")

        if action == "test":
            status = self.test(detailed=bool(params.get("detailed", False)))
            return ToolResult(
                success=status.compliant,
                message=status.message,
                exit_code=0 if status.compliant else 1,
                output=status.version or "",
                tool=self.name,
                details=status.model_dump(),
            )

        if action == "install":
            return self.install(
                check_only=bool(params.get("check_only", False)),
                what_if=bool(params.get("what_if", False)),
            )

        return ToolResult.fail(f"Unknown action {action!r} for {self.name}", tool=self.name)

    def __repr__(self) -> str:
        return f"<{self.__class__.__name__} name={self.name!r} platform={self.platform!r}>"
