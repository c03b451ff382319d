"""
Tool contract models — what installers and the router exchange.

Installers NEVER raise across the router boundary: they report
through ComplianceResult (test) and ToolResult (install), the same
way adapters return receipts.
"""

from __future__ import annotations

from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field


class ExecutionMethod(str, Enum):
    DIRECT = "direct"
    TUNNEL = "tunnel"


class ImplementationSide(str, Enum):
    WINDOWS = "windows"
    LINUX = "linux"


class RoutingDecision(BaseModel):
    """Which implementation runs, and how.  Computed per call, never stored."""

    model_config = ConfigDict(frozen=True)

    target: ImplementationSide
    method: ExecutionMethod
    reasoning: str = ""


class VersionRequirement(BaseModel):
    """Minimum and recommended versions for a tool."""

    minimum_version: str | None = None
    recommended_version: str | None = None


class ComplianceResult(BaseModel):
    """Outcome of testing whether a tool is installed and new enough."""

    installed: bool = False
    version: str | None = None
    compliant: bool = False
    message: str = ""


class ToolResult(BaseModel):
    """Outcome of a routed tool invocation."""

    success: bool
    message: str = ""
    exit_code: int = 0
    output: str = ""
    tool: str = ""
    method: ExecutionMethod | None = None
    details: dict[str, Any] = Field(default_factory=dict)

    @classmethod
    def ok(cls, message: str = "", **kwargs: Any) -> ToolResult:
        """Create a success result."""
        return cls(success=True, message=message, **kwargs)

    @classmethod
    def fail(cls, message: str, exit_code: int = 1, **kwargs: Any) -> ToolResult:
        """Create a failure result.  A failure never carries exit code 0."""
        return cls(
            success=False,
            message=message,
            exit_code=exit_code or 1,
            **kwargs,
        )
