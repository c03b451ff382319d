"""
Domain models — Pydantic types for the bootstrapper.

All models are re-exported here for convenient access:

    from devbootstrap.core.models import BootstrapRunConfig, PhaseResult, ToolResult
"""

from devbootstrap.core.models.context import Environment, ExecutionContext
from devbootstrap.core.models.phase import ErrorKind, PhaseId, PhaseResult, Summary
from devbootstrap.core.models.run_config import (
    BootstrapRunConfig,
    Mode,
    TargetStageInfo,
)
from devbootstrap.core.models.tool import (
    ComplianceResult,
    ExecutionMethod,
    ImplementationSide,
    RoutingDecision,
    ToolResult,
    VersionRequirement,
)

__all__ = [
    # run_config.py
    "BootstrapRunConfig",
    # tool.py
    "ComplianceResult",
    # context.py
    "Environment",
    # phase.py
    "ErrorKind",
    "ExecutionContext",
    "ExecutionMethod",
    "ImplementationSide",
    "Mode",
    "PhaseId",
    "PhaseResult",
    "RoutingDecision",
    "Summary",
    "TargetStageInfo",
    "ToolResult",
    "VersionRequirement",
]
