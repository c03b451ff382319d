"""
Shared stage runner for the tool-installing phases (1 and 2).

Every tool goes through the registry, so routing (direct or WSL
tunnel) is decided per call by the PlatformRouter.
"""

from __future__ import annotations

import logging
from typing import Any

from devbootstrap.core.engine.stages import StageSpec
from devbootstrap.core.models.phase import PhaseResult
from devbootstrap.core.models.tool import ToolResult
from devbootstrap.core.phases.request import PhaseRequest

logger = logging.getLogger(__name__)


def route_tool(request: PhaseRequest, tool: str, force_wsl: bool = False) -> ToolResult:
    """Install (or check, or describe) one tool through the registry."""
    if request.registry is None:
        return ToolResult.fail(f"No tool registry available for {tool}", tool=tool)
    return request.registry.install(
        tool,
        request.ctx,
        check_only=request.check_only,
        what_if=request.what_if,
        force_wsl=force_wsl,
    )


def tool_record(result: ToolResult) -> dict[str, Any]:
    return {
        "success": result.success,
        "message": result.message,
        "exit_code": result.exit_code,
        "method": result.method.value if result.method else None,
    }


def stage_skip_reason(request: PhaseRequest, stage: StageSpec) -> str | None:
    """Why ``stage`` does not apply to this run, or None."""
    if stage.windows_only and not request.ctx.is_windows:
        return "Windows only"
    if stage.windows_only and request.no_wsl and "wsl" in stage.tools:
        return "disabled by --no-wsl"
    return None


def run_tool_stages(request: PhaseRequest) -> PhaseResult:
    """Run each planned stage's tools; any failure fails the phase."""
    title = request.phase.title
    stages: dict[str, dict[str, Any]] = {}
    failed_tools: list[str] = []
    failed_stages: list[str] = []

    for stage in request.stages:
        reason = stage_skip_reason(request, stage)
        if reason:
            logger.info("Stage %s skipped (%s)", stage.name, reason)
            stages[stage.name] = {"status": "skipped", "reason": reason}
            continue

        resolver = request.stage_resolver
        if resolver is not None and not resolver.check_stage(stage, request):
            stages[stage.name] = {"status": "prerequisite_not_met", "reason": resolver.last_failure}
            failed_stages.append(stage.name)
            continue

        tools: dict[str, Any] = {}
        for tool in stage.tools:
            result = route_tool(request, tool)
            tools[tool] = tool_record(result)
            if not result.success:
                logger.warning("%s: %s", tool, result.message)
                failed_tools.append(tool)

        ok = all(t["success"] for t in tools.values())
        stages[stage.name] = {"status": "ok" if ok else "failed", "tools": tools}
        if not ok:
            failed_stages.append(stage.name)

    details: dict[str, Any] = {
        "stages": stages,
        "failed_tools": failed_tools,
        "failed_stages": failed_stages,
    }
    if request.what_if:
        details["what_if"] = True

    if failed_stages:
        names = ", ".join(failed_tools) or ", ".join(failed_stages)
        return PhaseResult.failure(title, f"Failed: {names}", details=details)

    ran = [name for name, s in stages.items() if s["status"] != "skipped"]
    if not ran:
        return PhaseResult.succeeded(title, "No stages to run", details=details)
    verb = "would be set up" if request.what_if else "compliant" if request.check_only else "ready"
    return PhaseResult.succeeded(title, f"{len(ran)} stage(s) {verb}", details=details)
