"""
Phase 3 — project bootstrap.

Stages, in order:

    selection   pick the loop (project template) from the catalog
    project     create <project_path>/<project_name> and its metadata file
    tools       git init the project and check git/poetry

A stage is entered only once its prerequisites hold; ``project`` and
``tools`` also need ``selection`` to have succeeded when it is part of
the run.  Failures here are non-fatal tool failures: they are recorded
per stage in ``details["stages"]``.
"""

from __future__ import annotations

import dataclasses
import logging
from pathlib import Path
from typing import Any

import yaml

from devbootstrap.adapters.shell.command import run_command
from devbootstrap.core.config.loader import LoopDefinition
from devbootstrap.core.engine.stages import StageSpec
from devbootstrap.core.models.phase import ErrorKind, PhaseResult, utc_now
from devbootstrap.core.phases.common import tool_record
from devbootstrap.core.phases.request import PhaseRequest
from devbootstrap.core.routing.tunnel import WSL_EXECUTABLE, to_wsl_path

logger = logging.getLogger(__name__)

METADATA_FILE = ".devbootstrap.yml"


class StageFailure(Exception):
    """A phase 3 stage could not complete."""


def run(request: PhaseRequest) -> PhaseResult:
    title = request.phase.title
    stages: dict[str, dict[str, Any]] = {}
    failed_tools: list[str] = []
    failed_stages: list[str] = []

    for stage in request.stages:
        request = dataclasses.replace(
            request, stage_outcomes={name: r["status"] for name, r in stages.items()},
        )
        resolver = request.stage_resolver
        if resolver is not None and not resolver.check_stage(stage, request):
            logger.warning("Stage %s not entered: %s", stage.name, resolver.last_failure)
            stages[stage.name] = {
                "status": "prerequisite_not_met",
                "reason": resolver.last_failure,
            }
            failed_stages.append(stage.name)
            continue

        handler = _STAGE_HANDLERS[stage.name]
        try:
            request, record = handler(request, stage)
        except StageFailure as e:
            logger.warning("Stage %s failed: %s", stage.name, e)
            record = {"status": "failed", "message": str(e)}

        failed_tools.extend(
            tool for tool, t in record.get("tools", {}).items() if not t["success"]
        )
        if record["status"] == "failed":
            record["error_kind"] = ErrorKind.NON_FATAL_TOOL_FAILURE.value
            failed_stages.append(stage.name)
        stages[stage.name] = record

    details: dict[str, Any] = {
        "stages": stages,
        "failed_tools": failed_tools,
        "failed_stages": failed_stages,
        "loop_name": request.loop_name,
        "project_dir": str(request.project_dir) if request.project_dir else None,
    }
    if failed_stages:
        return PhaseResult.failure(title, f"Stage(s) failed: {', '.join(failed_stages)}", details=details)
    if not stages:
        return PhaseResult.succeeded(title, "No stages to run", details=details)
    label = f"Project {request.project_name}" if request.project_name else "Project bootstrap"
    return PhaseResult.succeeded(title, f"{label} ready", details=details)


# ── Stages ──────────────────────────────────────────────────────


def _selection(request: PhaseRequest, stage: StageSpec) -> tuple[PhaseRequest, dict[str, Any]]:
    loops = request.settings.loops
    name = request.loop_name

    if not name:
        if request.interactive:
            name = request.choose_loop([loop.name for loop in loops])
        elif request.what_if:
            return request, {"status": "ok", "message": "Would prompt for a loop"}
        else:
            raise StageFailure("No loop selected; pass --loop-name")

    loop = _resolve_loop(request, name)
    logger.info("Selected loop: %s (%s)", loop.name, loop.platform)
    request = dataclasses.replace(request, loop_name=loop.name)
    return request, {"status": "ok", "loop": loop.name, "platform": loop.platform}


def _resolve_loop(request: PhaseRequest, name: str) -> LoopDefinition:
    """The catalog loop called ``name``, if it can be built on this host."""
    loop = request.settings.get_loop(name)
    if loop is None:
        known = ", ".join(known_loop.name for known_loop in request.settings.loops)
        raise StageFailure(f"Unknown loop {name!r}. Available: {known}")
    _check_loop_platform(request, loop)
    return loop


def _check_loop_platform(request: PhaseRequest, loop: LoopDefinition) -> None:
    ctx = request.ctx
    if loop.platform == "windows" and not ctx.is_windows:
        raise StageFailure(f"Loop {loop.name} needs a Windows host")
    if loop.platform == "linux" and ctx.is_windows:
        if request.no_wsl:
            raise StageFailure(f"Loop {loop.name} targets Linux but --no-wsl was given")
        if not ctx.can_invoke_wsl and not request.what_if:
            raise StageFailure(f"Loop {loop.name} targets Linux but no WSL distribution is available")


def _project(request: PhaseRequest, stage: StageSpec) -> tuple[PhaseRequest, dict[str, Any]]:
    project_dir = request.project_dir
    if project_dir is None:
        raise StageFailure("No project name given; pass --project-name")
    if request.loop_name:
        _resolve_loop(request, request.loop_name)
    metadata = project_dir / METADATA_FILE

    if request.what_if:
        return request, {"status": "ok", "message": f"Would create {project_dir}"}
    if request.check_only:
        if project_dir.is_dir():
            return request, {"status": "ok", "message": f"{project_dir} exists"}
        raise StageFailure(f"{project_dir} does not exist")

    if metadata.is_file():
        return request, {"status": "ok", "message": f"{project_dir} already bootstrapped"}

    try:
        project_dir.mkdir(parents=True, exist_ok=True)
        metadata.write_text(
            yaml.safe_dump(
                {
                    "project": request.project_name,
                    "loop": request.loop_name,
                    "environment": request.ctx.environment.value,
                    "created": utc_now().isoformat(),
                },
                sort_keys=False,
            ),
            encoding="utf-8",
        )
    except OSError as e:
        raise StageFailure(f"Cannot create {project_dir}: {e}") from e

    logger.info("Created project at %s", project_dir)
    return request, {"status": "ok", "message": f"Created {project_dir}", "path": str(project_dir)}


def _tools(request: PhaseRequest, stage: StageSpec) -> tuple[PhaseRequest, dict[str, Any]]:
    project_dir = request.project_dir
    if project_dir is None:
        raise StageFailure("No project name given; pass --project-name")
    if request.loop_name:
        _resolve_loop(request, request.loop_name)

    force_wsl = _targets_wsl(request)
    tools: dict[str, Any] = {}
    if request.registry is not None:
        for tool in stage.tools:
            tools[tool] = tool_record(request.registry.test(tool, request.ctx, force_wsl=force_wsl))

    record: dict[str, Any] = {"tools": tools, "force_wsl": force_wsl}

    if request.what_if:
        record["git"] = f"Would run git init in {project_dir}"
    elif request.check_only:
        record["git"] = "initialised" if (project_dir / ".git").exists() else "not initialised"
    elif (project_dir / ".git").exists():
        record["git"] = "already initialised"
    else:
        runner = request.runner or run_command
        result = runner(_git_init_argv(project_dir, request, force_wsl), cwd=str(project_dir))
        if not result.ok:
            record.update(status="failed", message=f"git init failed: {result.summary()}")
            return request, record
        record["git"] = "initialised"

    ok = all(t["success"] for t in tools.values())
    record["status"] = "ok" if ok else "failed"
    if not ok:
        record["message"] = "Tool check failed: " + ", ".join(t for t, r in tools.items() if not r["success"])
    return request, record


def _targets_wsl(request: PhaseRequest) -> bool:
    """Whether project tooling runs inside WSL for this run."""
    if not request.ctx.is_windows or request.no_wsl or not request.loop_name:
        return False
    loop = request.settings.get_loop(request.loop_name)
    return loop is not None and loop.platform == "linux"


def _git_init_argv(project_dir: Path, request: PhaseRequest, force_wsl: bool) -> list[str]:
    if not force_wsl:
        return ["git", "init"]
    argv = [WSL_EXECUTABLE]
    if request.ctx.distro_name:
        argv.extend(["-d", request.ctx.distro_name])
    try:
        linux_dir = to_wsl_path(project_dir.resolve())
    except ValueError as e:
        raise StageFailure(str(e)) from e
    argv.extend(["--cd", linux_dir, "--exec", "git", "init"])
    return argv


_STAGE_HANDLERS = {
    "selection": _selection,
    "project": _project,
    "tools": _tools,
}
