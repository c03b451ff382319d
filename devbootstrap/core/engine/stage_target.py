"""
Stage targeting — isolate one stage and verify it may run.

``resolve_boundaries`` collapses the phase window onto the target's
phase.  ``resolve_prerequisites`` walks the stage's dependencies in
declared order and stops at the first unmet one; nothing of the stage
is executed in that case.
"""

from __future__ import annotations

import logging
from typing import Protocol

from devbootstrap.core.engine.phase_range import PhaseRange
from devbootstrap.core.engine.stages import (
    Dependency,
    OptionDependency,
    PhaseDependency,
    ProjectDirectoryDependency,
    StageDependency,
    StageSpec,
    ToolDependency,
    get_stage,
    stages_for,
)
from devbootstrap.core.models.context import ExecutionContext
from devbootstrap.core.models.run_config import BootstrapRunConfig, TargetStageInfo

logger = logging.getLogger(__name__)


class ToolTester(Protocol):
    def test(self, name: str, ctx: ExecutionContext, force_wsl: bool = False): ...


class PrerequisiteValidator(Protocol):
    """Checks one dependency; returns ``(satisfied, reason)``."""

    def check(self, dependency: Dependency, config: BootstrapRunConfig) -> tuple[bool, str]: ...


class RegistryPrerequisiteValidator:
    """Validates dependencies against live tool tests and the filesystem.

    In what-if runs, tool, phase and directory dependencies are assumed:
    the stages that would satisfy them were only described, not executed.

    Stage dependencies are read from ``stage_outcomes`` on the request
    (stage name to recorded status).  A stage that is not part of this
    run does not block a later one.
    """

    def __init__(self, tools: ToolTester, ctx: ExecutionContext):
        self._tools = tools
        self._ctx = ctx

    def check(self, dependency: Dependency, config: BootstrapRunConfig) -> tuple[bool, str]:
        if isinstance(dependency, OptionDependency):
            if getattr(config, dependency.option, None):
                return True, ""
            return False, f"{dependency.describe()} is required"

        if isinstance(dependency, StageDependency):
            status = (getattr(config, "stage_outcomes", None) or {}).get(dependency.stage)
            if status is None:
                return True, f"stage '{dependency.stage}' not part of this run"
            if status == "ok":
                return True, ""
            return False, f"stage '{dependency.stage}' did not succeed ({status})"

        if config.what_if and isinstance(
            dependency, (ToolDependency, PhaseDependency, ProjectDirectoryDependency),
        ):
            return True, f"{dependency.describe()} (assumed for what-if)"

        if isinstance(dependency, ToolDependency):
            return self._check_tool(dependency.tool)

        if isinstance(dependency, PhaseDependency):
            for stage in stages_for(dependency.phase):
                if stage.windows_only and not self._ctx.is_windows:
                    continue
                for tool in stage.tools:
                    ok, reason = self._check_tool(tool)
                    if not ok:
                        return False, f"{dependency.describe()}: {reason}"
            return True, ""

        if isinstance(dependency, ProjectDirectoryDependency):
            project_dir = config.project_dir
            if project_dir is not None and project_dir.is_dir():
                return True, ""
            return False, f"project directory {project_dir or '(no --project-name)'} does not exist"

        return False, f"unknown dependency {dependency!r}"

    def _check_tool(self, tool: str) -> tuple[bool, str]:
        result = self._tools.test(tool, self._ctx)
        if result.success:
            return True, ""
        return False, f"{tool} is not compliant ({result.message})"


class StageTargetResolver:
    """Resolves stage targets and their prerequisites."""

    def __init__(self, validator: PrerequisiteValidator):
        self._validator = validator
        self.last_failure: str | None = None

    def resolve_boundaries(self, target: TargetStageInfo) -> PhaseRange:
        return PhaseRange(target.phase, target.phase)

    def resolve_prerequisites(self, target: TargetStageInfo, config: BootstrapRunConfig) -> bool:
        """True iff every dependency of the targeted stage is satisfied."""
        stage = get_stage(target.subtype)
        if stage is None:
            # Whole-phase target: no stage-level dependencies
            self.last_failure = None
            return True
        return self.check_stage(stage, config)

    def check_stage(self, stage: StageSpec, config: BootstrapRunConfig) -> bool:
        """Same check for a stage entered during normal sequencing."""
        self.last_failure = None
        for dependency in stage.dependencies:
            ok, reason = self._validator.check(dependency, config)
            if not ok:
                self.last_failure = f"{stage.name}: {reason}"
                logger.warning("Prerequisite not met for stage %s — %s", stage.name, reason)
                return False
            if reason:
                logger.debug("Stage %s: %s", stage.name, reason)
        return True
