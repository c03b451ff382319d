"""
Stage catalog — the sub-units of each phase, in declared order.

Each stage names the tools it routes and the dependencies that must
hold before it may be entered.  Phase 3 stages are numbered so that
``--start-from-stage`` / ``--end-at-stage`` can address them.
"""

from __future__ import annotations

from dataclasses import dataclass

from devbootstrap.core.errors import UnknownStageError
from devbootstrap.core.models.phase import PhaseId
from devbootstrap.core.models.run_config import BootstrapRunConfig, TargetStageInfo

# ── Dependencies ────────────────────────────────────────────────


@dataclass(frozen=True)
class ToolDependency:
    """A tool must be installed and compliant."""

    tool: str

    def describe(self) -> str:
        return f"tool '{self.tool}' installed"


@dataclass(frozen=True)
class PhaseDependency:
    """Every tool of an earlier phase must be compliant."""

    phase: PhaseId

    def describe(self) -> str:
        return f"phase {int(self.phase)} ({self.phase.title}) completed"


@dataclass(frozen=True)
class OptionDependency:
    """A run option must be set."""

    option: str

    def describe(self) -> str:
        return f"--{self.option.replace('_', '-')} provided"


@dataclass(frozen=True)
class ProjectDirectoryDependency:
    """The project directory must exist."""

    def describe(self) -> str:
        return "project directory exists"


@dataclass(frozen=True)
class StageDependency:
    """An earlier stage of the same phase must have succeeded in this run."""

    stage: str

    def describe(self) -> str:
        return f"stage '{self.stage}' succeeded"


Dependency = ToolDependency | PhaseDependency | OptionDependency | ProjectDirectoryDependency | StageDependency


# ── Stages ──────────────────────────────────────────────────────


@dataclass(frozen=True)
class StageSpec:
    name: str
    phase: PhaseId
    index: int
    description: str
    tools: tuple[str, ...] = ()
    dependencies: tuple[Dependency, ...] = ()
    windows_only: bool = False


STAGES: tuple[StageSpec, ...] = (
    StageSpec(
        name="prerequisites",
        phase=PhaseId.CORE,
        index=1,
        description="Git, Git LFS and Python",
        tools=("git", "git-lfs", "python"),
    ),
    StageSpec(
        name="wsl",
        phase=PhaseId.ENVIRONMENT,
        index=1,
        description="Windows Subsystem for Linux (Windows hosts only)",
        tools=("wsl",),
        windows_only=True,
    ),
    StageSpec(
        name="docker",
        phase=PhaseId.ENVIRONMENT,
        index=2,
        description="Docker engine / Docker Desktop",
        tools=("docker",),
    ),
    StageSpec(
        name="python-env",
        phase=PhaseId.ENVIRONMENT,
        index=3,
        description="Poetry and the Python toolchain",
        tools=("poetry",),
        dependencies=(ToolDependency("python"),),
    ),
    StageSpec(
        name="selection",
        phase=PhaseId.BOOTSTRAP,
        index=1,
        description="Select the loop (project template)",
        dependencies=(PhaseDependency(PhaseId.CORE),),
    ),
    StageSpec(
        name="project",
        phase=PhaseId.BOOTSTRAP,
        index=2,
        description="Create the project directory",
        dependencies=(
            StageDependency("selection"),
            OptionDependency("loop_name"),
            OptionDependency("project_name"),
        ),
    ),
    StageSpec(
        name="tools",
        phase=PhaseId.BOOTSTRAP,
        index=3,
        description="Initialise project tooling (git, poetry)",
        tools=("git", "poetry"),
        dependencies=(
            StageDependency("selection"),
            ToolDependency("git"),
            ToolDependency("poetry"),
            ProjectDirectoryDependency(),
        ),
    ),
)


def stages_for(phase: PhaseId | int) -> list[StageSpec]:
    """Stages of ``phase`` in declared order."""
    return [s for s in STAGES if s.phase == phase]


def get_stage(name: str | None) -> StageSpec | None:
    if not name:
        return None
    wanted = name.strip().lower()
    for stage in STAGES:
        if stage.name == wanted:
            return stage
    return None


def resolve_stage_name(name: str) -> TargetStageInfo:
    """Turn an ``--only-stage`` value into a TargetStageInfo.

    Accepts ``tools``, ``TOOLS``, or the qualified ``3:tools`` form.

    Raises:
        UnknownStageError: If no stage matches.
    """
    text = name.strip().lower()
    phase_hint: int | None = None
    if ":" in text:
        prefix, text = text.split(":", 1)
        if prefix.strip().isdigit():
            phase_hint = int(prefix)

    stage = get_stage(text)
    if stage is None or (phase_hint is not None and int(stage.phase) != phase_hint):
        known = ", ".join(s.name for s in STAGES)
        raise UnknownStageError(f"Unknown stage {name!r}. Known stages: {known}")

    return TargetStageInfo(phase=int(stage.phase), subtype=stage.name, original_stage_name=name)


def resolve_stage_index(value: int | str, phase: PhaseId = PhaseId.BOOTSTRAP) -> int:
    """Accept a stage number or a stage name of ``phase``, return its index.

    Raises:
        UnknownStageError: If the value addresses no stage of ``phase``.
    """
    candidates = stages_for(phase)
    if isinstance(value, int) or str(value).strip().isdigit():
        index = int(value)
        if index == 0 or any(s.index == index for s in candidates):
            return index
        raise UnknownStageError(
            f"Phase {int(phase)} has stages 1-{len(candidates)}, got {index}"
        )

    stage = get_stage(str(value))
    if stage is None or stage.phase != phase:
        known = ", ".join(s.name for s in candidates)
        raise UnknownStageError(f"Unknown phase {int(phase)} stage {value!r}. Known: {known}")
    return stage.index


def plan_stages(phase: PhaseId, config: BootstrapRunConfig) -> list[StageSpec]:
    """Stages of ``phase`` this run will attempt, in order.

    Honours the target stage, the phase 3 start/end window, and
    ``skip_stages``.
    """
    if config.target_stage is not None:
        if config.target_stage.phase != phase:
            return []
        if config.target_stage.subtype is None:
            return stages_for(phase)
        return [s for s in stages_for(phase) if s.name == config.target_stage.subtype]

    planned = stages_for(phase)
    if phase == PhaseId.BOOTSTRAP:
        planned = [
            s for s in planned
            if s.index >= config.start_from_stage
            and (config.end_at_stage <= 0 or s.index <= config.end_at_stage)
        ]
    return [s for s in planned if s.name not in config.skip_stages]
