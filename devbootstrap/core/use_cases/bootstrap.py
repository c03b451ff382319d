"""
Bootstrap use case — one full run from CLI options to an outcome.

Builds the frozen run config, detects the execution context, wires the
registry, stage resolver and gate, and hands everything to the
PhaseExecutionEngine.
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Iterable
from dataclasses import dataclass
from pathlib import Path

from devbootstrap.adapters.tools.registry import ToolRegistry, build_registry
from devbootstrap.core.config.loader import BootstrapSettings, load_settings
from devbootstrap.core.detection.environment import detect_execution_context
from devbootstrap.core.engine.executor import EngineOutcome, PhaseExecutionEngine
from devbootstrap.core.engine.gate import ContinuationGate
from devbootstrap.core.engine.phase_range import parse_phase
from devbootstrap.core.engine.stage_target import (
    RegistryPrerequisiteValidator,
    StageTargetResolver,
)
from devbootstrap.core.engine.stages import resolve_stage_index, resolve_stage_name
from devbootstrap.core.errors import BootstrapError
from devbootstrap.core.models.context import ExecutionContext
from devbootstrap.core.models.phase import PhaseId
from devbootstrap.core.models.run_config import BootstrapRunConfig, Mode
from devbootstrap.core.phases import PHASE_ENTRIES, PhaseRequest
from devbootstrap.core.phases.request import LoopChooser

logger = logging.getLogger(__name__)


def build_run_config(
    mode: str | None = None,
    start_from_phase: int | str | None = None,
    end_at_phase: int | str | None = None,
    start_from_stage: int | str | None = None,
    end_at_stage: int | str | None = None,
    skip_stages: Iterable[str] | None = None,
    only_stage: str | None = None,
    check_only: bool = False,
    what_if: bool = False,
    no_wsl: bool = False,
    loop_name: str | None = None,
    project_name: str | None = None,
    project_path: str | None = None,
) -> BootstrapRunConfig:
    """Normalise raw CLI input into a frozen BootstrapRunConfig.

    Phases may be given by number or name, stages by index or name,
    and ``skip_stages`` entries may be comma-separated lists.

    Raises:
        UnknownPhaseError: For a phase outside 1-3.
        UnknownStageError: For a stage name that is not in the catalog.
    """
    resolved_mode = Mode.parse(mode)
    if mode and resolved_mode.value != mode.strip().lower():
        logger.warning("Unknown mode %r; running in full mode", mode)

    skips: set[str] = set()
    for entry in skip_stages or ():
        for name in entry.split(","):
            if name.strip():
                skips.add(resolve_stage_name(name).subtype or name.strip().lower())

    return BootstrapRunConfig(
        mode=resolved_mode,
        start_from_phase=parse_phase(start_from_phase) if start_from_phase else 1,
        end_at_phase=parse_phase(end_at_phase) if end_at_phase else 3,
        start_from_stage=resolve_stage_index(start_from_stage) if start_from_stage else 1,
        end_at_stage=resolve_stage_index(end_at_stage) if end_at_stage else 0,
        skip_stages=frozenset(skips),
        target_stage=resolve_stage_name(only_stage) if only_stage else None,
        check_only=check_only,
        what_if=what_if,
        no_wsl=no_wsl,
        loop_name=loop_name,
        project_name=project_name,
        project_path=project_path,
    )


@dataclass
class BootstrapOutcome:
    """Result of a bootstrap run."""

    outcome: EngineOutcome | None = None
    context: ExecutionContext | None = None
    config: BootstrapRunConfig | None = None
    error: str | None = None

    @property
    def exit_code(self) -> int:
        if self.error:
            return 1
        return self.outcome.exit_code if self.outcome else 1

    def to_dict(self) -> dict:
        result: dict = {}
        if self.error:
            result["error"] = self.error
            return result

        if self.context:
            result["context"] = self.context.model_dump(mode="json")
        if self.config:
            result["config"] = self.config.model_dump(mode="json")
        if self.outcome:
            result.update(self.outcome.to_dict())
        return result


def run_bootstrap(
    config: BootstrapRunConfig,
    config_path: Path | None = None,
    mock_mode: bool = False,
    ctx: ExecutionContext | None = None,
    settings: BootstrapSettings | None = None,
    registry: ToolRegistry | None = None,
    gate: ContinuationGate | None = None,
    choose_loop: LoopChooser | None = None,
    runner: Callable | None = None,
) -> BootstrapOutcome:
    """Run the bootstrap for ``config``.

    Args:
        config: The frozen run configuration.
        config_path: Optional explicit path to devbootstrap.yml.
        mock_mode: Replace every installer with a MockTool.
        ctx: Execution context; detected when None.
        settings: Pre-loaded settings; loaded from ``config_path`` when None.
        registry: Pre-built tool registry (tests).
        gate: Continuation gate; prompts on the terminal when None.
        choose_loop: Interactive loop chooser for the selection stage.
        runner: Command runner for project tooling (tests).

    Returns:
        BootstrapOutcome; ``error`` is set for configuration problems.
    """
    result = BootstrapOutcome(config=config)

    # ── Load settings ────────────────────────────────────────────
    if settings is None:
        try:
            settings = load_settings(config_path)
        except BootstrapError as e:
            result.error = str(e)
            return result

    # ── Detect context ───────────────────────────────────────────
    if ctx is None:
        ctx = detect_execution_context()
    if ctx.is_windows and settings.wsl_distro:
        ctx = ctx.model_copy(update={"distro_name": settings.wsl_distro})
    result.context = ctx
    logger.info("Execution context: %s", ctx.describe())

    # ── Wire collaborators ───────────────────────────────────────
    if registry is None:
        registry = build_registry(settings, mock=mock_mode)
    resolver = StageTargetResolver(RegistryPrerequisiteValidator(registry, ctx))

    def request_for(phase: PhaseId, run_config: BootstrapRunConfig) -> PhaseRequest:
        return PhaseRequest.from_config(
            phase,
            run_config,
            ctx=ctx,
            registry=registry,
            stage_resolver=resolver,
            settings=settings,
            choose_loop=choose_loop,
            runner=runner,
        )

    engine = PhaseExecutionEngine(
        PHASE_ENTRIES,
        gate=gate,
        stage_resolver=resolver,
        request_factory=request_for,
        platform="windows" if ctx.is_windows else "linux",
    )

    # ── Execute ──────────────────────────────────────────────────
    result.outcome = engine.run(config)
    return result
