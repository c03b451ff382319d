"""
PhaseRequest — the excerpt of a run a phase entry point receives.

Phases never see the whole BootstrapRunConfig.  The engine builds one
request per phase with the stages planned for it and the services it
routes through.
"""

from __future__ import annotations

from collections.abc import Callable, Sequence
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

from devbootstrap.core.config.loader import BootstrapSettings
from devbootstrap.core.engine.stages import StageSpec, plan_stages
from devbootstrap.core.models.context import Environment, ExecutionContext
from devbootstrap.core.models.phase import PhaseId
from devbootstrap.core.models.run_config import BootstrapRunConfig

LoopChooser = Callable[[Sequence[str]], str]


@dataclass(frozen=True)
class PhaseRequest:
    """Everything one phase entry point needs, and nothing more."""

    phase: PhaseId
    stages: tuple[StageSpec, ...] = ()
    ctx: ExecutionContext = field(
        default_factory=lambda: ExecutionContext(environment=Environment.LINUX_NATIVE),
    )

    check_only: bool = False
    what_if: bool = False
    no_wsl: bool = False

    loop_name: str | None = None
    project_name: str | None = None
    project_path: str | None = None

    # Stage name to recorded status, filled in as phase 3 progresses
    stage_outcomes: dict[str, str] = field(default_factory=dict)

    # Services
    registry: Any = None
    stage_resolver: Any = None
    settings: BootstrapSettings = field(default_factory=BootstrapSettings)
    choose_loop: LoopChooser | None = None
    runner: Callable[..., Any] | None = None

    @property
    def project_dir(self) -> Path | None:
        if not self.project_name:
            return None
        return Path(self.project_path or ".").expanduser() / self.project_name

    @property
    def interactive(self) -> bool:
        return not (self.check_only or self.what_if) and self.choose_loop is not None

    @classmethod
    def from_config(cls, phase: PhaseId, config: BootstrapRunConfig, **services: Any) -> PhaseRequest:
        """Excerpt ``config`` for ``phase``; ``services`` fill the service fields."""
        return cls(
            phase=phase,
            stages=tuple(plan_stages(phase, config)),
            check_only=config.check_only,
            what_if=config.what_if,
            no_wsl=config.no_wsl,
            loop_name=config.loop_name,
            project_name=config.project_name,
            project_path=config.project_path,
            **services,
        )
