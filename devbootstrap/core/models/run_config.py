"""
BootstrapRunConfig — the single source of truth for a run.

Built once from caller input (see ``use_cases.bootstrap.build_run_config``)
and frozen.  No component mutates it; phases receive a PhaseRequest
excerpt rather than the whole object.
"""

from __future__ import annotations

from enum import Enum
from pathlib import Path

from pydantic import BaseModel, ConfigDict, Field, field_validator


class Mode(str, Enum):
    """Named presets selecting a phase range."""

    CORE = "core"
    ENVIRONMENT = "environment"
    BOOTSTRAP = "bootstrap"
    FULL = "full"

    @classmethod
    def parse(cls, value: str | Mode | None) -> Mode:
        """Map any input to a mode; unknown or empty values mean FULL."""
        if isinstance(value, Mode):
            return value
        if not value:
            return cls.FULL
        try:
            return cls(value.strip().lower())
        except ValueError:
            return cls.FULL


MODE_DESCRIPTIONS: dict[Mode, str] = {
    Mode.CORE: "Core prerequisites only (phase 1)",
    Mode.ENVIRONMENT: "Environment setup only (phase 2)",
    Mode.BOOTSTRAP: "Project bootstrap only (phase 3)",
    Mode.FULL: "Complete setup, phases 1 through 3 (default)",
}


class TargetStageInfo(BaseModel):
    """Identifies exactly one stage for isolated execution."""

    model_config = ConfigDict(frozen=True)

    phase: int
    subtype: str | None = None
    original_stage_name: str


class BootstrapRunConfig(BaseModel):
    """Caller-supplied settings for one run.  Read-only after construction."""

    model_config = ConfigDict(frozen=True)

    mode: Mode = Mode.FULL
    start_from_phase: int = 1
    end_at_phase: int = 3
    start_from_stage: int = 1
    end_at_stage: int = 0                       # 0 = through the last stage
    skip_stages: frozenset[str] = Field(default_factory=frozenset)
    target_stage: TargetStageInfo | None = None

    check_only: bool = False
    what_if: bool = False
    no_wsl: bool = False

    loop_name: str | None = None
    project_name: str | None = None
    project_path: str | None = None

    @field_validator("mode", mode="before")
    @classmethod
    def _parse_mode(cls, value: object) -> Mode:
        return Mode.parse(value)  # type: ignore[arg-type]

    @field_validator("skip_stages", mode="before")
    @classmethod
    def _normalize_skips(cls, value: object) -> frozenset[str]:
        if not value:
            return frozenset()
        if isinstance(value, str):
            value = value.split(",")
        return frozenset(s.strip().lower() for s in value if s and s.strip())  # type: ignore[union-attr]

    @property
    def project_dir(self) -> Path | None:
        """Where the project stage creates the project, if a name was given."""
        if not self.project_name:
            return None
        return Path(self.project_path or ".").expanduser() / self.project_name

    @property
    def has_start_override(self) -> bool:
        return self.start_from_phase > 1 or self.start_from_stage > 1

    @property
    def non_interactive(self) -> bool:
        """check-only and what-if runs never prompt."""
        return self.check_only or self.what_if

    def allows_continuation_prompt(self) -> bool:
        """Whether the gate between phase 2 and phase 3 applies to this run."""
        return (
            self.mode == Mode.FULL
            and not self.has_start_override
            and self.target_stage is None
            and not self.skip_stages
            and not self.non_interactive
        )
