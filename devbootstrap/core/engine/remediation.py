"""
Remediation guidance for failed runs.

Built from the failing PhaseResult: what failed, how to fix each
failing tool by hand, and narrower commands to re-run once fixed.
"""

from __future__ import annotations

from pydantic import BaseModel, Field

from devbootstrap.adapters.tools.recipes import manual_hint
from devbootstrap.core.models.phase import PhaseId, PhaseResult
from devbootstrap.core.models.run_config import BootstrapRunConfig

PROGRAM = "devbootstrap run"


class Remediation(BaseModel):
    """Structured remediation block printed before a non-zero exit."""

    failed: str
    suggestions: list[str] = Field(default_factory=list)
    rerun: list[str] = Field(default_factory=list)

    def lines(self) -> list[str]:
        out = [f"What failed: {self.failed}"]
        if self.suggestions:
            out.append("Suggested manual fixes:")
            out.extend(f"  - {s}" for s in self.suggestions)
        if self.rerun:
            out.append("Re-run with narrower scope:")
            out.extend(f"  {cmd}" for cmd in self.rerun)
        return out


def build_remediation(
    result: PhaseResult,
    config: BootstrapRunConfig,
    platform: str = "linux",
    phase: PhaseId | None = None,
) -> Remediation:
    """Remediation for ``result``.

    Args:
        result: The failed phase (or prerequisite) result.
        config: The run configuration, used to keep re-run commands
            consistent with what the operator asked for.
        platform: ``windows`` or ``linux``; selects the manual hints.
        phase: The phase that failed, if known.
    """
    failed = f"{result.phase_name}: {result.message}" if result.message else result.phase_name

    suggestions: list[str] = []
    for tool in result.details.get("failed_tools", []):
        hint = manual_hint(tool, platform)
        suggestions.append(f"{tool}: {hint}" if hint else f"{tool}: install it manually")
    if "error" in result.details:
        suggestions.append(f"Unexpected error: {result.details['error']} (re-run with --debug)")
    prerequisite = result.details.get("prerequisite")
    if prerequisite:
        suggestions.append(f"Satisfy the prerequisite first: {prerequisite}")

    flags = _carry_flags(config)
    rerun: list[str] = []
    if config.target_stage is not None:
        rerun.append(f"{PROGRAM} --only-stage {config.target_stage.original_stage_name}{flags}")
    elif phase is not None:
        rerun.append(f"{PROGRAM} --start-from-phase {int(phase)}{flags}")
        rerun.append(f"{PROGRAM} --start-from-phase {int(phase)} --check-only{flags}")
    for stage in result.details.get("failed_stages", []):
        rerun.append(f"{PROGRAM} --only-stage {stage}{flags}")

    return Remediation(failed=failed, suggestions=suggestions, rerun=rerun)


def _carry_flags(config: BootstrapRunConfig) -> str:
    parts = []
    if config.no_wsl:
        parts.append("--no-wsl")
    if config.loop_name:
        parts.append(f"--loop-name {config.loop_name}")
    if config.project_name:
        parts.append(f"--project-name {config.project_name}")
    if config.project_path:
        parts.append(f"--project-path {config.project_path}")
    return "".join(f" {p}" for p in parts)
