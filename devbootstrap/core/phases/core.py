"""Phase 1 — core prerequisites (git, git-lfs, python)."""

from __future__ import annotations

from devbootstrap.core.models.phase import PhaseResult
from devbootstrap.core.phases.common import run_tool_stages
from devbootstrap.core.phases.request import PhaseRequest


def run(request: PhaseRequest) -> PhaseResult:
    return run_tool_stages(request)
