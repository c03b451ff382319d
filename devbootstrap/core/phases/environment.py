"""
Phase 2 — environment setup (WSL, Docker, Poetry).

The ``wsl`` stage only applies on Windows hosts and is skipped when
``--no-wsl`` is given.
"""

from __future__ import annotations

from devbootstrap.core.models.phase import PhaseResult
from devbootstrap.core.phases.common import run_tool_stages
from devbootstrap.core.phases.request import PhaseRequest


def run(request: PhaseRequest) -> PhaseResult:
    return run_tool_stages(request)
