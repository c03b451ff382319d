"""
Phase range resolution (pure).

Maps a mode plus optional start/end overrides to an inclusive
``[min_phase, max_phase]`` window:

    mode          min  max
    core           1    1
    environment    2    2
    bootstrap      3    3
    full           1    3   (default, also any unknown mode)

A target stage collapses the window to its own phase and overrides
everything else.
"""

from __future__ import annotations

from typing import NamedTuple

from devbootstrap.core.errors import UnknownPhaseError
from devbootstrap.core.models.phase import PhaseId
from devbootstrap.core.models.run_config import Mode, TargetStageInfo

FIRST_PHASE = int(PhaseId.CORE)
LAST_PHASE = int(PhaseId.BOOTSTRAP)


class PhaseRange(NamedTuple):
    min_phase: int
    max_phase: int

    def __contains__(self, phase: object) -> bool:
        return isinstance(phase, int) and self.min_phase <= phase <= self.max_phase


_MODE_RANGES: dict[Mode, PhaseRange] = {
    Mode.CORE: PhaseRange(1, 1),
    Mode.ENVIRONMENT: PhaseRange(2, 2),
    Mode.BOOTSTRAP: PhaseRange(3, 3),
    Mode.FULL: PhaseRange(1, 3),
}


def resolve_phase_range(
    mode: Mode | str | None,
    start_from_phase: int = FIRST_PHASE,
    end_at_phase: int = LAST_PHASE,
    target_stage: TargetStageInfo | None = None,
) -> PhaseRange:
    """Resolve the phase window for a run.

    ``start_from_phase > 1`` raises the lower bound; an ``end_at_phase``
    inside the window lowers the upper bound.  A start override past the
    mode's upper bound pulls the upper bound along, so
    ``min_phase <= max_phase`` always holds.
    """
    if target_stage is not None:
        return PhaseRange(target_stage.phase, target_stage.phase)

    min_phase, max_phase = _MODE_RANGES[Mode.parse(mode)]

    if start_from_phase > FIRST_PHASE:
        min_phase = max(min_phase, min(start_from_phase, LAST_PHASE))

    if FIRST_PHASE <= end_at_phase < max_phase:
        max_phase = max(min_phase, end_at_phase)

    if min_phase > max_phase:
        max_phase = min_phase

    return PhaseRange(min_phase, max_phase)


_PHASE_NAMES = {
    "core": PhaseId.CORE,
    "prerequisites": PhaseId.CORE,
    "environment": PhaseId.ENVIRONMENT,
    "env": PhaseId.ENVIRONMENT,
    "bootstrap": PhaseId.BOOTSTRAP,
    "project": PhaseId.BOOTSTRAP,
}


def parse_phase(value: int | str) -> int:
    """Accept a phase number (``2``, ``"2"``, ``"phase2"``) or name (``"environment"``).

    Raises:
        UnknownPhaseError: If the value names no phase.
    """
    if isinstance(value, int):
        number = value
    else:
        text = value.strip().lower()
        if text in _PHASE_NAMES:
            return int(_PHASE_NAMES[text])
        text = text.removeprefix("phase").strip(" -_")
        if not text.isdigit():
            raise UnknownPhaseError(f"Unknown phase: {value!r}")
        number = int(text)

    if not FIRST_PHASE <= number <= LAST_PHASE:
        raise UnknownPhaseError(f"Phase must be between {FIRST_PHASE} and {LAST_PHASE}, got {number}")
    return number
