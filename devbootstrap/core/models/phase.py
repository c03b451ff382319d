"""
Phase models — identifiers, per-phase results, and the run summary.

A PhaseResult is produced when a phase entry point returns, receives
its timing exactly once via ``attach_timing``, and is read-only from
then on.
"""

from __future__ import annotations

from datetime import UTC, datetime, timedelta
from enum import Enum, IntEnum
from typing import Any

from pydantic import BaseModel, Field, model_validator


class PhaseId(IntEnum):
    """The three strictly ordered phases."""

    CORE = 1
    ENVIRONMENT = 2
    BOOTSTRAP = 3

    @property
    def title(self) -> str:
        return _PHASE_TITLES[self]

    @property
    def fatal(self) -> bool:
        """Failure of phases 1 and 2 aborts the run."""
        return self != PhaseId.BOOTSTRAP


_PHASE_TITLES = {
    PhaseId.CORE: "Core Prerequisites",
    PhaseId.ENVIRONMENT: "Environment Setup",
    PhaseId.BOOTSTRAP: "Project Bootstrap",
}


class ErrorKind(str, Enum):
    FATAL_PHASE_FAILURE = "fatal_phase_failure"
    NON_FATAL_TOOL_FAILURE = "non_fatal_tool_failure"
    UNSUPPORTED_PLATFORM = "unsupported_platform"
    PREREQUISITE_NOT_MET = "prerequisite_not_met"


class PhaseResult(BaseModel):
    """Result of one phase invocation."""

    success: bool
    phase_name: str
    message: str = ""
    skipped: bool = False
    details: dict[str, Any] = Field(default_factory=dict)

    start_time: datetime | None = None
    end_time: datetime | None = None
    duration: timedelta | None = None

    @model_validator(mode="after")
    def _skipped_is_not_a_failure(self) -> PhaseResult:
        if self.skipped and not self.success:
            raise ValueError("a skipped phase cannot report success=False")
        return self

    @property
    def failed(self) -> bool:
        return not self.skipped and not self.success

    @property
    def timed(self) -> bool:
        return self.duration is not None

    def attach_timing(self, start: datetime, end: datetime) -> PhaseResult:
        """Return a copy carrying start/end timestamps and their duration."""
        if self.timed:
            raise ValueError(f"timing already attached to {self.phase_name!r}")
        if end < start:
            raise ValueError("end time precedes start time")
        return self.model_copy(
            update={"start_time": start, "end_time": end, "duration": end - start},
        )

    @classmethod
    def succeeded(cls, phase_name: str, message: str = "", **kwargs: Any) -> PhaseResult:
        return cls(success=True, phase_name=phase_name, message=message, **kwargs)

    @classmethod
    def failure(cls, phase_name: str, message: str, **kwargs: Any) -> PhaseResult:
        return cls(success=False, phase_name=phase_name, message=message, **kwargs)

    @classmethod
    def skip(cls, phase_name: str, reason: str = "", **kwargs: Any) -> PhaseResult:
        return cls(
            success=True,
            skipped=True,
            phase_name=phase_name,
            message=reason,
            **kwargs,
        )

    def to_dict(self) -> dict:
        data = self.model_dump(mode="json", exclude={"duration"})
        data["duration_ms"] = (
            int(self.duration.total_seconds() * 1000) if self.duration is not None else None
        )
        return data


class Summary(BaseModel):
    """Aggregate over a run's phase results (skipped phases excluded)."""

    all_succeeded: bool
    success_count: int
    total_count: int
    skipped_count: int = 0


def utc_now() -> datetime:
    """Default engine clock."""
    return datetime.now(UTC)
