"""
Engine executor — the phase state machine.

    NOT_STARTED → RUNNING(1) → RUNNING(2) → RUNNING(3) → COMPLETED
                       └────────────┴──→ ABORTED

Phases run strictly in order inside the resolved ``[min, max]``
window; phases outside it are recorded as skipped.  Phases 1 and 2 are
fatal: a failure aborts the run and everything after it is recorded as
skipped.  Phase 3 is not: its failure is logged and the run completes.

Flow:
    run config → phase range → (target prerequisites) → phases → gate → summary
"""

from __future__ import annotations

import logging
import traceback
from collections.abc import Callable, Mapping
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any

from devbootstrap.core.engine.aggregator import summarize
from devbootstrap.core.engine.gate import ContinuationGate
from devbootstrap.core.engine.phase_range import PhaseRange, resolve_phase_range
from devbootstrap.core.engine.remediation import Remediation, build_remediation
from devbootstrap.core.engine.stage_target import StageTargetResolver
from devbootstrap.core.models.phase import ErrorKind, PhaseId, PhaseResult, Summary, utc_now
from devbootstrap.core.models.run_config import BootstrapRunConfig

logger = logging.getLogger(__name__)

PhaseEntry = Callable[[Any], PhaseResult]
RequestFactory = Callable[[PhaseId, BootstrapRunConfig], Any]

EXIT_OK = 0
EXIT_FAILURE = 1


class EngineState(str, Enum):
    NOT_STARTED = "not_started"
    RUNNING = "running"
    COMPLETED = "completed"
    ABORTED = "aborted"


@dataclass
class EngineOutcome:
    """Result of one engine run."""

    state: EngineState = EngineState.NOT_STARTED
    phase_range: PhaseRange | None = None
    results: list[PhaseResult] = field(default_factory=list)
    summary: Summary | None = None
    exit_code: int = EXIT_OK
    error_kind: ErrorKind | None = None
    failed_phase: PhaseId | None = None
    remediation: Remediation | None = None
    gate_prompted: bool = False

    @property
    def ok(self) -> bool:
        return self.exit_code == EXIT_OK

    def result_for(self, phase: PhaseId) -> PhaseResult | None:
        index = int(phase) - 1
        return self.results[index] if 0 <= index < len(self.results) else None

    def to_dict(self) -> dict:
        return {
            "state": self.state.value,
            "phase_range": list(self.phase_range) if self.phase_range else None,
            "exit_code": self.exit_code,
            "error_kind": self.error_kind.value if self.error_kind else None,
            "failed_phase": int(self.failed_phase) if self.failed_phase else None,
            "summary": self.summary.model_dump() if self.summary else None,
            "phases": [r.to_dict() for r in self.results],
            "remediation": self.remediation.model_dump() if self.remediation else None,
        }


def _pass_config(phase: PhaseId, config: BootstrapRunConfig) -> BootstrapRunConfig:
    return config


class PhaseExecutionEngine:
    """Runs the three phases for one BootstrapRunConfig.

    Args:
        phases: Entry point per phase; each takes the request built by
            ``request_factory`` and returns a PhaseResult.
        gate: Continuation gate between phase 2 and phase 3.
        stage_resolver: Prerequisite checks for targeted stages.
        request_factory: Builds the per-phase excerpt of the run config.
        clock: Timestamp source for phase timing.
        platform: ``windows`` or ``linux``, for remediation hints.
    """

    def __init__(
        self,
        phases: Mapping[PhaseId, PhaseEntry],
        gate: ContinuationGate | None = None,
        stage_resolver: StageTargetResolver | None = None,
        request_factory: RequestFactory = _pass_config,
        clock: Callable[[], datetime] = utc_now,
        platform: str = "linux",
    ):
        self._phases = dict(phases)
        self._gate = gate or ContinuationGate()
        self._stage_resolver = stage_resolver
        self._request_factory = request_factory
        self._clock = clock
        self._platform = platform

        self.state = EngineState.NOT_STARTED
        self.current_phase: PhaseId | None = None

    def run(self, config: BootstrapRunConfig) -> EngineOutcome:
        outcome = EngineOutcome()

        if config.target_stage is not None and self._stage_resolver is not None:
            window = self._stage_resolver.resolve_boundaries(config.target_stage)
        else:
            window = resolve_phase_range(
                config.mode,
                config.start_from_phase,
                config.end_at_phase,
                config.target_stage,
            )
        outcome.phase_range = window
        logger.info("Phase range: %d..%d (mode=%s)", window.min_phase, window.max_phase, config.mode.value)

        self.state = EngineState.RUNNING

        if config.target_stage is not None and not self._target_prerequisites_met(config, outcome):
            return self._finish(outcome)

        for phase in PhaseId:
            if self.state == EngineState.ABORTED:
                outcome.results.append(PhaseResult.skip(phase.title, "Not run: run aborted"))
                continue

            if phase not in window:
                logger.debug("Skipping phase %d (outside %d..%d)", phase, *window)
                outcome.results.append(PhaseResult.skip(phase.title, "Outside the selected phase range"))
                continue

            if phase == PhaseId.BOOTSTRAP and self._gate_applies(config, outcome):
                outcome.gate_prompted = True
                if not self._gate.ask():
                    logger.info("Operator declined to continue; project bootstrap skipped")
                    outcome.results.append(
                        PhaseResult.skip(phase.title, "Declined at the continuation prompt"),
                    )
                    continue

            self.current_phase = phase
            result = self._invoke(phase, config)
            outcome.results.append(result)

            marker = "✓" if result.success else "✗"
            logger.info("%s Phase %d %s: %s", marker, phase, phase.title, result.message or "done")

            if result.failed and phase.fatal:
                self.state = EngineState.ABORTED
                outcome.exit_code = EXIT_FAILURE
                outcome.error_kind = ErrorKind.FATAL_PHASE_FAILURE
                outcome.failed_phase = phase
                outcome.remediation = build_remediation(result, config, self._platform, phase)
                logger.error("Phase %d (%s) failed; aborting run", phase, phase.title)
            elif result.failed:
                outcome.error_kind = ErrorKind.NON_FATAL_TOOL_FAILURE
                logger.warning("Phase %d (%s) failed; continuing", phase, phase.title)

        if self.state == EngineState.RUNNING:
            self.state = EngineState.COMPLETED
        return self._finish(outcome)

    # ── Internals ───────────────────────────────────────────────

    def _invoke(self, phase: PhaseId, config: BootstrapRunConfig) -> PhaseResult:
        """Call one phase entry point; always returns a timed result."""
        entry = self._phases.get(phase)
        start = self._clock()
        try:
            if entry is None:
                raise LookupError(f"No entry point registered for phase {int(phase)}")
            result = entry(self._request_factory(phase, config))
            if not isinstance(result, PhaseResult):
                raise TypeError(
                    f"Phase {int(phase)} returned {type(result).__name__}, expected PhaseResult"
                )
        except Exception as e:
            logger.debug("Phase %d raised", phase, exc_info=True)
            result = PhaseResult.failure(
                phase.title,
                f"{type(e).__name__}: {e}",
                details={"error": str(e), "stack_trace": traceback.format_exc()},
            )
        end = self._clock()

        if result.timed:
            return result
        return result.attach_timing(start, end)

    def _gate_applies(self, config: BootstrapRunConfig, outcome: EngineOutcome) -> bool:
        environment = outcome.result_for(PhaseId.ENVIRONMENT)
        if environment is None or environment.skipped or not environment.success:
            return False
        return config.allows_continuation_prompt()

    def _target_prerequisites_met(self, config: BootstrapRunConfig, outcome: EngineOutcome) -> bool:
        if self._stage_resolver is None:
            return True

        target = config.target_stage
        assert target is not None
        start = self._clock()
        met = self._stage_resolver.resolve_prerequisites(target, config)
        if met:
            return True

        phase = PhaseId(target.phase)
        reason = self._stage_resolver.last_failure or "unknown prerequisite"
        failure = PhaseResult.failure(
            phase.title,
            f"Prerequisite not met for stage '{target.original_stage_name}'",
            details={
                "error_kind": ErrorKind.PREREQUISITE_NOT_MET.value,
                "prerequisite": reason,
                "stage": target.subtype,
            },
        ).attach_timing(start, self._clock())

        for p in PhaseId:
            if p == phase:
                outcome.results.append(failure)
            else:
                outcome.results.append(PhaseResult.skip(p.title, "Not run: prerequisite not met"))

        self.state = EngineState.ABORTED
        self.current_phase = phase
        outcome.exit_code = EXIT_FAILURE
        outcome.error_kind = ErrorKind.PREREQUISITE_NOT_MET
        outcome.failed_phase = phase
        outcome.remediation = build_remediation(failure, config, self._platform, phase)
        logger.error("Prerequisite not met for %s: %s", target.original_stage_name, reason)
        return False

    def _finish(self, outcome: EngineOutcome) -> EngineOutcome:
        outcome.state = self.state
        outcome.summary = summarize(outcome.results)
        return outcome
