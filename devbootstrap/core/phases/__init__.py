"""Phase entry points, keyed by PhaseId."""

from devbootstrap.core.models.phase import PhaseId
from devbootstrap.core.phases import bootstrap, core, environment
from devbootstrap.core.phases.request import PhaseRequest

PHASE_ENTRIES = {
    PhaseId.CORE: core.run,
    PhaseId.ENVIRONMENT: environment.run,
    PhaseId.BOOTSTRAP: bootstrap.run,
}

__all__ = ["PHASE_ENTRIES", "PhaseRequest"]
