"""
Exception hierarchy.

Collaborators (tools, tunnel, runners) report failures through result
objects.  Exceptions are reserved for programming and configuration
errors, and the engine converts anything that escapes a phase into a
failed PhaseResult at the phase boundary.
"""

from __future__ import annotations


class BootstrapError(Exception):
    """Base class for all devbootstrap errors."""


class ConfigError(BootstrapError):
    """Raised when devbootstrap.yml is invalid or unreadable."""


class UnsupportedPlatformError(BootstrapError):
    """Raised when a routing decision cannot classify the execution context."""


class UnknownStageError(BootstrapError):
    """Raised when a stage name does not match the stage catalog."""


class UnknownPhaseError(BootstrapError):
    """Raised when a phase number or name is out of range."""
