"""
ExecutionContext — where this process is running.

Taken once per run by the detector and passed by value to every
routing decision.  Frozen: the OS identity of a process cannot change
mid-run, so neither can this snapshot.
"""

from __future__ import annotations

from enum import Enum

from pydantic import BaseModel, ConfigDict


class Environment(str, Enum):
    """The execution contexts the router knows how to serve."""

    WINDOWS_NATIVE = "windows_native"
    WSL_NATIVE = "wsl_native"
    LINUX_NATIVE = "linux_native"


class ExecutionContext(BaseModel):
    """Immutable snapshot of the current execution context."""

    model_config = ConfigDict(frozen=True)

    environment: Environment
    can_invoke_wsl: bool = False
    distro_name: str | None = None

    @property
    def is_windows(self) -> bool:
        return self.environment == Environment.WINDOWS_NATIVE

    @property
    def is_linux_like(self) -> bool:
        """True for both native Linux and WSL."""
        return self.environment in (Environment.WSL_NATIVE, Environment.LINUX_NATIVE)

    def describe(self) -> str:
        label = {
            Environment.WINDOWS_NATIVE: "Windows",
            Environment.WSL_NATIVE: "WSL",
            Environment.LINUX_NATIVE: "Linux",
        }[self.environment]
        if self.distro_name:
            label = f"{label} ({self.distro_name})"
        if self.is_windows:
            label += " — WSL available" if self.can_invoke_wsl else " — no WSL"
        return label
