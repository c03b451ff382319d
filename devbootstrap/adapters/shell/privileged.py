"""
Privileged execution — run package-manager commands as root.

Security invariants:
- Password piped via stdin only (``sudo -S``)
- ``-k`` invalidates sudo's own timestamp every time
- Password kept in memory for this process only, never logged
- Password never appears in command args
"""

from __future__ import annotations

import logging
import os
from collections.abc import Callable

import click

from devbootstrap.adapters.shell.command import CommandResult, run_command

logger = logging.getLogger(__name__)


def _prompt_password() -> str:
    return click.prompt("[sudo] password", hide_input=True, default="", show_default=False)


class SudoSession:
    """Caches the sudo password for the lifetime of one run."""

    def __init__(self, prompt: Callable[[], str] = _prompt_password):
        self._prompt = prompt
        self._password: str | None = None

    @staticmethod
    def is_root() -> bool:
        return hasattr(os, "geteuid") and os.geteuid() == 0

    def password(self) -> str:
        if self._password is None:
            self._password = self._prompt()
        return self._password

    def forget(self) -> None:
        self._password = None

    def run(self, cmd: list[str], *, timeout: int | None = 1800) -> CommandResult:
        """Run ``cmd`` with root privileges."""
        if self.is_root():
            return run_command(cmd, timeout=timeout)

        result = run_command(
            ["sudo", "-S", "-k", *cmd],
            timeout=timeout,
            input_text=self.password() + "\n",
        )
        stderr = result.stderr.lower()
        if result.exit_code != 0 and ("incorrect password" in stderr or "sorry" in stderr):
            self.forget()
            return result.model_copy(update={"error": "Wrong sudo password."})
        return result


_session: SudoSession | None = None


def run_privileged(cmd: list[str], *, timeout: int | None = 1800) -> CommandResult:
    """Run ``cmd`` as root through the process-wide sudo session."""
    global _session
    if _session is None:
        _session = SudoSession()
    logger.info("Running privileged: %s", " ".join(cmd))
    return _session.run(cmd, timeout=timeout)
