"""
Execution context detection — Windows, WSL, or plain Linux.

Read-only probes:
    - ``platform.system()`` for the host OS
    - ``/proc/version`` (Linux kernel marker) mentioning Microsoft/WSL
    - ``/proc/sys/fs/binfmt_misc/WSLInterop``
    - ``WSL_DISTRO_NAME`` / ``WSL_INTEROP`` environment markers
    - ``wsl.exe`` on PATH (Windows side)

Detection never raises.  Anything unrecognised (macOS, BSD, a probe
that errors out) is classified as LINUX_NATIVE without WSL access.
"""

from __future__ import annotations

import logging
import os
import platform
import shutil
from collections.abc import Callable, Mapping
from pathlib import Path

from devbootstrap.adapters.shell.command import CommandResult, run_command
from devbootstrap.core.models.context import Environment, ExecutionContext

logger = logging.getLogger(__name__)

_PROC_VERSION = "/proc/version"
_WSL_INTEROP = "/proc/sys/fs/binfmt_misc/WSLInterop"
_WSL_ENV_MARKERS = ("WSL_DISTRO_NAME", "WSL_INTEROP")

ENV_WSL_DISTRO = "DEVBOOTSTRAP_WSL_DISTRO"


def _read_text(path: str) -> str | None:
    try:
        return Path(path).read_text(encoding="utf-8", errors="replace")
    except OSError:
        return None


def _list_distros(wsl_exe: str) -> CommandResult:
    return run_command([wsl_exe, "--list", "--quiet"], timeout=15, capture_bytes=True)


class ExecutionContextDetector:
    """Classifies the current process.  The first result is cached.

    Every OS probe is injectable so the classification rules can be
    exercised on any host.
    """

    def __init__(
        self,
        system: Callable[[], str] = platform.system,
        environ: Mapping[str, str] | None = None,
        which: Callable[[str], str | None] = shutil.which,
        read_text: Callable[[str], str | None] = _read_text,
        path_exists: Callable[[str], bool] = os.path.exists,
        list_distros: Callable[[str], CommandResult] = _list_distros,
    ):
        self._system = system
        self._environ = environ if environ is not None else os.environ
        self._which = which
        self._read_text = read_text
        self._path_exists = path_exists
        self._list_distros = list_distros
        self._cached: ExecutionContext | None = None

    def detect(self) -> ExecutionContext:
        """Return the execution context, probing the OS on first call only."""
        if self._cached is None:
            try:
                self._cached = self._classify()
            except Exception as e:
                logger.warning("Execution context probe failed (%s), assuming Linux", e)
                self._cached = ExecutionContext(environment=Environment.LINUX_NATIVE)
            logger.info("Execution context: %s", self._cached.describe())
        return self._cached

    def reset(self) -> None:
        self._cached = None

    # ── Classification ──────────────────────────────────────────

    def _classify(self) -> ExecutionContext:
        system = (self._system() or "").lower()

        if system == "windows" or system.startswith(("cygwin", "msys")):
            return self._windows_context()

        if system == "linux":
            if self._is_wsl():
                return ExecutionContext(
                    environment=Environment.WSL_NATIVE,
                    can_invoke_wsl=False,
                    distro_name=self._environ.get("WSL_DISTRO_NAME") or None,
                )
            return ExecutionContext(environment=Environment.LINUX_NATIVE)

        logger.debug("Unrecognised system %r, treating as Linux", system)
        return ExecutionContext(environment=Environment.LINUX_NATIVE)

    def _is_wsl(self) -> bool:
        if any(self._environ.get(marker) for marker in _WSL_ENV_MARKERS):
            return True
        if self._path_exists(_WSL_INTEROP):
            return True
        kernel = (self._read_text(_PROC_VERSION) or "").lower()
        return "microsoft" in kernel or "wsl" in kernel

    def _windows_context(self) -> ExecutionContext:
        wsl_exe = self._which("wsl.exe") or self._which("wsl")
        if not wsl_exe:
            return ExecutionContext(environment=Environment.WINDOWS_NATIVE)

        # wsl.exe ships with Windows even when no distro is installed
        distro = self._environ.get(ENV_WSL_DISTRO) or self._default_distro(wsl_exe)
        return ExecutionContext(
            environment=Environment.WINDOWS_NATIVE,
            can_invoke_wsl=distro is not None,
            distro_name=distro,
        )

    def _default_distro(self, wsl_exe: str) -> str | None:
        """First entry of ``wsl --list --quiet`` (the default distro)."""
        result = self._list_distros(wsl_exe)
        if not result.ok:
            logger.debug("wsl --list failed: %s", result.summary())
            return None
        for line in result.stdout.splitlines():
            name = line.strip().strip("\x00")
            if name:
                return name
        return None


_detector = ExecutionContextDetector()


def detect_execution_context() -> ExecutionContext:
    """Process-wide, cached execution context."""
    return _detector.detect()
