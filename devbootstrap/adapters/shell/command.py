"""
Subprocess runner — the single place where ``subprocess.run`` is called.

Installers, the WSL tunnel, and the detector all go through
``run_command``.  It never raises: timeouts, missing executables and
OS errors are captured in the CommandResult.
"""

from __future__ import annotations

import logging
import os
import subprocess
import time

from pydantic import BaseModel

logger = logging.getLogger(__name__)

_OUTPUT_TAIL = 4000


class CommandResult(BaseModel):
    """Outcome of one child process."""

    command: list[str]
    exit_code: int = 0
    stdout: str = ""
    stderr: str = ""
    elapsed_ms: int = 0
    error: str | None = None

    @property
    def ok(self) -> bool:
        return self.error is None and self.exit_code == 0

    def summary(self) -> str:
        """One-line description of a failure, for messages and logs."""
        if self.error:
            return self.error
        if self.exit_code != 0:
            tail = self.stderr.strip().splitlines()[-1:] if self.stderr.strip() else []
            detail = f": {tail[0]}" if tail else ""
            return f"Command failed (exit {self.exit_code}){detail}"
        return "ok"


def run_command(
    cmd: list[str],
    *,
    timeout: int | None = 600,
    env_overrides: dict[str, str] | None = None,
    cwd: str | None = None,
    input_text: str | None = None,
    capture_bytes: bool = False,
    tail: int | None = _OUTPUT_TAIL,
) -> CommandResult:
    """Run ``cmd`` and capture its output.

    Args:
        cmd: Command list (never a shell string).
        timeout: Seconds before the child is killed; ``None`` waits forever.
        env_overrides: Extra environment variables for the child.
        cwd: Working directory.
        input_text: Data piped to stdin.
        capture_bytes: Decode output leniently (wsl.exe emits UTF-16).
        tail: Keep only the last ``tail`` characters of each stream;
            ``None`` keeps everything.

    Returns:
        CommandResult; ``error`` is set when the process could not run
        or timed out.
    """
    env = None
    if env_overrides:
        env = os.environ.copy()
        env.update(env_overrides)

    logger.debug("Executing: %s (cwd=%s)", cmd, cwd)
    start = time.monotonic()
    try:
        proc = subprocess.run(
            cmd,
            capture_output=True,
            text=not capture_bytes,
            timeout=timeout,
            input=(input_text.encode() if capture_bytes and input_text else input_text),
            env=env,
            cwd=cwd,
        )
    except subprocess.TimeoutExpired:
        return CommandResult(command=cmd, exit_code=124, error=f"Command timed out ({timeout}s)")
    except FileNotFoundError:
        return CommandResult(command=cmd, exit_code=127, error=f"Executable not found: {cmd[0]}")
    except OSError as e:
        logger.exception("Subprocess error: %s", cmd)
        return CommandResult(command=cmd, exit_code=126, error=str(e))

    elapsed_ms = int((time.monotonic() - start) * 1000)
    stdout, stderr = proc.stdout, proc.stderr
    if capture_bytes:
        stdout, stderr = decode_output(stdout), decode_output(stderr)
    stdout, stderr = stdout or "", stderr or ""
    if tail is not None:
        stdout, stderr = stdout[-tail:], stderr[-tail:]

    result = CommandResult(
        command=cmd,
        exit_code=proc.returncode,
        stdout=stdout,
        stderr=stderr,
        elapsed_ms=elapsed_ms,
    )
    logger.debug("Exit %d after %dms: %s", result.exit_code, elapsed_ms, cmd[0])
    return result


def decode_output(data: bytes | None) -> str:
    """Decode child output that may be UTF-16LE (wsl.exe) or UTF-8."""
    if not data:
        return ""
    if b"\x00" in data:
        try:
            return data.decode("utf-16-le").lstrip("\ufeff")
        except UnicodeDecodeError:
            pass
    return data.decode("utf-8", errors="replace")
