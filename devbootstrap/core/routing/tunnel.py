"""
WSL tunnel — run a Linux-side implementation from a Windows host.

The tunnel never builds a shell string.  It produces a structured
``TunnelInvocation{executable, args, cwd}`` that re-enters this
program's ``tool run`` command inside the distro:

    wsl.exe -d Ubuntu --cd /mnt/c/src/devbootstrap --exec \\
        python3 -m devbootstrap.main --config /mnt/c/work/devbootstrap.yml \\
        tool run git --mock --action install --check-only

The working directory is the Windows implementation's source root,
translated to the path the distro sees it at.  The settings file and
mock mode of the Windows side travel with the invocation.
"""

from __future__ import annotations

import logging
import sys
from collections.abc import Callable, Mapping
from pathlib import Path, PureWindowsPath
from typing import Any

from pydantic import BaseModel, ConfigDict

from devbootstrap.adapters.shell.command import CommandResult, run_command

logger = logging.getLogger(__name__)

WSL_EXECUTABLE = "wsl.exe"
TUNNEL_INTERPRETER = "python3"
TUNNEL_ENTRY_MODULE = "devbootstrap.main"

_WSL_UNC_HOSTS = ("wsl$", "wsl.localhost")


class TunnelInvocation(BaseModel):
    """A fully structured child-process invocation."""

    model_config = ConfigDict(frozen=True)

    executable: str
    args: tuple[str, ...] = ()
    cwd: str | None = None

    def argv(self) -> list[str]:
        return [self.executable, *self.args]


def to_wsl_path(path: str | PureWindowsPath) -> str:
    """Translate a Windows path into the path seen inside WSL.

    ``C:\\Users\\me\\src``             → ``/mnt/c/Users/me/src``
    ``\\\\wsl$\\Ubuntu\\home\\me``        → ``/home/me``
    ``\\\\wsl.localhost\\Ubuntu\\home\\me`` → ``/home/me``

    Raises:
        ValueError: For relative paths and non-WSL network shares.
    """
    win = PureWindowsPath(path)
    drive = win.drive

    if drive.startswith("\\\\"):
        host = drive.lstrip("\\").split("\\", 1)[0].lower()
        if host not in _WSL_UNC_HOSTS:
            raise ValueError(f"Network path is not reachable from WSL: {path}")
        return "/" + "/".join(win.parts[1:])

    if len(drive) == 2 and drive[1] == ":":
        rest = "/".join(win.parts[1:])
        base = f"/mnt/{drive[0].lower()}"
        return f"{base}/{rest}" if rest else base

    raise ValueError(f"Cannot translate a relative path into WSL: {path}")


def forward_params(params: Mapping[str, Any]) -> list[str]:
    """Serialise routed parameters into CLI flags.

    Only booleans and strings cross the tunnel.  ``True`` becomes a
    bare ``--flag``, ``False`` is omitted, strings become
    ``--flag value``, ``None`` means unset.  Anything else is dropped
    with a warning.
    """
    args: list[str] = []
    for key, value in params.items():
        flag = "--" + key.replace("_", "-")
        if value is None:
            continue
        if isinstance(value, bool):
            if value:
                args.append(flag)
        elif isinstance(value, str):
            args.extend([flag, value])
        else:
            logger.warning(
                "Dropping parameter %r (%s) — only bool/str values cross the WSL tunnel",
                key, type(value).__name__,
            )
    return args


def implementation_root(impl: Callable[..., Any]) -> Path:
    """Directory containing the top-level package that defines ``impl``."""
    module_name = getattr(impl, "__module__", None) or type(impl).__module__
    module = sys.modules.get(module_name)
    source = getattr(module, "__file__", None)
    if not source:
        raise ValueError(f"Cannot locate the source of {impl!r}")

    path = Path(source).resolve()
    root = path.parent
    levels = module_name.count(".") + (1 if path.name == "__init__.py" else 0)
    for _ in range(levels):
        root = root.parent
    return root


def build_tunnel_invocation(
    tool: str,
    impl: Callable[..., Any],
    params: Mapping[str, Any],
    distro: str | None = None,
    source_root: str | None = None,
    config_path: str | None = None,
    mock: bool = False,
) -> TunnelInvocation:
    """Build the WSL invocation that runs ``tool`` on the Linux side.

    Args:
        tool: Tool name, passed to ``tool run``.
        impl: The Windows-side implementation; its source root becomes
            the working directory inside WSL.
        params: Routed parameters (bool/str forwarded).
        distro: Target distro; the WSL default when None.
        source_root: Override for the Windows-side root (tests).
        config_path: Windows path of the settings file in use.
        mock: Re-enter with every installer replaced by a MockTool.

    Raises:
        ValueError: If a path cannot be translated into WSL.
    """
    root = source_root if source_root is not None else str(implementation_root(impl))
    linux_root = to_wsl_path(root)

    args: list[str] = []
    if distro:
        args.extend(["-d", distro])
    args.extend(["--cd", linux_root, "--exec", TUNNEL_INTERPRETER, "-m", TUNNEL_ENTRY_MODULE])
    if config_path:
        args.extend(["--config", to_wsl_path(config_path)])
    args.extend(["tool", "run", tool])
    if mock:
        args.append("--mock")
    args.extend(forward_params(params))

    return TunnelInvocation(executable=WSL_EXECUTABLE, args=tuple(args))


class WslTunnel:
    """Executes TunnelInvocations.  Blocks until the child exits; no timeout."""

    def run(self, invocation: TunnelInvocation) -> CommandResult:
        logger.info("Tunnelling into WSL: %s", " ".join(invocation.argv()))
        return run_command(
            invocation.argv(),
            timeout=None,
            cwd=invocation.cwd,
            capture_bytes=True,
            tail=None,
        )
