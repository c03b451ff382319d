"""
Recipe-driven installers — winget on Windows, apt/pipx on Linux.

One class serves every tool in TOOL_RECIPES; the recipe decides the
commands.  Installation is test → plan → run → re-test: a tool only
counts as installed once the post-install test says it is compliant.
"""

from __future__ import annotations

import logging
import re
import shutil
from collections.abc import Callable
from typing import Any

from devbootstrap.adapters.shell.command import CommandResult, run_command
from devbootstrap.adapters.shell.privileged import run_privileged
from devbootstrap.adapters.tools.base import ToolInstaller
from devbootstrap.adapters.tools.version_check import check_requirement
from devbootstrap.core.models.tool import ComplianceResult, ToolResult, VersionRequirement

logger = logging.getLogger(__name__)

Runner = Callable[..., CommandResult]


class RecipeInstaller(ToolInstaller):
    """Installs one tool on one platform according to its recipe."""

    def __init__(
        self,
        tool: str,
        recipe: dict[str, Any],
        platform: str,
        requirement: VersionRequirement | None = None,
        runner: Runner = run_command,
        privileged_runner: Runner = run_privileged,
        which: Callable[[str], str | None] = shutil.which,
    ):
        if platform not in ("windows", "linux"):
            raise ValueError(f"Unknown platform: {platform}")
        self._tool = tool
        self._recipe = recipe
        self._platform = platform
        self._requirement = requirement or VersionRequirement()
        self._run = runner
        self._run_privileged = privileged_runner
        self._which = which

    @property
    def name(self) -> str:
        return self._tool

    @property
    def platform(self) -> str:
        return self._platform

    @property
    def label(self) -> str:
        return self._recipe.get("label", self._tool)

    # ── Test ────────────────────────────────────────────────────

    def test(self, detailed: bool = False) -> ComplianceResult:
        cli = self._recipe.get("cli", {}).get(self._platform)
        if not cli:
            return ComplianceResult(message=f"{self.label} is not available on {self._platform}")

        path = self._which(cli)
        if path is None:
            return ComplianceResult(message=f"{self.label} not found on PATH")

        result = self._run([path, *self._recipe.get("version_args", ["--version"])],
                           timeout=30, capture_bytes=True)
        text = f"{result.stdout}\n{result.stderr}"
        version = self._extract_version(text)

        if version is None:
            return ComplianceResult(
                installed=True,
                message=f"{self.label} found at {path} but did not report a version",
            )

        compliant, detail = check_requirement(version, self._requirement)
        message = f"{self.label}: {detail}"
        if detailed:
            message += f" ({path})"
        return ComplianceResult(installed=True, version=version, compliant=compliant, message=message)

    def _extract_version(self, text: str) -> str | None:
        pattern = self._recipe.get("version_pattern")
        if not pattern:
            return None
        match = re.search(pattern, text)
        return match.group(1) if match else None

    # ── Install ─────────────────────────────────────────────────

    def plan(self) -> list[tuple[list[str], bool]]:
        """Commands that install the tool, as ``(argv, needs_root)`` pairs."""
        method = self._recipe.get(self._platform) or {}
        steps: list[tuple[list[str], bool]] = []

        if "winget" in method:
            steps.append(([
                "winget", "install", "--id", method["winget"], "-e", "--silent",
                "--accept-source-agreements", "--accept-package-agreements",
            ], False))
        elif "apt" in method:
            steps.append((["apt-get", "update", "-qq"], True))
            steps.append((["apt-get", "install", "-y", "-qq", *method["apt"]], True))
        elif "pipx" in method:
            steps.append((["pipx", "install", "--force", method["pipx"]], False))
        elif "pip" in method:
            python = "python" if self._platform == "windows" else "python3"
            steps.append(([python, "-m", "pip", "install", "--user", "--upgrade", method["pip"]], False))
        elif "command" in method:
            steps.append((list(method["command"]), False))

        if steps and self._recipe.get("post_install"):
            steps.append((list(self._recipe["post_install"]), False))
        return steps

    def install(self, check_only: bool = False, what_if: bool = False) -> ToolResult:
        status = self.test()
        if status.compliant:
            return ToolResult.ok(status.message, tool=self._tool, output=status.version or "")

        if check_only:
            return ToolResult.fail(
                f"{self.label} is not compliant: {status.message} (check only, nothing changed)",
                tool=self._tool,
            )

        steps = self.plan()
        if not steps:
            return ToolResult.fail(
                f"No install method for {self.label} on {self._platform}",
                tool=self._tool,
            )

        if what_if:
            planned = [" ".join((["sudo"] if root else []) + argv) for argv, root in steps]
            return ToolResult.ok(
                f"Would install {self.label}: " + "; ".join(planned),
                tool=self._tool,
                details={"planned": planned},
            )

        logger.info("Installing %s on %s", self.label, self._platform)
        outputs: list[str] = []
        for argv, needs_root in steps:
            runner = self._run_privileged if needs_root else self._run
            result = runner(argv, timeout=1800)
            outputs.append(result.stdout)
            if not result.ok:
                logger.warning("%s install step failed: %s", self.label, result.summary())
                return ToolResult.fail(
                    f"{self.label} install failed: {result.summary()}",
                    exit_code=result.exit_code,
                    output="\n".join(outputs),
                    tool=self._tool,
                    details={"command": argv, "stderr": result.stderr},
                )

        after = self.test()
        if not after.compliant:
            return ToolResult.fail(
                f"{self.label} installed but still not compliant: {after.message}",
                output="\n".join(outputs),
                tool=self._tool,
            )
        return ToolResult.ok(
            f"{self.label} installed ({after.version or 'unknown version'})",
            tool=self._tool,
            output="\n".join(outputs),
        )
