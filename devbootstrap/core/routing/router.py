"""
Platform router — pick and run the right implementation of a tool.

Given a Windows implementation, a Linux implementation, and the
ExecutionContext, the router:

    Windows                          → Windows impl, direct
    Windows + force_wsl / Linux-only → Linux impl through the WSL tunnel
    WSL or Linux                     → Linux impl, direct (force_wsl ignored)
    anything else                    → UnsupportedPlatformError (fail closed)

Exactly one of direct/tunnel executes per ``route()`` call, and the
router never retries; retry policy belongs to the installer.  Every
outcome, including implementation exceptions, comes back as a ToolResult.
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Mapping
from typing import Any

from devbootstrap.core.errors import UnsupportedPlatformError
from devbootstrap.core.models.context import Environment, ExecutionContext
from devbootstrap.core.models.phase import ErrorKind
from devbootstrap.core.models.tool import (
    ExecutionMethod,
    ImplementationSide,
    RoutingDecision,
    ToolResult,
)
from devbootstrap.core.routing.tunnel import WslTunnel, build_tunnel_invocation

logger = logging.getLogger(__name__)

ToolImplementation = Callable[[dict[str, Any]], ToolResult]


class PlatformRouter:
    """Routes tool invocations to a platform-specific implementation.

    ``config_path`` and ``mock`` are handed to the Linux side of every
    tunnelled call so both sides agree on settings and installers.
    """

    def __init__(
        self,
        tunnel: WslTunnel | None = None,
        source_root: str | None = None,
        config_path: str | None = None,
        mock: bool = False,
    ):
        self._tunnel = tunnel or WslTunnel()
        self._source_root = source_root
        self._config_path = config_path
        self._mock = mock

    def decide(
        self,
        tool: str,
        ctx: ExecutionContext | None,
        force_wsl: bool = False,
        requires_linux: bool = False,
    ) -> RoutingDecision:
        """Compute the routing decision for ``tool``.

        Raises:
            UnsupportedPlatformError: If ``ctx`` cannot be classified.
        """
        environment = getattr(ctx, "environment", None)

        if environment == Environment.WINDOWS_NATIVE:
            if force_wsl or requires_linux:
                reason = "forced into WSL" if force_wsl else f"{tool} requires a Linux target"
                return RoutingDecision(
                    target=ImplementationSide.LINUX,
                    method=ExecutionMethod.TUNNEL,
                    reasoning=f"Windows host, {reason}",
                )
            return RoutingDecision(
                target=ImplementationSide.WINDOWS,
                method=ExecutionMethod.DIRECT,
                reasoning="Windows host, native implementation",
            )

        if environment in (Environment.WSL_NATIVE, Environment.LINUX_NATIVE):
            label = "WSL" if environment == Environment.WSL_NATIVE else "Linux"
            return RoutingDecision(
                target=ImplementationSide.LINUX,
                method=ExecutionMethod.DIRECT,
                reasoning=f"{label} host, native implementation",
            )

        raise UnsupportedPlatformError(
            f"Cannot route {tool!r}: unsupported execution context {environment!r}"
        )

    def route(
        self,
        tool: str,
        windows_impl: ToolImplementation | None,
        linux_impl: ToolImplementation | None,
        ctx: ExecutionContext | None,
        force_wsl: bool = False,
        params: Mapping[str, Any] | None = None,
        requires_linux: bool = False,
    ) -> ToolResult:
        """Run ``tool`` through the implementation the context calls for."""
        params = dict(params or {})

        try:
            decision = self.decide(tool, ctx, force_wsl=force_wsl, requires_linux=requires_linux)
        except UnsupportedPlatformError as e:
            logger.error("%s", e)
            return ToolResult.fail(
                str(e),
                tool=tool,
                details={"error_kind": ErrorKind.UNSUPPORTED_PLATFORM.value},
            )

        logger.debug("Routing %s: %s (%s)", tool, decision.method.value, decision.reasoning)

        if decision.method == ExecutionMethod.TUNNEL:
            assert ctx is not None  # decide() only tunnels for a Windows context
            return self._run_tunnel(tool, windows_impl or linux_impl, ctx, params, decision)

        impl = windows_impl if decision.target == ImplementationSide.WINDOWS else linux_impl
        return self._run_direct(tool, impl, params, decision)

    # ── Execution paths ─────────────────────────────────────────

    def _run_direct(
        self,
        tool: str,
        impl: ToolImplementation | None,
        params: dict[str, Any],
        decision: RoutingDecision,
    ) -> ToolResult:
        if impl is None:
            return ToolResult.fail(
                f"No {decision.target.value} implementation available for {tool}",
                tool=tool,
                method=ExecutionMethod.DIRECT,
            )

        try:
            result = impl(params)
        except Exception as e:
            logger.exception("Implementation for %s raised", tool)
            return ToolResult.fail(
                f"{tool}: {e}",
                tool=tool,
                method=ExecutionMethod.DIRECT,
                details={"exception": type(e).__name__},
            )

        if not isinstance(result, ToolResult):
            return ToolResult.fail(
                f"{tool}: implementation returned {type(result).__name__}, expected ToolResult",
                tool=tool,
                method=ExecutionMethod.DIRECT,
            )

        success = result.success and result.exit_code == 0
        return result.model_copy(
            update={
                "success": success,
                "exit_code": result.exit_code if success or result.exit_code else 1,
                "tool": result.tool or tool,
                "method": ExecutionMethod.DIRECT,
            },
        )

    def _run_tunnel(
        self,
        tool: str,
        impl: ToolImplementation | None,
        ctx: ExecutionContext,
        params: dict[str, Any],
        decision: RoutingDecision,
    ) -> ToolResult:
        if not ctx.can_invoke_wsl:
            return ToolResult.fail(
                f"{tool} needs WSL but no WSL distribution is available",
                tool=tool,
                method=ExecutionMethod.TUNNEL,
            )
        if impl is None:
            return ToolResult.fail(
                f"No implementation available to tunnel for {tool}",
                tool=tool,
                method=ExecutionMethod.TUNNEL,
            )

        try:
            invocation = build_tunnel_invocation(
                tool, impl, params,
                distro=ctx.distro_name,
                source_root=self._source_root,
                config_path=self._config_path,
                mock=self._mock,
            )
        except ValueError as e:
            return ToolResult.fail(str(e), tool=tool, method=ExecutionMethod.TUNNEL)

        completed = self._tunnel.run(invocation)
        if completed.error:
            return ToolResult.fail(
                f"{tool}: WSL tunnel failed — {completed.error}",
                exit_code=completed.exit_code,
                output=completed.stdout,
                tool=tool,
                method=ExecutionMethod.TUNNEL,
            )

        success = completed.exit_code == 0
        return ToolResult(
            success=success,
            message=f"{tool} completed in WSL" if success else completed.summary(),
            exit_code=completed.exit_code,
            output=completed.stdout,
            tool=tool,
            method=ExecutionMethod.TUNNEL,
            details={"reasoning": decision.reasoning, "stderr": completed.stderr},
        )
