"""
Tests for the platform router and the WSL tunnel.
"""

import logging

import pytest

from devbootstrap.adapters.shell.command import CommandResult
from devbootstrap.adapters.tools.mock import MockTool
from devbootstrap.core.errors import UnsupportedPlatformError
from devbootstrap.core.models.context import Environment, ExecutionContext
from devbootstrap.core.models.tool import ExecutionMethod, ImplementationSide, ToolResult
from devbootstrap.core.routing import tunnel as tunnel_module
from devbootstrap.core.routing.router import PlatformRouter
from devbootstrap.core.routing.tunnel import (
    TunnelInvocation,
    WslTunnel,
    build_tunnel_invocation,
    forward_params,
    implementation_root,
    to_wsl_path,
)

WIN_ROOT = "C:\\src\\devbootstrap"


class FakeTunnel:
    """Records invocations instead of spawning wsl.exe."""

    def __init__(self, exit_code: int = 0, stdout: str = "", error: str | None = None):
        self.exit_code = exit_code
        self.stdout = stdout
        self.error = error
        self.invocations: list[TunnelInvocation] = []

    def run(self, invocation: TunnelInvocation) -> CommandResult:
        self.invocations.append(invocation)
        return CommandResult(
            command=invocation.argv(),
            exit_code=self.exit_code,
            stdout=self.stdout,
            error=self.error,
        )


def _router(tunnel=None):
    tunnel = tunnel or FakeTunnel()
    return PlatformRouter(tunnel=tunnel, source_root=WIN_ROOT), tunnel


# ── Decisions ────────────────────────────────────────────────────────


class TestDecide:
    def test_windows_direct(self, windows_ctx):
        decision = PlatformRouter().decide("git", windows_ctx)
        assert decision.target == ImplementationSide.WINDOWS
        assert decision.method == ExecutionMethod.DIRECT

    def test_windows_forced_tunnel(self, windows_ctx):
        decision = PlatformRouter().decide("git", windows_ctx, force_wsl=True)
        assert decision.target == ImplementationSide.LINUX
        assert decision.method == ExecutionMethod.TUNNEL
        assert "forced" in decision.reasoning

    def test_windows_requires_linux(self, windows_ctx):
        decision = PlatformRouter().decide("docker", windows_ctx, requires_linux=True)
        assert decision.method == ExecutionMethod.TUNNEL

    @pytest.mark.parametrize("force", [True, False])
    def test_wsl_always_direct_linux(self, wsl_ctx, force):
        decision = PlatformRouter().decide("git", wsl_ctx, force_wsl=force)
        assert decision.target == ImplementationSide.LINUX
        assert decision.method == ExecutionMethod.DIRECT

    def test_linux_direct(self, linux_ctx):
        decision = PlatformRouter().decide("git", linux_ctx, force_wsl=True)
        assert decision.method == ExecutionMethod.DIRECT

    def test_unknown_context_raises(self):
        with pytest.raises(UnsupportedPlatformError):
            PlatformRouter().decide("git", None)


# ── Route: direct ────────────────────────────────────────────────────


class TestRouteDirect:
    def test_windows_runs_windows_impl(self, windows_ctx):
        router, tunnel = _router()
        windows, linux = MockTool("git", "windows"), MockTool("git", "linux")
        result = router.route("git", windows, linux, windows_ctx, params={"action": "install"})

        assert result.success
        assert result.method == ExecutionMethod.DIRECT
        assert windows.call_count == 1
        assert linux.call_count == 0
        assert tunnel.invocations == []

    def test_wsl_ignores_force(self, wsl_ctx):
        router, tunnel = _router()
        windows, linux = MockTool("git", "windows"), MockTool("git", "linux")
        result = router.route("git", windows, linux, wsl_ctx, force_wsl=True)

        assert result.success
        assert linux.call_count == 1
        assert windows.call_count == 0
        assert tunnel.invocations == []

    def test_missing_impl(self, linux_ctx):
        router, _ = _router()
        result = router.route("wsl", MockTool("wsl", "windows"), None, linux_ctx)
        assert not result.success
        assert "No linux implementation" in result.message

    def test_exception_normalised(self, linux_ctx):
        def broken(params):
            raise RuntimeError("disk full")

        router, _ = _router()
        result = router.route("git", None, broken, linux_ctx)
        assert not result.success
        assert result.exit_code != 0
        assert "disk full" in result.message

    def test_nonzero_exit_code_normalised(self, linux_ctx):
        router, _ = _router()
        result = router.route(
            "git", None, lambda params: ToolResult(success=True, exit_code=3), linux_ctx,
        )
        assert not result.success
        assert result.exit_code == 3

    def test_wrong_return_type(self, linux_ctx):
        router, _ = _router()
        result = router.route("git", None, lambda params: {"ok": True}, linux_ctx)
        assert not result.success

    def test_unsupported_platform_is_failed_result(self):
        router, _ = _router()
        result = router.route("git", MockTool(), MockTool(), None)
        assert not result.success
        assert result.details["error_kind"] == "unsupported_platform"

    def test_test_action(self, linux_ctx):
        router, _ = _router()
        missing = MockTool("git", "linux", installed=False)
        result = router.route("git", None, missing, linux_ctx, params={"action": "test"})
        assert not result.success
        assert result.exit_code == 1


# ── Route: tunnel ────────────────────────────────────────────────────


class TestRouteTunnel:
    def test_force_wsl_tunnels(self, windows_ctx):
        router, tunnel = _router(FakeTunnel(stdout="git ok\n"))
        windows, linux = MockTool("git", "windows"), MockTool("git", "linux")
        result = router.route(
            "git", windows, linux, windows_ctx,
            force_wsl=True,
            params={"action": "install", "check_only": True, "what_if": False},
        )

        assert result.success
        assert result.method == ExecutionMethod.TUNNEL
        assert result.output == "git ok\n"
        assert windows.call_count == 0
        assert linux.call_count == 0
        assert len(tunnel.invocations) == 1

        argv = tunnel.invocations[0].argv()
        assert argv[:5] == ["wsl.exe", "-d", "Ubuntu", "--cd", "/mnt/c/src/devbootstrap"]
        assert argv[-5:] == ["run", "git", "--action", "install", "--check-only"]

    def test_router_forwards_settings_and_mock(self, windows_ctx):
        tunnel = FakeTunnel()
        router = PlatformRouter(
            tunnel=tunnel, source_root=WIN_ROOT, config_path="C:\\work\\devbootstrap.yml", mock=True,
        )
        router.route("git", MockTool(), MockTool(), windows_ctx, force_wsl=True, params={"action": "test"})

        args = tunnel.invocations[0].args
        assert "/mnt/c/work/devbootstrap.yml" in args
        assert "--mock" in args

    def test_exit_code_maps_one_to_one(self, windows_ctx):
        router, _ = _router(FakeTunnel(exit_code=42))
        result = router.route("git", MockTool(), MockTool(), windows_ctx, force_wsl=True)
        assert not result.success
        assert result.exit_code == 42

    def test_no_wsl_available(self):
        ctx = ExecutionContext(environment=Environment.WINDOWS_NATIVE, can_invoke_wsl=False)
        router, tunnel = _router()
        result = router.route("git", MockTool(), MockTool(), ctx, force_wsl=True)
        assert not result.success
        assert "no WSL distribution" in result.message
        assert tunnel.invocations == []

    def test_tunnel_spawn_error(self, windows_ctx):
        router, _ = _router(FakeTunnel(exit_code=127, error="Command not found: wsl.exe"))
        result = router.route("git", MockTool(), MockTool(), windows_ctx, force_wsl=True)
        assert not result.success
        assert result.exit_code == 127
        assert "wsl.exe" in result.message

    def test_untranslatable_root(self, windows_ctx):
        router = PlatformRouter(tunnel=FakeTunnel(), source_root="relative\\dir")
        result = router.route("git", MockTool(), MockTool(), windows_ctx, force_wsl=True)
        assert not result.success
        assert "relative" in result.message


# ── Path translation ─────────────────────────────────────────────────


class TestToWslPath:
    @pytest.mark.parametrize(
        ("windows", "linux"),
        [
            ("C:\\Users\\me\\src", "/mnt/c/Users/me/src"),
            ("d:\\work", "/mnt/d/work"),
            ("C:\\", "/mnt/c"),
            ("\\\\wsl$\\Ubuntu\\home\\me\\repo", "/home/me/repo"),
            ("\\\\wsl.localhost\\Ubuntu-24.04\\opt\\tools", "/opt/tools"),
        ],
    )
    def test_translate(self, windows, linux):
        assert to_wsl_path(windows) == linux

    @pytest.mark.parametrize("path", ["relative\\path", "\\\\fileserver\\share\\x"])
    def test_rejects(self, path):
        with pytest.raises(ValueError):
            to_wsl_path(path)


# ── Parameter forwarding ─────────────────────────────────────────────


class TestForwardParams:
    def test_bool_and_str(self):
        args = forward_params({"action": "install", "check_only": True, "what_if": False})
        assert args == ["--action", "install", "--check-only"]

    def test_none_skipped(self):
        assert forward_params({"loop_name": None}) == []

    def test_other_types_dropped_with_warning(self, caplog):
        with caplog.at_level(logging.WARNING, logger="devbootstrap.core.routing.tunnel"):
            args = forward_params({"retries": 3, "tags": ["a"], "detailed": True})
        assert args == ["--detailed"]
        assert "retries" in caplog.text
        assert "tags" in caplog.text


class TestBuildInvocation:
    def test_structure(self):
        invocation = build_tunnel_invocation(
            "poetry", MockTool(), {"action": "test"}, distro=None, source_root=WIN_ROOT,
        )
        assert invocation.executable == "wsl.exe"
        assert invocation.args == (
            "--cd", "/mnt/c/src/devbootstrap", "--exec",
            "python3", "-m", "devbootstrap.main",
            "tool", "run", "poetry", "--action", "test",
        )

    def test_implementation_root_is_package_parent(self):
        root = implementation_root(MockTool())
        assert (root / "devbootstrap" / "__init__.py").is_file()

    def test_forwards_config_and_mock(self):
        invocation = build_tunnel_invocation(
            "git", MockTool(), {"action": "test"},
            source_root=WIN_ROOT, config_path="C:\\work\\devbootstrap.yml", mock=True,
        )
        args = list(invocation.args)
        config_at = args.index("--config")
        assert args[config_at + 1] == "/mnt/c/work/devbootstrap.yml"
        assert config_at < args.index("tool")
        assert args[args.index("run"):] == ["run", "git", "--mock", "--action", "test"]

    def test_untranslatable_config_path(self):
        with pytest.raises(ValueError):
            build_tunnel_invocation(
                "git", MockTool(), {}, source_root=WIN_ROOT, config_path="devbootstrap.yml",
            )


class TestWslTunnel:
    def test_output_kept_whole(self, monkeypatch):
        calls = []

        def fake(cmd, **kwargs):
            calls.append(kwargs)
            return CommandResult(command=cmd, stdout="y" * 10000)

        monkeypatch.setattr(tunnel_module, "run_command", fake)
        result = WslTunnel().run(TunnelInvocation(executable="wsl.exe", args=("--exec", "true")))

        assert calls[0]["tail"] is None
        assert calls[0]["timeout"] is None
        assert len(result.stdout) == 10000
