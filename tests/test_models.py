"""
Tests for the core models — phase results, tool results, run config.
"""

from datetime import UTC, datetime, timedelta
from pathlib import Path

import pytest
from pydantic import ValidationError

from devbootstrap.core.models.context import Environment, ExecutionContext
from devbootstrap.core.models.phase import PhaseId, PhaseResult
from devbootstrap.core.models.run_config import BootstrapRunConfig, Mode, TargetStageInfo
from devbootstrap.core.models.tool import ToolResult

T0 = datetime(2026, 1, 1, tzinfo=UTC)


# ── PhaseId ──────────────────────────────────────────────────────────


class TestPhaseId:
    def test_ordering(self):
        assert PhaseId.CORE < PhaseId.ENVIRONMENT < PhaseId.BOOTSTRAP

    def test_fatality(self):
        assert PhaseId.CORE.fatal
        assert PhaseId.ENVIRONMENT.fatal
        assert not PhaseId.BOOTSTRAP.fatal

    def test_titles(self):
        assert PhaseId.BOOTSTRAP.title == "Project Bootstrap"


# ── PhaseResult ──────────────────────────────────────────────────────


class TestPhaseResult:
    def test_factories(self):
        assert PhaseResult.succeeded("Core").success
        failed = PhaseResult.failure("Core", "broken")
        assert failed.failed
        skipped = PhaseResult.skip("Core", "not in range")
        assert skipped.success
        assert skipped.skipped
        assert not skipped.failed

    def test_skipped_cannot_fail(self):
        with pytest.raises(ValidationError):
            PhaseResult(success=False, skipped=True, phase_name="Core")

    def test_attach_timing(self):
        result = PhaseResult.succeeded("Core").attach_timing(T0, T0 + timedelta(seconds=2))
        assert result.timed
        assert result.duration == timedelta(seconds=2)
        assert result.start_time == T0

    def test_timing_attached_once(self):
        result = PhaseResult.succeeded("Core").attach_timing(T0, T0)
        with pytest.raises(ValueError, match="already attached"):
            result.attach_timing(T0, T0)

    def test_end_before_start(self):
        with pytest.raises(ValueError):
            PhaseResult.succeeded("Core").attach_timing(T0, T0 - timedelta(seconds=1))

    def test_attach_timing_returns_copy(self):
        original = PhaseResult.succeeded("Core")
        original.attach_timing(T0, T0)
        assert not original.timed

    def test_to_dict(self):
        data = PhaseResult.succeeded("Core", "ok").attach_timing(
            T0, T0 + timedelta(milliseconds=1500),
        ).to_dict()
        assert data["duration_ms"] == 1500
        assert data["phase_name"] == "Core"
        assert "duration" not in data

    def test_to_dict_untimed(self):
        assert PhaseResult.skip("Core").to_dict()["duration_ms"] is None


# ── ToolResult ───────────────────────────────────────────────────────


class TestToolResult:
    def test_ok(self):
        result = ToolResult.ok("done", tool="git")
        assert result.success
        assert result.exit_code == 0

    def test_fail_never_zero(self):
        assert ToolResult.fail("bad").exit_code == 1
        assert ToolResult.fail("bad", exit_code=0).exit_code == 1
        assert ToolResult.fail("bad", exit_code=42).exit_code == 42


# ── ExecutionContext ─────────────────────────────────────────────────


class TestExecutionContext:
    def test_frozen(self, linux_ctx):
        with pytest.raises(ValidationError):
            linux_ctx.distro_name = "Debian"

    def test_flags(self, windows_ctx, wsl_ctx, linux_ctx):
        assert windows_ctx.is_windows
        assert not windows_ctx.is_linux_like
        assert wsl_ctx.is_linux_like
        assert linux_ctx.is_linux_like

    def test_describe(self, windows_ctx):
        assert windows_ctx.describe() == "Windows (Ubuntu) — WSL available"
        bare = ExecutionContext(environment=Environment.WINDOWS_NATIVE)
        assert bare.describe() == "Windows — no WSL"


# ── Mode ─────────────────────────────────────────────────────────────


class TestMode:
    @pytest.mark.parametrize(
        ("value", "expected"),
        [
            ("core", Mode.CORE),
            (" Environment ", Mode.ENVIRONMENT),
            ("BOOTSTRAP", Mode.BOOTSTRAP),
            ("full", Mode.FULL),
            ("", Mode.FULL),
            (None, Mode.FULL),
            ("everything", Mode.FULL),
            (Mode.CORE, Mode.CORE),
        ],
    )
    def test_parse(self, value, expected):
        assert Mode.parse(value) is expected


# ── BootstrapRunConfig ───────────────────────────────────────────────


class TestBootstrapRunConfig:
    def test_defaults(self):
        config = BootstrapRunConfig()
        assert config.mode is Mode.FULL
        assert config.start_from_phase == 1
        assert config.end_at_phase == 3
        assert config.skip_stages == frozenset()

    def test_mode_from_string(self):
        assert BootstrapRunConfig(mode="core").mode is Mode.CORE

    def test_frozen(self):
        config = BootstrapRunConfig()
        with pytest.raises(ValidationError):
            config.check_only = True

    @pytest.mark.parametrize(
        "value",
        ["docker,WSL", " docker , wsl ,", ["Docker", "wsl", ""], ("docker", "wsl")],
    )
    def test_skip_normalisation(self, value):
        assert BootstrapRunConfig(skip_stages=value).skip_stages == {"docker", "wsl"}

    def test_project_dir(self, tmp_path: Path):
        config = BootstrapRunConfig(project_name="demo", project_path=str(tmp_path))
        assert config.project_dir == tmp_path / "demo"
        assert BootstrapRunConfig(project_name="demo").project_dir == Path(".") / "demo"
        assert BootstrapRunConfig().project_dir is None

    def test_non_interactive(self):
        assert BootstrapRunConfig(check_only=True).non_interactive
        assert BootstrapRunConfig(what_if=True).non_interactive
        assert not BootstrapRunConfig().non_interactive


class TestContinuationPrompt:
    def test_default_full_run(self):
        assert BootstrapRunConfig().allows_continuation_prompt()

    @pytest.mark.parametrize(
        "overrides",
        [
            {"mode": "environment"},
            {"start_from_phase": 2},
            {"start_from_stage": 2},
            {"skip_stages": "docker"},
            {"check_only": True},
            {"what_if": True},
            {"target_stage": TargetStageInfo(phase=3, subtype="tools", original_stage_name="tools")},
        ],
    )
    def test_suppressed(self, overrides):
        assert not BootstrapRunConfig(**overrides).allows_continuation_prompt()

    def test_end_override_keeps_prompt(self):
        assert BootstrapRunConfig(end_at_stage=2).allows_continuation_prompt()
