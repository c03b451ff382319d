"""
Tests for tool installers — version checks, recipe installer, mock, registry.
"""

import pytest

from devbootstrap.adapters.shell.command import CommandResult
from devbootstrap.adapters.tools.mock import MockTool
from devbootstrap.adapters.tools.package_manager import RecipeInstaller
from devbootstrap.adapters.tools.recipes import TOOL_RECIPES, get_recipe, manual_hint
from devbootstrap.adapters.tools.registry import ToolEntry, ToolRegistry, build_registry
from devbootstrap.adapters.tools.version_check import check_requirement, parse_version
from devbootstrap.core.config.loader import BootstrapSettings
from devbootstrap.core.models.tool import ExecutionMethod, VersionRequirement

# ── Version checks ───────────────────────────────────────────────────


class TestParseVersion:
    @pytest.mark.parametrize(
        ("text", "expected"),
        [
            ("2.43.0", (2, 43, 0)),
            ("3.12", (3, 12, 0)),
            ("v1", (1, 0, 0)),
            ("git version 2.39.2.windows.1", (2, 39, 2)),
        ],
    )
    def test_parse(self, text, expected):
        assert parse_version(text) == expected

    def test_no_version(self):
        with pytest.raises(ValueError):
            parse_version("unknown")


class TestCheckRequirement:
    REQ = VersionRequirement(minimum_version="2.30", recommended_version="2.45")

    def test_not_installed(self):
        assert check_requirement(None, self.REQ) == (False, "not installed")

    def test_below_minimum(self):
        compliant, message = check_requirement("2.20.1", self.REQ)
        assert not compliant
        assert "minimum" in message

    def test_below_recommended_is_compliant(self):
        compliant, message = check_requirement("2.40.0", self.REQ)
        assert compliant
        assert "recommended" in message

    def test_meets_recommended(self):
        assert check_requirement("2.45.0", self.REQ) == (True, "version 2.45.0")

    def test_no_requirement(self):
        assert check_requirement("0.1", VersionRequirement())[0]


# ── Recipe installer ─────────────────────────────────────────────────


class FakeRunner:
    """Scripted command runner: version output per call, exit codes per argv[0]."""

    def __init__(self, versions=("git version 2.45.1",), failing=()):
        self.versions = list(versions)
        self.failing = set(failing)
        self.calls: list[list[str]] = []

    def __call__(self, cmd, **kwargs):
        self.calls.append(list(cmd))
        if cmd[0] in self.failing:
            return CommandResult(command=cmd, exit_code=100, stderr="E: broken")
        if "--version" in cmd or "version" in cmd:
            text = self.versions.pop(0) if len(self.versions) > 1 else self.versions[0]
            return CommandResult(command=cmd, stdout=text)
        return CommandResult(command=cmd)


def _git(platform="linux", runner=None, privileged=None, which=lambda name: f"/usr/bin/{name}"):
    return RecipeInstaller(
        "git",
        TOOL_RECIPES["git"],
        platform,
        VersionRequirement(minimum_version="2.30.0", recommended_version="2.45.0"),
        runner=runner or FakeRunner(),
        privileged_runner=privileged or FakeRunner(),
        which=which,
    )


class TestRecipeInstallerTest:
    def test_compliant(self):
        status = _git().test()
        assert status.installed
        assert status.compliant
        assert status.version == "2.45.1"

    def test_not_on_path(self):
        status = _git(which=lambda name: None).test()
        assert not status.installed
        assert "not found" in status.message

    def test_too_old(self):
        status = _git(runner=FakeRunner(versions=["git version 2.20.0"])).test()
        assert status.installed
        assert not status.compliant

    def test_unrecognised_output(self):
        status = _git(runner=FakeRunner(versions=["something odd"])).test()
        assert status.installed
        assert not status.compliant

    def test_detailed_includes_path(self):
        assert "/usr/bin/git" in _git().test(detailed=True).message

    def test_unknown_platform(self):
        with pytest.raises(ValueError):
            RecipeInstaller("git", TOOL_RECIPES["git"], "macos")


class TestRecipeInstallerPlan:
    def test_apt_needs_root(self):
        steps = _git().plan()
        assert steps[0] == (["apt-get", "update", "-qq"], True)
        assert steps[1][0][-1] == "git"

    def test_winget(self):
        argv, root = _git("windows").plan()[0]
        assert argv[:4] == ["winget", "install", "--id", "Git.Git"]
        assert not root

    def test_pipx(self):
        installer = RecipeInstaller("poetry", TOOL_RECIPES["poetry"], "linux")
        assert installer.plan() == [(["pipx", "install", "--force", "poetry"], False)]

    def test_post_install(self):
        installer = RecipeInstaller("git-lfs", TOOL_RECIPES["git-lfs"], "linux")
        assert installer.plan()[-1] == (["git", "lfs", "install"], False)

    def test_no_method(self):
        assert RecipeInstaller("wsl", TOOL_RECIPES["wsl"], "linux").plan() == []


class TestRecipeInstallerInstall:
    def test_already_compliant_runs_nothing(self):
        privileged = FakeRunner()
        result = _git(privileged=privileged).install()
        assert result.success
        assert privileged.calls == []

    def test_check_only_not_compliant(self):
        privileged = FakeRunner()
        result = _git(runner=FakeRunner(versions=["git version 2.0.0"]), privileged=privileged).install(
            check_only=True,
        )
        assert not result.success
        assert "check only" in result.message
        assert privileged.calls == []

    def test_what_if_describes_plan(self):
        privileged = FakeRunner()
        result = _git(which=lambda name: None, privileged=privileged).install(what_if=True)
        assert result.success
        assert result.details["planned"][0] == "sudo apt-get update -qq"
        assert privileged.calls == []

    def test_installs_then_retests(self):
        runner = FakeRunner(versions=["git version 2.10.0", "git version 2.45.1"])
        privileged = FakeRunner()
        result = _git(runner=runner, privileged=privileged).install()
        assert result.success
        assert "2.45.1" in result.message
        assert [c[0] for c in privileged.calls] == ["apt-get", "apt-get"]

    def test_failing_step(self):
        runner = FakeRunner(versions=["git version 2.10.0"])
        privileged = FakeRunner(failing={"apt-get"})
        result = _git(runner=runner, privileged=privileged).install()
        assert not result.success
        assert result.exit_code == 100
        assert len(privileged.calls) == 1

    def test_still_not_compliant_after_install(self):
        runner = FakeRunner(versions=["git version 2.10.0"])
        result = _git(runner=runner).install()
        assert not result.success
        assert "still not compliant" in result.message


# ── Routable dispatch ────────────────────────────────────────────────


class TestInstallerCall:
    def test_test_action(self):
        result = MockTool("git", version="2.0.0")({"action": "test"})
        assert result.success
        assert result.output == "2.0.0"
        assert result.details["compliant"]

    def test_install_action_forwards_flags(self):
        tool = MockTool("git", installed=False)
        tool({"action": "install", "what_if": True})
        assert tool.call_log == [("install", {"check_only": False, "what_if": True})]

    def test_unknown_action(self):
        assert not MockTool("git")({"action": "remove"}).success


# ── Mock tool ────────────────────────────────────────────────────────


class TestMockTool:
    def test_installed_is_noop(self):
        tool = MockTool("git")
        assert tool.install().success
        assert tool.install_count == 1

    def test_install_marks_installed(self):
        tool = MockTool("git", installed=False)
        assert not tool.test().compliant
        assert tool.install().success
        assert tool.test().compliant

    def test_check_only_fails_when_missing(self):
        assert not MockTool("git", installed=False).install(check_only=True).success

    def test_failure(self):
        tool = MockTool("git", installed=False)
        tool.set_failure()
        assert not tool.install().success

    def test_reset(self):
        tool = MockTool("git")
        tool.test()
        tool.reset()
        assert tool.call_count == 0


# ── Registry ─────────────────────────────────────────────────────────


class TestRegistry:
    def test_register_and_get(self):
        registry = ToolRegistry()
        entry = ToolEntry(name="git", linux=MockTool("git"))
        registry.register(entry)
        assert registry.get("git") is entry
        assert registry.names() == ["git"]

    def test_unknown_tool(self, linux_ctx):
        result = ToolRegistry().install("nope", linux_ctx)
        assert not result.success
        assert "No tool registered" in result.message

    def test_install_routes_by_context(self, mock_registry, linux_ctx, windows_ctx):
        registry, tools = mock_registry()
        registry.install("git", linux_ctx)
        registry.install("git", windows_ctx)
        assert tools[("git", "linux")].install_count == 1
        assert tools[("git", "windows")].install_count == 1

    def test_test_goes_through_router(self, mock_registry, linux_ctx):
        registry, _ = mock_registry(missing=("poetry",))
        result = registry.test("poetry", linux_ctx)
        assert not result.success
        assert result.method == ExecutionMethod.DIRECT

    def test_local_installer(self, mock_registry, linux_ctx, windows_ctx):
        registry, tools = mock_registry()
        assert registry.local_installer("git", linux_ctx) is tools[("git", "linux")]
        assert registry.local_installer("git", windows_ctx) is tools[("git", "windows")]
        assert registry.local_installer("nope", linux_ctx) is None


class TestBuildRegistry:
    def test_every_recipe_registered(self):
        registry = build_registry(BootstrapSettings())
        assert sorted(registry.names()) == sorted(TOOL_RECIPES)

    def test_wsl_has_no_linux_side(self):
        registry = build_registry(BootstrapSettings())
        assert registry.get("wsl").linux is None
        assert isinstance(registry.get("git").linux, RecipeInstaller)

    def test_mock_mode(self, linux_ctx):
        registry = build_registry(BootstrapSettings(), mock=True)
        assert isinstance(registry.get("docker").linux, MockTool)
        assert registry.install("docker", linux_ctx).success


class TestRecipes:
    def test_every_recipe_has_hints(self):
        for name, recipe in TOOL_RECIPES.items():
            assert recipe.get("hint"), name

    def test_manual_hint(self):
        assert "winget" in manual_hint("git", "windows")
        assert manual_hint("wsl", "linux") is None
        assert manual_hint("nope", "linux") is None

    def test_get_recipe(self):
        assert get_recipe("git")["label"] == "Git"
        assert get_recipe("nope") is None
