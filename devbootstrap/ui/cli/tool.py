"""
CLI commands for individual tools.

``tool run`` is also the re-entry point of the WSL tunnel: the Windows
side forwards its routed parameters as flags, and the exit code of
this command becomes the routed ToolResult's exit code.
"""

from __future__ import annotations

import json
import sys

import click


def _registry(ctx: click.Context, mock: bool):
    from devbootstrap.adapters.tools.registry import build_registry
    from devbootstrap.core.config.loader import load_settings
    from devbootstrap.core.errors import ConfigError

    try:
        settings = load_settings(ctx.obj.get("config_path"))
    except ConfigError as e:
        click.secho(f"❌ {e}", fg="red")
        sys.exit(1)
    return build_registry(settings, mock=mock)


@click.group()
def tool() -> None:
    """Tools — run or test a single tool installer."""


@tool.command("run")
@click.argument("name")
@click.option(
    "--action",
    type=click.Choice(["install", "test"]),
    default="install",
    help="What to do (default: install).",
)
@click.option("--check-only", is_flag=True, help="Only check compliance.")
@click.option("--what-if", is_flag=True, help="Describe what would happen.")
@click.option("--detailed", is_flag=True, help="Detailed compliance output.")
@click.option("--mock", is_flag=True, help="Use a mock installer.")
@click.pass_context
def run_tool(
    ctx: click.Context,
    name: str,
    action: str,
    check_only: bool,
    what_if: bool,
    detailed: bool,
    mock: bool,
) -> None:
    """Run one tool's local implementation (no routing)."""
    from devbootstrap.core.detection.environment import detect_execution_context

    registry = _registry(ctx, mock)
    installer = registry.local_installer(name, detect_execution_context())
    if installer is None:
        click.secho(f"❌ No local implementation for '{name}'", fg="red")
        sys.exit(1)

    result = installer({
        "action": action,
        "check_only": check_only,
        "what_if": what_if,
        "detailed": detailed,
    })

    if result.success:
        click.echo(result.message)
    else:
        click.secho(result.message, fg="red")
    if detailed and result.details:
        for key, value in result.details.items():
            click.echo(f"   {key}: {value}")
    sys.exit(result.exit_code if not result.success else 0)


@tool.command("test")
@click.argument("name")
@click.option("--wsl", "force_wsl", is_flag=True, help="Test the WSL side (Windows only).")
@click.option("--mock", is_flag=True, help="Use a mock installer.")
@click.option("--json-output", "--json", "as_json", is_flag=True, help="Output as JSON.")
@click.pass_context
def test_tool(ctx: click.Context, name: str, force_wsl: bool, mock: bool, as_json: bool) -> None:
    """Check a tool's compliance, routed for this platform."""
    from devbootstrap.core.detection.environment import detect_execution_context

    registry = _registry(ctx, mock)
    result = registry.test(name, detect_execution_context(), force_wsl=force_wsl)

    if as_json:
        click.echo(json.dumps(result.model_dump(mode="json"), indent=2))
        sys.exit(0 if result.success else 1)

    method = f" via {result.method.value}" if result.method else ""
    if result.success:
        click.secho(f"✅ {name}{method}: {result.message}", fg="green")
    else:
        click.secho(f"❌ {name}{method}: {result.message}", fg="red")
        sys.exit(1)
