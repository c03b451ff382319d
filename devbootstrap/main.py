"""
devbootstrap — CLI entrypoint.

Usage:
    python -m devbootstrap.main --help
    python -m devbootstrap.main run --mode full
    python -m devbootstrap.main run --only-stage tools --project-name demo
    python -m devbootstrap.main list stages
"""

from __future__ import annotations

import json
import sys
from pathlib import Path

import click

from devbootstrap import __version__
from devbootstrap.core.observability.logging_config import configure_logging

EXIT_INTERRUPTED = 130


@click.group()
@click.version_option(version=__version__, prog_name="devbootstrap")
@click.option("--verbose", "-v", is_flag=True, help="Enable verbose output.")
@click.option("--quiet", "-q", is_flag=True, help="Suppress non-essential output.")
@click.option("--debug", is_flag=True, help="Enable debug logging (very verbose).")
@click.option(
    "--config",
    "-c",
    "config_path",
    type=click.Path(exists=False),
    default=None,
    help="Path to devbootstrap.yml (default: auto-detect).",
)
@click.pass_context
def cli(
    ctx: click.Context,
    verbose: bool,
    quiet: bool,
    debug: bool,
    config_path: str | None,
) -> None:
    """devbootstrap — set up a developer workstation, phase by phase."""
    ctx.ensure_object(dict)
    ctx.obj["verbose"] = verbose
    ctx.obj["quiet"] = quiet
    ctx.obj["debug"] = debug
    ctx.obj["config_path"] = Path(config_path) if config_path else None

    configure_logging(debug=debug, verbose=verbose, quiet=quiet)


def _choose_loop(names: list[str]) -> str:
    click.secho("\n🧩 Available loops:", fg="cyan", bold=True)
    for name in names:
        click.echo(f"   • {name}")
    return click.prompt("Select a loop", type=click.Choice(names, case_sensitive=False))


_STATE_COLORS = {"completed": "green", "aborted": "red"}


@cli.command()
@click.option("--mode", default=None, help="core | environment | bootstrap | full (default: full).")
@click.option("--start-from-phase", default=None, help="First phase to run (number or name).")
@click.option("--end-at-phase", default=None, help="Last phase to run (number or name).")
@click.option("--start-from-stage", default=None, help="First project-bootstrap stage (number or name).")
@click.option("--end-at-stage", default=None, help="Last project-bootstrap stage (number or name).")
@click.option(
    "--skip-stages",
    multiple=True,
    help="Stages to skip (comma-separated, repeatable).",
)
@click.option("--only-stage", default=None, help="Run exactly one stage, after checking its prerequisites.")
@click.option("--check-only", is_flag=True, help="Only check compliance; install nothing.")
@click.option("--what-if", is_flag=True, help="Describe what would happen; change nothing.")
@click.option("--no-wsl", is_flag=True, help="Never use WSL.")
@click.option("--loop-name", default=None, help="Project template (loop) to bootstrap.")
@click.option("--project-name", default=None, help="Name of the project to create.")
@click.option("--project-path", default=None, help="Parent directory of the project (default: cwd).")
@click.option("--mock", is_flag=True, help="Use mock tools (no real installs).")
@click.option("--json-output", "--json", "as_json", is_flag=True, help="Output as JSON.")
@click.pass_context
def run(
    ctx: click.Context,
    mode: str | None,
    start_from_phase: str | None,
    end_at_phase: str | None,
    start_from_stage: str | None,
    end_at_stage: str | None,
    skip_stages: tuple[str, ...],
    only_stage: str | None,
    check_only: bool,
    what_if: bool,
    no_wsl: bool,
    loop_name: str | None,
    project_name: str | None,
    project_path: str | None,
    mock: bool,
    as_json: bool,
) -> None:
    """Run the bootstrap phases.

    Examples:

        devbootstrap run

        devbootstrap run --mode environment --check-only

        devbootstrap run --start-from-phase 3 --loop-name python-cli --project-name demo

        devbootstrap run --only-stage tools --project-name demo --what-if
    """
    from devbootstrap.core.engine.gate import ContinuationGate
    from devbootstrap.core.errors import BootstrapError
    from devbootstrap.core.use_cases.bootstrap import build_run_config, run_bootstrap

    try:
        config = build_run_config(
            mode=mode,
            start_from_phase=start_from_phase,
            end_at_phase=end_at_phase,
            start_from_stage=start_from_stage,
            end_at_stage=end_at_stage,
            skip_stages=skip_stages,
            only_stage=only_stage,
            check_only=check_only,
            what_if=what_if,
            no_wsl=no_wsl,
            loop_name=loop_name,
            project_name=project_name,
            project_path=project_path,
        )
    except BootstrapError as e:
        click.secho(f"❌ {e}", fg="red")
        sys.exit(1)

    try:
        result = run_bootstrap(
            config,
            config_path=ctx.obj.get("config_path"),
            mock_mode=mock,
            gate=ContinuationGate.on_stderr() if as_json else None,
            choose_loop=None if as_json else _choose_loop,
        )
    except (KeyboardInterrupt, click.Abort):
        click.secho("\n⊘ Interrupted", fg="yellow", err=True)
        sys.exit(EXIT_INTERRUPTED)

    if as_json:
        click.echo(json.dumps(result.to_dict(), indent=2))
        sys.exit(result.exit_code)

    if result.error:
        click.secho(f"❌ {result.error}", fg="red")
        sys.exit(1)

    outcome = result.outcome
    assert outcome is not None
    assert result.context is not None

    label = "[what-if] " if what_if else "[check-only] " if check_only else "[mock] " if mock else ""
    click.secho(f"\n⚡ {label}devbootstrap — {result.context.describe()}", fg="cyan", bold=True)
    if outcome.phase_range:
        click.echo(f"   Mode: {config.mode.value} | Phases: {outcome.phase_range.min_phase}-{outcome.phase_range.max_phase}")
    click.echo()

    for number, phase_result in enumerate(outcome.results, start=1):
        timing = ""
        if phase_result.duration is not None:
            timing = f" ({int(phase_result.duration.total_seconds() * 1000)}ms)"
        if phase_result.skipped:
            click.secho(f"   ⊘ Phase {number}: {phase_result.phase_name} ", fg="yellow", nl=False)
            click.echo(f"({phase_result.message})")
            continue
        if phase_result.success:
            click.secho(f"   ✓ Phase {number}: {phase_result.phase_name}", fg="green", nl=False)
        else:
            click.secho(f"   ✗ Phase {number}: {phase_result.phase_name}", fg="red", nl=False)
        click.echo(f"{timing}  {phase_result.message}")
        if ctx.obj.get("verbose") or not phase_result.success:
            _echo_stages(phase_result.details.get("stages", {}))

    summary = outcome.summary
    assert summary is not None
    click.echo()
    color = _STATE_COLORS.get(outcome.state.value, "white")
    if outcome.state.value == "completed" and not summary.all_succeeded:
        color = "yellow"
    click.secho(
        f"   Result: {summary.success_count}/{summary.total_count} phases succeeded"
        f" ({outcome.state.value})",
        fg=color,
        bold=True,
    )

    if outcome.remediation:
        click.echo()
        click.secho("🩹 Remediation", fg="yellow", bold=True)
        for line in outcome.remediation.lines():
            click.echo(f"   {line}")

    click.echo()
    sys.exit(outcome.exit_code)


def _echo_stages(stages: dict) -> None:
    for name, stage in stages.items():
        status = stage.get("status", "")
        icon = {"ok": "✓", "skipped": "⊘"}.get(status, "✗")
        reason = stage.get("reason") or stage.get("message") or ""
        click.echo(f"     {icon} {name}{f' — {reason}' if reason else ''}")
        for tool, record in stage.get("tools", {}).items():
            marker = "✓" if record["success"] else "✗"
            click.echo(f"       {marker} {tool}: {record['message']}")


@cli.command()
@click.option("--json-output", "--json", "as_json", is_flag=True, help="Output as JSON.")
def detect(as_json: bool) -> None:
    """Show the detected execution context."""
    from devbootstrap.core.detection.environment import detect_execution_context

    context = detect_execution_context()

    if as_json:
        click.echo(json.dumps(context.model_dump(mode="json"), indent=2))
        return

    click.secho(f"🔍 {context.describe()}", fg="cyan", bold=True)
    click.echo(f"   Environment: {context.environment.value}")
    click.echo(f"   Can invoke WSL: {'yes' if context.can_invoke_wsl else 'no'}")
    if context.distro_name:
        click.echo(f"   Distro: {context.distro_name}")


# ── Register sub-command groups from devbootstrap/ui/cli/ ─────────

from devbootstrap.ui.cli.catalog import catalog  # noqa: E402
from devbootstrap.ui.cli.tool import tool  # noqa: E402

cli.add_command(catalog)
cli.add_command(tool)


if __name__ == "__main__":
    cli()
