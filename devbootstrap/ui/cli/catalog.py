"""
CLI commands that describe what a run can do.

Thin wrappers over the phase, stage and mode catalogs.
"""

from __future__ import annotations

import json

import click

from devbootstrap.core.engine.stages import STAGES
from devbootstrap.core.models.phase import PhaseId
from devbootstrap.core.models.run_config import MODE_DESCRIPTIONS


@click.group("list")
def catalog() -> None:
    """List — phases, stages, modes."""


@catalog.command()
@click.option("--json-output", "--json", "as_json", is_flag=True, help="Output as JSON.")
def phases(as_json: bool) -> None:
    """Show the three phases in execution order."""
    rows = [
        {"phase": int(p), "name": p.title, "fatal": p.fatal}
        for p in PhaseId
    ]
    if as_json:
        click.echo(json.dumps(rows, indent=2))
        return

    click.secho("📋 Phases:", fg="cyan", bold=True)
    for row in rows:
        fatal = "fatal on failure" if row["fatal"] else "non-fatal"
        click.echo(f"   {row['phase']}. {row['name']} ({fatal})")


@catalog.command()
@click.option("--phase", "phase_filter", type=int, default=None, help="Only stages of this phase.")
@click.option("--json-output", "--json", "as_json", is_flag=True, help="Output as JSON.")
def stages(phase_filter: int | None, as_json: bool) -> None:
    """Show every stage with its tools and prerequisites."""
    selected = [s for s in STAGES if phase_filter is None or int(s.phase) == phase_filter]
    rows = [
        {
            "phase": int(s.phase),
            "index": s.index,
            "name": s.name,
            "description": s.description,
            "tools": list(s.tools),
            "requires": [d.describe() for d in s.dependencies],
            "windows_only": s.windows_only,
        }
        for s in selected
    ]
    if as_json:
        click.echo(json.dumps(rows, indent=2))
        return

    current = None
    for row in rows:
        if row["phase"] != current:
            current = row["phase"]
            click.secho(f"\n📦 Phase {current}: {PhaseId(current).title}", fg="cyan", bold=True)
        click.echo(f"   {row['index']}. {row['name']} — {row['description']}")
        if row["tools"]:
            click.echo(f"      Tools: {', '.join(row['tools'])}")
        if row["requires"]:
            click.echo(f"      Requires: {'; '.join(row['requires'])}")
    click.echo()


@catalog.command()
@click.option("--json-output", "--json", "as_json", is_flag=True, help="Output as JSON.")
def modes(as_json: bool) -> None:
    """Show the run modes."""
    rows = {mode.value: text for mode, text in MODE_DESCRIPTIONS.items()}
    if as_json:
        click.echo(json.dumps(rows, indent=2))
        return

    click.secho("🎛  Modes:", fg="cyan", bold=True)
    for name, text in rows.items():
        click.echo(f"   {name:<12} {text}")
