"""
phasegate CLI - hook entry point and operator commands.

The host runs ``phasegate hook`` with the request envelope on stdin; the
response envelope goes to stdout and the exit code signals allow (0) or
block (2). Operator commands inspect and update governance state.
"""

import logging
import sys
from pathlib import Path
from typing import Optional

import typer
from rich.console import Console
from rich.table import Table

from phasegate import __version__
from phasegate.core.config import Settings
from phasegate.core.exceptions import ArtifactNotFoundError, ConfigurationError
from phasegate.core.models import Phase
from phasegate.governance.engine import GovernanceEngine
from phasegate.governance.kinds import ArtifactKind, get_kind
from phasegate.hooks.envelope import EXIT_ALLOW, HookResponse
from phasegate.hooks.runner import HookRunner
from phasegate.hooks.session import bootstrap_session
from phasegate.monitoring.diagnostics import configure_diagnostics

app = typer.Typer(
    name="phasegate",
    help="phasegate - phase-lifecycle governance for workflows and voice agents",
    no_args_is_help=True,
)
console = Console()
logger = logging.getLogger(__name__)

ROOT_OPTION = typer.Option(None, "--root", help="Project root (default: PHASEGATE_ROOT or cwd)")
KIND_OPTION = typer.Option("workflow", "--kind", "-k", help="Artifact kind: workflow or agent")


def _load_settings(root: Optional[Path]) -> Settings:
    settings = Settings.from_env(root)
    configure_diagnostics(settings.log_dir, settings.log_level)
    return settings


def _resolve_kind(key: str) -> ArtifactKind:
    try:
        return get_kind(key)
    except KeyError:
        console.print(f"[red]Unknown kind: {key}[/red]")
        raise typer.Exit(1)


def _emit(response: HookResponse) -> None:
    typer.echo(response.to_json())


@app.command()
def hook(root: Optional[Path] = ROOT_OPTION):
    """Run one governance hook: JSON request on stdin, JSON response on stdout."""
    # Bytes, so invalid UTF-8 reaches parse_request instead of failing here
    raw = sys.stdin.buffer.read()

    try:
        settings = _load_settings(root)
    except ConfigurationError as e:
        _emit(HookResponse.allow(f"Governance disabled: {e}"))
        raise typer.Exit(EXIT_ALLOW)

    try:
        response = HookRunner(settings).run_raw(raw)
    except Exception as e:
        logger.exception("Hook failed", extra={"component": "hooks"})
        response = HookResponse.allow(f"Governance check error (allowed): {e}")

    _emit(response)
    raise typer.Exit(response.exit_code)


@app.command("session-init")
def session_init(root: Optional[Path] = ROOT_OPTION):
    """Probe the instance, prepare workflow directories and record session state."""
    try:
        settings = _load_settings(root)
        _, message = bootstrap_session(settings)
        response = HookResponse.allow(message)
    except (ConfigurationError, OSError) as e:
        response = HookResponse.allow(f"Init error: {e}")

    _emit(response)


@app.command()
def artifacts(
    kind: str = KIND_OPTION,
    root: Optional[Path] = ROOT_OPTION,
):
    """List tracked artifacts and their phases."""
    artifact_kind = _resolve_kind(kind)
    engine = GovernanceEngine.for_kind(artifact_kind, _load_settings(root))
    records = engine.list_artifacts()

    table = Table(title=f"Tracked {artifact_kind.store_key} ({len(records)})")
    table.add_column("ID", style="cyan")
    table.add_column("Name")
    table.add_column("Phase", style="magenta")
    table.add_column("Modified", style="green")

    for record in records:
        table.add_row(record.id, record.name, record.phase.value, record.modified)

    console.print(table)


@app.command()
def phase(
    artifact_id: str = typer.Argument(..., help="Tracked artifact id"),
    new_phase: str = typer.Argument(..., help="DEV, ALPHA, BETA, GA, PROD or ARCHIVED"),
    kind: str = KIND_OPTION,
    root: Optional[Path] = ROOT_OPTION,
):
    """Set an artifact's phase (no transition rules are enforced)."""
    artifact_kind = _resolve_kind(kind)
    try:
        target = Phase.parse(new_phase)
    except ValueError:
        console.print(f"[red]Unknown phase: {new_phase}[/red]")
        raise typer.Exit(1)

    engine = GovernanceEngine.for_kind(artifact_kind, _load_settings(root))
    try:
        result = engine.set_phase(artifact_id, target)
    except ArtifactNotFoundError as e:
        console.print(f"[red]{e.message}[/red]")
        raise typer.Exit(1)

    if not result.persisted:
        console.print(f"[red]{result.error}[/red]")
        raise typer.Exit(1)

    console.print(f"[green]{artifact_kind.title} {artifact_id} is now {target.value}[/green]")


@app.command()
def similar(
    text: str = typer.Argument(..., help="Name and description of a candidate artifact"),
    kind: str = KIND_OPTION,
    root: Optional[Path] = ROOT_OPTION,
):
    """Show tracked artifacts similar to a candidate."""
    artifact_kind = _resolve_kind(kind)
    engine = GovernanceEngine.for_kind(artifact_kind, _load_settings(root))
    matches = engine.find_similar(text)

    if not matches:
        console.print(f"No similar {artifact_kind.store_key} found.")
        return

    table = Table(title=f"Similar {artifact_kind.store_key}")
    table.add_column("Similarity", justify="right", style="green")
    table.add_column("ID", style="cyan")
    table.add_column("Name")
    table.add_column("Phase", style="magenta")

    for match in matches:
        table.add_row(f"{match.similarity}%", match.id, match.name, match.phase.value)

    console.print(table)


@app.command()
def version():
    """Show version information."""
    console.print(f"phasegate {__version__}")


def main() -> None:
    """Entry point for console scripts."""
    app()


if __name__ == "__main__":
    main()
