"""
Story Registry CLI - Command-line interface.

Replay call scripts against a registry and inspect error codes and audit logs.
"""

import json
import logging
import os
from pathlib import Path
from typing import Optional

import typer
from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from story_registry.audit.logger import AuditLogger
from story_registry.core.config import (
    DEFAULT_LOG_LEVEL,
    RegistrySettings,
    parse_log_level,
)
from story_registry.core.exceptions import (
    ConfigurationError,
    ScriptError,
    format_exception,
)
from story_registry.core.models import ErrorKind
from story_registry.registry.core import RegistryResult, StoryRegistry
from story_registry.replay import load_script, run_script

app = typer.Typer(
    name="story-registry",
    help="Story Registry - content-backed story token registry",
    no_args_is_help=True,
)
console = Console()


@app.callback()
def configure(
    log_level: Optional[str] = typer.Option(
        None, "--log-level", "-l", help="Logging level (default: SR_LOG_LEVEL or WARNING)"
    ),
):
    """Configure logging for every command."""
    try:
        level = parse_log_level(
            log_level or os.getenv("SR_LOG_LEVEL", DEFAULT_LOG_LEVEL),
            env_var=None if log_level else "SR_LOG_LEVEL",
        )
    except ConfigurationError as e:
        console.print(f"[red]{format_exception(e)}[/red]")
        raise typer.Exit(2)
    logging.basicConfig(
        level=level, format="%(asctime)s %(levelname)s %(name)s: %(message)s"
    )


def _format_result(result: RegistryResult) -> str:
    if result.error is not None:
        return f"[red]{result.error.label} ({result.error.value})[/red]"
    return f"[green]{result.value}[/green]"


@app.command()
def replay(
    script_path: Path = typer.Argument(..., help="JSON script of registry calls"),
    owner: Optional[str] = typer.Option(None, "--owner", help="Contract owner address"),
    max_mint: Optional[int] = typer.Option(None, "--max-mint", help="Initial mint quota"),
    audit_dir: Optional[Path] = typer.Option(
        None, "--audit-dir", "-a", help="Write emitted events to this directory"
    ),
    output: Optional[Path] = typer.Option(
        None, "--output", "-o", help="Write the final registry state as JSON"
    ),
    strict: bool = typer.Option(False, "--strict", help="Exit 1 if any call failed"),
):
    """Run a script of calls against a fresh registry."""
    try:
        script = load_script(script_path)
        settings = RegistrySettings.from_env()
        overrides = {
            "contract_owner": owner if owner is not None else script.contract_owner,
            "max_mint_per_user": (
                max_mint if max_mint is not None else script.max_mint_per_user
            ),
            "audit_dir": audit_dir,
        }
        settings = settings.model_copy(
            update={k: v for k, v in overrides.items() if v is not None}
        )
        registry = StoryRegistry.from_settings(settings)
        outcomes = run_script(registry, script)
    except (ScriptError, ConfigurationError, OSError) as e:
        console.print(f"[red]{format_exception(e)}[/red]")
        raise typer.Exit(2)

    console.print(
        Panel.fit(
            f"[bold blue]Story Registry Replay[/bold blue]\n"
            f"Script: {script_path}\n"
            f"Owner: {settings.contract_owner}",
        )
    )

    table = Table(title=f"Calls ({len(outcomes)})")
    table.add_column("#", justify="right")
    table.add_column("Operation", style="cyan")
    table.add_column("Caller")
    table.add_column("Result")

    for outcome in outcomes:
        table.add_row(
            str(outcome.step),
            outcome.op,
            outcome.caller or "-",
            _format_result(outcome.result),
        )
    console.print(table)

    events = registry.events
    if events:
        event_table = Table(title=f"Events ({len(events)})")
        event_table.add_column("Event", style="magenta")
        event_table.add_column("Token", justify="right")
        event_table.add_column("Actor")
        event_table.add_column("To")
        for event in events:
            event_table.add_row(
                event.event_type.value,
                str(event.token_id),
                event.actor,
                event.recipient or "-",
            )
        console.print(event_table)

    failed = sum(1 for o in outcomes if not o.result.ok)
    console.print(f"\nSucceeded: {len(outcomes) - failed}")
    console.print(f"Failed: {failed}")
    console.print(f"Next token id: {registry.get_next_token_id().value}")

    if output:
        try:
            output.write_text(json.dumps(registry.snapshot(), indent=2))
        except OSError as e:
            console.print(f"[red]Cannot write state: {format_exception(e)}[/red]")
            raise typer.Exit(2)
        console.print(f"\n[green]State saved to:[/green] {output}")

    if strict and failed:
        raise typer.Exit(1)


@app.command()
def errors():
    """List every registry error kind and its code."""
    table = Table(title="Registry Error Kinds")
    table.add_column("Code", justify="right", style="cyan")
    table.add_column("Kind", style="magenta", no_wrap=True)
    table.add_column("Description")

    for kind in ErrorKind:
        table.add_row(str(kind.value), kind.label, kind.description)

    console.print(table)


@app.command()
def audit(
    audit_dir: Path = typer.Argument(..., help="Audit log directory"),
    limit: int = typer.Option(50, "--limit", "-n", min=1, help="Number of events to show"),
):
    """Show stored audit events and verify their checksums."""
    if not audit_dir.is_dir():
        console.print(f"[red]Audit directory does not exist: {audit_dir}[/red]")
        raise typer.Exit(1)

    audit_logger = AuditLogger(audit_dir)
    events = list(audit_logger.read_events())

    if not events:
        console.print("[yellow]No audit events found[/yellow]")
        return

    table = Table(title=f"Audit Events ({len(events)})")
    table.add_column("Recorded", style="cyan")
    table.add_column("Event", style="magenta")
    table.add_column("Token", justify="right")
    table.add_column("Actor")
    table.add_column("Integrity")

    tampered = 0
    for event in events[-limit:]:
        valid = audit_logger.verify(event)
        tampered += 0 if valid else 1
        table.add_row(
            event.recorded_at[:19],
            event.event_type.value,
            str(event.token_id),
            event.actor,
            "[green]ok[/green]" if valid else "[red]mismatch[/red]",
        )

    console.print(table)
    console.print(f"\nTotal events: {len(events)}")
    if tampered:
        console.print(f"[red]Checksum mismatches: {tampered}[/red]")
        raise typer.Exit(1)


@app.command()
def version():
    """Show Story Registry version."""
    from story_registry import __version__

    console.print(f"Story Registry v{__version__}")


def main():
    """Entry point for the CLI."""
    app()


if __name__ == "__main__":
    main()
