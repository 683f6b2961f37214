"""Typer-based CLI for running and previewing the submission relay locally."""

import json
import logging
from pathlib import Path
from typing import Optional

import typer
from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from SubmissionRelay.api.types import MailStatus, SubmissionEvent
from SubmissionRelay.events import DirectEventSource, SNSEventSource
from SubmissionRelay.logging_utils import setup_logging
from SubmissionRelay.notifier import render
from SubmissionRelay.orchestrator import build_relay
from SubmissionRelay.settings import load_settings

console = Console()
app = typer.Typer(help="Submission relay: fetch, archive, notify, audit")


@app.command()
def invoke(
    event_file: Path = typer.Argument(..., exists=True, dir_okay=False, help="JSON event file"),
    sns: bool = typer.Option(
        True,
        "--sns/--direct",
        help="Treat the file as an SNS Lambda event (default) or as a bare submission message",
    ),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable debug logging"),
) -> None:
    """Run one invocation against the environment-configured services."""
    settings = load_settings()
    setup_logging(level="DEBUG" if verbose else settings.log_level, fmt=settings.log_format)

    try:
        raw_event = json.loads(event_file.read_text(encoding="utf-8"))
    except ValueError as e:
        console.print(f"[red]Invalid JSON in {event_file}: {e}[/red]")
        raise typer.Exit(code=2)

    relay = build_relay(settings)
    relay.event_source = SNSEventSource() if sns else DirectEventSource()
    payload = relay.handle(raw_event)
    console.print(Panel(payload, title="Correlation payload", border_style="green"))


@app.command("render")
def render_cmd(
    status: int = typer.Argument(..., help="Status code (1, -1, -2, anything else = unknown)"),
    assignment_id: str = typer.Option("A1", "--assignment-id", "-a"),
    path: str = typer.Option("", "--path", "-p", help="Object key shown on success"),
    bucket: Optional[str] = typer.Option(None, "--bucket", "-b", help="Defaults to $BUCKET"),
) -> None:
    """Preview the email body sent for a status code."""
    event = SubmissionEvent(
        submission_email="student@example.org",
        submission_url="https://example.org/submission.zip",
        submission_id="S1",
        assignment_id=assignment_id,
        user_id="U1",
    )
    resolved_bucket = bucket if bucket is not None else load_settings().bucket
    try:
        title = MailStatus(status).name
    except ValueError:
        title = f"UNKNOWN ({status})"
    body = render(status, event, path, bucket=resolved_bucket)
    console.print(Panel(body, title=title))


@app.command()
def settings() -> None:
    """Show the resolved configuration with secrets masked."""
    logging.getLogger("SubmissionRelay").setLevel(logging.WARNING)
    table = Table(title="Relay settings")
    table.add_column("Variable", style="cyan")
    table.add_column("Value")
    for key, value in load_settings().masked_dump().items():
        table.add_row(key, "" if value is None else str(value))
    console.print(table)


if __name__ == "__main__":
    app()
