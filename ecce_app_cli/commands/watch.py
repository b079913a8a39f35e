"""The watch command: rewrite trigger markers in a document as they are typed."""

from __future__ import annotations

import asyncio
import logging
import sys
from pathlib import Path

import click

from ..agent import DEFAULT_AGENT
from ..agent import AgentSession
from ..console import console
from ..errors import EcceError
from ..executor import ClaudeCodeExecutor
from ..orchestrator import WatchSession
from ..settings import AgentConfig
from ..settings import SettingsManager
from ..settings import TaskConfig
from ..utils.error_format import escape_markup
from ..utils.error_format import format_error_message
from ..watcher import ContentTracker

logger = logging.getLogger(__name__)

DEFAULT_DOCUMENT = "slides.md"


def resolve_document_path(path: Path) -> Path:
    """Resolve the file to watch; a directory means its slides.md.

    Raises:
        click.ClickException: If nothing watchable exists at path
    """
    if not path.exists():
        raise click.ClickException(f"Path not found: {path}")

    if path.is_dir():
        candidate = path / DEFAULT_DOCUMENT
        if candidate.is_file():
            console.print(f"[green]📁 Found {DEFAULT_DOCUMENT} in directory: {escape_markup(path)}[/green]")
            return candidate
        raise click.ClickException(f"Directory provided but {DEFAULT_DOCUMENT} not found in: {path}")

    if path.is_file():
        return path

    raise click.ClickException(f"Invalid path (not a file or directory): {path}")


def select_agent(settings: SettingsManager, agent_name: str | None) -> AgentConfig:
    """Explicit name, then the configured default, then the built-in agent."""
    if agent_name:
        return settings.get_agent(agent_name)
    return settings.get_default_agent() or DEFAULT_AGENT


def select_task(settings: SettingsManager, task_name: str | None) -> TaskConfig | None:
    if task_name:
        return settings.get_task(task_name)
    return None


def _print_banner(path: Path, agent: AgentConfig, task: TaskConfig | None, interval_ms: int) -> None:
    console.print("\n[bold green]🎭 Ecce Homo - File Watcher Started[/bold green]")
    console.print("[dim]" + "═" * 60 + "[/dim]")
    console.print(f"  📄 File:     [cyan]{escape_markup(path)}[/cyan]")
    console.print(f"  🤖 Agent:    [cyan]{escape_markup(agent.name)}[/cyan]")
    console.print(f"  📋 Task:     [cyan]{escape_markup(task.name) if task else '(none)'}[/cyan]")
    console.print("[dim]" + "═" * 60 + "[/dim]")
    console.print("\n[yellow]👀 Watching for patterns...[/yellow]")
    console.print("   Pattern 1: [cyan]ecce <prompt> ecce[/cyan]")
    console.print("   Pattern 2: [cyan]```ecce\\n<prompt>\\n```[/cyan]")
    console.print(f"   Interval:  [cyan]{interval_ms}ms[/cyan]")
    console.print("\n   Press [bold]Ctrl+C[/bold] to stop\n")


@click.command("watch")
@click.argument("file_path", type=click.Path(path_type=Path))
@click.option("--agent", "-a", "agent_name", help="Agent to use (default: configured default agent)")
@click.option("--task", "-t", "task_name", help="Task template to use")
@click.option("--watch-interval", type=click.IntRange(min=1), default=100, show_default=True, help="Poll interval in milliseconds")
@click.option("--timeout", type=float, default=None, help="Seconds to wait for each generated response")
def watch_cmd(file_path: Path, agent_name: str | None, task_name: str | None, watch_interval: int, timeout: float | None):
    """Watch FILE_PATH and answer ecce markers in place.

    FILE_PATH may be a directory, in which case its slides.md is watched.

    Examples:
        ecce watch slides.md
        ecce watch talks/intro --agent slides --task expand
    """
    document = resolve_document_path(file_path)
    settings = SettingsManager()

    try:
        agent = select_agent(settings, agent_name)
        task = select_task(settings, task_name)
        executable = settings.get_claude_executable()
    except EcceError as e:
        console.print(f"[red]Error:[/red] {escape_markup(format_error_message(e, include_type=False))}")
        sys.exit(1)

    executor = ClaudeCodeExecutor(executable=executable, timeout=timeout, working_dir=document.parent)
    session = WatchSession(
        document,
        AgentSession(agent, executor, task),
        tracker=ContentTracker(poll_interval=watch_interval / 1000),
        console=console,
    )

    _print_banner(document, agent, task, watch_interval)
    logger.info(
        f"Watching {document} with agent {agent.name}",
        extra={"event": "session_started", "path": str(document)},
    )

    try:
        session.start()
        asyncio.run(session.run_until_interrupted())
    except EcceError as e:
        logger.error(f"Watch session ended: {e}", extra={"event": "session_failed", "path": str(document)})
        console.print(f"[red]Error:[/red] {escape_markup(format_error_message(e))}")
        sys.exit(1)
