"""Agent management commands."""

from __future__ import annotations

import sys
from pathlib import Path
from typing import NoReturn

import click
from rich.panel import Panel
from rich.table import Table

from ..console import console
from ..errors import EcceError
from ..settings import AgentConfig
from ..settings import SettingsManager
from ..utils.error_format import escape_markup


def _fail(e: Exception) -> NoReturn:
    console.print(f"[red]Error:[/red] {escape_markup(e)}")
    sys.exit(1)


@click.group(invoke_without_command=True)
@click.pass_context
def agent(ctx: click.Context):
    """Manage agents (system prompt + context files)."""
    if ctx.invoked_subcommand is None:
        click.echo("\n" + ctx.get_help())
        ctx.exit()


@agent.command(name="list")
def agent_list():
    """List configured agents."""
    try:
        settings = SettingsManager().load()
    except EcceError as e:
        _fail(e)

    if not settings.agents:
        console.print("[yellow]No agents configured.[/yellow]")
        console.print("\n[dim]Add one with:[/dim] ecce agent add <name> --system-prompt '...'")
        return

    table = Table(title="Agents", show_header=True, header_style="bold cyan")
    table.add_column("Name", style="green")
    table.add_column("Description", style="yellow")
    table.add_column("Context files")
    table.add_column("Status")

    for name, item in sorted(settings.agents.items()):
        status = "[cyan]default[/cyan]" if name == settings.default_agent else ""
        table.add_row(name, escape_markup(item.description or ""), str(len(item.context_files)), status)

    console.print(table)


@agent.command(name="show")
@click.argument("name")
def agent_show(name: str):
    """Show one agent's configuration."""
    try:
        item = SettingsManager().get_agent(name)
    except EcceError as e:
        _fail(e)

    console.print(f"[bold]{escape_markup(item.name)}[/bold]")
    if item.description:
        console.print(f"[dim]{escape_markup(item.description)}[/dim]")
    if item.model:
        console.print(f"Model: {escape_markup(item.model)}")
    if item.tools:
        console.print(f"Tools: {escape_markup(', '.join(item.tools))}")
    for path in item.context_files:
        console.print(f"Context: [cyan]{escape_markup(path)}[/cyan]")
    console.print(Panel(escape_markup(item.system_prompt or "(empty)"), title="System prompt", border_style="dim"))


@agent.command(name="add")
@click.argument("name")
@click.option("--system-prompt", "-s", default=None, help="System prompt text")
@click.option(
    "--system-prompt-file",
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
    help="Read the system prompt from a file",
)
@click.option("--description", "-d", help="Short description")
@click.option("--context-file", "-c", "context_files", multiple=True, help="Context file (repeatable)")
@click.option("--model", "-m", help="Model name")
def agent_add(
    name: str,
    system_prompt: str | None,
    system_prompt_file: Path | None,
    description: str | None,
    context_files: tuple[str, ...],
    model: str | None,
):
    """Add or replace an agent."""
    if system_prompt_file is not None:
        system_prompt = system_prompt_file.read_text(encoding="utf-8")
    if not system_prompt:
        edited = click.edit("# System prompt for this agent (lines starting with # are ignored)\n") or ""
        system_prompt = "\n".join(line for line in edited.splitlines() if not line.startswith("#"))

    item = AgentConfig(
        name=name,
        description=description,
        system_prompt=system_prompt.strip(),
        context_files=list(context_files),
        model=model,
    )
    try:
        SettingsManager().add_agent(item)
    except EcceError as e:
        _fail(e)
    console.print(f"[green]✓ Agent '{escape_markup(name)}' saved[/green]")


@agent.command(name="remove")
@click.argument("name")
def agent_remove(name: str):
    """Remove an agent."""
    try:
        SettingsManager().remove_agent(name)
    except EcceError as e:
        _fail(e)
    console.print(f"[green]✓ Agent '{escape_markup(name)}' removed[/green]")


@agent.command(name="default")
@click.option("--set", "set_default", metavar="NAME", help="Set the default agent")
@click.option("--clear", is_flag=True, help="Clear the default agent")
def agent_default(set_default: str | None, clear: bool):
    """Show, set, or clear the default agent."""
    manager = SettingsManager()
    try:
        if clear:
            manager.set_default_agent(None)
            console.print("[green]✓ Cleared default agent[/green]")
        elif set_default:
            manager.set_default_agent(set_default)
            console.print(f"[green]✓ Default agent set to:[/green] {escape_markup(set_default)}")
        else:
            current = manager.load().default_agent
            if current:
                console.print(f"[bold green]Default agent:[/bold green] {escape_markup(current)}")
            else:
                console.print("[yellow]No default agent set[/yellow]")
    except EcceError as e:
        _fail(e)


@agent.command(name="import")
@click.argument("file", type=click.Path(exists=True, dir_okay=False, path_type=Path))
def agent_import(file: Path):
    """Import an agent from a Markdown file with YAML frontmatter."""
    try:
        item = SettingsManager().import_agent_file(file)
    except (EcceError, OSError) as e:
        _fail(e)
    console.print(f"[green]✓ Imported agent '{escape_markup(item.name)}'[/green]")


@agent.command(name="export")
@click.argument("name")
@click.option(
    "--dir",
    "directory",
    type=click.Path(file_okay=False, path_type=Path),
    default=Path(".claude") / "agents",
    show_default=True,
    help="Directory to write <name>.md into",
)
def agent_export(name: str, directory: Path):
    """Export an agent to a Markdown file with YAML frontmatter."""
    try:
        target = SettingsManager().export_agent_file(name, directory)
    except (EcceError, OSError) as e:
        _fail(e)
    console.print(f"[green]✓ Exported to[/green] {escape_markup(target)}")
