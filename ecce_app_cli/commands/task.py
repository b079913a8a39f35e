"""Task template commands."""

from __future__ import annotations

import sys
from typing import NoReturn

import click
from rich.table import Table

from ..console import console
from ..errors import EcceError
from ..settings import SettingsManager
from ..settings import TaskConfig
from ..utils.error_format import escape_markup


def _fail(e: Exception) -> NoReturn:
    console.print(f"[red]Error:[/red] {escape_markup(e)}")
    sys.exit(1)


@click.group(invoke_without_command=True)
@click.pass_context
def task(ctx: click.Context):
    """Manage task templates (instructions placed ahead of each question)."""
    if ctx.invoked_subcommand is None:
        click.echo("\n" + ctx.get_help())
        ctx.exit()


@task.command(name="list")
def task_list():
    """List task templates."""
    try:
        settings = SettingsManager().load()
    except EcceError as e:
        _fail(e)

    if not settings.tasks:
        console.print("[yellow]No tasks configured.[/yellow]")
        return

    table = Table(title="Tasks", show_header=True, header_style="bold cyan")
    table.add_column("Name", style="green")
    table.add_column("Template")

    for name, item in sorted(settings.tasks.items()):
        first_line = item.template.splitlines()[0] if item.template else ""
        table.add_row(name, escape_markup(first_line[:50]))

    console.print(table)


@task.command(name="show")
@click.argument("name")
def task_show(name: str):
    """Print a task template."""
    try:
        item = SettingsManager().get_task(name)
    except EcceError as e:
        _fail(e)
    console.print(f"[bold]{escape_markup(item.name)}[/bold]\n")
    console.print(escape_markup(item.template))


@task.command(name="add")
@click.argument("name")
@click.argument("template", required=False)
def task_add(name: str, template: str | None):
    """Add or replace a task; without TEMPLATE an editor is opened."""
    if not template:
        template = (click.edit("") or "").strip()
    if not template:
        console.print("[red]Error:[/red] Template cannot be empty")
        sys.exit(1)
    try:
        SettingsManager().add_task(TaskConfig(name=name, template=template))
    except EcceError as e:
        _fail(e)
    console.print(f"[green]✓ Task '{escape_markup(name)}' saved[/green]")


@task.command(name="remove")
@click.argument("name")
def task_remove(name: str):
    """Remove a task template."""
    try:
        SettingsManager().remove_task(name)
    except EcceError as e:
        _fail(e)
    console.print(f"[green]✓ Task '{escape_markup(name)}' removed[/green]")
