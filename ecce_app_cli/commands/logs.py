import time
from pathlib import Path

import click

from ..logging_setup import DEFAULT_PATH


@click.command("logs")
@click.option("--path", default=DEFAULT_PATH, show_default=True, help="Path to JSONL log file")
@click.option("--follow/--no-follow", default=True, help="Tail the log")
@click.option("--filter", "filter_text", default=None, help="Substring to filter lines")
def logs_cmd(path: str, follow: bool, filter_text: str | None):
    """Show the watch session log (pattern state transitions, errors)."""
    p = Path(path).expanduser()
    if not p.exists():
        click.echo(f"No log file at {p}")
        return

    with p.open("r", encoding="utf-8") as f:
        if not follow:
            for line in f:
                if filter_text and filter_text not in line:
                    continue
                click.echo(line.rstrip())
            return

        # seek to end
        f.seek(0, 2)
        try:
            while True:
                line = f.readline()
                if not line:
                    time.sleep(0.25)
                    continue
                if filter_text and filter_text not in line:
                    continue
                click.echo(line.rstrip())
        except KeyboardInterrupt:
            click.echo("")
