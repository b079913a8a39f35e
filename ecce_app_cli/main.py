"""ecce CLI - answer prompts embedded in a document, in place."""

import logging

import click

from . import __version__
from .commands.agent import agent as agent_group
from .commands.logs import logs_cmd
from .commands.task import task as task_group
from .commands.watch import watch_cmd
from .logging_setup import init_json_logging

logger = logging.getLogger(__name__)


@click.group()
@click.version_option(__version__, prog_name="ecce")
@click.option("--log-level", default=None, help="Log level for the JSONL log (default: $ECCE_LOG_LEVEL or INFO)")
def cli(log_level: str | None):
    """Ecce Claude CodE - Behold Claude Code.

    Type `ecce <question> ecce` (or a ```ecce fenced block) into a watched
    document and the answer replaces it.
    """
    try:
        init_json_logging(level=log_level)
    except OSError as e:
        # The CLI still works without a log sink
        click.echo(f"Warning: could not open log file: {e}", err=True)


cli.add_command(watch_cmd)
cli.add_command(watch_cmd, name="homo")
cli.add_command(agent_group, name="agent")
cli.add_command(task_group, name="task")
cli.add_command(logs_cmd)


def main():
    """Main entry point."""
    cli()


if __name__ == "__main__":
    main()
