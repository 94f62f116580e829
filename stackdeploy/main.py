#!/usr/bin/env python3
"""stackdeploy CLI - Main entry point"""

from pathlib import Path

import rich_click as click

from stackdeploy import __version__
from stackdeploy.commands import DownCommand, UpCommand
from stackdeploy.constants import DEFAULT_ENV_FILE

click.rich_click.USE_RICH_MARKUP = True
click.rich_click.USE_MARKDOWN = False
click.rich_click.MAX_WIDTH = 100

# OPTIONS
click.rich_click.STYLE_OPTION = "bold magenta"
click.rich_click.STYLE_SWITCH = "bold green"

# HEADERS / USAGE
click.rich_click.STYLE_HEADER_TEXT = "bold cyan"
click.rich_click.STYLE_USAGE = "bold yellow"
click.rich_click.STYLE_USAGE_COMMAND = "bold cyan"
click.rich_click.STYLE_HELPTEXT_FIRST_LINE = "bold white"

click.rich_click.STYLE_OPTION_DEFAULT = "dim cyan"
click.rich_click.STYLE_EPILOG_TEXT = "dim"
click.rich_click.STYLE_OPTIONS_PANEL_BORDER = "cyan"

CONTEXT_SETTINGS = {"help_option_names": ["-h", "--help"]}


@click.command(
    context_settings=CONTEXT_SETTINGS,
    epilog="Logs are written to logs/<date>/ under --workdir.",
)
@click.option(
    "--destroy",
    is_flag=True,
    help="Destroy all infrastructure instead of deploying",
)
@click.option(
    "--env-file",
    type=click.Path(path_type=Path),
    default=DEFAULT_ENV_FILE,
    show_default=True,
    help="Settings file",
)
@click.option(
    "--workdir",
    type=click.Path(path_type=Path, file_okay=False),
    default=".",
    show_default=True,
    help="Directory containing terraform/ and ansible/",
)
@click.option(
    "--verbose",
    "-v",
    is_flag=True,
    help="Show all command output (default: clean UI with logs)",
)
@click.version_option(__version__, prog_name="stackdeploy")
def cli(destroy, env_file, workdir, verbose):
    """Deploy the notes stack: [bold]Terraform[/bold] → [bold]Ansible[/bold] → [bold]Certbot[/bold]

    Without options, provisions the droplet, configures it and requests
    certificates according to CERTBOT_MODE.
    """
    if destroy:
        DownCommand(workdir=workdir, env_file=env_file, verbose=verbose).run()
    else:
        UpCommand(workdir=workdir, env_file=env_file, verbose=verbose).run()


def main():
    """Console script entry point."""
    cli()


if __name__ == "__main__":
    main()
