#!/usr/bin/env python3
"""
Knit CLI - patch and bump git checkouts with nested submodules
"""

import logging
from typing import Optional

import click
from rich.console import Console

from knit import __version__
from knit.cli_context import KnitContext
from knit.commands.branch import checkout, checkout_branch
from knit.commands.patch import apply_patch
from knit.commands.submodule import submodule
from knit.common.log_utils import setup_logger
from knit.config import load_config
from knit.errors import KnitError

console = Console()


@click.group(invoke_without_command=True)
@click.version_option(version=__version__, prog_name="Knit")
@click.option(
    "--repo",
    type=click.Path(file_okay=False),
    help="Repository root (defaults to the current directory)",
)
@click.option(
    "--config",
    "config_file",
    type=click.Path(dir_okay=False),
    help="JSON settings file (defaults to ~/.knit/settings.json)",
)
@click.option("--committer-name", help="Name recorded on Knit commits")
@click.option("--committer-email", help="Email recorded on Knit commits")
@click.option("--dry-run", is_flag=True, help="Print the git commands instead of running them")
@click.option("-v", "--verbose", is_flag=True, help="Log every git command")
@click.pass_context
def cli(
    ctx: click.Context,
    repo: Optional[str],
    config_file: Optional[str],
    committer_name: Optional[str],
    committer_email: Optional[str],
    dry_run: bool,
    verbose: bool,
) -> None:
    """🧶 Knit - keep submodule pointers consistent while patching

    Applies patches and submodule bumps to a checkout, committing at every
    nesting level that changes.
    """
    try:
        config = load_config(config_file).merge(
            {
                "repo": repo,
                "committer_name": committer_name,
                "committer_email": committer_email,
            },
            source="command line",
        )
    except KnitError as e:
        raise click.ClickException(str(e)) from e

    level = logging.DEBUG if verbose else getattr(
        logging, config.log_level.upper(), logging.INFO
    )
    setup_logger("knit", config.log_file, level)

    ctx.obj = KnitContext(config=config, dry_run=dry_run)

    if ctx.invoked_subcommand is None:
        click.echo(ctx.get_help())


cli.add_command(checkout)
cli.add_command(checkout_branch)
cli.add_command(apply_patch)
cli.add_command(submodule)


def main() -> None:
    """Main entry point for the CLI"""
    try:
        cli()
    except Exception as e:
        console.print(f"[bold red]Error:[/bold red] {e}")
        raise


if __name__ == "__main__":
    main()
