"""Apply-patch command for Knit CLI"""

import os

import click

from knit.cli_context import run_repo_operation


@click.command(name="apply-patch")
@click.argument("patch", type=click.Path(dir_okay=False))
@click.pass_context
def apply_patch(ctx: click.Context, patch: str) -> None:
    """Apply PATCH (git am format) to the root repository"""
    patch = os.path.abspath(patch)
    run_repo_operation(
        ctx, f"Applying {os.path.basename(patch)}", lambda repo: repo.apply_patch(patch)
    )
