"""Checkout commands for Knit CLI"""

import click

from knit.cli_context import run_repo_operation


@click.command()
@click.argument("ref")
@click.pass_context
def checkout(ctx: click.Context, ref: str) -> None:
    """Reset the checkout and all submodules to REF

    Untracked files are removed at every level.
    """
    run_repo_operation(ctx, f"Checking out {ref}", lambda repo: repo.checkout(ref))


@click.command(name="checkout-branch")
@click.argument("name")
@click.pass_context
def checkout_branch(ctx: click.Context, name: str) -> None:
    """Create and switch to a new branch NAME"""
    run_repo_operation(
        ctx, f"Creating branch {name}", lambda repo: repo.checkout_branch(name)
    )
