"""Submodule command group for Knit CLI"""

import os
from typing import Optional

import click
from rich.console import Console
from rich.table import Table

from knit.cli_context import get_knit_context, run_repo_operation

console = Console()


@click.group()
def submodule() -> None:
    """Submodule commands

    Add, remove, bump and patch submodules, committing the pointer change
    at every level that owns it.
    """


@submodule.command()
@click.argument("path")
@click.argument("url")
@click.argument("ref")
@click.option("--branch", "-b", help="Branch for the submodule to track")
@click.pass_context
def add(
    ctx: click.Context, path: str, url: str, ref: str, branch: Optional[str]
) -> None:
    """Add URL as a submodule at PATH pinned to REF"""
    run_repo_operation(
        ctx,
        f"Adding submodule {path}",
        lambda repo: repo.add_submodule(path, url, ref, branch),
    )


@submodule.command()
@click.argument("path")
@click.pass_context
def remove(ctx: click.Context, path: str) -> None:
    """Deinitialize and remove the submodule at PATH"""
    run_repo_operation(
        ctx, f"Removing submodule {path}", lambda repo: repo.remove_submodule(path)
    )


@submodule.command()
@click.argument("path")
@click.argument("sha")
@click.pass_context
def bump(ctx: click.Context, path: str, sha: str) -> None:
    """Move the submodule at PATH to SHA"""
    run_repo_operation(
        ctx, f"Bumping {path} to {sha}", lambda repo: repo.bump_submodule(path, sha)
    )


@submodule.command()
@click.argument("path")
@click.argument("patch", type=click.Path(dir_okay=False))
@click.pass_context
def patch(ctx: click.Context, path: str, patch: str) -> None:
    """Apply PATCH inside the submodule at PATH"""
    patch = os.path.abspath(patch)
    run_repo_operation(
        ctx,
        f"Patching {path} with {os.path.basename(patch)}",
        lambda repo: repo.patch_submodule(path, patch),
    )


@submodule.command(name="list")
@click.pass_context
def list_submodules(ctx: click.Context) -> None:
    """List declared submodules present in the checkout"""
    repo = get_knit_context(ctx).repo()

    try:
        paths = repo.submodules()
    except OSError as e:
        raise click.ClickException(f"Could not read .gitmodules: {e}") from e

    if not paths:
        console.print("[yellow]No submodules checked out[/yellow]")
        return

    table = Table(title="Submodules")
    table.add_column("Path", style="cyan")
    table.add_column("Location", style="dim")
    for full_path in paths:
        table.add_row(os.path.relpath(full_path, repo.root), full_path)
    console.print(table)
