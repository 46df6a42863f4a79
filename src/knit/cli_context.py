"""Shared state and helpers for Knit CLI commands"""

from dataclasses import dataclass, field
from typing import Any, Callable

import click
from rich.console import Console
from rich.markup import escape

from .common.command_runner import CommandRunner, DryRunCommandRunner, GitCommandRunner
from .config import KnitConfig
from .errors import CommandError, KnitError
from .repo import Repo

console = Console()


@dataclass
class KnitContext:
    """Resolved configuration and runner for one CLI invocation"""

    config: KnitConfig
    dry_run: bool = False
    runner: CommandRunner = field(init=False)

    def __post_init__(self) -> None:
        if self.dry_run:
            self.runner = DryRunCommandRunner()
        else:
            self.runner = GitCommandRunner(self.config.git_executable)

    def repo(self) -> Repo:
        return Repo.from_config(self.config, self.runner)


def get_knit_context(ctx: click.Context) -> KnitContext:
    knit_ctx = ctx.find_object(KnitContext)
    if knit_ctx is None:
        raise click.UsageError("knit commands must be run through the knit group")
    return knit_ctx


def run_repo_operation(
    ctx: click.Context, description: str, operation: Callable[[Repo], Any]
) -> None:
    """Run one Repo operation, reporting the outcome on the console

    Knit errors are printed and turned into exit status 1.
    """
    knit_ctx = get_knit_context(ctx)
    repo = knit_ctx.repo()

    try:
        operation(repo)
    except CommandError as e:
        console.print(
            f"[bold red]❌ {escape(description)} failed:[/bold red] {escape(str(e))}",
            soft_wrap=True,
        )
        if e.output:
            console.print(
                e.text.rstrip(), markup=False, highlight=False, soft_wrap=True
            )
        ctx.exit(1)
    except KnitError as e:
        console.print(
            f"[bold red]❌ {escape(description)} failed:[/bold red] {escape(str(e))}",
            soft_wrap=True,
        )
        ctx.exit(1)

    if isinstance(knit_ctx.runner, DryRunCommandRunner):
        console.print(f"[bold yellow]Dry run:[/bold yellow] {escape(description)}")
        for command in knit_ctx.runner.commands:
            console.print(
                f"  [dim]{escape(command.dir)}[/dim] $ {escape(command.display())}",
                highlight=False,
                soft_wrap=True,
            )
        return

    console.print(f"[bold green]✅ {escape(description)} done[/bold green]", soft_wrap=True)
