"""
Command Runner Module for Knit

Provides the git command value type, the abstract runner interface the
repository orchestrator dispatches to, and its implementations.
"""

import logging
import shlex
import subprocess
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import List, Sequence, Tuple

from ..errors import CommandError
from .log_utils import truncate_value


@dataclass(frozen=True)
class Command:
    """One invocation of git: arguments plus the directory to run it in"""

    args: Tuple[str, ...]
    dir: str

    def __init__(self, args: Sequence[str], dir: str) -> None:
        object.__setattr__(self, "args", tuple(args))
        object.__setattr__(self, "dir", str(dir))

    def display(self) -> str:
        """Render the command the way it would be typed in a shell"""
        return " ".join(shlex.quote(arg) for arg in ("git", *self.args))


class CommandRunner(ABC):
    """Abstract base class for git command executors"""

    @abstractmethod
    def run(self, command: Command) -> None:
        """Execute a command, discarding its output

        Raises:
            CommandError: If the command fails
        """

    @abstractmethod
    def combined_output(self, command: Command) -> bytes:
        """Execute a command and return merged stdout/stderr

        Raises:
            CommandError: If the command fails. The merged output is
                available as ``error.output``.
        """


class GitCommandRunner(CommandRunner):
    """Runs commands against the real git executable"""

    def __init__(self, executable: str = "git") -> None:
        self.executable = executable
        self.logger = logging.getLogger("knit.runner")

    def run(self, command: Command) -> None:
        self._execute(command)

    def combined_output(self, command: Command) -> bytes:
        return self._execute(command)

    def _execute(self, command: Command) -> bytes:
        """Run git and map a non-zero exit status to CommandError"""
        self.logger.debug(f"Running {command.display()} in {command.dir}")

        try:
            result = subprocess.run(
                [self.executable, *command.args],
                cwd=command.dir,
                stdout=subprocess.PIPE,
                stderr=subprocess.STDOUT,
                check=False,
            )
        except FileNotFoundError as e:
            # Raised for a missing executable as well as a missing cwd
            self.logger.warning(f"Could not start {command.display()}: {e}")
            raise CommandError(command, 127, str(e).encode()) from e

        output = result.stdout or b""
        if result.returncode != 0:
            self.logger.warning(
                f"{command.display()} exited {result.returncode}: "
                f"{truncate_value(output.decode('utf-8', errors='replace').strip())}"
            )
            raise CommandError(command, result.returncode, output)

        return output


class DryRunCommandRunner(CommandRunner):
    """A no-op runner that records the command plan instead of executing it"""

    def __init__(self) -> None:
        self.commands: List[Command] = []

    def run(self, command: Command) -> None:
        self.commands.append(command)

    def combined_output(self, command: Command) -> bytes:
        self.commands.append(command)
        return b""
