"""
Exception types raised by Knit
"""

from typing import TYPE_CHECKING, Optional

if TYPE_CHECKING:
    from .common.command_runner import Command


class KnitError(Exception):
    """Base class for all Knit errors"""


class CommandError(KnitError):
    """A git invocation exited non-zero or could not be started"""

    def __init__(
        self, command: "Command", returncode: int, output: bytes = b""
    ) -> None:
        self.command = command
        self.returncode = returncode
        self.output = output
        super().__init__(
            f"Command '{command.display()}' in {command.dir} "
            f"failed with exit status {returncode}"
        )

    @property
    def text(self) -> str:
        """Captured output decoded for display"""
        return self.output.decode("utf-8", errors="replace")


class BranchExistsError(KnitError):
    """Raised when asked to create a branch that is already present"""

    def __init__(self, name: str) -> None:
        self.name = name
        super().__init__(
            f"Branch '{name}' already exists. Please delete it before trying again"
        )


class UnrecognizedDiagnosticError(KnitError):
    """Staging failed with output that does not name a nested submodule"""

    def __init__(self, path: str, output: bytes) -> None:
        self.path = path
        self.output = output
        detail = output.decode("utf-8", errors="replace").strip()
        super().__init__(
            f"Could not stage {path}: unrecognized submodule diagnostic"
            + (f": {detail}" if detail else "")
        )


class ConfigError(KnitError):
    """Invalid Knit configuration"""

    def __init__(self, message: str, source: Optional[str] = None) -> None:
        self.source = source
        super().__init__(f"{source}: {message}" if source else message)
