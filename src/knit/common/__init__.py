"""
Knit Common Library

Shared functionality for Knit: the git command executor and logging helpers.
"""

from .command_runner import (
    Command,
    CommandRunner,
    DryRunCommandRunner,
    GitCommandRunner,
)
from .log_utils import TruncatingFormatter, setup_logger, truncate_value

__all__ = [
    "Command",
    "CommandRunner",
    "DryRunCommandRunner",
    "GitCommandRunner",
    "TruncatingFormatter",
    "setup_logger",
    "truncate_value",
]
