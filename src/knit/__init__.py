"""
Knit - submodule-aware patching and bumping for git checkouts
"""

__version__ = "0.1.0"

from .common.command_runner import (  # noqa: E402
    Command,
    CommandRunner,
    DryRunCommandRunner,
    GitCommandRunner,
)
from .config import KnitConfig, load_config  # noqa: E402
from .errors import (  # noqa: E402
    BranchExistsError,
    CommandError,
    ConfigError,
    KnitError,
    UnrecognizedDiagnosticError,
)
from .paths import (  # noqa: E402
    FlatPath,
    NestedPath,
    SubmoduleDiagnostic,
    parse_submodule_diagnostic,
    split_nested_path,
)
from .repo import Repo  # noqa: E402

__all__ = [
    "BranchExistsError",
    "Command",
    "CommandError",
    "CommandRunner",
    "ConfigError",
    "DryRunCommandRunner",
    "FlatPath",
    "GitCommandRunner",
    "KnitConfig",
    "KnitError",
    "NestedPath",
    "Repo",
    "SubmoduleDiagnostic",
    "UnrecognizedDiagnosticError",
    "__version__",
    "load_config",
    "parse_submodule_diagnostic",
    "split_nested_path",
]
