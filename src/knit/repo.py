"""
Repository orchestrator for Knit

Applies checkouts, patches and submodule bumps to a git checkout that
contains nested submodules, committing at every level whose recorded
submodule pointer changes.

Every operation builds an ordered list of git commands and hands them to a
CommandRunner one at a time. The first failing command aborts the operation
and its CommandError propagates unchanged; nothing is rolled back, and every
operation can be re-run once the cause is fixed. Callers must not run two
operations against the same checkout concurrently.

Commit identity is passed per commit with ``-c user.name=... -c
user.email=...`` rather than written to git config, and hooks are skipped
with ``--no-verify``.
"""

import logging
import os
from typing import Iterable, List, Optional

from .common.command_runner import Command, CommandRunner
from .config import KnitConfig
from .errors import BranchExistsError, CommandError, UnrecognizedDiagnosticError
from .manifest import existing_submodules
from .paths import NestedPath, parse_submodule_diagnostic, split_nested_path

DEFAULT_UPDATE_JOBS = 4


class Repo:
    """A git checkout with submodules, and the identity Knit commits as"""

    def __init__(
        self,
        runner: CommandRunner,
        root: str,
        committer_name: str,
        committer_email: str,
        update_jobs: int = DEFAULT_UPDATE_JOBS,
        logger: Optional[logging.Logger] = None,
    ) -> None:
        self._runner = runner
        self._root = str(root)
        self._committer_name = committer_name
        self._committer_email = committer_email
        self._update_jobs = update_jobs
        self.logger = logger or logging.getLogger("knit.repo")

    @classmethod
    def from_config(cls, config: KnitConfig, runner: CommandRunner) -> "Repo":
        """Build a handle from resolved configuration"""
        return cls(
            runner,
            os.path.abspath(config.repo),
            config.committer_name,
            config.committer_email,
            update_jobs=config.update_jobs,
        )

    @property
    def root(self) -> str:
        return self._root

    @property
    def committer_name(self) -> str:
        return self._committer_name

    @property
    def committer_email(self) -> str:
        return self._committer_email

    @property
    def update_jobs(self) -> int:
        return self._update_jobs

    def checkout(self, ref: str) -> None:
        """Reset the checkout and every submodule to ``ref``

        Untracked files are removed at the root and inside every submodule,
        and submodules are updated to the revisions recorded at ``ref``.
        """
        self.logger.info(f"Checking out {ref} in {self._root}")
        self._run_all(
            [
                Command(["checkout", ref], self._root),
                self._clean(self._root),
                Command(["submodule", "init"], self._root),
                self._foreach("git submodule sync", self._root),
                self._update(self._root),
                self._foreach("git clean -ffd", self._root),
            ]
        )

    def apply_patch(self, patch: str) -> None:
        """Apply a mailbox-format patch to the root repository"""
        self.logger.info(f"Applying {patch} to {self._root}")
        self._runner.run(Command(["am", patch], self._root))

    def add_submodule(
        self, path: str, url: str, ref: str, branch: Optional[str] = None
    ) -> None:
        """Register ``url`` as a submodule at ``path`` pinned to ``ref``

        Args:
            path: Submodule path relative to the root
            url: Remote URL of the submodule
            ref: Revision to check out inside the submodule
            branch: Branch for the submodule to track, if any
        """
        submodule_dir = self._abspath(path)

        if branch:
            add_args = ["submodule", "add", "--force", "-b", branch, url, path]
        else:
            add_args = ["submodule", "add", "--force", url, path]

        self.logger.info(f"Adding submodule {path} from {url} at {ref}")
        self._run_all(
            [
                Command(add_args, self._root),
                Command(["checkout", ref], submodule_dir),
                self._foreach("git submodule sync", submodule_dir),
                self._update(submodule_dir),
                self._foreach("git clean -ffd", self._root),
                self._clean(submodule_dir),
                self._stage(path, self._root),
                self._commit(f"Knit addition of {path}", self._root),
            ]
        )

    def remove_submodule(self, path: str) -> None:
        """Deinitialize and delete the submodule at ``path``

        Deinit and removal are separate git invocations; if removal fails
        the submodule is left deinitialized and the checkout should be
        inspected before retrying.
        """
        self.logger.info(f"Removing submodule {path}")
        self._run_all(
            [
                Command(["submodule", "deinit", "-f", path], self._root),
                Command(["rm", "-f", path], self._root),
                self._commit(f"Knit removal of submodule '{path}'", self._root),
            ]
        )

    def bump_submodule(self, path: str, sha: str) -> None:
        """Move the submodule at ``path`` to ``sha`` and commit the bump

        A submodule nested inside another submodule is committed in its
        owning submodule first, and the owner's new pointer is then
        committed at the root.
        """
        submodule_dir = self._abspath(path)
        owner_dir = self._root
        staged_path = path

        target = split_nested_path(path)
        if isinstance(target, NestedPath):
            owner_dir = self._abspath(target.outer)
            staged_path = target.inner
            self.logger.info(
                f"{path} is nested in {target.outer}; committing there first"
            )

        self.logger.info(f"Bumping {path} to {sha}")
        commands = [
            Command(["fetch"], submodule_dir),
            Command(["checkout", sha], submodule_dir),
            Command(["submodule", "init"], submodule_dir),
            Command(["submodule", "sync"], submodule_dir),
            self._update(submodule_dir),
            self._foreach("git clean -ffd", self._root),
            self._clean(submodule_dir),
            self._stage(staged_path, owner_dir),
            self._commit(f"Knit bump of {staged_path}", owner_dir),
        ]

        if isinstance(target, NestedPath):
            commands.extend(
                [
                    self._stage(target.outer, self._root),
                    self._commit(f"Knit bump of {target.outer}", self._root),
                ]
            )

        self._run_all(commands)

    def patch_submodule(self, path: str, patch: str) -> None:
        """Apply ``patch`` inside the submodule at ``path`` and commit it

        If the patch touched a submodule nested under ``path``, git refuses
        to stage ``path`` from the root and names the nested submodule in
        its output. That submodule is committed first, then everything is
        committed at the root.

        Raises:
            UnrecognizedDiagnosticError: Staging failed without naming a
                nested submodule
        """
        self.logger.info(f"Applying {patch} to submodule {path}")
        self._runner.run(Command(["am", patch], self._abspath(path)))

        try:
            self._runner.combined_output(self._stage(path, self._root))
        except CommandError as e:
            diagnostic = parse_submodule_diagnostic(e.output)
            if not diagnostic.found:
                raise UnrecognizedDiagnosticError(path, e.output) from e

            nested = diagnostic.submodule
            nested_dir = self._abspath(nested)
            self.logger.info(f"Patch for {path} landed in nested submodule {nested}")
            self._run_all(
                [
                    self._stage(".", nested_dir),
                    self._commit(f"Knit submodule patch of {nested}", nested_dir),
                ]
            )

        self._run_all(
            [
                self._stage(".", self._root),
                self._commit(f"Knit patch of {path}", self._root),
            ]
        )

    def checkout_branch(self, name: str) -> None:
        """Create and switch to a new branch ``name``

        Raises:
            BranchExistsError: A local branch ``name`` already exists
        """
        try:
            self._runner.run(
                Command(["rev-parse", "--verify", f"refs/heads/{name}"], self._root)
            )
        except CommandError:
            pass
        else:
            raise BranchExistsError(name)

        self.logger.info(f"Creating branch {name}")
        self._runner.run(Command(["checkout", "-b", name], self._root))

    def submodules(self) -> List[str]:
        """Absolute paths of declared submodules present in the checkout"""
        return existing_submodules(self._root)

    def _run_all(self, commands: Iterable[Command]) -> None:
        for command in commands:
            self._runner.run(command)

    def _abspath(self, path: str) -> str:
        return os.path.join(self._root, path)

    def _clean(self, directory: str) -> Command:
        return Command(["clean", "-ffd"], directory)

    def _foreach(self, script: str, directory: str) -> Command:
        return Command(["submodule", "foreach", "--recursive", script], directory)

    def _update(self, directory: str) -> Command:
        return Command(
            [
                "submodule",
                "update",
                "--init",
                "--recursive",
                "--force",
                f"--jobs={self._update_jobs}",
            ],
            directory,
        )

    def _stage(self, path: str, directory: str) -> Command:
        return Command(["add", "-A", path], directory)

    def _commit(self, message: str, directory: str) -> Command:
        return Command(
            [
                "-c",
                f"user.name={self._committer_name}",
                "-c",
                f"user.email={self._committer_email}",
                "commit",
                "-m",
                message,
                "--no-verify",
            ],
            directory,
        )
