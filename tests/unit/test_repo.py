"""
Unit tests for Repo

Drives every operation with a recording runner and checks the exact git
command plan, where commits land, and how failures propagate.
"""

import os
from typing import Callable, Dict, List, Optional, Tuple

import pytest

from knit.common.command_runner import Command, CommandRunner
from knit.errors import BranchExistsError, CommandError, UnrecognizedDiagnosticError
from knit.repo import Repo

ROOT = "/work/checkout"
IDENTITY = ["-c", "user.name=Knit Bot", "-c", "user.email=bot@example.com"]


def commit(message: str) -> Tuple[str, ...]:
    return tuple(IDENTITY + ["commit", "-m", message, "--no-verify"])


def at(*parts: str) -> str:
    return os.path.join(ROOT, *parts)


class RecordingRunner(CommandRunner):
    """Records commands; fails those matched by ``fail_when``"""

    def __init__(
        self,
        fail_when: Optional[Callable[[Command], bool]] = None,
        outputs: Optional[Dict[Tuple[str, ...], bytes]] = None,
    ) -> None:
        self.fail_when = fail_when or (lambda command: False)
        self.outputs = outputs or {}
        self.commands: List[Command] = []

    def run(self, command: Command) -> None:
        self.combined_output(command)

    def combined_output(self, command: Command) -> bytes:
        self.commands.append(command)
        output = self.outputs.get(command.args, b"")
        if self.fail_when(command):
            raise CommandError(command, 1, output)
        return output

    @property
    def plan(self) -> List[Tuple[Tuple[str, ...], str]]:
        return [(c.args, c.dir) for c in self.commands]

    @property
    def commits(self) -> List[Tuple[str, str]]:
        return [
            (c.args[c.args.index("-m") + 1], c.dir)
            for c in self.commands
            if "commit" in c.args
        ]


def make_repo(runner: CommandRunner, root: str = ROOT) -> Repo:
    return Repo(runner, root, "Knit Bot", "bot@example.com")


class TestCheckout:
    def test_issues_reset_clean_and_recursive_update_in_order(self):
        runner = RecordingRunner()
        make_repo(runner).checkout("v1.2.0")

        assert runner.plan == [
            (("checkout", "v1.2.0"), ROOT),
            (("clean", "-ffd"), ROOT),
            (("submodule", "init"), ROOT),
            (("submodule", "foreach", "--recursive", "git submodule sync"), ROOT),
            (
                ("submodule", "update", "--init", "--recursive", "--force", "--jobs=4"),
                ROOT,
            ),
            (("submodule", "foreach", "--recursive", "git clean -ffd"), ROOT),
        ]

    def test_failure_stops_remaining_commands(self):
        runner = RecordingRunner(fail_when=lambda c: c.args == ("clean", "-ffd"))

        with pytest.raises(CommandError) as excinfo:
            make_repo(runner).checkout("main")

        assert len(runner.commands) == 2
        assert excinfo.value.command == Command(["clean", "-ffd"], ROOT)

    def test_update_jobs_is_configurable(self):
        runner = RecordingRunner()
        Repo(runner, ROOT, "n", "e", update_jobs=8).checkout("main")

        assert "--jobs=8" in runner.commands[4].args


class TestApplyPatch:
    def test_runs_git_am_at_root(self):
        runner = RecordingRunner()
        make_repo(runner).apply_patch("/tmp/0001-fix.patch")

        assert runner.plan == [(("am", "/tmp/0001-fix.patch"), ROOT)]

    def test_error_is_propagated_unmodified(self):
        runner = RecordingRunner(fail_when=lambda c: True)

        with pytest.raises(CommandError) as excinfo:
            make_repo(runner).apply_patch("/tmp/bad.patch")

        assert excinfo.value.returncode == 1
        assert excinfo.value.command.args == ("am", "/tmp/bad.patch")


class TestAddSubmodule:
    def test_without_branch(self):
        runner = RecordingRunner()
        make_repo(runner).add_submodule(
            "src/lib", "https://example.com/lib.git", "abc123"
        )

        assert runner.plan == [
            (
                ("submodule", "add", "--force", "https://example.com/lib.git", "src/lib"),
                ROOT,
            ),
            (("checkout", "abc123"), at("src/lib")),
            (
                ("submodule", "foreach", "--recursive", "git submodule sync"),
                at("src/lib"),
            ),
            (
                ("submodule", "update", "--init", "--recursive", "--force", "--jobs=4"),
                at("src/lib"),
            ),
            (("submodule", "foreach", "--recursive", "git clean -ffd"), ROOT),
            (("clean", "-ffd"), at("src/lib")),
            (("add", "-A", "src/lib"), ROOT),
            (commit("Knit addition of src/lib"), ROOT),
        ]

    def test_with_branch_uses_branch_form(self):
        runner = RecordingRunner()
        make_repo(runner).add_submodule(
            "src/lib", "https://example.com/lib.git", "abc123", branch="stable"
        )

        assert runner.commands[0].args == (
            "submodule",
            "add",
            "--force",
            "-b",
            "stable",
            "https://example.com/lib.git",
            "src/lib",
        )

    def test_failed_checkout_skips_commit(self):
        runner = RecordingRunner(fail_when=lambda c: c.args == ("checkout", "nope"))

        with pytest.raises(CommandError):
            make_repo(runner).add_submodule("src/lib", "url", "nope")

        assert runner.commits == []
        assert len(runner.commands) == 2


class TestRemoveSubmodule:
    def test_deinit_remove_and_commit(self):
        runner = RecordingRunner()
        make_repo(runner).remove_submodule("src/old")

        assert runner.plan == [
            (("submodule", "deinit", "-f", "src/old"), ROOT),
            (("rm", "-f", "src/old"), ROOT),
            (commit("Knit removal of submodule 'src/old'"), ROOT),
        ]

    def test_failed_removal_surfaces_without_commit(self):
        runner = RecordingRunner(fail_when=lambda c: c.args[0] == "rm")

        with pytest.raises(CommandError):
            make_repo(runner).remove_submodule("src/old")

        assert [c.args[0] for c in runner.commands] == ["submodule", "rm"]


class TestBumpSubmodule:
    def test_flat_path_commits_once_at_root(self):
        runner = RecordingRunner()
        make_repo(runner).bump_submodule("src/lib", "deadbeef")

        assert runner.plan == [
            (("fetch",), at("src/lib")),
            (("checkout", "deadbeef"), at("src/lib")),
            (("submodule", "init"), at("src/lib")),
            (("submodule", "sync"), at("src/lib")),
            (
                ("submodule", "update", "--init", "--recursive", "--force", "--jobs=4"),
                at("src/lib"),
            ),
            (("submodule", "foreach", "--recursive", "git clean -ffd"), ROOT),
            (("clean", "-ffd"), at("src/lib")),
            (("add", "-A", "src/lib"), ROOT),
            (commit("Knit bump of src/lib"), ROOT),
        ]
        assert runner.commits == [("Knit bump of src/lib", ROOT)]

    @pytest.mark.parametrize("path", ["vendor", "lib/core", "third_party/src"])
    def test_paths_without_nesting_commit_at_root(self, path):
        runner = RecordingRunner()
        make_repo(runner).bump_submodule(path, "deadbeef")

        assert runner.commits == [(f"Knit bump of {path}", ROOT)]

    def test_nested_path_commits_in_owner_then_root(self):
        runner = RecordingRunner()
        make_repo(runner).bump_submodule("src/app/src/engine", "cafe01")

        target = at("src/app/src/engine")
        assert runner.commands[0] == Command(["fetch"], target)
        assert runner.commands[1] == Command(["checkout", "cafe01"], target)
        assert runner.plan[-4:] == [
            (("add", "-A", "src/engine"), at("src/app")),
            (commit("Knit bump of src/engine"), at("src/app")),
            (("add", "-A", "src/app"), ROOT),
            (commit("Knit bump of src/app"), ROOT),
        ]
        assert runner.commits == [
            ("Knit bump of src/engine", at("src/app")),
            ("Knit bump of src/app", ROOT),
        ]

    def test_nested_failure_before_outer_commit(self):
        runner = RecordingRunner(
            fail_when=lambda c: "commit" in c.args and c.dir == at("src/app")
        )

        with pytest.raises(CommandError):
            make_repo(runner).bump_submodule("src/app/src/engine", "cafe01")

        assert runner.commits == [("Knit bump of src/engine", at("src/app"))]
        assert runner.commands[-1].dir == at("src/app")


class TestPatchSubmodule:
    def test_clean_staging_commits_at_root_only(self):
        runner = RecordingRunner()
        make_repo(runner).patch_submodule("src/lib", "/tmp/fix.patch")

        assert runner.plan == [
            (("am", "/tmp/fix.patch"), at("src/lib")),
            (("add", "-A", "src/lib"), ROOT),
            (("add", "-A", "."), ROOT),
            (commit("Knit patch of src/lib"), ROOT),
        ]

    def test_nested_submodule_diagnostic_commits_there_first(self):
        diagnostic = b"fatal: Pathspec 'src/lib/src/inner/a.c' is in submodule 'src/lib/src/inner'\n"
        runner = RecordingRunner(
            fail_when=lambda c: c.args == ("add", "-A", "src/lib"),
            outputs={("add", "-A", "src/lib"): diagnostic},
        )

        make_repo(runner).patch_submodule("src/lib", "/tmp/fix.patch")

        assert runner.plan[2:] == [
            (("add", "-A", "."), at("src/lib/src/inner")),
            (commit("Knit submodule patch of src/lib/src/inner"), at("src/lib/src/inner")),
            (("add", "-A", "."), ROOT),
            (commit("Knit patch of src/lib"), ROOT),
        ]
        assert [message for message, _ in runner.commits] == [
            "Knit submodule patch of src/lib/src/inner",
            "Knit patch of src/lib",
        ]

    def test_unrecognized_diagnostic_raises_descriptive_error(self):
        runner = RecordingRunner(
            fail_when=lambda c: c.args == ("add", "-A", "src/lib"),
            outputs={("add", "-A", "src/lib"): b"fatal: index.lock exists\n"},
        )

        with pytest.raises(UnrecognizedDiagnosticError) as excinfo:
            make_repo(runner).patch_submodule("src/lib", "/tmp/fix.patch")

        assert "unrecognized submodule diagnostic" in str(excinfo.value)
        assert "index.lock" in str(excinfo.value)
        assert isinstance(excinfo.value.__cause__, CommandError)
        assert runner.commits == []

    def test_failed_apply_stops_before_staging(self):
        runner = RecordingRunner(fail_when=lambda c: c.args[0] == "am")

        with pytest.raises(CommandError):
            make_repo(runner).patch_submodule("src/lib", "/tmp/fix.patch")

        assert len(runner.commands) == 1


class TestCheckoutBranch:
    def test_creates_branch_when_missing(self):
        runner = RecordingRunner(fail_when=lambda c: c.args[0] == "rev-parse")
        make_repo(runner).checkout_branch("knit/release")

        assert runner.plan == [
            (("rev-parse", "--verify", "refs/heads/knit/release"), ROOT),
            (("checkout", "-b", "knit/release"), ROOT),
        ]

    def test_existing_branch_is_not_recreated(self):
        runner = RecordingRunner()

        with pytest.raises(BranchExistsError, match="knit/release"):
            make_repo(runner).checkout_branch("knit/release")

        assert len(runner.commands) == 1

    def test_checkout_failure_propagates(self):
        runner = RecordingRunner(fail_when=lambda c: True)

        with pytest.raises(CommandError) as excinfo:
            make_repo(runner).checkout_branch("feature")

        assert excinfo.value.command.args == ("checkout", "-b", "feature")


class TestSubmodules:
    def test_missing_manifest_yields_empty_list(self, tmp_path):
        assert make_repo(RecordingRunner(), str(tmp_path)).submodules() == []

    def test_only_existing_paths_are_returned(self, tmp_path):
        (tmp_path / ".gitmodules").write_text(
            '[submodule "a"]\n\tpath = a\n\turl = https://example.com/a.git\n'
            '[submodule "b"]\n\tpath = b\n\turl = https://example.com/b.git\n'
        )
        (tmp_path / "a").mkdir()

        repo = make_repo(RecordingRunner(), str(tmp_path))

        assert repo.submodules() == [os.path.join(str(tmp_path), "a")]


def test_from_config_uses_configured_identity_and_jobs(tmp_path):
    from knit.config import KnitConfig

    runner = RecordingRunner()
    config = KnitConfig(
        repo=str(tmp_path),
        committer_name="Release Bot",
        committer_email="release@example.com",
        update_jobs=2,
    )

    repo = Repo.from_config(config, runner)
    repo.remove_submodule("src/x")

    assert repo.root == str(tmp_path)
    assert repo.update_jobs == 2
    assert runner.commands[-1].args[:4] == (
        "-c",
        "user.name=Release Bot",
        "-c",
        "user.email=release@example.com",
    )
