import shutil
import subprocess
import tempfile
import unittest
from pathlib import Path
from typing import Iterator

from housekeeper.application.runner import Runner, RunnerConfig, RunnerDependencies
from housekeeper.domain.models import Change
from housekeeper.infrastructure.repo.git import Git

from support import FakeHostingClient, create_change


def _git(repository_directory: Path, *args: str) -> str:
    result = subprocess.run(
        ["git", *args],
        cwd=repository_directory,
        capture_output=True,
        text=True,
        check=True,
    )
    return result.stdout


class _FileWritingKeep:
    def __init__(self, repository_directory: Path, contents: dict[str, str]) -> None:
        self.repository_directory = repository_directory
        self.contents = contents

    def each_change(self) -> Iterator[Change]:
        for name, content in self.contents.items():
            for file_name in ("change1.txt", "change2.txt"):
                (self.repository_directory / file_name).write_text(f"{content}\n", encoding="utf-8")
            yield create_change(identifiers=["integration", name], title=f"Update {name}")


class _BrokenThenValidKeep:
    def __init__(self, repository_directory: Path) -> None:
        self.repository_directory = repository_directory

    def each_change(self) -> Iterator[Change]:
        (self.repository_directory / "a.txt").write_text("half done\n", encoding="utf-8")
        yield create_change(identifiers=["integration", "broken"], changed_files=["a.txt", "missing.txt"])

        for file_name in ("change1.txt", "change2.txt"):
            (self.repository_directory / file_name).write_text("fine\n", encoding="utf-8")
        yield create_change(identifiers=["integration", "valid"])


@unittest.skipUnless(shutil.which("git"), "git is not installed")
class RunnerGitIntegrationTests(unittest.TestCase):
    def setUp(self) -> None:
        self._tmp = tempfile.TemporaryDirectory()
        root = Path(self._tmp.name)
        self.remote_directory = root / "remote.git"
        self.repository_directory = root / "work"
        self.repository_directory.mkdir()

        subprocess.run(["git", "init", "--bare", str(self.remote_directory)], check=True, capture_output=True)
        _git(self.repository_directory, "init")
        _git(self.repository_directory, "symbolic-ref", "HEAD", "refs/heads/master")
        _git(self.repository_directory, "config", "user.name", "Housekeeper Test")
        _git(self.repository_directory, "config", "user.email", "housekeeper@example.com")
        _git(self.repository_directory, "config", "commit.gpgsign", "false")
        (self.repository_directory / "README.md").write_text("readme\n", encoding="utf-8")
        _git(self.repository_directory, "add", "README.md")
        _git(self.repository_directory, "commit", "-m", "Initial commit")
        _git(self.repository_directory, "remote", "add", "housekeeper", str(self.remote_directory))

        self.hosting_client = FakeHostingClient()
        self.observed_diffs: list[tuple[str, str]] = []

    def tearDown(self) -> None:
        self._tmp.cleanup()

    def _run(self, contents: dict[str, str], max_mrs: int = 2, keeps=None):
        config = RunnerConfig(
            max_mrs=max_mrs,
            keeps=keeps or [_FileWritingKeep(self.repository_directory, contents)],
            source_project_id="123",
            target_project_id="456",
        )
        dependencies = RunnerDependencies(
            git=Git(repository_directory=self.repository_directory),
            hosting_client=self.hosting_client,
            observe_change=lambda _, branch, diff: self.observed_diffs.append((branch, diff)),
        )
        return Runner(config, dependencies).run()

    def test_pushes_one_branch_per_change_and_restores_the_working_tree(self) -> None:
        result = self._run({"first": "one", "second": "two", "third": "three"})

        self.assertEqual(result.created_count, 2)
        remote_branches = _git(self.remote_directory, "branch", "--format=%(refname:short)").split()
        self.assertEqual(sorted(remote_branches), ["integration--first", "integration--second"])
        self.assertEqual(
            _git(self.repository_directory, "show", "integration--second:change1.txt"),
            "two\n",
        )
        self.assertEqual([branch for branch, _ in self.observed_diffs], ["integration--first", "integration--second"])
        self.assertIn("change2.txt", self.observed_diffs[0][1])
        self.assertEqual(
            [merge_request["source_branch"] for merge_request in self.hosting_client.merge_requests],
            ["integration--first", "integration--second"],
        )
        self.assertEqual(_git(self.repository_directory, "branch", "--show-current").strip(), "master")
        self.assertFalse((self.repository_directory / "change1.txt").exists())

    def test_rerunning_an_unchanged_change_keeps_the_same_commit(self) -> None:
        self._run({"first": "one"}, max_mrs=1)
        first_tip = _git(self.repository_directory, "rev-parse", "integration--first").strip()

        self._run({"first": "one"}, max_mrs=1)
        second_tip = _git(self.repository_directory, "rev-parse", "integration--first").strip()

        self.assertEqual(first_tip, second_tip)
        self.assertEqual(_git(self.repository_directory, "diff", first_tip, second_tip), "")
        self.assertTrue(
            all(
                merge_request["update_title"] and merge_request["update_description"]
                for merge_request in self.hosting_client.merge_requests
            )
        )

    def test_failed_change_leaves_no_files_behind(self) -> None:
        result = self._run({}, keeps=[_BrokenThenValidKeep(self.repository_directory)])

        self.assertEqual(result.failed_changes, [("integration", "broken")])
        self.assertEqual(result.created_count, 1)
        self.assertFalse((self.repository_directory / "a.txt").exists())
        self.assertEqual(_git(self.repository_directory, "status", "--porcelain"), "")
        self.assertNotIn(
            "a.txt",
            _git(self.repository_directory, "ls-tree", "-r", "--name-only", "integration--valid").split(),
        )

    def test_local_modifications_survive_the_run(self) -> None:
        (self.repository_directory / "README.md").write_text("work in progress\n", encoding="utf-8")

        self._run({"first": "one"}, max_mrs=1)

        self.assertEqual(
            (self.repository_directory / "README.md").read_text(encoding="utf-8"),
            "work in progress\n",
        )


if __name__ == "__main__":
    unittest.main()
