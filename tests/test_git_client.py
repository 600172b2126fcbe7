"""
Tests for GitClient against real repositories.
"""

import subprocess
from unittest.mock import patch

import pytest

from conftest import commit_file, git
from profilekit.infra.git_client import GitClient


class TestGitClientRepo:

    def test_is_git_repo(self, git_repo, tmp_path):
        client = GitClient()
        assert client.is_git_repo(str(git_repo))
        outside = tmp_path / "plain"
        outside.mkdir()
        assert not client.is_git_repo(str(outside))

    def test_toplevel_from_subdirectory(self, git_repo):
        sub = git_repo / "a" / "b"
        sub.mkdir(parents=True)
        assert GitClient().toplevel(str(sub)) == str(git_repo.resolve())

    def test_hooks_dir(self, git_repo):
        assert GitClient().hooks_dir(str(git_repo)) == (git_repo / ".git" / "hooks").resolve()

    def test_hooks_dir_honours_core_hooks_path(self, git_repo):
        git(git_repo, "config", "core.hooksPath", "custom-hooks")
        assert GitClient().hooks_dir(str(git_repo)) == (git_repo / "custom-hooks").resolve()

    def test_staged_files(self, git_repo):
        (git_repo / "new.py").write_text("x = 1\n")
        (git_repo / "README.md").write_text("# changed\n")
        (git_repo / "untracked.txt").write_text("ignored\n")
        git(git_repo, "add", "new.py", "README.md")
        assert sorted(GitClient().staged_files(str(git_repo))) == ["README.md", "new.py"]

    def test_staged_files_excludes_deletions(self, git_repo):
        git(git_repo, "rm", "-q", "README.md")
        assert GitClient().staged_files(str(git_repo)) == []

    def test_staged_file_names_with_spaces(self, git_repo):
        (git_repo / "with space.py").write_text("pass\n")
        git(git_repo, "add", "with space.py")
        assert GitClient().staged_files(str(git_repo)) == ["with space.py"]

    def test_add(self, git_repo):
        (git_repo / "file.txt").write_text("content\n")
        client = GitClient()
        assert client.add(str(git_repo), ["file.txt"])
        assert client.staged_files(str(git_repo)) == ["file.txt"]
        assert client.add(str(git_repo), [])

    def test_has_commits(self, git_repo, tmp_path):
        assert GitClient().has_commits(str(git_repo))
        empty = tmp_path / "empty"
        empty.mkdir()
        git(empty, "init", "-q")
        assert not GitClient().has_commits(str(empty))

    def test_log(self, git_repo):
        commit_file(git_repo, "a.txt", "a", "feat(a): add a")
        commit_file(git_repo, "b.txt", "b", "fix: subject with | pipes: and colons")
        commits = GitClient().log(str(git_repo))
        assert [c.subject for c in commits] == [
            "fix: subject with | pipes: and colons",
            "feat(a): add a",
            "chore: initial commit",
        ]
        assert commits[0].author == "Test User"
        assert commits[0].hash.startswith(commits[0].short_hash)

    def test_log_limit_and_range(self, git_repo):
        base = git(git_repo, "rev-parse", "HEAD")
        commit_file(git_repo, "a.txt", "a", "feat: one")
        commit_file(git_repo, "b.txt", "b", "feat: two")
        client = GitClient()
        assert len(client.log(str(git_repo), limit=1)) == 1
        assert [c.subject for c in client.log(str(git_repo), revisions=[f"{base}..HEAD"])] == [
            "feat: two", "feat: one",
        ]

    def test_log_unknown_revision(self, git_repo):
        client = GitClient()
        assert client.log(str(git_repo), revisions=["no-such-branch"]) == []
        with pytest.raises(subprocess.CalledProcessError):
            client.log(str(git_repo), revisions=["no-such-branch"], check=True)


class TestGitClientFailures:

    def test_missing_git_binary(self, tmp_path):
        client = GitClient(executable="definitely-not-git-xyz")
        assert not client.is_git_repo(str(tmp_path))
        assert client.version() is None

    def test_timeout(self, tmp_path):
        client = GitClient(timeout=1)
        with patch("subprocess.run", side_effect=subprocess.TimeoutExpired(["git"], 1)):
            assert client._run(["status"], cwd=str(tmp_path)) == (None, -1)
