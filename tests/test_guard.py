"""Tests for the working-copy guard."""

import pytest

from git_diff_apply.errors import DirtyWorkingCopyError, NotAGitRepositoryError
from git_diff_apply.guard import ensure_clean_working_copy
from repo_helpers import commit_all, git, init_repo, write_files


@pytest.fixture
def repo(tmp_path):
    repo = init_repo(tmp_path / "repo")
    write_files(repo, {"a.txt": "one\n"})
    commit_all(repo, "init")
    return repo


class TestEnsureCleanWorkingCopy:
    """ensure_clean_working_copy"""

    def test_clean_passes(self, repo):
        ensure_clean_working_copy(repo)

    def test_unstaged_change(self, repo):
        write_files(repo, {"a.txt": "two\n"})

        with pytest.raises(DirtyWorkingCopyError) as exc_info:
            ensure_clean_working_copy(repo)

        assert exc_info.value.entries == [" M a.txt"]

    def test_staged_change(self, repo):
        write_files(repo, {"a.txt": "two\n"})
        git(repo, "add", "a.txt")

        with pytest.raises(DirtyWorkingCopyError):
            ensure_clean_working_copy(repo)

    def test_untracked_file(self, repo):
        write_files(repo, {"nested/new.txt": "new\n"})

        with pytest.raises(DirtyWorkingCopyError, match="clean working directory"):
            ensure_clean_working_copy(repo)

    def test_gitignored_file_is_clean(self, repo):
        write_files(repo, {".gitignore": "*.log\n"})
        commit_all(repo, "ignore logs")
        write_files(repo, {"debug.log": "noise\n"})

        ensure_clean_working_copy(repo)

    def test_not_a_repository(self, tmp_path):
        with pytest.raises(NotAGitRepositoryError):
            ensure_clean_working_copy(tmp_path)

    def test_read_only(self, repo):
        """The check never modifies the tree."""
        write_files(repo, {"a.txt": "two\n"})

        with pytest.raises(DirtyWorkingCopyError):
            ensure_clean_working_copy(repo)

        assert (repo / "a.txt").read_text() == "two\n"
        assert git(repo, "diff", "--cached") == ""
