"""Shared fixtures: throwaway template and project repositories."""

from pathlib import Path

import pytest

from repo_helpers import V1_FILES, V2_FILES, V3_FILES, commit_all, git, init_repo, write_files


@pytest.fixture(autouse=True)
def isolated_home(tmp_path_factory, monkeypatch):
    """Keep the user's git and git-diff-apply configuration out of the tests."""
    home = tmp_path_factory.mktemp("home")
    monkeypatch.setenv("HOME", str(home))
    monkeypatch.setenv("GIT_CONFIG_NOSYSTEM", "1")
    return home


@pytest.fixture
def remote_repo(tmp_path):
    """Template repository tagged v1, v2, v3 and v3-alias."""
    repo = init_repo(tmp_path / "remote")

    write_files(repo, V1_FILES)
    commit_all(repo, "v1")
    git(repo, "tag", "v1")

    write_files(repo, V2_FILES)
    commit_all(repo, "v2")
    git(repo, "tag", "-a", "v2", "-m", "annotated v2")

    write_files(repo, V3_FILES)
    commit_all(repo, "v3")
    git(repo, "tag", "v3")
    git(repo, "tag", "v3-alias")

    return repo


@pytest.fixture
def make_local(tmp_path):
    """Factory for a project generated from v1, with optional local commits."""

    def _make(local_edits: dict | None = None, dirty: dict | None = None) -> Path:
        repo = init_repo(tmp_path / "local")
        write_files(repo, V1_FILES)
        write_files(repo, {"local.txt": "project specific\n"})
        commit_all(repo, "generated from v1")

        if local_edits:
            write_files(repo, local_edits)
            commit_all(repo, "local")

        if dirty:
            write_files(repo, dirty)

        return repo

    return _make


