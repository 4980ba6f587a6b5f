"""Tests for the remote resolver."""

from unittest.mock import patch

import pytest

from git_diff_apply.errors import RemoteUnreachableError, UnknownTagError
from git_diff_apply.models import NothingToApply, RemoteReference, ResolvedRemote
from git_diff_apply.resolver import TAGS_MATCH, lookup_tag_commits, resolve_remote
from repo_helpers import git


class TestLookupTagCommits:
    """lookup_tag_commits with a mocked tag listing"""

    @patch("git_diff_apply.resolver.list_remote_tags")
    def test_returns_commits(self, mock_list):
        mock_list.return_value = {"v1": "aaa", "v3": "ccc"}

        assert lookup_tag_commits(RemoteReference("/remote", "v1", "v3")) == ("aaa", "ccc")

    @patch("git_diff_apply.resolver.list_remote_tags")
    def test_unknown_start_tag(self, mock_list):
        mock_list.return_value = {"v3": "ccc"}

        with pytest.raises(UnknownTagError, match="v1"):
            lookup_tag_commits(RemoteReference("/remote", "v1", "v3"))

    @patch("git_diff_apply.resolver.list_remote_tags")
    def test_unknown_end_tag(self, mock_list):
        mock_list.return_value = {"v1": "aaa"}

        with pytest.raises(UnknownTagError) as exc_info:
            lookup_tag_commits(RemoteReference("/remote", "v1", "v3"))

        assert exc_info.value.tag == "v3"
        assert exc_info.value.remote_url == "/remote"


class TestResolveRemote:
    """resolve_remote"""

    def test_equal_tag_names_skip_remote(self):
        with patch("git_diff_apply.resolver.list_remote_tags") as mock_list:
            with resolve_remote("/remote", "v3", "v3") as resolved:
                assert resolved == NothingToApply(TAGS_MATCH)

        mock_list.assert_not_called()

    @patch("git_diff_apply.resolver.fetch_tags")
    @patch("git_diff_apply.resolver.list_remote_tags")
    def test_same_commit_skips_fetch(self, mock_list, mock_fetch):
        mock_list.return_value = {"v3": "ccc", "latest": "ccc"}

        with resolve_remote("/remote", "v3", "latest") as resolved:
            assert isinstance(resolved, NothingToApply)

        mock_fetch.assert_not_called()

    def test_resolves_snapshots(self, remote_repo):
        with resolve_remote(str(remote_repo), "v1", "v3") as resolved:
            assert isinstance(resolved, ResolvedRemote)
            assert resolved.start.commit == git(remote_repo, "rev-parse", "v1").strip()
            assert resolved.end.commit == git(remote_repo, "rev-parse", "v3").strip()
            scratch = resolved.start.repo_path
            assert scratch.exists()
            assert scratch != remote_repo

        assert not scratch.exists()

    def test_annotated_tag_peeled(self, remote_repo):
        with resolve_remote(str(remote_repo), "v2", "v3") as resolved:
            assert resolved.start.commit == git(remote_repo, "rev-parse", "v2^{commit}").strip()

    def test_remote_untouched(self, remote_repo):
        head = git(remote_repo, "rev-parse", "HEAD")

        with resolve_remote(str(remote_repo), "v1", "v3"):
            pass

        assert git(remote_repo, "rev-parse", "HEAD") == head
        assert git(remote_repo, "status", "--porcelain") == ""

    def test_unreachable(self, tmp_path):
        with pytest.raises(RemoteUnreachableError):
            with resolve_remote(str(tmp_path / "missing"), "v1", "v3"):
                pass
