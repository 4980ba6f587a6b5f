"""
src/git_diff_apply/resolver.py - Remote resolver

Resolves two remote tags to snapshots inside a throwaway repository so
the caller's working copy and branch are never touched.
"""

from __future__ import annotations

import tempfile
from contextlib import contextmanager
from pathlib import Path
from typing import Iterator, Optional, Union

from git_diff_apply.errors import UnknownTagError
from git_diff_apply.git_utils import (
    fetch_tags,
    init_scratch_repo,
    list_remote_tags,
    rev_parse_commit,
)
from git_diff_apply.logger import DiffApplyLogger
from git_diff_apply.models import NothingToApply, RemoteReference, ResolvedRemote, Snapshot

TAGS_MATCH = "Tags match, nothing to apply"


def lookup_tag_commits(reference: RemoteReference) -> tuple[str, str]:
    """Look up the commits both tags point at without fetching any objects.

    Returns:
        (start_commit, end_commit)

    Raises:
        RemoteUnreachableError: If the remote cannot be listed.
        UnknownTagError: If either tag is missing from the remote.
    """
    tags = list_remote_tags(reference.remote_url)

    for tag in (reference.start_tag, reference.end_tag):
        if tag not in tags:
            raise UnknownTagError(tag, reference.remote_url)

    return tags[reference.start_tag], tags[reference.end_tag]


@contextmanager
def resolve_remote(
    remote_url: str,
    start_tag: str,
    end_tag: str,
    logger: Optional[DiffApplyLogger] = None,
) -> Iterator[Union[ResolvedRemote, NothingToApply]]:
    """Materialize both tagged snapshots in a scratch repository.

    The scratch repository lives only for the duration of the with-block.

    Args:
        remote_url: URL or local path of the template repository.
        start_tag: Tag the working copy was generated from.
        end_tag: Tag to upgrade to.
        logger: Optional logger.

    Yields:
        ResolvedRemote, or NothingToApply if both tags name the same commit.

    Raises:
        RemoteUnreachableError: If the remote cannot be read.
        UnknownTagError: If either tag does not exist.
    """
    reference = RemoteReference(remote_url, start_tag, end_tag)

    if reference.is_empty:
        yield NothingToApply(TAGS_MATCH)
        return

    start_commit, end_commit = lookup_tag_commits(reference)

    if start_commit == end_commit:
        if logger:
            logger.info(f"{start_tag} and {end_tag} point at the same commit", commit=start_commit)
        yield NothingToApply(TAGS_MATCH)
        return

    with tempfile.TemporaryDirectory(prefix="git-diff-apply-") as tmpdir:
        repo_path = Path(tmpdir)
        init_scratch_repo(repo_path)

        if logger:
            logger.info(f"Fetching {start_tag} and {end_tag} from {remote_url}")
        fetch_tags(repo_path, remote_url, [start_tag, end_tag])

        yield ResolvedRemote(
            reference=reference,
            start=Snapshot(start_tag, rev_parse_commit(repo_path, start_tag), repo_path),
            end=Snapshot(end_tag, rev_parse_commit(repo_path, end_tag), repo_path),
        )
