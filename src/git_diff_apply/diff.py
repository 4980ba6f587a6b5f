"""Diff computer - turn two snapshots into an ordered change set.

Records follow git's diff order (sorted by path), so the same pair of
tags always produces the same change set.
"""

from __future__ import annotations

import difflib
from fnmatch import fnmatchcase
from pathlib import PurePosixPath
from typing import Iterable, Iterator, Optional, Union

from git_diff_apply.git_utils import diff_raw, read_blob
from git_diff_apply.logger import DiffApplyLogger
from git_diff_apply.models import ChangeKind, ChangeRecord, ChangeSet, NothingToApply, Snapshot

ALL_IGNORED = "All changes are ignored, nothing to apply"

NULL_MODE = "000000"
GITLINK_MODE = "160000"


def _normalize_pattern(pattern: str) -> str:
    while pattern.startswith("./"):
        pattern = pattern[2:]
    return pattern.strip("/")


def is_ignored(path: str, patterns: Iterable[str]) -> bool:
    """Check whether a path matches any ignore pattern.

    A pattern matches on exact path, fnmatch-style glob, or as a prefix of
    a parent directory ("docs" and "docs/" both match "docs/index.md").
    Matching is case-sensitive.

    Args:
        path: Repository-relative path with forward slashes.
        patterns: Caller-supplied ignore patterns.

    Returns:
        True if the path is ignored.
    """
    parents = [str(p) for p in PurePosixPath(path).parents if str(p) != "."]

    for raw in patterns:
        pattern = _normalize_pattern(raw)
        if not pattern:
            continue
        if path == pattern or fnmatchcase(path, pattern):
            return True
        if any(parent == pattern or fnmatchcase(parent, pattern) for parent in parents):
            return True

    return False


def _decode(raw: bytes) -> str:
    return raw.decode("utf-8", "surrogateescape")


def parse_raw_diff(output: bytes) -> Iterator[tuple[str, str, str, str, str, str, Optional[str]]]:
    """Parse `git diff --raw -z` output.

    Yields:
        (old_mode, new_mode, old_blob, new_blob, status, path, new_path)
        where new_path is set only for renames and copies.
    """
    tokens = output.split(b"\0")
    i = 0
    while i < len(tokens):
        header = tokens[i]
        i += 1
        if not header.startswith(b":"):
            continue

        old_mode, new_mode, old_blob, new_blob, status = _decode(header[1:]).split(" ")
        path = _decode(tokens[i])
        i += 1

        new_path = None
        if status[0] in "RC":
            new_path = _decode(tokens[i])
            i += 1

        yield old_mode, new_mode, old_blob, new_blob, status, path, new_path


def _build_record(
    snapshot: Snapshot,
    old_mode: str,
    new_mode: str,
    old_blob: str,
    new_blob: str,
    status: str,
    path: str,
    new_path: Optional[str],
) -> ChangeRecord:
    repo = snapshot.repo_path
    letter = status[0]

    if letter == "A":
        return ChangeRecord(
            path=path,
            kind=ChangeKind.ADD,
            new_content=read_blob(repo, new_blob),
            new_mode=new_mode,
        )

    if letter == "D":
        return ChangeRecord(
            path=path,
            kind=ChangeKind.DELETE,
            old_content=read_blob(repo, old_blob),
            old_mode=old_mode,
        )

    if letter == "R":
        return ChangeRecord(
            path=new_path or path,
            kind=ChangeKind.RENAME,
            old_path=path,
            old_content=read_blob(repo, old_blob),
            new_content=read_blob(repo, new_blob),
            old_mode=old_mode,
            new_mode=new_mode,
        )

    if letter == "C":
        # The copy source is untouched, so only the destination is a change
        return ChangeRecord(
            path=new_path or path,
            kind=ChangeKind.ADD,
            new_content=read_blob(repo, new_blob),
            new_mode=new_mode,
        )

    # M and T
    return ChangeRecord(
        path=path,
        kind=ChangeKind.MODIFY,
        old_content=read_blob(repo, old_blob),
        new_content=read_blob(repo, new_blob),
        old_mode=old_mode,
        new_mode=new_mode,
    )


def compute_change_set(
    start: Snapshot,
    end: Snapshot,
    ignored_files: Iterable[str] = (),
    logger: Optional[DiffApplyLogger] = None,
) -> Union[ChangeSet, NothingToApply]:
    """Compute the change set between two snapshots.

    Args:
        start: Snapshot the working copy was generated from.
        end: Snapshot to upgrade to.
        ignored_files: Paths or glob patterns to leave out of the change set.
        logger: Optional logger.

    Returns:
        A non-empty ChangeSet, or NothingToApply when every difference was
        ignored.
    """
    patterns = list(ignored_files)
    change_set = ChangeSet(start_tag=start.tag, end_tag=end.tag)

    for old_mode, new_mode, old_blob, new_blob, status, path, new_path in parse_raw_diff(
        diff_raw(start.repo_path, start.commit, end.commit)
    ):
        touched = [p for p in (path, new_path) if p]

        if GITLINK_MODE in (old_mode, new_mode):
            if logger:
                logger.warning(f"Skipping submodule change: {touched[-1]}")
            continue

        if any(is_ignored(p, patterns) for p in touched):
            if logger:
                logger.info(f"Ignoring {touched[-1]}", status=status)
            continue

        change_set.records.append(
            _build_record(end, old_mode, new_mode, old_blob, new_blob, status, path, new_path)
        )

    if not change_set:
        return NothingToApply(ALL_IGNORED)

    if logger:
        logger.info(
            f"{len(change_set)} change(s) between {start.tag} and {end.tag}",
            paths=change_set.paths(),
        )
    return change_set


def render_unified_diff(change_set: ChangeSet) -> Iterator[str]:
    """Render a change set as unified diff lines for display.

    Binary files are summarized on a single line.
    """
    for record in change_set:
        old = record.old_content or b""
        new = record.new_content or b""
        from_path = f"a/{record.source_path}" if record.old_content is not None else "/dev/null"
        to_path = f"b/{record.path}" if record.new_content is not None else "/dev/null"

        if b"\0" in old or b"\0" in new:
            yield f"Binary files {from_path} and {to_path} differ"
            continue

        yield from difflib.unified_diff(
            old.decode("utf-8", "replace").splitlines(),
            new.decode("utf-8", "replace").splitlines(),
            fromfile=from_path,
            tofile=to_path,
            lineterm="",
        )
