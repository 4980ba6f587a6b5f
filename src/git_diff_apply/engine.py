"""
src/git_diff_apply/engine.py - The apply entry point

Runs the pipeline once, strictly in order:

    guard -> resolver -> diff computer -> applier -> reporter

Each stage either hands its result to the next or raises; the first
failure ends the invocation.
"""

from __future__ import annotations

from pathlib import Path
from typing import Iterable, Optional

from git_diff_apply.applier import apply_change_set
from git_diff_apply.diff import compute_change_set
from git_diff_apply.guard import ensure_clean_working_copy
from git_diff_apply.logger import DiffApplyLogger
from git_diff_apply.models import NothingToApply, Outcome
from git_diff_apply.reporter import report, report_nothing_to_apply
from git_diff_apply.resolver import resolve_remote


def apply(
    remote_url: str,
    start_tag: str,
    end_tag: str,
    ignore_conflicts: bool = True,
    ignored_files: Iterable[str] = (),
    working_copy_path: str | Path = ".",
    dry_run: bool = False,
    logger: Optional[DiffApplyLogger] = None,
) -> Outcome:
    """Replay the upstream changes between two tags onto a working copy.

    The result is left uncommitted; committing is up to the caller.

    Args:
        remote_url: URL or local path of the template repository.
        start_tag: Tag the working copy was generated from.
        end_tag: Tag to upgrade to.
        ignore_conflicts: Leave conflict markers in colliding files instead
            of failing with ConflictError.
        ignored_files: Paths or glob patterns excluded from the upgrade.
        working_copy_path: Root of the working copy to modify.
        dry_run: Compute and classify the upgrade without writing anything.
        logger: Logger (default: warnings to stderr only).

    Returns:
        Outcome classified as no-op, clean or conflicted.

    Raises:
        NotAGitRepositoryError: If the working copy is not a git repository.
        DirtyWorkingCopyError: If the working copy has uncommitted changes.
        RemoteUnreachableError: If the remote cannot be read.
        UnknownTagError: If either tag does not exist.
        ConflictError: If ignore_conflicts is False and changes collide.
        WorkingCopyWriteError: If the filesystem rejects a planned write.
        GitCommandError: If any other git operation fails.
    """
    logger = logger or DiffApplyLogger()
    working_copy = Path(working_copy_path).resolve()

    ensure_clean_working_copy(working_copy)
    logger.debug("Working copy is clean", path=str(working_copy))

    with resolve_remote(remote_url, start_tag, end_tag, logger=logger) as resolved:
        if isinstance(resolved, NothingToApply):
            logger.info(resolved.reason)
            return report_nothing_to_apply(resolved)

        change_set = compute_change_set(
            resolved.start, resolved.end, ignored_files, logger=logger
        )

    if isinstance(change_set, NothingToApply):
        logger.info(change_set.reason)
        return report_nothing_to_apply(change_set)

    results = apply_change_set(
        working_copy,
        change_set,
        ignore_conflicts=ignore_conflicts,
        dry_run=dry_run,
        logger=logger,
    )

    outcome = report(working_copy, results, change_set=change_set, dry_run=dry_run)
    logger.info(outcome.message, kind=outcome.kind.value, conflicts=outcome.conflicted_paths)
    return outcome
