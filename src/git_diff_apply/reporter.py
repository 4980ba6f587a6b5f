"""Outcome reporter - classify the end state of an apply."""

from __future__ import annotations

from typing import Optional

from git_diff_apply.git_utils import PathLike, get_changed_paths
from git_diff_apply.models import ChangeSet, FileResult, NothingToApply, Outcome, OutcomeKind


def report_nothing_to_apply(signal: NothingToApply) -> Outcome:
    """Build the no-op outcome for a resolver or diff-computer short-circuit."""
    return Outcome(kind=OutcomeKind.NO_OP, message=signal.reason)


def report(
    working_copy: PathLike,
    results: list[FileResult],
    change_set: Optional[ChangeSet] = None,
    dry_run: bool = False,
) -> Outcome:
    """Classify an applied change set.

    Args:
        working_copy: Working-copy root, queried for its post-apply status.
        results: Per-record results from the applier.
        change_set: The change set that produced the results.
        dry_run: True if the applier wrote nothing.

    Returns:
        A clean or conflicted Outcome.
    """
    conflicted_paths: list[str] = []
    for result in results:
        if result.conflicted and result.path not in conflicted_paths:
            conflicted_paths.append(result.path)

    changed_paths = [] if dry_run else get_changed_paths(working_copy)
    prefix = "Would apply" if dry_run else "Applied"

    if conflicted_paths:
        count = len(conflicted_paths)
        return Outcome(
            kind=OutcomeKind.CONFLICTED,
            conflicted_paths=conflicted_paths,
            message=(
                f"{prefix} {len(results)} change{'s' if len(results) != 1 else ''} "
                f"with {count} conflict{'s' if count != 1 else ''}"
            ),
            changed_paths=changed_paths,
            dry_run=dry_run,
            change_set=change_set,
        )

    return Outcome(
        kind=OutcomeKind.CLEAN,
        message=f"{prefix} {len(results)} change{'s' if len(results) != 1 else ''} cleanly",
        changed_paths=changed_paths,
        dry_run=dry_run,
        change_set=change_set,
    )
