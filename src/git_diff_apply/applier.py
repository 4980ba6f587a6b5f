"""
src/git_diff_apply/applier.py - Patch applier

Merges each change record into the working copy. Collisions with local
edits are written out with standard conflict markers; the conflict itself
is tracked as a typed flag on the FileResult, taken from git merge-file's
exit status rather than from scanning file content.

Every record is planned in memory before anything is written, so a
ConflictError leaves the working copy untouched.
"""

from __future__ import annotations

import os
import stat
from dataclasses import dataclass, field
from pathlib import Path, PurePosixPath
from typing import Optional

from git_diff_apply.errors import ConflictError, WorkingCopyWriteError
from git_diff_apply.git_utils import PathLike, merge_file, stage_paths
from git_diff_apply.logger import DiffApplyLogger
from git_diff_apply.models import ChangeKind, ChangeRecord, ChangeSet, ConflictKind, FileResult

EXECUTABLE_MODE = "100755"
SYMLINK_MODE = "120000"


@dataclass
class FileWrite:
    """A pending write. content=None removes the path."""

    path: str
    content: Optional[bytes]
    mode: Optional[str] = None


@dataclass
class PlannedChange:
    """Merge result for one record, not yet written."""

    result: FileResult
    writes: list[FileWrite] = field(default_factory=list)


def _read_local(root: Path, path: str) -> tuple[Optional[bytes], bool]:
    """Read a working-copy file.

    Returns:
        (content, is_symlink). Content is None when the path does not exist;
        for symlinks it is the link target, matching how git stores them.
    """
    target = root / path
    if target.is_symlink():
        return os.fsencode(os.readlink(target)), True
    if target.is_file():
        return target.read_bytes(), False
    return None, False


def _is_binary(*contents: Optional[bytes]) -> bool:
    return any(content is not None and b"\0" in content for content in contents)


def _conflict_kind(record: ChangeRecord, local: Optional[bytes]) -> ConflictKind:
    if record.kind is ChangeKind.ADD:
        return ConflictKind.ADDED_BY_BOTH
    if record.kind is ChangeKind.DELETE:
        return ConflictKind.DELETED_BY_THEM
    if local is None:
        return ConflictKind.DELETED_BY_US
    return ConflictKind.BOTH_MODIFIED


def _plan_rename_onto_local(
    record: ChangeRecord,
    occupant: bytes,
    occupant_is_symlink: bool,
    labels: tuple[str, str, str],
) -> PlannedChange:
    """Plan a rename whose destination already holds an unrelated local file.

    The local file wins the destination: it is merged with the incoming
    content as an add/add conflict, and the rename source is left in place.
    """
    result = FileResult(
        path=record.path,
        record=record,
        conflicted=True,
        conflict_kind=ConflictKind.ADDED_BY_BOTH,
    )
    planned = PlannedChange(result=result)

    symlinks = occupant_is_symlink or record.new_mode == SYMLINK_MODE
    if symlinks or _is_binary(occupant, record.new_content):
        result.conflict_kind = ConflictKind.BINARY
        return planned

    merged, _ = merge_file(occupant, b"", record.new_content or b"", labels)
    planned.writes.append(FileWrite(record.path, merged, record.new_mode))
    return planned


def plan_record(
    root: Path,
    record: ChangeRecord,
    labels: tuple[str, str, str] = ("HEAD", "base", "remote"),
) -> PlannedChange:
    """Three-way merge a single record against the working copy.

    Args:
        root: Working-copy root.
        record: Change record to merge.
        labels: Conflict marker labels for local, before and after.

    Returns:
        The planned writes and the per-path result.
    """
    local, local_is_symlink = _read_local(root, record.source_path)
    before = record.old_content
    after = record.new_content

    result = FileResult(path=record.path, record=record)
    planned = PlannedChange(result=result)

    if record.kind is ChangeKind.RENAME and record.old_path != record.path:
        occupant, occupant_is_symlink = _read_local(root, record.path)
        if occupant is not None and occupant not in (before, after):
            return _plan_rename_onto_local(record, occupant, occupant_is_symlink, labels)

    # Renames always drop the old path once its content has been carried over
    moves = record.kind is ChangeKind.RENAME and local is not None

    if local is None and record.kind is ChangeKind.DELETE:
        return planned

    if local == before or (local is None and record.kind is ChangeKind.ADD):
        # Local copy is untouched since the start tag: take the incoming side
        if moves:
            planned.writes.append(FileWrite(record.source_path, None))
        if after is None:
            planned.writes.append(FileWrite(record.path, None))
        else:
            planned.writes.append(FileWrite(record.path, after, record.new_mode))
        return planned

    if local == after:
        # Already up to date; a rename still needs the old path gone
        if moves:
            planned.writes.append(FileWrite(record.source_path, None))
            planned.writes.append(FileWrite(record.path, after, record.new_mode))
        return planned

    symlinks = local_is_symlink or SYMLINK_MODE in (record.old_mode, record.new_mode)
    if symlinks or _is_binary(local, before, after):
        # Cannot be merged textually; keep the local version
        result.conflicted = True
        result.conflict_kind = ConflictKind.BINARY
        result.path = record.source_path
        return planned

    merged, conflicts = merge_file(local or b"", before or b"", after or b"", labels)

    if conflicts:
        result.conflicted = True
        result.conflict_kind = _conflict_kind(record, local)

    if moves:
        planned.writes.append(FileWrite(record.source_path, None))

    mode = record.new_mode or record.old_mode
    planned.writes.append(FileWrite(record.path, merged, mode))
    return planned


def _set_executable(target: Path, executable: bool) -> None:
    current = target.stat().st_mode
    exec_bits = stat.S_IXUSR | stat.S_IXGRP | stat.S_IXOTH
    if executable:
        # Grant execute wherever read is granted
        target.chmod(current | ((current & 0o444) >> 2))
    else:
        target.chmod(current & ~exec_bits)


def _remove(root: Path, path: str) -> None:
    target = root / path
    if target.is_symlink() or target.exists():
        target.unlink()

    # git does not track empty directories
    parent = target.parent
    while parent != root and parent.is_dir() and not any(parent.iterdir()):
        parent.rmdir()
        parent = parent.parent


def write_file(root: Path, write: FileWrite) -> None:
    """Apply a single planned write to the working copy."""
    if write.content is None:
        _remove(root, write.path)
        return

    target = root / write.path
    if target.is_symlink() or target.is_file():
        target.unlink()
    target.parent.mkdir(parents=True, exist_ok=True)

    if write.mode == SYMLINK_MODE:
        os.symlink(os.fsdecode(write.content), target)
        return

    target.write_bytes(write.content)
    _set_executable(target, write.mode == EXECUTABLE_MODE)


def _blocked_by_local_path(root: Path, path: str, removed: set[str]) -> bool:
    """Check whether writing a file at path would clobber a local directory
    or have to descend through a local file.

    Paths in removed are deleted before any content is written, so they do
    not block.
    """
    target = root / path
    if target.is_dir() and not target.is_symlink():
        remaining = [
            p.relative_to(root).as_posix()
            for p in target.rglob("*")
            if p.is_symlink() or not p.is_dir()
        ]
        if any(p not in removed for p in remaining):
            return True

    for parent in PurePosixPath(path).parents:
        if str(parent) == ".":
            continue
        local = root / parent
        occupied = local.is_symlink() or (local.exists() and not local.is_dir())
        if occupied and str(parent) not in removed:
            return True

    return False


def _mark_path_collisions(root: Path, planned: list[PlannedChange]) -> None:
    """Turn writes that collide with the local tree's file/directory layout
    into conflicts that keep the local side."""
    # Dropping a change also drops its removals, which may block others
    while True:
        removed = {w.path for change in planned for w in change.writes if w.content is None}
        dropped = False

        for change in planned:
            blocked = [
                w.path
                for w in change.writes
                if w.content is not None and _blocked_by_local_path(root, w.path, removed)
            ]
            if not blocked:
                continue
            change.result.conflicted = True
            change.result.conflict_kind = ConflictKind.FILE_DIRECTORY
            change.result.path = blocked[0]
            change.writes = []
            dropped = True

        if not dropped:
            return


def _write(root: Path, write: FileWrite) -> None:
    try:
        write_file(root, write)
    except OSError as e:
        raise WorkingCopyWriteError(write.path, e.strerror or str(e)) from e


def apply_change_set(
    working_copy: PathLike,
    change_set: ChangeSet,
    ignore_conflicts: bool = True,
    dry_run: bool = False,
    logger: Optional[DiffApplyLogger] = None,
) -> list[FileResult]:
    """Merge a change set into the working copy.

    Clean results are staged so renames keep their history; conflicted
    paths are left unstaged with markers for manual resolution. Nothing is
    committed.

    Args:
        working_copy: Working-copy root.
        change_set: Non-empty change set to apply.
        ignore_conflicts: Leave conflict markers in place instead of failing.
        dry_run: Plan and classify only, write nothing.
        logger: Optional logger.

    Returns:
        One FileResult per change record.

    Raises:
        ConflictError: If ignore_conflicts is False and any path collides.
        WorkingCopyWriteError: If the filesystem rejects a planned write.
    """
    root = Path(working_copy)
    labels = ("HEAD", change_set.start_tag, change_set.end_tag)

    planned = [plan_record(root, record, labels) for record in change_set]
    _mark_path_collisions(root, planned)

    results = [p.result for p in planned]
    conflicted = [r.path for r in results if r.conflicted]

    if conflicted and not ignore_conflicts:
        raise ConflictError(conflicted)

    if dry_run:
        return results

    # Removals first, so a path freed by one record can be reused by another
    writes = [(change, w) for change in planned for w in change.writes]
    writes.sort(key=lambda item: item[1].content is not None)

    to_stage: list[str] = []
    for change, write in writes:
        _write(root, write)
        if logger:
            action = "remove" if write.content is None else "write"
            logger.debug(f"{action} {write.path}", conflicted=change.result.conflicted)
        if not change.result.conflicted and write.path not in to_stage:
            to_stage.append(write.path)

    stage_paths(root, to_stage)

    for path in conflicted:
        if logger:
            logger.warning(f"Conflict in {path}")

    return results
