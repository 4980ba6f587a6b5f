"""
src/git_diff_apply/models.py - Data model for the diff-apply pipeline

Remote references, snapshots, change records and the outcome handed back
to the caller.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Any, Iterator, Optional

import yaml


class ChangeKind(Enum):
    """File-level change kinds"""

    ADD = "add"
    MODIFY = "modify"
    DELETE = "delete"
    RENAME = "rename"


class ConflictKind(Enum):
    """Why a path could not be merged cleanly"""

    BOTH_MODIFIED = "both_modified"
    ADDED_BY_BOTH = "added_by_both"
    DELETED_BY_US = "deleted_by_us"
    DELETED_BY_THEM = "deleted_by_them"
    BINARY = "binary"
    FILE_DIRECTORY = "file_directory"


class OutcomeKind(Enum):
    """Final classification of an invocation"""

    NO_OP = "no-op"
    CLEAN = "clean"
    CONFLICTED = "conflicted"


@dataclass(frozen=True)
class RemoteReference:
    """A remote location plus the two tags bounding the upgrade."""

    remote_url: str
    start_tag: str
    end_tag: str

    @property
    def is_empty(self) -> bool:
        return self.start_tag == self.end_tag


@dataclass(frozen=True)
class Snapshot:
    """A tagged tree inside the scratch repository. Read-only."""

    tag: str
    commit: str
    repo_path: Path

    def __str__(self) -> str:
        return f"Snapshot({self.tag} @ {self.commit[:7]})"


@dataclass(frozen=True)
class ResolvedRemote:
    """Both ends of the upgrade, materialized in a scratch repository."""

    reference: RemoteReference
    start: Snapshot
    end: Snapshot


@dataclass(frozen=True)
class NothingToApply:
    """Sentinel returned when there is no work left for the pipeline."""

    reason: str


@dataclass
class ChangeRecord:
    """One file-level change between two snapshots

    Attributes:
        path: Path after the change (the deleted path for deletions)
        kind: Change kind
        old_path: Source path for renames, otherwise None
        old_content: Content at the start tag, None for additions
        new_content: Content at the end tag, None for deletions
        old_mode: Git file mode at the start tag
        new_mode: Git file mode at the end tag
    """

    path: str
    kind: ChangeKind
    old_path: Optional[str] = None
    old_content: Optional[bytes] = None
    new_content: Optional[bytes] = None
    old_mode: Optional[str] = None
    new_mode: Optional[str] = None

    @property
    def source_path(self) -> str:
        """Path holding the "before" content in the working copy."""
        return self.old_path or self.path

    def paths(self) -> list[str]:
        if self.old_path and self.old_path != self.path:
            return [self.old_path, self.path]
        return [self.path]

    def __str__(self) -> str:
        if self.kind is ChangeKind.RENAME:
            return f"{self.kind.value}: {self.old_path} -> {self.path}"
        return f"{self.kind.value}: {self.path}"


@dataclass
class ChangeSet:
    """Ordered change records between two tags, ignored paths already removed."""

    start_tag: str
    end_tag: str
    records: list[ChangeRecord] = field(default_factory=list)

    def __iter__(self) -> Iterator[ChangeRecord]:
        return iter(self.records)

    def __len__(self) -> int:
        return len(self.records)

    def __bool__(self) -> bool:
        return bool(self.records)

    def paths(self) -> list[str]:
        seen: list[str] = []
        for record in self.records:
            for path in record.paths():
                if path not in seen:
                    seen.append(path)
        return seen


@dataclass
class FileResult:
    """Result of merging a single change record into the working copy."""

    path: str
    record: ChangeRecord
    conflicted: bool = False
    conflict_kind: Optional[ConflictKind] = None


@dataclass
class Outcome:
    """Structured result of one apply invocation

    Attributes:
        kind: no-op, clean or conflicted
        conflicted_paths: Paths left with conflict markers
        message: Human readable summary
        changed_paths: Paths reported by git status after the apply
        dry_run: True if nothing was written
        change_set: The applied change set, None for no-op
    """

    kind: OutcomeKind
    conflicted_paths: list[str] = field(default_factory=list)
    message: str = ""
    changed_paths: list[str] = field(default_factory=list)
    dry_run: bool = False
    change_set: Optional[ChangeSet] = None

    @property
    def has_conflicts(self) -> bool:
        return self.kind is OutcomeKind.CONFLICTED

    def to_dict(self) -> dict[str, Any]:
        return {
            "kind": self.kind.value,
            "message": self.message,
            "dry_run": self.dry_run,
            "conflicted_paths": list(self.conflicted_paths),
            "changed_paths": list(self.changed_paths),
            "changes": [str(record) for record in self.change_set or []],
        }

    def to_yaml(self) -> str:
        """Serialize to YAML."""
        return yaml.safe_dump(self.to_dict(), default_flow_style=False, sort_keys=False)
