"""git-diff-apply - Replay upstream template changes between two tags onto a working copy."""

from git_diff_apply.engine import apply
from git_diff_apply.errors import (
    ConflictError,
    DirtyWorkingCopyError,
    GitCommandError,
    GitDiffApplyError,
    NotAGitRepositoryError,
    RemoteUnreachableError,
    UnknownTagError,
    WorkingCopyWriteError,
)
from git_diff_apply.models import Outcome, OutcomeKind

__version__ = "0.1.0"

__all__ = [
    "apply",
    "ConflictError",
    "DirtyWorkingCopyError",
    "GitCommandError",
    "GitDiffApplyError",
    "NotAGitRepositoryError",
    "Outcome",
    "OutcomeKind",
    "RemoteUnreachableError",
    "UnknownTagError",
    "WorkingCopyWriteError",
]
