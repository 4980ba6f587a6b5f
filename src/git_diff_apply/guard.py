"""Working-copy guard - refuse to touch a tree with uncommitted changes."""

from __future__ import annotations

from git_diff_apply.errors import DirtyWorkingCopyError, NotAGitRepositoryError
from git_diff_apply.git_utils import PathLike, get_porcelain_status, is_inside_work_tree


def ensure_clean_working_copy(path: PathLike) -> None:
    """Verify the working copy is safe to mutate.

    Staged, unstaged and untracked changes all count as dirty, since any of
    them could be overwritten or mixed into the upgrade.

    Args:
        path: Working-copy root.

    Raises:
        NotAGitRepositoryError: If the path is not a git work tree.
        DirtyWorkingCopyError: If there are uncommitted changes.
    """
    if not is_inside_work_tree(path):
        raise NotAGitRepositoryError(str(path))

    entries = get_porcelain_status(path)
    if entries:
        raise DirtyWorkingCopyError(str(path), entries)
