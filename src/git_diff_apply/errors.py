"""Exception taxonomy for git-diff-apply.

Every failure raised by the pipeline derives from GitDiffApplyError so
callers can catch the whole family in one place.
"""

from __future__ import annotations


class GitDiffApplyError(RuntimeError):
    """Base class for all git-diff-apply failures."""


class DirtyWorkingCopyError(GitDiffApplyError):
    """The working copy has uncommitted changes."""

    def __init__(self, path: str, entries: list[str] | None = None) -> None:
        self.path = path
        self.entries = entries or []
        super().__init__(
            "You must start with a clean working directory "
            f"({path}). Commit or stash your changes first."
        )


class NotAGitRepositoryError(GitDiffApplyError):
    """The working-copy path is not inside a git work tree."""

    def __init__(self, path: str) -> None:
        self.path = path
        super().__init__(f"Not a git repository: {path}")


class UnknownTagError(GitDiffApplyError):
    """A requested tag does not exist in the remote."""

    def __init__(self, tag: str, remote_url: str) -> None:
        self.tag = tag
        self.remote_url = remote_url
        super().__init__(f"Tag '{tag}' not found in {remote_url}")


class RemoteUnreachableError(GitDiffApplyError):
    """The remote could not be contacted or read."""

    def __init__(self, remote_url: str, detail: str = "") -> None:
        self.remote_url = remote_url
        self.detail = detail
        message = f"Could not read from remote {remote_url}"
        if detail:
            message = f"{message}: {detail}"
        super().__init__(message)


class ConflictError(GitDiffApplyError):
    """Incoming changes collide with local edits and conflicts are not tolerated."""

    def __init__(self, paths: list[str]) -> None:
        self.paths = list(paths)
        super().__init__(
            "Conflicts detected in: " + ", ".join(self.paths)
        )


class GitCommandError(GitDiffApplyError):
    """A git invocation failed in a way no other error describes."""

    def __init__(self, args: list[str], returncode: int, stderr: str = "") -> None:
        self.command = ["git", *args]
        self.returncode = returncode
        self.stderr = stderr
        super().__init__(
            f"git {' '.join(args)} failed with exit code {returncode}: {stderr.strip()}"
        )


class WorkingCopyWriteError(GitDiffApplyError):
    """A planned write could not be carried out on the working copy."""

    def __init__(self, path: str, detail: str = "") -> None:
        self.path = path
        self.detail = detail
        message = f"Could not write {path}"
        if detail:
            message = f"{message}: {detail}"
        super().__init__(message)
