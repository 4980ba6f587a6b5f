"""Git utilities for inspecting working copies and reading remote tags.

Every helper takes the repository path explicitly; nothing here changes
the process working directory.
"""

from __future__ import annotations

import os
import subprocess
import tempfile
from pathlib import Path
from typing import Sequence, Union

from git_diff_apply.errors import GitCommandError, RemoteUnreachableError

PathLike = Union[str, Path]

# git merge-file exits with the conflict count, truncated to 127
MERGE_FILE_MAX_CONFLICTS = 127


def _git_env() -> dict[str, str]:
    env = os.environ.copy()
    # Fail instead of prompting for credentials on unreachable remotes
    env["GIT_TERMINAL_PROMPT"] = "0"
    return env


def run_git(
    args: Sequence[str],
    cwd: PathLike | None = None,
    check: bool = True,
    text: bool = True,
) -> subprocess.CompletedProcess:
    """Run a git command and capture its output.

    Args:
        args: Arguments after "git".
        cwd: Directory to run in.
        check: If True, raise GitCommandError on a non-zero exit code.
        text: Decode stdout/stderr as text.

    Returns:
        The completed process.

    Raises:
        GitCommandError: If check is set and git fails.
    """
    result = subprocess.run(
        ["git", *args],
        cwd=str(cwd) if cwd is not None else None,
        capture_output=True,
        text=text,
        env=_git_env(),
    )

    if check and result.returncode != 0:
        stderr = result.stderr if text else result.stderr.decode("utf-8", "replace")
        raise GitCommandError(list(args), result.returncode, stderr)

    return result


def is_inside_work_tree(path: PathLike) -> bool:
    """Check if a path is inside a git working tree.

    Returns:
        True if git recognizes the path as part of a work tree.
    """
    if not Path(path).is_dir():
        return False

    result = run_git(["rev-parse", "--is-inside-work-tree"], cwd=path, check=False)
    return result.returncode == 0 and result.stdout.strip() == "true"


def get_porcelain_status(path: PathLike) -> list[str]:
    """Get `git status --porcelain` entries, untracked files included.

    Returns:
        One "XY path" entry per changed path.
    """
    result = run_git(["status", "--porcelain", "--untracked-files=all"], cwd=path)
    return [line for line in result.stdout.splitlines() if line.strip()]


def is_working_tree_clean(path: PathLike) -> bool:
    """Check if the git working tree is clean.

    Returns:
        True if there are no uncommitted changes.
    """
    return not get_porcelain_status(path)


def get_changed_paths(path: PathLike) -> list[str]:
    """List paths that differ from HEAD, staged or not.

    Renames report the destination path.
    """
    result = run_git(["status", "--porcelain", "-z", "--untracked-files=all"], cwd=path)

    paths: list[str] = []
    entries = result.stdout.split("\0")
    i = 0
    while i < len(entries):
        entry = entries[i]
        i += 1
        if len(entry) < 4:
            continue
        status, file_path = entry[:2], entry[3:]
        if "R" in status or "C" in status:
            # -z puts the rename source in the following field
            i += 1
        if file_path not in paths:
            paths.append(file_path)

    return paths


def list_remote_tags(remote_url: str) -> dict[str, str]:
    """List tags of a remote, peeling annotated tags to their commit.

    Args:
        remote_url: URL or local path of the remote.

    Returns:
        Mapping of tag name to commit id.

    Raises:
        RemoteUnreachableError: If the remote cannot be read.
    """
    result = run_git(["ls-remote", "--tags", "--", remote_url], check=False)

    if result.returncode != 0:
        raise RemoteUnreachableError(remote_url, result.stderr.strip())

    tags: dict[str, str] = {}
    peeled: dict[str, str] = {}
    for line in result.stdout.splitlines():
        if "\t" not in line:
            continue
        sha, ref = line.split("\t", 1)
        if not ref.startswith("refs/tags/"):
            continue
        name = ref[len("refs/tags/"):]
        if name.endswith("^{}"):
            peeled[name[:-3]] = sha
        else:
            tags[name] = sha

    tags.update(peeled)
    return tags


def init_scratch_repo(path: PathLike) -> None:
    """Create an empty repository to fetch snapshots into."""
    run_git(["init", "--quiet", str(path)])


def fetch_tags(repo_path: PathLike, remote_url: str, tags: Sequence[str]) -> None:
    """Fetch the given tags from a remote into a repository.

    Raises:
        RemoteUnreachableError: If the fetch fails.
    """
    refspecs = [f"+refs/tags/{tag}:refs/tags/{tag}" for tag in dict.fromkeys(tags)]
    result = run_git(
        ["fetch", "--quiet", "--no-tags", "--", remote_url, *refspecs],
        cwd=repo_path,
        check=False,
    )

    if result.returncode != 0:
        raise RemoteUnreachableError(remote_url, result.stderr.strip())


def rev_parse_commit(repo_path: PathLike, ref: str) -> str:
    """Resolve a ref to a full commit id."""
    result = run_git(["rev-parse", "--verify", "--quiet", f"{ref}^{{commit}}"], cwd=repo_path)
    return result.stdout.strip()


def diff_raw(repo_path: PathLike, start: str, end: str) -> bytes:
    """Get `git diff --raw -z` output between two commits, renames detected."""
    result = run_git(
        ["diff", "--raw", "-z", "-M", "--no-abbrev", start, end],
        cwd=repo_path,
        text=False,
    )
    return result.stdout


def read_blob(repo_path: PathLike, blob_id: str) -> bytes:
    """Read a blob's raw content."""
    result = run_git(["cat-file", "blob", blob_id], cwd=repo_path, text=False)
    return result.stdout


def merge_file(
    ours: bytes,
    base: bytes,
    theirs: bytes,
    labels: tuple[str, str, str] = ("local", "base", "remote"),
) -> tuple[bytes, int]:
    """Three-way merge file contents with `git merge-file`.

    Args:
        ours: Local content.
        base: Common ancestor content.
        theirs: Incoming content.
        labels: Conflict marker labels for ours, base and theirs.

    Returns:
        (merged_content, conflict_count). The content carries standard
        conflict markers when conflict_count is non-zero.

    Raises:
        GitCommandError: If git merge-file reports an error.
    """
    with tempfile.TemporaryDirectory(prefix="git-diff-apply-merge-") as tmpdir:
        files = []
        for name, content in (("ours", ours), ("base", base), ("theirs", theirs)):
            file_path = Path(tmpdir) / name
            file_path.write_bytes(content)
            files.append(str(file_path))

        args = ["merge-file", "-p"]
        for label in labels:
            args.extend(["-L", label])
        args.extend(files)

        result = run_git(args, check=False, text=False)

    if result.returncode < 0 or result.returncode > MERGE_FILE_MAX_CONFLICTS:
        raise GitCommandError(args, result.returncode, result.stderr.decode("utf-8", "replace"))

    return result.stdout, result.returncode


def get_ignored_paths(path: PathLike, paths: Sequence[str]) -> set[str]:
    """Return the subset of paths excluded by the working copy's .gitignore rules."""
    if not paths:
        return set()

    result = run_git(["check-ignore", "--", *paths], cwd=path, check=False)

    # 0: some paths ignored, 1: none ignored
    if result.returncode not in (0, 1):
        raise GitCommandError(["check-ignore", "--", *paths], result.returncode, result.stderr)

    return {line for line in result.stdout.splitlines() if line}


def stage_paths(path: PathLike, paths: Sequence[str]) -> list[str]:
    """Stage additions, modifications and removals of the given paths.

    Paths matched by .gitignore are left unstaged.

    Returns:
        The paths that were staged.
    """
    ignored = get_ignored_paths(path, paths)
    to_stage = [p for p in paths if p not in ignored]
    if to_stage:
        run_git(["add", "-A", "--", *to_stage], cwd=path)
    return to_stage
