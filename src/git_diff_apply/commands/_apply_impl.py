"""Implementation of the git-diff-apply apply command."""

import json
from pathlib import Path
from typing import Optional, Sequence

import click

from git_diff_apply.config import ConfigError, load_config
from git_diff_apply.diff import render_unified_diff
from git_diff_apply.engine import apply
from git_diff_apply.errors import GitDiffApplyError
from git_diff_apply.logger import DiffApplyLogger
from git_diff_apply.models import ChangeSet, Outcome, OutcomeKind

EXIT_SUCCESS = 0
EXIT_ERROR = 1


def run_apply(
    remote_url: Optional[str],
    start_tag: str,
    end_tag: str,
    ignore_conflicts: Optional[bool] = None,
    ignored_files: Sequence[str] = (),
    cwd: str = ".",
    dry_run: bool = False,
    show_diff: bool = False,
    output_format: str = "text",
    verbose: bool = False,
    log_dir: Optional[str] = None,
) -> int:
    """Run the apply command implementation.

    Command-line values override the configuration; ignored files from both
    sources are combined.

    Returns:
        Process exit code (EXIT_SUCCESS/EXIT_ERROR)
    """
    working_copy = Path(cwd).resolve()

    try:
        config = load_config(working_copy)
    except ConfigError as e:
        _echo_error(str(e))
        return EXIT_ERROR

    remote = remote_url or config["remote_url"]
    if not remote:
        _echo_error("No remote URL given. Pass --remote-url or set remote_url in the config.")
        return EXIT_ERROR

    if ignore_conflicts is None:
        ignore_conflicts = config["ignore_conflicts"]

    ignored = list(dict.fromkeys([*(config["ignored_files"] or []), *ignored_files]))

    log_path = log_dir or config["log_dir"]
    logger = DiffApplyLogger(
        level="INFO" if verbose else "WARNING",
        log_dir=Path(log_path) if log_path else None,
    )

    try:
        outcome = apply(
            remote_url=remote,
            start_tag=start_tag,
            end_tag=end_tag,
            ignore_conflicts=ignore_conflicts,
            ignored_files=ignored,
            working_copy_path=working_copy,
            dry_run=dry_run,
            logger=logger,
        )
    except GitDiffApplyError as e:
        logger.error(str(e), error_type=type(e).__name__)
        _echo_error(str(e))
        return EXIT_ERROR

    if outcome.kind is OutcomeKind.NO_OP:
        click.echo(click.style(outcome.message, fg="yellow"), err=True)

    if show_diff and outcome.change_set:
        _show_diff(outcome.change_set)

    if output_format == "json":
        click.echo(json.dumps(outcome.to_dict(), indent=2, ensure_ascii=False))
    elif output_format == "yaml":
        click.echo(outcome.to_yaml(), nl=False)
    elif outcome.kind is not OutcomeKind.NO_OP:
        _print_summary(outcome)

    return EXIT_SUCCESS


def _echo_error(message: str) -> None:
    click.echo(click.style(f"Error: {message}", fg="red"), err=True)


def _show_diff(change_set: ChangeSet) -> None:
    """Show the diff between the two tags."""
    click.echo(click.style(f"Changes from {change_set.start_tag} to {change_set.end_tag}:", fg="cyan"))
    click.echo()

    for line in render_unified_diff(change_set):
        if line.startswith("---") or line.startswith("+++"):
            click.echo(click.style(line, fg="cyan"))
        elif line.startswith("-"):
            click.echo(click.style(line, fg="red"))
        elif line.startswith("+"):
            click.echo(click.style(line, fg="green"))
        else:
            click.echo(line)

    click.echo()


def _get_status_icon(kind: str) -> str:
    icons = {
        "add": "+",
        "modify": "~",
        "delete": "-",
        "rename": ">",
    }
    return icons.get(kind, "?")


def _print_summary(outcome: Outcome) -> None:
    """Print what was (or would be) applied."""
    if outcome.change_set:
        for record in outcome.change_set:
            label = f"{record.old_path} -> {record.path}" if record.old_path else record.path
            conflicted = any(path in outcome.conflicted_paths for path in record.paths())
            flag = " (conflict)" if conflicted else ""
            click.echo(f"  {_get_status_icon(record.kind.value)} {label}{flag}")
        click.echo()

    if outcome.kind is OutcomeKind.CONFLICTED:
        click.echo(click.style(outcome.message, fg="yellow"))
        click.echo("Conflicted files:")
        for path in outcome.conflicted_paths:
            click.echo(click.style(f"  ! {path}", fg="red"))
    else:
        click.echo(click.style(outcome.message, fg="green"))

    if outcome.dry_run:
        click.echo(click.style("Dry run - no changes made.", fg="yellow"))
    elif outcome.kind is OutcomeKind.CONFLICTED:
        click.echo(click.style("\nTip: Resolve the conflict markers, then review and commit.", fg="cyan"))
    else:
        click.echo(click.style("\nTip: Review the changes with 'git status' and commit them.", fg="cyan"))
