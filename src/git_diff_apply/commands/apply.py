"""git-diff-apply apply command - Replay template changes between two tags."""

import sys

import click

from git_diff_apply.commands._apply_impl import run_apply


@click.command("apply")
@click.option("--remote-url", "-r", default=None, help="Template repository URL or path (default: from config).")
@click.option("--start-tag", "-s", required=True, help="Tag the project was generated from.")
@click.option("--end-tag", "-e", required=True, help="Tag to upgrade to.")
@click.option(
    "--ignore-conflicts/--no-ignore-conflicts",
    default=None,
    help="Leave conflict markers in colliding files (default) or fail on any conflict.",
)
@click.option(
    "--ignored-file",
    "-i",
    "ignored_files",
    multiple=True,
    help="Path or glob pattern to leave out of the upgrade. Repeatable.",
)
@click.option(
    "--cwd",
    default=".",
    type=click.Path(exists=True, file_okay=False),
    help="Working copy to upgrade (default: current directory).",
)
@click.option("--dry-run", is_flag=True, help="Show what would change without writing anything.")
@click.option("--diff", "show_diff", is_flag=True, help="Show the diff between the two tags.")
@click.option(
    "--format",
    "output_format",
    default="text",
    type=click.Choice(["text", "yaml", "json"]),
    help="Output format (default: text)",
)
@click.option("--verbose", "-v", is_flag=True, help="Print progress messages.")
@click.option(
    "--log-dir",
    default=None,
    type=click.Path(file_okay=False),
    help="Write JSON logs to this directory.",
)
def apply_command(
    remote_url: str | None,
    start_tag: str,
    end_tag: str,
    ignore_conflicts: bool | None,
    ignored_files: tuple[str, ...],
    cwd: str,
    dry_run: bool,
    show_diff: bool,
    output_format: str,
    verbose: bool,
    log_dir: str | None,
) -> None:
    """Apply the template changes between two tags to the working copy.

    The diff between START_TAG and END_TAG is merged into the working copy.
    Files you edited locally are merged three-way; collisions are left with
    conflict markers for you to resolve. Nothing is committed.

    Exit codes:
      0 - Success (including "nothing to apply" and conflicts left in files)
      1 - Error (dirty working copy, unknown tag, unreachable remote, ...)

    Examples:
        git-diff-apply apply -r https://github.com/org/template -s v1 -e v3
        git-diff-apply apply -s v1 -e v3 -i README.md -i 'docs/*'
        git-diff-apply apply -s v1 -e v3 --no-ignore-conflicts
        git-diff-apply apply -s v1 -e v3 --dry-run --diff
    """
    exit_code = run_apply(
        remote_url=remote_url,
        start_tag=start_tag,
        end_tag=end_tag,
        ignore_conflicts=ignore_conflicts,
        ignored_files=ignored_files,
        cwd=cwd,
        dry_run=dry_run,
        show_diff=show_diff,
        output_format=output_format,
        verbose=verbose,
        log_dir=log_dir,
    )
    sys.exit(exit_code)
