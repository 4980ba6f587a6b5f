"""git-diff-apply CLI - Keep generated projects in sync with their template."""

import click

from git_diff_apply import __version__
from git_diff_apply.commands.apply import apply_command
from git_diff_apply.commands.init_config import init_config


@click.group()
@click.version_option(version=__version__, prog_name="git-diff-apply")
def cli() -> None:
    """git-diff-apply - Upgrade a project to a newer template tag.

    Computes the diff between two tags of a template repository and merges
    it into the current working copy, leaving conflict markers where your
    edits collide with upstream changes.
    """
    pass


cli.add_command(apply_command)
cli.add_command(init_config)


def main() -> None:
    """Entry point for the CLI."""
    cli()


if __name__ == "__main__":
    main()
