"""git-diff-apply init-config command - Write a default configuration file."""

from pathlib import Path

import click

from git_diff_apply.config import (
    PROJECT_CONFIG_FILENAME,
    get_global_config_dir,
    write_default_config,
)


@click.command("init-config")
@click.option("--global", "global_", is_flag=True, help="Write ~/.config/git-diff-apply/config.yaml instead.")
@click.option("--force", is_flag=True, help="Overwrite an existing configuration file.")
@click.option(
    "--cwd",
    default=".",
    type=click.Path(exists=True, file_okay=False),
    help="Project directory (default: current directory).",
)
def init_config(global_: bool, force: bool, cwd: str) -> None:
    """Write a configuration file with the default settings.

    Without --global the file is written to the project as
    .git-diff-apply.yaml, so remote_url and ignored_files can be committed
    alongside the code.
    """
    if global_:
        config_path = get_global_config_dir() / "config.yaml"
    else:
        config_path = Path(cwd) / PROJECT_CONFIG_FILENAME

    if config_path.exists() and not force:
        click.echo(click.style(f"{config_path} already exists. Use --force to overwrite.", fg="yellow"))
        return

    write_default_config(config_path)
    click.echo(click.style(f"Wrote {config_path}", fg="green"))
