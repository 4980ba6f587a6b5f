"""Tests for git-diff-apply CLI."""

import json

import pytest
import yaml
from click.testing import CliRunner

from git_diff_apply.cli import cli
from repo_helpers import commit_all, expected_v3_tree, git, read_tree, write_files


@pytest.fixture
def runner():
    """Create a CLI runner."""
    return CliRunner()


class TestCLI:
    """Test main CLI commands."""

    def test_help(self, runner):
        result = runner.invoke(cli, ["--help"])
        assert result.exit_code == 0
        assert "Upgrade a project to a newer template tag" in result.output

    def test_version(self, runner):
        result = runner.invoke(cli, ["--version"])
        assert result.exit_code == 0
        assert "git-diff-apply, version" in result.output

    def test_apply_help(self, runner):
        result = runner.invoke(cli, ["apply", "--help"])
        assert result.exit_code == 0
        assert "--start-tag" in result.output
        assert "--ignored-file" in result.output


class TestApplyCommand:
    """Test git-diff-apply apply."""

    def _invoke(self, runner, remote, local, *extra):
        return runner.invoke(
            cli,
            ["apply", "-r", str(remote), "--cwd", str(local), *extra],
        )

    def test_clean_apply(self, runner, remote_repo, make_local):
        local = make_local()

        result = self._invoke(runner, remote_repo, local, "-s", "v1", "-e", "v3")

        assert result.exit_code == 0
        assert "Applied 6 changes cleanly" in result.stdout
        assert "~ changed.txt" in result.stdout
        assert read_tree(local) == expected_v3_tree()

    def test_dirty_working_copy(self, runner, remote_repo, make_local):
        local = make_local(dirty={"changed.txt": "uncommitted\n"})

        result = self._invoke(runner, remote_repo, local, "-s", "v1", "-e", "v3")

        assert result.exit_code == 1
        assert "You must start with a clean working directory" in result.stderr
        assert "Traceback" not in result.output

    def test_tags_match(self, runner, remote_repo, make_local):
        local = make_local()

        result = self._invoke(runner, remote_repo, local, "-s", "v3", "-e", "v3")

        assert result.exit_code == 0
        assert "Tags match, nothing to apply" in result.stderr
        assert git(local, "status", "--porcelain") == ""

    def test_unknown_tag(self, runner, remote_repo, make_local):
        local = make_local()

        result = self._invoke(runner, remote_repo, local, "-s", "v1", "-e", "v9")

        assert result.exit_code == 1
        assert "v9" in result.stderr

    def test_ignored_file(self, runner, remote_repo, make_local):
        local = make_local()

        result = self._invoke(
            runner, remote_repo, local, "-s", "v1", "-e", "v3", "-i", "ignored-changed.txt"
        )

        assert result.exit_code == 0
        assert (local / "ignored-changed.txt").read_text() == "one\n"

    def test_conflicts_exit_zero(self, runner, remote_repo, make_local):
        local = make_local(local_edits={"changed.txt": "one\nlocal\n"})

        result = self._invoke(runner, remote_repo, local, "-s", "v1", "-e", "v3")

        assert result.exit_code == 0
        assert "! changed.txt" in result.stdout
        assert "<<<<<<< HEAD" in (local / "changed.txt").read_text()

    def test_directory_collision_reported(self, runner, remote_repo, make_local):
        local = make_local(local_edits={"added.txt/keep.txt": "mine\n"})

        result = self._invoke(runner, remote_repo, local, "-s", "v1", "-e", "v3")

        assert result.exit_code == 0
        assert "! added.txt" in result.stdout
        assert "Traceback" not in result.output

    def test_config_string_boolean_rejected(self, runner, remote_repo, make_local):
        local = make_local()
        write_files(local, {".git-diff-apply.yaml": 'ignore_conflicts: "false"\n'})
        commit_all(local, "quoted boolean")

        result = self._invoke(runner, remote_repo, local, "-s", "v1", "-e", "v3")

        assert result.exit_code == 1
        assert "ignore_conflicts must be true or false" in result.stderr

    def test_no_ignore_conflicts(self, runner, remote_repo, make_local):
        local = make_local(local_edits={"changed.txt": "one\nlocal\n"})

        result = self._invoke(
            runner, remote_repo, local, "-s", "v1", "-e", "v3", "--no-ignore-conflicts"
        )

        assert result.exit_code == 1
        assert "changed.txt" in result.stderr
        assert git(local, "status", "--porcelain") == ""

    def test_json_format(self, runner, remote_repo, make_local):
        local = make_local()

        result = self._invoke(runner, remote_repo, local, "-s", "v1", "-e", "v3", "--format", "json")

        assert result.exit_code == 0
        data = json.loads(result.stdout)
        assert data["kind"] == "clean"
        assert data["conflicted_paths"] == []
        assert "added.txt" in data["changed_paths"]

    def test_yaml_format_dry_run(self, runner, remote_repo, make_local):
        local = make_local()
        before = read_tree(local)

        result = self._invoke(
            runner, remote_repo, local, "-s", "v1", "-e", "v3", "--format", "yaml", "--dry-run"
        )

        assert result.exit_code == 0
        data = yaml.safe_load(result.stdout)
        assert data["dry_run"] is True
        assert read_tree(local) == before

    def test_show_diff(self, runner, remote_repo, make_local):
        local = make_local()

        result = self._invoke(runner, remote_repo, local, "-s", "v1", "-e", "v3", "--diff", "--dry-run")

        assert result.exit_code == 0
        assert "--- a/changed.txt" in result.stdout
        assert "+three" in result.stdout

    def test_missing_remote(self, runner, make_local):
        local = make_local()

        result = runner.invoke(cli, ["apply", "--cwd", str(local), "-s", "v1", "-e", "v3"])

        assert result.exit_code == 1
        assert "No remote URL given" in result.stderr

    def test_remote_from_project_config(self, runner, remote_repo, make_local):
        local = make_local()
        write_files(local, {".git-diff-apply.yaml": f"remote_url: {remote_repo}\nignored_files:\n  - added.txt\n"})
        commit_all(local, "configure upgrades")

        result = runner.invoke(cli, ["apply", "--cwd", str(local), "-s", "v1", "-e", "v3"])

        assert result.exit_code == 0
        assert (local / "changed.txt").read_text() == "one\ntwo\nthree\n"
        assert not (local / "added.txt").exists()

    def test_invalid_config(self, runner, remote_repo, make_local):
        local = make_local()
        write_files(local, {".git-diff-apply.yaml": "ignored_files: README.md\n"})
        commit_all(local, "bad config")

        result = self._invoke(runner, remote_repo, local, "-s", "v1", "-e", "v3")

        assert result.exit_code == 1
        assert "ignored_files must be a list" in result.stderr

    def test_log_dir(self, runner, remote_repo, make_local, tmp_path):
        local = make_local()
        log_dir = tmp_path / "logs"

        result = self._invoke(
            runner, remote_repo, local, "-s", "v1", "-e", "v3", "--log-dir", str(log_dir)
        )

        assert result.exit_code == 0
        assert list(log_dir.glob("git-diff-apply-*.log"))


class TestInitConfigCommand:
    """Test git-diff-apply init-config."""

    def test_writes_project_config(self, runner, tmp_path):
        result = runner.invoke(cli, ["init-config", "--cwd", str(tmp_path)])

        assert result.exit_code == 0
        config = yaml.safe_load((tmp_path / ".git-diff-apply.yaml").read_text())
        assert config["ignore_conflicts"] is True

    def test_does_not_overwrite(self, runner, tmp_path):
        (tmp_path / ".git-diff-apply.yaml").write_text("remote_url: keep\n")

        result = runner.invoke(cli, ["init-config", "--cwd", str(tmp_path)])

        assert result.exit_code == 0
        assert "already exists" in result.output
        assert (tmp_path / ".git-diff-apply.yaml").read_text() == "remote_url: keep\n"

    def test_force_overwrites(self, runner, tmp_path):
        (tmp_path / ".git-diff-apply.yaml").write_text("remote_url: keep\n")

        result = runner.invoke(cli, ["init-config", "--cwd", str(tmp_path), "--force"])

        assert result.exit_code == 0
        assert "keep" not in (tmp_path / ".git-diff-apply.yaml").read_text()

    def test_global(self, runner, isolated_home):
        result = runner.invoke(cli, ["init-config", "--global"])

        assert result.exit_code == 0
        assert (isolated_home / ".config" / "git-diff-apply" / "config.yaml").exists()
