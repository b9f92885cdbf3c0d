"""Unit tests for the command-line interface."""

import io
import json
import sys

import pytest
from click.testing import CliRunner

from annex_remote_runtime.cli import git_annex_remote, main
from annex_remote_runtime.storage.remotes import CONFIG_ENV_VAR


@pytest.fixture(autouse=True)
def isolated_remote_config(monkeypatch, tmp_path):
    """Never read the user's real remote config."""
    monkeypatch.setenv(CONFIG_ENV_VAR, str(tmp_path / "absent.yaml"))


@pytest.fixture
def config_file(tmp_path):
    path = tmp_path / "remotes.yaml"
    path.write_text(
        "remotes:\n"
        "  mydrive:\n"
        "    type: local\n"
        "    root: /mnt/drive\n"
        "  scratch:\n"
        "    type: memory\n"
    )
    return path


class TestServe:
    """Test serving a session on stdio."""

    def test_default_mode_serves_stdio(self):
        result = CliRunner().invoke(main, [], input="GETCOST\n")

        assert result.exit_code == 0
        assert result.stdout.splitlines()[:2] == ["VERSION 1", "COST 200"]

    def test_serve_subcommand(self):
        result = CliRunner().invoke(main, ["serve"], input="GETAVAILABILITY\n")

        assert result.exit_code == 0
        assert "AVAILABILITY GLOBAL" in result.stdout.splitlines()

    def test_fatal_error_exits_nonzero(self):
        result = CliRunner().invoke(main, [], input="FROBNICATE\n")

        assert result.exit_code == 1
        assert (
            "ERROR received unexpected message from git-annex: FROBNICATE"
            in result.stdout.splitlines()
        )

    def test_broken_pipe_exits_nonzero(self, monkeypatch):
        from annex_remote_runtime.transport import stdio_adapter

        async def lost_stdout(*args, **kwargs):
            raise BrokenPipeError(32, "Broken pipe")

        monkeypatch.setattr(stdio_adapter, "run_stdio_adapter", lost_stdout)

        result = CliRunner().invoke(main, [], input="GETCOST\n")

        assert result.exit_code == 1
        assert not isinstance(result.exception, BrokenPipeError)

    def test_initremote_with_configured_remote(self, config_file):
        result = CliRunner().invoke(
            main,
            ["--config", str(config_file)],
            input="INITREMOTE\nVALUE mydrive\nVALUE\nVALUE\nVALUE\nVALUE\n",
        )

        assert result.exit_code == 0
        assert "INITREMOTE-SUCCESS" in result.stdout.splitlines()

    def test_strict_remotes_rejects_backend_strings(self, config_file):
        result = CliRunner().invoke(
            main,
            ["--strict-remotes", "--config", str(config_file)],
            input="INITREMOTE\nVALUE :local:\nVALUE\nVALUE\nVALUE\nVALUE\n",
        )

        assert result.exit_code == 1
        assert "INITREMOTE-FAILURE remote does not exist: :local:" in result.stdout.splitlines()

    def test_git_annex_entry_point(self, monkeypatch):
        stdout = io.BytesIO()
        monkeypatch.setattr(sys, "stdin", io.TextIOWrapper(io.BytesIO(b"GETCOST\n")))
        monkeypatch.setattr(sys, "stdout", io.TextIOWrapper(stdout))

        git_annex_remote()

        assert stdout.getvalue() == b"VERSION 1\nCOST 200\n"


class TestInspection:
    """Test the inspection commands."""

    def test_backends(self):
        result = CliRunner().invoke(main, ["backends"])

        assert result.exit_code == 0
        assert result.output.splitlines() == ["local", "memory"]

    def test_remotes_table(self, config_file):
        result = CliRunner().invoke(main, ["remotes", "--config", str(config_file)])

        assert result.exit_code == 0
        assert "mydrive" in result.output
        assert "/mnt/drive" in result.output
        assert "scratch" in result.output

    def test_remotes_json(self, config_file, monkeypatch):
        monkeypatch.setenv("ANNEX_REMOTE_FROMENV_TYPE", "memory")

        result = CliRunner().invoke(main, ["remotes", "--config", str(config_file), "--json"])

        assert result.exit_code == 0
        remotes = json.loads(result.output)
        assert remotes["mydrive"] == {"type": "local", "root": "/mnt/drive", "description": None}
        assert remotes["fromenv"]["type"] == "memory"

    def test_no_remotes(self, tmp_path):
        result = CliRunner().invoke(main, ["remotes", "--config", str(tmp_path / "none.yaml")])

        assert result.exit_code == 0
        assert "No remotes configured." in result.output

    def test_invalid_config(self, tmp_path):
        path = tmp_path / "remotes.yaml"
        path.write_text("remotes: [unclosed\n")

        result = CliRunner().invoke(main, ["remotes", "--config", str(path)])

        assert result.exit_code == 1
        assert "Error loading remotes" in result.output
