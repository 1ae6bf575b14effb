"""
Tests for the compile command seam.
"""

from pathlib import Path
from unittest.mock import patch

import pytest

from wfspec.runtime.commands import CommandResult
from wfspec.runtime.compiler import CommandCompiler, lock_file_path
from wfspec.spec.errors import CollectionError, CommandError


class TestLockFilePath:
    """Tests for lock_file_path."""

    def test_markdown(self):
        assert lock_file_path("workflows/ci.md") == Path("workflows/ci.lock.yml")

    def test_other_suffix(self):
        assert lock_file_path("workflows/ci") == Path("workflows/ci.lock.yml")


class TestCommandCompiler:
    """Tests for CommandCompiler."""

    def test_default_command_from_config(self, tmp_path):
        workflow = tmp_path / "ci.md"
        ok = CommandResult(args=[], returncode=0, stdout=b"", stderr=b"")
        with patch("wfspec.runtime.compiler.run_command", return_value=ok) as mock_run:
            CommandCompiler().compile(workflow)
        assert mock_run.call_args.args[0] == ["gh", "aw", "compile", str(workflow)]
        assert mock_run.call_args.kwargs["cwd"] == tmp_path

    def test_custom_command(self, tmp_path):
        workflow = tmp_path / "ci.md"
        ok = CommandResult(args=[], returncode=0, stdout=b"", stderr=b"")
        with patch("wfspec.runtime.compiler.run_command", return_value=ok) as mock_run:
            CommandCompiler(["my-compiler", "--strict"]).compile(workflow)
        assert mock_run.call_args.args[0] == ["my-compiler", "--strict", str(workflow)]

    def test_failure_becomes_collection_error(self, tmp_path):
        error = CommandError(["gh", "aw", "compile"], 1, "error: unknown engine")
        with patch("wfspec.runtime.compiler.run_command", side_effect=error):
            with pytest.raises(CollectionError, match="unknown engine"):
                CommandCompiler().compile(tmp_path / "ci.md")
