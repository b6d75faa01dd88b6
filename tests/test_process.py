"""
Tests for gooracle/process.py - scratch files and subprocess execution.
"""

import errno
import os
import subprocess
import sys
from unittest.mock import patch

import pytest

from gooracle.process import (
    AdapterError,
    ToolResult,
    ToolTimeout,
    decode,
    run_tool,
    scratch_file,
)


class FullDisk:
    """File object double whose writes fail like a full disk"""

    def __init__(self, fd, mode):
        os.close(fd)

    def __enter__(self):
        return self

    def __exit__(self, *exc):
        return False

    def write(self, data):
        raise OSError(errno.ENOSPC, "No space left on device")


class TestScratchFile:
    """Tests for the scoped scratch file."""

    def test_written_and_removed(self, tmp_path):
        with scratch_file(b"package p\n", "fuzz.gc", directory=str(tmp_path)) as path:
            assert os.path.exists(path)
            assert os.path.basename(path).startswith("fuzz.gc")
            assert path.endswith(".go")
            with open(path, "rb") as f:
                assert f.read() == b"package p\n"
        assert not os.path.exists(path)
        assert list(tmp_path.iterdir()) == []

    def test_removed_on_exception(self, tmp_path):
        with pytest.raises(RuntimeError):
            with scratch_file(b"x", "fuzz.gc", directory=str(tmp_path)) as path:
                raise RuntimeError("tool failed")
        assert not os.path.exists(path)

    def test_tolerates_file_already_removed(self, tmp_path):
        with scratch_file(b"x", "fuzz.gc", directory=str(tmp_path)) as path:
            os.remove(path)

    def test_unwritable_directory(self, tmp_path):
        missing = str(tmp_path / "does-not-exist")
        with pytest.raises(AdapterError):
            with scratch_file(b"x", "fuzz.gc", directory=missing):
                pass

    def test_write_failure_is_adapter_error(self, tmp_path):
        with patch("gooracle.process.os.fdopen", FullDisk):
            with pytest.raises(AdapterError) as exc_info:
                with scratch_file(b"package p", "fuzz.gc", directory=str(tmp_path)):
                    pytest.fail("body must not run")
        assert "No space left on device" in str(exc_info.value)
        assert list(tmp_path.iterdir()) == []

    def test_unique_per_call(self, tmp_path):
        with scratch_file(b"a", "fuzz.gc", directory=str(tmp_path)) as a:
            with scratch_file(b"b", "fuzz.gc", directory=str(tmp_path)) as b:
                assert a != b


class TestToolResult:
    """Tests for ToolResult."""

    def test_error_text(self):
        result = ToolResult(["go"], 2, "x.go:1: syntax error")
        assert not result.ok
        assert result.error_text() == "x.go:1: syntax error\nexit status 2"

    def test_ok(self):
        assert ToolResult(["go"], 0, "").ok

    def test_decode_replaces_invalid_bytes(self):
        assert decode(b"a\xffb") == "a\ufffdb"
        assert decode(None) == ""


class TestRunTool:
    """Tests for run_tool with subprocess mocked."""

    @patch("gooracle.process.subprocess.run")
    def test_combined_output(self, mock_run):
        mock_run.return_value = subprocess.CompletedProcess(["gofmt"], 1, stdout=b"err\n")
        result = run_tool(["gofmt", "-e"], stdin=b"package")

        assert result.exit_code == 1
        assert result.output == "err\n"
        kwargs = mock_run.call_args.kwargs
        assert kwargs["input"] == b"package"
        assert kwargs["stderr"] == subprocess.STDOUT
        assert kwargs["env"] is None
        assert kwargs["timeout"] is None

    @patch("gooracle.process.subprocess.run")
    def test_empty_stdin_by_default(self, mock_run):
        mock_run.return_value = subprocess.CompletedProcess(["go"], 0, stdout=b"")
        run_tool(["go", "version"])
        assert mock_run.call_args.kwargs["input"] == b""

    @patch("gooracle.process.subprocess.run")
    def test_separate_stdout(self, mock_run):
        mock_run.return_value = subprocess.CompletedProcess(
            ["gofmt"], 0, stdout=b"package p\n", stderr=b"warning\n")
        result = run_tool(["gofmt"], stdin=b"package  p", separate_stdout=True)

        assert result.stdout == b"package p\n"
        assert result.output == "warning\n"
        assert mock_run.call_args.kwargs["stderr"] == subprocess.PIPE

    @patch("gooracle.process.subprocess.run")
    def test_env_layered_over_environment(self, mock_run, monkeypatch):
        monkeypatch.setenv("GOORACLE_TEST_VAR", "1")
        mock_run.return_value = subprocess.CompletedProcess(["gotype"], 0, stdout=b"")
        run_tool(["gotype"], env={"GOARCH": "386"})

        env = mock_run.call_args.kwargs["env"]
        assert env["GOARCH"] == "386"
        assert env["GOORACLE_TEST_VAR"] == "1"

    @patch("gooracle.process.subprocess.run")
    def test_timeout(self, mock_run):
        mock_run.side_effect = subprocess.TimeoutExpired(["go1"], 5, output=b"partial")
        with pytest.raises(ToolTimeout) as exc_info:
            run_tool(["go1"], timeout=5)
        assert exc_info.value.output == "partial"
        assert exc_info.value.timeout == 5
        assert "go1" in str(exc_info.value)

    @patch("gooracle.process.subprocess.run")
    def test_missing_binary(self, mock_run):
        mock_run.side_effect = FileNotFoundError("no such file: go1")
        with pytest.raises(AdapterError, match="go1"):
            run_tool(["go1"])

    def test_real_process_roundtrip(self):
        """Runs an actual child process through stdin and stdout"""
        argv = [sys.executable, "-c", "import sys; sys.stdout.write(sys.stdin.read().upper())"]
        result = run_tool(argv, stdin=b"package p", separate_stdout=True)
        assert result.ok
        assert result.stdout == b"PACKAGE P"
