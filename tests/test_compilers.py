"""
Tests for gooracle/compilers.py - external compiler adapters.
"""

import os
from unittest.mock import patch

import pytest

from gooracle.compilers import (
    DEFAULT_GC_COMMAND,
    INPUT_TOKEN,
    CompilerTarget,
    ExternalCompiler,
    gc_target,
    gccgo_target,
)
from gooracle.patterns import TIMEOUT
from gooracle.process import AdapterError, ToolResult, ToolTimeout
from gooracle.verdict import GC, GCCGO, Outcome


class TestCompilerTarget:
    """Tests for CompilerTarget."""

    def test_gc_takes_input_path(self):
        target = gc_target()
        assert target.name == GC
        assert not target.reads_stdin
        argv = target.argv("/tmp/fuzz.gc1.go")
        assert argv[-1] == "/tmp/fuzz.gc1.go"
        assert INPUT_TOKEN not in argv
        assert target.command == DEFAULT_GC_COMMAND

    def test_gccgo_reads_stdin(self):
        target = gccgo_target()
        assert target.name == GCCGO
        assert target.reads_stdin
        assert target.argv("/tmp/ignored.go")[:2] == ["go1", "-"]
        assert "-O3" in target.argv()

    def test_custom_command(self):
        target = gc_target(["gc-wrapper", INPUT_TOKEN, "-v"], enabled=False)
        assert target.argv("in.go") == ["gc-wrapper", "in.go", "-v"]
        assert not target.enabled

    def test_empty_command(self):
        with pytest.raises(ValueError):
            CompilerTarget("gc", [], ("gc_ice",), "fuzz.gc")

    def test_crash_classes(self):
        assert gc_target().crash_classes == ("gc_ice",)
        assert gccgo_target().crash_classes == ("gccgo_ice", "asan")


class TestExternalCompiler:
    """Tests for ExternalCompiler.validate with run_tool mocked."""

    @patch("gooracle.compilers.run_tool")
    def test_exit_zero_is_valid(self, mock_run, tmp_path):
        seen = {}

        def fake_run(argv, stdin=None, cwd=None, timeout=None):
            path = argv[-1]
            seen["path"] = path
            with open(path, "rb") as f:
                seen["contents"] = f.read()
            seen["stdin"] = stdin
            return ToolResult(argv, 0, "")

        mock_run.side_effect = fake_run
        compiler = ExternalCompiler(gc_target(), workdir=str(tmp_path))
        verdict = compiler.validate(b"package p\n")

        assert verdict.outcome is Outcome.VALID
        assert verdict.implementation == GC
        assert seen["contents"] == b"package p\n"
        assert seen["stdin"] is None
        assert os.path.basename(seen["path"]).startswith("fuzz.gc")
        assert not os.path.exists(seen["path"])

    @patch("gooracle.compilers.run_tool")
    def test_stdin_compiler_gets_data(self, mock_run, tmp_path):
        mock_run.return_value = ToolResult(["go1"], 0, "")
        ExternalCompiler(gccgo_target(), workdir=str(tmp_path)).validate(b"package p\n")

        assert mock_run.call_args.kwargs["stdin"] == b"package p\n"
        assert mock_run.call_args.kwargs["cwd"] == str(tmp_path)
        assert list(tmp_path.iterdir()) == []

    @patch("gooracle.compilers.run_tool")
    def test_nonzero_exit_is_invalid(self, mock_run):
        mock_run.return_value = ToolResult(["go"], 1, "x.go:1: syntax error: unexpected }")
        verdict = ExternalCompiler(gc_target()).validate(b"}")

        assert verdict.outcome is Outcome.INVALID
        assert verdict.message == "x.go:1: syntax error: unexpected }\nexit status 1"
        assert verdict.output == "x.go:1: syntax error: unexpected }"
        assert verdict.exit_code == 1

    @patch("gooracle.compilers.run_tool")
    def test_gc_internal_compiler_error(self, mock_run):
        def fake_run(argv, stdin=None, cwd=None, timeout=None):
            return ToolResult(argv, 2, f"{argv[-1]}:3: internal compiler error: out of fixed registers\n")

        mock_run.side_effect = fake_run
        verdict = ExternalCompiler(gc_target()).validate(b"package p")

        assert verdict.outcome is Outcome.CRASHED
        assert verdict.signature == "gc_ice"
        assert "out of fixed registers" in verdict.message

    @patch("gooracle.compilers.run_tool")
    def test_quoted_ice_text_is_not_a_crash(self, mock_run):
        mock_run.return_value = ToolResult(
            ["go"], 1, 'prog.go:1: invalid string "x.go:1: internal compiler error: y"')
        verdict = ExternalCompiler(gc_target()).validate(b"package p")
        assert verdict.outcome is Outcome.INVALID

    @patch("gooracle.compilers.run_tool")
    def test_gccgo_internal_compiler_error(self, mock_run):
        mock_run.return_value = ToolResult(
            ["go1"], 1, "go1: internal compiler error: in methods, at go/gofrontend/types.cc:9999\n")
        verdict = ExternalCompiler(gccgo_target()).validate(b"package p")
        assert verdict.outcome is Outcome.CRASHED
        assert verdict.signature == "gccgo_ice"

    @patch("gooracle.compilers.run_tool")
    def test_gccgo_asan(self, mock_run):
        mock_run.return_value = ToolResult(
            ["go1"], 1, "==99==ERROR: AddressSanitizer: heap-buffer-overflow on address 0x1\n")
        verdict = ExternalCompiler(gccgo_target()).validate(b"package p")
        assert verdict.signature == "asan"

    @patch("gooracle.compilers.run_tool")
    def test_other_compilers_crash_class_not_used(self, mock_run):
        mock_run.return_value = ToolResult(["go"], 1, "go1: internal compiler error: in methods")
        verdict = ExternalCompiler(gc_target()).validate(b"package p")
        assert verdict.outcome is Outcome.INVALID

    @patch("gooracle.compilers.run_tool")
    def test_timeout_is_crash(self, mock_run, tmp_path):
        mock_run.side_effect = ToolTimeout(["go1"], 10, "partial")
        verdict = ExternalCompiler(gccgo_target(), workdir=str(tmp_path), timeout=10).validate(b"x")

        assert verdict.outcome is Outcome.CRASHED
        assert verdict.signature == TIMEOUT
        assert verdict.output == "partial"
        assert mock_run.call_args.kwargs["timeout"] == 10
        assert list(tmp_path.iterdir()) == []

    @patch("gooracle.compilers.run_tool")
    def test_adapter_error_propagates(self, mock_run, tmp_path):
        mock_run.side_effect = AdapterError("Failed to start go1")
        with pytest.raises(AdapterError):
            ExternalCompiler(gccgo_target(), workdir=str(tmp_path)).validate(b"x")
        assert list(tmp_path.iterdir()) == []
