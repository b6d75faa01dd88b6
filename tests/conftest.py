"""
Pytest configuration and fixtures for gooracle tests.
"""

import sys
from pathlib import Path

import pytest

# Add project root to path for all imports
project_root = str(Path(__file__).parent.parent)
if project_root not in sys.path:
    sys.path.insert(0, project_root)

from gooracle.process import ToolResult
from gooracle.verdict import GC, GCCGO, REFERENCE, Verdict, Verdicts


class StubAdapter:
    """Adapter double returning a fixed verdict (or raising) and recording calls."""

    def __init__(self, name, verdict=None, error=None, calls=None):
        self.name = name
        self.verdict = verdict if verdict is not None else Verdict.ok(name)
        self.error = error
        self.calls = calls if calls is not None else []

    def validate(self, data):
        self.calls.append((self.name, data))
        if self.error is not None:
            raise self.error
        return self.verdict


class StubFormatter:
    """Formatter double; echoes the input unless told to fail."""

    def __init__(self, output=None, error=None):
        self.output = output
        self.error = error
        self.calls = []

    def format(self, data):
        self.calls.append(data)
        if self.error is not None:
            raise self.error
        return data if self.output is None else self.output


@pytest.fixture
def stub_adapter():
    """Factory for StubAdapter."""
    return StubAdapter


@pytest.fixture
def stub_formatter():
    """Factory for StubFormatter."""
    return StubFormatter


@pytest.fixture
def make_verdicts():
    """
    Build Verdicts from short outcome strings.

    Each argument is "ok", an error message (invalid) or a Verdict; None
    leaves the arm disabled.
    """
    def _to_verdict(name, value):
        if value is None or isinstance(value, Verdict):
            return value
        if value == "ok":
            return Verdict.ok(name)
        return Verdict.rejected(name, value, exit_code=1)

    def _make(reference="ok", gc="ok", gccgo="ok"):
        return Verdicts(_to_verdict(REFERENCE, reference),
                        gc=_to_verdict(GC, gc),
                        gccgo=_to_verdict(GCCGO, gccgo))

    return _make


@pytest.fixture
def tool_result():
    """Factory for ToolResult as returned by run_tool."""
    def _make(exit_code=0, output="", stdout=b"", argv=None):
        return ToolResult(argv or ["tool"], exit_code, output, stdout)
    return _make


@pytest.fixture
def valid_program():
    return b"package p\n\nfunc f() int { return 1 }\n"


@pytest.fixture
def garbage_input():
    return b"\xff\xfe\x00pack age }}{{"


@pytest.fixture
def sample_config_data(tmp_path):
    """Sample configuration data for testing."""
    return {
        "gc_command": ["go", "tool", "compile", "-o", "/dev/null", "{input}"],
        "gccgo_enabled": False,
        "goarch": "amd64",
        "timeout": 30,
        "parallel_compilers": True,
        "log_file": str(tmp_path / "logs" / "gooracle.log"),
    }
