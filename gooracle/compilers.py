"""
External Compiler Adapters

Run a compiler binary on a candidate input and reduce its exit status and
combined output to a Verdict.
"""

import logging
import os
from typing import List, Optional, Sequence

from .patterns import (
    GC_SCRATCH_PREFIX,
    GCCGO_SCRATCH_PREFIX,
    TIMEOUT,
    crash_class,
)
from .process import ToolTimeout, run_tool, scratch_file
from .verdict import GC, GCCGO, Verdict

INPUT_TOKEN = "{input}"

DEFAULT_GC_COMMAND = ["go", "tool", "compile", "-p", "p", "-o", os.devnull, INPUT_TOKEN]
DEFAULT_GCCGO_COMMAND = ["go1", "-", "-o", os.devnull, "-quiet",
                         "-mtune=generic", "-march=x86-64", "-O3"]


class CompilerTarget:
    """One compiler implementation taking part in the comparison"""

    def __init__(self, name: str, command: Sequence[str], crash_classes: Sequence[str],
                 scratch_prefix: str, enabled: bool = True):
        """
        Args:
            name: Implementation name used in verdicts and rules
            command: argv; the token ``{input}`` is replaced by the scratch
                file path, without it the input is piped on stdin
            crash_classes: Pattern library crash classes that mark the
                output of a failed run as a crash
            scratch_prefix: File name prefix for the scratch input
            enabled: Whether this arm takes part in evaluations
        """
        if not command:
            raise ValueError(f"Empty command for compiler '{name}'")
        self.name = name
        self.command = list(command)
        self.crash_classes = tuple(crash_classes)
        self.scratch_prefix = scratch_prefix
        self.enabled = enabled

    @property
    def reads_stdin(self) -> bool:
        return INPUT_TOKEN not in self.command

    def argv(self, path: Optional[str] = None) -> List[str]:
        if self.reads_stdin:
            return list(self.command)
        return [path if arg == INPUT_TOKEN else arg for arg in self.command]

    def __repr__(self):
        return f"CompilerTarget({self.name}, {' '.join(self.command)})"


def gc_target(command: Optional[Sequence[str]] = None, enabled: bool = True) -> CompilerTarget:
    return CompilerTarget(GC, command or DEFAULT_GC_COMMAND, ("gc_ice",),
                          GC_SCRATCH_PREFIX, enabled)


def gccgo_target(command: Optional[Sequence[str]] = None, enabled: bool = True) -> CompilerTarget:
    return CompilerTarget(GCCGO, command or DEFAULT_GCCGO_COMMAND, ("gccgo_ice", "asan"),
                          GCCGO_SCRATCH_PREFIX, enabled)


class ExternalCompiler:
    """
    Adapter validating inputs with one external compiler.

    The input is always written to a scratch file owned by the call, even
    when the compiler reads stdin, so every run has the same cleanup path.
    """

    def __init__(self, target: CompilerTarget, workdir: Optional[str] = None,
                 timeout: Optional[float] = None):
        self.target = target
        self.workdir = workdir
        self.timeout = timeout
        self.logger = logging.getLogger(f"gooracle.compilers.{target.name}")

    @property
    def name(self) -> str:
        return self.target.name

    def validate(self, data: bytes) -> Verdict:
        """
        Compile ``data`` and classify the run.

        Raises:
            AdapterError: the compiler could not be started
        """
        with scratch_file(data, self.target.scratch_prefix, directory=self.workdir) as path:
            argv = self.target.argv(path)
            stdin = data if self.target.reads_stdin else None
            try:
                result = run_tool(argv, stdin=stdin, cwd=self.workdir, timeout=self.timeout)
            except ToolTimeout as e:
                self.logger.warning(f"{self.name} hung on input ({len(data)} bytes)")
                return Verdict.crash(self.name, str(e), e.output, TIMEOUT)

        if result.ok:
            self.logger.debug(f"{self.name} accepted input")
            return Verdict.ok(self.name)

        message = result.error_text()
        signature = crash_class(message, self.target.crash_classes)
        if signature:
            self.logger.info(f"{self.name} crashed ({signature}), exit status {result.exit_code}")
            return Verdict.crash(self.name, message, result.output, signature, result.exit_code)

        self.logger.debug(f"{self.name} rejected input, exit status {result.exit_code}")
        return Verdict.rejected(self.name, message, result.output, result.exit_code)
