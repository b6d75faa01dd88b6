"""
Tool Invocation

Scoped scratch files and blocking subprocess execution shared by the
front end stages, the compiler adapters and the formatter binding.
"""

import logging
import os
import subprocess
import tempfile
from contextlib import contextmanager
from dataclasses import dataclass
from typing import Iterator, List, Mapping, Optional, Sequence


logger = logging.getLogger("gooracle.process")


class AdapterError(Exception):
    """A tool could not be run at all (missing binary, unwritable scratch dir)"""
    pass


class ToolTimeout(Exception):
    """A tool ran past the configured timeout and was killed"""

    def __init__(self, argv: Sequence[str], timeout: float, output: str = ""):
        super().__init__(f"{argv[0]} timed out after {timeout}s")
        self.argv = list(argv)
        self.timeout = timeout
        self.output = output


@dataclass(frozen=True)
class ToolResult:
    """Exit status and combined stdout/stderr of one tool run"""
    argv: List[str]
    exit_code: int
    output: str
    stdout: bytes = b""

    @property
    def ok(self) -> bool:
        return self.exit_code == 0

    def error_text(self) -> str:
        """Combined output followed by the exit status line"""
        return f"{self.output}\nexit status {self.exit_code}"


@contextmanager
def scratch_file(data: bytes, prefix: str, suffix: str = ".go",
                 directory: Optional[str] = None) -> Iterator[str]:
    """
    Write ``data`` to a fresh file owned by the caller and remove it on exit.

    The file is removed on every exit path, including a failing tool call
    or an exception raised inside the ``with`` block.
    """
    try:
        fd, path = tempfile.mkstemp(prefix=prefix, suffix=suffix, dir=directory)
    except OSError as e:
        raise AdapterError(f"Cannot create scratch file in {directory or tempfile.gettempdir()}: {e}")
    try:
        try:
            with os.fdopen(fd, "wb") as f:
                f.write(data)
        except OSError as e:
            raise AdapterError(f"Cannot write scratch file {path}: {e}")
        logger.debug(f"Wrote {len(data)} bytes to {path}")
        yield path
    finally:
        try:
            os.remove(path)
        except FileNotFoundError:
            pass


def decode(raw: Optional[bytes]) -> str:
    return (raw or b"").decode("utf-8", errors="replace")


def run_tool(argv: Sequence[str], stdin: Optional[bytes] = None,
             cwd: Optional[str] = None, env: Optional[Mapping[str, str]] = None,
             timeout: Optional[float] = None,
             separate_stdout: bool = False) -> ToolResult:
    """
    Run ``argv`` to completion and capture its output.

    Args:
        argv: Command line; argv[0] is looked up on PATH
        stdin: Bytes piped to the process, or None for an empty stdin
        cwd: Working directory
        env: Extra environment variables layered over os.environ
        timeout: Seconds before the process is killed; None blocks forever
        separate_stdout: Keep stdout apart so it can be used as data
            (output then holds stderr only)

    Returns:
        ToolResult with the exit status and decoded output

    Raises:
        AdapterError: the process could not be started
        ToolTimeout: the process outlived ``timeout``
    """
    full_env = None
    if env:
        full_env = dict(os.environ)
        full_env.update(env)

    logger.debug(f"Running: {' '.join(argv)}")
    try:
        proc = subprocess.run(
            list(argv),
            input=stdin if stdin is not None else b"",
            stdout=subprocess.PIPE,
            stderr=subprocess.PIPE if separate_stdout else subprocess.STDOUT,
            cwd=cwd,
            env=full_env,
            timeout=timeout,
        )
    except subprocess.TimeoutExpired as e:
        raise ToolTimeout(argv, timeout, decode(e.stdout))
    except OSError as e:
        raise AdapterError(f"Failed to start {argv[0]}: {e}")

    if separate_stdout:
        return ToolResult(list(argv), proc.returncode, decode(proc.stderr), proc.stdout)
    return ToolResult(list(argv), proc.returncode, decode(proc.stdout))
