"""
Reference Front End Adapter

Drives the reference pipeline (parse, type check, SSA construction) over a
candidate input and reduces it to a single Verdict. Stage failures are
ordinary rejections; a fault inside a stage is reported as a crash.
"""

import logging
import traceback
from typing import Optional, Sequence

from .patterns import GO_PANIC, INTERNAL, REFERENCE_SCRATCH_PREFIX, TIMEOUT
from .process import AdapterError, ToolTimeout, run_tool, scratch_file
from .verdict import REFERENCE, Verdict


class StageError(Exception):
    """A stage rejected the input"""

    def __init__(self, stage: str, message: str, output: str = ""):
        super().__init__(message)
        self.stage = stage
        self.message = message
        self.output = output or message


class StageCrash(Exception):
    """A stage faulted while processing the input"""

    def __init__(self, stage: str, output: str, signature: str = GO_PANIC.name):
        super().__init__(f"{stage} crashed")
        self.stage = stage
        self.output = output
        self.signature = signature


class FrontEndStage:
    """One step of the reference pipeline"""

    name = "stage"

    def run(self, data: bytes, path: str) -> None:
        """
        Process the input.

        Args:
            data: Raw input bytes
            path: Scratch file holding the same bytes

        Raises:
            StageError: the input is invalid at this stage
            StageCrash: the stage itself faulted
        """
        raise NotImplementedError


class ToolStage(FrontEndStage):
    """A stage backed by a Go tool; non-zero exit means rejection"""

    def __init__(self, binary: str, timeout: Optional[float] = None,
                 env: Optional[dict] = None):
        self.binary = binary
        self.timeout = timeout
        self.env = env or {}

    def argv(self, path: str) -> Sequence[str]:
        raise NotImplementedError

    def stdin(self, data: bytes) -> Optional[bytes]:
        return None

    def run(self, data: bytes, path: str) -> None:
        result = run_tool(self.argv(path), stdin=self.stdin(data), env=self.env,
                          timeout=self.timeout, separate_stdout=True)
        if GO_PANIC.search(result.output):
            raise StageCrash(self.name, result.output)
        if not result.ok:
            # the first diagnostic decides the verdict; the rest stays in the report
            first = next((line.strip() for line in result.output.splitlines() if line.strip()), "")
            raise StageError(self.name, first or result.error_text(), result.output.strip())


class ParseStage(ToolStage):
    """Syntax check; gofmt -e reports every syntax error, not only the first ten"""

    name = "parse"

    def __init__(self, binary: str = "gofmt", **kwargs):
        super().__init__(binary, **kwargs)

    def argv(self, path: str) -> Sequence[str]:
        return [self.binary, "-e"]

    def stdin(self, data: bytes) -> Optional[bytes]:
        return data


class CheckStage(ToolStage):
    """
    Type check with go/types; GOARCH selects the size and alignment model.

    gotype has no sizes flag. The default 386 gives 4-byte words and a
    4-byte maximum alignment.
    """

    name = "check"

    def __init__(self, binary: str = "gotype", goarch: str = "386", **kwargs):
        super().__init__(binary, **kwargs)
        self.env.setdefault("GOARCH", goarch)

    def argv(self, path: str) -> Sequence[str]:
        return [self.binary, "-e", path]


class BuildStage(ToolStage):
    """
    SSA construction.

    Build modes: C sanity-checks every function, D records debug info for
    globals, L builds serially and F prints every function, which forces
    lazily built bodies to be materialized. The printed IR is discarded.
    """

    name = "build"

    def __init__(self, binary: str = "ssadump", goarch: str = "386", **kwargs):
        super().__init__(binary, **kwargs)
        self.env.setdefault("GOARCH", goarch)

    def argv(self, path: str) -> Sequence[str]:
        return [self.binary, "-build=CDLF", path]


def default_stages(gofmt: str = "gofmt", gotype: str = "gotype", ssadump: str = "ssadump",
                   goarch: str = "386", timeout: Optional[float] = None):
    return [
        ParseStage(gofmt, timeout=timeout),
        CheckStage(gotype, goarch=goarch, timeout=timeout),
        BuildStage(ssadump, goarch=goarch, timeout=timeout),
    ]


class ReferenceFrontEnd:
    """Adapter producing the reference verdict"""

    name = REFERENCE

    def __init__(self, stages: Optional[Sequence[FrontEndStage]] = None,
                 workdir: Optional[str] = None):
        self.logger = logging.getLogger("gooracle.frontend")
        self.stages = list(stages) if stages is not None else default_stages()
        self.workdir = workdir

    def validate(self, data: bytes) -> Verdict:
        """
        Run every stage in order; the first rejection decides the verdict.

        Raises:
            AdapterError: a stage tool could not be started
        """
        with scratch_file(data, REFERENCE_SCRATCH_PREFIX, directory=self.workdir) as path:
            for stage in self.stages:
                try:
                    stage.run(data, path)
                except StageError as e:
                    self.logger.debug(f"Reference rejected input at {e.stage}: {e.message[:200]}")
                    return Verdict.rejected(REFERENCE, e.message, e.output)
                except StageCrash as e:
                    self.logger.warning(f"Reference stage {e.stage} crashed")
                    return Verdict.crash(REFERENCE, f"{e.stage}: {e}", e.output, e.signature)
                except ToolTimeout as e:
                    self.logger.warning(f"Reference stage {stage.name} hung")
                    return Verdict.crash(REFERENCE, f"{stage.name}: {e}", e.output, TIMEOUT)
                except AdapterError:
                    raise
                except Exception as e:
                    self.logger.error(f"Unexpected fault in reference stage {stage.name}: {e}")
                    return Verdict.crash(REFERENCE, f"{stage.name}: {e!r}",
                                         traceback.format_exc(), INTERNAL)
        self.logger.debug("Reference accepted input")
        return Verdict.ok(REFERENCE)
