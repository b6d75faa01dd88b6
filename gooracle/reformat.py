"""
Reformat Round-Trip Check

Runs inputs that every implementation accepted through gofmt. A valid
program gofmt cannot format is a formatter defect; optionally the formatted
program is validated again to catch formatting that changes its meaning.
"""

import logging
from dataclasses import dataclass
from typing import Callable, Optional

from .patterns import FORMAT_BYPASS, first_match
from .process import ToolTimeout, run_tool
from .verdict import Verdict


class FormatError(Exception):
    """gofmt rejected or failed on the input"""

    def __init__(self, message: str, output: str = ""):
        super().__init__(message)
        self.output = output


class Formatter:
    """Binding for ``format(bytes) -> bytes`` backed by the gofmt binary"""

    def __init__(self, binary: str = "gofmt", timeout: Optional[float] = None):
        self.binary = binary
        self.timeout = timeout

    def format(self, data: bytes) -> bytes:
        """
        Raises:
            FormatError: gofmt failed on ``data``
            AdapterError: gofmt could not be started
        """
        try:
            result = run_tool([self.binary], stdin=data, timeout=self.timeout,
                              separate_stdout=True)
        except ToolTimeout as e:
            raise FormatError(str(e), e.output)
        if not result.ok:
            raise FormatError(f"{self.binary} failed: exit status {result.exit_code}",
                              result.output)
        return result.stdout


@dataclass(frozen=True)
class ReformatOutcome:
    ok: bool
    reason: str
    rule: Optional[str] = None
    formatted: Optional[bytes] = None
    output: str = ""


class ReformatCheck:
    """Formatter round trip for inputs already agreed valid"""

    def __init__(self, formatter: Optional[Formatter] = None,
                 revalidate: Optional[Callable[[bytes], Verdict]] = None):
        """
        Args:
            formatter: gofmt binding
            revalidate: When given, the formatted program must be accepted
                by this validator (usually the reference adapter)
        """
        self.logger = logging.getLogger("gooracle.reformat")
        self.formatter = formatter or Formatter()
        self.revalidate = revalidate

    def check(self, data: bytes) -> ReformatOutcome:
        bypass = first_match(FORMAT_BYPASS, data)
        if bypass is not None:
            # gofmt moves these comments around (issue 11274)
            return ReformatOutcome(True, "formatter bypassed", bypass.name)

        data = data.replace(b"\r", b" ")
        try:
            formatted = self.formatter.format(data)
        except FormatError as e:
            self.logger.error(f"Formatter failed on valid input: {e}")
            return ReformatOutcome(False, f"formatter failed on valid input: {e}",
                                   output=e.output)

        if self.revalidate is not None:
            verdict = self.revalidate(formatted)
            if not verdict.valid:
                self.logger.error("Program became invalid after gofmt")
                return ReformatOutcome(False, "program became invalid after gofmt",
                                       formatted=formatted, output=verdict.message)

        return ReformatOutcome(True, "formatter round trip ok", formatted=formatted)
