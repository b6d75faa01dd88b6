"""
Verdict Types

Normalized results of one implementation's attempt to validate an input,
and the final result of one oracle evaluation.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, Iterator, Optional, Tuple


REFERENCE = "reference"
GC = "gc"
GCCGO = "gccgo"

# Order in which crashed verdicts are examined and reports are printed
IMPLEMENTATIONS = (GC, GCCGO, REFERENCE)


class Outcome(Enum):
    """What one implementation concluded about an input"""
    VALID = "valid"
    INVALID = "invalid"
    CRASHED = "crashed"


class Status(Enum):
    """Final oracle status handed back to the fuzzing engine"""
    PASS = "pass"      # agreed valid, formatter round-trip ok
    SKIP = "skip"      # pre-filtered, suppressed or agreed invalid
    FAIL = "fail"      # infrastructure problem; record, keep fuzzing
    FATAL = "fatal"    # unexplained crash, disagreement or formatter defect


@dataclass(frozen=True)
class Verdict:
    """Result of running one implementation on one input"""
    implementation: str
    outcome: Outcome
    message: str = ""
    output: str = ""
    exit_code: Optional[int] = None
    signature: Optional[str] = None  # crash class name when CRASHED

    @property
    def valid(self) -> bool:
        return self.outcome is Outcome.VALID

    @property
    def invalid(self) -> bool:
        return self.outcome is Outcome.INVALID

    @property
    def crashed(self) -> bool:
        return self.outcome is Outcome.CRASHED

    @classmethod
    def ok(cls, implementation: str) -> "Verdict":
        return cls(implementation, Outcome.VALID, exit_code=0)

    @classmethod
    def rejected(cls, implementation: str, message: str, output: str = "",
                 exit_code: Optional[int] = None) -> "Verdict":
        return cls(implementation, Outcome.INVALID, message=message,
                   output=output or message, exit_code=exit_code)

    @classmethod
    def crash(cls, implementation: str, message: str, output: str,
              signature: str, exit_code: Optional[int] = None) -> "Verdict":
        return cls(implementation, Outcome.CRASHED, message=message,
                   output=output, exit_code=exit_code, signature=signature)


@dataclass(frozen=True)
class Verdicts:
    """
    The verdicts handed to the classifier for one input.

    ``gc`` or ``gccgo`` is None when that comparison arm is disabled.
    """
    reference: Verdict
    gc: Optional[Verdict] = None
    gccgo: Optional[Verdict] = None

    def get(self, implementation: str) -> Optional[Verdict]:
        return getattr(self, implementation)

    def present(self) -> Iterator[Verdict]:
        """Yield the verdicts of enabled arms in reporting order"""
        for name in IMPLEMENTATIONS:
            verdict = self.get(name)
            if verdict is not None:
                yield verdict

    def validity(self) -> Tuple[bool, ...]:
        return tuple(v.valid for v in self.present())

    def agree(self) -> bool:
        return len(set(self.validity())) <= 1


@dataclass(frozen=True)
class OracleResult:
    """Result of evaluating one candidate input"""
    status: Status
    reason: str = ""
    rule: Optional[str] = None
    verdicts: Optional[Verdicts] = None
    report: Optional[str] = None
    details: Dict[str, str] = field(default_factory=dict)

    @property
    def priority(self) -> int:
        """go-fuzz style return value: 1 promotes the input in the corpus"""
        return 1 if self.status is Status.PASS else 0

    @property
    def fatal(self) -> bool:
        return self.status is Status.FATAL
