"""
Crash Report Parser

Extracts structured information from a crashed verdict's output (gc and
gccgo internal compiler errors, AddressSanitizer reports, Go panics in the
reference tools) and derives a short signature for grouping findings.
"""

import hashlib
import logging
import re
from dataclasses import dataclass, field
from typing import Dict, List, Optional

from .verdict import Verdict


logger = logging.getLogger("gooracle.crashes")

DEFAULT_DEPTH = 5


@dataclass
class CrashReport:
    """Structured view of one crash"""
    implementation: str
    crash_class: str
    error_message: str = ""
    location: Optional[str] = None  # file:line of the faulting code, when reported
    backtrace: List[Dict] = field(default_factory=list)

    def signature(self, depth: int = DEFAULT_DEPTH) -> str:
        """Short hash of crash class, message head, location and top frames"""
        parts = [self.implementation, self.crash_class, _normalize_message(self.error_message)]
        if self.location:
            parts.append(_basename(self.location))
        for frame in self.backtrace[:depth]:
            parts.append(f"{frame.get('function', '??')}@{_basename(frame.get('file') or '??')}")
        return hashlib.sha256("|".join(parts).encode("utf-8")).hexdigest()[:16]

    def to_dict(self) -> dict:
        return {
            "implementation": self.implementation,
            "crash_class": self.crash_class,
            "error_message": self.error_message,
            "location": self.location,
            "backtrace": self.backtrace,
            "signature": self.signature(),
        }


def _basename(path: str) -> str:
    path = re.sub(r":\d+(:\d+)?$", "", path)
    return path.rsplit("/", 1)[-1]


def _normalize_message(message: str) -> str:
    """Drop addresses and numbers that vary between otherwise identical crashes"""
    message = re.sub(r"0x[0-9a-fA-F]+", "ADDR", message)
    return re.sub(r"\b\d+\b", "N", message).strip()


class CrashParser:
    """Parser for crashed verdict output"""

    # file:line[:col]: internal compiler error: <message>
    GC_ICE_RE = re.compile(r"^(\S+?):(\d+)(?::\d+)?: internal compiler error: (.+)$", re.M)
    # go1: internal compiler error: in <function>, at <file>:<line>
    GCCGO_ICE_RE = re.compile(r"^go1: internal compiler error: (.+?)(?:, at (\S+))?$", re.M)
    ASAN_RE = re.compile(r"ERROR: AddressSanitizer: (\S+)")
    PANIC_RE = re.compile(r"^panic: (.+)$", re.M)

    # #0 0x400b4d in main /home/user/test.c:10:5
    NATIVE_FRAME_RE = re.compile(
        r"#(\d+)\s+"
        r"(?:0x[0-9a-fA-F]+\s+)?"
        r"(?:in\s+)?"
        r"(\S+?)(?:\(\))?"
        r"(?:\s+(\S+?):(\d+)(?::\d+)?)?$"
    )
    # main.f(...)
    # \t/path/to/file.go:12 +0x1d
    GO_FRAME_RE = re.compile(r"^(\S+)\(.*\)\n\t(\S+):(\d+)", re.M)
    # gcc internal backtrace: 0x6c1a2b func(args)\n\t../../gcc/go/file.cc:123
    GCC_FRAME_RE = re.compile(r"^0x[0-9a-fA-F]+ ([^\s(]+)[^\n]*\n\t(\S+):(\d+)", re.M)

    def __init__(self):
        self.logger = logging.getLogger("gooracle.crashes.parser")

    def parse(self, verdict: Verdict) -> Optional[CrashReport]:
        """
        Parse a crashed verdict.

        Returns:
            CrashReport, or None when the verdict did not crash
        """
        if not verdict.crashed:
            return None

        crash_class = verdict.signature or "unknown"
        text = verdict.output or verdict.message
        report = CrashReport(verdict.implementation, crash_class)

        if crash_class == "gc_ice":
            self._parse_gc_ice(text, report)
        elif crash_class == "gccgo_ice":
            self._parse_gccgo_ice(text, report)
        elif crash_class == "asan":
            self._parse_asan(text, report)
        elif crash_class == "go_panic":
            self._parse_go_panic(text, report)
        else:
            report.error_message = verdict.message.strip().split("\n")[0]

        self.logger.debug(f"Parsed {crash_class} report for {verdict.implementation}: "
                          f"{report.error_message}")
        return report

    def _parse_gc_ice(self, text: str, report: CrashReport) -> None:
        match = self.GC_ICE_RE.search(text)
        if match:
            report.location = f"{_basename(match.group(1))}:{match.group(2)}"
            report.error_message = match.group(3).strip()
        report.backtrace = self._go_frames(text)

    def _parse_gccgo_ice(self, text: str, report: CrashReport) -> None:
        match = self.GCCGO_ICE_RE.search(text)
        if match:
            report.error_message = match.group(1).strip()
            report.location = match.group(2)
        report.backtrace = [
            {"frame": i, "function": m.group(1), "file": m.group(2), "line": int(m.group(3))}
            for i, m in enumerate(self.GCC_FRAME_RE.finditer(text))
        ]

    def _parse_asan(self, text: str, report: CrashReport) -> None:
        match = self.ASAN_RE.search(text)
        if match:
            report.error_message = match.group(1)
        report.backtrace = self._native_frames(text)
        if report.backtrace and report.backtrace[0].get("file"):
            top = report.backtrace[0]
            report.location = f"{top['file']}:{top['line']}"

    def _parse_go_panic(self, text: str, report: CrashReport) -> None:
        match = self.PANIC_RE.search(text)
        if match:
            report.error_message = match.group(1).strip()
        report.backtrace = self._go_frames(text)
        if report.backtrace:
            top = report.backtrace[0]
            report.location = f"{_basename(top['file'])}:{top['line']}"

    def _go_frames(self, text: str) -> List[Dict]:
        frames = []
        for i, m in enumerate(self.GO_FRAME_RE.finditer(text)):
            # runtime frames say where the panic was raised, not where it happened
            if m.group(1).startswith(("runtime.", "panic")):
                continue
            frames.append({"frame": i, "function": m.group(1), "file": m.group(2),
                           "line": int(m.group(3))})
        return frames

    def _native_frames(self, text: str) -> List[Dict]:
        frames = []
        for line in text.split("\n"):
            m = self.NATIVE_FRAME_RE.match(line.strip())
            if not m:
                continue
            frame = {"frame": int(m.group(1)), "function": m.group(2), "file": m.group(3)}
            frame["line"] = int(m.group(4)) if m.group(4) else None
            frames.append(frame)
        return frames


def parse_crash(verdict: Verdict) -> Optional[CrashReport]:
    """Quick function to parse a crashed verdict"""
    return CrashParser().parse(verdict)
