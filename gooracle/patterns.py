"""
Pattern Library

Named matchers used as pre-filters on raw input bytes, as predicates inside
classification rules, and as crash-class detectors on compiler output.

Every matcher works on both bytes and str and never raises, whatever the
encoding of the subject.
"""

import re
from typing import Dict, Optional, Union

Subject = Union[bytes, str]

# Prefix of the scratch file handed to gc; the gc crash class keys on it so an
# input that merely mentions "internal compiler error" cannot fake a crash.
GC_SCRATCH_PREFIX = "fuzz.gc"
GCCGO_SCRATCH_PREFIX = "fuzz.gccgo"
REFERENCE_SCRATCH_PREFIX = "fuzz.ref"


class Pattern:
    """A named regular expression or literal, usable on bytes and text"""

    def __init__(self, name: str, expression: str, literal: bool = False,
                 flags: int = 0, issue: Optional[str] = None):
        self.name = name
        self.expression = expression
        self.literal = literal
        self.issue = issue
        if literal:
            self._text = expression
            self._bytes = expression.encode("utf-8")
            self._text_re = None
            self._bytes_re = None
        else:
            self._text_re = re.compile(expression, flags)
            self._bytes_re = re.compile(
                expression.encode("utf-8"), flags)

    def search(self, subject: Optional[Subject]) -> bool:
        if not subject:
            return False
        if isinstance(subject, (bytes, bytearray, memoryview)):
            subject = bytes(subject)
            if self.literal:
                return self._bytes in subject
            return self._bytes_re.search(subject) is not None
        if self.literal:
            return self._text in subject
        return self._text_re.search(subject) is not None

    __call__ = search

    def __repr__(self):
        kind = "literal" if self.literal else "regex"
        return f"Pattern({self.name!r}, {kind}={self.expression!r})"


def literal(text: str) -> Pattern:
    """Anonymous substring matcher"""
    return Pattern(text, text, literal=True)


GO_ISSUE = "https://github.com/golang/go/issues/{}"


def go_issue(*numbers: int) -> str:
    return " ".join(GO_ISSUE.format(n) for n in numbers)


# ---------------------------------------------------------------------------
# Pre-filters: matched against raw input before any implementation runs
# ---------------------------------------------------------------------------

BIG_EXPONENT = Pattern(
    "big_exponent",
    r"(\.[0-9]*|[0-9]+)[eE]-?\+?[0-9]{3,}",
    issue=go_issue(11327),
)

DOUBLE_COMMA = Pattern(
    "double_comma",
    r",[ \t\r\n]*,",
    issue=go_issue(11531),
)

PREFILTERS = (BIG_EXPONENT, DOUBLE_COMMA)

# ---------------------------------------------------------------------------
# Input predicates used by classification rules
# ---------------------------------------------------------------------------

# A block comment spanning at least one newline
MULTILINE_BLOCK_COMMENT = Pattern(
    "multiline_block_comment",
    r"/\*[^\n]*\n(?s:.*?)\*/",
    issue=go_issue(11528),
)

OCTAL_LIKE_IMAGINARY = Pattern(
    "octal_like_imaginary",
    r"[ \r\t\n=+\-*^/(,]0[0-9]+[ieE]",
    issue=go_issue(11532, 11533),
)

LINE_DIRECTIVE = Pattern("line_directive", "//line", literal=True)
BLOCK_COMMENT_OPEN = Pattern("block_comment_open", "/*", literal=True)
BLANK_IDENTIFIER = Pattern("blank_identifier", "_", literal=True)
IMAGINARY_ZERO = Pattern("imaginary_zero", "0i", literal=True)

# ---------------------------------------------------------------------------
# Formatter bypass: gofmt moves these comments around (issue 11274)
# ---------------------------------------------------------------------------

COMMENT_BEFORE_SEMICOLON = Pattern(
    "comment_before_semicolon",
    r"\*/[ \t\n\r\f\v]*;",
    issue=go_issue(11274),
)

SEMICOLON_BEFORE_COMMENT = Pattern(
    "semicolon_before_comment",
    r";[ \t\n\r\f\v]*/\*",
    issue=go_issue(11274),
)

FORMAT_BYPASS = (COMMENT_BEFORE_SEMICOLON, SEMICOLON_BEFORE_COMMENT)

# ---------------------------------------------------------------------------
# Message matchers
# ---------------------------------------------------------------------------

UNTYPED_FLOAT_TRUNCATED = Pattern(
    "untyped_float_truncated",
    r" \(untyped float constant .*\) truncated to ",
)

# ---------------------------------------------------------------------------
# Crash classes: a verdict's output matching one of these is a crash
# ---------------------------------------------------------------------------

GC_ICE = Pattern(
    "gc_ice",
    r"(?m)^\S*" + re.escape(GC_SCRATCH_PREFIX) +
    r"[^:\s]*(?::[0-9]+)+: internal compiler error: ",
)

GCCGO_ICE = Pattern(
    "gccgo_ice",
    r"(?m)^go1: internal compiler error:",
)

ASAN = Pattern(
    "asan",
    r"(?m)^==[0-9]+==ERROR: AddressSanitizer: ",
)

GO_PANIC = Pattern(
    "go_panic",
    r"(?m)^panic: (?s:.*)^goroutine [0-9]+ \[",
)

CRASH_CLASSES: Dict[str, Pattern] = {
    p.name: p for p in (GC_ICE, GCCGO_ICE, ASAN, GO_PANIC)
}

# Signatures attached by adapters without a pattern match
INTERNAL = "internal"
TIMEOUT = "timeout"


def first_match(patterns, subject: Optional[Subject]) -> Optional[Pattern]:
    """Return the first pattern in ``patterns`` matching ``subject``"""
    for pattern in patterns:
        if pattern.search(subject):
            return pattern
    return None


def prefilter(data: bytes) -> Optional[Pattern]:
    """Return the pre-filter that rejects ``data``, if any"""
    return first_match(PREFILTERS, data)


def crash_class(output: Optional[str], classes) -> Optional[str]:
    """Name of the first crash class in ``classes`` found in ``output``"""
    match = first_match((CRASH_CLASSES[name] for name in classes), output)
    return match.name if match else None
