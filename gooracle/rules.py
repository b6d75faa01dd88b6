"""
Classification Rules

Ordered tables of already-triaged divergences between the reference front
end, gc and gccgo. Each rule is narrow: it names the implementation that
accepted, the one that rejected or crashed, and the message text that
identifies a known, filed defect.

The tables are append-only. A new known divergence gets a new rule; an
existing predicate is never widened.
"""

import re
from dataclasses import dataclass, field
from enum import Enum
from typing import Callable, Optional, Sequence, Tuple, Union

from . import patterns
from .patterns import Pattern, go_issue, literal
from .verdict import GC, GCCGO, REFERENCE, Verdicts


class Disposition(Enum):
    """What happens when a rule matches"""
    SUPPRESS = "suppress"


Predicate = Callable[[bytes, Verdicts], bool]
MessageMatcher = Union[str, Pattern]


@dataclass(frozen=True)
class Rule:
    """A named predicate over (input, verdicts) plus its disposition"""
    name: str
    predicate: Predicate = field(compare=False)
    description: str
    issues: str = ""
    implementation: Optional[str] = None  # set on crash rules
    disposition: Disposition = Disposition.SUPPRESS

    def matches(self, data: bytes, verdicts: Verdicts) -> bool:
        return self.predicate(data, verdicts)


def _matchers(messages: Sequence[MessageMatcher]) -> Tuple[Pattern, ...]:
    return tuple(m if isinstance(m, Pattern) else literal(m) for m in messages)


def crash_suppression(name: str, implementation: str, crash_class: str,
                      signature: str, issues: str = "") -> Rule:
    """Known crash: ``implementation`` crashed with ``signature`` in its output"""
    needle = literal(signature)

    def predicate(data: bytes, verdicts: Verdicts) -> bool:
        verdict = verdicts.get(implementation)
        return (verdict is not None and verdict.crashed
                and verdict.signature == crash_class
                and needle.search(verdict.message))

    return Rule(name, predicate,
                f"{implementation} {crash_class}: {signature!r}", issues, implementation)


def asymmetric(name: str, accepted_by: str, rejected_by: str,
               messages: Sequence[MessageMatcher],
               data_pattern: Optional[Pattern] = None, issues: str = "") -> Rule:
    """
    Known divergence: ``accepted_by`` says valid, ``rejected_by`` says
    invalid with a message matching any of ``messages``, and the input
    matches ``data_pattern`` when one is given.
    """
    matchers = _matchers(messages)

    def predicate(data: bytes, verdicts: Verdicts) -> bool:
        accepted = verdicts.get(accepted_by)
        rejected = verdicts.get(rejected_by)
        if accepted is None or rejected is None:
            return False
        if not (accepted.valid and rejected.invalid):
            return False
        if data_pattern is not None and not data_pattern.search(data):
            return False
        if not matchers:
            return True
        return any(m.search(rejected.message) for m in matchers)

    parts = [f"{accepted_by} accepts, {rejected_by} rejects"]
    if matchers:
        parts.append(" | ".join(repr(m.expression) for m in matchers))
    if data_pattern is not None:
        parts.append(f"input ~ {data_pattern.name}")
    return Rule(name, predicate, "; ".join(parts), issues)


def _any_of(*input_patterns: Pattern) -> Pattern:
    """Input predicate matching when any of the given patterns does"""
    expression = "|".join(re.escape(p.expression) if p.literal else p.expression
                          for p in input_patterns)
    return Pattern("+".join(p.name for p in input_patterns), expression)


# ---------------------------------------------------------------------------
# Step 1: known compiler crashes
# ---------------------------------------------------------------------------

CRASH_RULES: Tuple[Rule, ...] = (
    crash_suppression("gc_out_of_fixed_registers", GC, "gc_ice",
                      "internal compiler error: out of fixed registers", go_issue(11352)),
    crash_suppression("gc_naddr_bad_hmul", GC, "gc_ice",
                      "internal compiler error: naddr: bad HMUL", go_issue(11358)),
    crash_suppression("gc_treecopy_name", GC, "gc_ice",
                      "internal compiler error: treecopy Name", go_issue(11361)),

    crash_suppression("gccgo_print_no_arguments", GCCGO, "gccgo_ice",
                      "warning: no arguments for builtin function ‘print’", go_issue(11526)),
    crash_suppression("gccgo_constant_refers_to_itself", GCCGO, "gccgo_ice",
                      "error: constant refers to itself", go_issue(11536)),
    crash_suppression("gccgo_set_type", GCCGO, "gccgo_ice",
                      "go1: internal compiler error: in set_type, at go/gofrontend/expressions.cc",
                      go_issue(11537)),
    crash_suppression("gccgo_global_variable_set_init", GCCGO, "gccgo_ice",
                      "go1: internal compiler error: in global_variable_set_init, at go/go-gcc.cc",
                      go_issue(11541)),
    crash_suppression("gccgo_wide_int_to_tree", GCCGO, "gccgo_ice",
                      "go1: internal compiler error: in wide_int_to_tree, at tree.c",
                      go_issue(11542)),
    crash_suppression("gccgo_record_var_depends_on", GCCGO, "gccgo_ice",
                      "go1: internal compiler error: in record_var_depends_on, at go/gofrontend/gogo.h",
                      go_issue(11543)),
    crash_suppression("gccgo_builtin_call_expression", GCCGO, "gccgo_ice",
                      "go1: internal compiler error: in Builtin_call_expression, at go/gofrontend/expressions.cc",
                      go_issue(11544)),
    crash_suppression("gccgo_check_bounds", GCCGO, "gccgo_ice",
                      "go1: internal compiler error: in check_bounds, at go/gofrontend/expressions.cc",
                      go_issue(11545)),
    crash_suppression("gccgo_do_determine_type", GCCGO, "gccgo_ice",
                      "go1: internal compiler error: in do_determine_type, at go/gofrontend/expressions.h",
                      go_issue(11546)),
    crash_suppression("gccgo_backend_numeric_constant_expression", GCCGO, "gccgo_ice",
                      "go1: internal compiler error: in backend_numeric_constant_expression, "
                      "at go/gofrontend/expressions.cc",
                      go_issue(11548)),
    crash_suppression("gccgo_declare_function", GCCGO, "gccgo_ice",
                      "go1: internal compiler error: in declare_function, at go/gofrontend/gogo.cc",
                      go_issue(11557)),
    crash_suppression("gccgo_expressions_cc_5756", GCCGO, "gccgo_ice",
                      "gcc/go/gofrontend/expressions.cc:5756", go_issue(11558)),
    crash_suppression("gccgo_send_statement_flatten", GCCGO, "gccgo_ice",
                      "Send_statement::do_flatten", go_issue(11559)),
    crash_suppression("gccgo_do_get_backend", GCCGO, "gccgo_ice",
                      "internal compiler error: in do_get_backend, at go/gofrontend/expressions.cc",
                      go_issue(11560)),
    crash_suppression("gccgo_type_size", GCCGO, "gccgo_ice",
                      "go1: internal compiler error: in type_size, at go/go-gcc.cc",
                      go_issue(11554, 11555, 11556)),
    crash_suppression("gccgo_create_tmp_var", GCCGO, "gccgo_ice",
                      "go1: internal compiler error: in create_tmp_var, at gimple-expr.c",
                      go_issue(11568)),
    crash_suppression("gccgo_start_function", GCCGO, "gccgo_ice",
                      "go1: internal compiler error: in start_function, at go/gofrontend/gogo.cc",
                      go_issue(11576)),
    crash_suppression("gccgo_methods", GCCGO, "gccgo_ice",
                      "go1: internal compiler error: in methods, at go/gofrontend/types.cc",
                      go_issue(11579)),

    crash_suppression("gccgo_asan_skip_cpp_comment", GCCGO, "asan",
                      " in Lex::skip_cpp_comment() ../../gcc/go/gofrontend/lex.cc",
                      go_issue(11577)),
)

# ---------------------------------------------------------------------------
# Step 2: known asymmetric divergences, evaluated in this order
# ---------------------------------------------------------------------------

DIVERGENCE_RULES: Tuple[Rule, ...] = (
    # reference vs gc
    asymmetric("gc_line_number_out_of_range", REFERENCE, GC,
               ["line number out of range"], issues=go_issue(11329)),
    asymmetric("gc_stupid_shift", REFERENCE, GC,
               ["stupid shift:"], issues=go_issue(11328)),
    asymmetric("reference_untyped_float_constant", GC, REFERENCE,
               ["untyped float constant"], issues=go_issue(11350)),
    asymmetric("gc_overflow_int_to_string", REFERENCE, GC,
               ["overflow in int -> string"], issues=go_issue(11330)),
    asymmetric("reference_illegal_character", GC, REFERENCE,
               ["illegal character U+"], issues=go_issue(11359)),
    # gc is pickier about huge objects
    asymmetric("gc_larger_than_address_space", REFERENCE, GC,
               ["larger than address space"]),
    asymmetric("gc_non_canonical_import_path", REFERENCE, GC,
               ["non-canonical import path"]),

    # gccgo accepts, reference rejects
    asymmetric("reference_stupid_shift_count", GCCGO, REFERENCE,
               ["invalid operation: stupid shift count"], issues=go_issue(11524)),
    asymmetric("reference_encoding_in_comment", GCCGO, REFERENCE,
               ["illegal UTF-8 encoding", "illegal character NUL"],
               data_pattern=_any_of(patterns.LINE_DIRECTIVE, patterns.BLOCK_COMMENT_OPEN),
               issues=go_issue(11527)),
    asymmetric("reference_xor_not_defined", GCCGO, REFERENCE,
               ["invalid operation: operator ^ not defined for"], issues=go_issue(11529)),
    # gccgo rounds differently
    asymmetric("reference_float_rounding", GCCGO, REFERENCE,
               [patterns.UNTYPED_FLOAT_TRUNCATED]),
    asymmetric("reference_blank_identifier", GCCGO, REFERENCE,
               [": undeclared name: ", "invalid array length"],
               data_pattern=patterns.BLANK_IDENTIFIER, issues=go_issue(11547, 11535)),
    asymmetric("reference_complex_arguments", GCCGO, REFERENCE,
               ["not enough arguments for complex"], issues=go_issue(11561)),
    asymmetric("reference_or_not_defined", GCCGO, REFERENCE,
               ["operator | not defined for"], issues=go_issue(11566)),
    asymmetric("reference_nil_is_not_a_type", GCCGO, REFERENCE,
               ["nil (untyped nil value) is not a type"], issues=go_issue(11567)),
    asymmetric("reference_builtin_must_be_called", GCCGO, REFERENCE,
               ["(built-in) must be called"], issues=go_issue(11570)),
    asymmetric("reference_redeclared", GCCGO, REFERENCE,
               ["redeclared in this block"], issues=go_issue(11573)),
    # seen on "package\rG\n//line \ufeff:1", not filed
    asymmetric("reference_byte_order_mark", GCCGO, REFERENCE,
               ["illegal byte order mark"]),
    asymmetric("reference_unknown_escape", GCCGO, REFERENCE,
               ["unknown escape sequence"], issues=go_issue(11575)),

    # reference accepts, gccgo rejects
    asymmetric("gccgo_string_index_out_of_bounds", REFERENCE, GCCGO,
               ["error: string index out of bounds"], issues=go_issue(11522)),
    asymmetric("gccgo_integer_constant_overflow", REFERENCE, GCCGO,
               ["error: integer constant overflow"], issues=go_issue(11525)),
    asymmetric("gccgo_octal_like_imaginary", REFERENCE, GCCGO, [],
               data_pattern=patterns.OCTAL_LIKE_IMAGINARY, issues=go_issue(11532, 11533)),
    asymmetric("gccgo_imaginary_zero", REFERENCE, GCCGO,
               ["incompatible types in binary expression",
                "initialization expression has wrong type"],
               data_pattern=patterns.IMAGINARY_ZERO, issues=go_issue(11564, 11563)),
    asymmetric("gccgo_invalid_character_0x37f", REFERENCE, GCCGO,
               ["invalid character 0x37f in input file"], issues=go_issue(11569)),
    asymmetric("gccgo_incompatible_binary_expression", REFERENCE, GCCGO,
               ["error: incompatible types in binary expression"], issues=go_issue(11572)),
    # TODO: drop once the gccgo installation on the fuzzing hosts ships its import files
    asymmetric("gccgo_missing_import_file", REFERENCE, GCCGO,
               [": error: import file "]),

    # multi-line block comments, either direction
    asymmetric("gccgo_multiline_block_comment", REFERENCE, GCCGO, [],
               data_pattern=patterns.MULTILINE_BLOCK_COMMENT, issues=go_issue(11528)),
    asymmetric("reference_multiline_block_comment", GCCGO, REFERENCE, [],
               data_pattern=patterns.MULTILINE_BLOCK_COMMENT, issues=go_issue(11528)),
)


def all_rules():
    """Every rule with the step it belongs to, in evaluation order"""
    for rule in CRASH_RULES:
        yield "crash", rule
    for rule in DIVERGENCE_RULES:
        yield "divergence", rule
