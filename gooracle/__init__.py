"""
gooracle: Differential Oracle for Go Toolchains

Compares the go/types reference front end with gc and gccgo on the same
input, suppresses already-triaged divergences and escalates the rest.
"""

from .verdict import (
    Outcome,
    Status,
    Verdict,
    Verdicts,
    OracleResult
)

from .classifier import (
    Action,
    Classification,
    DivergenceClassifier
)

from .compilers import ExternalCompiler, CompilerTarget, gc_target, gccgo_target
from .frontend import ReferenceFrontEnd
from .reformat import Formatter, ReformatCheck
from .config import OracleConfig, OracleConfigError
from .process import AdapterError
from .oracle import Oracle, evaluate, get_oracle

__all__ = [
    "Outcome",
    "Status",
    "Verdict",
    "Verdicts",
    "OracleResult",
    "Action",
    "Classification",
    "DivergenceClassifier",
    "ExternalCompiler",
    "CompilerTarget",
    "gc_target",
    "gccgo_target",
    "ReferenceFrontEnd",
    "Formatter",
    "ReformatCheck",
    "OracleConfig",
    "OracleConfigError",
    "AdapterError",
    "Oracle",
    "evaluate",
    "get_oracle"
]
