"""
Oracle Entry Point

Sequences pre-filtering, the three implementations, the divergence
classifier and the reformat check into one decision per candidate input.
"""

import logging
import threading
from collections import Counter
from concurrent.futures import ThreadPoolExecutor
from typing import Any, Dict, Optional, Sequence

from .classifier import Action, DivergenceClassifier
from .compilers import ExternalCompiler, gc_target, gccgo_target
from .config import OracleConfig
from .frontend import ReferenceFrontEnd, default_stages
from .patterns import prefilter
from .process import AdapterError
from .reformat import Formatter, ReformatCheck
from .report import render_report
from .verdict import GC, GCCGO, OracleResult, Status, Verdict, Verdicts


class Oracle:
    """
    Differential oracle over the reference front end, gc and gccgo.

    Evaluations share no mutable state besides the statistics counters, so
    distinct inputs may be evaluated concurrently.
    """

    def __init__(self, reference: ReferenceFrontEnd,
                 compilers: Sequence[ExternalCompiler] = (),
                 classifier: Optional[DivergenceClassifier] = None,
                 reformat: Optional[ReformatCheck] = None,
                 parallel: bool = False):
        """
        Args:
            reference: Reference front end adapter
            compilers: Adapters of the enabled compiler arms (gc, gccgo)
            classifier: Rule engine; defaults to the built-in rule tables
            reformat: Round-trip check for inputs agreed valid
            parallel: Run the compiler adapters concurrently
        """
        self.logger = logging.getLogger("gooracle.oracle")
        names = [c.name for c in compilers]
        for name in names:
            if name not in (GC, GCCGO):
                raise ValueError(f"Unknown compiler arm '{name}'")
        if len(set(names)) != len(names):
            raise ValueError("Each compiler arm may only be given once")

        self.reference = reference
        self.compilers = list(compilers)
        self.classifier = classifier or DivergenceClassifier()
        self.reformat = reformat or ReformatCheck()
        self.parallel = parallel

        self._stats_lock = threading.Lock()
        self._status_counts: Counter = Counter()
        self._rule_hits: Counter = Counter()

    @classmethod
    def from_config(cls, config: OracleConfig) -> "Oracle":
        stages = default_stages(gofmt=config.gofmt_binary, gotype=config.gotype_binary,
                                ssadump=config.ssadump_binary, goarch=config.goarch,
                                timeout=config.timeout)
        reference = ReferenceFrontEnd(stages, workdir=config.workdir)

        targets = [gc_target(config.gc_command, config.gc_enabled),
                   gccgo_target(config.gccgo_command, config.gccgo_enabled)]
        compilers = [ExternalCompiler(t, workdir=config.workdir, timeout=config.timeout)
                     for t in targets if t.enabled]

        revalidate = reference.validate if config.revalidate_after_format else None
        reformat = ReformatCheck(Formatter(config.gofmt_binary, timeout=config.timeout),
                                 revalidate=revalidate)
        return cls(reference, compilers, reformat=reformat,
                   parallel=config.parallel_compilers)

    def run_implementations(self, data: bytes) -> Verdicts:
        """
        Produce every enabled implementation's verdict on ``data``.

        Raises:
            AdapterError: an implementation could not be run at all
        """
        if self.parallel and len(self.compilers) > 1:
            with ThreadPoolExecutor(max_workers=len(self.compilers),
                                    thread_name_prefix="gooracle-compile") as pool:
                futures = [pool.submit(c.validate, data) for c in self.compilers]
                external = [f.result() for f in futures]
        else:
            external = [c.validate(data) for c in self.compilers]

        by_name: Dict[str, Verdict] = {v.implementation: v for v in external}
        reference = self.reference.validate(data)
        return Verdicts(reference, gc=by_name.get(GC), gccgo=by_name.get(GCCGO))

    def evaluate(self, data: bytes) -> OracleResult:
        """Decide PASS, SKIP, FAIL or FATAL for one candidate input"""
        data = bytes(data)
        result = self._evaluate(data)
        self._record(result)
        return result

    def _evaluate(self, data: bytes) -> OracleResult:
        rejected = prefilter(data)
        if rejected is not None:
            self.logger.debug(f"Input pre-filtered by {rejected.name}")
            return OracleResult(Status.SKIP, "pre-filtered", rejected.name)

        try:
            verdicts = self.run_implementations(data)
        except AdapterError as e:
            self.logger.error(f"Could not run implementations: {e}")
            return OracleResult(Status.FAIL, str(e))

        classification = self.classifier.classify(data, verdicts)
        action = classification.action

        if action is Action.SUPPRESS:
            return OracleResult(Status.SKIP, classification.reason, classification.rule, verdicts)

        if classification.escalated:
            report = render_report(data, classification.reason, verdicts)
            self.logger.error(f"FATAL: {classification.reason}")
            return OracleResult(Status.FATAL, classification.reason, None, verdicts, report,
                                {"action": action.value})

        if action is Action.AGREE_INVALID:
            return OracleResult(Status.SKIP, classification.reason, None, verdicts)

        try:
            outcome = self.reformat.check(data)
        except AdapterError as e:
            self.logger.error(f"Could not run formatter: {e}")
            return OracleResult(Status.FAIL, str(e), None, verdicts)

        if not outcome.ok:
            report = render_report(data, outcome.reason, verdicts, extra=outcome.output)
            self.logger.error(f"FATAL: {outcome.reason}")
            return OracleResult(Status.FATAL, outcome.reason, None, verdicts, report,
                                {"action": "formatter_defect"})
        return OracleResult(Status.PASS, outcome.reason, outcome.rule, verdicts)

    def _record(self, result: OracleResult) -> None:
        with self._stats_lock:
            self._status_counts[result.status.value] += 1
            if result.rule:
                self._rule_hits[result.rule] += 1

    def get_stats(self) -> Dict[str, Any]:
        """Counters per status and per rule hit"""
        with self._stats_lock:
            return {
                "evaluated": sum(self._status_counts.values()),
                "by_status": dict(self._status_counts),
                "rule_hits": dict(self._rule_hits),
            }


_default_oracle: Optional[Oracle] = None
_default_lock = threading.Lock()


def get_oracle(config: Optional[OracleConfig] = None) -> Oracle:
    """Process-wide oracle, built from ``config`` (or the saved config) on first use"""
    global _default_oracle
    with _default_lock:
        if _default_oracle is None:
            _default_oracle = Oracle.from_config(config or OracleConfig.load())
        return _default_oracle


def evaluate(data: bytes) -> OracleResult:
    """Evaluate one candidate input with the process-wide oracle"""
    return get_oracle().evaluate(data)
