"""
Atheris Harness

Binds the oracle to atheris: FATAL results raise OracleFatal so the engine
records the input as a crash, everything else returns normally.
"""

import logging
import sys
from typing import List, Optional

from .oracle import Oracle
from .verdict import OracleResult


logger = logging.getLogger("gooracle.fuzz")


class OracleFatal(Exception):
    """An evaluation escalated; carries the full finding report"""

    def __init__(self, result: OracleResult):
        super().__init__(result.report or result.reason)
        self.result = result


class FuzzTarget:
    """Callable fuzz entry point around one oracle"""

    def __init__(self, oracle: Oracle):
        self.oracle = oracle

    def __call__(self, data: bytes) -> None:
        result = self.oracle.evaluate(data)
        if result.fatal:
            raise OracleFatal(result)


def run(oracle: Oracle, argv: Optional[List[str]] = None) -> None:
    """Hand control to atheris; does not return unless fuzzing stops"""
    import atheris

    target = FuzzTarget(oracle)
    args = [sys.argv[0]] + list(argv or [])
    logger.info(f"Starting atheris with arguments: {' '.join(args[1:]) or '(none)'}")
    atheris.Setup(args, target)
    atheris.Fuzz()
