# gooracle/main.py
import argparse
import logging
import os
import sys
from typing import Iterator, List, Tuple

from rich.console import Console

from .config import OracleConfig, OracleConfigError
from .logger import setup_oracle_logger
from .oracle import Oracle
from .report import print_finding, results_table, rules_table
from .verdict import OracleResult, Status

console = Console()


def iter_inputs(paths: List[str]) -> Iterator[Tuple[str, bytes]]:
    """Yield (name, bytes) for every file; directories expand to their files"""
    for path in paths:
        path = os.path.expanduser(path)
        if os.path.isdir(path):
            for name in sorted(os.listdir(path)):
                full = os.path.join(path, name)
                if os.path.isfile(full):
                    with open(full, "rb") as f:
                        yield full, f.read()
        else:
            with open(path, "rb") as f:
                yield path, f.read()


def apply_overrides(cfg: OracleConfig, args, logger: logging.Logger) -> None:
    if args.no_gc:
        cfg.gc_enabled = False
        logger.info("gc comparison arm disabled")
    if args.no_gccgo:
        cfg.gccgo_enabled = False
        logger.info("gccgo comparison arm disabled")
    if args.revalidate:
        cfg.revalidate_after_format = True
        logger.info("Re-validating formatted programs")
    if args.parallel:
        cfg.parallel_compilers = True
        logger.info("Running compilers concurrently")
    if args.timeout is not None:
        cfg.timeout = args.timeout
        logger.info(f"Using timeout from CLI: {cfg.timeout}s")
    if args.workdir:
        cfg.workdir = os.path.expanduser(args.workdir)
        logger.info(f"Using working directory from CLI: {cfg.workdir}")
    cfg.validate()


def run_check(oracle: Oracle, paths: List[str]) -> int:
    results: List[Tuple[str, OracleResult]] = []
    for name, data in iter_inputs(paths):
        results.append((name, oracle.evaluate(data)))

    console.print(results_table(results))
    for name, result in results:
        if result.fatal:
            print_finding(console, name, result)

    stats = oracle.get_stats()
    console.print(f"Evaluated {stats['evaluated']} inputs: " +
                  ", ".join(f"{k}={v}" for k, v in sorted(stats["by_status"].items())))
    return 1 if any(r.status is Status.FATAL for _, r in results) else 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="gooracle: differential oracle for go/types, gc and gccgo"
    )
    parser.add_argument("--config", default=None,
                        help="Path to a config file (default ~/.gooracle/config.json).")
    parser.add_argument("--log-level", default="INFO", choices=["DEBUG", "INFO", "WARNING", "ERROR"],
                        help="Set the logging level.")
    parser.add_argument("--quiet", action="store_true",
                        help="Minimize console output (overrides log-level to WARNING).")
    parser.add_argument("--no-gc", action="store_true", help="Disable the gc comparison arm")
    parser.add_argument("--no-gccgo", action="store_true", help="Disable the gccgo comparison arm")
    parser.add_argument("--revalidate", action="store_true",
                        help="Validate gofmt output again with the reference front end")
    parser.add_argument("--parallel", action="store_true",
                        help="Run gc and gccgo concurrently")
    parser.add_argument("--timeout", type=float, default=None,
                        help="Seconds before a hung tool is reported as a crash (default: none)")
    parser.add_argument("--workdir", default=None,
                        help="Directory for scratch files and compiler working directory")

    sub = parser.add_subparsers(dest="command", required=True)
    check = sub.add_parser("check", help="Evaluate input files or directories of inputs")
    check.add_argument("paths", nargs="+", help="Files or directories to evaluate")
    sub.add_parser("rules", help="List the classification rules in evaluation order")
    # unrecognized arguments after "fuzz" go to atheris/libFuzzer (corpus dirs, -flags)
    sub.add_parser("fuzz", help="Run the atheris harness")
    return parser


def main(argv=None):
    parser = build_parser()
    args, engine_args = parser.parse_known_args(argv)
    if engine_args and args.command != "fuzz":
        parser.error(f"unrecognized arguments: {' '.join(engine_args)}")

    log_level = logging._nameToLevel.get(args.log_level.upper(), logging.INFO)
    if args.quiet:
        log_level = logging.WARNING

    try:
        cfg = OracleConfig.load(args.config)
    except OracleConfigError as e:
        setup_oracle_logger(log_level).error(f"Failed to load config: {e}")
        sys.exit(1)

    logger = setup_oracle_logger(log_level, log_file=cfg.log_file)
    logger.debug(f"Starting gooracle '{args.command}'")

    if args.command == "rules":
        console.print(rules_table())
        return 0

    try:
        apply_overrides(cfg, args, logger)
        oracle = Oracle.from_config(cfg)
    except OracleConfigError as e:
        logger.error(f"Invalid configuration: {e}")
        sys.exit(1)

    try:
        if args.command == "check":
            return run_check(oracle, args.paths)
        if args.command == "fuzz":
            from .fuzz import run
            run(oracle, engine_args)
            return 0
    except OSError as e:
        logger.error(f"Error running {args.command}: {e}")
        sys.exit(1)
    return 0


if __name__ == "__main__":
    sys.exit(main())
