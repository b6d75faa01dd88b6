"""
Finding Reports

Renders escalated results with everything a triager needs to write a new,
narrow suppression rule: the input, every raw verdict and the parsed crash.
"""

from typing import Iterable, List, Optional, Tuple

from rich.console import Console
from rich.markup import escape
from rich.panel import Panel
from rich.table import Table
from rich.text import Text

from .crashes import CrashParser, CrashReport
from .rules import all_rules
from .verdict import OracleResult, Status, Verdicts

STATUS_STYLES = {
    Status.PASS: "green",
    Status.SKIP: "dim",
    Status.FAIL: "yellow",
    Status.FATAL: "bold red",
}

INPUT_PREVIEW = 2000


def crash_reports(verdicts: Verdicts) -> List[CrashReport]:
    parser = CrashParser()
    return [parser.parse(v) for v in verdicts.present() if v.crashed]


def finding_signature(verdicts: Verdicts) -> str:
    """Signature of the first crash, or a validity pattern for disagreements"""
    reports = crash_reports(verdicts)
    if reports:
        return reports[0].signature()
    return "disagree:" + ",".join(
        f"{v.implementation}={'ok' if v.valid else 'err'}" for v in verdicts.present())


def render_report(data: bytes, reason: str, verdicts: Verdicts,
                  extra: Optional[str] = None) -> str:
    """Plain text report for an escalated result"""
    lines = []
    lines.append("=" * 80)
    lines.append(f"FINDING: {reason}")
    lines.append("=" * 80)
    lines.append(f"Signature: {finding_signature(verdicts)}")
    lines.append("")

    preview = data[:INPUT_PREVIEW]
    lines.append(f"Input ({len(data)} bytes):")
    lines.append(repr(preview) + (" ..." if len(data) > INPUT_PREVIEW else ""))
    lines.append("")

    for verdict in verdicts.present():
        header = f"{verdict.implementation} result: {verdict.outcome.value}"
        if verdict.exit_code is not None:
            header += f" (exit {verdict.exit_code})"
        if verdict.signature:
            header += f" [{verdict.signature}]"
        lines.append(header)
        lines.append("-" * 80)
        lines.append(verdict.message.rstrip() or "<no message>")
        if verdict.output and verdict.output.rstrip() not in verdict.message:
            lines.append("")
            lines.append(verdict.output.rstrip())
        lines.append("")

    for report in crash_reports(verdicts):
        lines.append(f"Crash: {report.implementation} {report.crash_class}: {report.error_message}")
        if report.location:
            lines.append(f"  at {report.location}")
        for frame in report.backtrace[:5]:
            lines.append(f"    #{frame['frame']} {frame['function']} "
                         f"{frame.get('file') or '??'}:{frame.get('line') or '??'}")
        lines.append("")

    if extra:
        lines.append(extra.rstrip())
        lines.append("")
    return "\n".join(lines)


def results_table(results: Iterable[Tuple[str, OracleResult]]) -> Table:
    table = Table(title="Oracle Results")
    table.add_column("Input", style="cyan", overflow="fold")
    table.add_column("Status")
    table.add_column("Rule", style="magenta")
    table.add_column("Reason", overflow="fold")
    for name, result in results:
        style = STATUS_STYLES[result.status]
        table.add_row(Text(name), Text(result.status.value.upper(), style=style),
                      Text(result.rule or ""), Text(result.reason))
    return table


def rules_table() -> Table:
    table = Table(title="Classification Rules (evaluation order)")
    table.add_column("#", justify="right")
    table.add_column("Step")
    table.add_column("Name", style="cyan", no_wrap=True)
    table.add_column("Predicate", overflow="fold")
    table.add_column("Issues", style="dim", overflow="fold")
    for i, (step, rule) in enumerate(all_rules(), 1):
        table.add_row(str(i), step, rule.name, Text(rule.description), rule.issues)
    return table


def print_finding(console: Console, name: str, result: OracleResult) -> None:
    if result.report:
        console.print(Panel(Text(result.report), title=f"[bold red]{escape(name)}[/bold red]", expand=False))
