"""
Reporters receive cycle events from the scheduler and the fan-out tasks.

ConsoleReporter renders the live terminal view with rich; CollectingReporter
buffers plain text lines for the MCP tools.  Both are called from worker
threads, so every method must be safe to call concurrently.
"""

from __future__ import annotations

import sys
import threading

from rich.console import Console
from rich.text import Text

from retry_monitor.config import MonitorConfig
from retry_monitor.models import Classification, Job

_STATUS_STYLES = {
    Classification.FAILING: "red",
    Classification.IN_PROGRESS: "yellow",
}
_RULE_WIDTH = 171


def _summary(report) -> str:
    return (
        f"Checked {report.checked} jobs: {len(report.failing)} failing, "
        f"{len(report.in_progress)} in progress, {len(report.errors)} errors, "
        f"{len(report.retried)} retried"
    )


class ConsoleReporter:
    def __init__(self, console: Console | None = None, err_console: Console | None = None,
                 clear: bool = True):
        self.console = console or Console(highlight=False)
        self.err_console = err_console or Console(file=sys.stderr, highlight=False)
        self.clear = clear

    def begin_cycle(self, config: MonitorConfig) -> None:
        if self.clear:
            self.console.clear()
        rule = Text("=" * _RULE_WIDTH, style="bold green")
        self.console.print(rule)
        self.console.print(Text.assemble(
            "🟢 🚀 Jenkins Retry Monitor: ",
            (config.base_url, "bold green"),
            f" | Refresh Interval in Seconds: {config.interval:g} | Is Retry: ",
            (str(config.retry).lower(), "bold green"),
        ))
        self.console.print(rule)

    def job_status(self, ordinal: int, job: Job, classification: Classification) -> None:
        self.console.print(Text.assemble(
            f"{ordinal}. ",
            (job.name, _STATUS_STYLES[classification]),
            " => ",
            (job.url, "italic bright_black"),
        ))

    def job_error(self, job: Job, exc: Exception) -> None:
        self.err_console.print(Text(f"⚠️  {job.name} => {exc}", style="yellow"))

    def retried(self, job: Job) -> None:
        self.console.print(Text.assemble(
            "=> ",
            ("Retried", "white"),
            ": ",
            (job.name, "green"),
            " => ",
            (job.url, "italic bright_black"),
        ))

    def retry_failed(self, job: Job, exc: Exception) -> None:
        self.err_console.print(Text(f"⚠️  Retry of {job.name} failed => {exc}", style="yellow"))

    def end_cycle(self, report) -> None:
        self.console.print(Text(_summary(report), style="dim"))


class CollectingReporter:
    """Buffers report lines as plain text instead of printing them."""

    def __init__(self):
        self.lines: list[str] = []
        self._lock = threading.Lock()

    def _add(self, line: str) -> None:
        with self._lock:
            self.lines.append(line)

    def begin_cycle(self, config: MonitorConfig) -> None:
        self._add(
            f"=== JENKINS STATUS: {config.base_url} (retry: {str(config.retry).lower()}) ==="
        )

    def job_status(self, ordinal: int, job: Job, classification: Classification) -> None:
        self._add(f"{ordinal}. [{classification.value}] {job.name} => {job.url}")

    def job_error(self, job: Job, exc: Exception) -> None:
        self._add(f"[ERROR] {job.name} => {exc}")

    def retried(self, job: Job) -> None:
        self._add(f"=> Retried: {job.name}")

    def retry_failed(self, job: Job, exc: Exception) -> None:
        self._add(f"[ERROR] Retry of {job.name} failed => {exc}")

    def end_cycle(self, report) -> None:
        self._add(f"\n[{_summary(report)}]")

    def render(self) -> str:
        with self._lock:
            return "\n".join(self.lines)
