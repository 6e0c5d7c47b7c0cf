"""Tests for retry_monitor.report renderers."""

from __future__ import annotations

import io

from rich.console import Console

from retry_monitor.config import MonitorConfig
from retry_monitor.fanout import CycleReport, JobOutcome
from retry_monitor.models import Classification, FetchError, Job
from retry_monitor.report import CollectingReporter, ConsoleReporter

JOB = Job(name="api [tests]", disabled=False, in_queue=False, url="https://ci/job/api/")
CONFIG = MonitorConfig(base_url="https://ci", retry=True, interval=300)


def _console() -> tuple[Console, io.StringIO]:
    buf = io.StringIO()
    return Console(file=buf, width=200, color_system=None, highlight=False), buf


class TestConsoleReporter:
    def test_header(self):
        out, buf = _console()
        ConsoleReporter(console=out, clear=False).begin_cycle(CONFIG)
        text = buf.getvalue()
        assert "Jenkins Retry Monitor: https://ci" in text
        assert "Refresh Interval in Seconds: 300" in text
        assert "Is Retry: true" in text

    def test_status_line_keeps_brackets(self):
        out, buf = _console()
        ConsoleReporter(console=out).job_status(3, JOB, Classification.FAILING)
        assert buf.getvalue().strip() == "3. api [tests] => https://ci/job/api/"

    def test_errors_go_to_error_console(self):
        out, buf = _console()
        err, err_buf = _console()
        reporter = ConsoleReporter(console=out, err_console=err)
        reporter.job_error(JOB, FetchError("HTTP 500"))
        reporter.retry_failed(JOB, FetchError("HTTP 403"))
        assert buf.getvalue() == ""
        assert "api [tests] => HTTP 500" in err_buf.getvalue()
        assert "Retry of api [tests] failed => HTTP 403" in err_buf.getvalue()

    def test_retried_line(self):
        out, buf = _console()
        ConsoleReporter(console=out).retried(JOB)
        assert "Retried: api [tests]" in buf.getvalue()


class TestCollectingReporter:
    def test_render(self):
        reporter = CollectingReporter()
        reporter.begin_cycle(CONFIG)
        reporter.job_status(1, JOB, Classification.IN_PROGRESS)
        reporter.job_error(JOB, FetchError("timeout"))
        report = CycleReport(checked=2, outcomes=[
            JobOutcome(job=JOB, classification=Classification.IN_PROGRESS, ordinal=1),
            JobOutcome(job=JOB, error="timeout"),
        ])
        reporter.end_cycle(report)
        text = reporter.render()
        assert text.splitlines()[0] == "=== JENKINS STATUS: https://ci (retry: true) ==="
        assert "1. [IN_PROGRESS] api [tests] => https://ci/job/api/" in text
        assert "[ERROR] api [tests] => timeout" in text
        assert "Checked 2 jobs: 0 failing, 1 in progress, 1 errors, 0 retried" in text
