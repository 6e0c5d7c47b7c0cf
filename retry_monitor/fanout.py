"""
Concurrent status checks over the filtered job set.

Each job is checked by its own task on a ThreadPoolExecutor whose worker
count is the concurrency ceiling: a task only runs while it holds a worker,
and the worker is released when the task returns or raises.  Tasks pause
for a short settle delay before hitting Jenkins so a cycle never bursts
the server.

A task classifies its own result, takes a display ordinal from the shared
CycleCounter, reports, and (for failing jobs) fires the retry trigger.  One
job's error is reported on its own line and never cancels its siblings.
"""

from __future__ import annotations

import logging
import threading
import time
from concurrent.futures import ThreadPoolExecutor, as_completed
from dataclasses import dataclass, field

from retry_monitor.config import MonitorConfig
from retry_monitor.jenkins_api import JenkinsClient
from retry_monitor.models import BuildStatus, Classification, Job, classify
from retry_monitor.retry_trigger import trigger_retry

logger = logging.getLogger(__name__)


class CycleCounter:
    """Display ordinals for reported lines, handed out in completion order."""

    def __init__(self, initial: int = 1):
        self.initial = initial
        self._value = initial
        self._lock = threading.Lock()

    def reset(self) -> None:
        with self._lock:
            self._value = self.initial

    def next(self) -> int:
        """Atomically return the current ordinal and advance it."""
        with self._lock:
            value = self._value
            self._value += 1
            return value


@dataclass
class JobOutcome:
    job: Job
    status: BuildStatus | None = None
    classification: Classification | None = None
    ordinal: int | None = None
    retried: bool = False
    error: str | None = None


@dataclass
class CycleReport:
    checked: int = 0
    outcomes: list[JobOutcome] = field(default_factory=list)

    def _with(self, classification: Classification) -> list[JobOutcome]:
        return [o for o in self.outcomes if o.classification is classification]

    @property
    def failing(self) -> list[JobOutcome]:
        return self._with(Classification.FAILING)

    @property
    def in_progress(self) -> list[JobOutcome]:
        return self._with(Classification.IN_PROGRESS)

    @property
    def errors(self) -> list[JobOutcome]:
        return [o for o in self.outcomes if o.error is not None]

    @property
    def retried(self) -> list[JobOutcome]:
        return [o for o in self.outcomes if o.retried]


def _check_one(
    client: JenkinsClient,
    job: Job,
    config: MonitorConfig,
    counter: CycleCounter,
    reporter,
    stop_event: threading.Event,
) -> JobOutcome:
    outcome = JobOutcome(job=job)
    if config.settle_delay:
        time.sleep(config.settle_delay)
    if stop_event.is_set():
        outcome.error = "cancelled"
        return outcome

    try:
        outcome.status = client.get_last_build_status(job.name)
    except Exception as exc:
        logger.warning("Status check for %s failed: %s", job.name, exc)
        outcome.error = str(exc)
        reporter.job_error(job, exc)
        return outcome

    outcome.classification = classify(outcome.status)
    if not outcome.classification.reported:
        return outcome

    outcome.ordinal = counter.next()
    reporter.job_status(outcome.ordinal, job, outcome.classification)
    if stop_event.is_set():
        return outcome
    outcome.retried = trigger_retry(
        client, job, outcome.classification, config.retry, reporter,
    )
    return outcome


def check_jobs(
    client: JenkinsClient,
    jobs: list[Job],
    config: MonitorConfig,
    counter: CycleCounter,
    reporter,
) -> CycleReport:
    """Check every job with at most config.concurrency requests in flight.

    Returns once all tasks have finished; outcomes are in completion order.
    If the wait is interrupted (Ctrl-C), queued checks are cancelled and
    running ones skip their rebuild request before the interrupt propagates.
    """
    report = CycleReport(checked=len(jobs))
    if not jobs:
        return report

    stop_event = threading.Event()
    executor = ThreadPoolExecutor(max_workers=config.concurrency)
    try:
        futures = {
            executor.submit(_check_one, client, job, config, counter, reporter, stop_event): job
            for job in jobs
        }
        for future in as_completed(futures):
            try:
                report.outcomes.append(future.result())
            except Exception as exc:
                # A reporter failure; keep the job visible in the summary.
                job = futures[future]
                logger.error("Unhandled error while checking %s: %s", job.name, exc)
                report.outcomes.append(JobOutcome(job=job, error=str(exc)))
    except BaseException:
        stop_event.set()
        executor.shutdown(wait=False, cancel_futures=True)
        raise
    finally:
        executor.shutdown()
    return report
