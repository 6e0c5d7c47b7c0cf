"""
Fixed-rate driver for monitoring cycles.

A cycle is: reset the ordinal counter, fetch the inventory, filter it, fan
out the status checks, report.  An inventory FetchError is fatal and
propagates to the caller; everything else is scoped to one job inside the
fan-out.
"""

import logging
import time

from retry_monitor.config import MonitorConfig
from retry_monitor.fanout import CycleCounter, CycleReport, check_jobs
from retry_monitor.jenkins_api import JenkinsClient
from retry_monitor.job_filter import JobFilterRuleset, filter_jobs

logger = logging.getLogger(__name__)


class CycleScheduler:
    def __init__(
        self,
        client: JenkinsClient,
        ruleset: JobFilterRuleset,
        config: MonitorConfig,
        reporter,
        counter: CycleCounter | None = None,
        clock=time.monotonic,
        sleep=time.sleep,
    ):
        self.client = client
        self.ruleset = ruleset
        self.config = config
        self.reporter = reporter
        self.counter = counter or CycleCounter()
        self._clock = clock
        self._sleep = sleep

    def run_cycle(self) -> CycleReport:
        self.counter.reset()
        self.reporter.begin_cycle(self.config)

        jobs = self.client.get_all_listed_jobs()
        eligible = filter_jobs(jobs, self.ruleset)
        logger.info("Checking %d of %d jobs", len(eligible), len(jobs))

        report = check_jobs(self.client, eligible, self.config, self.counter, self.reporter)
        self.reporter.end_cycle(report)
        return report

    def run_forever(self, max_cycles: int | None = None) -> int:
        """Run cycles on a fixed interval until the process stops.

        The first cycle starts immediately.  Cycle n starts at
        start + n * interval; an overrunning cycle is followed immediately by
        the next one.  Returns the number of completed cycles (only reachable
        with max_cycles).
        """
        start = self._clock()
        completed = 0
        while max_cycles is None or completed < max_cycles:
            self.run_cycle()
            completed += 1
            if max_cycles is not None and completed >= max_cycles:
                break
            next_tick = start + completed * self.config.interval
            delay = next_tick - self._clock()
            if delay > 0:
                self._sleep(delay)
        return completed
