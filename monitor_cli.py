"""
Jenkins Retry Monitor

Polls one Jenkins instance on a fixed interval, lists jobs whose latest build
failed or is still running, and (with --retry) requests a rebuild of every
failing job.  The terminal is cleared and redrawn on each cycle.

Logs go to stderr so they do not interleave with the status view.
"""

import argparse
import logging
import sys

from retry_monitor.config import (
    DEFAULT_INTERVAL,
    ConfigError,
    JenkinsSettings,
    MonitorConfig,
    jenkins_urls,
    select_url,
)
from retry_monitor.jenkins_api import JenkinsClient
from retry_monitor.job_filter import JobFilterRuleset
from retry_monitor.models import FetchError
from retry_monitor.report import ConsoleReporter
from retry_monitor.scheduler import CycleScheduler

logger = logging.getLogger("jenkins-retry-monitor")


def parse_args(argv=None):
    parser = argparse.ArgumentParser(
        description="Watch a Jenkins instance for failing jobs and optionally retry them.",
    )
    parser.add_argument(
        "--url",
        type=int,
        default=0,
        metavar="INDEX",
        help="index into JENKINS_URLS (clamped to the last entry, default: %(default)s)",
    )
    parser.add_argument(
        "--interval",
        type=float,
        default=DEFAULT_INTERVAL,
        metavar="SECONDS",
        help="refresh interval in seconds (default: %(default)s)",
    )
    parser.add_argument(
        "--retry",
        action="store_true",
        help="trigger buildWithParameters for every failing job",
    )
    parser.add_argument(
        "-v",
        "--verbose",
        action="count",
        default=0,
        help="log at INFO (-v) or DEBUG (-vv)",
    )
    args = parser.parse_args(argv)
    if args.interval <= 0:
        parser.error("--interval must be positive")
    return args


def _log_level(verbosity: int) -> int:
    if verbosity >= 2:
        return logging.DEBUG
    if verbosity == 1:
        return logging.INFO
    return logging.WARNING


def build_scheduler(args, reporter=None) -> CycleScheduler:
    config = MonitorConfig(
        base_url=select_url(jenkins_urls(), args.url),
        retry=args.retry,
        interval=args.interval,
    )
    client = JenkinsClient(
        config.base_url, JenkinsSettings.from_env(), pool_maxsize=config.concurrency,
    )
    return CycleScheduler(
        client,
        JobFilterRuleset.from_env(),
        config,
        reporter or ConsoleReporter(),
    )


def main(argv=None) -> int:
    args = parse_args(argv)
    logging.basicConfig(
        stream=sys.stderr,
        level=_log_level(args.verbose),
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    )

    try:
        scheduler = build_scheduler(args)
    except ConfigError as exc:
        logger.error("%s", exc)
        return 2

    try:
        scheduler.run_forever()
    except FetchError as exc:
        logger.error("Cannot fetch job inventory, stopping: %s", exc)
        return 1
    except KeyboardInterrupt:
        return 130
    return 0


if __name__ == "__main__":
    sys.exit(main())
