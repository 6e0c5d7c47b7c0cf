"""
Rebuild requests for failing jobs.

A rebuild is requested only when a job's latest build is classified as
failing and retries are enabled for the run; at most one request per job per
cycle, and a failed request is logged rather than raised.
"""

import logging

from retry_monitor.jenkins_api import JenkinsClient
from retry_monitor.models import Classification, Job

logger = logging.getLogger(__name__)


def trigger_retry(
    client: JenkinsClient,
    job: Job,
    classification: Classification,
    retry_enabled: bool,
    reporter=None,
) -> bool:
    """Request one rebuild of a failing job when retries are enabled.

    Returns True only if the rebuild request was accepted.  A failed request
    is logged and reported, never raised: it must not affect other jobs.
    """
    if classification is not Classification.FAILING or not retry_enabled:
        return False

    try:
        client.trigger_build(job.name)
    except Exception as exc:
        logger.warning("Retry of %s failed: %s", job.name, exc)
        if reporter is not None:
            reporter.retry_failed(job, exc)
        return False

    logger.info("Retried %s", job.name)
    if reporter is not None:
        reporter.retried(job)
    return True
