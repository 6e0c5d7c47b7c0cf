"""
Jenkins Retry Monitor MCP Server

Exposes the monitor's cycle over the Model Context Protocol so an assistant
can ask which jobs are failing or running, check a single job, and (when
asked) retry failing jobs, all with the same filtering rules the terminal
monitor uses.

Transport: Streamable HTTP by default (MCP_TRANSPORT=http, host 0.0.0.0, port 8000).
           Set MCP_TRANSPORT=stdio to use stdio instead (e.g. for Cursor/Claude Desktop).
Logs:      All application logs go to stderr to avoid corrupting the JSON-RPC stream.
"""

import functools
import logging
import os
import sys

from dotenv import load_dotenv
from fastmcp import FastMCP

from retry_monitor.config import (
    ConfigError,
    JenkinsSettings,
    MonitorConfig,
    jenkins_urls,
    select_url,
)
from retry_monitor.jenkins_api import JenkinsClient
from retry_monitor.job_filter import JobFilterRuleset, filter_jobs
from retry_monitor.models import Classification, FetchError, classify
from retry_monitor.report import CollectingReporter
from retry_monitor.scheduler import CycleScheduler

load_dotenv()

# Route all library and application logs to stderr, never stdout.
logging.basicConfig(
    stream=sys.stderr,
    level=logging.WARNING,
    format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
)
logger = logging.getLogger("jenkins-retry-monitor-mcp")

mcp = FastMCP(
    "Jenkins Retry Monitor",
    instructions=(
        "You watch a single Jenkins instance for failing and running jobs. "
        "Use check_failing_jobs for the current list of failing and in-progress jobs; "
        "pass retry=true only when the user explicitly asks to rebuild failing jobs. "
        "Use get_job_status to look at one job, and list_monitored_jobs to see "
        "which jobs the monitor checks after its exclusion rules."
    ),
)


@functools.lru_cache(maxsize=1)
def _monitor_context() -> tuple[JenkinsClient, JobFilterRuleset, str]:
    """Build the shared client and ruleset once, on first tool call."""
    index = int(os.getenv("MONITOR_URL_INDEX", "0"))
    base_url = select_url(jenkins_urls(), index)
    return JenkinsClient(base_url, JenkinsSettings.from_env()), JobFilterRuleset.from_env(), base_url


def _handle_error(exc: Exception, context: str) -> str:
    """Convert common exceptions into readable strings for the AI."""
    if isinstance(exc, FetchError):
        if exc.status_code in (401, 403):
            return (
                f"[{context}] Authentication failed ({exc.status_code}). "
                "Check JENKINS_USER and JENKINS_TOKEN."
            )
        if exc.status_code == 404:
            return f"[{context}] Not found (404). Verify the job name."
        return f"[{context}] {exc}"
    if isinstance(exc, ConfigError):
        return f"[{context}] Configuration error: {exc}"
    return f"[{context}] Unexpected error: {exc}"


@mcp.tool
def check_failing_jobs(retry: bool = False) -> str:
    """Run one monitoring cycle: list failing and in-progress jobs,
    optionally requesting a rebuild of each failing job.

    Args:
        retry: Trigger buildWithParameters for every failing job (default false).
    """
    try:
        client, ruleset, base_url = _monitor_context()
        reporter = CollectingReporter()
        scheduler = CycleScheduler(
            client, ruleset, MonitorConfig(base_url=base_url, retry=retry), reporter,
        )
        report = scheduler.run_cycle()
    except Exception as exc:
        return _handle_error(exc, "check_failing_jobs")

    if not report.failing and not report.in_progress and not report.errors:
        reporter.lines.insert(1, f"All {report.checked} monitored jobs are quiet.")
    return reporter.render()


@mcp.tool
def get_job_status(job_name: str) -> str:
    """Show the latest-build status of one job and how the monitor classifies it.

    Args:
        job_name: Jenkins job display name.
    """
    try:
        client, _, _ = _monitor_context()
        status = client.get_last_build_status(job_name)
    except Exception as exc:
        return _handle_error(exc, "get_job_status")

    classification = classify(status)
    lines = [
        f"Job:          {job_name}",
        f"Result:       {status.result or 'none'}",
        f"In progress:  {str(status.in_progress).lower()}",
        f"Monitor sees: {classification.value}",
    ]
    if status.placeholder:
        lines.append(
            "Note:         Jenkins returned no usable lastBuild data; "
            "treated as in progress (the job may never have built)."
        )
    if classification is Classification.FAILING:
        lines.append("Use check_failing_jobs(retry=true) to request a rebuild.")
    return "\n".join(lines)


@mcp.tool
def list_monitored_jobs() -> str:
    """List the jobs the monitor checks after applying its exclusion rules."""
    try:
        client, ruleset, base_url = _monitor_context()
        jobs = client.get_all_listed_jobs()
    except Exception as exc:
        return _handle_error(exc, "list_monitored_jobs")

    eligible = filter_jobs(jobs, ruleset)
    disabled = sum(1 for j in jobs if j.disabled)
    queued = sum(1 for j in jobs if j.in_queue and not j.disabled)
    lines = [
        f"Monitored jobs on {base_url}: {len(eligible)} of {len(jobs)} "
        f"({disabled} disabled, {queued} queued, "
        f"{len(jobs) - len(eligible) - disabled - queued} excluded by name)"
    ]
    for i, job in enumerate(eligible, start=1):
        lines.append(f"  {i}. {job.name}")
    return "\n".join(lines)


def main() -> None:
    import socket

    transport = os.getenv("MCP_TRANSPORT", "http")
    host = os.getenv("MCP_HOST", "0.0.0.0")
    port = int(os.getenv("MCP_PORT", "8000"))

    if transport == "stdio":
        mcp.run(transport="stdio", show_banner=False)
    else:
        with socket.socket(socket.AF_INET, socket.SOCK_DGRAM) as _s:
            try:
                _s.connect(("8.8.8.8", 80))
                external_ip = _s.getsockname()[0]
            except OSError:
                external_ip = "127.0.0.1"

        print(
            f"Jenkins Retry Monitor MCP server starting\n"
            f"  Local:    http://127.0.0.1:{port}/mcp\n"
            f"  Network:  http://{external_ip}:{port}/mcp",
            file=sys.stderr,
        )
        mcp.run(transport=transport, host=host, port=port, show_banner=False)


if __name__ == "__main__":
    main()
