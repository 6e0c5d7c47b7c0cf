"""
Thin wrapper around the three Jenkins REST endpoints the monitor uses.

One JenkinsClient is built at startup and shared by every worker thread.
Its requests.Session (auth, headers, adapters) is configured in __init__
and never mutated afterwards; the connection pool is sized to the fan-out
ceiling.  Transport failures are raised as FetchError so callers decide
whether they are fatal (inventory) or scoped to one job (status, retry).

There is no retry loop here: the next scheduled cycle is the retry.
"""

import logging
from urllib.parse import quote

import requests
from requests.adapters import HTTPAdapter

from retry_monitor.config import DEFAULT_CONCURRENCY, STATUS_FALLBACK_ERROR, JenkinsSettings
from retry_monitor.models import UNPARSEABLE_STATUS, BuildStatus, FetchError, Job

logger = logging.getLogger(__name__)

_INVENTORY_TREE = "jobs[name,fullDisplayName,disabled,inQueue,url]"
_STATUS_TREE = "result,inProgress"


def _job_path(job_name: str) -> str:
    """Percent-encode a job display name into a /job/<name> path segment.

    'Daily Build #3' -> '/job/Daily%20Build%20%233'
    """
    return "/job/" + quote(job_name, safe="")


class JenkinsClient:
    def __init__(
        self,
        base_url: str,
        settings: JenkinsSettings | None = None,
        session: requests.Session | None = None,
        pool_maxsize: int = DEFAULT_CONCURRENCY,
    ):
        self.base_url = base_url.rstrip("/")
        self.settings = settings or JenkinsSettings()
        self.session = session or requests.Session()
        adapter = HTTPAdapter(pool_maxsize=pool_maxsize)
        self.session.mount("https://", adapter)
        self.session.mount("http://", adapter)
        if self.settings.user or self.settings.token:
            self.session.auth = (self.settings.user, self.settings.token)
        self.session.headers["User-Agent"] = self.settings.user_agent
        self.session.verify = self.settings.verify_ssl

        if not self.settings.verify_ssl:
            import urllib3
            urllib3.disable_warnings(urllib3.exceptions.InsecureRequestWarning)

    def _request(self, method: str, path: str, **kwargs) -> requests.Response:
        url = f"{self.base_url}{path}"
        try:
            response = self.session.request(
                method, url, timeout=self.settings.timeout, **kwargs,
            )
            response.raise_for_status()
            return response
        except requests.HTTPError as exc:
            status = exc.response.status_code
            logger.debug("Jenkins HTTP %s for %s", status, url)
            raise FetchError(f"Jenkins returned HTTP {status} for {url}", url, status) from exc
        except requests.Timeout as exc:
            raise FetchError(
                f"Jenkins did not respond within {self.settings.timeout} seconds ({url}).", url,
            ) from exc
        except requests.RequestException as exc:
            raise FetchError(
                f"Cannot reach Jenkins at {self.base_url}: {exc}", url,
            ) from exc

    def get_all_listed_jobs(self) -> list[Job]:
        """Fetch the job inventory.

        Transport errors raise FetchError.  A body that is not the expected
        {"jobs": [...]} shape yields an empty list so the cycle can continue.
        """
        response = self._request("GET", f"/api/json?tree={_INVENTORY_TREE}")
        try:
            data = response.json()
        except ValueError:
            logger.warning("Inventory body unparseable at %s; treating as no jobs", self.base_url)
            return []

        raw_jobs = data.get("jobs") if isinstance(data, dict) else None
        if not isinstance(raw_jobs, list):
            logger.warning("Inventory body has no jobs list at %s; treating as no jobs", self.base_url)
            return []
        return [Job.from_api(j) for j in raw_jobs if isinstance(j, dict)]

    def get_last_build_status(self, job_name: str) -> BuildStatus:
        """Fetch result/inProgress of a job's latest build.

        A 404 (never built) or a body that does not parse into the expected
        shape is handed to the unparseable-status policy instead of raising.
        """
        path = f"{_job_path(job_name)}/lastBuild/api/json?tree={_STATUS_TREE}"
        try:
            response = self._request("GET", path)
        except FetchError as exc:
            if exc.status_code == 404:
                return self._unparseable_status(job_name, "no lastBuild (404)")
            raise

        try:
            data = response.json()
        except ValueError:
            return self._unparseable_status(job_name, "invalid JSON")

        if not isinstance(data, dict):
            return self._unparseable_status(job_name, "unexpected shape")
        result = data.get("result")
        in_progress = data.get("inProgress")
        if not isinstance(in_progress, bool) or not (result is None or isinstance(result, str)):
            return self._unparseable_status(job_name, "unexpected shape")
        return BuildStatus(result=result, in_progress=in_progress)

    def _unparseable_status(self, job_name: str, reason: str) -> BuildStatus:
        if self.settings.status_fallback == STATUS_FALLBACK_ERROR:
            raise FetchError(f"Unusable lastBuild status for {job_name}: {reason}")
        logger.warning(
            "Unusable lastBuild status for %s (%s); treating as in progress", job_name, reason,
        )
        return UNPARSEABLE_STATUS

    def trigger_build(self, job_name: str) -> None:
        """POST buildWithParameters for a job.  The response body is ignored."""
        self._request("POST", f"{_job_path(job_name)}/buildWithParameters")
