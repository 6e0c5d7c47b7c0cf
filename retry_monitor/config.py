"""
Settings for the monitor, read from the environment (and a local .env file).

Copy .env.example to .env and fill in your Jenkins credentials.  The CLI
picks one of the JENKINS_URLS entries by index and layers its own flags on
top to build a MonitorConfig.
"""

import os
from dataclasses import dataclass

from dotenv import load_dotenv

load_dotenv()

DEFAULT_INTERVAL = 300
DEFAULT_CONCURRENCY = 5
DEFAULT_SETTLE_DELAY = 0.1
DEFAULT_TIMEOUT = 30
USER_AGENT = "jenkins-retry-monitor/1.0"

STATUS_FALLBACK_IN_PROGRESS = "in_progress"
STATUS_FALLBACK_ERROR = "error"
_STATUS_FALLBACKS = (STATUS_FALLBACK_IN_PROGRESS, STATUS_FALLBACK_ERROR)


class ConfigError(ValueError):
    pass


def _split_csv(raw: str) -> list[str]:
    return [part.strip() for part in raw.split(",") if part.strip()]


def _env_flag(name: str, default: str = "true") -> bool:
    return os.environ.get(name, default).lower() not in ("false", "0", "no")


@dataclass(frozen=True)
class JenkinsSettings:
    """Credentials and transport knobs for the shared JenkinsClient."""

    user: str = ""
    token: str = ""
    timeout: float = DEFAULT_TIMEOUT
    verify_ssl: bool = True
    user_agent: str = USER_AGENT
    status_fallback: str = STATUS_FALLBACK_IN_PROGRESS

    @classmethod
    def from_env(cls) -> "JenkinsSettings":
        raw_timeout = os.environ.get("JENKINS_TIMEOUT", str(DEFAULT_TIMEOUT))
        try:
            timeout = float(raw_timeout)
        except ValueError:
            raise ConfigError(f"JENKINS_TIMEOUT must be a number, got {raw_timeout!r}")

        fallback = os.environ.get("MONITOR_STATUS_FALLBACK", STATUS_FALLBACK_IN_PROGRESS).lower()
        if fallback not in _STATUS_FALLBACKS:
            raise ConfigError(
                f"MONITOR_STATUS_FALLBACK must be one of {', '.join(_STATUS_FALLBACKS)}, "
                f"got {fallback!r}"
            )

        return cls(
            user=os.environ.get("JENKINS_USER", ""),
            token=os.environ.get("JENKINS_TOKEN", ""),
            timeout=timeout,
            verify_ssl=_env_flag("JENKINS_VERIFY_SSL"),
            status_fallback=fallback,
        )


@dataclass(frozen=True)
class MonitorConfig:
    """Per-run settings, shared read-only by every worker thread."""

    base_url: str
    retry: bool = False
    interval: float = DEFAULT_INTERVAL
    concurrency: int = DEFAULT_CONCURRENCY
    settle_delay: float = DEFAULT_SETTLE_DELAY


def jenkins_urls() -> list[str]:
    """Preconfigured base URLs, from JENKINS_URLS or a single JENKINS_URL."""
    urls = _split_csv(os.environ.get("JENKINS_URLS", ""))
    if not urls:
        urls = _split_csv(os.environ.get("JENKINS_URL", ""))
    if not urls:
        raise ConfigError(
            "No Jenkins URL configured. Set JENKINS_URLS (comma-separated) or "
            "JENKINS_URL. Copy .env.example to .env and fill in your values."
        )
    return [u.rstrip("/") for u in urls]


def select_url(urls: list[str], index: int) -> str:
    """Pick a preconfigured URL by index; out-of-range indexes clamp to the ends."""
    return urls[max(0, min(index, len(urls) - 1))]
