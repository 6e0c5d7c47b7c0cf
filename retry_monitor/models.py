"""
Value types shared by every stage of a monitoring cycle.

Jobs and build statuses are rebuilt from the Jenkins API on every cycle and
never mutated afterwards, so they are frozen dataclasses.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum


class FetchError(RuntimeError):
    """A Jenkins request failed: network error, timeout, or non-2xx status."""

    def __init__(self, message: str, url: str = "", status_code: int | None = None):
        super().__init__(message)
        self.url = url
        self.status_code = status_code


@dataclass(frozen=True)
class Job:
    name: str
    disabled: bool
    in_queue: bool
    url: str

    @classmethod
    def from_api(cls, data: dict) -> Job:
        return cls(
            name=data.get("fullDisplayName") or data.get("name") or "",
            disabled=bool(data.get("disabled", False)),
            in_queue=bool(data.get("inQueue", False)),
            url=data.get("url") or "",
        )


@dataclass(frozen=True)
class BuildStatus:
    result: str | None
    in_progress: bool
    # True when Jenkins gave us nothing usable and the in-progress
    # placeholder was substituted.
    placeholder: bool = False


# Substituted for lastBuild bodies that cannot be parsed.  Jenkins answers
# that way for jobs that have never built.
UNPARSEABLE_STATUS = BuildStatus(result=None, in_progress=True, placeholder=True)


class Classification(Enum):
    FAILING = "FAILURE"
    IN_PROGRESS = "IN_PROGRESS"
    QUIET = "QUIET"

    @property
    def reported(self) -> bool:
        return self is not Classification.QUIET


def classify(status: BuildStatus) -> Classification:
    """Reduce a latest-build status to the three outcomes the monitor acts on."""
    if status.result == "FAILURE":
        return Classification.FAILING
    if status.result is None and status.in_progress:
        return Classification.IN_PROGRESS
    return Classification.QUIET
