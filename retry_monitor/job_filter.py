"""
Exclusion rules that decide which jobs are checked in a cycle.

The ruleset is built once at startup and passed around by value; the filter
itself is a pure function of (job, ruleset).
"""

from __future__ import annotations

import os
import re
from dataclasses import dataclass, field

from retry_monitor.config import _split_csv
from retry_monitor.models import Job

DEFAULT_SUITE_PATTERN = r"_start_test_suite|-test-suite-start|-post-deployment"
_BUILD_SUFFIX_RE = re.compile(r"\s+#\d+$")


def strip_build_suffix(name: str) -> str:
    """'Daily-Build #42' -> 'Daily-Build'"""
    return _BUILD_SUFFIX_RE.sub("", name)


@dataclass(frozen=True)
class JobFilterRuleset:
    excluded_names: frozenset[str] = frozenset()
    excluded_modules: tuple[str, ...] = ()
    # Suite-start / post-deployment jobs orchestrate test runs rather than test.
    suite_boundary: re.Pattern = field(
        default_factory=lambda: re.compile(DEFAULT_SUITE_PATTERN, re.IGNORECASE)
    )

    @classmethod
    def build(
        cls,
        excluded_names=(),
        excluded_modules=(),
        suite_pattern: str = DEFAULT_SUITE_PATTERN,
    ) -> JobFilterRuleset:
        return cls(
            excluded_names=frozenset(excluded_names),
            excluded_modules=tuple(excluded_modules),
            suite_boundary=re.compile(suite_pattern, re.IGNORECASE),
        )

    @classmethod
    def from_env(cls) -> JobFilterRuleset:
        """MONITOR_EXCLUDED_JOBS / MONITOR_EXCLUDED_MODULES are comma-separated."""
        return cls.build(
            excluded_names=_split_csv(os.environ.get("MONITOR_EXCLUDED_JOBS", "")),
            excluded_modules=_split_csv(os.environ.get("MONITOR_EXCLUDED_MODULES", "")),
            suite_pattern=os.environ.get("MONITOR_SUITE_PATTERN") or DEFAULT_SUITE_PATTERN,
        )

    def excludes_name(self, name: str) -> bool:
        for candidate in {name, strip_build_suffix(name)}:
            if self.suite_boundary.search(candidate):
                return True
            if candidate in self.excluded_names:
                return True
            if any(module in candidate for module in self.excluded_modules):
                return True
        return False


def is_included(job: Job, ruleset: JobFilterRuleset) -> bool:
    if job.disabled or job.in_queue:
        return False
    return not ruleset.excludes_name(job.name)


def filter_jobs(jobs: list[Job], ruleset: JobFilterRuleset) -> list[Job]:
    return [j for j in jobs if is_included(j, ruleset)]
