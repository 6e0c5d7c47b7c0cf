"""Tests for retry_monitor.job_filter against a literal job-name table."""

from __future__ import annotations

import pytest

from retry_monitor.job_filter import (
    JobFilterRuleset,
    filter_jobs,
    is_included,
    strip_build_suffix,
)
from retry_monitor.models import Job

RULESET = JobFilterRuleset.build(
    excluded_names=["Daily-Build", "Release-Tagging"],
    excluded_modules=["legacy-", "sandbox"],
)


def _job(name: str, disabled: bool = False, in_queue: bool = False) -> Job:
    return Job(name=name, disabled=disabled, in_queue=in_queue, url=f"https://ci/job/{name}/")


# ---------------------------------------------------------------------------
# strip_build_suffix
# ---------------------------------------------------------------------------


class TestStripBuildSuffix:
    def test_suffix_removed(self):
        assert strip_build_suffix("Daily-Build #42") == "Daily-Build"

    def test_multiple_spaces(self):
        assert strip_build_suffix("Daily-Build   #7") == "Daily-Build"

    def test_no_suffix_untouched(self):
        assert strip_build_suffix("Daily-Build") == "Daily-Build"

    def test_hash_without_space_untouched(self):
        assert strip_build_suffix("Daily-Build#42") == "Daily-Build#42"

    def test_hash_in_middle_untouched(self):
        assert strip_build_suffix("Build #42 nightly") == "Build #42 nightly"


# ---------------------------------------------------------------------------
# is_included
# ---------------------------------------------------------------------------


@pytest.mark.parametrize("name", ["api-tests", "Daily-Build", "suite_start_test"])
@pytest.mark.parametrize("disabled,in_queue", [(True, False), (False, True), (True, True)])
def test_disabled_or_queued_always_excluded(name, disabled, in_queue):
    assert not is_included(_job(name, disabled=disabled, in_queue=in_queue), RULESET)


@pytest.mark.parametrize("name,included", [
    ("api-tests", True),
    ("payments_start_test_suite", False),
    ("PAYMENTS_START_TEST_SUITE", False),
    ("regression-test-suite-start", False),
    ("Regression-Test-Suite-Start", False),
    ("checkout-post-deployment", False),
    ("checkout-Post-Deployment", False),
    ("Daily-Build", False),
    ("Daily-Build #42", False),
    ("Daily-Build-2", True),
    ("daily-build", True),
    ("Release-Tagging #1", False),
    ("legacy-ui-tests", False),
    ("ui-sandbox-smoke", False),
    ("Legacy-UI", True),
    ("checkout-post-deployment #3", False),
    ("smoke #12", True),
])
def test_name_table(name, included):
    assert is_included(_job(name), RULESET) is included


def test_suffixed_name_matches_stripped_form():
    assert is_included(_job("Daily-Build #42"), RULESET) == is_included(_job("Daily-Build"), RULESET)


def test_default_ruleset_only_drops_suite_boundaries():
    ruleset = JobFilterRuleset()
    assert is_included(_job("anything"), ruleset)
    assert not is_included(_job("x_start_test_suite"), ruleset)


def test_filter_is_deterministic():
    job = _job("legacy-ui-tests")
    assert [is_included(job, RULESET) for _ in range(5)] == [False] * 5


# ---------------------------------------------------------------------------
# filter_jobs / ruleset construction
# ---------------------------------------------------------------------------


class TestFilterJobs:
    def test_keeps_inventory_order(self):
        jobs = [_job("b"), _job("Daily-Build"), _job("a"), _job("c", disabled=True)]
        assert [j.name for j in filter_jobs(jobs, RULESET)] == ["b", "a"]

    def test_empty(self):
        assert filter_jobs([], RULESET) == []


class TestRulesetFromEnv:
    def test_reads_comma_separated_lists(self, monkeypatch):
        monkeypatch.setenv("MONITOR_EXCLUDED_JOBS", "One, Two ,")
        monkeypatch.setenv("MONITOR_EXCLUDED_MODULES", "mod-a,mod-b")
        monkeypatch.delenv("MONITOR_SUITE_PATTERN", raising=False)
        ruleset = JobFilterRuleset.from_env()
        assert ruleset.excluded_names == frozenset({"One", "Two"})
        assert ruleset.excluded_modules == ("mod-a", "mod-b")
        assert ruleset.suite_boundary.search("X-POST-DEPLOYMENT")

    def test_empty_env_excludes_nothing_by_name(self, monkeypatch):
        monkeypatch.delenv("MONITOR_EXCLUDED_JOBS", raising=False)
        monkeypatch.delenv("MONITOR_EXCLUDED_MODULES", raising=False)
        ruleset = JobFilterRuleset.from_env()
        assert ruleset.excluded_names == frozenset()
        assert ruleset.excluded_modules == ()

    def test_custom_suite_pattern(self, monkeypatch):
        monkeypatch.setenv("MONITOR_SUITE_PATTERN", "^orchestrate-")
        ruleset = JobFilterRuleset.from_env()
        assert not is_included(_job("Orchestrate-nightly"), ruleset)
        assert is_included(_job("x_start_test_suite"), ruleset)

    def test_ruleset_is_frozen(self):
        with pytest.raises(AttributeError):
            RULESET.excluded_names = frozenset()


def test_env_lists_share_the_config_parser():
    from retry_monitor import config, job_filter

    assert job_filter._split_csv is config._split_csv
    assert config._split_csv(" a, ,b ,") == ["a", "b"]
