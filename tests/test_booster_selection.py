"""Tests for booster naming, selection and run results."""

import pytest

from boosterops.domain.booster import Booster, Selection, SelectionMode, simple_name
from boosterops.domain.outcome import Outcome, OutcomeRecord, RunResults


def _boosters(*names):
    return [Booster(f"spring-boot-{n}-booster", f"git@github.com:snowdrop/spring-boot-{n}-booster.git") for n in names]


class TestSimpleName:

    def test_strips_prefix_and_suffix(self):
        assert simple_name("spring-boot-circuit-breaker-booster") == "circuit-breaker"

    def test_unconventional_name_unchanged(self):
        assert simple_name("launcher-booster-catalog") == "launcher-booster-catalog"

    def test_custom_convention(self):
        assert Booster("vertx-http-example", "url", "vertx-", "-example").simple_name == "http"


class TestSelection:

    def test_all_by_default(self):
        boosters = _boosters("a", "b", "c")
        assert Selection.from_lists().apply(boosters) == boosters

    def test_include(self):
        selection = Selection.from_lists(include=["a", "b"])
        assert selection.mode is SelectionMode.INCLUDE
        assert [b.simple_name for b in selection.apply(_boosters("a", "b", "c"))] == ["a", "b"]

    def test_exclude(self):
        selection = Selection.from_lists(exclude=["a"])
        assert [b.simple_name for b in selection.apply(_boosters("a", "b", "c"))] == ["b", "c"]

    def test_include_and_exclude_conflict(self):
        with pytest.raises(ValueError):
            Selection.from_lists(include=["a"], exclude=["b"])

    def test_blank_names_ignored(self):
        assert Selection.from_lists(include=["", " "]).mode is SelectionMode.ALL


class TestRunResults:

    def test_buckets(self):
        results = RunResults()
        results.processed_ok("master", "spring-boot-http-booster")
        results.fail("master", "spring-boot-cache-booster", "Tests failed")
        results.ignore("", "spring-boot-crud-booster", "Not under git control")

        assert len(results.processed) == 1
        assert results.failed[0].outcome is Outcome.FAILED
        assert len(results.ignored) == 1

    def test_record_string(self):
        assert str(OutcomeRecord(Outcome.FAILED, "master", "b", "Tests failed")) == 'master:b:"Tests failed"'
        assert str(OutcomeRecord(Outcome.PROCESSED, "master", "b")) == "master:b"
        assert str(OutcomeRecord(Outcome.IGNORED, "", "b", "Not under git control")) == 'b:"Not under git control"'
