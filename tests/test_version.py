"""Tests for booster version parsing and ordering."""

import pytest

from boosterops.domain.version import (
    Ordering,
    Version,
    compare,
    compare_base,
    is_valid_base,
    parse_version,
)
from boosterops.errors import VersionParseError


class TestParse:
    """Tests for Version.parse."""

    def test_full_version(self):
        v = Version.parse("1.5.13-2-redhat-SNAPSHOT")
        assert v.base == "1.5.13"
        assert v.revision == 2
        assert v.qualifier == "redhat"
        assert v.snapshot is True

    def test_released_version(self):
        v = Version.parse("1.5.13-2")
        assert v.qualifier is None
        assert v.snapshot is False

    def test_snapshot_without_qualifier(self):
        """SNAPSHOT in the qualifier position is the snapshot marker."""
        v = Version.parse("1.5.13-2-SNAPSHOT")
        assert v.qualifier is None
        assert v.snapshot is True

    def test_qualifier_without_snapshot(self):
        v = Version.parse("1.5.13-1-redhat")
        assert v.qualifier == "redhat"
        assert v.snapshot is False

    def test_short_base(self):
        assert Version.parse("2.1-7").base_parts == (2, 1)

    @pytest.mark.parametrize("raw", ["", "1.5.13", "v1.5.13-2", "1.5.13-x", "latest", "1.5.13-2-red-hat"])
    def test_invalid(self, raw):
        with pytest.raises(VersionParseError):
            Version.parse(raw)

    def test_parse_error_is_value_error(self):
        with pytest.raises(ValueError):
            parse_version("not-a-version")

    @pytest.mark.parametrize("raw", [
        "1.5.13-2", "1.5.13-2-SNAPSHOT", "1.5.13-2-redhat", "1.5.13-2-redhat-SNAPSHOT", "2.0-10",
    ])
    def test_string_form_parses_back(self, raw):
        assert str(Version.parse(raw)) == raw
        assert Version.parse(str(Version.parse(raw))) == Version.parse(raw)


class TestDerivedVersions:

    def test_next_revision_snapshot(self):
        assert str(Version.parse("1.5.13-2-redhat-SNAPSHOT").next_revision()) == "1.5.13-3-redhat-SNAPSHOT"

    def test_next_revision_release(self):
        assert str(Version.parse("1.5.13-2").next_revision()) == "1.5.13-3"

    def test_release_and_next_snapshot(self):
        current = Version.parse("1.5.13-2-SNAPSHOT")
        assert str(current.release_version()) == "1.5.13-2"
        assert str(current.next_snapshot_version()) == "1.5.13-3-SNAPSHOT"


class TestCompare:

    def test_base_ordering_is_symmetric(self):
        older = Version.parse("1.5.13-1")
        newer = Version.parse("1.5.14-1")
        assert compare(older, newer) is Ordering.LESS
        assert compare(newer, older) is Ordering.GREATER
        assert compare(older, older) is Ordering.EQUAL

    def test_revision_breaks_ties(self):
        assert compare(Version.parse("1.5.13-3"), Version.parse("1.5.13-2")) is Ordering.GREATER

    def test_base_is_numeric(self):
        assert compare(Version.parse("1.5.9-1"), Version.parse("1.5.10-1")) is Ordering.LESS

    def test_qualifier_and_snapshot_are_ignored(self):
        """Kept as-is: a qualified release and a snapshot of the same revision are EQUAL."""
        assert compare(Version.parse("1.5.13-2-redhat"), Version.parse("1.5.13-2-SNAPSHOT")) is Ordering.EQUAL

    def test_missing_segments_count_as_zero(self):
        assert compare_base("1.5", "1.5.0") is Ordering.EQUAL
        assert compare_base("2", "1.5.13") is Ordering.GREATER

    def test_sort_key_matches_compare(self):
        versions = [Version.parse(v) for v in ("1.5.14-1", "1.5.13-2", "1.5-9", "1.5.13-10")]
        ordered = sorted(versions, key=lambda v: v.sort_key)
        assert [str(v) for v in ordered] == ["1.5-9", "1.5.13-2", "1.5.13-10", "1.5.14-1"]


class TestValidBase:

    @pytest.mark.parametrize("base", ["1.5.13", "2.0", "3"])
    def test_valid(self, base):
        assert is_valid_base(base)

    @pytest.mark.parametrize("base", ["", "1.5.13-2", "1.5.13.RELEASE", "a.b"])
    def test_invalid(self, base):
        assert not is_valid_base(base)
