"""
Tests for semantic version parsing and release selection.
"""

import pytest

from wfspec.spec.errors import ResolutionError
from wfspec.spec.types import SemanticVersion
from wfspec.spec.versions import (
    is_commit_sha,
    parse_version,
    select_latest_release,
)


class TestIsCommitSha:
    """Tests for is_commit_sha."""

    def test_full_sha(self):
        assert is_commit_sha("0123456789abcdef0123456789abcdef01234567")

    def test_uppercase_sha(self):
        assert is_commit_sha("0123456789ABCDEF0123456789ABCDEF01234567")

    def test_mixed_case_sha(self):
        assert is_commit_sha("0123456789aBcDeF0123456789AbCdEf01234567")

    def test_short_sha(self):
        assert not is_commit_sha("0123456")

    @pytest.mark.parametrize("value", ["a" * 39, "a" * 41, "main", "v1.0.0"])
    def test_not_a_sha(self, value):
        assert not is_commit_sha(value)

    def test_non_hex(self):
        assert not is_commit_sha("g" * 40)

    def test_empty(self):
        assert not is_commit_sha("")


class TestParseVersion:
    """Tests for parse_version."""

    @pytest.mark.parametrize(
        "value,expected",
        [
            ("v1.2.3", SemanticVersion(1, 2, 3)),
            ("1.2.3", SemanticVersion(1, 2, 3)),
            ("v2", SemanticVersion(2, 0, 0)),
            ("v1.4", SemanticVersion(1, 4, 0)),
            ("v1.0.0-rc.1", SemanticVersion(1, 0, 0)),
            ("1.0.0+build.7", SemanticVersion(1, 0, 0)),
        ],
    )
    def test_versions(self, value, expected):
        assert parse_version(value) == expected

    @pytest.mark.parametrize("value", ["", "main", "feature/x", "v", "a" * 40, "1.2.3.4"])
    def test_not_versions(self, value):
        assert parse_version(value) is None

    def test_ordering(self):
        assert SemanticVersion(1, 10, 0) > SemanticVersion(1, 9, 9)
        assert SemanticVersion(2, 0, 0).is_newer(SemanticVersion(1, 99, 99))
        assert str(SemanticVersion(1, 2, 3)) == "v1.2.3"


class TestSelectLatestRelease:
    """Tests for select_latest_release."""

    def test_same_major_only(self):
        tags = ["v1.0.0", "v1.2.0", "v2.0.0", "v1.1.5"]
        assert select_latest_release(tags, "v1.0.0") == "v1.2.0"

    def test_allow_major(self):
        tags = ["v1.0.0", "v1.2.0", "v2.0.0", "v1.1.5"]
        assert select_latest_release(tags, "v1.0.0", allow_major=True) == "v2.0.0"

    def test_ignores_non_version_tags(self):
        tags = ["nightly", "v1.0.1", "latest"]
        assert select_latest_release(tags, "v1") == "v1.0.1"

    def test_no_releases(self):
        with pytest.raises(ResolutionError, match="no releases found"):
            select_latest_release([], "v1.0.0")

    def test_no_compatible_release(self):
        with pytest.raises(ResolutionError, match="no compatible release found"):
            select_latest_release(["v2.0.0", "v3.1.0"], "v1.0.0")

    def test_non_version_current_ref_returns_first_tag(self):
        assert select_latest_release(["v0.9.0", "v1.0.0"], "main") == "v0.9.0"

    def test_result_is_greatest_compatible(self):
        tags = ["v1.0.0", "v1.10.0", "v1.9.0", "v1.10.0-rc.1"]
        result = select_latest_release(tags, "v1.0.0")
        chosen = parse_version(result)
        for tag in tags:
            assert not parse_version(tag).is_newer(chosen)
