"""Tests for revision classification."""

from pathlib import Path

import pytest

from gitprefetch.git.resolve import build_request, classify_revision
from gitprefetch.model import RevisionKind


@pytest.mark.short
class TestClassifyRevision:
    @pytest.mark.parametrize(
        "rev",
        [
            "0",
            "abc1234",
            "deadbeef",
            "0123456789abcdef0123456789abcdef01234567",
        ],
    )
    def test_hex_strings_are_hashes(self, rev):
        spec = classify_revision(rev)
        assert spec.kind == RevisionKind.hash
        assert spec.hash == rev
        assert spec.ref is None

    @pytest.mark.parametrize(
        "rev",
        ["HEAD", "refs/heads/master", "refs/tags/v1.0", "refs/pull/12/head"],
    )
    def test_head_and_refs_are_refs(self, rev):
        spec = classify_revision(rev)
        assert spec.kind == RevisionKind.ref
        assert spec.ref == rev
        assert spec.hash is None

    def test_refs_prefix_wins_over_hex(self):
        # "refs/..." is never hex, but a ref named after a hash stays a ref
        spec = classify_revision("refs/heads/abc1234")
        assert spec.kind == RevisionKind.ref

    @pytest.mark.parametrize("rev", ["v1.0", "main", "release-2", "ABC1234", "head"])
    def test_other_strings_are_tags(self, rev):
        spec = classify_revision(rev)
        assert spec.kind == RevisionKind.tag
        assert spec.ref == f"refs/tags/{rev}"
        assert spec.hash is None

    @pytest.mark.parametrize("rev", [None, ""])
    def test_empty_revision_means_head(self, rev):
        spec = classify_revision(rev)
        assert spec.kind == RevisionKind.ref
        assert spec.value == "HEAD"


@pytest.mark.short
def test_build_request_for_tag():
    request = build_request(Path("/tmp/out"), "https://example.org/repo.git", "v1.0")
    assert request.ref == "refs/tags/v1.0"
    assert request.hash is None
    assert request.target == Path("/tmp/out")


@pytest.mark.short
def test_build_request_for_hash():
    request = build_request(Path("/tmp/out"), "https://example.org/repo.git", "abc1234")
    assert request.hash == "abc1234"
    assert request.ref is None
    assert request.revision == "abc1234"
