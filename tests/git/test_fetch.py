"""Tests for the shallow and full fetch strategies."""

from pathlib import Path
from unittest.mock import MagicMock, call

import pytest
from git.exc import GitCommandError

from gitprefetch.config import PrefetchConfig
from gitprefetch.errors import CheckoutFailed, FetchUnavailable
from gitprefetch.git.fetch import SYNTHETIC_COMMIT_ENVIRONMENT, fetch_full, fetch_shallow
from gitprefetch.model import FetchRequest

URL = "https://example.org/repo.git"
SHA = "1111111111111111111111111111111111111111"
TREE = "4444444444444444444444444444444444444444"
LS_REMOTE = f"{SHA}\tHEAD\n{SHA}\trefs/heads/master\n"


def _request(hash=None, ref=None) -> FetchRequest:
    return FetchRequest(target=Path("/tmp/checkout"), url=URL, hash=hash, ref=ref)


def _git_error(command="fetch") -> GitCommandError:
    return GitCommandError(["git", command], 128, stderr="fatal: couldn't find remote ref")


@pytest.mark.short
class TestFetchShallow:
    def test_fetches_ref_at_depth_one(self):
        g = MagicMock()
        fetch_shallow(g, _request(ref="refs/tags/v1.0"), PrefetchConfig())

        g.fetch.assert_called_once_with("--depth", "1", "origin", "+refs/tags/v1.0")
        g.checkout.assert_called_once_with("-b", "fetchgit", "FETCH_HEAD")
        g.ls_remote.assert_not_called()

    def test_resolves_hash_to_ref(self):
        g = MagicMock()
        g.ls_remote.return_value = LS_REMOTE
        fetch_shallow(g, _request(hash=SHA), PrefetchConfig())

        g.fetch.assert_called_once_with("--depth", "1", "origin", "+HEAD")

    def test_unadvertised_hash_is_unavailable(self):
        g = MagicMock()
        g.ls_remote.return_value = LS_REMOTE
        with pytest.raises(FetchUnavailable):
            fetch_shallow(g, _request(hash="abcdef0"), PrefetchConfig())
        g.fetch.assert_not_called()

    def test_deep_clone_skips_shallow(self):
        g = MagicMock()
        with pytest.raises(FetchUnavailable):
            fetch_shallow(g, _request(ref="HEAD"), PrefetchConfig(deep_clone=True))
        g.fetch.assert_not_called()

    def test_git_failure_is_unavailable(self):
        g = MagicMock()
        g.fetch.side_effect = _git_error()
        with pytest.raises(FetchUnavailable) as excinfo:
            fetch_shallow(g, _request(ref="refs/tags/missing"), PrefetchConfig())
        assert "couldn't find remote ref" in str(excinfo.value)

    def test_custom_branch_and_builder_progress(self):
        g = MagicMock()
        config = PrefetchConfig(branch_name="pinned", builder=True)
        fetch_shallow(g, _request(ref="HEAD"), config)

        g.fetch.assert_called_once_with("--progress", "--depth", "1", "origin", "+HEAD")
        g.checkout.assert_called_once_with("-b", "pinned", "FETCH_HEAD")


@pytest.mark.short
class TestFetchFull:
    def test_checks_out_commit_by_hash(self):
        g = MagicMock()
        g.cat_file.return_value = "commit"
        fetch_full(g, _request(hash="abc1234"), PrefetchConfig())

        g.fetch.assert_called_once_with("-t", "origin")
        g.cat_file.assert_called_once_with("-t", "abc1234")
        g.checkout.assert_called_once_with("-b", "fetchgit", "abc1234")

    def test_resolves_ref_to_hash(self):
        g = MagicMock()
        g.ls_remote.return_value = LS_REMOTE
        g.cat_file.return_value = "commit"
        fetch_full(g, _request(ref="refs/heads/master"), PrefetchConfig())

        g.checkout.assert_called_once_with("-b", "fetchgit", SHA)

    def test_unknown_ref_fails(self):
        g = MagicMock()
        g.ls_remote.return_value = LS_REMOTE
        with pytest.raises(CheckoutFailed) as excinfo:
            fetch_full(g, _request(ref="refs/tags/nope"), PrefetchConfig())
        assert excinfo.value.url == URL
        assert excinfo.value.revision == "refs/tags/nope"
        g.fetch.assert_not_called()

    def test_tree_is_wrapped_in_a_commit(self):
        g = MagicMock()
        g.cat_file.return_value = "tree"
        g.commit_tree.return_value = SHA
        fetch_full(g, _request(hash=TREE), PrefetchConfig())

        g.commit_tree.assert_called_once_with(
            TREE,
            "-m",
            f"Commit created from tree hash {TREE}",
            env=SYNTHETIC_COMMIT_ENVIRONMENT,
        )
        assert g.checkout.call_args == call("-b", "fetchgit", SHA)

    def test_other_object_types_fail(self):
        g = MagicMock()
        g.cat_file.return_value = "blob"
        with pytest.raises(CheckoutFailed) as excinfo:
            fetch_full(g, _request(hash="abc1234"), PrefetchConfig())
        assert "Unrecognized git object type: blob" in str(excinfo.value)
        g.checkout.assert_not_called()

    def test_git_failure_is_fatal(self):
        g = MagicMock()
        g.cat_file.return_value = "commit"
        g.checkout.side_effect = _git_error("checkout")
        with pytest.raises(CheckoutFailed):
            fetch_full(g, _request(hash="abc1234"), PrefetchConfig())


@pytest.mark.short
def test_full_fetch_peels_annotated_tags():
    g = MagicMock()
    g.ls_remote.return_value = f"{TREE}\trefs/tags/v1.0\n{SHA}\trefs/tags/v1.0^{{}}\n"
    g.cat_file.return_value = "tag"
    g.rev_parse.return_value = SHA
    fetch_full(g, _request(ref="refs/tags/v1.0"), PrefetchConfig(deep_clone=True))

    g.rev_parse.assert_called_once_with(f"{TREE}^{{commit}}")
    g.checkout.assert_called_once_with("-b", "fetchgit", SHA)


@pytest.mark.short
def test_ambiguous_prefix_leaves_shallow_fetch():
    g = MagicMock()
    g.ls_remote.return_value = f"{SHA}\trefs/heads/master\n{'1' * 7}{'2' * 33}\trefs/heads/other\n"
    with pytest.raises(FetchUnavailable):
        fetch_shallow(g, _request(hash="1111111"), PrefetchConfig())
    g.fetch.assert_not_called()
