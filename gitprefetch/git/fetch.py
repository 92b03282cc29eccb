"""
Fetch strategies.

Two strategies populate an initialized repository:

    fetch_shallow: one ref at depth 1. Cheap, but only possible when the
        revision is (or can be mapped to) a ref advertised by the remote and
        no deep clone was requested. Raises ``FetchUnavailable`` otherwise.

    fetch_full: complete history plus tags, then checkout by hash. Used as
        the fallback; raises ``CheckoutFailed`` on any failure.

Both leave the checkout on a new local branch named after
``PrefetchConfig.branch_name``.
"""

import logging

from git import Git
from git.exc import GitCommandError

from gitprefetch.config import PrefetchConfig
from gitprefetch.errors import CheckoutFailed, FetchUnavailable
from gitprefetch.git.client import hash_from_ref, ls_remote, ref_from_hash
from gitprefetch.model import FetchRequest

logger = logging.getLogger(__name__)

# Identity and dates for commits synthesized around a bare tree object, so
# that the same tree always yields the same commit.
SYNTHETIC_COMMIT_ENVIRONMENT = {
    "GIT_AUTHOR_NAME": "nix-prefetch-git",
    "GIT_AUTHOR_EMAIL": "nix-prefetch-git@localhost",
    "GIT_AUTHOR_DATE": "1980-01-01 00:00:00 +0000",
    "GIT_COMMITTER_NAME": "nix-prefetch-git",
    "GIT_COMMITTER_EMAIL": "nix-prefetch-git@localhost",
    "GIT_COMMITTER_DATE": "1980-01-01 00:00:00 +0000",
}


def _progress_args(config: PrefetchConfig) -> list:
    return ["--progress"] if config.builder else []


def _stderr(error: GitCommandError) -> str:
    return str(error.stderr or "").strip()


def fetch_shallow(g: Git, request: FetchRequest, config: PrefetchConfig) -> None:
    """
    Fetch exactly one ref at depth 1 and check it out.

    Args:
        g: Git wrapper bound to the initialized repository
        request: What to fetch; a hash without ref is mapped to a ref first
        config: Invocation settings

    Raises:
        FetchUnavailable: deep clone requested, no matching ref, or git failed
    """
    if config.deep_clone:
        raise FetchUnavailable(request.url, request.revision, "deep clone requested")

    ref = request.ref
    if not ref:
        try:
            ref = ref_from_hash(ls_remote(g), request.hash or "")
        except GitCommandError as e:
            raise FetchUnavailable(request.url, request.revision, _stderr(e)) from e
    if not ref:
        raise FetchUnavailable(
            request.url, request.revision, "no remote ref points at this revision"
        )

    logger.debug(f"Shallow fetch of {ref} from {request.url}")
    try:
        g.fetch(*_progress_args(config), "--depth", "1", "origin", f"+{ref}")
        g.checkout("-b", config.branch_name, "FETCH_HEAD")
    except GitCommandError as e:
        raise FetchUnavailable(request.url, ref, _stderr(e)) from e


def fetch_full(g: Git, request: FetchRequest, config: PrefetchConfig) -> None:
    """
    Fetch all history and tags, then check out the requested object.

    A commit (or an annotated tag, peeled) is checked out directly. A tree
    object is wrapped in a commit with a fixed identity and date first.

    Raises:
        CheckoutFailed: the revision is unknown or any git command failed
    """
    revision = request.revision
    try:
        hash = request.hash
        if not hash:
            hash = hash_from_ref(ls_remote(g), request.ref or "")
        if not hash:
            raise CheckoutFailed(
                request.url, revision, f"Ref {request.ref} not found on the remote."
            )

        logger.debug(f"Full fetch of {request.url} to check out {hash}")
        g.fetch(*_progress_args(config), "-t", "origin")

        object_type = g.cat_file("-t", hash).strip()
        if object_type == "tag":
            # Annotated tags advertise the tag object; check out its commit
            hash = g.rev_parse(f"{hash}^{{commit}}").strip()
            object_type = "commit"
        if object_type == "commit":
            g.checkout("-b", config.branch_name, hash)
        elif object_type == "tree":
            commit_id = g.commit_tree(
                hash,
                "-m",
                f"Commit created from tree hash {hash}",
                env=SYNTHETIC_COMMIT_ENVIRONMENT,
            ).strip()
            g.checkout("-b", config.branch_name, commit_id)
        else:
            raise CheckoutFailed(
                request.url, revision, f"Unrecognized git object type: {object_type}"
            )
    except GitCommandError as e:
        raise CheckoutFailed(request.url, revision, _stderr(e)) from e
