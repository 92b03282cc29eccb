"""
Hash-and-store driver.

``prefetch`` walks one invocation through its states:

    Start      expected hash given? compute its fixed store path
    (cache)    path already valid -> done, no network access
    Fetching   clone into a scratch directory
    Hashing    hash the resulting tree
    Ingesting  add the tree to the store
    (verify)   expected hash given and different -> HashMismatch, the
               new store path is never reported
    Done       return the result record

``build`` is builder mode: the caller owns the output directory and neither
hashing nor the store are involved.
"""

import logging
import re
import tempfile
from contextlib import contextmanager
from pathlib import Path
from typing import Iterator, Optional

from gitprefetch.config import PrefetchConfig
from gitprefetch.errors import HashMismatch, UsageError
from gitprefetch.git.checkout import clone_user_rev
from gitprefetch.model import PrefetchResult, ResolvedMetadata, url_to_name
from gitprefetch.store import NixStore

logger = logging.getLogger(__name__)

FULL_HASH = re.compile(r"^[0-9a-f]{40}$")


@contextmanager
def scratch_directory(tmpdir: Optional[Path] = None) -> Iterator[Path]:
    """Temporary directory removed on every exit path."""
    with tempfile.TemporaryDirectory(
        prefix="git-checkout-tmp-", dir=str(tmpdir) if tmpdir else None
    ) as path:
        yield Path(path)


def build(
    url: Optional[str], rev: Optional[str], config: PrefetchConfig
) -> ResolvedMetadata:
    """
    Builder mode: check out ``url`` at ``rev`` into ``config.out``.

    Raises:
        UsageError: output path, URL or revision missing
    """
    if not (config.out and url and rev):
        raise UsageError("--builder requires --out, --url and --rev")

    out = Path(config.out)
    out.mkdir(parents=True, exist_ok=True)
    return clone_user_rev(out, url, rev, config)


def prefetch(
    url: str,
    rev: Optional[str],
    expected_hash: Optional[str],
    config: PrefetchConfig,
    store: Optional[NixStore] = None,
) -> PrefetchResult:
    """
    Fetch ``url`` at ``rev`` into the store, unless it is already there.

    Args:
        url: Remote repository URL
        rev: Revision; empty means HEAD
        expected_hash: Hash the result must have, if known
        config: Invocation settings
        store: Store backend (defaults to the nix command line tools)

    Returns:
        The result record

    Raises:
        HashMismatch: the fetched tree does not have the expected hash
        CheckoutFailed, SubmoduleResolutionFailed, StoreError
    """
    if not url:
        raise UsageError("A repository URL is required")
    if store is None:
        store = NixStore()

    rev = rev or ""
    hash_algo = config.hash_algo
    name = url_to_name(url, rev)

    final_path = None
    hash = None
    metadata = None

    if expected_hash:
        candidate = store.print_fixed_path(hash_algo, expected_hash, name)
        if store.check_validity(candidate):
            logger.info(f"path {candidate} is already valid, skipping fetch")
            final_path = candidate
            hash = expected_hash

    if final_path is None:
        with scratch_directory(config.tmpdir) as tmp_path:
            checkout = tmp_path / name
            checkout.mkdir(parents=True)

            metadata = clone_user_rev(checkout, url, rev, config)
            hash = store.hash_path(hash_algo, checkout)

            final_path = store.add_fixed(hash_algo, checkout)

            if expected_hash and expected_hash != hash:
                raise HashMismatch(url, expected_hash, hash)

    if metadata is not None:
        full_rev = metadata.full_rev
        date = metadata.commit_date_iso8601
    else:
        # Nothing was fetched; only a full hash is known without the network.
        full_rev = rev if FULL_HASH.match(rev) else ""
        date = ""

    return PrefetchResult(
        url=url,
        rev=full_rev,
        date=date,
        path=final_path,
        hash_algo=hash_algo,
        hash=hash,
        sri_hash=store.to_sri(hash_algo, hash),
        human_readable_rev=metadata.human_readable_rev if metadata else None,
        commit_date=metadata.commit_date if metadata else None,
        fetch_submodules=config.fetch_submodules,
        deep_clone=config.deep_clone,
        leave_dot_git=config.leave_dot_git,
    )


def report(result: PrefetchResult) -> None:
    """Human readable summary on the diagnostic stream."""
    logger.info("")
    logger.info(f"git revision is {result.rev}")
    if result.path:
        logger.info(f"path is {result.path}")
    if result.human_readable_rev:
        logger.info(f"git human-readable version is {result.human_readable_rev}")
    if result.commit_date:
        logger.info(f"Commit date is {result.commit_date}")
    logger.info(f"hash is {result.hash}")
