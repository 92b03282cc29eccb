"""
Checkout of a user revision into a directory.

``clone`` runs the fetch protocol for one repository (and, recursively, its
submodules). ``clone_user_rev`` is the entry point used by both prefetch and
builder mode: it classifies the revision, clones, records metadata, runs the
checkout hook, and finally strips or normalizes every ``.git`` directory.
"""

import logging
import os
import subprocess
from pathlib import Path
from typing import Optional, Tuple

from gitprefetch.config import PrefetchConfig
from gitprefetch.errors import CheckoutFailed, FetchUnavailable
from gitprefetch.git.client import init_remote
from gitprefetch.git.fetch import fetch_full, fetch_shallow
from gitprefetch.git.metadata import extract_metadata
from gitprefetch.git.normalize import make_deterministic_tree, remove_git_dirs
from gitprefetch.git.resolve import DEFAULT_REVISION, build_request
from gitprefetch.git.submodules import expand_submodules
from gitprefetch.model import FetchRequest, ResolvedMetadata

logger = logging.getLogger(__name__)


def clone(
    request: FetchRequest,
    config: PrefetchConfig,
    ancestors: Tuple[Tuple[str, Optional[str]], ...] = (),
) -> None:
    """
    Initialize ``request.target`` and check out the requested revision.

    The shallow strategy is tried first; when it is unavailable the full
    strategy runs. Submodules are expanded afterwards if requested.

    Args:
        request: Target directory, URL and revision to check out
        config: Invocation settings
        ancestors: (url, hash) of every enclosing repository, for submodules

    Raises:
        CheckoutFailed: neither strategy could check out the revision
        SubmoduleResolutionFailed: a submodule could not be resolved
    """
    g = init_remote(
        request.target,
        request.url,
        http_proxy=config.http_proxy,
        env=config.git_environment(),
    )

    try:
        fetch_shallow(g, request, config)
    except FetchUnavailable as e:
        logger.debug(f"{e}; falling back to a full fetch")
        fetch_full(g, request, config)

    if config.fetch_submodules:
        expand_submodules(
            request, config, ancestors + ((request.url, request.hash),)
        )


def run_checkout_hook(directory: Path, hook: str) -> None:
    """Run the caller supplied shell snippet with ``$dir`` set to the checkout."""
    env = dict(os.environ)
    env["dir"] = str(directory)
    completed = subprocess.run(
        ["sh", "-c", hook],
        cwd=directory,
        env=env,
        text=True,
        capture_output=True,
        check=False,
    )
    if completed.stdout:
        logger.info(completed.stdout.rstrip())
    if completed.returncode != 0:
        raise CheckoutFailed(
            str(directory),
            "checkout hook",
            f"Hook exited with status {completed.returncode}: "
            f"{completed.stderr.strip()}",
        )


def clone_user_rev(
    directory: Path, url: str, rev: Optional[str], config: PrefetchConfig
) -> ResolvedMetadata:
    """
    Check out ``url`` at ``rev`` into ``directory`` and make it reproducible.

    Args:
        directory: Empty (or missing) directory receiving the tree
        url: Remote repository URL
        rev: Revision as given by the user; empty means HEAD
        config: Invocation settings

    Returns:
        Metadata of the checked out commit
    """
    rev = rev or DEFAULT_REVISION
    request = build_request(directory, url, rev)
    clone(request, config)

    metadata = extract_metadata(
        directory, rev, config.branch_name, env=config.git_environment()
    )

    if config.checkout_hook:
        run_checkout_hook(directory, config.checkout_hook)

    if config.leave_dot_git:
        make_deterministic_tree(directory, env=config.git_environment())
    else:
        logger.info("removing `.git'...")
        remove_git_dirs(directory)

    return metadata
