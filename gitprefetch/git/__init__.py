"""
Git operations for gitprefetch.

This package resolves a user revision, fetches it as shallowly as possible,
expands submodules and removes every piece of non-reproducible state from
the resulting checkout.

Layout:
    resolve     - revision classification (ref, hash, tag)
    client      - isolated git command runner and remote ref listing
    fetch       - shallow and full fetch strategies
    submodules  - recursive submodule checkout
    normalize   - .git removal or normalization
    metadata    - full revision, description and commit dates
    checkout    - ties the above together for one user revision
"""

from .checkout import clone, clone_user_rev, run_checkout_hook
from .fetch import fetch_full, fetch_shallow
from .metadata import extract_metadata
from .normalize import make_deterministic_repo, make_deterministic_tree, remove_git_dirs
from .resolve import build_request, classify_revision
from .submodules import expand_submodules, list_submodules

__all__ = [
    "build_request",
    "classify_revision",
    "clone",
    "clone_user_rev",
    "expand_submodules",
    "extract_metadata",
    "fetch_full",
    "fetch_shallow",
    "list_submodules",
    "make_deterministic_repo",
    "make_deterministic_tree",
    "remove_git_dirs",
    "run_checkout_hook",
]
