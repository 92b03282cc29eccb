"""Classification of user supplied revisions."""

from pathlib import Path
from typing import Optional

from gitprefetch.model import FetchRequest, RevisionKind, RevisionSpec, looks_like_hash

DEFAULT_REVISION = "HEAD"


def classify_revision(rev: Optional[str]) -> RevisionSpec:
    """
    Decide how a revision string is fetched.

    Rules, first match wins:
        HEAD or refs/...          -> fetched as that ref
        only hex digits [0-9a-f]  -> fetched as a commit hash
        anything else             -> fetched as refs/tags/<rev>

    No lookup happens here; a revision that does not exist on the remote is
    only detected by the fetch strategies.

    Args:
        rev: Revision string; empty or None means HEAD

    Returns:
        The classified revision
    """
    if not rev:
        rev = DEFAULT_REVISION

    if rev == "HEAD" or rev.startswith("refs/"):
        return RevisionSpec(value=rev, kind=RevisionKind.ref)
    if looks_like_hash(rev):
        return RevisionSpec(value=rev, kind=RevisionKind.hash)
    return RevisionSpec(value=rev, kind=RevisionKind.tag)


def build_request(target: Path, url: str, rev: Optional[str]) -> FetchRequest:
    """Fetch request for the top level checkout of ``url`` at ``rev``."""
    spec = classify_revision(rev)
    return FetchRequest(target=target, url=url, hash=spec.hash, ref=spec.ref)
