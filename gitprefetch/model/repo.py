# Functions to derive store names from repositories

import posixpath
import re

HEX_REVISION = re.compile(r"^[0-9a-f]+$")


def looks_like_hash(rev: str) -> bool:
    """True when ``rev`` only contains lowercase hexadecimal digits."""
    return bool(rev) and HEX_REVISION.match(rev) is not None


def _basename(url: str, suffix: str = ".git") -> str:
    # Same rules as basename(1): trailing slashes are ignored and the suffix
    # is only removed when something is left over.
    stripped = url.rstrip("/")
    if not stripped:
        return "/" if url else ""
    base = posixpath.basename(stripped)
    if base.endswith(suffix) and base != suffix:
        base = base[: -len(suffix)]
    return base


def url_to_name(url: str, rev: str) -> str:
    """
    Name under which a checkout of ``url`` at ``rev`` is added to the store.

    The base name of the URL without a trailing ``.git``; for scp-like
    remotes only the part after the first ``:`` is kept. Hash-like revisions
    append their first seven characters:

        https://example.org/repo.git, abc1234 -> repo-abc1234
        https://example.org/repo.git, main    -> repo
    """
    if not url:
        raise ValueError("A repository URL must be provided")

    base = _basename(url)
    if ":" in base:
        base = base.split(":")[1]

    if looks_like_hash(rev):
        return f"{base}-{rev[:7]}"
    return base
