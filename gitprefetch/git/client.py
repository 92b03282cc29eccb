"""
Isolated git command runner.

Every git invocation made by gitprefetch goes through ``clean_git`` so that
neither the system nor the user's global git configuration can influence the
result of a fetch. Working directories are always explicit.
"""

import logging
from pathlib import Path
from typing import List, Mapping, Optional, Tuple

from git import Git

logger = logging.getLogger(__name__)

# Same isolation as the nix builders: no /etc/gitconfig, no ~/.gitconfig.
CLEAN_ENVIRONMENT = {
    "GIT_CONFIG_NOSYSTEM": "1",
    "HOME": "/homeless-shelter",
}

INITIAL_BRANCH = "master"


def clean_git(path: Path, env: Optional[Mapping[str, str]] = None) -> Git:
    """
    Return a git command wrapper bound to ``path``.

    Args:
        path: Working directory for every command run through the wrapper
        env: Extra environment variables (e.g. GIT_SSL_CAINFO)

    Returns:
        A GitPython ``Git`` object; failed commands raise ``GitCommandError``
    """
    g = Git(str(path))
    g.update_environment(**CLEAN_ENVIRONMENT)
    if env:
        g.update_environment(**dict(env))
    return g


def init_remote(
    path: Path,
    url: str,
    http_proxy: Optional[str] = None,
    env: Optional[Mapping[str, str]] = None,
) -> Git:
    """Initialize an empty repository in ``path`` with ``url`` as origin."""
    path.mkdir(parents=True, exist_ok=True)
    g = clean_git(path, env)
    g.init(f"--initial-branch={INITIAL_BRANCH}")
    g.remote("add", "origin", url)
    if http_proxy:
        g.config("http.proxy", http_proxy)
    return g


def parse_ls_remote(output: str) -> List[Tuple[str, str]]:
    """
    Parse ``git ls-remote`` output into (object hash, ref name) pairs.

    Order is preserved; lines that do not have both fields are skipped.
    """
    entries = []
    for line in output.splitlines():
        parts = line.strip().split("\t", 1)
        if len(parts) != 2 or not parts[0] or not parts[1]:
            continue
        entries.append((parts[0], parts[1]))
    return entries


def ls_remote(g: Git) -> List[Tuple[str, str]]:
    """List the refs advertised by origin."""
    return parse_ls_remote(g.ls_remote("origin"))


def ref_from_hash(entries: List[Tuple[str, str]], hash: str) -> Optional[str]:
    """
    First advertised ref whose target starts with ``hash``.

    None when the prefix matches the targets of more than one object, so that
    the full strategy resolves the abbreviation instead of guessing.
    """
    if not hash:
        return None
    matches = [(sha, ref) for sha, ref in entries if sha.startswith(hash)]
    if len({sha for sha, _ in matches}) != 1:
        if matches:
            logger.debug(f"{hash} is ambiguous among advertised refs")
        return None
    return matches[0][1]


def hash_from_ref(entries: List[Tuple[str, str]], ref: str) -> Optional[str]:
    """Target of the first advertised ref named exactly ``ref``."""
    if not ref:
        return None
    for sha, name in entries:
        if name == ref:
            return sha
    return None
