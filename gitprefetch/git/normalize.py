"""
Removal of non-reproducible repository state.

By default every ``.git`` entry below a checkout is deleted. When the caller
asks to keep them, each repository is normalized instead so that its
metadata directory only depends on the checked out history.
"""

import logging
import shutil
from pathlib import Path
from typing import List, Mapping, Optional

from gitprefetch.git.client import clean_git

logger = logging.getLogger(__name__)

# Relative to .git; these carry timestamps or fetch-time state.
VOLATILE_PATHS = (
    "logs",
    "hooks",
    "index",
    "FETCH_HEAD",
    "ORIG_HEAD",
    "refs/remotes/origin/HEAD",
    "config",
)

# Injected through the environment so that no config file has to exist.
SINGLE_THREADED_PACKING = {
    "GIT_CONFIG_COUNT": "1",
    "GIT_CONFIG_KEY_0": "pack.threads",
    "GIT_CONFIG_VALUE_0": "1",
}


def _lines(output: str) -> List[str]:
    return [line.strip() for line in output.splitlines() if line.strip()]


def _remove(path: Path) -> None:
    if path.is_dir() and not path.is_symlink():
        shutil.rmtree(path)
    elif path.exists() or path.is_symlink():
        path.unlink()


def find_git_dirs(root: Path) -> List[Path]:
    """All ``.git`` entries below ``root``, parents before children."""
    return sorted(root.rglob(".git"), key=lambda p: (len(p.parts), str(p)))


def remove_git_dirs(root: Path) -> None:
    """Delete every ``.git`` directory (or gitfile) below ``root``."""
    # Deepest first, a parent removal would otherwise take children with it.
    for git_dir in reversed(find_git_dirs(root)):
        if git_dir.exists() or git_dir.is_symlink():
            logger.debug(f"Removing {git_dir}")
            _remove(git_dir)


def make_deterministic_repo(
    repo: Path, env: Optional[Mapping[str, str]] = None
) -> None:
    """
    Normalize one repository in place.

        1. drop logs, hooks, index, fetch markers, origin/HEAD and config
        2. drop every remote-tracking branch
        3. drop every tag not reachable from HEAD, keeping tags at HEAD
        4. full single-threaded repack, then drop config again
        5. prune every unreferenced object

    Args:
        repo: Working tree containing the ``.git`` directory
        env: Extra environment for git
    """
    git_dir = repo / ".git"
    logger.debug(f"Normalizing {git_dir}")

    for relative in VOLATILE_PATHS:
        _remove(git_dir / relative)

    g = clean_git(repo, env)

    for ref in _lines(g.for_each_ref("--format=%(refname)", "refs/remotes")):
        g.update_ref("-d", ref)

    at_head = set(_lines(g.tag("--points-at", "HEAD")))
    reachable = set(_lines(g.tag("--merged", "HEAD")))
    for tag in _lines(g.tag("--list")):
        if tag in at_head or tag in reachable:
            continue
        logger.debug(f"Deleting tag {tag} not reachable from HEAD")
        g.tag("-d", tag)

    packer = clean_git(repo, {**(env or {}), **SINGLE_THREADED_PACKING})
    packer.repack("-A", "-d", "-f", "--threads=1")
    _remove(git_dir / "config")

    # --keep-largest-pack keeps objects/info/packs down to the single pack
    packer.gc("--prune=all", "--keep-largest-pack")


def make_deterministic_tree(
    root: Path, env: Optional[Mapping[str, str]] = None
) -> None:
    """Normalize every repository found below ``root``."""
    for git_dir in find_git_dirs(root):
        if git_dir.is_dir():
            make_deterministic_repo(git_dir.parent.resolve(), env)
