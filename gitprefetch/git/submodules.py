"""
Submodule expansion.

Submodules are not fetched with ``git submodule update``. Each one is cloned
with the same shallow/full protocol as the top level repository, pinned to
the hash recorded in the parent, so nested checkouts are exactly as
reproducible as the parent.
"""

import logging
import re
from typing import Dict, List, Optional, Tuple

from git import Git
from git.exc import GitCommandError

from gitprefetch.config import PrefetchConfig
from gitprefetch.errors import SubmoduleResolutionFailed
from gitprefetch.git.client import clean_git
from gitprefetch.model import FetchRequest, SubmoduleRecord

logger = logging.getLogger(__name__)

# "-<hash> <path>" or " <hash> <path> (<describe>)"
STATUS_LINE = re.compile(r"^.([0-9a-f]+) (.+?)(?: \(.*\))?$")


def parse_submodule_status(output: str) -> List[Tuple[str, str]]:
    """Parse ``git submodule status`` into (pinned hash, path) pairs."""
    entries = []
    for line in output.splitlines():
        if not line.strip():
            continue
        match = STATUS_LINE.match(line)
        if match is None:
            logger.debug(f"Ignoring unexpected submodule status line: {line!r}")
            continue
        entries.append((match.group(1), match.group(2)))
    return entries


def parse_gitmodules_paths(output: str) -> Dict[str, str]:
    """
    Parse ``git config --get-regexp 'submodule\\..*\\.path'`` output.

    Returns:
        Mapping of config section ("submodule.<name>") to submodule path
    """
    sections = {}
    for line in output.splitlines():
        if not line.strip():
            continue
        key, _, path = line.partition(" ")
        if not key.endswith(".path"):
            continue
        sections[key[: -len(".path")]] = path
    return sections


def section_for_path(sections: Dict[str, str], path: str) -> str:
    """Reverse lookup of the config section registering ``path``."""
    matches = [section for section, p in sections.items() if p == path]
    if not matches:
        raise SubmoduleResolutionFailed(path, "not registered in .gitmodules")
    if len(matches) > 1:
        raise SubmoduleResolutionFailed(
            path, f"registered more than once in .gitmodules ({', '.join(matches)})"
        )
    return matches[0]


def list_submodules(g: Git) -> List[SubmoduleRecord]:
    """
    Enumerate the submodules of the checked out commit.

    Runs ``git submodule init`` first so that every submodule URL (relative
    ones resolved against origin) is registered in the repository config.

    Raises:
        SubmoduleResolutionFailed: a name or URL cannot be determined
    """
    try:
        g.submodule("init")
        status = g.submodule("status")
    except GitCommandError as e:
        raise SubmoduleResolutionFailed(
            ".", f"git submodule failed: {str(e.stderr or '').strip()}"
        ) from e

    entries = parse_submodule_status(status)
    if not entries:
        return []

    try:
        paths_output = g.config(
            "-f", ".gitmodules", "--get-regexp", r"submodule\..*\.path"
        )
    except GitCommandError as e:
        raise SubmoduleResolutionFailed(
            ".", "no submodule paths found in .gitmodules"
        ) from e
    sections = parse_gitmodules_paths(paths_output)

    records = []
    for hash, path in entries:
        section = section_for_path(sections, path)
        try:
            url = g.config("--get", f"{section}.url").strip()
        except GitCommandError as e:
            raise SubmoduleResolutionFailed(path, f"no URL registered for {section}") from e
        if not url:
            raise SubmoduleResolutionFailed(path, f"empty URL registered for {section}")
        records.append(
            SubmoduleRecord(
                path=path,
                url=url,
                hash=hash,
                name=section[len("submodule.") :],
            )
        )
    return records


def expand_submodules(
    parent: FetchRequest,
    config: PrefetchConfig,
    ancestors: Tuple[Tuple[str, Optional[str]], ...],
) -> None:
    """
    Clone every submodule of ``parent`` into its directory, recursively.

    Args:
        parent: Request of the repository that was just checked out
        config: Invocation settings
        ancestors: (url, hash) of ``parent`` and every repository enclosing it

    Raises:
        SubmoduleResolutionFailed: a submodule cannot be resolved, or refers
            back to one of its ancestors
    """
    # Import here to avoid circular dependency
    from gitprefetch.git.checkout import clone

    g = clean_git(parent.target, config.git_environment())
    for record in list_submodules(g):
        if (record.url, record.hash) in ancestors:
            raise SubmoduleResolutionFailed(
                record.path,
                f"{record.url}@{record.hash} is one of its own parent repositories",
            )

        logger.info(f"fetching submodule {record.name} ({record.url}) at {record.path}")
        request = FetchRequest(
            target=parent.target / record.path,
            url=record.url,
            hash=record.hash,
            ref=None,
        )
        clone(request, config, ancestors)
