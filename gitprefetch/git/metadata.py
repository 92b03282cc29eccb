"""Metadata of the checked out commit."""

import logging
from pathlib import Path
from typing import Mapping, Optional

from git.exc import GitCommandError

from gitprefetch.errors import CheckoutFailed
from gitprefetch.git.client import clean_git
from gitprefetch.model import ResolvedMetadata

logger = logging.getLogger(__name__)

NO_DESCRIPTION = "-- none --"


def extract_metadata(
    repo: Path,
    rev: str,
    branch_name: str,
    env: Optional[Mapping[str, str]] = None,
) -> ResolvedMetadata:
    """
    Read the full revision, its description and its commit dates.

    The revision is resolved from the string the user gave, peeled to a
    commit; when git cannot resolve it locally (e.g. a tag fetched into
    FETCH_HEAD only) the tip of the local checkout branch is used.
    """
    g = clean_git(repo, env)

    try:
        output = g.rev_parse(f"{rev}^{{commit}}")
    except GitCommandError:
        try:
            output = g.rev_parse(f"refs/heads/{branch_name}")
        except GitCommandError as e:
            raise CheckoutFailed(
                str(repo), rev, "Checked out revision cannot be resolved."
            ) from e
    lines = [line for line in output.splitlines() if line.strip()]
    full_rev = lines[-1].strip() if lines else ""

    human_readable_rev = NO_DESCRIPTION
    for args in ((full_rev,), ("--tags", full_rev)):
        try:
            human_readable_rev = g.describe(*args).strip()
            break
        except GitCommandError:
            continue

    commit_date = g.show("-1", "--no-patch", "--pretty=%ci", full_rev).strip()
    commit_date_iso8601 = g.show("-1", "--no-patch", "--pretty=%cI", full_rev).strip()

    logger.debug(f"Resolved {rev} to {full_rev} ({human_readable_rev})")
    return ResolvedMetadata(
        full_rev=full_rev,
        human_readable_rev=human_readable_rev,
        commit_date=commit_date,
        commit_date_iso8601=commit_date_iso8601,
    )
