"""Pydantic models for the prefetch pipeline."""

import json
from enum import Enum
from pathlib import Path
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator


def validate_non_empty_string(v: str) -> str:
    """Validate that a string is not empty."""
    if not v or not v.strip():
        raise ValueError("must be a non-empty string")
    return v


class RevisionKind(str, Enum):
    """How a user supplied revision is fetched."""

    ref = "ref"
    hash = "hash"
    tag = "tag"


class RevisionSpec(BaseModel):
    """A revision as typed by the user, with its classification."""

    model_config = ConfigDict(frozen=True)

    value: str = Field(..., description="Revision string as given")
    kind: RevisionKind = Field(..., description="Classification of the string")

    @property
    def ref(self) -> Optional[str]:
        """Ref to fetch, for ref and tag revisions."""
        if self.kind == RevisionKind.ref:
            return self.value
        if self.kind == RevisionKind.tag:
            return f"refs/tags/{self.value}"
        return None

    @property
    def hash(self) -> Optional[str]:
        """Commit hash to fetch, for hash revisions."""
        if self.kind == RevisionKind.hash:
            return self.value
        return None


class FetchRequest(BaseModel):
    """Where to fetch from, where to put it, and what to check out."""

    model_config = ConfigDict(frozen=True)

    target: Path = Field(..., description="Directory receiving the checkout")
    url: str = Field(..., description="Remote repository URL")
    hash: Optional[str] = Field(None, description="Concrete object hash")
    ref: Optional[str] = Field(None, description="Ref to fetch")

    @field_validator("url")
    @classmethod
    def validate_url(cls, v: str) -> str:
        return validate_non_empty_string(v)

    @property
    def revision(self) -> str:
        """Hash and ref as one string, for messages."""
        return f"{self.hash or ''}{self.ref or ''}"


class SubmoduleRecord(BaseModel):
    """One entry of a repository's submodule manifest."""

    model_config = ConfigDict(frozen=True)

    path: str = Field(..., description="Path relative to the parent checkout")
    url: str = Field(..., description="Registered remote URL")
    hash: str = Field(..., description="Pinned commit hash")
    name: str = Field(..., description="Registered submodule name")


class ResolvedMetadata(BaseModel):
    """Facts about the checked out commit."""

    model_config = ConfigDict(frozen=True)

    full_rev: str = Field(..., description="Full revision hash")
    human_readable_rev: str = Field(..., description="git describe output")
    commit_date: str = Field(..., description="Commit date, local offset")
    commit_date_iso8601: str = Field(..., description="Commit date, strict ISO 8601")


class PrefetchResult(BaseModel):
    """Outcome of a prefetch, rendered as the JSON record on stdout."""

    model_config = ConfigDict(frozen=True)

    url: str
    rev: str
    date: str
    path: Optional[str] = None
    hash_algo: str
    hash: str
    sri_hash: Optional[str] = None
    human_readable_rev: Optional[str] = None
    commit_date: Optional[str] = None
    fetch_submodules: bool = False
    deep_clone: bool = False
    leave_dot_git: bool = False

    def to_record(self) -> dict:
        record = {
            "url": self.url,
            "rev": self.rev,
            "date": self.date,
            "path": self.path or "",
            self.hash_algo: self.hash,
        }
        if self.sri_hash:
            record["hash"] = self.sri_hash
        record["fetchSubmodules"] = self.fetch_submodules
        record["deepClone"] = self.deep_clone
        record["leaveDotGit"] = self.leave_dot_git
        return record

    def to_json(self) -> str:
        return json.dumps(self.to_record(), indent=2)
