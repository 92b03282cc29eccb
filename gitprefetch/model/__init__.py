"""Pydantic models for gitprefetch."""

from gitprefetch.model.prefetch import (
    FetchRequest,
    PrefetchResult,
    ResolvedMetadata,
    RevisionKind,
    RevisionSpec,
    SubmoduleRecord,
)
from gitprefetch.model.repo import looks_like_hash, url_to_name

__all__ = [
    "FetchRequest",
    "PrefetchResult",
    "ResolvedMetadata",
    "RevisionKind",
    "RevisionSpec",
    "SubmoduleRecord",
    "looks_like_hash",
    "url_to_name",
]
